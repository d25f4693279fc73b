"""Unit tests for turning rendered HTML into text."""

from datetime import datetime, timezone

import pytest

from render_worker.client.content_processor import ContentProcessor


@pytest.fixture
def processor():
    return ContentProcessor()


class TestCleanContent:
    """Tests for markup to markdown conversion."""

    def test_headings_and_paragraphs(self, processor):
        html = "<h1>Title</h1><h3 class='x'>Section</h3><p>First paragraph.</p><p>Second.</p>"

        assert processor.clean_content(html) == "# Title\n\n### Section\n\nFirst paragraph.\n\nSecond."

    def test_lists_links_and_emphasis(self, processor):
        html = (
            '<ul><li>One <strong>bold</strong></li>'
            '<li><a href="https://example.com/docs">docs</a> and <em>more</em></li></ul>'
        )

        assert processor.clean_content(html) == (
            "- One **bold**\n- [docs](https://example.com/docs) and *more*"
        )

    def test_code(self, processor):
        html = "<pre><code>print('hi')</code></pre><p>Use <code>pip</code>.</p>"

        assert processor.clean_content(html) == "```\nprint('hi')\n```\n\nUse `pip`."

    def test_prefers_article_then_main(self, processor):
        html = "<nav>Menu</nav><main><p>Main text</p></main><article><p>Article text</p></article>"
        assert processor.clean_content(html) == "Article text"

        html = "<nav>Menu</nav><main><p>Main text</p></main><footer>Footer</footer>"
        assert processor.clean_content(html) == "Main text"

    def test_strips_other_tags_and_decodes_entities(self, processor):
        html = "<div><span>Fish &amp; chips&nbsp;&lt;3 &quot;fresh&quot; &#39;daily&#39;</span><br></div>"

        assert processor.clean_content(html) == "Fish & chips <3 \"fresh\" 'daily'"

    def test_collapses_blank_lines(self, processor):
        html = "<p>A</p>\n\n\n\n<p>B</p>"

        assert "\n\n\n" not in processor.clean_content(html)

    def test_tags_sharing_a_prefix_are_not_converted(self, processor):
        html = "<p>line<br>break <img src='x.png'> <blockquote>quoted</blockquote></p>"

        assert processor.clean_content(html) == "linebreak  quoted"


class TestProcessForLlm:
    """Tests for the metadata header."""

    def test_header(self, processor, sample_html):
        extracted_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

        result = processor.process_for_llm(sample_html, "https://example.com/page", extracted_at)

        assert result.startswith(
            "Title: Example Domain\n"
            "Source: example.com\n"
            "URL: https://example.com/page\n"
            "Extracted: 2024-05-01T12:00:00+00:00\n"
            "Description: No description available\n"
            "---\n\n"
        )
        assert result.endswith("# Example Domain\n\nFor use in examples.")

    def test_description_meta(self, processor):
        html = '<head><title> Docs </title><meta name="description" content="Reference pages"></head>'

        metadata = processor.extract_metadata(html, "https://docs.example.com")

        assert metadata["title"] == "Docs"
        assert metadata["description"] == "Reference pages"
        assert metadata["source"] == "docs.example.com"

    def test_missing_title(self, processor):
        assert processor.extract_metadata("<p>x</p>", "https://example.com")["title"] == "Unknown Title"


class TestTruncate:
    @pytest.mark.parametrize("text,max_length,expected", [
        ("short", 10, "short"),
        ("exactly10!", 10, "exactly10!"),
        ("a longer piece of text", 8, "a longer..."),
        ("unlimited", 0, "unlimited"),
    ])
    def test_truncate(self, text, max_length, expected):
        assert ContentProcessor.truncate(text, max_length) == expected
