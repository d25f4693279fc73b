"""Turn rendered HTML into plain markdown-ish text for language model context."""

import re
from datetime import datetime, timezone
from typing import Dict, Optional
from urllib.parse import urlparse

_FLAGS = re.IGNORECASE | re.DOTALL

TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", _FLAGS)
DESCRIPTION_RE = re.compile(r'<meta\s+name="description"\s+content="([^"]*)"\s*/?>', re.IGNORECASE)
ARTICLE_RE = re.compile(r"<article[^>]*>(.*?)</article>", _FLAGS)
MAIN_RE = re.compile(r"<main[^>]*>(.*?)</main>", _FLAGS)

# Applied in order; code blocks before inline code, links before tag stripping.
MARKDOWN_RULES = (
    (re.compile(r"<h1(?:\s[^>]*)?>(.*?)</h1>", _FLAGS), r"# \1\n\n"),
    (re.compile(r"<h2(?:\s[^>]*)?>(.*?)</h2>", _FLAGS), r"## \1\n\n"),
    (re.compile(r"<h3(?:\s[^>]*)?>(.*?)</h3>", _FLAGS), r"### \1\n\n"),
    (re.compile(r"<h4(?:\s[^>]*)?>(.*?)</h4>", _FLAGS), r"#### \1\n\n"),
    (re.compile(r"<h5(?:\s[^>]*)?>(.*?)</h5>", _FLAGS), r"##### \1\n\n"),
    (re.compile(r"<h6(?:\s[^>]*)?>(.*?)</h6>", _FLAGS), r"###### \1\n\n"),
    (re.compile(r"<li(?:\s[^>]*)?>(.*?)</li>", _FLAGS), r"- \1\n"),
    (re.compile(r"<p(?:\s[^>]*)?>(.*?)</p>", _FLAGS), r"\1\n\n"),
    (re.compile(r"<pre(?:\s[^>]*)?><code(?:\s[^>]*)?>(.*?)</code></pre>", _FLAGS), r"```\n\1\n```\n\n"),
    (re.compile(r"<code(?:\s[^>]*)?>(.*?)</code>", _FLAGS), r"`\1`"),
    (re.compile(r'<a\s[^>]*href="([^"]*)"[^>]*>(.*?)</a>', _FLAGS), r"[\2](\1)"),
    (re.compile(r"<(strong|b)(?:\s[^>]*)?>(.*?)</(?:strong|b)>", _FLAGS), r"**\2**"),
    (re.compile(r"<(em|i)(?:\s[^>]*)?>(.*?)</(?:em|i)>", _FLAGS), r"*\2*"),
    (re.compile(r"<[^>]*>"), ""),
    (re.compile(r"\n{3,}"), "\n\n"),
)

# Decoded in order; &amp; must stay last.
ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)


class ContentProcessor:
    """Converts rendered pages into compact text with a metadata header."""

    def process_for_llm(self, html: str, url: str, extracted_at: Optional[datetime] = None) -> str:
        """Extract metadata and readable content from ``html``.

        Args:
            html: Rendered document markup
            url: Address the markup was rendered from
            extracted_at: Timestamp for the header, defaults to now

        Returns:
            Header block followed by the cleaned content
        """
        metadata = self.extract_metadata(html, url, extracted_at)
        return self.format_for_llm(self.clean_content(html), metadata)

    def extract_metadata(self, html: str, url: str, extracted_at: Optional[datetime] = None) -> Dict[str, str]:
        title = TITLE_RE.search(html)
        description = DESCRIPTION_RE.search(html)
        extracted_at = extracted_at or datetime.now(timezone.utc)

        return {
            "title": title.group(1).strip() if title else "Unknown Title",
            "description": description.group(1).strip() if description else "No description available",
            "url": url,
            "source": urlparse(url).hostname or "",
            "extracted_at": extracted_at.isoformat(),
        }

    def clean_content(self, html: str) -> str:
        """Reduce markup to markdown, preferring ``<article>`` then ``<main>``."""
        content = html
        for container in (ARTICLE_RE, MAIN_RE):
            match = container.search(html)
            if match and match.group(1):
                content = match.group(1)
                break

        for pattern, replacement in MARKDOWN_RULES:
            content = pattern.sub(replacement, content)

        for entity, char in ENTITIES:
            content = content.replace(entity, char)

        return content.strip()

    def format_for_llm(self, content: str, metadata: Dict[str, str]) -> str:
        header = (
            f"Title: {metadata['title']}\n"
            f"Source: {metadata['source']}\n"
            f"URL: {metadata['url']}\n"
            f"Extracted: {metadata['extracted_at']}\n"
            f"Description: {metadata['description']}\n"
            "---\n\n"
        )
        return header + content

    @staticmethod
    def truncate(text: str, max_length: int) -> str:
        """Cut ``text`` to ``max_length`` characters, marking the cut with ``...``."""
        if max_length <= 0 or len(text) <= max_length:
            return text
        return text[:max_length] + "..."
