"""HTTP surface of the render worker."""
