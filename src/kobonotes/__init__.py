"""Export Kobo highlights to Markdown, grouped by table of contents."""

__version__ = "0.1.0"
