"""Document assembly and Markdown export."""
