"""Table-of-contents reconstruction and highlight matching."""
