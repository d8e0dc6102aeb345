"""Pure import/export types and field parsers."""
