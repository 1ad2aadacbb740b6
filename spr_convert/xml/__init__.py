"""Parsing of the gzipped SPR XML export."""
