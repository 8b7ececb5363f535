"""Steam economy image inventory sync."""
