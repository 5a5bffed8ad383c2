"""Planning calendar: ISO week arithmetic and week rollover."""
