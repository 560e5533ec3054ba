"""SDL probe with bounded retry."""
