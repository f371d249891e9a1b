"""Domain service interfaces."""
