"""Score entry, aggregation and ranking."""
