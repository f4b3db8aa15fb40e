"""Innovation Lab gamification and judging engine."""
