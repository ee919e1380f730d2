"""Read-only financial analytics: bucketing, aggregation, scoring and projection."""
