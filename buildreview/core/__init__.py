"""Core utilities shared across buildreview."""
