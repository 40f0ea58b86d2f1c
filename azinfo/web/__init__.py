"""HTTP read surface."""
