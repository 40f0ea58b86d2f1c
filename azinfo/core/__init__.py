"""Configuration, logging, errors, time and metrics."""
