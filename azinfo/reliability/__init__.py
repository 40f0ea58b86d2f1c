"""Metadata cache, health checks and client-side throttling."""
