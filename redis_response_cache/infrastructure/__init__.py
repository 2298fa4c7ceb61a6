"""Infrastructure adapters (Redis)."""
