"""HTTP layer: middleware and demo routes."""
