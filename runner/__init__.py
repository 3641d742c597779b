"""httpx-driven smoke runner for a live API server."""
