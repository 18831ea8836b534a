"""Infrastructure implementations of the application ports (HTTP, SSE)."""
