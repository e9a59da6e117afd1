"""Client, cache and cross-cutting concerns."""
