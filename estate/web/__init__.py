"""Request-scoped wiring for the HTTP layer."""
