"""
Security package: request pipeline, rate limiting, CSP/HTTPS headers, CSRF,
auth sessions, validation and monitoring.

Helpers that build headers or tokens are pure functions driven by settings so
the pipeline stays a short linear chain. Shared state (rate-limit counters)
lives behind small store interfaces: in-memory by default, Redis when enabled.
"""
