"""
Observability package

Includes:
- tracing: request correlation IDs bound into structlog context

Prometheus counters for the security layer live in
``app.security.monitoring.security_metrics``; HTTP metrics come from the
instrumentator mounted in ``app.main``.
"""
