"""metricgate: role-scoped access control for Prometheus metric queries."""

__version__ = "0.1.0"
