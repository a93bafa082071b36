"""
Metrics Export
==============

Prometheus gauges for storage usage and the HTTP endpoint serving them.

- :class:`MetricsPublisher` - gauges on a private ``CollectorRegistry``
- :func:`create_app` - Flask app with ``/metrics`` and ``/health``
- :func:`serve` - run the app for the life of the process
"""

from storage_usage.metrics.publisher import MetricsPublisher
from storage_usage.metrics.server import create_app, serve

__all__ = [
    "MetricsPublisher",
    "create_app",
    "serve",
]
