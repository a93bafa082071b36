"""
Metrics HTTP Endpoint
=====================

Flask application exposing the published gauges.

Endpoints
---------
``GET /metrics``
    Prometheus text exposition of the publisher's registry.
``GET /health``
    ``{"status": "healthy", "publishes": <n>}``.

Example
-------
>>> from storage_usage.metrics import MetricsPublisher, create_app, serve
>>>
>>> publisher = MetricsPublisher()
>>> app = create_app(publisher)
>>> serve(app, port=8080)
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from prometheus_client import CONTENT_TYPE_LATEST

from storage_usage.core.config import DEFAULT_METRICS_PORT
from storage_usage.metrics.publisher import MetricsPublisher

# Module logger
logger = logging.getLogger(__name__)


def create_app(publisher: MetricsPublisher) -> Flask:
    """
    Build the Flask app serving ``publisher``'s registry.

    Parameters
    ----------
    publisher : MetricsPublisher
        Source of the gauges.

    Returns
    -------
    Flask
        Application with ``/metrics`` and ``/health`` routes.
    """
    app = Flask(__name__)

    @app.route("/metrics")
    def metrics():
        return publisher.render(), 200, {"Content-Type": CONTENT_TYPE_LATEST}

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy", "publishes": publisher.publish_count}), 200

    return app


def serve(app: Flask, host: str = "0.0.0.0", port: int = DEFAULT_METRICS_PORT) -> None:
    """Serve ``app`` until the process is stopped."""
    logger.info(f"Listening for requests on {host}:{port}/metrics")
    app.run(host=host, port=port, threaded=True, use_reloader=False)
