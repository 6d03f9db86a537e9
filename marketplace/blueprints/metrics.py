"""
Prometheus metrics: request instrumentation plus checkout outcomes.

GET /metrics is unauthenticated; keep it on the internal network.
"""
from decimal import Decimal
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import (
    Counter, Histogram, Gauge, CollectorRegistry, REGISTRY, CONTENT_TYPE_LATEST,
    generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share samples through PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = 'PROMETHEUS_MULTIPROC_DIR' in os.environ

# Metrics register on the default registry; in multiprocess mode they are
# written to files and gathered per scrape instead.
_metric_registry = None if MULTIPROCESS_MODE else REGISTRY

http_requests_total = Counter(
    'marketplace_http_requests_total',
    'HTTP requests by route and status',
    ['method', 'endpoint', 'http_status'],
    registry=_metric_registry
)

http_request_duration_seconds = Histogram(
    'marketplace_http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    registry=_metric_registry,
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

http_requests_in_flight = Gauge(
    'marketplace_http_requests_in_flight',
    'Requests currently being served',
    registry=_metric_registry,
    multiprocess_mode='livesum'
)

# outcome is 'confirmed' or the error kind (InsufficientStock, BelowMinimumOrder, ...)
orders_placed_total = Counter(
    'marketplace_orders_total',
    'Checkout attempts by outcome',
    ['outcome'],
    registry=_metric_registry
)

order_value = Histogram(
    'marketplace_order_value',
    'Total paid per confirmed order, in currency units',
    registry=_metric_registry,
    buckets=(1000, 5000, 10000, 25000, 50000, 100000, 250000, 500000, 1000000)
)

stock_conflicts_total = Counter(
    'marketplace_stock_conflicts_total',
    'Orders rolled back because stock changed between validation and commit',
    registry=_metric_registry
)


def record_checkout(outcome: str, total_amount: Decimal = None, at_commit: bool = False):
    """Count one checkout attempt."""
    orders_placed_total.labels(outcome=outcome).inc()
    if total_amount is not None:
        order_value.observe(float(total_amount))
    if at_commit:
        stock_conflicts_total.inc()


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status."""

    @app.before_request
    def start_request_timer():
        g.request_started_at = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def observe_request(response):
        started = g.pop('request_started_at', None)
        if started is None:
            return response

        endpoint = request.endpoint or 'unknown'
        http_request_duration_seconds.labels(request.method, endpoint).observe(time.perf_counter() - started)
        http_requests_total.labels(request.method, endpoint, response.status_code).inc()
        http_requests_in_flight.dec()
        return response


@metrics_bp.route('/metrics')
def metrics():
    if MULTIPROCESS_MODE:
        scrape_registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(scrape_registry)
    else:
        scrape_registry = REGISTRY
    return Response(generate_latest(scrape_registry), mimetype=CONTENT_TYPE_LATEST)
