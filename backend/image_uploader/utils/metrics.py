"""
Prometheus metrics definitions for the authorization service and upload client.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Authorization service metrics
upload_authorizations_total = Counter(
    'upload_authorizations_total',
    'Total upload authorization requests',
    ['status']  # issued, invalid, backend_error
)

object_deletions_total = Counter(
    'object_deletions_total',
    'Total object delete commands',
    ['status']  # deleted, not_found, invalid, backend_error
)

# Upload client metrics
uploads_total = Counter(
    'uploads_total',
    'Total client upload sequences finished',
    ['status']  # completed, failed
)

upload_bytes_total = Counter(
    'upload_bytes_total',
    'Total bytes transferred to storage by the upload client'
)
