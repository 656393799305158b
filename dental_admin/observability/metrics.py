"""Prometheus metrics"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)
REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration',
    ['method', 'endpoint']
)
BENEFIT_MOVES = Counter(
    'benefit_moves_total',
    'Benefit moves between classes',
    ['outcome']
)
LIMIT_VALIDATION_ERRORS = Counter(
    'limit_validation_errors_total',
    'Rejected limit field edits',
    ['field']
)
DOCUMENT_SAVES = Counter(
    'document_saves_total',
    'Structure documents written back from a plan',
    ['document', 'status']
)
