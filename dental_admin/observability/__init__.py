"""
Observability for the plan administration API

Prometheus counters shared by the HTTP layer and the plan engine
"""

from .metrics import (
    BENEFIT_MOVES,
    DOCUMENT_SAVES,
    LIMIT_VALIDATION_ERRORS,
    REQUEST_COUNT,
    REQUEST_DURATION,
)

__all__ = [
    'BENEFIT_MOVES',
    'DOCUMENT_SAVES',
    'LIMIT_VALIDATION_ERRORS',
    'REQUEST_COUNT',
    'REQUEST_DURATION',
]
