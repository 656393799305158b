"""
Validation module

Shared structural constraints for class structures, limit structures and
cost share tables
"""

from .types import ValidationLevel, ValidationResult, ConstraintViolation
from .constraints import check_class_structure, enforce

__all__ = [
    'ValidationLevel',
    'ValidationResult',
    'ConstraintViolation',
    'check_class_structure',
    'enforce',
]
