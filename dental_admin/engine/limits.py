"""Benefit limits (frequency and quantity caps), keyed by benefit only"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import structlog

from dental_admin.enums import LimitIntervalType, UnitType, display_name
from dental_admin.validation.constraints import (
    check_interval_value,
    check_limit_quantity,
    check_unique_limit_benefits,
    enforce,
)
from dental_admin.validation.types import ValidationLevel, ValidationResult

logger = structlog.get_logger()

QUANTITY = "quantity"
UNIT = "unit"
INTERVAL_TYPE = "intervalType"
INTERVAL_VALUE = "intervalValue"
LIMIT_FIELDS = (QUANTITY, UNIT, INTERVAL_TYPE, INTERVAL_VALUE)


class LimitValidationError(ValueError):
    """Raised when a limit field edit is rejected; the prior value is kept"""

    def __init__(self, results: List[ValidationResult]):
        self.results = results
        super().__init__("; ".join(result.message for result in results))


@dataclass
class LimitInterval:
    type: LimitIntervalType = LimitIntervalType.PER_YEAR
    value: int = 1


@dataclass
class LimitAssignment:
    """Cap on a benefit, e.g. 2 per tooth per year.

    ``class_id``/``class_name`` record where the benefit sat when the limit was
    last written out; they are never used to look the limit up.
    """
    benefit_id: str
    benefit_name: str = ""
    quantity: float = 1
    unit: UnitType = UnitType.N_A
    interval: LimitInterval = field(default_factory=LimitInterval)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    class_id: Optional[str] = None
    class_name: Optional[str] = None


def _coerce_number(value: Any) -> Any:
    # Form inputs arrive as strings
    if isinstance(value, str):
        try:
            return float(value) if "." in value else int(value)
        except ValueError:
            return value
    return value


def _invalid(field_name: str, message: str, value: Any) -> LimitValidationError:
    return LimitValidationError([ValidationResult(
        level=ValidationLevel.ERROR,
        rule_name="limit_field",
        message=message,
        field_name=field_name,
        actual_value=value,
    )])


class LimitBook:
    """Limits of a limit structure; one record per benefit id"""

    def __init__(self, records: Iterable[LimitAssignment] = ()):
        records = list(records)
        enforce(check_unique_limit_benefits(r.benefit_id for r in records))
        self._records: Dict[str, LimitAssignment] = {r.benefit_id: r for r in records}

    def records(self) -> List[LimitAssignment]:
        return list(self._records.values())

    def resolve(self, benefit_id: str) -> Optional[LimitAssignment]:
        """The benefit's limit, or None when no limit is set"""
        return self._records.get(benefit_id)

    def set_limit_field(self, class_id: Optional[str], benefit_id: str, field_name: str, value: Any,
                        benefit_name: Optional[str] = None) -> LimitAssignment:
        """Write one limit field, creating the limit with defaults when absent.

        ``class_id`` is accepted for symmetry with cost share edits and is not
        part of the lookup. Raises LimitValidationError without touching state
        when the value is invalid.
        """
        if field_name not in LIMIT_FIELDS:
            raise _invalid(field_name, f"Unknown limit field: {field_name}", value)

        value = self._validated(field_name, value)

        record = self._records.get(benefit_id)
        if record is None:
            record = LimitAssignment(benefit_id=benefit_id, benefit_name=benefit_name or benefit_id)
            self._records[benefit_id] = record
            logger.info("Limit created", benefit_id=benefit_id, class_id=class_id)
        elif benefit_name:
            record.benefit_name = benefit_name

        if field_name == QUANTITY:
            record.quantity = value
        elif field_name == UNIT:
            record.unit = value
        elif field_name == INTERVAL_TYPE:
            record.interval = LimitInterval(type=value, value=record.interval.value)
        else:
            record.interval = LimitInterval(type=record.interval.type, value=value)
        return record

    def _validated(self, field_name: str, value: Any) -> Any:
        if field_name == QUANTITY:
            value = _coerce_number(value)
            results = check_limit_quantity(value)
            if results:
                raise LimitValidationError(results)
            return value
        if field_name == INTERVAL_VALUE:
            value = _coerce_number(value)
            results = check_interval_value(value)
            if results:
                raise LimitValidationError(results)
            return value
        if field_name == UNIT:
            try:
                return UnitType(value)
            except ValueError:
                raise _invalid(field_name, f"Unknown unit: {value}", value)
        try:
            return LimitIntervalType(value)
        except ValueError:
            raise _invalid(field_name, f"Unknown interval type: {value}", value)


def describe(limit: Optional[LimitAssignment]) -> str:
    """Label such as "2 Per Tooth Per Year"; the n/a unit is left out"""
    if limit is None:
        return "No limit set"
    quantity = int(limit.quantity) if float(limit.quantity).is_integer() else limit.quantity
    parts = [str(quantity)]
    if limit.unit != UnitType.N_A:
        parts.append(display_name(limit.unit))
    parts.append(display_name(limit.interval.type))
    if limit.interval.value != 1:
        parts.append(f"(every {limit.interval.value})")
    return " ".join(parts)
