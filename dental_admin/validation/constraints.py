"""
Structural constraints shared by request schemas and the plan engine.

The pydantic schemas run these checks when a document enters the API and the
engine runs the same checks before applying an edit, so both layers agree on
what a valid class structure, limit structure or cost share table is.

Each check takes plain values (ids, names, numbers) and returns a list of
ValidationResult; an empty list means the input passed.
"""

import math
import re
from collections import Counter
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from dental_admin.enums import COINSURANCE_PERCENTAGE
from dental_admin.validation.types import (
    ConstraintViolation,
    ValidationLevel,
    ValidationResult,
)

MAX_CLASSES = 6
MIN_CLASSES = 1
EFFECTIVE_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# (class id, class name, benefit ids in order)
ClassShape = Tuple[str, str, Sequence[str]]
# (class id, benefit id or None, network tier, coverage type)
CostShareKeyShape = Tuple[str, Optional[str], int, str]


def _error(rule_name: str, message: str, **kwargs) -> ValidationResult:
    return ValidationResult(level=ValidationLevel.ERROR, rule_name=rule_name, message=message, **kwargs)


def _finite(value: Any) -> bool:
    return not isinstance(value, float) or math.isfinite(value)


def _duplicates(values: Iterable[Any]) -> List[Any]:
    counts = Counter(values)
    seen = []
    for value, count in counts.items():
        if count > 1 and value not in seen:
            seen.append(value)
    return seen


def check_effective_date(value: str) -> List[ValidationResult]:
    if not isinstance(value, str) or not EFFECTIVE_DATE_PATTERN.match(value):
        return [_error(
            "effective_date_format",
            "Effective date must be in YYYY-MM-DD format",
            field_name="effectiveDate",
            actual_value=value,
        )]
    return []


def check_class_count(declared: int, classes: Sequence[ClassShape], max_classes: int = MAX_CLASSES) -> List[ValidationResult]:
    if isinstance(declared, bool) or not isinstance(declared, int):
        return [_error(
            "class_count_integer",
            "Number of classes must be a whole number",
            field_name="numberOfClasses",
            actual_value=declared,
        )]
    results = []
    if declared < MIN_CLASSES or declared > max_classes:
        results.append(_error(
            "class_count_range",
            f"Number of classes must be between {MIN_CLASSES} and {max_classes}",
            field_name="numberOfClasses",
            actual_value=declared,
        ))
    if classes and len(classes) != declared:
        results.append(_error(
            "class_count_mismatch",
            f"Structure declares {declared} classes but defines {len(classes)}",
            field_name="classes",
            actual_value=len(classes),
            expected_value=declared,
        ))
    return results


def check_unique_class_ids(classes: Sequence[ClassShape]) -> List[ValidationResult]:
    duplicates = _duplicates(class_id for class_id, _, _ in classes)
    if duplicates:
        return [_error(
            "unique_class_ids",
            f"Class ids must be unique: {', '.join(duplicates)}",
            field_name="classes",
            actual_value=duplicates,
        )]
    return []


def check_unique_class_names(classes: Sequence[ClassShape]) -> List[ValidationResult]:
    duplicates = _duplicates(name for _, name, _ in classes)
    if duplicates:
        return [_error(
            "unique_class_names",
            f"Class names must be unique: {', '.join(duplicates)}",
            field_name="classes",
            actual_value=duplicates,
        )]
    return []


def check_benefit_assignment(classes: Sequence[ClassShape]) -> List[ValidationResult]:
    """A benefit may belong to at most one class in a structure"""
    owner = {}
    results = []
    for class_id, class_name, benefit_ids in classes:
        for benefit_id in benefit_ids:
            if benefit_id in owner:
                results.append(_error(
                    "single_class_per_benefit",
                    f"Benefit {benefit_id} is already assigned to class {owner[benefit_id]}",
                    record_id=benefit_id,
                    field_name="classes",
                    actual_value=class_name,
                    expected_value=owner[benefit_id],
                ))
            else:
                owner[benefit_id] = class_name
    return results


def check_class_structure(classes: Sequence[ClassShape]) -> List[ValidationResult]:
    """All membership constraints of a class structure"""
    return (
        check_unique_class_ids(classes)
        + check_unique_class_names(classes)
        + check_benefit_assignment(classes)
    )


def check_limit_quantity(value: Any) -> List[ValidationResult]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not _finite(value) or value <= 0:
        return [_error(
            "limit_quantity_positive",
            "Quantity must be a positive number",
            field_name="quantity",
            actual_value=value,
        )]
    return []


def check_interval_value(value: Any) -> List[ValidationResult]:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return [_error(
            "limit_interval_positive",
            "Interval value must be a positive whole number",
            field_name="intervalValue",
            actual_value=value,
        )]
    return []


def check_unique_limit_benefits(benefit_ids: Iterable[str]) -> List[ValidationResult]:
    """Limits are keyed by benefit alone"""
    duplicates = _duplicates(benefit_ids)
    if duplicates:
        return [_error(
            "single_limit_per_benefit",
            f"Only one limit per benefit is allowed: {', '.join(duplicates)}",
            field_name="limits",
            actual_value=duplicates,
        )]
    return []


def check_cost_share_value(field_name: str, value: Optional[float]) -> List[ValidationResult]:
    if value is None:
        return []
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not _finite(value):
        return [_error("cost_share_numeric", f"{field_name} must be a number", field_name=field_name, actual_value=value)]
    if value < 0:
        return [_error("cost_share_non_negative", f"{field_name} cannot be negative", field_name=field_name, actual_value=value)]
    if field_name == COINSURANCE_PERCENTAGE and value > 100:
        return [_error(
            "coinsurance_range",
            "coinsurancePercentage must be between 0 and 100",
            field_name=field_name,
            actual_value=value,
        )]
    return []


def check_unique_cost_share_keys(keys: Iterable[CostShareKeyShape]) -> List[ValidationResult]:
    duplicates = _duplicates(keys)
    return [
        _error(
            "single_cost_share_per_key",
            f"Duplicate cost share for class {class_id}, benefit {benefit_id or '(class default)'}, "
            f"tier {tier}, coverage {coverage}",
            record_id=benefit_id,
            field_name="costShares",
        )
        for class_id, benefit_id, tier, coverage in duplicates
    ]


def check_network_tier(tier: int, total_tiers: int) -> List[ValidationResult]:
    if tier < 0 or tier >= total_tiers:
        return [_error(
            "network_tier_range",
            f"Network tier {tier} is outside the plan's {total_tiers} tier(s)",
            field_name="networkTier",
            actual_value=tier,
            expected_value=total_tiers,
        )]
    return []


def errors_only(results: Iterable[ValidationResult]) -> List[ValidationResult]:
    return [result for result in results if result.level == ValidationLevel.ERROR]


def enforce(results: Iterable[ValidationResult]) -> None:
    """Raise ConstraintViolation when any ERROR-level result is present"""
    errors = errors_only(results)
    if errors:
        raise ConstraintViolation(errors)
