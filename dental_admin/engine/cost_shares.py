"""Cost share records and class-default inheritance"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional

import structlog

from dental_admin.enums import (
    COINSURANCE_PERCENTAGE,
    COPAY_AMOUNT,
    COST_SHARE_FIELDS,
    COST_SHARE_VALUE_FIELDS,
    CostShareType,
    CoverageType,
    display_name,
)
from dental_admin.validation.constraints import check_cost_share_value, check_unique_cost_share_keys, enforce
from dental_admin.validation.types import ValidationLevel, ValidationResult

logger = structlog.get_logger()

# Seed for a benefit added to a class that has no default of its own
FALLBACK_COST_SHARE_TYPE = CostShareType.COINSURANCE
FALLBACK_COST_SHARE_VALUES = {COINSURANCE_PERCENTAGE: 20}


class CostShareValidationError(ValueError):
    """Raised when a cost share value edit is rejected"""

    def __init__(self, results: List[ValidationResult]):
        self.results = results
        super().__init__("; ".join(result.message for result in results))


class CostShareKey(NamedTuple):
    class_id: str
    benefit_id: Optional[str]
    network_tier: int
    coverage_type: CoverageType


@dataclass
class CostShareAssignment:
    """How a covered service is paid for in one (class, benefit, tier, coverage) cell.

    ``benefit_id`` of None makes the record the class-level default for its
    tier and coverage type.
    """
    class_id: str
    benefit_id: Optional[str]
    network_tier: int
    coverage_type: CoverageType
    cost_share_type: CostShareType
    values: Dict[str, float] = field(default_factory=dict)

    @property
    def key(self) -> CostShareKey:
        return CostShareKey(self.class_id, self.benefit_id, self.network_tier, self.coverage_type)

    @property
    def is_class_default(self) -> bool:
        return self.benefit_id is None


class ResolutionSource(str, Enum):
    BENEFIT = "benefit"
    CLASS_DEFAULT = "class_default"
    UNCONFIGURED = "unconfigured"


@dataclass(frozen=True)
class ResolvedCostShare:
    """Effective cost share for a benefit, tagged with where it came from"""
    source: ResolutionSource
    class_id: str
    benefit_id: Optional[str]
    network_tier: int
    coverage_type: CoverageType
    cost_share_type: Optional[CostShareType] = None
    values: Dict[str, float] = field(default_factory=dict)

    @property
    def configured(self) -> bool:
        return self.source != ResolutionSource.UNCONFIGURED


class CostShareBook:
    """All cost share records of a plan, at most one per key"""

    def __init__(self, records: Iterable[CostShareAssignment] = ()):
        records = list(records)
        enforce(check_unique_cost_share_keys(
            (r.class_id, r.benefit_id, r.network_tier, r.coverage_type.value) for r in records
        ))
        self._records: Dict[CostShareKey, CostShareAssignment] = {r.key: r for r in records}

    def records(self) -> List[CostShareAssignment]:
        return list(self._records.values())

    def get(self, class_id: str, benefit_id: Optional[str], network_tier: int,
            coverage_type: CoverageType) -> Optional[CostShareAssignment]:
        return self._records.get(CostShareKey(class_id, benefit_id, network_tier, coverage_type))

    def class_default(self, class_id: str, network_tier: int,
                      coverage_type: CoverageType) -> Optional[CostShareAssignment]:
        return self.get(class_id, None, network_tier, coverage_type)

    def benefit_records(self, class_id: str, benefit_id: str) -> List[CostShareAssignment]:
        return [r for r in self._records.values() if r.class_id == class_id and r.benefit_id == benefit_id]

    def resolve(self, class_id: str, benefit_id: Optional[str], network_tier: int,
                coverage_type: CoverageType) -> ResolvedCostShare:
        """Exact benefit record, then the class default, then unconfigured"""
        if benefit_id is not None:
            exact = self.get(class_id, benefit_id, network_tier, coverage_type)
            if exact is not None:
                return ResolvedCostShare(
                    source=ResolutionSource.BENEFIT,
                    class_id=class_id,
                    benefit_id=benefit_id,
                    network_tier=network_tier,
                    coverage_type=coverage_type,
                    cost_share_type=exact.cost_share_type,
                    values=dict(exact.values),
                )

        default = self.class_default(class_id, network_tier, coverage_type)
        if default is not None:
            return ResolvedCostShare(
                source=ResolutionSource.CLASS_DEFAULT,
                class_id=class_id,
                benefit_id=benefit_id,
                network_tier=network_tier,
                coverage_type=coverage_type,
                cost_share_type=default.cost_share_type,
                values=dict(default.values),
            )

        return ResolvedCostShare(
            source=ResolutionSource.UNCONFIGURED,
            class_id=class_id,
            benefit_id=benefit_id,
            network_tier=network_tier,
            coverage_type=coverage_type,
        )

    def set_cost_share_type(self, class_id: str, benefit_id: Optional[str], network_tier: int,
                            coverage_type: CoverageType, new_type: CostShareType) -> CostShareAssignment:
        """Set the type of the exact record, discarding its values.

        An absent record is created, so editing an inherited cell turns it
        into a benefit-specific override.
        """
        record = self.get(class_id, benefit_id, network_tier, coverage_type)
        if record is None:
            record = CostShareAssignment(
                class_id=class_id,
                benefit_id=benefit_id,
                network_tier=network_tier,
                coverage_type=coverage_type,
                cost_share_type=new_type,
            )
            self._records[record.key] = record
            return record

        record.cost_share_type = new_type
        record.values = {}
        return record

    def set_cost_share_value(self, class_id: str, benefit_id: Optional[str], network_tier: int,
                             coverage_type: CoverageType, field_name: str,
                             value: Optional[float]) -> Optional[CostShareAssignment]:
        """Update one value field of the exact record; other fields are kept.

        A missing record is materialized from whatever the cell currently
        resolves to. A cell that resolves to nothing is left alone and None is
        returned. ``value`` of None clears the field.
        """
        record = self.get(class_id, benefit_id, network_tier, coverage_type)
        cost_share_type = record.cost_share_type if record else None
        if record is None:
            resolved = self.resolve(class_id, benefit_id, network_tier, coverage_type)
            if not resolved.configured:
                logger.info(
                    "Cost share value edit on unconfigured cell ignored",
                    class_id=class_id,
                    benefit_id=benefit_id,
                    network_tier=network_tier,
                    coverage_type=coverage_type.value,
                )
                return None
            cost_share_type = resolved.cost_share_type

        results = check_cost_share_value(field_name, value)
        if field_name not in COST_SHARE_VALUE_FIELDS:
            results.append(ValidationResult(
                level=ValidationLevel.ERROR,
                rule_name="cost_share_field",
                message=f"Unknown cost share field: {field_name}",
                field_name=field_name,
            ))
        elif field_name not in COST_SHARE_FIELDS[cost_share_type]:
            results.append(ValidationResult(
                level=ValidationLevel.ERROR,
                rule_name="cost_share_field_applicable",
                message=f"{field_name} does not apply to {cost_share_type.value}",
                field_name=field_name,
                actual_value=cost_share_type.value,
            ))
        if results:
            raise CostShareValidationError(results)

        if record is None:
            record = CostShareAssignment(
                class_id=class_id,
                benefit_id=benefit_id,
                network_tier=network_tier,
                coverage_type=coverage_type,
                cost_share_type=cost_share_type,
                values=dict(resolved.values),
            )
            self._records[record.key] = record

        if value is None:
            record.values.pop(field_name, None)
        else:
            record.values[field_name] = value
        return record

    def seed_benefit(self, class_id: str, benefit_id: str, network_tier: int,
                     coverage_type: CoverageType) -> CostShareAssignment:
        """Create the benefit record of a newly added benefit from its class default"""
        existing = self.get(class_id, benefit_id, network_tier, coverage_type)
        if existing is not None:
            return existing
        default = self.class_default(class_id, network_tier, coverage_type)
        record = CostShareAssignment(
            class_id=class_id,
            benefit_id=benefit_id,
            network_tier=network_tier,
            coverage_type=coverage_type,
            cost_share_type=default.cost_share_type if default else FALLBACK_COST_SHARE_TYPE,
            values=dict(default.values) if default else dict(FALLBACK_COST_SHARE_VALUES),
        )
        self._records[record.key] = record
        return record

    def rekey_benefit(self, benefit_id: str, from_class_id: str, to_class_id: str,
                      apply_destination_default: bool = True) -> int:
        """Move every benefit-specific record of ``benefit_id`` to another class.

        With ``apply_destination_default`` the destination's class default for
        the same tier and coverage replaces the moved record's type and values.
        Returns the number of records re-keyed.
        """
        moved = self.benefit_records(from_class_id, benefit_id)
        for record in moved:
            del self._records[record.key]
            record.class_id = to_class_id
            if apply_destination_default:
                default = self.class_default(to_class_id, record.network_tier, record.coverage_type)
                if default is not None:
                    record.cost_share_type = default.cost_share_type
                    record.values = dict(default.values)
            self._records[record.key] = record
        return len(moved)

    def drop_benefit(self, class_id: str, benefit_id: str) -> int:
        records = self.benefit_records(class_id, benefit_id)
        for record in records:
            del self._records[record.key]
        return len(records)


def _money(amount: float) -> str:
    return f"${amount:,.2f}".replace(".00", "")


def describe(resolved: ResolvedCostShare) -> str:
    """Grid label such as "Copay Then Coinsurance: $25 then 20%" """
    if not resolved.configured:
        return "Not configured"
    label = display_name(resolved.cost_share_type)
    parts = []
    if COPAY_AMOUNT in resolved.values:
        parts.append(_money(resolved.values[COPAY_AMOUNT]))
    if COINSURANCE_PERCENTAGE in resolved.values:
        parts.append(f"{resolved.values[COINSURANCE_PERCENTAGE]:g}%")
    if not parts:
        return label
    return f"{label}: {' then '.join(parts)}"
