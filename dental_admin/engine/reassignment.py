"""Benefit reassignment between classes and the grid view of a plan"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

import structlog

from dental_admin.engine.class_structure import BenefitRef, ClassStructureModel
from dental_admin.engine.cost_shares import CostShareAssignment, CostShareBook, ResolvedCostShare
from dental_admin.engine.limits import LimitAssignment, LimitBook, LimitValidationError
from dental_admin.enums import CostShareType, CoverageType
from dental_admin.observability.metrics import BENEFIT_MOVES, LIMIT_VALIDATION_ERRORS

logger = structlog.get_logger()


class MovePolicy(str, Enum):
    """What a benefit's own cost shares become when it changes class"""
    OVERWRITE = "overwrite"  # take the destination class default where one exists
    PRESERVE = "preserve"    # keep explicit benefit overrides


@dataclass
class GridRow:
    benefit: BenefitRef
    cost_share: ResolvedCostShare
    limit: Optional[LimitAssignment]


@dataclass
class GridClass:
    class_id: str
    class_name: str
    class_default: ResolvedCostShare
    rows: List[GridRow]


class PlanWorkspace:
    """Working state of a plan: class membership, cost shares and limits.

    Every edit goes through this object so that membership, cost share keys
    and limits stay consistent with each other.
    """

    def __init__(self, classes: ClassStructureModel, cost_shares: CostShareBook,
                 limits: LimitBook, move_policy: MovePolicy = MovePolicy.OVERWRITE):
        self.classes = classes
        self.cost_shares = cost_shares
        self.limits = limits
        self.move_policy = MovePolicy(move_policy)

    def move_benefit(self, benefit_id: str, from_class_id: str, to_class_id: str) -> bool:
        """Move a benefit to the end of another class, carrying its cost shares.

        Stale or self-referencing moves change nothing and return False.
        Limits are keyed by benefit and are left untouched.
        """
        log = logger.bind(benefit_id=benefit_id, from_class_id=from_class_id, to_class_id=to_class_id)
        if from_class_id == to_class_id:
            log.debug("Move to same class ignored")
            BENEFIT_MOVES.labels(outcome="ignored").inc()
            return False
        if not self.classes.has_class(to_class_id):
            log.info("Move ignored, unknown destination class")
            BENEFIT_MOVES.labels(outcome="ignored").inc()
            return False

        benefit = self.classes.remove_benefit(from_class_id, benefit_id)
        if benefit is None:
            log.info("Move ignored, benefit not in source class")
            BENEFIT_MOVES.labels(outcome="ignored").inc()
            return False

        self.classes.get_class(to_class_id).benefits.append(benefit)
        rekeyed = self.cost_shares.rekey_benefit(
            benefit_id,
            from_class_id,
            to_class_id,
            apply_destination_default=self.move_policy == MovePolicy.OVERWRITE,
        )
        BENEFIT_MOVES.labels(outcome="applied").inc()
        log.info("Benefit moved", cost_shares_rekeyed=rekeyed, move_policy=self.move_policy.value)
        return True

    def reorder_within_class(self, class_id: str, benefit_id: str, before_benefit_id: str) -> bool:
        """Place ``benefit_id`` directly before ``before_benefit_id`` in the same class"""
        moved = self.classes.move_before(class_id, benefit_id, before_benefit_id)
        if not moved:
            logger.debug(
                "Reorder ignored",
                class_id=class_id,
                benefit_id=benefit_id,
                before_benefit_id=before_benefit_id,
            )
        return moved

    def move_to_end_of_class(self, class_id: str, benefit_id: str) -> bool:
        """Place ``benefit_id`` last in its class"""
        return self.classes.move_to_end(class_id, benefit_id)

    def add_benefit_to_class(self, class_id: str, benefit: BenefitRef, network_tier: int,
                             coverage_type: CoverageType) -> bool:
        """Append an unassigned benefit and seed its cost share from the class default"""
        if not self.classes.add_benefit(class_id, benefit):
            return False
        self.cost_shares.seed_benefit(class_id, benefit.id, network_tier, coverage_type)
        logger.info("Benefit added to class", benefit_id=benefit.id, class_id=class_id)
        return True

    def remove_benefit_from_class(self, class_id: str, benefit_id: str) -> bool:
        """Unassign a benefit; its own cost shares go with it, its limit stays"""
        if self.classes.remove_benefit(class_id, benefit_id) is None:
            return False
        self.cost_shares.drop_benefit(class_id, benefit_id)
        return True

    def set_cost_share_type(self, class_id: str, benefit_id: Optional[str], network_tier: int,
                            coverage_type: CoverageType, new_type: CostShareType) -> Optional[CostShareAssignment]:
        if not self._cell_exists(class_id, benefit_id):
            return None
        return self.cost_shares.set_cost_share_type(class_id, benefit_id, network_tier, coverage_type, new_type)

    def set_cost_share_value(self, class_id: str, benefit_id: Optional[str], network_tier: int,
                             coverage_type: CoverageType, field_name: str,
                             value: Optional[float]) -> Optional[CostShareAssignment]:
        if not self._cell_exists(class_id, benefit_id):
            return None
        return self.cost_shares.set_cost_share_value(
            class_id, benefit_id, network_tier, coverage_type, field_name, value
        )

    def set_limit_field(self, class_id: Optional[str], benefit_id: str, field_name: str,
                        value: Any) -> Optional[LimitAssignment]:
        """Limit edit for a benefit in some class; None for an unassigned benefit"""
        benefit = self.classes.find_benefit(benefit_id)
        if benefit is None:
            return None
        try:
            return self.limits.set_limit_field(
                class_id, benefit_id, field_name, value, benefit_name=benefit.name
            )
        except LimitValidationError:
            LIMIT_VALIDATION_ERRORS.labels(field=field_name).inc()
            raise

    def _cell_exists(self, class_id: str, benefit_id: Optional[str]) -> bool:
        if benefit_id is None:
            return self.classes.has_class(class_id)
        return any(b.id == benefit_id for b in self.classes.benefits_in_class(class_id))

    def grid(self, network_tier: int, coverage_type: CoverageType) -> List[GridClass]:
        """Resolved cost share and limit for every benefit, class by class"""
        return [
            GridClass(
                class_id=cls.id,
                class_name=cls.name,
                class_default=self.cost_shares.resolve(cls.id, None, network_tier, coverage_type),
                rows=[
                    GridRow(
                        benefit=benefit,
                        cost_share=self.cost_shares.resolve(cls.id, benefit.id, network_tier, coverage_type),
                        limit=self.limits.resolve(benefit.id),
                    )
                    for benefit in cls.benefits
                ],
            )
            for cls in self.classes.list_classes()
        ]
