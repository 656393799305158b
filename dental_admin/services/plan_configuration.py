"""Plan configuration: loading a plan's working state, applying edits, saving"""

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dental_admin.config import settings
from dental_admin.engine.cost_shares import describe as describe_cost_share
from dental_admin.engine.documents import (
    class_structure_to_document,
    cost_shares_to_records,
    limit_structure_to_document,
    limit_to_record,
    load_workspace,
)
from dental_admin.engine.limits import describe as describe_limit
from dental_admin.engine.reassignment import MovePolicy
from dental_admin.engine.session import PlanEditorSession, SaveInFlightError
from dental_admin.enums import CoverageType, coverage_tabs, network_tier_labels
from dental_admin.models.class_structures import BenefitClassStructure
from dental_admin.models.limit_structures import LimitStructure
from dental_admin.models.plans import DentalPlan
from dental_admin.observability.metrics import DOCUMENT_SAVES
from dental_admin.schemas.plans import PlanCreate
from dental_admin.services.compatibility import is_compatible
from dental_admin.validation.constraints import check_network_tier, enforce
from dental_admin.validation.types import ConstraintViolation, ValidationLevel, ValidationResult

logger = structlog.get_logger()


class PlanConfigurationError(Exception):
    """Base class for plan configuration failures"""


class DocumentNotFoundError(PlanConfigurationError, LookupError):
    """A plan or a structure it references does not exist"""


class PersistenceError(PlanConfigurationError):
    """Writing documents back to the store failed; edits are kept"""


def _invalid(rule_name: str, message: str, **kwargs) -> ConstraintViolation:
    return ConstraintViolation([ValidationResult(
        level=ValidationLevel.ERROR, rule_name=rule_name, message=message, **kwargs
    )])


class PlanConfigurationService:
    """Applies configuration edits to a plan's persisted working state.

    Each call rebuilds the editor session from the plan row, runs one edit
    and writes the working state back, so no editor state is held between
    requests.
    """

    def __init__(self, db: Session, move_policy: Optional[str] = None):
        self.db = db
        self.move_policy = MovePolicy(move_policy or settings.cost_share_move_policy)
        self.logger = logger.bind(service="plan_configuration")

    # Lookups

    def get_plan(self, plan_id: str) -> DentalPlan:
        plan = self.db.get(DentalPlan, plan_id)
        if plan is None:
            raise DocumentNotFoundError(f"Plan {plan_id} not found")
        return plan

    def get_class_structure(self, structure_id: str) -> BenefitClassStructure:
        structure = self.db.get(BenefitClassStructure, structure_id)
        if structure is None:
            raise DocumentNotFoundError(f"Class structure {structure_id} not found")
        return structure

    def get_limit_structure(self, structure_id: str) -> LimitStructure:
        structure = self.db.get(LimitStructure, structure_id)
        if structure is None:
            raise DocumentNotFoundError(f"Limit structure {structure_id} not found")
        return structure

    # Plan lifecycle

    def create_plan(self, data: PlanCreate, user_id: str) -> DentalPlan:
        """Create a plan whose working state starts as a copy of its structures"""
        class_structure = self.get_class_structure(data.class_structure_id)
        if not is_compatible(data, class_structure):
            raise _invalid(
                "plan_structure_compatible",
                "Class structure does not match the plan's effective date, market segment and product type",
                field_name="classStructureId",
            )

        limit_structure = None
        if data.limit_structure_id:
            limit_structure = self.get_limit_structure(data.limit_structure_id)
            if not is_compatible(class_structure, limit_structure):
                raise _invalid(
                    "limit_structure_compatible",
                    "Limit structure does not match the class structure's effective date, "
                    "market segment and product type",
                    field_name="limitStructureId",
                )

        now = datetime.utcnow()
        plan = DentalPlan(
            name=data.name,
            effective_date=data.effective_date,
            market_segment=data.market_segment.value,
            customization_level=data.customization_level.value,
            product_type=data.product_type.value,
            inn_tiers=int(data.inn_tiers),
            oon_coverage=data.oon_coverage,
            coverage_type=data.coverage_type.value,
            class_structure_id=class_structure.id,
            class_structure_name=class_structure.name,
            limit_structure_id=limit_structure.id if limit_structure else None,
            limit_structure_name=limit_structure.name if limit_structure else None,
            classes=list(class_structure.classes or []),
            limits=list(limit_structure.limits or []) if limit_structure else [],
            cost_shares=[],
            saved_cost_shares=[],
            configuration_dirty=False,
            created_by=user_id,
            created_at=now,
            last_modified_by=user_id,
            last_modified_at=now,
        )
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        self.logger.info("Plan created", plan_id=plan.id, class_structure_id=class_structure.id)
        return plan

    # Editor session

    def open_session(self, plan: DentalPlan) -> PlanEditorSession:
        """Editor session whose baseline is the referenced structures and
        whose working state is the plan's unsaved configuration"""
        class_structure = self.db.get(BenefitClassStructure, plan.class_structure_id)
        limit_structure = self.db.get(LimitStructure, plan.limit_structure_id) if plan.limit_structure_id else None

        if class_structure is not None:
            class_document = class_structure.to_document()
        else:
            class_document = {"_id": plan.class_structure_id, "name": plan.class_structure_name,
                              "classes": plan.classes or []}
        limit_document = limit_structure.to_document() if limit_structure is not None else None

        workspace = load_workspace(
            {"classes": plan.classes or []},
            {"limits": plan.limits or []},
            plan.cost_shares or [],
            move_policy=self.move_policy,
        )
        return PlanEditorSession(
            class_document,
            limit_document,
            cost_shares=plan.saved_cost_shares or [],
            workspace=workspace,
            dirty=plan.configuration_dirty,
            move_policy=self.move_policy,
            saving=bool(plan.save_in_progress),
        )

    def _store_working_state(self, plan: DentalPlan, session: PlanEditorSession, user_id: str) -> None:
        workspace = session.workspace
        plan.classes = class_structure_to_document(workspace.classes, {})["classes"]
        plan.limits = limit_structure_to_document(workspace.limits, workspace.classes, {})["limits"]
        plan.cost_shares = cost_shares_to_records(workspace.cost_shares)
        plan.configuration_dirty = session.dirty
        plan.last_modified_by = user_id
        plan.last_modified_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(plan)

    def apply(self, plan: DentalPlan, user_id: str,
              operation: Callable[[PlanEditorSession], Any]) -> Tuple[bool, DentalPlan]:
        """Run one edit against the plan; returns whether it changed anything.

        Validation errors raised by the edit propagate before anything is
        written.
        """
        session = self.open_session(plan)
        applied = bool(operation(session))
        if applied:
            self._store_working_state(plan, session, user_id)
        return applied, plan

    def check_cell(self, plan: DentalPlan, network_tier: int, coverage_type: CoverageType) -> None:
        """Reject a tier or coverage type the plan does not offer"""
        labels = network_tier_labels(plan.inn_tiers, plan.oon_coverage)
        enforce(check_network_tier(network_tier, len(labels)))
        tabs = coverage_tabs(CoverageType(plan.coverage_type))
        if coverage_type not in tabs:
            raise _invalid(
                "coverage_type_offered",
                f"Coverage type {coverage_type.value} is not offered by this plan",
                field_name="coverageType",
                actual_value=coverage_type.value,
                expected_value=[tab.value for tab in tabs],
            )

    def grid(self, plan: DentalPlan, network_tier: int, coverage_type: CoverageType) -> Dict[str, Any]:
        """Resolved cost shares and limits for one tier and coverage type"""
        self.check_cell(plan, network_tier, coverage_type)
        workspace = self.open_session(plan).workspace
        labels = network_tier_labels(plan.inn_tiers, plan.oon_coverage)

        def cost_share_cell(resolved):
            return {
                "source": resolved.source.value,
                "costShareType": resolved.cost_share_type.value if resolved.cost_share_type else None,
                "values": dict(resolved.values),
                "label": describe_cost_share(resolved),
            }

        return {
            "networkTier": network_tier,
            "networkTierLabel": labels[network_tier],
            "coverageType": coverage_type.value,
            "classes": [
                {
                    "classId": grid_class.class_id,
                    "className": grid_class.class_name,
                    "classDefault": cost_share_cell(grid_class.class_default),
                    "benefits": [
                        {
                            "benefitId": row.benefit.id,
                            "benefitName": row.benefit.name,
                            "costShare": cost_share_cell(row.cost_share),
                            "limit": limit_to_record(row.limit) if row.limit else None,
                            "limitLabel": describe_limit(row.limit),
                        }
                        for row in grid_class.rows
                    ],
                }
                for grid_class in workspace.grid(network_tier, coverage_type)
            ],
        }

    # Save and discard

    def save(self, plan: DentalPlan, user_id: str) -> DentalPlan:
        """Write the working state back to the class and limit structures.

        On a store failure the transaction is rolled back and the plan keeps
        its unsaved edits.
        """
        class_structure = self.get_class_structure(plan.class_structure_id)
        limit_structure = self.get_limit_structure(plan.limit_structure_id) if plan.limit_structure_id else None

        session = self.open_session(plan)
        class_document, limit_document, cost_share_records = session.begin_save()
        self._claim_save(plan)
        now = datetime.utcnow()
        try:
            class_structure.classes = class_document["classes"]
            class_structure.last_modified_by = user_id
            class_structure.last_modified_at = now
            if limit_structure is not None and limit_document is not None:
                limit_structure.limits = limit_document["limits"]
                limit_structure.benefit_class_structure_name = class_structure.name
                limit_structure.last_modified_by = user_id
                limit_structure.last_modified_at = now
            plan.saved_cost_shares = cost_share_records
            plan.configuration_dirty = False
            plan.save_in_progress = False
            plan.last_modified_by = user_id
            plan.last_modified_at = now
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            self._release_save(plan)
            session.fail_save(str(e))
            DOCUMENT_SAVES.labels(document="plan", status="failed").inc()
            raise PersistenceError(f"Failed to save plan configuration: {e}") from e

        session.finish_save(class_document, limit_document, cost_share_records)
        DOCUMENT_SAVES.labels(document="class_structure", status="saved").inc()
        if limit_document is not None:
            DOCUMENT_SAVES.labels(document="limit_structure", status="saved").inc()
        self.db.refresh(plan)
        self.logger.info("Plan configuration saved", plan_id=plan.id, class_structure_id=class_structure.id)
        return plan

    def _claim_save(self, plan: DentalPlan) -> None:
        """Mark the plan as saving; a concurrent request that got there first wins"""
        claimed = self.db.execute(
            update(DentalPlan)
            .where(DentalPlan.id == plan.id, DentalPlan.save_in_progress.is_(False))
            .values(save_in_progress=True)
        ).rowcount
        self.db.commit()
        if not claimed:
            raise SaveInFlightError("A save is already in progress")

    def _release_save(self, plan: DentalPlan) -> None:
        try:
            plan.save_in_progress = False
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error("Failed to clear save flag", plan_id=plan.id, error=str(e))

    def discard(self, plan: DentalPlan, user_id: str) -> DentalPlan:
        """Drop unsaved edits and reload the working state from the structures"""
        session = self.open_session(plan)
        session.discard()
        self._store_working_state(plan, session, user_id)
        self.logger.info("Plan configuration discarded", plan_id=plan.id)
        return plan
