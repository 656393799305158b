"""
Editor state for configuring one plan.

A session owns the working state of a plan (class membership, cost shares
and limits) together with what the configuration screen tracks around it:
the benefit selected for a click-to-move, the item being dragged, the dirty
flag and whether a save is in flight.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

import structlog

from dental_admin.engine.class_structure import BenefitRef
from dental_admin.engine.documents import (
    class_structure_to_document,
    cost_shares_to_records,
    limit_structure_to_document,
    load_workspace,
)
from dental_admin.engine.reassignment import MovePolicy, PlanWorkspace
from dental_admin.enums import CostShareType, CoverageType

logger = structlog.get_logger()


class MoveState(str, Enum):
    IDLE = "idle"
    SELECTING_DESTINATION = "selecting_destination"


@dataclass(frozen=True)
class MoveSelection:
    benefit_id: str
    source_class_id: str
    display_name: str


@dataclass(frozen=True)
class DragItem:
    """A drag source or drop target; ``benefit_id`` None means a class header"""
    class_id: str
    benefit_id: Optional[str] = None


class SaveInFlightError(RuntimeError):
    """Raised when a save is requested while another one is outstanding"""


class PlanEditorSession:
    """Working copy of a plan's class and limit structures plus editor state"""

    def __init__(self, class_document: Dict[str, Any], limit_document: Optional[Dict[str, Any]] = None,
                 cost_shares: Iterable[Dict[str, Any]] = (), workspace: Optional[PlanWorkspace] = None,
                 dirty: bool = False, move_policy: MovePolicy = MovePolicy.OVERWRITE, saving: bool = False):
        self.class_document = copy.deepcopy(class_document)
        self.limit_document = copy.deepcopy(limit_document) if limit_document else None
        self.cost_share_records = [dict(record) for record in cost_shares]
        self.move_policy = MovePolicy(move_policy)
        self.workspace = workspace or self._load()
        self.dirty = dirty
        self.saving = saving
        self.last_error: Optional[str] = None
        self.selection: Optional[MoveSelection] = None
        self.active_drag: Optional[DragItem] = None

    def _load(self) -> PlanWorkspace:
        return load_workspace(
            self.class_document,
            self.limit_document,
            self.cost_share_records,
            move_policy=self.move_policy,
        )

    @property
    def move_state(self) -> MoveState:
        return MoveState.SELECTING_DESTINATION if self.selection else MoveState.IDLE

    def _changed(self, applied) -> Any:
        if applied:
            self.dirty = True
        return applied

    # Click-to-move

    def select_for_move(self, benefit_id: str, class_id: str) -> bool:
        """Mark a benefit for move; replaces any earlier selection"""
        benefit = next((b for b in self.workspace.classes.benefits_in_class(class_id) if b.id == benefit_id), None)
        if benefit is None:
            return False
        self.selection = MoveSelection(benefit_id=benefit.id, source_class_id=class_id, display_name=benefit.name)
        return True

    def cancel_move(self) -> None:
        self.selection = None

    def choose_destination(self, class_id: str) -> bool:
        """Complete the pending move into ``class_id``.

        Picking the source class keeps the selection so another class can
        still be chosen. A move that no longer applies clears it.
        """
        selection = self.selection
        if selection is None:
            return False
        if class_id == selection.source_class_id:
            return False
        moved = self.workspace.move_benefit(selection.benefit_id, selection.source_class_id, class_id)
        self.selection = None
        return self._changed(moved)

    # Drag and drop

    def drag_start(self, item: DragItem) -> None:
        self.active_drag = item

    def drag_cancel(self) -> None:
        self.active_drag = None

    def drag_end(self, over: Optional[DragItem]) -> bool:
        """Drop the active item; reorders within a class, otherwise moves"""
        active, self.active_drag = self.active_drag, None
        if active is None or over is None or active.benefit_id is None:
            return False
        return self._changed(apply_drop(self.workspace, active, over))

    def drop(self, active: DragItem, over: Optional[DragItem]) -> bool:
        """A whole drag gesture at once: start on ``active``, end on ``over``"""
        self.drag_start(active)
        return self.drag_end(over)

    def reorder(self, class_id: str, benefit_id: str, before_benefit_id: str) -> bool:
        return self._changed(self.workspace.reorder_within_class(class_id, benefit_id, before_benefit_id))

    # Field edits

    def add_benefit(self, class_id: str, benefit: BenefitRef, network_tier: int,
                    coverage_type: CoverageType) -> bool:
        return self._changed(self.workspace.add_benefit_to_class(class_id, benefit, network_tier, coverage_type))

    def remove_benefit(self, class_id: str, benefit_id: str) -> bool:
        return self._changed(self.workspace.remove_benefit_from_class(class_id, benefit_id))

    def set_cost_share_type(self, class_id: str, benefit_id: Optional[str], network_tier: int,
                            coverage_type: CoverageType, new_type: CostShareType):
        return self._changed(self.workspace.set_cost_share_type(
            class_id, benefit_id, network_tier, coverage_type, new_type
        ))

    def set_cost_share_value(self, class_id: str, benefit_id: Optional[str], network_tier: int,
                             coverage_type: CoverageType, field_name: str, value: Optional[float]):
        return self._changed(self.workspace.set_cost_share_value(
            class_id, benefit_id, network_tier, coverage_type, field_name, value
        ))

    def set_limit_field(self, class_id: Optional[str], benefit_id: str, field_name: str, value: Any):
        return self._changed(self.workspace.set_limit_field(class_id, benefit_id, field_name, value))

    # Persistence

    def snapshot(self) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]], list]:
        """Current working state as (class document, limit document, cost share records)"""
        class_document = class_structure_to_document(self.workspace.classes, self.class_document)
        limit_document = None
        if self.limit_document is not None:
            limit_document = limit_structure_to_document(
                self.workspace.limits, self.workspace.classes, self.limit_document
            )
        return class_document, limit_document, cost_shares_to_records(self.workspace.cost_shares)

    def begin_save(self) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]], list]:
        if self.saving:
            raise SaveInFlightError("A save is already in progress")
        self.saving = True
        self.last_error = None
        return self.snapshot()

    def finish_save(self, class_document: Dict[str, Any], limit_document: Optional[Dict[str, Any]],
                    cost_shares: Iterable[Dict[str, Any]] = ()) -> None:
        """Adopt the stored documents as the new baseline"""
        self.class_document = copy.deepcopy(class_document)
        self.limit_document = copy.deepcopy(limit_document) if limit_document else None
        self.cost_share_records = [dict(record) for record in cost_shares]
        self.saving = False
        self.dirty = False

    def fail_save(self, message: str) -> None:
        """Keep unsaved edits and remember the error for the user"""
        logger.warning("Plan save failed", error=message)
        self.saving = False
        self.last_error = message

    def discard(self) -> None:
        """Drop unsaved edits, returning to the last loaded documents"""
        self.workspace = self._load()
        self.selection = None
        self.active_drag = None
        self.dirty = False
        self.last_error = None


def apply_drop(workspace: PlanWorkspace, active: DragItem, over: DragItem) -> bool:
    """Apply a completed drag of ``active`` onto ``over`` to the workspace.

    Within a class the dragged benefit lands before the benefit it is dropped
    on, so dropping on its own class header is how it goes last.
    """
    if active.benefit_id is None:
        return False
    if over.class_id == active.class_id:
        if over.benefit_id is None:
            return workspace.move_to_end_of_class(active.class_id, active.benefit_id)
        if over.benefit_id == active.benefit_id:
            return False
        return workspace.reorder_within_class(active.class_id, active.benefit_id, over.benefit_id)
    return workspace.move_benefit(active.benefit_id, active.class_id, over.class_id)
