"""
Conversion between persisted documents and the plan engine.

Class structure and limit structure documents use the camelCase shapes the
API publishes (``classes[].benefits[]``, ``limits[].interval``). Cost share
records are stored flat on the plan, one dict per key.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional

from dental_admin.engine.class_structure import BenefitClass, BenefitRef, ClassStructureModel
from dental_admin.engine.cost_shares import CostShareAssignment, CostShareBook
from dental_admin.engine.limits import LimitAssignment, LimitBook, LimitInterval
from dental_admin.engine.reassignment import MovePolicy, PlanWorkspace
from dental_admin.enums import CostShareType, CoverageType, LimitIntervalType, UnitType


def _benefit_ref(raw: Dict[str, Any]) -> BenefitRef:
    # Older documents carry the benefit code under ``code``
    benefit_id = raw.get("id") or raw.get("code")
    return BenefitRef(id=str(benefit_id), name=raw.get("name") or str(benefit_id))


def class_structure_from_document(document: Dict[str, Any]) -> ClassStructureModel:
    classes = [
        BenefitClass(
            id=str(raw["id"]),
            name=raw["name"],
            benefits=[_benefit_ref(benefit) for benefit in raw.get("benefits") or []],
        )
        for raw in document.get("classes") or []
    ]
    return ClassStructureModel(classes)


def class_structure_to_document(model: ClassStructureModel, base: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``base`` with its classes replaced by the model's current state"""
    document = copy.deepcopy(base)
    document["classes"] = [
        {
            "id": cls.id,
            "name": cls.name,
            "benefits": [{"id": benefit.id, "name": benefit.name} for benefit in cls.benefits],
        }
        for cls in model.list_classes()
    ]
    return document


def limit_from_record(raw: Dict[str, Any]) -> LimitAssignment:
    interval = raw.get("interval") or {}
    kwargs = {}
    if raw.get("id"):
        kwargs["id"] = str(raw["id"])
    return LimitAssignment(
        benefit_id=str(raw["benefitId"]),
        benefit_name=raw.get("benefitName") or str(raw["benefitId"]),
        quantity=raw.get("quantity", 1),
        unit=UnitType(raw.get("unit") or UnitType.N_A.value),
        interval=LimitInterval(
            type=LimitIntervalType(interval.get("type") or LimitIntervalType.PER_YEAR.value),
            value=interval.get("value", 1),
        ),
        class_id=raw.get("classId"),
        class_name=raw.get("className"),
        **kwargs,
    )


def limit_to_record(limit: LimitAssignment) -> Dict[str, Any]:
    return {
        "id": limit.id,
        "classId": limit.class_id,
        "className": limit.class_name,
        "benefitId": limit.benefit_id,
        "benefitName": limit.benefit_name,
        "quantity": limit.quantity,
        "unit": limit.unit.value,
        "interval": {"type": limit.interval.type.value, "value": limit.interval.value},
    }


def limit_book_from_document(document: Optional[Dict[str, Any]]) -> LimitBook:
    if not document:
        return LimitBook()
    return LimitBook(limit_from_record(raw) for raw in document.get("limits") or [])


def limit_structure_to_document(book: LimitBook, classes: ClassStructureModel,
                                base: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``base`` with the book's limits.

    ``classId``/``className`` are rewritten from where each benefit sits now;
    a benefit that is in no class keeps the values it was loaded with.
    """
    document = copy.deepcopy(base)
    limits = []
    for limit in book.records():
        owner = classes.class_of(limit.benefit_id)
        if owner is not None:
            limit.class_id = owner.id
            limit.class_name = owner.name
        limits.append(limit_to_record(limit))
    document["limits"] = limits
    return document


def cost_share_from_record(raw: Dict[str, Any]) -> CostShareAssignment:
    return CostShareAssignment(
        class_id=str(raw["classId"]),
        benefit_id=raw.get("benefitId"),
        network_tier=int(raw.get("networkTier", 0)),
        coverage_type=CoverageType(raw["coverageType"]),
        cost_share_type=CostShareType(raw["costShareType"]),
        values=dict(raw.get("values") or {}),
    )


def cost_share_to_record(record: CostShareAssignment) -> Dict[str, Any]:
    return {
        "classId": record.class_id,
        "benefitId": record.benefit_id,
        "networkTier": record.network_tier,
        "coverageType": record.coverage_type.value,
        "costShareType": record.cost_share_type.value,
        "values": dict(record.values),
    }


def cost_share_book_from_records(records: Iterable[Dict[str, Any]]) -> CostShareBook:
    return CostShareBook(cost_share_from_record(raw) for raw in records or [])


def cost_shares_to_records(book: CostShareBook) -> List[Dict[str, Any]]:
    return [cost_share_to_record(record) for record in book.records()]


def load_workspace(class_document: Dict[str, Any], limit_document: Optional[Dict[str, Any]],
                   cost_share_records: Iterable[Dict[str, Any]] = (),
                   move_policy: MovePolicy = MovePolicy.OVERWRITE) -> PlanWorkspace:
    """Build a plan's working state from its persisted pieces"""
    return PlanWorkspace(
        classes=class_structure_from_document(class_document),
        cost_shares=cost_share_book_from_records(cost_share_records),
        limits=limit_book_from_document(limit_document),
        move_policy=move_policy,
    )
