"""Dental plan endpoints and plan configuration operations"""

from typing import List, Optional
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from dental_admin.auth import get_current_user, verify_api_key
from dental_admin.database import get_db
from dental_admin.engine.class_structure import BenefitRef
from dental_admin.engine.session import DragItem
from dental_admin.enums import CoverageType, MarketSegment, ProductType, coverage_tabs
from dental_admin.models.plans import DentalPlan
from dental_admin.schemas.plans import (
    AddBenefitRequest,
    CostShareTypeRequest,
    CostShareValueRequest,
    DragEndRequest,
    GridResponse,
    LimitFieldRequest,
    MoveBenefitRequest,
    PlanCreate,
    PlanOperationResponse,
    PlanResponse,
    PlanSummary,
    PlanUpdate,
    RemoveBenefitRequest,
    ReorderBenefitRequest,
)
from dental_admin.services.catalog import find_catalog_benefit
from dental_admin.services.plan_configuration import PlanConfigurationService

logger = structlog.get_logger()

router = APIRouter()


def get_service(db: Session = Depends(get_db)) -> PlanConfigurationService:
    return PlanConfigurationService(db)


def _summary(plan: DentalPlan) -> PlanSummary:
    return PlanSummary(
        id=plan.id,
        name=plan.name,
        effective_date=plan.effective_date,
        market_segment=plan.market_segment,
        product_type=plan.product_type,
        coverage_type=plan.coverage_type,
        class_structure_name=plan.class_structure_name,
        limit_structure_name=plan.limit_structure_name,
        configuration_dirty=plan.configuration_dirty,
        last_modified_at=plan.last_modified_at,
    )


def _operation_response(applied: bool, plan: DentalPlan) -> dict:
    return {"applied": applied, "plan": plan.to_document()}


@router.post("/", response_model=PlanResponse, status_code=201)
async def create_plan(
    payload: PlanCreate,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Create a dental plan on top of a class structure and, optionally, a limit structure"""
    plan = service.create_plan(payload, user_id)
    return plan.to_document()


@router.get("/", response_model=List[PlanSummary])
async def list_plans(
    effective_date: Optional[str] = Query(None, alias="effectiveDate"),
    market_segment: Optional[MarketSegment] = Query(None, alias="marketSegment"),
    product_type: Optional[ProductType] = Query(None, alias="productType"),
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key)
):
    """List dental plans, newest first"""
    query = db.query(DentalPlan)

    if effective_date:
        query = query.filter(DentalPlan.effective_date == effective_date)
    if market_segment:
        query = query.filter(DentalPlan.market_segment == market_segment.value)
    if product_type:
        query = query.filter(DentalPlan.product_type == product_type.value)

    return [_summary(p) for p in query.order_by(DentalPlan.created_at.desc()).all()]


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_plan(
    plan_id: str,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key)
):
    """Get a dental plan with its working configuration"""
    return service.get_plan(plan_id).to_document()


@router.put("/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: str,
    payload: PlanUpdate,
    db: Session = Depends(get_db),
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Update plan header fields"""
    plan = service.get_plan(plan_id)

    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(plan, field_name, getattr(value, "value", value))
    plan.last_modified_by = user_id
    plan.last_modified_at = datetime.utcnow()

    db.commit()
    db.refresh(plan)
    return plan.to_document()


@router.delete("/{plan_id}", status_code=204)
async def delete_plan(
    plan_id: str,
    db: Session = Depends(get_db),
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key)
):
    """Delete a dental plan; its structures are left in place"""
    plan = service.get_plan(plan_id)
    db.delete(plan)
    db.commit()

    logger.info("Plan deleted", plan_id=plan_id)
    return Response(status_code=204)


# Configuration operations

@router.post("/{plan_id}/benefits/move", response_model=PlanOperationResponse)
async def move_benefit(
    plan_id: str,
    payload: MoveBenefitRequest,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Move a benefit to the end of another class"""
    plan = service.get_plan(plan_id)

    def operation(session):
        session.select_for_move(payload.benefit_id, payload.from_class_id)
        return session.choose_destination(payload.to_class_id)

    return _operation_response(*service.apply(plan, user_id, operation))


@router.post("/{plan_id}/benefits/reorder", response_model=PlanOperationResponse)
async def reorder_benefit(
    plan_id: str,
    payload: ReorderBenefitRequest,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Place a benefit directly before another benefit of the same class"""
    plan = service.get_plan(plan_id)
    applied, plan = service.apply(
        plan,
        user_id,
        lambda session: session.reorder(payload.class_id, payload.benefit_id, payload.before_benefit_id),
    )
    return _operation_response(applied, plan)


@router.post("/{plan_id}/benefits/drag-end", response_model=PlanOperationResponse)
async def drag_end(
    plan_id: str,
    payload: DragEndRequest,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Apply a finished drag gesture; dropping outside any target changes nothing"""
    plan = service.get_plan(plan_id)
    active = DragItem(payload.active.class_id, payload.active.benefit_id)
    over = DragItem(payload.over.class_id, payload.over.benefit_id) if payload.over else None
    applied, plan = service.apply(plan, user_id, lambda session: session.drop(active, over))
    return _operation_response(applied, plan)


@router.post("/{plan_id}/benefits/add", response_model=PlanOperationResponse)
async def add_benefit(
    plan_id: str,
    payload: AddBenefitRequest,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Add a catalog benefit to a class"""
    plan = service.get_plan(plan_id)
    catalog_benefit = find_catalog_benefit(payload.benefit_id)
    if catalog_benefit is None and not payload.benefit_name:
        raise HTTPException(status_code=404, detail=f"Benefit {payload.benefit_id} is not in the catalog")
    benefit = BenefitRef(
        id=payload.benefit_id,
        name=payload.benefit_name or catalog_benefit.name,
    )
    coverage_type = payload.coverage_type or coverage_tabs(CoverageType(plan.coverage_type))[0]
    service.check_cell(plan, payload.network_tier, coverage_type)

    applied, plan = service.apply(
        plan,
        user_id,
        lambda session: session.add_benefit(payload.class_id, benefit, payload.network_tier, coverage_type),
    )
    return _operation_response(applied, plan)


@router.post("/{plan_id}/benefits/remove", response_model=PlanOperationResponse)
async def remove_benefit(
    plan_id: str,
    payload: RemoveBenefitRequest,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Remove a benefit from its class; its limit is kept"""
    plan = service.get_plan(plan_id)
    applied, plan = service.apply(
        plan, user_id, lambda session: session.remove_benefit(payload.class_id, payload.benefit_id)
    )
    return _operation_response(applied, plan)


@router.put("/{plan_id}/cost-shares/type", response_model=PlanOperationResponse)
async def set_cost_share_type(
    plan_id: str,
    payload: CostShareTypeRequest,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Set the cost share type of a cell; its values are cleared"""
    plan = service.get_plan(plan_id)
    service.check_cell(plan, payload.network_tier, payload.coverage_type)
    applied, plan = service.apply(
        plan,
        user_id,
        lambda session: session.set_cost_share_type(
            payload.class_id, payload.benefit_id, payload.network_tier,
            payload.coverage_type, payload.cost_share_type,
        ),
    )
    return _operation_response(applied, plan)


@router.put("/{plan_id}/cost-shares/value", response_model=PlanOperationResponse)
async def set_cost_share_value(
    plan_id: str,
    payload: CostShareValueRequest,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Set one value (copay amount or coinsurance percentage) of a cell"""
    plan = service.get_plan(plan_id)
    service.check_cell(plan, payload.network_tier, payload.coverage_type)
    applied, plan = service.apply(
        plan,
        user_id,
        lambda session: session.set_cost_share_value(
            payload.class_id, payload.benefit_id, payload.network_tier,
            payload.coverage_type, payload.field, payload.value,
        ),
    )
    return _operation_response(applied, plan)


@router.put("/{plan_id}/limits", response_model=PlanOperationResponse)
async def set_limit_field(
    plan_id: str,
    payload: LimitFieldRequest,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Set one field of a benefit's limit, creating the limit if needed"""
    plan = service.get_plan(plan_id)
    applied, plan = service.apply(
        plan,
        user_id,
        lambda session: session.set_limit_field(payload.class_id, payload.benefit_id, payload.field, payload.value),
    )
    return _operation_response(applied, plan)


@router.get("/{plan_id}/grid", response_model=GridResponse)
async def get_grid(
    plan_id: str,
    tier: int = Query(0, ge=0, description="Network tier index; out of network is last"),
    coverage: Optional[CoverageType] = Query(None, description="Defaults to the plan's first coverage tab"),
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key)
):
    """Resolved cost shares and limits for every class and benefit"""
    plan = service.get_plan(plan_id)
    coverage_type = coverage or coverage_tabs(CoverageType(plan.coverage_type))[0]
    return service.grid(plan, tier, coverage_type)


@router.post("/{plan_id}/save", response_model=PlanResponse)
async def save_plan_configuration(
    plan_id: str,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Write the working configuration back to the class and limit structures"""
    plan = service.get_plan(plan_id)
    return service.save(plan, user_id).to_document()


@router.post("/{plan_id}/discard", response_model=PlanResponse)
async def discard_plan_configuration(
    plan_id: str,
    service: PlanConfigurationService = Depends(get_service),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Drop unsaved configuration edits"""
    plan = service.get_plan(plan_id)
    return service.discard(plan, user_id).to_document()
