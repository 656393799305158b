"""Limit structure endpoints"""

from typing import List, Optional
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from dental_admin.auth import get_current_user, verify_api_key
from dental_admin.database import get_db
from dental_admin.engine.documents import (
    class_structure_from_document,
    limit_from_record,
    limit_structure_to_document,
)
from dental_admin.engine.limits import LimitBook
from dental_admin.enums import MarketSegment, ProductType
from dental_admin.models.class_structures import BenefitClassStructure
from dental_admin.models.limit_structures import LimitStructure
from dental_admin.schemas.limit_structures import (
    LimitStructureCreate, LimitStructureUpdate, LimitStructureResponse, LimitStructureSummary
)
from dental_admin.services.compatibility import compatible_with, is_compatible

logger = structlog.get_logger()

router = APIRouter()


def _summary(structure: LimitStructure) -> LimitStructureSummary:
    return LimitStructureSummary(
        id=structure.id,
        name=structure.name,
        effective_date=structure.effective_date,
        market_segment=structure.market_segment,
        product_type=structure.product_type,
        benefit_class_structure_id=structure.benefit_class_structure_id,
        benefit_class_structure_name=structure.benefit_class_structure_name,
        limit_count=len(structure.limits or []),
        last_modified_at=structure.last_modified_at,
    )


def _get_or_404(db: Session, structure_id: str) -> LimitStructure:
    structure = db.get(LimitStructure, structure_id)
    if not structure:
        raise HTTPException(status_code=404, detail="Limit structure not found")
    return structure


def _class_structure_for(db: Session, payload) -> BenefitClassStructure:
    class_structure = db.get(BenefitClassStructure, payload.benefit_class_structure_id)
    if not class_structure:
        raise HTTPException(status_code=404, detail="Class structure not found")
    if not is_compatible(payload, class_structure):
        raise HTTPException(
            status_code=422,
            detail="Limit structure must match the class structure's effective date, "
                   "market segment and product type"
        )
    return class_structure


def _limits_document(payload, class_structure: BenefitClassStructure) -> list:
    """Limits with ids assigned and class placement taken from the class structure"""
    book = LimitBook(
        limit_from_record(limit.model_dump(by_alias=True, mode="json")) for limit in payload.limits
    )
    classes = class_structure_from_document(class_structure.to_document())
    return limit_structure_to_document(book, classes, {})["limits"]


@router.post("/", response_model=LimitStructureResponse, status_code=201)
async def create_limit_structure(
    payload: LimitStructureCreate,
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Create a limit structure for a class structure"""
    class_structure = _class_structure_for(db, payload)

    now = datetime.utcnow()
    structure = LimitStructure(
        name=payload.name,
        effective_date=payload.effective_date,
        market_segment=payload.market_segment.value,
        product_type=payload.product_type.value,
        benefit_class_structure_id=class_structure.id,
        benefit_class_structure_name=payload.benefit_class_structure_name or class_structure.name,
        limits=_limits_document(payload, class_structure),
        created_by=user_id,
        created_at=now,
        last_modified_by=user_id,
        last_modified_at=now,
    )
    db.add(structure)
    db.commit()
    db.refresh(structure)

    logger.info("Limit structure created", structure_id=structure.id, limits=len(structure.limits))
    return structure.to_document()


@router.get("/", response_model=List[LimitStructureSummary])
async def list_limit_structures(
    effective_date: Optional[str] = Query(None, alias="effectiveDate"),
    market_segment: Optional[MarketSegment] = Query(None, alias="marketSegment"),
    product_type: Optional[ProductType] = Query(None, alias="productType"),
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key)
):
    """List limit structures, newest first"""
    query = db.query(LimitStructure)

    if effective_date:
        query = query.filter(LimitStructure.effective_date == effective_date)
    if market_segment:
        query = query.filter(LimitStructure.market_segment == market_segment.value)
    if product_type:
        query = query.filter(LimitStructure.product_type == product_type.value)

    structures = query.order_by(LimitStructure.created_at.desc()).all()
    return [_summary(s) for s in structures]


@router.get("/compatible", response_model=List[LimitStructureSummary])
async def list_compatible_limit_structures(
    class_structure_id: str = Query(..., alias="classStructureId"),
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key)
):
    """Limit structures a plan built on the given class structure can use"""
    class_structure = db.get(BenefitClassStructure, class_structure_id)
    if not class_structure:
        raise HTTPException(status_code=404, detail="Class structure not found")

    candidates = db.query(LimitStructure).order_by(LimitStructure.created_at.desc()).all()
    return [_summary(s) for s in compatible_with(class_structure, candidates)]


@router.get("/{structure_id}", response_model=LimitStructureResponse)
async def get_limit_structure(
    structure_id: str,
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key)
):
    """Get a limit structure document"""
    return _get_or_404(db, structure_id).to_document()


@router.put("/{structure_id}", response_model=LimitStructureResponse)
async def update_limit_structure(
    structure_id: str,
    payload: LimitStructureUpdate,
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Replace a limit structure document"""
    structure = _get_or_404(db, structure_id)
    class_structure = _class_structure_for(db, payload)

    structure.name = payload.name
    structure.effective_date = payload.effective_date
    structure.market_segment = payload.market_segment.value
    structure.product_type = payload.product_type.value
    structure.benefit_class_structure_id = class_structure.id
    structure.benefit_class_structure_name = payload.benefit_class_structure_name or class_structure.name
    structure.limits = _limits_document(payload, class_structure)
    structure.last_modified_by = user_id
    structure.last_modified_at = datetime.utcnow()

    db.commit()
    db.refresh(structure)

    logger.info("Limit structure updated", structure_id=structure.id)
    return structure.to_document()


@router.delete("/{structure_id}", status_code=204)
async def delete_limit_structure(
    structure_id: str,
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key)
):
    """Delete a limit structure"""
    structure = _get_or_404(db, structure_id)
    db.delete(structure)
    db.commit()

    logger.info("Limit structure deleted", structure_id=structure_id)
    return Response(status_code=204)
