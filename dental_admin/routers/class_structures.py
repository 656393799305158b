"""Benefit class structure endpoints"""

from typing import List, Optional
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from dental_admin.auth import get_current_user, verify_api_key
from dental_admin.database import get_db
from dental_admin.enums import MarketSegment, ProductType
from dental_admin.models.class_structures import BenefitClassStructure
from dental_admin.schemas.class_structures import (
    ClassStructureCreate, ClassStructureUpdate, ClassStructureResponse, ClassStructureSummary
)

logger = structlog.get_logger()

router = APIRouter()


def _summary(structure: BenefitClassStructure) -> ClassStructureSummary:
    return ClassStructureSummary(
        id=structure.id,
        name=structure.name,
        effective_date=structure.effective_date,
        market_segment=structure.market_segment,
        product_type=structure.product_type,
        number_of_classes=structure.number_of_classes,
        benefit_count=sum(len(c.get("benefits") or []) for c in structure.classes or []),
        last_modified_at=structure.last_modified_at,
    )


def _get_or_404(db: Session, structure_id: str) -> BenefitClassStructure:
    structure = db.get(BenefitClassStructure, structure_id)
    if not structure:
        raise HTTPException(status_code=404, detail="Class structure not found")
    return structure


def _classes_document(payload) -> list:
    return [c.model_dump(mode="json") for c in payload.classes]


@router.post("/", response_model=ClassStructureResponse, status_code=201)
async def create_class_structure(
    payload: ClassStructureCreate,
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Create a benefit class structure"""
    now = datetime.utcnow()
    structure = BenefitClassStructure(
        name=payload.name,
        effective_date=payload.effective_date,
        market_segment=payload.market_segment.value,
        product_type=payload.product_type.value,
        number_of_classes=payload.number_of_classes,
        classes=_classes_document(payload),
        created_by=user_id,
        created_at=now,
        last_modified_by=user_id,
        last_modified_at=now,
    )
    db.add(structure)
    db.commit()
    db.refresh(structure)

    logger.info("Class structure created", structure_id=structure.id, classes=structure.number_of_classes)
    return structure.to_document()


@router.get("/", response_model=List[ClassStructureSummary])
async def list_class_structures(
    effective_date: Optional[str] = Query(None, alias="effectiveDate", description="Exact YYYY-MM-DD match"),
    market_segment: Optional[MarketSegment] = Query(None, alias="marketSegment"),
    product_type: Optional[ProductType] = Query(None, alias="productType"),
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key)
):
    """List class structures, newest first"""
    query = db.query(BenefitClassStructure)

    if effective_date:
        query = query.filter(BenefitClassStructure.effective_date == effective_date)
    if market_segment:
        query = query.filter(BenefitClassStructure.market_segment == market_segment.value)
    if product_type:
        query = query.filter(BenefitClassStructure.product_type == product_type.value)

    structures = query.order_by(BenefitClassStructure.created_at.desc()).all()
    return [_summary(s) for s in structures]


@router.get("/{structure_id}", response_model=ClassStructureResponse)
async def get_class_structure(
    structure_id: str,
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key)
):
    """Get a class structure document"""
    return _get_or_404(db, structure_id).to_document()


@router.put("/{structure_id}", response_model=ClassStructureResponse)
async def update_class_structure(
    structure_id: str,
    payload: ClassStructureUpdate,
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key),
    user_id: str = Depends(get_current_user)
):
    """Replace a class structure document"""
    structure = _get_or_404(db, structure_id)

    structure.name = payload.name
    structure.effective_date = payload.effective_date
    structure.market_segment = payload.market_segment.value
    structure.product_type = payload.product_type.value
    structure.number_of_classes = payload.number_of_classes
    structure.classes = _classes_document(payload)
    structure.last_modified_by = user_id
    structure.last_modified_at = datetime.utcnow()

    db.commit()
    db.refresh(structure)

    logger.info("Class structure updated", structure_id=structure.id)
    return structure.to_document()


@router.delete("/{structure_id}", status_code=204)
async def delete_class_structure(
    structure_id: str,
    db: Session = Depends(get_db),
    api_key: str = Depends(verify_api_key)
):
    """Delete a class structure; there is no soft delete"""
    structure = _get_or_404(db, structure_id)
    db.delete(structure)
    db.commit()

    logger.info("Class structure deleted", structure_id=structure_id)
    return Response(status_code=204)
