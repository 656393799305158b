"""Benefit catalog and enumeration endpoints"""

from typing import Dict, List

from fastapi import APIRouter, Depends

from dental_admin.auth import verify_api_key
from dental_admin.enums import PUBLISHED_ENUMS, enum_options
from dental_admin.schemas.catalog import CatalogItem, CatalogResponse, EnumOption
from dental_admin.services.catalog import load_catalog

router = APIRouter()


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(api_key: str = Depends(verify_api_key)):
    """Benefit classes and benefits available for assignment"""
    return load_catalog()


@router.get("/benefitClasses", response_model=List[CatalogItem])
async def get_benefit_classes(api_key: str = Depends(verify_api_key)):
    return load_catalog()["benefitClasses"]


@router.get("/benefits", response_model=List[CatalogItem])
async def get_benefits(api_key: str = Depends(verify_api_key)):
    return load_catalog()["benefits"]


@router.get("/enums", response_model=Dict[str, List[EnumOption]])
async def get_enums(api_key: str = Depends(verify_api_key)):
    """Select-box options for every enumerated field"""
    return {name: enum_options(enum_cls) for name, enum_cls in PUBLISHED_ENUMS.items()}
