"""Catalog and configuration schemas"""

from typing import List, Union
from pydantic import BaseModel, Field


class CatalogItem(BaseModel):
    id: str
    name: str


class CatalogResponse(BaseModel):
    """Everything an administrator can assign: benefit classes and benefits"""
    benefit_classes: List[CatalogItem] = Field(..., alias="benefitClasses")
    benefits: List[CatalogItem]

    class Config:
        populate_by_name = True


class EnumOption(BaseModel):
    value: Union[int, str]
    label: str


