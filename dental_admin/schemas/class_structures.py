"""Benefit class structure schemas"""

from typing import List, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from dental_admin.config import settings
from dental_admin.enums import MarketSegment, ProductType
from dental_admin.schemas.common import raise_for_results
from dental_admin.validation.constraints import (
    check_class_count,
    check_class_structure,
    check_effective_date,
)


class BenefitRefSchema(BaseModel):
    """Benefit reference; ``code`` is accepted in place of ``id``"""
    id: str = Field(..., min_length=1, validation_alias=AliasChoices("id", "code"))
    name: str = Field(..., min_length=1)


class BenefitClassSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    benefits: List[BenefitRefSchema] = Field(default_factory=list)


class ClassStructureBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Structure name")
    effective_date: str = Field(..., alias="effectiveDate", description="YYYY-MM-DD")
    market_segment: MarketSegment = Field(..., alias="marketSegment")
    product_type: ProductType = Field(..., alias="productType")
    number_of_classes: int = Field(..., alias="numberOfClasses", description="Declared class count")
    classes: List[BenefitClassSchema] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @field_validator("effective_date")
    @classmethod
    def validate_effective_date(cls, v):
        raise_for_results(check_effective_date(v))
        return v

    @model_validator(mode="after")
    def validate_classes(self):
        shapes = [(c.id, c.name, [b.id for b in c.benefits]) for c in self.classes]
        raise_for_results(
            check_class_count(self.number_of_classes, shapes, settings.max_classes)
            + check_class_structure(shapes)
        )
        return self


class ClassStructureCreate(ClassStructureBase):
    """Schema for creating a class structure; id and audit fields are assigned"""


class ClassStructureUpdate(ClassStructureBase):
    """Full replacement document"""


class ClassStructureResponse(ClassStructureBase):
    id: str = Field(..., alias="_id")
    created_by: str = Field(..., alias="createdBy")
    created_at: datetime = Field(..., alias="createdAt")
    last_modified_by: str = Field(..., alias="lastModifiedBy")
    last_modified_at: datetime = Field(..., alias="lastModifiedAt")


class ClassStructureSummary(BaseModel):
    id: str = Field(..., alias="_id")
    name: str
    effective_date: str = Field(..., alias="effectiveDate")
    market_segment: MarketSegment = Field(..., alias="marketSegment")
    product_type: ProductType = Field(..., alias="productType")
    number_of_classes: int = Field(..., alias="numberOfClasses")
    benefit_count: int = Field(..., alias="benefitCount")
    last_modified_at: Optional[datetime] = Field(None, alias="lastModifiedAt")

    class Config:
        populate_by_name = True
