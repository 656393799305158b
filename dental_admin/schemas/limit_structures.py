"""Limit structure schemas"""

from typing import List, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator

from dental_admin.enums import LimitIntervalType, MarketSegment, ProductType, UnitType
from dental_admin.schemas.common import raise_for_results
from dental_admin.validation.constraints import (
    check_effective_date,
    check_interval_value,
    check_limit_quantity,
    check_unique_limit_benefits,
)


class LimitIntervalSchema(BaseModel):
    type: LimitIntervalType = LimitIntervalType.PER_YEAR
    value: int = 1

    @field_validator("value")
    @classmethod
    def validate_value(cls, v):
        raise_for_results(check_interval_value(v))
        return v


class LimitRecordSchema(BaseModel):
    """A single benefit limit, e.g. 2 per tooth per year"""
    id: Optional[str] = None
    class_id: Optional[str] = Field(None, alias="classId")
    class_name: Optional[str] = Field(None, alias="className")
    benefit_id: str = Field(..., min_length=1, alias="benefitId")
    benefit_name: Optional[str] = Field(None, alias="benefitName")
    quantity: Union[int, float] = 1
    unit: UnitType = UnitType.N_A
    interval: LimitIntervalSchema = Field(default_factory=LimitIntervalSchema)

    class Config:
        populate_by_name = True

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        raise_for_results(check_limit_quantity(v))
        return v


class LimitStructureBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    effective_date: str = Field(..., alias="effectiveDate")
    market_segment: MarketSegment = Field(..., alias="marketSegment")
    product_type: ProductType = Field(..., alias="productType")
    benefit_class_structure_id: str = Field(..., min_length=1, alias="benefitClassStructureId")
    benefit_class_structure_name: Optional[str] = Field(None, alias="benefitClassStructureName")
    limits: List[LimitRecordSchema] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @field_validator("effective_date")
    @classmethod
    def validate_effective_date(cls, v):
        raise_for_results(check_effective_date(v))
        return v

    @model_validator(mode="after")
    def validate_limits(self):
        raise_for_results(check_unique_limit_benefits(limit.benefit_id for limit in self.limits))
        return self


class LimitStructureCreate(LimitStructureBase):
    """Schema for creating a limit structure"""


class LimitStructureUpdate(LimitStructureBase):
    """Full replacement document"""


class LimitStructureResponse(LimitStructureBase):
    id: str = Field(..., alias="_id")
    created_by: str = Field(..., alias="createdBy")
    created_at: datetime = Field(..., alias="createdAt")
    last_modified_by: str = Field(..., alias="lastModifiedBy")
    last_modified_at: datetime = Field(..., alias="lastModifiedAt")


class LimitStructureSummary(BaseModel):
    id: str = Field(..., alias="_id")
    name: str
    effective_date: str = Field(..., alias="effectiveDate")
    market_segment: MarketSegment = Field(..., alias="marketSegment")
    product_type: ProductType = Field(..., alias="productType")
    benefit_class_structure_id: str = Field(..., alias="benefitClassStructureId")
    benefit_class_structure_name: Optional[str] = Field(None, alias="benefitClassStructureName")
    limit_count: int = Field(..., alias="limitCount")
    last_modified_at: Optional[datetime] = Field(None, alias="lastModifiedAt")

    class Config:
        populate_by_name = True
