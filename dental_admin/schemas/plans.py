"""Dental plan schemas"""

from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from dental_admin.enums import (
    COPAY_AMOUNT,
    CostShareType,
    CoverageType,
    CustomizationLevel,
    MarketSegment,
    NetworkTiers,
    ProductType,
)
from dental_admin.schemas.class_structures import BenefitClassSchema
from dental_admin.schemas.common import raise_for_results
from dental_admin.schemas.limit_structures import LimitRecordSchema
from dental_admin.validation.constraints import check_cost_share_value, check_effective_date


class CamelModel(BaseModel):
    class Config:
        populate_by_name = True


class PlanCreate(CamelModel):
    """Schema for creating a dental plan from a class structure"""
    name: str = Field(..., min_length=1, max_length=200, description="Plan name")
    effective_date: str = Field(..., alias="effectiveDate")
    market_segment: MarketSegment = Field(..., alias="marketSegment")
    customization_level: CustomizationLevel = Field(CustomizationLevel.STANDARD, alias="customizationLevel")
    product_type: ProductType = Field(..., alias="productType")
    inn_tiers: NetworkTiers = Field(NetworkTiers.SINGLE_TIER, alias="innTiers")
    oon_coverage: bool = Field(False, alias="oonCoverage")
    coverage_type: CoverageType = Field(..., alias="coverageType")
    class_structure_id: str = Field(..., alias="classStructureId")
    limit_structure_id: Optional[str] = Field(None, alias="limitStructureId")

    @field_validator("effective_date")
    @classmethod
    def validate_effective_date(cls, v):
        raise_for_results(check_effective_date(v))
        return v


class PlanUpdate(CamelModel):
    """Header fields that can change after creation"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    customization_level: Optional[CustomizationLevel] = Field(None, alias="customizationLevel")
    inn_tiers: Optional[NetworkTiers] = Field(None, alias="innTiers")
    oon_coverage: Optional[bool] = Field(None, alias="oonCoverage")
    coverage_type: Optional[CoverageType] = Field(None, alias="coverageType")


class CostShareRecordSchema(CamelModel):
    class_id: str = Field(..., alias="classId")
    benefit_id: Optional[str] = Field(None, alias="benefitId")
    network_tier: int = Field(..., alias="networkTier")
    coverage_type: CoverageType = Field(..., alias="coverageType")
    cost_share_type: CostShareType = Field(..., alias="costShareType")
    values: Dict[str, float] = Field(default_factory=dict)


class PlanResponse(CamelModel):
    id: str = Field(..., alias="_id")
    name: str
    effective_date: str = Field(..., alias="effectiveDate")
    market_segment: MarketSegment = Field(..., alias="marketSegment")
    customization_level: CustomizationLevel = Field(..., alias="customizationLevel")
    product_type: ProductType = Field(..., alias="productType")
    inn_tiers: NetworkTiers = Field(..., alias="innTiers")
    oon_coverage: bool = Field(..., alias="oonCoverage")
    coverage_type: CoverageType = Field(..., alias="coverageType")
    class_structure_id: str = Field(..., alias="classStructureId")
    class_structure_name: Optional[str] = Field(None, alias="classStructureName")
    limit_structure_id: Optional[str] = Field(None, alias="limitStructureId")
    limit_structure_name: Optional[str] = Field(None, alias="limitStructureName")
    classes: List[BenefitClassSchema]
    limits: List[LimitRecordSchema]
    cost_shares: List[CostShareRecordSchema] = Field(..., alias="costShares")
    configuration_dirty: bool = Field(..., alias="configurationDirty")
    created_by: str = Field(..., alias="createdBy")
    created_at: datetime = Field(..., alias="createdAt")
    last_modified_by: str = Field(..., alias="lastModifiedBy")
    last_modified_at: datetime = Field(..., alias="lastModifiedAt")


class PlanSummary(CamelModel):
    id: str = Field(..., alias="_id")
    name: str
    effective_date: str = Field(..., alias="effectiveDate")
    market_segment: MarketSegment = Field(..., alias="marketSegment")
    product_type: ProductType = Field(..., alias="productType")
    coverage_type: CoverageType = Field(..., alias="coverageType")
    class_structure_name: Optional[str] = Field(None, alias="classStructureName")
    limit_structure_name: Optional[str] = Field(None, alias="limitStructureName")
    configuration_dirty: bool = Field(..., alias="configurationDirty")
    last_modified_at: Optional[datetime] = Field(None, alias="lastModifiedAt")


# Configuration operations

class MoveBenefitRequest(CamelModel):
    benefit_id: str = Field(..., alias="benefitId")
    from_class_id: str = Field(..., alias="fromClassId")
    to_class_id: str = Field(..., alias="toClassId")


class ReorderBenefitRequest(CamelModel):
    class_id: str = Field(..., alias="classId")
    benefit_id: str = Field(..., alias="benefitId")
    before_benefit_id: str = Field(..., alias="beforeBenefitId")


class AddBenefitRequest(CamelModel):
    """Append a catalog benefit; its cost share is seeded from the class default"""
    class_id: str = Field(..., alias="classId")
    benefit_id: str = Field(..., alias="benefitId")
    benefit_name: Optional[str] = Field(None, alias="benefitName")
    network_tier: int = Field(0, alias="networkTier")
    coverage_type: Optional[CoverageType] = Field(None, alias="coverageType")


class RemoveBenefitRequest(CamelModel):
    class_id: str = Field(..., alias="classId")
    benefit_id: str = Field(..., alias="benefitId")


class DragItemSchema(CamelModel):
    """Drag source or drop target; no benefit id means a class header"""
    class_id: str = Field(..., alias="classId")
    benefit_id: Optional[str] = Field(None, alias="benefitId")


class DragEndRequest(CamelModel):
    active: DragItemSchema
    over: Optional[DragItemSchema] = None


class CostShareCell(CamelModel):
    """Addresses one cost share; no benefit id means the class default"""
    class_id: str = Field(..., alias="classId")
    benefit_id: Optional[str] = Field(None, alias="benefitId")
    network_tier: int = Field(0, alias="networkTier")
    coverage_type: CoverageType = Field(..., alias="coverageType")


class CostShareTypeRequest(CostShareCell):
    cost_share_type: CostShareType = Field(..., alias="costShareType")


class CostShareValueRequest(CostShareCell):
    field: Literal["copayAmount", "coinsurancePercentage"]
    value: Optional[float] = None

    @field_validator("value")
    @classmethod
    def validate_value(cls, v, info):
        raise_for_results(check_cost_share_value(info.data.get("field", COPAY_AMOUNT), v))
        return v


class LimitFieldRequest(CamelModel):
    class_id: Optional[str] = Field(None, alias="classId")
    benefit_id: str = Field(..., alias="benefitId")
    field: Literal["quantity", "unit", "intervalType", "intervalValue"]
    value: Any


class PlanOperationResponse(CamelModel):
    """Result of a configuration edit; ``applied`` is False for a no-op"""
    applied: bool
    plan: PlanResponse


# Configuration grid

class GridCostShare(CamelModel):
    source: Literal["benefit", "class_default", "unconfigured"]
    cost_share_type: Optional[CostShareType] = Field(None, alias="costShareType")
    values: Dict[str, float] = Field(default_factory=dict)
    label: str


class GridBenefit(CamelModel):
    benefit_id: str = Field(..., alias="benefitId")
    benefit_name: str = Field(..., alias="benefitName")
    cost_share: GridCostShare = Field(..., alias="costShare")
    limit: Optional[LimitRecordSchema] = None
    limit_label: str = Field(..., alias="limitLabel")


class GridClass(CamelModel):
    class_id: str = Field(..., alias="classId")
    class_name: str = Field(..., alias="className")
    class_default: GridCostShare = Field(..., alias="classDefault")
    benefits: List[GridBenefit]


class GridResponse(CamelModel):
    network_tier: int = Field(..., alias="networkTier")
    network_tier_label: str = Field(..., alias="networkTierLabel")
    coverage_type: CoverageType = Field(..., alias="coverageType")
    classes: List[GridClass]

