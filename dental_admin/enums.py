"""Closed value sets for plans, structures, cost shares and limits"""

from enum import Enum, IntEnum
from typing import Dict, FrozenSet, List, Type, Union


class MarketSegment(str, Enum):
    INDIVIDUAL = "Individual"
    LARGE = "Large"
    SMALL = "Small"


class ProductType(str, Enum):
    PPO = "PPO"
    DHMO = "DHMO"
    POS = "POS"


class CustomizationLevel(str, Enum):
    STANDARD = "Standard"
    CUSTOM = "Custom"


class CoverageType(str, Enum):
    ADULT = "Adult"
    PEDIATRIC = "Pediatric"
    BOTH = "Both"
    FAMILY = "Family"


class NetworkTiers(IntEnum):
    SINGLE_TIER = 1
    TWO_TIER = 2
    THREE_TIER = 3


class CostShareType(str, Enum):
    COPAY = "COPAY"
    COINSURANCE = "COINSURANCE"
    COPAY_THEN_COINSURANCE = "COPAY_THEN_COINSURANCE"
    DEDUCTIBLE_THEN_COINSURANCE = "DEDUCTIBLE_THEN_COINSURANCE"
    DEDUCTIBLE_THEN_COPAY = "DEDUCTIBLE_THEN_COPAY"
    NOT_COVERED = "NOT_COVERED"


class LimitIntervalType(str, Enum):
    PER_VISIT = "per_visit"
    PER_YEAR = "per_year"
    PER_LIFETIME = "per_lifetime"


class UnitType(str, Enum):
    PER_TOOTH = "per_tooth"
    PER_ITEM = "per_item"
    N_A = "n/a"


# Cost share value fields, as they appear in persisted documents
COPAY_AMOUNT = "copayAmount"
COINSURANCE_PERCENTAGE = "coinsurancePercentage"
COST_SHARE_VALUE_FIELDS = (COPAY_AMOUNT, COINSURANCE_PERCENTAGE)

# Which value fields each cost share type carries
COST_SHARE_FIELDS: Dict[CostShareType, FrozenSet[str]] = {
    CostShareType.COPAY: frozenset({COPAY_AMOUNT}),
    CostShareType.COINSURANCE: frozenset({COINSURANCE_PERCENTAGE}),
    CostShareType.COPAY_THEN_COINSURANCE: frozenset({COPAY_AMOUNT, COINSURANCE_PERCENTAGE}),
    CostShareType.DEDUCTIBLE_THEN_COINSURANCE: frozenset({COINSURANCE_PERCENTAGE}),
    CostShareType.DEDUCTIBLE_THEN_COPAY: frozenset({COPAY_AMOUNT}),
    CostShareType.NOT_COVERED: frozenset(),
}


DISPLAY_NAMES: Dict[Enum, str] = {
    MarketSegment.INDIVIDUAL: "Individual",
    MarketSegment.LARGE: "Large Group",
    MarketSegment.SMALL: "Small Group",
    ProductType.PPO: "PPO",
    ProductType.DHMO: "DHMO",
    ProductType.POS: "POS",
    CustomizationLevel.STANDARD: "Standard",
    CustomizationLevel.CUSTOM: "Custom",
    CoverageType.ADULT: "Adult Only",
    CoverageType.PEDIATRIC: "Pediatric Only",
    CoverageType.BOTH: "Both Adult & Pediatric",
    CoverageType.FAMILY: "Family",
    NetworkTiers.SINGLE_TIER: "Single Tier",
    NetworkTiers.TWO_TIER: "Two Tiers",
    NetworkTiers.THREE_TIER: "Three Tiers",
    CostShareType.COPAY: "Copay Only",
    CostShareType.COINSURANCE: "Coinsurance Only",
    CostShareType.COPAY_THEN_COINSURANCE: "Copay Then Coinsurance",
    CostShareType.DEDUCTIBLE_THEN_COINSURANCE: "Deductible Then Coinsurance",
    CostShareType.DEDUCTIBLE_THEN_COPAY: "Deductible Then Copay",
    CostShareType.NOT_COVERED: "Not Covered",
    LimitIntervalType.PER_VISIT: "Per Visit",
    LimitIntervalType.PER_YEAR: "Per Year",
    LimitIntervalType.PER_LIFETIME: "Per Lifetime",
    UnitType.PER_TOOTH: "Per Tooth",
    UnitType.PER_ITEM: "Per Item",
    UnitType.N_A: "N/A",
}

# Enums published through the configuration endpoint
PUBLISHED_ENUMS: Dict[str, Type[Enum]] = {
    "marketSegment": MarketSegment,
    "productType": ProductType,
    "customizationLevel": CustomizationLevel,
    "coverageType": CoverageType,
    "networkTiers": NetworkTiers,
    "costShareType": CostShareType,
    "limitIntervalType": LimitIntervalType,
    "unitType": UnitType,
}


def display_name(value: Union[Enum, str, int]) -> str:
    """Human readable label for an enum member; unknown values echo back"""
    if isinstance(value, Enum):
        return DISPLAY_NAMES.get(value, str(value.value))
    for member in DISPLAY_NAMES:
        if member.value == value:
            return DISPLAY_NAMES[member]
    return str(value)


def enum_options(enum_cls: Type[Enum]) -> List[Dict[str, Union[str, int]]]:
    """Select-box options for an enum: ``[{"value": ..., "label": ...}]``"""
    return [{"value": member.value, "label": display_name(member)} for member in enum_cls]


def network_tier_labels(inn_tiers: int, oon_coverage: bool) -> List[str]:
    """Labels for a plan's network tiers, indexed the way cost shares are.

    In-network tiers come first ("Tier 1".."Tier N"); out-of-network, when
    covered, is always the last index.
    """
    labels = [f"Tier {index + 1}" for index in range(inn_tiers)]
    if oon_coverage:
        labels.append("Out of Network")
    return labels


def coverage_tabs(coverage_type: CoverageType) -> List[CoverageType]:
    """Coverage types that carry their own cost share grid for a plan"""
    if coverage_type == CoverageType.BOTH:
        return [CoverageType.ADULT, CoverageType.PEDIATRIC]
    return [coverage_type]
