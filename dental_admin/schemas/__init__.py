"""Pydantic schemas for the Dental Plan Administration API"""

from .common import ErrorResponse
from .catalog import CatalogItem, CatalogResponse, EnumOption
from .class_structures import (
    ClassStructureCreate, ClassStructureUpdate, ClassStructureResponse, ClassStructureSummary
)
from .limit_structures import (
    LimitStructureCreate, LimitStructureUpdate, LimitStructureResponse, LimitStructureSummary
)
from .plans import PlanCreate, PlanUpdate, PlanResponse, PlanSummary, PlanOperationResponse, GridResponse

__all__ = [
    "ErrorResponse",
    "CatalogItem", "CatalogResponse", "EnumOption",
    "ClassStructureCreate", "ClassStructureUpdate", "ClassStructureResponse", "ClassStructureSummary",
    "LimitStructureCreate", "LimitStructureUpdate", "LimitStructureResponse", "LimitStructureSummary",
    "PlanCreate", "PlanUpdate", "PlanResponse", "PlanSummary", "PlanOperationResponse", "GridResponse",
]
