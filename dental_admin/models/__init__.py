"""Database models for the Dental Plan Administration API"""

from .class_structures import BenefitClassStructure
from .limit_structures import LimitStructure
from .plans import DentalPlan

__all__ = [
    "BenefitClassStructure",
    "LimitStructure",
    "DentalPlan",
]
