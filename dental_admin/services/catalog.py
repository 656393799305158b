"""Benefit catalog: the benefits and benefit classes available for assignment"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from dental_admin.config import settings
from dental_admin.engine.class_structure import BenefitRef

logger = structlog.get_logger()

PACKAGED_CATALOG = Path(__file__).resolve().parent.parent / "data" / "catalog.json"


@lru_cache(maxsize=4)
def load_catalog(path: Optional[str] = None) -> Dict[str, List[Dict[str, str]]]:
    """Read the catalog document; small enough to keep fully in memory"""
    catalog_path = Path(path or settings.catalog_path or PACKAGED_CATALOG)
    with catalog_path.open(encoding="utf-8") as handle:
        document = json.load(handle)
    logger.info(
        "Catalog loaded",
        path=str(catalog_path),
        benefit_classes=len(document.get("benefitClasses", [])),
        benefits=len(document.get("benefits", [])),
    )
    return {
        "benefitClasses": list(document.get("benefitClasses", [])),
        "benefits": list(document.get("benefits", [])),
    }


def catalog_benefits(path: Optional[str] = None) -> List[BenefitRef]:
    return [BenefitRef(id=item["id"], name=item["name"]) for item in load_catalog(path)["benefits"]]


def find_catalog_benefit(benefit_id: str, path: Optional[str] = None) -> Optional[BenefitRef]:
    for benefit in catalog_benefits(path):
        if benefit.id == benefit_id:
            return benefit
    return None
