"""Dental plan models"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Index
from dental_admin.database import Base, DocumentJSON
import uuid


class DentalPlan(Base):
    """Dental plan header plus its configuration working state.

    ``classes``, ``limits`` and ``cost_shares`` hold the edits made on the
    configuration screen. They are written back to the referenced class and
    limit structures on save; ``saved_cost_shares`` is the last saved copy
    of the cost share table.
    """

    __tablename__ = "dental_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    effective_date = Column(String(10), nullable=False)
    market_segment = Column(String(20), nullable=False)
    customization_level = Column(String(20), nullable=False, default="Standard")
    product_type = Column(String(20), nullable=False)
    inn_tiers = Column(Integer, nullable=False, default=1)
    oon_coverage = Column(Boolean, nullable=False, default=False)
    coverage_type = Column(String(20), nullable=False)

    class_structure_id = Column(String(36), nullable=False, index=True)
    class_structure_name = Column(String(200), nullable=True)
    limit_structure_id = Column(String(36), nullable=True, index=True)
    limit_structure_name = Column(String(200), nullable=True)

    classes = Column(DocumentJSON, nullable=False, default=list)
    limits = Column(DocumentJSON, nullable=False, default=list)
    cost_shares = Column(DocumentJSON, nullable=False, default=list)
    saved_cost_shares = Column(DocumentJSON, nullable=False, default=list)
    configuration_dirty = Column(Boolean, nullable=False, default=False)
    # Set while a save writes the structures; at most one save per plan
    save_in_progress = Column(Boolean, nullable=False, default=False)

    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False)
    last_modified_by = Column(String(100), nullable=False)
    last_modified_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_dental_plans_effective_date", "effective_date"),
        Index("idx_dental_plans_market_segment", "market_segment"),
        Index("idx_dental_plans_product_type", "product_type"),
    )

    def to_document(self) -> dict:
        return {
            "_id": self.id,
            "name": self.name,
            "effectiveDate": self.effective_date,
            "marketSegment": self.market_segment,
            "customizationLevel": self.customization_level,
            "productType": self.product_type,
            "innTiers": self.inn_tiers,
            "oonCoverage": self.oon_coverage,
            "coverageType": self.coverage_type,
            "classStructureId": self.class_structure_id,
            "classStructureName": self.class_structure_name,
            "limitStructureId": self.limit_structure_id,
            "limitStructureName": self.limit_structure_name,
            "classes": self.classes or [],
            "limits": self.limits or [],
            "costShares": self.cost_shares or [],
            "configurationDirty": self.configuration_dirty,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "lastModifiedBy": self.last_modified_by,
            "lastModifiedAt": self.last_modified_at,
        }
