"""Limit structure documents"""

from sqlalchemy import Column, String, DateTime, Index
from dental_admin.database import Base, DocumentJSON
import uuid


class LimitStructure(Base):
    """Benefit limits built on top of a class structure"""

    __tablename__ = "limit_structures"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    effective_date = Column(String(10), nullable=False)
    market_segment = Column(String(20), nullable=False)
    product_type = Column(String(20), nullable=False)
    # Plain reference; a class structure can be deleted without touching its limits
    benefit_class_structure_id = Column(String(36), nullable=False, index=True)
    benefit_class_structure_name = Column(String(200), nullable=True)
    limits = Column(DocumentJSON, nullable=False, default=list)
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False)
    last_modified_by = Column(String(100), nullable=False)
    last_modified_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_limit_structures_compat", "effective_date", "market_segment", "product_type"),
    )

    def to_document(self) -> dict:
        return {
            "_id": self.id,
            "name": self.name,
            "effectiveDate": self.effective_date,
            "marketSegment": self.market_segment,
            "productType": self.product_type,
            "benefitClassStructureId": self.benefit_class_structure_id,
            "benefitClassStructureName": self.benefit_class_structure_name,
            "limits": self.limits or [],
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "lastModifiedBy": self.last_modified_by,
            "lastModifiedAt": self.last_modified_at,
        }
