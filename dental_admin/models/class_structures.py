"""Benefit class structure documents"""

from sqlalchemy import Column, String, Integer, DateTime, Index
from dental_admin.database import Base, DocumentJSON
import uuid


class BenefitClassStructure(Base):
    """Named, dated grouping of catalog benefits into classes"""

    __tablename__ = "benefit_class_structures"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    effective_date = Column(String(10), nullable=False)  # YYYY-MM-DD, matched exactly
    market_segment = Column(String(20), nullable=False)
    product_type = Column(String(20), nullable=False)
    number_of_classes = Column(Integer, nullable=False)
    classes = Column(DocumentJSON, nullable=False, default=list)  # [{id, name, benefits: [{id, name}]}]
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False)
    last_modified_by = Column(String(100), nullable=False)
    last_modified_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_class_structures_compat", "effective_date", "market_segment", "product_type"),
        Index("idx_class_structures_created_at", "created_at"),
    )

    def to_document(self) -> dict:
        return {
            "_id": self.id,
            "name": self.name,
            "effectiveDate": self.effective_date,
            "marketSegment": self.market_segment,
            "productType": self.product_type,
            "numberOfClasses": self.number_of_classes,
            "classes": self.classes or [],
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "lastModifiedBy": self.last_modified_by,
            "lastModifiedAt": self.last_modified_at,
        }
