"""Ordered class -> benefits tree of a benefit class structure"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import structlog

from dental_admin.validation.constraints import check_class_structure, check_unique_class_names, enforce

logger = structlog.get_logger()


@dataclass
class BenefitRef:
    """Reference to a catalog benefit (id plus denormalized name)"""
    id: str
    name: str


@dataclass
class BenefitClass:
    """A named grouping of benefits; list order is display order"""
    id: str
    name: str
    benefits: List[BenefitRef] = field(default_factory=list)

    def index_of(self, benefit_id: str) -> int:
        for index, benefit in enumerate(self.benefits):
            if benefit.id == benefit_id:
                return index
        return -1


class ClassStructureModel:
    """Holds the classes of one structure and keeps benefit membership unique.

    Unknown class or benefit ids never raise: lookups return empty results and
    mutations return False so callers can treat stale references as no-ops.
    """

    def __init__(self, classes: Iterable[BenefitClass] = ()):
        self._classes: List[BenefitClass] = list(classes)
        enforce(check_class_structure(self._shape()))
        self._by_id: Dict[str, BenefitClass] = {cls.id: cls for cls in self._classes}

    def _shape(self):
        return [(cls.id, cls.name, [b.id for b in cls.benefits]) for cls in self._classes]

    def list_classes(self) -> List[BenefitClass]:
        return list(self._classes)

    def get_class(self, class_id: str) -> Optional[BenefitClass]:
        return self._by_id.get(class_id)

    def has_class(self, class_id: str) -> bool:
        return class_id in self._by_id

    def benefits_in_class(self, class_id: str) -> List[BenefitRef]:
        cls = self._by_id.get(class_id)
        return list(cls.benefits) if cls else []

    def class_of(self, benefit_id: str) -> Optional[BenefitClass]:
        for cls in self._classes:
            if cls.index_of(benefit_id) != -1:
                return cls
        return None

    def find_benefit(self, benefit_id: str) -> Optional[BenefitRef]:
        cls = self.class_of(benefit_id)
        if cls is None:
            return None
        return cls.benefits[cls.index_of(benefit_id)]

    def all_unique_benefits(self) -> List[BenefitRef]:
        """Benefits across every class, deduplicated by id, first occurrence wins"""
        unique: Dict[str, BenefitRef] = {}
        for cls in self._classes:
            for benefit in cls.benefits:
                unique.setdefault(benefit.id, benefit)
        return list(unique.values())

    def available_benefits(self, class_id: str, catalog: Iterable[BenefitRef]) -> List[BenefitRef]:
        """Catalog benefits that can still be added to ``class_id``.

        A benefit assigned to any class is excluded; moving it is a
        reassignment, not an add.
        """
        if class_id not in self._by_id:
            return []
        assigned = {benefit.id for benefit in self.all_unique_benefits()}
        return [benefit for benefit in catalog if benefit.id not in assigned]

    def add_benefit(self, class_id: str, benefit: BenefitRef) -> bool:
        cls = self._by_id.get(class_id)
        if cls is None:
            return False
        owner = self.class_of(benefit.id)
        if owner is not None:
            logger.info(
                "Benefit already assigned",
                benefit_id=benefit.id,
                class_id=owner.id,
                requested_class_id=class_id,
            )
            return False
        cls.benefits.append(benefit)
        return True

    def remove_benefit(self, class_id: str, benefit_id: str) -> Optional[BenefitRef]:
        cls = self._by_id.get(class_id)
        if cls is None:
            return None
        index = cls.index_of(benefit_id)
        if index == -1:
            return None
        return cls.benefits.pop(index)

    def move_before(self, class_id: str, benefit_id: str, before_benefit_id: str) -> bool:
        """Extract ``benefit_id`` and reinsert it directly before ``before_benefit_id``"""
        cls = self._by_id.get(class_id)
        if cls is None or benefit_id == before_benefit_id:
            return False
        source_index = cls.index_of(benefit_id)
        if source_index == -1 or cls.index_of(before_benefit_id) == -1:
            return False
        benefit = cls.benefits.pop(source_index)
        cls.benefits.insert(cls.index_of(before_benefit_id), benefit)
        return True

    def move_to_end(self, class_id: str, benefit_id: str) -> bool:
        cls = self._by_id.get(class_id)
        if cls is None:
            return False
        index = cls.index_of(benefit_id)
        if index == -1 or index == len(cls.benefits) - 1:
            return False
        cls.benefits.append(cls.benefits.pop(index))
        return True

    def rename_class(self, class_id: str, name: str) -> bool:
        cls = self._by_id.get(class_id)
        if cls is None:
            return False
        shape = [(c.id, name if c.id == class_id else c.name, []) for c in self._classes]
        enforce(check_unique_class_names(shape))
        cls.name = name
        return True
