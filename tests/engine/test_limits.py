"""Tests for benefit limits"""

import pytest

from dental_admin.engine.limits import (
    INTERVAL_TYPE,
    INTERVAL_VALUE,
    QUANTITY,
    UNIT,
    LimitAssignment,
    LimitBook,
    LimitInterval,
    LimitValidationError,
    describe,
)
from dental_admin.enums import LimitIntervalType, UnitType
from dental_admin.validation.types import ConstraintViolation

pytestmark = pytest.mark.engine


def cleaning_limit(**kwargs):
    return LimitAssignment(benefit_id="b1", benefit_name="Cleaning", quantity=2, **kwargs)


class TestLimitResolution:
    """Limits are looked up by benefit id alone"""

    def test_resolve_ignores_class(self):
        """Test the recorded class does not matter for lookup"""
        book = LimitBook([cleaning_limit(class_id="c1", class_name="Class 1")])
        assert book.resolve("b1").quantity == 2

    def test_resolve_missing(self):
        """Test a benefit without a limit resolves to None"""
        assert LimitBook().resolve("b1") is None

    def test_one_limit_per_benefit(self):
        """Test two limits for the same benefit are rejected"""
        with pytest.raises(ConstraintViolation, match="Only one limit per benefit"):
            LimitBook([cleaning_limit(), cleaning_limit()])


class TestSetLimitField:
    """Field edits with validation"""

    def setup_method(self):
        self.book = LimitBook([cleaning_limit()])

    @pytest.mark.parametrize("value", [0, -1, "abc", None])
    def test_invalid_quantity_keeps_prior_value(self, value):
        """Test quantity must be positive and a rejected edit changes nothing"""
        with pytest.raises(LimitValidationError, match="Quantity must be a positive number"):
            self.book.set_limit_field("c1", "b1", QUANTITY, value)
        assert self.book.resolve("b1").quantity == 2

    def test_valid_quantity(self):
        """Test a positive quantity is stored"""
        self.book.set_limit_field("c1", "b1", QUANTITY, 3)
        assert self.book.resolve("b1").quantity == 3

    def test_quantity_from_string(self):
        """Test numeric strings from form inputs are accepted"""
        self.book.set_limit_field("c1", "b1", QUANTITY, "4")
        assert self.book.resolve("b1").quantity == 4

    def test_creates_limit_with_defaults(self):
        """Test editing a benefit with no limit creates one"""
        record = self.book.set_limit_field("c2", "b9", QUANTITY, 1)

        assert record.benefit_id == "b9"
        assert record.unit == UnitType.N_A
        assert record.interval == LimitInterval(LimitIntervalType.PER_YEAR, 1)
        assert len(self.book.records()) == 2

    def test_rejected_edit_creates_nothing(self):
        """Test a failed edit on a benefit with no limit leaves no record behind"""
        with pytest.raises(LimitValidationError):
            self.book.set_limit_field("c2", "b9", QUANTITY, 0)
        assert self.book.resolve("b9") is None

    def test_unit_and_interval(self):
        """Test unit, interval type and interval value edits"""
        self.book.set_limit_field("c1", "b1", UNIT, "per_tooth")
        self.book.set_limit_field("c1", "b1", INTERVAL_TYPE, "per_lifetime")
        self.book.set_limit_field("c1", "b1", INTERVAL_VALUE, 2)

        record = self.book.resolve("b1")
        assert record.unit == UnitType.PER_TOOTH
        assert record.interval == LimitInterval(LimitIntervalType.PER_LIFETIME, 2)

    @pytest.mark.parametrize("field_name,value,message", [
        (UNIT, "per_mouth", "Unknown unit"),
        (INTERVAL_TYPE, "per_decade", "Unknown interval type"),
        (INTERVAL_VALUE, 0, "Interval value must be a positive whole number"),
        ("frequency", 1, "Unknown limit field"),
    ])
    def test_invalid_fields(self, field_name, value, message):
        """Test bad units, intervals and field names are rejected"""
        with pytest.raises(LimitValidationError, match=message):
            self.book.set_limit_field("c1", "b1", field_name, value)


class TestDescribe:
    """Grid labels"""

    def test_full_label(self):
        """Test quantity, unit and interval"""
        limit = cleaning_limit(unit=UnitType.PER_TOOTH)
        assert describe(limit) == "2 Per Tooth Per Year"

    def test_label_without_unit(self):
        """Test the n/a unit is left out"""
        assert describe(cleaning_limit()) == "2 Per Year"

    def test_label_with_interval_value(self):
        """Test an interval longer than one period"""
        limit = cleaning_limit(interval=LimitInterval(LimitIntervalType.PER_YEAR, 3))
        assert describe(limit) == "2 Per Year (every 3)"

    def test_no_limit(self):
        """Test label for a benefit without a limit"""
        assert describe(None) == "No limit set"
