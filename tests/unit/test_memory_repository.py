"""Unit tests for the in-memory offering repository."""

import pytest
from pydantic import ValidationError

from financial_exorcist.domain.models import ImmutableFieldError
from financial_exorcist.repositories.interfaces import (
    OfferingNotFoundError,
    OfferingRepository,
    RepositoryError,
)
from financial_exorcist.repositories.memory_impl import MemoryOfferingRepository


@pytest.mark.unit
class TestMemoryOfferingRepository:
    """Test MemoryOfferingRepository."""

    def setup_method(self):
        self.repo = MemoryOfferingRepository()

    def test_implements_interface(self):
        assert isinstance(self.repo, OfferingRepository)

    def test_create_and_get(self, make_offering):
        offering = make_offering()

        assert self.repo.create(offering) is offering
        assert self.repo.get_by_id(offering.id) is offering
        assert self.repo.get_by_id(str(offering.id)) is offering
        assert self.repo.exists(offering.id) is True
        assert self.repo.count() == 1

    def test_duplicate_create_rejected(self, make_offering):
        offering = make_offering()
        self.repo.create(offering)

        with pytest.raises(RepositoryError):
            self.repo.create(offering)

    def test_get_all_in_insertion_order(self, make_offering):
        offerings = [make_offering(description=f"Item {i}") for i in range(3)]
        for offering in offerings:
            self.repo.create(offering)

        assert self.repo.get_all() == offerings

    def test_get_missing(self):
        assert self.repo.get_by_id("not-a-uuid") is None
        assert self.repo.exists("00000000-0000-0000-0000-000000000000") is False

    def test_update_replaces_record(self, make_offering):
        offering = self.repo.create(make_offering())

        updated = self.repo.update(offering.id, {"category": "GREED"})

        assert updated.category.value == "GREED"
        assert self.repo.get_by_id(offering.id) is updated
        assert offering.category.value == "GLUTTONY"

    def test_update_immutable_field(self, make_offering):
        offering = self.repo.create(make_offering())

        with pytest.raises(ImmutableFieldError):
            self.repo.update(offering.id, {"amount": 1})
        assert self.repo.get_by_id(offering.id) is offering

    def test_update_invalid_value(self, make_offering):
        offering = self.repo.create(make_offering())

        with pytest.raises(ValidationError):
            self.repo.update(offering.id, {"description": ""})

    def test_update_missing(self):
        with pytest.raises(OfferingNotFoundError):
            self.repo.update("00000000-0000-0000-0000-000000000000", {"description": "x"})
        with pytest.raises(OfferingNotFoundError):
            self.repo.update("garbage", {"description": "x"})

    def test_delete(self, make_offering):
        offering = self.repo.create(make_offering())

        assert self.repo.delete(offering.id) is offering
        assert self.repo.count() == 0

        with pytest.raises(OfferingNotFoundError):
            self.repo.delete(offering.id)

    def test_clear(self, make_offering):
        for _ in range(3):
            self.repo.create(make_offering())

        assert self.repo.clear() == 3
        assert self.repo.get_all() == []
