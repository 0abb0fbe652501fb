"""
Tests for domain/dummy.py - Dummy entity.
"""
import pytest

from domain.errors import DomainError


class TestDummy:
    """Tests for the Dummy entity."""

    def test_new_is_unsaved(self):
        from domain.dummy import Dummy

        dummy = Dummy.new("first")

        assert dummy.id == 0
        assert dummy.name == "first"
        assert not dummy.is_persisted

    def test_new_rejects_empty_name(self):
        from domain.dummy import Dummy

        with pytest.raises(DomainError, match="Name must not be empty"):
            Dummy.new("")

    def test_add_identity(self):
        from domain.dummy import Dummy

        dummy = Dummy.new("first")
        dummy.add_identity(42)

        assert dummy.id == 42
        assert dummy.is_persisted

    def test_reconstitute_skips_validation(self):
        from domain.dummy import Dummy

        dummy = Dummy.reconstitute(7, "")

        assert dummy.id == 7
        assert dummy.name == ""

    def test_equality(self):
        from domain.dummy import Dummy

        assert Dummy.reconstitute(1, "a") == Dummy.reconstitute(1, "a")
        assert Dummy.reconstitute(1, "a") != Dummy.reconstitute(2, "a")
        assert Dummy.reconstitute(1, "a") != "a"

    def test_repr(self):
        from domain.dummy import Dummy

        assert repr(Dummy.reconstitute(3, "x")) == "Dummy(id=3, name='x')"
