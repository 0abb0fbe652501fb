"""
Tests for domain/dummy_repository.py - Dummy persistence against a migrated
sqlite database.
"""
import pytest

from core.errors import LivenessError


@pytest.mark.integration
class TestDummyRepository:
    """Tests for DummyRepository."""

    @pytest.mark.asyncio
    async def test_save_assigns_identity(self, migrated_db):
        from di.container import Container
        from domain.dummy import Dummy
        from domain.dummy_repository import DummyRepository

        async with await Container.create() as container:
            repository = DummyRepository(container.db)
            dummy = Dummy.new("first")

            await repository.save(dummy)

            assert dummy.is_persisted
            assert await repository.get(dummy.id) == dummy

    @pytest.mark.asyncio
    async def test_save_updates_persisted_entity(self, migrated_db):
        from di.container import Container
        from domain.dummy import Dummy
        from domain.dummy_repository import DummyRepository

        async with await Container.create() as container:
            repository = DummyRepository(container.db)
            dummy = Dummy.new("before")
            await repository.save(dummy)

            renamed = Dummy.reconstitute(dummy.id, "after")
            await repository.save(renamed)

            stored = await repository.get(dummy.id)
            assert stored.name == "after"
            assert len(await repository.list_all()) == 1

    @pytest.mark.asyncio
    async def test_list_all_in_id_order(self, migrated_db):
        from di.container import Container
        from domain.dummy import Dummy
        from domain.dummy_repository import DummyRepository

        async with await Container.create() as container:
            repository = DummyRepository(container.db)
            for name in ("a", "b", "c"):
                await repository.save(Dummy.new(name))

            names = [d.name for d in await repository.list_all()]
            assert names == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_get_missing(self, migrated_db):
        from di.container import Container
        from domain.dummy_repository import DummyRepository

        async with await Container.create() as container:
            assert await DummyRepository(container.db).get(999) is None

    @pytest.mark.asyncio
    async def test_save_none(self):
        from domain.dummy_repository import DummyRepository

        with pytest.raises(ValueError, match="dummy cannot be None"):
            await DummyRepository(None).save(None)

    @pytest.mark.asyncio
    async def test_save_without_database(self):
        from domain.dummy import Dummy
        from domain.dummy_repository import DummyRepository

        with pytest.raises(LivenessError, match="database connection is not initialized"):
            await DummyRepository(None).save(Dummy.new("x"))
