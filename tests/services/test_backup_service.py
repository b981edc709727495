"""Tests for brewlog/services/backup_service.py - full backups and partial restore."""
import json
import uuid
from datetime import date

import pytest

from brewlog.schemas.backup import RestoreOptions
from brewlog.services import backup_service, collection_store, recipe_store
from brewlog.services.errors import BackupFormatError
from brewlog.services.kv_store import PRE_RESTORE_BACKUP, USER_PREFERENCES


def _wipe(db):
    for recipe in recipe_store.list_recipes(db):
        recipe_store.delete_recipe(db, recipe.id)
    for collection in collection_store.list_collections(db):
        collection_store.delete_collection(db, collection.id)


def _document(db, store) -> dict:
    """A backup as it would be read back from the downloaded file."""
    return json.loads(backup_service.serialize_backup(backup_service.create_backup(db, store)))


class TestCreateBackup:
    def test_contents(self, db, store, recipe_factory, collection_factory):
        collection = collection_factory(name="Washed")
        recipe_factory(collections=[str(collection.id)])
        recipe_factory(recipeName="Second", beanInfo={"origin": "Kenya"}, sensationRecord={"overallImpression": 6})
        store.increment("exports", 4)

        backup = backup_service.create_backup(db, store)

        assert backup.version == "1.0"
        assert backup.metadata.total_recipes == 2
        assert backup.metadata.total_collections == 1
        assert backup.recipes[0]["recipeName"] == "Morning V60"
        assert backup.collections[0]["name"] == "Washed"
        assert backup.statistics.total_exports == 4
        assert backup.statistics.average_rating == 7.0
        assert backup.statistics.most_used_method == "pour-over"

    def test_empty_database(self, db, store):
        backup = backup_service.create_backup(db, store)
        assert backup.recipes == []
        assert backup.statistics.most_used_origin == "None"

    def test_history_recorded(self, db, store, recipe_factory):
        recipe_factory()
        backup = backup_service.create_backup(db, store)
        history = backup_service.get_backup_history(store)
        assert len(history) == 1
        assert history[0].recipes_count == 1
        assert history[0].timestamp == backup.timestamp
        assert history[0].size == len(backup_service.serialize_backup(backup))

        backup_service.clear_backup_history(store)
        assert backup_service.get_backup_history(store) == []

    def test_serialized_keys_are_camel_case(self, db, store):
        document = _document(db, store)
        assert set(document) >= {"version", "timestamp", "metadata", "recipes", "userPreferences"}
        assert "totalRecipes" in document["metadata"]

    def test_filename(self):
        assert backup_service.backup_filename(date(2026, 10, 17)) == "coffee-recipes-backup-2026-10-17.json"


class TestValidateBackup:
    def test_valid(self, db, store):
        backup = backup_service.validate_backup(_document(db, store))
        assert backup.version == "1.0"

    def test_not_an_object(self):
        with pytest.raises(BackupFormatError):
            backup_service.validate_backup(["recipes"])

    @pytest.mark.parametrize("missing", ["version", "timestamp", "metadata"])
    def test_missing_key(self, db, store, missing):
        document = _document(db, store)
        del document[missing]
        with pytest.raises(BackupFormatError, match=missing):
            backup_service.validate_backup(document)

    def test_recipes_must_be_a_list(self, db, store):
        document = _document(db, store)
        document["recipes"] = {"not": "a list"}
        with pytest.raises(BackupFormatError):
            backup_service.validate_backup(document)


class TestRestoreBackup:
    def test_restores_into_empty_database(self, db, store, recipe_factory, collection_factory):
        """Should bring back collections, recipes and their links with original ids."""
        collection = collection_factory(name="Washed")
        recipe = recipe_factory(collections=[str(collection.id)])
        recipe_id, collection_id = recipe.id, collection.id
        document = _document(db, store)
        _wipe(db)

        result = backup_service.restore_backup(db, store, document, RestoreOptions(create_backup_before_restore=False))

        assert result.success is True
        assert result.message == "Successfully restored 2 items"
        assert result.statistics.recipes_restored == 1
        assert result.statistics.collections_restored == 1
        restored = recipe_store.get_recipe(db, recipe_id)
        assert restored.recipe_name == "Morning V60"
        assert restored.collection_ids == [collection_id]

    def test_existing_items_skipped(self, db, store, recipe_factory, collection_factory):
        collection_factory()
        recipe_factory()
        document = _document(db, store)

        result = backup_service.restore_backup(db, store, document)

        assert result.success is True
        assert result.message == "All 2 items already exist (skipped)"
        assert result.statistics.recipes_skipped == 1
        assert recipe_store.count_recipes(db) == 1

    def test_overwrite_existing(self, db, store, recipe_factory):
        recipe_id = recipe_factory().id
        document = _document(db, store)
        document["recipes"][0]["recipeName"] = "Renamed in backup"

        result = backup_service.restore_backup(
            db, store, document, RestoreOptions(overwrite_existing=True)
        )

        assert result.statistics.recipes_restored == 1
        assert recipe_store.get_recipe(db, recipe_id).recipe_name == "Renamed in backup"

    def test_bad_entries_reported(self, db, store, recipe_factory):
        """Should restore the good recipes and report the bad one."""
        recipe_factory()
        document = _document(db, store)
        _wipe(db)
        bad = dict(document["recipes"][0], recipeId=str(uuid.uuid4()), recipeName="Broken")
        bad["sensationRecord"] = {}
        document["recipes"].append(bad)

        result = backup_service.restore_backup(db, store, document)

        assert result.statistics.recipes_restored == 1
        assert result.statistics.errors == 1
        assert result.message == "Successfully restored 1 items with 1 errors"
        assert 'Failed to restore recipe "Broken"' in result.errors[0]

    def test_unknown_collection_links_dropped(self, db, store, recipe_factory):
        recipe_id = recipe_factory().id
        document = _document(db, store)
        _wipe(db)
        document["recipes"][0]["collections"] = [str(uuid.uuid4())]

        result = backup_service.restore_backup(db, store, document)

        assert result.statistics.errors == 0
        assert recipe_store.get_recipe(db, recipe_id).collection_ids == []

    def test_selective_restore(self, db, store, recipe_factory, collection_factory):
        collection_factory()
        recipe_factory()
        document = _document(db, store)
        _wipe(db)

        result = backup_service.restore_backup(
            db, store, document, RestoreOptions(include_recipes=False)
        )

        assert result.statistics.collections_restored == 1
        assert recipe_store.count_recipes(db) == 0
        assert collection_store.count_collections(db) == 1

    def test_nothing_restored(self, db, store):
        document = _document(db, store)
        result = backup_service.restore_backup(db, store, document)
        assert result.success is False
        assert result.message == "No items were restored"

    def test_pre_restore_snapshot(self, db, store, recipe_factory):
        recipe_factory()
        document = _document(db, store)

        backup_service.restore_backup(db, store, document)

        snapshot = store.get(PRE_RESTORE_BACKUP)
        assert snapshot["metadata"]["totalRecipes"] == 1

    def test_preferences_overlay(self, db, store):
        store.set(USER_PREFERENCES, {"theme": "dark", "recentSearches": ["kenya"]})
        document = _document(db, store)
        document["userPreferences"] = {"theme": "light", "favoriteOrigins": ["Ethiopia"], "recentSearches": []}

        backup_service.restore_backup(db, store, document)

        preferences = store.get(USER_PREFERENCES)
        assert preferences["theme"] == "light"
        assert preferences["favoriteOrigins"] == ["Ethiopia"]
        assert preferences["recentSearches"] == ["kenya"]

    def test_invalid_document(self, db, store):
        with pytest.raises(BackupFormatError):
            backup_service.restore_backup(db, store, {"version": "1.0"})
