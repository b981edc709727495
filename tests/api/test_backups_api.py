"""Tests for backup and restore endpoints."""
import json


class TestDownloadBackup:
    def test_download(self, client, recipe_factory, collection_factory):
        collection_factory()
        recipe_factory()
        response = client.get("/api/backups")
        assert response.status_code == 200
        assert 'filename="coffee-recipes-backup-' in response.headers["content-disposition"]

        document = json.loads(response.content)
        assert document["metadata"]["totalRecipes"] == 1
        assert document["metadata"]["totalCollections"] == 1
        assert document["recipes"][0]["recipeName"] == "Morning V60"

    def test_history(self, client, db):
        client.get("/api/backups")
        history = client.get("/api/backups/history").json()
        assert len(history) == 1
        assert history[0]["recipesCount"] == 0

        assert client.delete("/api/backups/history").status_code == 204
        assert client.get("/api/backups/history").json() == []


class TestValidateBackup:
    def test_valid(self, client, recipe_factory):
        recipe_factory()
        document = client.get("/api/backups").json()
        data = client.post("/api/backups/validate", json=document).json()
        assert data["valid"] is True
        assert data["metadata"]["totalRecipes"] == 1

    def test_invalid(self, client, db):
        response = client.post("/api/backups/validate", json={"version": "1.0"})
        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is False
        assert "timestamp" in data["error"]

    def test_not_an_object(self, client, db):
        data = client.post("/api/backups/validate", json=[1, 2, 3]).json()
        assert data["valid"] is False


class TestRestoreBackup:
    def test_restore_round_trip(self, client, recipe_factory, collection_factory):
        collection = collection_factory(name="Saved")
        recipe = recipe_factory(collections=[str(collection.id)])
        document = client.get("/api/backups").json()

        client.delete(f"/api/recipes/{recipe.id}")
        client.delete(f"/api/collections/{collection.id}")

        response = client.post("/api/backups/restore", json={"backup": document})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["statistics"]["recipesRestored"] == 1
        assert data["statistics"]["collectionsRestored"] == 1

        restored = client.get(f"/api/recipes/{recipe.id}").json()
        assert restored["collections"] == [str(collection.id)]

    def test_restore_skips_existing(self, client, recipe_factory):
        recipe_factory()
        document = client.get("/api/backups").json()
        data = client.post(
            "/api/backups/restore",
            json={"backup": document, "options": {"createBackupBeforeRestore": False}},
        ).json()
        assert data["statistics"]["recipesSkipped"] == 1
        assert data["message"] == "All 1 items already exist (skipped)"

    def test_restore_bad_document(self, client, db):
        response = client.post("/api/backups/restore", json={"backup": {"version": "1.0"}})
        assert response.status_code == 400

    def test_pre_restore_snapshot(self, client, recipe_factory):
        assert client.get("/api/backups/pre-restore").status_code == 404

        recipe_factory()
        document = client.get("/api/backups").json()
        client.post("/api/backups/restore", json={"backup": document})

        snapshot = client.get("/api/backups/pre-restore").json()
        assert snapshot["metadata"]["totalRecipes"] == 1
