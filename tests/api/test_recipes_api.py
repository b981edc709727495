"""Tests for recipe API endpoints."""
import uuid


class TestCreateRecipe:
    def test_create(self, client, recipe_payload):
        """Should return the saved recipe with derived fields in camelCase."""
        response = client.post("/api/recipes", json=recipe_payload())
        assert response.status_code == 201
        data = response.json()
        assert uuid.UUID(data["recipeId"])
        assert data["recipeName"] == "Morning V60"
        assert data["measurements"]["coffeeWaterRatio"] == 16.0
        assert data["measurements"]["extractionYield"] == 18.9
        assert data["beanInfo"]["origin"] == "Ethiopia"

    def test_generated_name(self, client, recipe_payload):
        payload = recipe_payload()
        del payload["recipeName"]
        response = client.post("/api/recipes", json=payload)
        assert response.status_code == 201
        assert response.json()["recipeName"].startswith("Ethiopia - ")

    def test_validation_errors(self, client, recipe_payload):
        """Should return 422 with every failing field."""
        payload = recipe_payload(brewingParameters={"waterTemperature": 50})
        payload["sensationRecord"] = {}
        response = client.post("/api/recipes", json=payload)
        assert response.status_code == 422
        data = response.json()
        assert data["detail"] == "Validation failed"
        fields = [e["field"] for e in data["errors"]]
        assert "brewingParameters.waterTemperature" in fields
        assert "sensationRecord" in fields

    def test_unknown_collection(self, client, recipe_payload):
        response = client.post("/api/recipes", json=recipe_payload(collections=[str(uuid.uuid4())]))
        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "collections"


class TestGetRecipe:
    def test_get_existing(self, client, recipe_factory):
        recipe = recipe_factory()
        response = client.get(f"/api/recipes/{recipe.id}")
        assert response.status_code == 200
        assert response.json()["recipeId"] == str(recipe.id)

    def test_get_not_found(self, client, db):
        response = client.get(f"/api/recipes/{uuid.uuid4()}")
        assert response.status_code == 404

    def test_invalid_id(self, client, db):
        response = client.get("/api/recipes/not-a-uuid")
        assert response.status_code == 422


class TestListRecipes:
    def test_list_empty(self, client, db):
        response = client.get("/api/recipes")
        assert response.status_code == 200
        assert response.json() == {"recipes": [], "count": 0}

    def test_filters(self, client, recipe_factory):
        recipe_factory(recipeName="Kenyan", beanInfo={"origin": "Kenya"}, isFavorite=True)
        recipe_factory(recipeName="Ethiopian")

        data = client.get("/api/recipes?origin=Kenya").json()
        assert [r["recipeName"] for r in data["recipes"]] == ["Kenyan"]

        data = client.get("/api/recipes?favorites_only=true").json()
        assert data["count"] == 1

    def test_bad_sort_rejected(self, client, db):
        response = client.get("/api/recipes?sort_by=water")
        assert response.status_code == 422

    def test_summary(self, client, recipe_factory):
        recipe_factory()
        data = client.get("/api/recipes/summary").json()
        assert data[0]["origin"] == "Ethiopia"
        assert data[0]["coffeeWaterRatio"] == 16.0
        assert "beanInfo" not in data[0]

    def test_search(self, client, recipe_factory):
        recipe_factory()
        recipe_factory(recipeName="Other", sensationRecord={"tastingNotes": "Chocolate"})
        data = client.get("/api/recipes/search?q=bergamot").json()
        assert [r["recipeName"] for r in data["recipes"]] == ["Morning V60"]

    def test_count(self, client, recipe_factory):
        recipe_factory()
        recipe_factory()
        assert client.get("/api/recipes/stats/count").json() == {"count": 2}


class TestUpdateRecipe:
    def test_update(self, client, recipe_factory, recipe_payload):
        recipe = recipe_factory()
        response = client.put(
            f"/api/recipes/{recipe.id}",
            json=recipe_payload(recipeName="Tweaked", measurements={"coffeeBeans": 16}),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["recipeName"] == "Tweaked"
        assert data["measurements"]["coffeeWaterRatio"] == 20.0

    def test_update_not_found(self, client, recipe_payload):
        response = client.put(f"/api/recipes/{uuid.uuid4()}", json=recipe_payload())
        assert response.status_code == 404

    def test_update_invalid(self, client, recipe_factory, recipe_payload):
        recipe = recipe_factory()
        response = client.put(f"/api/recipes/{recipe.id}", json=recipe_payload(measurements={"water": -1}))
        assert response.status_code == 422


class TestDeleteRecipe:
    def test_delete(self, client, recipe_factory):
        recipe = recipe_factory()
        response = client.delete(f"/api/recipes/{recipe.id}")
        assert response.status_code == 204
        assert client.get(f"/api/recipes/{recipe.id}").status_code == 404

    def test_delete_not_found(self, client, db):
        assert client.delete(f"/api/recipes/{uuid.uuid4()}").status_code == 404

    def test_batch_delete(self, client, recipe_factory):
        recipe = recipe_factory()
        missing = str(uuid.uuid4())
        response = client.post(
            "/api/recipes/batch-delete", json={"recipeIds": [str(recipe.id), missing]}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["deleted"] == [str(recipe.id)]
        assert data["failed"] == [missing]


class TestFavoriteAndCollections:
    def test_toggle_favorite(self, client, recipe_factory):
        recipe = recipe_factory()
        response = client.patch(f"/api/recipes/{recipe.id}/favorite")
        assert response.status_code == 200
        assert response.json()["isFavorite"] is True

    def test_recipe_collections(self, client, recipe_factory, collection_factory):
        collection = collection_factory(name="Daily")
        recipe = recipe_factory(collections=[str(collection.id)])
        data = client.get(f"/api/recipes/{recipe.id}/collections").json()
        assert data["count"] == 1
        assert data["collections"][0]["name"] == "Daily"


class TestCloneRecipe:
    def test_clone_default(self, client, recipe_factory):
        recipe = recipe_factory()
        response = client.post(f"/api/recipes/{recipe.id}/clone")
        assert response.status_code == 201
        assert response.json()["recipeName"] == "Morning V60 - Clone"

    def test_clone_with_template(self, client, recipe_factory):
        recipe = recipe_factory()
        response = client.post(f"/api/recipes/{recipe.id}/clone", json={"templateId": "experiment_base"})
        assert response.status_code == 201
        data = response.json()
        assert " Experiment (" in data["recipeName"]
        assert data["sensationRecord"]["overallImpression"] is None

    def test_clone_unknown_template(self, client, recipe_factory):
        recipe = recipe_factory()
        response = client.post(f"/api/recipes/{recipe.id}/clone", json={"templateId": "nope"})
        assert response.status_code == 404

    def test_clone_not_found(self, client, db):
        assert client.post(f"/api/recipes/{uuid.uuid4()}/clone").status_code == 404

    def test_batch_clone(self, client, recipe_factory):
        first = recipe_factory()
        second = recipe_factory(recipeName="Second")
        response = client.post(
            "/api/recipes/clone/batch",
            json={"recipeIds": [str(first.id), str(second.id)], "options": {"templateId": "exact_copy"}},
        )
        assert response.status_code == 200
        assert response.json()["successful"] == 2
        assert client.get("/api/recipes/stats/count").json()["count"] == 4

    def test_clone_suggestion(self, client, recipe_factory):
        recipe = recipe_factory()
        data = client.get(f"/api/recipes/{recipe.id}/clone-suggestion").json()
        assert data["id"] == "exact_copy"

    def test_clone_history_and_templates(self, client, recipe_factory):
        recipe = recipe_factory()
        client.post(f"/api/recipes/{recipe.id}/clone", json={"templateId": "grind_variation"})

        templates = client.get("/api/clones/templates").json()
        assert len(templates) == 6
        assert templates[0]["preserveRatings"] is True

        history = client.get("/api/clones/history").json()
        assert history[0]["originalId"] == str(recipe.id)
        assert history[0]["templateUsed"] == "grind_variation"

        stats = client.get("/api/clones/stats").json()
        assert stats["totalClones"] == 1
        assert stats["mostUsedTemplate"] == "grind_variation"

        assert client.delete("/api/clones/history").status_code == 204
        assert client.get("/api/clones/history").json() == []


def test_health(client):
    assert client.get("/api/health").json()["status"] == "healthy"
    assert client.get("/health").status_code == 200
