"""Tests for draft endpoints."""


class TestDrafts:
    def test_save_and_get(self, client):
        response = client.put("/api/drafts/new", json={"recipeName": "Half done"})
        assert response.status_code == 200
        assert response.json()["draftId"] == "new"

        data = client.get("/api/drafts/new").json()
        assert data["data"] == {"recipeName": "Half done"}
        assert data["savedAt"]

    def test_get_missing(self, client):
        assert client.get("/api/drafts/new").status_code == 404

    def test_list(self, client):
        client.put("/api/drafts/new", json={"recipeName": "A"})
        client.put("/api/drafts/some-recipe-id", json={"recipeName": "B"})
        ids = {d["draftId"] for d in client.get("/api/drafts").json()}
        assert ids == {"new", "some-recipe-id"}

    def test_delete(self, client):
        client.put("/api/drafts/new", json={})
        assert client.delete("/api/drafts/new").status_code == 204
        assert client.delete("/api/drafts/new").status_code == 404

    def test_clear_all(self, client):
        client.put("/api/drafts/new", json={"recipeName": "A"})
        assert client.delete("/api/drafts").status_code == 204
        assert client.get("/api/drafts").json() == []
