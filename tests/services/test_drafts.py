"""Tests for brewlog/services/drafts.py - autosaved form drafts."""
from concurrent.futures import ThreadPoolExecutor

from brewlog.services import drafts
from brewlog.services.constants import MAX_DRAFTS
from brewlog.services.kv_store import DRAFTS


def _seed(store, count):
    store.set(DRAFTS, {
        f"recipe-{i}": {
            "draftId": f"recipe-{i}",
            "data": {"recipeName": f"Draft {i}"},
            "savedAt": f"2000-01-01T00:00:{i:02d}",
        }
        for i in range(count)
    })


class TestDrafts:
    def test_save_and_load(self, store):
        entry = drafts.save_draft(store, drafts.NEW_RECIPE_DRAFT, {"recipeName": "Half done"})
        assert entry["draftId"] == "new"

        loaded = drafts.load_draft(store, "new")
        assert loaded["data"] == {"recipeName": "Half done"}
        assert loaded["savedAt"] == entry["savedAt"]

    def test_save_overwrites_same_id(self, store):
        drafts.save_draft(store, "new", {"recipeName": "First"})
        drafts.save_draft(store, "new", {"recipeName": "Second"})
        assert len(drafts.list_drafts(store)) == 1
        assert drafts.load_draft(store, "new")["data"]["recipeName"] == "Second"

    def test_load_missing(self, store):
        assert drafts.load_draft(store, "nope") is None

    def test_list_newest_first(self, store):
        _seed(store, 3)
        assert [d["draftId"] for d in drafts.list_drafts(store)] == ["recipe-2", "recipe-1", "recipe-0"]

    def test_oldest_dropped_past_limit(self, store):
        """Should keep only the most recent drafts."""
        _seed(store, MAX_DRAFTS)
        drafts.save_draft(store, "new", {"recipeName": "Latest"})

        ids = [d["draftId"] for d in drafts.list_drafts(store)]
        assert len(ids) == MAX_DRAFTS
        assert ids[0] == "new"
        assert "recipe-0" not in ids

    def test_clear(self, store):
        drafts.save_draft(store, "new", {})
        assert drafts.clear_draft(store, "new") is True
        assert drafts.clear_draft(store, "new") is False

    def test_clear_all(self, store):
        _seed(store, 3)
        drafts.clear_all_drafts(store)
        assert drafts.list_drafts(store) == []

    def test_parallel_saves_all_kept(self, store):
        """Should keep every draft saved by overlapping requests."""
        ids = [f"recipe-{i}" for i in range(MAX_DRAFTS)]
        with ThreadPoolExecutor(max_workers=MAX_DRAFTS) as pool:
            list(pool.map(lambda draft_id: drafts.save_draft(store, draft_id, {}), ids))
        assert sorted(d["draftId"] for d in drafts.list_drafts(store)) == sorted(ids)
