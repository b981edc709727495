"""Tests for brewlog/services/clone_service.py - cloning, templates and history."""
import uuid
from datetime import date, datetime, timedelta

import pytest

from brewlog.schemas.clone import CloneOptions
from brewlog.services import clone_service, recipe_store
from brewlog.services.constants import MAX_RECENT_CLONES
from brewlog.services.errors import RecipeNotFoundError, TemplateNotFoundError
from brewlog.services.kv_store import CLONE_HISTORY

TODAY = date(2026, 10, 17)


@pytest.fixture
def original(recipe_factory, collection_factory):
    collection = collection_factory(name="Keepers")
    payload_sca = {
        "fragrance": 8, "aroma": 8, "flavor": 8, "aftertaste": 8,
        "acidity": 8, "body": 8, "balance": 8, "overall": 8,
    }
    return recipe_factory(
        isFavorite=True,
        collections=[str(collection.id)],
        sensationRecord={"evaluationSystem": "traditional-sca", "traditionalSCA": payload_sca},
    )


def _clone(db, store, recipe, **options):
    clone = clone_service.clone_recipe(db, store, recipe.id, CloneOptions(**options), today=TODAY)
    return recipe_store.recipe_to_response(clone)


# ============================================================================
# Naming
# ============================================================================


class TestGenerateCloneName:
    def test_new_name_wins(self):
        assert clone_service.generate_clone_name("V60", new_name="  Mine ", add_suffix=True) == "Mine"

    def test_default_without_suffix(self):
        assert clone_service.generate_clone_name("V60") == "V60 - Clone"

    def test_suffix_with_date(self):
        name = clone_service.generate_clone_name("V60", add_suffix=True, suffix="Copy", today=TODAY)
        assert name == "V60 Copy (2026-10-17)"

    def test_strips_previous_suffix(self):
        """Should not stack suffixes when cloning a clone."""
        name = clone_service.generate_clone_name("V60 Copy 2", add_suffix=True, suffix="Copy", today=TODAY)
        assert name == "V60 Copy (2026-10-17)"

    def test_strips_any_known_suffix(self):
        name = clone_service.generate_clone_name("Brew Test (3)", add_suffix=True, suffix="Grind Test", today=TODAY)
        assert name == "Brew Grind Test (2026-10-17)"


# ============================================================================
# Cloning
# ============================================================================


class TestCloneRecipe:
    def test_default_clone(self, db, store, original):
        """Should keep ratings and drop collections and favorite."""
        clone = _clone(db, store, original)
        assert clone.recipe_id != original.id
        assert clone.recipe_name == "Morning V60 - Clone"
        assert clone.sensation_record.overall_impression == 8
        assert clone.collections == []
        assert clone.is_favorite is False

    def test_exact_copy(self, db, store, original):
        clone = _clone(db, store, original, template_id="exact_copy")
        assert clone.recipe_name == "Morning V60 Copy (2026-10-17)"
        assert clone.collections == original.collection_ids
        assert clone.sensation_record.traditional_sca.final_score == 64.0

    def test_experiment_base_clears_ratings(self, db, store, original):
        clone = _clone(db, store, original, template_id="experiment_base")
        s = clone.sensation_record
        assert s.overall_impression is None
        assert s.acidity is None
        assert s.traditional_sca is None
        assert s.evaluation_system is None
        assert s.tasting_notes == "Jasmine, bergamot"
        assert clone.collections == original.collection_ids

    def test_placeholder_note_when_none(self, db, store, recipe_factory):
        recipe = recipe_factory(sensationRecord={"tastingNotes": None})
        clone = _clone(db, store, recipe, template_id="experiment_base")
        assert clone.sensation_record.tasting_notes == "Cloned from Morning V60 - not yet tasted"

    def test_grind_variation(self, db, store, original):
        clone = _clone(db, store, original, template_id="grind_variation")
        assert clone.recipe_name == "Morning V60 Grind Test (2026-10-17)"
        assert clone.sensation_record.tasting_notes.startswith("Grind size experiment")
        assert clone.collections == []

    def test_ratio_variation_resets_extraction(self, db, store, original):
        clone = _clone(db, store, original, template_id="ratio_variation")
        m = clone.measurements
        assert m.tds is None
        assert m.brewed_coffee_weight is None
        assert m.extraction_yield is None
        assert m.coffee_beans == 20
        assert m.water == 320
        assert m.coffee_water_ratio == 16.0

    def test_temperature_variation(self, db, store, original):
        clone = _clone(db, store, original, template_id="temperature_variation")
        assert clone.brewing_parameters.water_temperature is None
        assert clone.brewing_parameters.grinder_model == "Comandante C40"

    def test_method_variation(self, db, store, original):
        clone = _clone(db, store, original, template_id="method_variation")
        assert clone.brewing_parameters.brewing_method is None
        assert clone.brewing_parameters.filtering_tools is None

    def test_options_override_template(self, db, store, original):
        clone = _clone(
            db, store, original,
            template_id="experiment_base", preserve_ratings=True, preserve_favorite=True, new_name="Retry",
        )
        assert clone.recipe_name == "Retry"
        assert clone.sensation_record.overall_impression == 8
        assert clone.is_favorite is True

    def test_original_untouched(self, db, store, original):
        _clone(db, store, original, template_id="method_variation")
        db.refresh(original)
        assert original.brewing_method == "pour-over"
        assert recipe_store.count_recipes(db) == 2

    def test_unknown_template(self, db, store, original):
        with pytest.raises(TemplateNotFoundError):
            _clone(db, store, original, template_id="nope")

    def test_unknown_recipe(self, db, store):
        with pytest.raises(RecipeNotFoundError):
            clone_service.clone_recipe(db, store, uuid.uuid4())

    def test_history_and_counter(self, db, store, original):
        clone = _clone(db, store, original, template_id="exact_copy")
        history = clone_service.get_clone_history(store)
        assert len(history) == 1
        assert history[0].original_id == original.id
        assert history[0].clone_id == clone.recipe_id
        assert history[0].template_used == "exact_copy"
        assert clone_service.clone_statistics(store).total_clones == 1

    def test_history_bounded(self, db, store, original):
        for _ in range(MAX_RECENT_CLONES + 2):
            _clone(db, store, original)
        assert len(clone_service.get_clone_history(store)) == MAX_RECENT_CLONES
        assert clone_service.clone_statistics(store).total_clones == MAX_RECENT_CLONES + 2


class TestBatchClone:
    def test_partial_failure(self, db, store, original):
        missing = uuid.uuid4()
        result = clone_service.batch_clone_recipes(
            db, store, [original.id, missing], CloneOptions(template_id="experiment_base", new_name="Ignored")
        )
        assert result.total == 2
        assert result.successful == 1
        assert result.failed == 1
        assert result.results[1].original_id == missing
        assert result.results[1].success is False

        clone = recipe_store.get_recipe(db, result.results[0].clone_id)
        assert clone.recipe_name != "Ignored"

    def test_unknown_template_fails_fast(self, db, store, original):
        with pytest.raises(TemplateNotFoundError):
            clone_service.batch_clone_recipes(db, store, [original.id], CloneOptions(template_id="nope"))


class TestCloneStatistics:
    def test_empty(self, store):
        stats = clone_service.clone_statistics(store)
        assert stats.total_clones == 0
        assert stats.most_used_template is None

    def test_aggregates(self, store):
        now = datetime(2026, 10, 17, 12, 0)
        entries = [
            {"originalName": "A", "template": "exact_copy", "at": now - timedelta(days=1)},
            {"originalName": "A", "template": "exact_copy", "at": now - timedelta(days=2)},
            {"originalName": "B", "template": None, "at": now - timedelta(days=30)},
        ]
        store.set(CLONE_HISTORY, [
            {
                "originalId": str(uuid.uuid4()),
                "originalName": e["originalName"],
                "cloneId": str(uuid.uuid4()),
                "cloneName": f"{e['originalName']} - Clone",
                "templateUsed": e["template"],
                "clonedAt": e["at"].isoformat(),
            }
            for e in entries
        ])

        stats = clone_service.clone_statistics(store, now=now)
        assert stats.total_clones == 3
        assert stats.templates_used == {"exact_copy": 2}
        assert stats.most_used_template == "exact_copy"
        assert stats.most_cloned_recipe == "A"
        assert stats.recent_activity == 2


class TestSuggestTemplate:
    def test_well_rated_recipe(self, original):
        assert clone_service.suggest_template(recipe_store.recipe_to_response(original)).id == "exact_copy"

    def test_low_rating(self, recipe_factory):
        recipe = recipe_factory(sensationRecord={"overallImpression": 5})
        assert clone_service.suggest_template(recipe_store.recipe_to_response(recipe)).id == "experiment_base"
