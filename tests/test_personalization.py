import pytest

from conftest import FakeProductRepo, make_product
from reco_engine.domain.services.personalization_svc import (
    UserPreferences,
    derive_preferences,
    personalization_score,
    personalized_recommendations,
    score_personalized,
)


def test_derive_preferences_tallies_history():
    history = [
        make_product("a", category_id="seeds", brand="Bio", price=100),
        make_product("b", category_id="seeds", brand="Agro", price=300),
        make_product("c", category_id="tools", brand="Bio", price=200),
    ]
    prefs = derive_preferences(history, top_n=1)
    assert prefs.categories == ["seeds"]
    assert prefs.brands == ["Bio"]
    assert prefs.price_range == (100, 300)


def test_empty_history_has_no_preferences():
    prefs = derive_preferences([])
    assert prefs.categories == [] and prefs.brands == [] and prefs.price_range is None


def test_score_components():
    prefs = UserPreferences(categories=["seeds"], brands=["Bio"], price_range=(50, 150))
    assert personalization_score(make_product("x", category_id="seeds", brand="Bio", price=100), prefs) == pytest.approx(0.9)
    assert personalization_score(make_product("x", category_id="tools", brand="Bio", price=999), prefs) == pytest.approx(0.3)
    assert personalization_score(make_product("x", category_id="tools", brand="Other", price=100), prefs) == pytest.approx(0.2)


def test_keeps_strictly_above_threshold():
    prefs = UserPreferences(categories=["seeds"], brands=["Bio"], price_range=(50, 150))
    pool = [
        make_product("match", category_id="seeds", brand="Bio", price=100),
        make_product("brand-only", category_id="tools", brand="Bio", price=999),
        make_product("cat-only", category_id="seeds", brand="Other", price=999),
    ]
    recs = score_personalized(pool, prefs)
    assert [r.product_id for r in recs] == ["match", "cat-only"]
    assert recs[0].confidence == pytest.approx(0.9 * 0.85)
    assert recs[0].reason == "Matches your interests"
    assert recs[0].type == "personalized"


async def test_profile_resolved_from_catalog(catalog):
    repo = FakeProductRepo(catalog)
    recs = await personalized_recommendations(repo, history_ids=["fert-1", "fert-2", "fert-1"], candidates=catalog)
    ids = [r.product_id for r in recs]
    assert ids[:2] == ["fert-1", "fert-2"]
    assert "tool-1" not in ids
    assert len(recs) <= 5


async def test_no_history_skips_lookup(catalog):
    repo = FakeProductRepo(catalog)
    assert await personalized_recommendations(repo, history_ids=[], candidates=catalog) == []
    assert repo.calls["get_many_by_product_ids"] == 0
