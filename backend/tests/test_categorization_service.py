"""Tests for the categorization orchestrator."""

import pytest
from sqlalchemy import text

from app.ai.classifier import AIClassification
from app.exceptions import AIProviderTimeout, AICircuitOpen, LearnedStoreUnavailable
from app.models.category import Category, CategorizationMethod
from app.services.categorization_service import CategorizationEngine, build_ai_text
from app.services.correction_service import correct_category
from app.services.learned_pattern_store import LearnedPatternStore

from conftest import USER_ID, OTHER_USER_ID, FakeAIClassifier


class TestTierOrder:
    """Test learned > rule > AI > default."""

    @pytest.mark.asyncio
    async def test_learned_beats_rule(self, db_session, engine, fake_ai):
        LearnedPatternStore(db_session).upsert(USER_ID, "uber trip help uber com", Category.rent)
        db_session.commit()

        outcome = await engine.resolve(USER_ID, "UBER *TRIP HELP.UBER.COM")

        assert outcome.category == Category.rent
        assert outcome.method == CategorizationMethod.learned_pattern
        assert outcome.confidence == 1.0
        assert outcome.needs_review is False
        assert fake_ai.calls == []

    @pytest.mark.asyncio
    async def test_rule_beats_ai(self, engine, fake_ai):
        outcome = await engine.resolve(USER_ID, "UBER *TRIP HELP.UBER.COM")

        assert outcome.category == Category.travel
        assert outcome.method == CategorizationMethod.rule_based
        assert outcome.confidence == 0.9
        assert outcome.needs_review is False
        assert fake_ai.calls == []

    @pytest.mark.asyncio
    async def test_low_confidence_rule_flagged(self, engine):
        outcome = await engine.resolve(USER_ID, "AMAZON MKTPLACE PMTS")

        assert outcome.method == CategorizationMethod.rule_based
        assert outcome.confidence == 0.65
        assert outcome.needs_review is True

    @pytest.mark.asyncio
    async def test_ai_fallback(self, engine, fake_ai):
        outcome = await engine.resolve(USER_ID, "STARBUCKS #4821 SEATTLE WA")

        assert outcome.category == Category.meals_entertainment
        assert outcome.method == CategorizationMethod.ai_fallback
        assert outcome.confidence == 0.55
        assert outcome.needs_review is True
        assert fake_ai.calls == ["STARBUCKS #4821 SEATTLE WA"]

    @pytest.mark.asyncio
    async def test_ai_score_clamped(self, db_session, rules):
        ai = FakeAIClassifier(result=AIClassification(Category.taxes, 1.4))
        engine = CategorizationEngine(db_session, rules, ai, review_threshold=0.75)

        outcome = await engine.resolve(USER_ID, "STATE OF WA DOR")

        assert outcome.confidence == 1.0
        assert outcome.needs_review is False

    @pytest.mark.asyncio
    async def test_learned_pattern_is_per_user(self, db_session, engine):
        LearnedPatternStore(db_session).upsert(OTHER_USER_ID, "starbucks seattle wa", Category.travel)
        db_session.commit()

        outcome = await engine.resolve(USER_ID, "STARBUCKS #4821 SEATTLE WA")

        assert outcome.method == CategorizationMethod.ai_fallback


class TestDegradation:
    """Tier failures never abort categorization."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [AIProviderTimeout("slow"), AICircuitOpen("open")])
    async def test_ai_failure_falls_to_default(self, db_session, rules, error):
        engine = CategorizationEngine(db_session, rules, FakeAIClassifier(error=error), review_threshold=0.75)

        outcome = await engine.resolve(USER_ID, "STARBUCKS #4821 SEATTLE WA")

        assert outcome.category == Category.other
        assert outcome.method is None
        assert outcome.confidence == 0.0
        assert outcome.needs_review is True

    @pytest.mark.asyncio
    async def test_ai_disabled_falls_to_default(self, db_session, rules):
        engine = CategorizationEngine(db_session, rules, None)

        outcome = await engine.resolve(USER_ID, "")

        assert outcome.category == Category.other
        assert outcome.needs_review is True

    @pytest.mark.asyncio
    async def test_store_unavailable_falls_to_rules(self, engine, monkeypatch):
        def broken_lookup(user_id, token):
            raise LearnedStoreUnavailable("database is gone")

        monkeypatch.setattr(engine.store, "lookup", broken_lookup)

        outcome = await engine.resolve(USER_ID, "UBER *TRIP HELP.UBER.COM")

        assert outcome.method == CategorizationMethod.rule_based
        assert outcome.category == Category.travel

    @pytest.mark.asyncio
    async def test_failed_lookup_query_leaves_session_usable(self, db_session, engine, make_transaction):
        ride = make_transaction("LYFT RIDE")
        coffee = make_transaction("STARBUCKS #1 SEATTLE WA")
        db_session.execute(text("DROP TABLE learned_patterns"))
        db_session.commit()

        await engine.categorize_many([ride, coffee])
        db_session.refresh(ride)
        db_session.refresh(coffee)

        assert ride.categorization_method == CategorizationMethod.rule_based
        assert ride.category == Category.travel
        assert coffee.categorization_method == CategorizationMethod.ai_fallback
        assert coffee.categorized_at is not None

    @pytest.mark.asyncio
    async def test_nan_ai_score_is_reviewed(self, db_session, rules):
        ai = FakeAIClassifier(result=AIClassification(Category.taxes, float("nan")))
        engine = CategorizationEngine(db_session, rules, ai, review_threshold=0.75)

        outcome = await engine.resolve(USER_ID, "STATE OF WA DOR")

        assert outcome.method == CategorizationMethod.ai_fallback
        assert outcome.confidence == 0.0
        assert outcome.needs_review is True


class TestReviewThreshold:

    @pytest.mark.asyncio
    async def test_learned_not_flagged_at_max_threshold(self, db_session, rules, fake_ai):
        LearnedPatternStore(db_session).upsert(USER_ID, "uber trip help uber com", Category.travel)
        db_session.commit()
        engine = CategorizationEngine(db_session, rules, fake_ai, review_threshold=1.0)

        learned = await engine.resolve(USER_ID, "UBER *TRIP HELP.UBER.COM")
        rule = await engine.resolve(USER_ID, "LYFT RIDE")

        assert learned.needs_review is False
        assert rule.needs_review is True


class TestCategorizePersistence:

    @pytest.mark.asyncio
    async def test_categorize_writes_fields(self, engine, make_transaction):
        txn = make_transaction("UBER *TRIP HELP.UBER.COM")

        await engine.categorize(txn)

        assert txn.category == Category.travel
        assert txn.categorization_method == CategorizationMethod.rule_based
        assert txn.confidence == 0.9
        assert txn.needs_review is False
        assert txn.categorized_at is not None

    @pytest.mark.asyncio
    async def test_categorize_many(self, engine, make_transaction):
        txns = [make_transaction("LYFT RIDE"), make_transaction("STARBUCKS #1 SEATTLE WA"), make_transaction("")]

        await engine.categorize_many(txns)

        assert [t.categorization_method for t in txns] == [
            CategorizationMethod.rule_based,
            CategorizationMethod.ai_fallback,
            CategorizationMethod.ai_fallback,
        ]
        assert all(t.category is not None for t in txns)


class TestStarbucksScenario:
    """Correction drives future transactions from the same merchant."""

    @pytest.mark.asyncio
    async def test_correction_then_next_sync(self, db_session, engine, make_transaction):
        first = make_transaction("STARBUCKS #4821 SEATTLE WA", amount="-6.45")
        await engine.categorize(first)

        assert first.categorization_method == CategorizationMethod.ai_fallback
        assert first.category == Category.meals_entertainment
        assert first.confidence == 0.55
        assert first.needs_review is True

        correct_category(db_session, USER_ID, first.id, "Travel")

        second = make_transaction("STARBUCKS #9931 SEATTLE WA", amount="-7.10")
        await engine.categorize(second)

        assert second.category == Category.travel
        assert second.categorization_method == CategorizationMethod.learned_pattern
        assert second.confidence == 1.0
        assert second.needs_review is False

    @pytest.mark.asyncio
    async def test_correction_does_not_touch_other_merchants(self, db_session, engine, make_transaction):
        coffee = make_transaction("STARBUCKS #4821 SEATTLE WA")
        fuel = make_transaction("SHELL OIL 57444 HOUSTON TX")
        await engine.categorize_many([coffee, fuel])
        before = (fuel.category, fuel.categorization_method, fuel.confidence, fuel.needs_review)

        correct_category(db_session, USER_ID, coffee.id, "Travel")
        await engine.categorize(make_transaction("STARBUCKS #77 SEATTLE WA"))
        db_session.refresh(fuel)

        assert (fuel.category, fuel.categorization_method, fuel.confidence, fuel.needs_review) == before


def test_build_ai_text():
    assert build_ai_text("  STARBUCKS   #4821  ") == "STARBUCKS #4821"
    assert build_ai_text("SQ *BLUE BOTTLE", "Blue Bottle Coffee") == "Blue Bottle Coffee - SQ *BLUE BOTTLE"
    assert build_ai_text("BLUE BOTTLE COFFEE 123", "Blue Bottle Coffee") == "BLUE BOTTLE COFFEE 123"
