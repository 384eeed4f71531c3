"""
Tests for the heuristic predictor.

Scores are random, so most tests only check ranges, ordering and counts.
Exact values are checked with a fixed random source.

Run with: python -m pytest tests/test_predictor.py -v
"""

import random

import pytest

from racebook.predictor import (
    FORM_PLACEHOLDER,
    MAX_CONFIDENCE,
    MIN_CONFIDENCE,
    Prediction,
    Predictor,
    generate_prediction,
    score_horse,
    top_pick,
    top_pick_horse_id,
)
from racebook.results import Outcome
from factories import make_race


class FixedRandom(random.Random):
    """random() always returns the same value."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


# =============================================================================
# SCORING
# =============================================================================

class TestScoreHorse:
    """Tests for score_horse()."""

    def test_no_odds_or_weight(self):
        # 0.5 * 100 base, zero jitter
        assert score_horse({"name": "A"}, FixedRandom(0.5)) == pytest.approx(50.0)

    def test_short_odds_and_light_weight_boost(self):
        horse = {"name": "A", "odds": "2.0", "weight": "52"}
        # 50 + (20 - 2) * 2 + (60 - 52) * 0.5
        assert score_horse(horse, FixedRandom(0.5)) == pytest.approx(90.0)

    def test_caps_give_no_boost(self):
        horse = {"name": "A", "odds": "35", "weight": "64"}
        assert score_horse(horse, FixedRandom(0.5)) == pytest.approx(50.0)

    def test_unparseable_values_ignored(self):
        horse = {"name": "A", "odds": "evens", "weight": ""}
        assert score_horse(horse, FixedRandom(0.5)) == pytest.approx(50.0)

    def test_numeric_values(self):
        horse = {"name": "A", "odds": 10, "weight": 50.0}
        assert score_horse(horse, FixedRandom(0.5)) == pytest.approx(75.0)

    def test_zero_odds_treated_as_missing(self):
        assert score_horse({"name": "A", "odds": 0}, FixedRandom(0.5)) == pytest.approx(50.0)

    def test_nan_values_treated_as_missing(self):
        horse = {"name": "A", "odds": float("nan"), "weight": float("nan")}
        assert score_horse(horse, FixedRandom(0.5)) == pytest.approx(50.0)


# =============================================================================
# GENERATE PREDICTION
# =============================================================================

class TestGeneratePrediction:
    """Tests for generate_prediction()."""

    def test_five_horses(self):
        predictions = generate_prediction(make_race())

        assert 0 < len(predictions) <= 3
        for p in predictions:
            assert MIN_CONFIDENCE <= p.confidence <= MAX_CONFIDENCE
        confidences = [p.confidence for p in predictions]
        assert confidences == sorted(confidences, reverse=True)

    def test_bounds_hold_over_many_runs(self):
        rng = random.Random(7)
        for _ in range(200):
            for p in generate_prediction(make_race(), rng):
                assert MIN_CONFIDENCE <= p.confidence <= MAX_CONFIDENCE

    def test_fewer_than_three_horses(self):
        race = make_race(horses=[{"name": "A"}, {"name": "B"}])
        assert len(generate_prediction(race)) == 2

    def test_no_horses(self):
        assert generate_prediction(make_race(horses=[])) == []
        assert generate_prediction({"name": "Empty"}) == []

    def test_seeded_runs_repeat(self):
        first = generate_prediction(make_race(), random.Random(42))
        second = generate_prediction(make_race(), random.Random(42))
        assert [p.to_dict() for p in first] == [p.to_dict() for p in second]

    def test_clamped_high(self):
        race = make_race(horses=[{"name": "A", "odds": "1", "weight": "40"}])
        assert generate_prediction(race, FixedRandom(0.5))[0].confidence == MAX_CONFIDENCE

    def test_clamped_low(self):
        # base 0, jitter -10
        race = make_race(horses=[{"name": "A"}])
        assert generate_prediction(race, FixedRandom(0.0))[0].confidence == MIN_CONFIDENCE

    def test_factors(self):
        race = make_race(horses=[{"name": "A", "odds": "4.0", "weight": "55.5"}])
        prediction = generate_prediction(race)[0]
        assert prediction.factors == {"odds": "4.0", "weight": "55.5", "form": FORM_PLACEHOLDER}

    def test_favourite_ranks_first_without_noise(self):
        race = make_race(horses=[
            {"name": "Outsider", "odds": "18", "weight": "59"},
            {"name": "Favourite", "odds": "2.5", "weight": "53"},
            {"name": "Middle", "odds": "8", "weight": "56"},
        ])
        predictions = generate_prediction(race, FixedRandom(0.3))
        assert [p.horse for p in predictions] == ["Favourite", "Middle", "Outsider"]

    def test_horse_id_linkage(self):
        race = make_race(horses=[{"name": "Star"}, {"name": "Comet"}])
        predictions = generate_prediction(race, horse_ids={"star": "h-1"})
        by_name = {p.horse: p for p in predictions}
        assert by_name["Star"].horse_id == "h-1"
        assert by_name["Comet"].horse_id is None


class TestPrediction:
    """Tests for the Prediction dataclass."""

    def test_to_dict_without_id(self):
        d = Prediction(horse="A", confidence=0.5, factors={"form": "Unknown"}).to_dict()
        assert d == {"horse": "A", "confidence": 0.5, "factors": {"form": "Unknown"}}

    def test_to_dict_with_id(self):
        d = Prediction(horse="A", confidence=0.5, horse_id="h-1").to_dict()
        assert d["horseId"] == "h-1"


class TestTopPick:
    """Tests for top_pick() / top_pick_horse_id()."""

    def test_top_pick(self):
        race = {"predictions": [{"horse": "A", "horseId": "h-1"}, {"horse": "B"}]}
        assert top_pick(race) == "A"
        assert top_pick_horse_id(race) == "h-1"

    def test_no_predictions(self):
        assert top_pick({}) is None
        assert top_pick_horse_id({"predictions": []}) is None


# =============================================================================
# PREDICTOR
# =============================================================================

class TestPredictor:
    """Tests for Predictor.make_prediction()."""

    def test_make_prediction_stores_picks(self, repo):
        repo.add_race(make_race(id="1"))
        result = Predictor(repo, random.Random(1)).make_prediction("1")

        assert result.ok is True
        race = repo.get_race_by_id("1")
        assert 0 < len(race["predictions"]) <= 3
        assert race["predictedAt"]
        confidences = [p["confidence"] for p in race["predictions"]]
        assert confidences == sorted(confidences, reverse=True)

    def test_links_registered_horses(self, repo):
        added = repo.add_horse({"name": "thunder strike"})
        repo.add_race(make_race(id="1", horses=[{"name": "Thunder Strike", "odds": "3.0"}]))

        Predictor(repo).make_prediction("1")
        race = repo.get_race_by_id("1")
        assert race["predictions"][0]["horseId"] == added.record_id
        assert top_pick_horse_id(race) == added.record_id

    def test_missing_race(self, repo):
        result = Predictor(repo).make_prediction("nope")
        assert result.ok is False
        assert result.outcome == Outcome.NOT_FOUND

    def test_imported_nan_odds_stay_in_bounds(self, repo):
        snapshot = (
            '{"races": [{"id": "1", "name": "R", "horses": '
            '[{"name": "A", "odds": NaN, "weight": NaN}, {"name": "B", "odds": "4.0"}]}]}'
        )
        assert repo.import_data(snapshot)

        assert Predictor(repo, random.Random(1)).make_prediction("1")
        for pick in repo.get_race_by_id("1")["predictions"]:
            assert MIN_CONFIDENCE <= pick["confidence"] <= MAX_CONFIDENCE

    def test_race_without_horses(self, repo):
        repo.add_race(make_race(id="1", horses=[]))
        result = Predictor(repo).make_prediction("1")
        assert result.outcome == Outcome.VALIDATION_FAILED
        assert "predictions" not in repo.get_race_by_id("1")

    def test_predict_upcoming(self, repo):
        repo.add_race(make_race(id="past", date="2026-10-01T10:00:00.000Z"))
        repo.add_race(make_race(id="soon", date="2026-10-18T10:00:00.000Z"))
        repo.add_race(make_race(id="done", date="2026-10-19T10:00:00.000Z"))
        repo.add_prediction("done", [{"horse": "Wind Runner", "confidence": 0.4}])

        results = Predictor(repo).predict_upcoming()
        assert list(results) == ["soon"]
        assert results["soon"].ok is True
        assert repo.get_race_by_id("done")["predictions"][0]["horse"] == "Wind Runner"

    def test_predict_upcoming_overwrite(self, repo):
        repo.add_race(make_race(id="done", date="2026-10-19T10:00:00.000Z"))
        repo.add_prediction("done", [{"horse": "Nobody", "confidence": 0.4}])

        results = Predictor(repo).predict_upcoming(overwrite=True)
        assert list(results) == ["done"]
        assert repo.get_race_by_id("done")["predictions"][0]["horse"] != "Nobody"
