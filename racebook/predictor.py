"""
Heuristic race predictor.

Scores each horse in a race with a noisy heuristic (random base score nudged
by shorter odds and lighter weight) and keeps the three most confident picks.
This is not a trained model; there is no form data behind the "form" factor.

Usage:
    from racebook.predictor import Predictor

    predictor = Predictor(repo)
    result = predictor.make_prediction(race_id)

    race = repo.get_race_by_id(race_id)
    print(f"Top pick: {top_pick(race)}")
"""

import random
from dataclasses import dataclass, field
from typing import Optional

from racebook.logging import LogContext, get_logger
from racebook.normalize import fold_name, parse_decimal
from racebook.repository import MAX_PREDICTIONS, RaceRepository
from racebook.results import RepoResult

logger = get_logger(__name__)

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95

# Odds/weight above these caps earn no boost
ODDS_CAP = 20.0
WEIGHT_CAP = 60.0

FORM_PLACEHOLDER = "Unknown"


@dataclass
class Prediction:
    """One ranked pick for a race."""

    horse: str  # name of the embedded horse
    confidence: float  # 0.1 - 0.95
    factors: dict = field(default_factory=dict)
    horse_id: Optional[str] = None  # registered horse, when the name matches one

    def to_dict(self) -> dict:
        result = {
            "horse": self.horse,
            "confidence": self.confidence,
            "factors": self.factors,
        }
        if self.horse_id is not None:
            result["horseId"] = self.horse_id
        return result


def score_horse(horse: dict, rng: random.Random) -> float:
    """Raw heuristic score for one horse (roughly 0-150)."""
    score = rng.random() * 100

    # Shorter odds score higher
    if horse.get("odds"):
        odds = parse_decimal(horse["odds"])
        if odds is not None:
            score += (ODDS_CAP - min(odds, ODDS_CAP)) * 2

    # Lighter weight scores higher
    if horse.get("weight"):
        weight = parse_decimal(horse["weight"])
        if weight is not None:
            score += (WEIGHT_CAP - min(weight, WEIGHT_CAP)) * 0.5

    score += (rng.random() - 0.5) * 20
    return score


def generate_prediction(
    race: dict,
    rng: Optional[random.Random] = None,
    horse_ids: Optional[dict[str, str]] = None,
) -> list[Prediction]:
    """
    Rank the horses in a race.

    Args:
        race: Stored race dict with an embedded "horses" list
        rng: Random source (module random if omitted)
        horse_ids: Optional folded-name -> registered horse id lookup

    Returns:
        Up to 3 predictions, highest confidence first. Empty if the race
        has no horses.
    """
    horses = race.get("horses") or []
    if not horses:
        return []

    rng = rng or random.Random()
    horse_ids = horse_ids or {}

    predictions = []
    for horse in horses:
        score = score_horse(horse, rng)
        confidence = min(max(score / 100, MIN_CONFIDENCE), MAX_CONFIDENCE)
        predictions.append(
            Prediction(
                horse=horse.get("name"),
                confidence=confidence,
                factors={
                    "odds": horse.get("odds"),
                    "weight": horse.get("weight"),
                    "form": FORM_PLACEHOLDER,
                },
                horse_id=horse_ids.get(fold_name(horse.get("name"))),
            )
        )

    predictions.sort(key=lambda p: p.confidence, reverse=True)
    return predictions[:MAX_PREDICTIONS]


def top_pick(race: dict) -> Optional[str]:
    """
    Name of the most confident prediction for a race.

    Legacy name-based link; prefer top_pick_horse_id for new code.
    """
    predictions = race.get("predictions") or []
    if not predictions:
        return None
    return predictions[0].get("horse")


def top_pick_horse_id(race: dict) -> Optional[str]:
    """Registered horse id of the most confident prediction, if linked."""
    predictions = race.get("predictions") or []
    if not predictions:
        return None
    return predictions[0].get("horseId")


class Predictor:
    """
    Generates and stores predictions for races held in a repository.
    """

    def __init__(self, repository: RaceRepository, rng: Optional[random.Random] = None):
        """
        Args:
            repository: Where races are read from and predictions written to
            rng: Random source; pass a seeded random.Random for repeatable runs
        """
        self.repository = repository
        self.rng = rng or random.Random()

    def _horse_ids(self) -> dict[str, str]:
        return {
            fold_name(h.get("name")): h.get("id")
            for h in self.repository.get_horses()
            if h.get("name") and h.get("id")
        }

    def make_prediction(self, race_id: str) -> RepoResult:
        """
        Predict a stored race and save the picks onto it.

        Returns NOT_FOUND for an unknown race, VALIDATION_FAILED when the
        race has no horses to rank.
        """
        with LogContext(logger, race_id=race_id):
            race = self.repository.get_race_by_id(race_id)
            if race is None:
                logger.info("Cannot make prediction: race not found")
                return RepoResult.not_found(race_id)

            if not race.get("horses"):
                logger.warning("Cannot make prediction: race has no horses")
                return RepoResult.validation_failed("Race has no horses", record_id=race_id)

            predictions = generate_prediction(race, self.rng, self._horse_ids())
            if not predictions:
                logger.warning("Failed to generate predictions")
                return RepoResult.validation_failed("No predictions generated", record_id=race_id)

            result = self.repository.add_prediction(race_id, predictions)
            if result:
                top = predictions[0]
                logger.info(f"Top pick {top.horse} ({top.confidence:.0%})")
            return result

    def predict_upcoming(self, overwrite: bool = False) -> dict[str, RepoResult]:
        """
        Predict every upcoming race.

        Args:
            overwrite: Re-predict races that already carry predictions

        Returns:
            Dict of race id -> RepoResult
        """
        results = {}
        for race in self.repository.get_upcoming_races():
            if race.get("predictions") and not overwrite:
                continue
            results[race.get("id")] = self.make_prediction(race.get("id"))
        return results
