"""
Statistics and recent activity.

Read-only aggregation over the stored races and horses.

Usage:
    from racebook.stats import get_stats, get_recent_activity

    stats = get_stats(repo)
    print(f"Accuracy: {stats.prediction_accuracy}% over {stats.total_predictions} races")

    for entry in get_recent_activity(repo):
        print(entry.date, entry.description)
"""

from dataclasses import dataclass

from racebook.normalize import parse_decimal, timestamp_sort_key
from racebook.predictor import top_pick
from racebook.repository import RaceRepository

RECENT_RACES = 3
RECENT_HORSES = 2
RECENT_PREDICTIONS = 2
ACTIVITY_LIMIT = 5


@dataclass
class Stats:
    """Dashboard totals."""

    total_races: int
    total_horses: int
    completed_races: int
    prediction_accuracy: str  # percentage to 1 decimal, e.g. "66.7"
    total_prize_money: float
    correct_predictions: int
    total_predictions: int

    def to_dict(self) -> dict:
        return {
            "totalRaces": self.total_races,
            "totalHorses": self.total_horses,
            "completedRaces": self.completed_races,
            "predictionAccuracy": self.prediction_accuracy,
            "totalPrizeMoney": self.total_prize_money,
            "correctPredictions": self.correct_predictions,
            "totalPredictions": self.total_predictions,
        }


@dataclass
class ActivityEntry:
    """One line of the recent activity feed."""

    description: str
    date: str
    type: str  # "race", "horse" or "prediction"

    def to_dict(self) -> dict:
        return {"description": self.description, "date": self.date, "type": self.type}


def is_correct_prediction(race: dict) -> bool:
    """True if the top pick's name exactly equals the recorded winner."""
    results = race.get("results") or {}
    pick = top_pick(race)
    return pick is not None and pick == results.get("winner")


def _prize_money(race: dict) -> float:
    value = race.get("prizeMoney")
    if not value:
        return 0.0
    return parse_decimal(value) or 0.0


def get_stats(repository: RaceRepository) -> Stats:
    """
    Aggregate counts and prediction accuracy.

    Accuracy only considers completed races that were predicted; it is
    0.0 when there are none.
    """
    races = repository.get_races()
    horses = repository.get_horses()

    completed = [race for race in races if race.get("results") is not None]
    predicted = [race for race in completed if race.get("predictions")]
    correct = [race for race in predicted if is_correct_prediction(race)]

    accuracy = len(correct) / len(predicted) * 100 if predicted else 0.0

    return Stats(
        total_races=len(races),
        total_horses=len(horses),
        completed_races=len(completed),
        prediction_accuracy=f"{accuracy:.1f}",
        total_prize_money=sum(_prize_money(race) for race in races),
        correct_predictions=len(correct),
        total_predictions=len(predicted),
    )


def _most_recent(records: list[dict], field: str, limit: int) -> list[dict]:
    dated = [record for record in records if record.get(field)]
    dated.sort(key=lambda record: timestamp_sort_key(record[field]), reverse=True)
    return dated[:limit]


def get_recent_activity(repository: RaceRepository) -> list[ActivityEntry]:
    """
    Newest five events across races added, horses added and predictions made.
    """
    races = repository.get_races()
    horses = repository.get_horses()
    activities = []

    for race in _most_recent(races, "createdAt", RECENT_RACES):
        activities.append(
            ActivityEntry(f'Race "{race.get("name")}" added', race["createdAt"], "race")
        )

    for horse in _most_recent(horses, "createdAt", RECENT_HORSES):
        activities.append(
            ActivityEntry(f'Horse "{horse.get("name")}" added', horse["createdAt"], "horse")
        )

    with_predictions = [race for race in races if race.get("predictions") is not None]
    for race in _most_recent(with_predictions, "predictedAt", RECENT_PREDICTIONS):
        activities.append(
            ActivityEntry(
                f'Prediction made for "{race.get("name")}"', race["predictedAt"], "prediction"
            )
        )

    activities.sort(key=lambda entry: timestamp_sort_key(entry.date), reverse=True)
    return activities[:ACTIVITY_LIMIT]
