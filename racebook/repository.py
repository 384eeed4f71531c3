"""
Race and horse repository.

Owns the two stored collections (races, horses), each kept as one JSON array
under a fixed key in a KeyValueStore. Every call reads the whole collection,
changes it in memory and writes the whole array back.

Usage:
    from racebook.repository import RaceRepository
    from racebook.storage import JsonFileStore

    repo = RaceRepository(JsonFileStore(DATA_DIR))

    result = repo.add_race({"name": "Maiden Race 1", "track": "Saratoga",
                            "date": "2026-10-20T14:00:00.000Z", "horses": [...]})
    if not result:
        print(result.message)

    repo.add_result(result.record_id, {"winner": "Thunder Strike"})
    snapshot = repo.export_data()
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from racebook.config import HORSES_KEY, RACES_KEY
from racebook.logging import get_logger, log_import_skip, log_store_failure
from racebook.normalize import (
    calendar_day,
    format_timestamp,
    names_match,
    parse_timestamp,
)
from racebook.results import RepoResult
from racebook.schemas import HorseInput, RaceInput, Snapshot
from racebook.storage import KeyValueStore, StoreError

logger = get_logger(__name__)

# A race never carries more than this many predictions
MAX_PREDICTIONS = 3

WRITE_ERRORS = (StoreError, TypeError, ValueError)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    """Collision-resistant id: epoch millis for readability plus a random suffix."""
    millis = int(utc_now().timestamp() * 1000)
    return f"{millis}-{uuid.uuid4().hex[:12]}"


def _confidence(prediction: dict) -> float:
    try:
        return float(prediction.get("confidence") or 0)
    except (TypeError, ValueError):
        return 0.0


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


class RaceRepository:
    """
    CRUD access to races and horses.

    Mutations return a RepoResult and never raise on store failures.
    Reads return an empty collection when stored data can't be loaded.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self.clock = clock or utc_now
        self.id_factory = id_factory or new_record_id

    # -------------------------------------------------------------------------
    # Storage plumbing
    # -------------------------------------------------------------------------

    def now(self) -> str:
        """Current time as a stored timestamp string."""
        return format_timestamp(self.clock())

    def _load(self, key: str) -> list[dict]:
        try:
            raw = self.store.get(key)
        except StoreError as e:
            log_store_failure(logger, "load", key, e)
            return []

        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            log_store_failure(logger, "load", key, e)
            return []

        if not isinstance(data, list):
            logger.warning(
                f"Stored {key} is not a list, treating as empty",
                extra={"key": key, "found": type(data).__name__},
            )
            return []

        records = [record for record in data if isinstance(record, dict)]
        if len(records) != len(data):
            logger.warning(
                f"Dropped non-object entries from stored {key}",
                extra={"key": key, "dropped": len(data) - len(records)},
            )
        return records

    def _write(
        self,
        key: str,
        records: list[dict],
        operation: str,
        record_id: Optional[str] = None,
    ) -> RepoResult:
        try:
            self.store.set(key, json.dumps(records))
        except WRITE_ERRORS as e:
            log_store_failure(logger, operation, key, e)
            return RepoResult.storage_failure(str(e), record_id=record_id, operation=operation)
        return RepoResult.success(record_id=record_id, operation=operation)

    # -------------------------------------------------------------------------
    # Races
    # -------------------------------------------------------------------------

    def add_race(self, race_data: dict) -> RepoResult:
        """
        Add a race.

        Keeps a caller-supplied id, otherwise assigns one. Always stamps
        createdAt with the current time.
        """
        try:
            validated = RaceInput.model_validate(race_data)
        except ValidationError as e:
            message = _validation_message(e)
            logger.warning(f"Rejected race: {message}")
            return RepoResult.validation_failed(message)

        race = dict(race_data)
        race["id"] = validated.id or self.id_factory()
        race["createdAt"] = self.now()

        races = self._load(RACES_KEY)
        races.append(race)
        result = self._write(RACES_KEY, races, "add_race", race["id"])
        if result:
            logger.info(f"Added race {race.get('name')}", extra={"race_id": race["id"]})
        return result

    def get_races(self) -> list[dict]:
        """All races in stored order."""
        return self._load(RACES_KEY)

    def get_race_by_id(self, race_id: str) -> Optional[dict]:
        for race in self.get_races():
            if race.get("id") == race_id:
                return race
        return None

    def get_upcoming_races(self, now: Optional[datetime] = None) -> list[dict]:
        """Races dated strictly after now, soonest first."""
        cutoff = parse_timestamp(now or self.clock())
        upcoming = []
        for race in self.get_races():
            race_date = parse_timestamp(race.get("date"))
            if race_date is not None and race_date > cutoff:
                upcoming.append((race_date, race))

        upcoming.sort(key=lambda pair: pair[0])
        return [race for _, race in upcoming]

    def update_race(self, race_id: str, updates: dict) -> RepoResult:
        """Shallow-merge updates into the race with this id."""
        races = self._load(RACES_KEY)
        for index, race in enumerate(races):
            if race.get("id") == race_id:
                races[index] = {**race, **updates}
                return self._write(RACES_KEY, races, "update_race", race_id)

        logger.info(f"Update skipped, race not found: {race_id}")
        return RepoResult.not_found(race_id)

    def delete_race(self, race_id: str) -> RepoResult:
        """
        Remove every race with this id.

        Deleting an id that isn't stored still succeeds.
        """
        races = self._load(RACES_KEY)
        remaining = [race for race in races if race.get("id") != race_id]
        removed = len(races) - len(remaining)
        result = self._write(RACES_KEY, remaining, "delete_race", race_id)
        if result:
            result.details["removed"] = removed
        return result

    # -------------------------------------------------------------------------
    # Horses
    # -------------------------------------------------------------------------

    def add_horse(self, horse_data: dict) -> RepoResult:
        """
        Register a horse.

        Names are unique ignoring case; a duplicate is rejected and nothing
        is written.
        """
        try:
            HorseInput.model_validate(horse_data)
        except ValidationError as e:
            message = _validation_message(e)
            logger.warning(f"Rejected horse: {message}")
            return RepoResult.validation_failed(message)

        horses = self._load(HORSES_KEY)
        name = horse_data["name"]
        if any(names_match(h.get("name"), name) for h in horses):
            logger.warning(f"Rejected horse: duplicate name {name!r}")
            return RepoResult.validation_failed(
                "A horse with this name already exists", name=name
            )

        horse = dict(horse_data)
        horse["id"] = str(horse_data.get("id") or self.id_factory())
        horse["createdAt"] = self.now()
        horses.append(horse)

        result = self._write(HORSES_KEY, horses, "add_horse", horse["id"])
        if result:
            logger.info(f"Added horse {name}", extra={"horse_id": horse["id"]})
        return result

    def get_horses(self) -> list[dict]:
        """All registered horses in insertion order."""
        return self._load(HORSES_KEY)

    def get_horse_by_id(self, horse_id: str) -> Optional[dict]:
        for horse in self.get_horses():
            if horse.get("id") == horse_id:
                return horse
        return None

    def get_horse_by_name(self, name: str) -> Optional[dict]:
        """Look up a registered horse by name, ignoring case."""
        for horse in self.get_horses():
            if names_match(horse.get("name"), name):
                return horse
        return None

    # -------------------------------------------------------------------------
    # Predictions & results
    # -------------------------------------------------------------------------

    def add_prediction(self, race_id: str, predictions: Iterable[Any]) -> RepoResult:
        """
        Attach predictions to a race and stamp predictedAt.

        Accepts Prediction objects or plain dicts. Stored highest confidence
        first, at most MAX_PREDICTIONS entries.
        """
        entries = [p.to_dict() if hasattr(p, "to_dict") else dict(p) for p in predictions]
        entries.sort(key=_confidence, reverse=True)
        entries = entries[:MAX_PREDICTIONS]

        races = self._load(RACES_KEY)
        for race in races:
            if race.get("id") == race_id:
                race["predictions"] = entries
                race["predictedAt"] = self.now()
                return self._write(RACES_KEY, races, "add_prediction", race_id)

        logger.info(f"Prediction skipped, race not found: {race_id}")
        return RepoResult.not_found(race_id)

    def get_predictions(self) -> list[dict]:
        """Races that carry at least one prediction."""
        return [race for race in self.get_races() if race.get("predictions")]

    def add_result(self, race_id: str, results: dict) -> RepoResult:
        """Record a race result (e.g. {"winner": "Star"}) and stamp completedAt."""
        races = self._load(RACES_KEY)
        for race in races:
            if race.get("id") == race_id:
                race["results"] = results
                race["completedAt"] = self.now()
                return self._write(RACES_KEY, races, "add_result", race_id)

        logger.info(f"Result skipped, race not found: {race_id}")
        return RepoResult.not_found(race_id)

    # -------------------------------------------------------------------------
    # Provider imports
    # -------------------------------------------------------------------------

    def import_races_from_api(self, api_races: Iterable[dict]) -> int:
        """
        Append provider races that aren't already stored.

        A race counts as already stored when name, track and calendar day
        all match. Returns the number of races added (0 if the write fails).
        """
        existing = self._load(RACES_KEY)
        imported = 0

        for api_race in api_races:
            try:
                RaceInput.model_validate(api_race)
            except ValidationError as e:
                log_import_skip(logger, None, None, None, _validation_message(e))
                continue

            name = api_race.get("name")
            track = api_race.get("track")
            day = calendar_day(api_race.get("date"))

            duplicate = any(
                race.get("name") == name
                and race.get("track") == track
                and calendar_day(race.get("date")) == day
                for race in existing
            )
            if duplicate:
                log_import_skip(logger, name, track, api_race.get("date"), "already stored")
                continue

            race = dict(api_race)
            race.setdefault("id", self.id_factory())
            race.setdefault("createdAt", self.now())
            existing.append(race)
            imported += 1

        if not self._write(RACES_KEY, existing, "import_races_from_api"):
            return 0

        logger.info(f"Imported {imported} races from provider feed")
        return imported

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def export_data(self) -> str:
        """Snapshot of both collections as pretty-printed JSON."""
        data = {
            "races": self.get_races(),
            "horses": self.get_horses(),
            "exportedAt": self.now(),
        }
        return json.dumps(data, indent=2)

    def import_data(self, json_data: str) -> RepoResult:
        """
        Restore a snapshot.

        races and horses are each overwritten only when present in the
        snapshot; a missing key leaves that stored collection untouched.
        """
        try:
            snapshot = Snapshot.model_validate_json(json_data)
        except ValidationError as e:
            message = _validation_message(e)
            logger.warning(f"Rejected snapshot: {message}")
            return RepoResult.validation_failed(message)

        written = []
        if snapshot.races is not None:
            result = self._write(RACES_KEY, snapshot.races, "import_data")
            if not result:
                return result
            written.append(RACES_KEY)

        if snapshot.horses is not None:
            result = self._write(HORSES_KEY, snapshot.horses, "import_data")
            if not result:
                return result
            written.append(HORSES_KEY)

        logger.info("Imported snapshot", extra={"keys": ",".join(written) or "none"})
        return RepoResult.success(written=written)

    def clear_all_data(self) -> RepoResult:
        """Remove both stored collections."""
        for key in (RACES_KEY, HORSES_KEY):
            try:
                self.store.remove(key)
            except StoreError as e:
                log_store_failure(logger, "clear_all_data", key, e)
                return RepoResult.storage_failure(str(e), key=key)
        logger.info("Cleared all stored data")
        return RepoResult.success()

    def check_data_integrity(self) -> list[str]:
        """
        Repair stored collections.

        A value that can't be parsed, or isn't a JSON array, is removed.
        Non-object entries inside an array are dropped. Other collections
        are left alone. Returns the keys repaired.
        """
        repaired = []
        for key in (RACES_KEY, HORSES_KEY):
            try:
                raw = self.store.get(key)
                if raw is None:
                    continue
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError as e:
                    logger.warning(
                        f"Stored {key} cannot be parsed, removing it",
                        extra={"key": key, "error": repr(e)},
                    )
                    data = None

                if not isinstance(data, list):
                    self.store.remove(key)
                    repaired.append(key)
                    continue

                records = [record for record in data if isinstance(record, dict)]
                if len(records) != len(data):
                    self.store.set(key, json.dumps(records))
                    repaired.append(key)
            except WRITE_ERRORS as e:
                log_store_failure(logger, "check_data_integrity", key, e)

        if repaired:
            logger.warning("Removed malformed collections", extra={"keys": ",".join(repaired)})
        return repaired
