"""
Input validation models.

Records are stored as the caller's own JSON objects; these models only
check shape before anything is written.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

Number = Union[int, float, str]


class HorseInput(BaseModel):
    """A horse registry entry as submitted by the horse form."""

    model_config = ConfigDict(extra="allow")

    name: str
    jockey: Optional[str] = None
    weight: Optional[Number] = None
    odds: Optional[Number] = None
    number: Optional[Number] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Horse name cannot be empty")
        return v


class RaceHorse(BaseModel):
    """A horse snapshot embedded in a race."""

    model_config = ConfigDict(extra="allow")

    name: str
    jockey: Optional[str] = None
    weight: Optional[Number] = None
    odds: Optional[Number] = None
    number: Optional[Number] = None


class RaceInput(BaseModel):
    """A race as submitted by the race form or a provider feed."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    track: Optional[str] = None
    date: Optional[str] = None
    horses: Optional[list[RaceHorse]] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, v):
        # Older exports stored numeric ids
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class Snapshot(BaseModel):
    """Export/import document. Unknown top-level keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    races: Optional[list[dict]] = None
    horses: Optional[list[dict]] = None
    exportedAt: Optional[str] = None
