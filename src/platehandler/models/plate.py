"""Plate sighting and persisted plate models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SpottedPlate(BaseModel):
    """A single plate detection handed from the webhook to the notifier."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    plate: str = Field(..., min_length=1)
    """Normalized (upper-cased) plate text."""

    score: float
    """Recognition confidence."""

    vehicle_type: str
    """Vehicle class reported by the recognizer (``car``, ``truck``...)."""

    image_url: str | None = None
    """Public URL of the stored snapshot, if one was saved."""

    @field_validator("plate")
    @classmethod
    def _normalize_plate(cls, value: str) -> str:
        return value.upper()


class PlateRecord(BaseModel):
    """Row of the ``plate`` table."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None


class Spotting(BaseModel):
    """Row of the append-only ``spotting`` table."""

    model_config = ConfigDict(frozen=True)

    plate_id: str
    timestamp: float
    """Epoch seconds."""
