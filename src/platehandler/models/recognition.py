"""Plate Recognizer webhook payload.

Shape (trimmed)::

    {"data": {"results": [{"plate": "abc123", "score": 0.9,
                           "vehicle": {"type": "Sedan"}}]}}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from platehandler.models.plate import SpottedPlate


class RecognizedVehicle(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: StrictStr


class RecognitionResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    plate: StrictStr = Field(..., min_length=1)
    score: float
    vehicle: RecognizedVehicle

    def to_spotted(self, image_url: str | None = None) -> SpottedPlate:
        return SpottedPlate(
            plate=self.plate,
            score=self.score,
            vehicle_type=self.vehicle.type,
            image_url=image_url,
        )


class RecognitionData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    results: list[RecognitionResult]


class RecognitionPayload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    data: RecognitionData
