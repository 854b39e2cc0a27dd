"""Bootcamper Schemas — create/update payloads and list filters.

Invariants:
    - BootcamperCreate needs either default_bootcamper_id or summoner_name + region
    - planned_end_date is not before start_date
    - BootcamperUpdate is partial: only fields present in the body are applied

Design Decisions:
    - Responses are built as dicts by services/bootcamper_service.py: list rows merge
      canonical records, association overrides and nested games/streams, which no
      single ORM object carries
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from bootcamp_tracker.core.formatting import as_utc
from bootcamp_tracker.core.domain_types import (
    BootcamperRole, BootcamperStatus, ListType, RiotRegion,
)


class BootcamperCreate(BaseModel):
    name: str | None = Field(None, max_length=64)
    summoner_name: str | None = Field(None, min_length=1, max_length=64)
    region: RiotRegion | None = None
    twitch_login: str | None = Field(None, max_length=64)
    role: BootcamperRole | None = None
    start_date: datetime
    planned_end_date: datetime
    list_type: ListType = ListType.USER
    default_bootcamper_id: UUID | None = None

    @field_validator("summoner_name", "twitch_login", "name")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @field_validator("start_date", "planned_end_date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @model_validator(mode="after")
    def check_source(self) -> "BootcamperCreate":
        if self.default_bootcamper_id is None and not (self.summoner_name and self.region):
            raise ValueError(
                "summoner_name and region are required unless default_bootcamper_id is given",
            )
        if self.planned_end_date < self.start_date:
            raise ValueError("planned_end_date must not be before start_date")
        return self


class BootcamperUpdate(BaseModel):
    name: str | None = Field(None, max_length=64)
    riot_id: str | None = Field(None, max_length=64)
    twitch_login: str | None = Field(None, max_length=64)
    role: BootcamperRole | None = None
    start_date: datetime | None = None
    planned_end_date: datetime | None = None
    actual_end_date: datetime | None = None
    status: BootcamperStatus | None = None

    @field_validator("start_date", "planned_end_date", "actual_end_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @model_validator(mode="after")
    def check_dates(self) -> "BootcamperUpdate":
        if (
            self.start_date is not None and self.planned_end_date is not None
            and self.planned_end_date < self.start_date
        ):
            raise ValueError("planned_end_date must not be before start_date")
        return self


class BootcamperFilters(BaseModel):
    status: BootcamperStatus | None = None
    role: BootcamperRole | None = None
    region: RiotRegion | None = None
    list_type: ListType = ListType.DEFAULT
