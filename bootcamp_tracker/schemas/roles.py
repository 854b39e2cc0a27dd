"""Role Identification Schemas — lobby participants in Riot's camelCase shape."""

from pydantic import BaseModel, ConfigDict, Field

from bootcamp_tracker.core.domain_types import Position


class Participant(BaseModel):
    model_config = ConfigDict(extra="allow")

    puuid: str = Field(min_length=1)
    championId: int | None = None
    spell1Id: int
    spell2Id: int
    teamId: int


class IdentifyRolesRequest(BaseModel):
    participants: list[Participant]


class IdentifyRolesResponse(BaseModel):
    roles: dict[str, Position]
