"""Role Identification — infers each match participant's position from champion and spells.

Invariants:
    - identify_roles is PURE: play-rate table is passed in, no IO
    - Smite (spell 11) always wins: every Smite holder is JUNGLE
    - Each team assigns each of TOP/MIDDLE/BOTTOM/UTILITY at most once
    - Ties resolve to the first maximum (player order, then role order)

Design Decisions:
    - Greedy assignment over an exhaustive permutation search: 4 roles x 4 players per team
    - Participants are plain dicts in Riot's camelCase shape (spectator and match payloads)
"""

from dataclasses import dataclass

from bootcamp_tracker.core.domain_types import Position


SMITE_SPELL_IDS: frozenset[int] = frozenset({11})
HEAL_SPELL_ID: int = 7
EXHAUST_SPELL_ID: int = 3
TELEPORT_SPELL_IDS: frozenset[int] = frozenset({12, 14})
IGNITE_SPELL_ID: int = 14

TEAM_IDS: tuple[int, ...] = (100, 200)
LANE_ROLES: tuple[Position, ...] = (
    Position.TOP, Position.MIDDLE, Position.BOTTOM, Position.UTILITY,
)
DEFAULT_PROBABILITY: float = 25.0

POSITION_DISPLAY_NAMES: dict[Position, str] = {
    Position.TOP: "TOP",
    Position.JUNGLE: "JG",
    Position.MIDDLE: "MID",
    Position.BOTTOM: "ADC",
    Position.UTILITY: "SUP",
}


@dataclass(frozen=True)
class RoleRates:
    """Play-rate percentages of one champion per position."""
    top: float = 0.0
    jungle: float = 0.0
    mid: float = 0.0
    adc: float = 0.0
    support: float = 0.0


def _spells(participant: dict) -> set[int]:
    return {participant.get("spell1Id"), participant.get("spell2Id")}


def _lane_probabilities(
    participant: dict, playrates: dict[int, RoleRates],
) -> dict[Position, float]:
    """Base play-rates per lane with summoner-spell multipliers applied."""
    champion_id = participant.get("championId")
    rates = playrates.get(champion_id) if champion_id is not None else None
    if rates is None:
        probs = {role: DEFAULT_PROBABILITY for role in LANE_ROLES}
    else:
        probs = {
            Position.TOP: rates.top,
            Position.MIDDLE: rates.mid,
            Position.BOTTOM: rates.adc,
            Position.UTILITY: rates.support,
        }

    spells = _spells(participant)
    if HEAL_SPELL_ID in spells:
        probs[Position.BOTTOM] *= 3
    if EXHAUST_SPELL_ID in spells:
        probs[Position.UTILITY] *= 2.5
    if spells & TELEPORT_SPELL_IDS:
        probs[Position.TOP] *= 2
    if IGNITE_SPELL_ID in spells:
        probs[Position.MIDDLE] *= 1.5
        probs[Position.UTILITY] *= 1.3
    return probs


def _assign_team(
    players: list[dict], playrates: dict[int, RoleRates],
) -> dict[str, Position]:
    """Greedy: repeatedly take the highest remaining (player, role) probability."""
    candidates = [(p, _lane_probabilities(p, playrates)) for p in players]
    remaining = list(LANE_ROLES)
    assigned: dict[str, Position] = {}

    while remaining and candidates:
        best_prob = -1.0
        best_idx = -1
        best_role: Position | None = None
        for idx, (_, probs) in enumerate(candidates):
            for role in remaining:
                if probs[role] > best_prob:
                    best_prob = probs[role]
                    best_idx = idx
                    best_role = role
        if best_role is None:
            break
        player, _ = candidates.pop(best_idx)
        remaining.remove(best_role)
        assigned[player["puuid"]] = best_role

    return assigned


def identify_roles(
    participants: list[dict], playrates: dict[int, RoleRates],
) -> dict[str, Position]:
    """Map puuid -> Position for every participant that could be placed."""
    assignments: dict[str, Position] = {}

    for p in participants:
        if _spells(p) & SMITE_SPELL_IDS:
            assignments[p["puuid"]] = Position.JUNGLE

    for team_id in TEAM_IDS:
        team = [
            p for p in participants
            if p.get("teamId") == team_id and p["puuid"] not in assignments
        ]
        if team:
            assignments.update(_assign_team(team, playrates))

    return assignments


def position_display_name(position: Position) -> str:
    return POSITION_DISPLAY_NAMES[position]
