"""Role Identification — verifies Smite handling, spell multipliers and greedy assignment.

Tests:
    - Smite always yields JUNGLE, on any team and in any number
    - Each lane role is assigned at most once per team
    - Spell multipliers steer otherwise uniform champions
    - Ties fall to player order, then TOP, MIDDLE, BOTTOM, UTILITY
"""

from bootcamp_tracker.core.domain_types import Position
from bootcamp_tracker.core.role_identification import (
    RoleRates, identify_roles, position_display_name,
)

SMITE, HEAL, EXHAUST, TELEPORT, IGNITE, FLASH = 11, 7, 3, 12, 14, 4


def _p(puuid, champion_id=1, spells=(FLASH, FLASH), team=100):
    return {
        "puuid": puuid,
        "championId": champion_id,
        "spell1Id": spells[0],
        "spell2Id": spells[1],
        "teamId": team,
    }


def test_smite_holder_is_jungle():
    roles = identify_roles([_p("a", spells=(SMITE, FLASH))], {})
    assert roles == {"a": Position.JUNGLE}


def test_two_smite_holders_on_one_team_are_both_jungle():
    participants = [_p("a", spells=(SMITE, FLASH)), _p("b", spells=(FLASH, SMITE))]
    roles = identify_roles(participants, {})
    assert roles == {"a": Position.JUNGLE, "b": Position.JUNGLE}


def test_standard_lobby_spells_place_each_lane():
    team = [
        _p("jg", spells=(SMITE, FLASH)),
        _p("top", spells=(TELEPORT, FLASH)),
        _p("adc", spells=(HEAL, FLASH)),
        _p("sup", spells=(EXHAUST, FLASH)),
        _p("mid", spells=(FLASH, FLASH)),
    ]
    roles = identify_roles(team, {})
    assert roles == {
        "jg": Position.JUNGLE,
        "top": Position.TOP,
        "adc": Position.BOTTOM,
        "sup": Position.UTILITY,
        "mid": Position.MIDDLE,
    }


def test_lane_roles_are_unique_per_team():
    team = [_p(f"p{i}") for i in range(5)]
    roles = identify_roles(team, {})
    lane_roles = [r for r in roles.values() if r != Position.JUNGLE]
    assert len(lane_roles) == len(set(lane_roles)) == 4
    # fifth player has no role left
    assert len(roles) == 4


def test_teams_are_assigned_independently():
    blue = [_p("b1", spells=(HEAL, FLASH), team=100)]
    red = [_p("r1", spells=(HEAL, FLASH), team=200)]
    roles = identify_roles(blue + red, {})
    assert roles == {"b1": Position.BOTTOM, "r1": Position.BOTTOM}


def test_playrates_drive_assignment():
    playrates = {
        10: RoleRates(top=1.0, mid=2.0, adc=0.5, support=80.0),
        20: RoleRates(top=70.0, mid=5.0, adc=0.1, support=0.1),
    }
    roles = identify_roles([_p("a", champion_id=10), _p("b", champion_id=20)], playrates)
    assert roles == {"a": Position.UTILITY, "b": Position.TOP}


def test_uniform_ties_follow_player_then_role_order():
    roles = identify_roles([_p("first"), _p("second")], {})
    assert roles == {"first": Position.TOP, "second": Position.MIDDLE}


def test_ignite_favours_middle_over_support():
    roles = identify_roles([_p("a", spells=(IGNITE, FLASH))], {})
    # Ignite is also a Teleport id (14): TOP x2 beats MIDDLE x1.5
    assert roles == {"a": Position.TOP}


def test_participant_without_team_is_ignored():
    roles = identify_roles([_p("stray", team=0)], {})
    assert roles == {}


def test_display_names():
    assert position_display_name(Position.JUNGLE) == "JG"
    assert position_display_name(Position.MIDDLE) == "MID"
    assert position_display_name(Position.BOTTOM) == "ADC"
    assert position_display_name(Position.UTILITY) == "SUP"
    assert position_display_name(Position.TOP) == "TOP"


def test_missing_champion_uses_default_odds():
    player = _p("a", spells=(EXHAUST, FLASH))
    del player["championId"]
    rates = {1: RoleRates(top=90.0)}
    assert identify_roles([player], rates) == {"a": Position.UTILITY}


def test_empty_lobby_has_no_roles():
    assert identify_roles([], {}) == {}
