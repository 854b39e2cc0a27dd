"""Rank Scoring — pure comparisons over Riot league entries.

Invariants:
    - rank_score is monotonic in (tier, division, LP); Master+ ignores division
    - Unknown tiers score as 0 (same as BRONZE), unknown divisions as 0
    - compute_peak_updates only raises a peak, never lowers it
    - compute_current_rank_updates never wipes known rank data on a missing queue entry

Design Decisions:
    - Functions return column→value dicts; the shell writes them to the ORM row
"""

from datetime import datetime

from bootcamp_tracker.core.domain_types import QueueType


TIER_ORDER: dict[str, int] = {
    "CHALLENGER": 8,
    "GRANDMASTER": 7,
    "MASTER": 6,
    "DIAMOND": 5,
    "EMERALD": 4,
    "PLATINUM": 3,
    "GOLD": 2,
    "SILVER": 1,
    "BRONZE": 0,
    "IRON": -1,
}

DIVISION_ORDER: dict[str, int] = {"I": 4, "II": 3, "III": 2, "IV": 1}

APEX_TIER_VALUE = TIER_ORDER["MASTER"]

# queue -> column prefix on the bootcampers table
_QUEUE_PREFIX: dict[QueueType, str] = {
    QueueType.SOLO: "solo",
    QueueType.FLEX: "flex",
}


def rank_score(tier: str, division: str | None, lp: int) -> int:
    """tier*1000 + division*100 + LP."""
    tier_value = TIER_ORDER.get(tier, 0)
    if tier_value >= APEX_TIER_VALUE:
        return tier_value * 1000 + lp
    return tier_value * 1000 + DIVISION_ORDER.get(division or "", 0) * 100 + lp


def find_queue_entry(entries: list[dict], queue: QueueType) -> dict | None:
    return next((e for e in entries if e.get("queueType") == queue.value), None)


def win_rate(wins: int, losses: int) -> float:
    total = wins + losses
    return (wins / total) * 100 if total > 0 else 0.0


def summarize_entry(entry: dict | None) -> dict | None:
    """Flatten a league entry for API responses."""
    if entry is None:
        return None
    wins = entry.get("wins", 0)
    losses = entry.get("losses", 0)
    return {
        "tier": entry.get("tier"),
        "rank": entry.get("rank"),
        "league_points": entry.get("leaguePoints", 0),
        "wins": wins,
        "losses": losses,
        "win_rate": win_rate(wins, losses),
    }


def pick_peak_entry(solo: dict | None, flex: dict | None) -> dict | None:
    """Higher-tier queue entry; solo wins ties."""
    if solo and flex:
        solo_value = TIER_ORDER.get(solo.get("tier", ""), 0)
        flex_value = TIER_ORDER.get(flex.get("tier", ""), 0)
        return solo if solo_value >= flex_value else flex
    return solo or flex


def format_solo_rank(entry: dict | None) -> dict:
    """Rank fields stored on enriched lobby participants."""
    if entry is None:
        return {"rank": "Unranked", "tier": None, "division": None, "leaguePoints": 0}
    return {
        "rank": f"{entry['tier']} {entry['rank']}",
        "tier": entry.get("tier"),
        "division": entry.get("rank"),
        "leaguePoints": entry.get("leaguePoints") or 0,
    }


def compute_peak_updates(
    current_peaks: dict[str, object], entries: list[dict], now: datetime,
) -> tuple[dict[str, object], bool]:
    """Peak columns to write, and whether any peak was raised.

    current_peaks holds the existing peak_{solo,flex}_{tier,rank,lp} values.
    peak_updated_at is always included so the caller can stamp first checks.
    """
    updates: dict[str, object] = {"peak_updated_at": now}
    raised = False

    for queue, prefix in _QUEUE_PREFIX.items():
        entry = find_queue_entry(entries, queue)
        if entry is None:
            continue
        score = rank_score(entry["tier"], entry.get("rank"), entry.get("leaguePoints", 0))

        peak_tier = current_peaks.get(f"peak_{prefix}_tier")
        peak_rank = current_peaks.get(f"peak_{prefix}_rank")
        peak_lp = current_peaks.get(f"peak_{prefix}_lp")
        peak_score = -1
        if peak_tier and peak_rank is not None and peak_lp is not None:
            peak_score = rank_score(peak_tier, peak_rank, peak_lp)

        if score > peak_score:
            updates[f"peak_{prefix}_tier"] = entry["tier"]
            updates[f"peak_{prefix}_rank"] = entry.get("rank")
            updates[f"peak_{prefix}_lp"] = entry.get("leaguePoints", 0)
            raised = True

    return updates, raised


def _cleared(prefix: str) -> dict[str, object]:
    return {
        f"current_{prefix}_tier": None,
        f"current_{prefix}_rank": None,
        f"current_{prefix}_lp": None,
        f"current_{prefix}_wins": None,
        f"current_{prefix}_losses": None,
    }


def compute_current_rank_updates(
    current: dict[str, object], entries: list[dict], now: datetime,
) -> dict[str, object]:
    """Current-rank columns to write from a fresh league-entries response.

    A queue missing from entries is cleared only when it was already empty or
    rank data was never fetched (rank_updated_at is None).
    """
    updates: dict[str, object] = {"rank_updated_at": now}
    never_fetched = current.get("rank_updated_at") is None

    for queue, prefix in _QUEUE_PREFIX.items():
        entry = find_queue_entry(entries, queue)
        if entry is not None:
            updates[f"current_{prefix}_tier"] = entry.get("tier")
            updates[f"current_{prefix}_rank"] = entry.get("rank")
            updates[f"current_{prefix}_lp"] = entry.get("leaguePoints")
            updates[f"current_{prefix}_wins"] = entry.get("wins")
            updates[f"current_{prefix}_losses"] = entry.get("losses")
        elif not current.get(f"current_{prefix}_tier") or never_fetched:
            updates.update(_cleared(prefix))

    return updates


PEAK_COLUMNS: tuple[str, ...] = (
    "peak_solo_tier", "peak_solo_rank", "peak_solo_lp",
    "peak_flex_tier", "peak_flex_rank", "peak_flex_lp",
    "peak_updated_at",
)

CURRENT_RANK_COLUMNS: tuple[str, ...] = (
    *_cleared("solo").keys(), *_cleared("flex").keys(), "rank_updated_at",
)
