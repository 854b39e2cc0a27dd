"""Play-rate Parsing — turns Community Dragon payloads into per-champion RoleRates.

Invariants:
    - Every champion in the summary gets a RoleRates entry (0.0 when unlisted)
    - Champion id -1 (the "None" placeholder) is skipped
    - Rates are percentages rounded to 5 decimals
    - Only the first "<ROLE>":{...} block in the statistics script is read

Design Decisions:
    - Regex over a JS parser: the statistics bundle embeds plain JSON-like object literals
"""

import re

from bootcamp_tracker.core.role_identification import RoleRates

# statistics-script key -> RoleRates field
ROLE_KEYS: dict[str, str] = {
    "TOP": "top",
    "JUNGLE": "jungle",
    "MIDDLE": "mid",
    "BOTTOM": "adc",
    "SUPPORT": "support",
}

_WHITESPACE = re.compile(r"\s")


def champion_ids(summary: list[dict]) -> list[int]:
    return [int(c["id"]) for c in summary if int(c["id"]) != -1]


def _role_block(script: str, role_key: str) -> dict[int, float]:
    match = re.search(re.escape(role_key) + r'":(.*?})', script)
    if match is None:
        return {}
    body = _WHITESPACE.sub("", match.group(1)).strip("{}")
    rates: dict[int, float] = {}
    for pair in body.split(","):
        key, sep, value = pair.partition(":")
        if not sep:
            continue
        try:
            rates[int(key.strip('"'))] = round(float(value) * 100, 5)
        except ValueError:
            continue
    return rates


def parse_role_rates(script: str, ids: list[int]) -> dict[int, RoleRates]:
    """Build RoleRates for every id from the statistics script."""
    per_role = {field: _role_block(script, key) for key, field in ROLE_KEYS.items()}
    return {
        champion_id: RoleRates(**{
            field: rates.get(champion_id, 0.0) for field, rates in per_role.items()
        })
        for champion_id in ids
    }


def parse_patch(version: str) -> str:
    """Major.minor patch from a full client version ("14.3.562.1234" -> "14.3")."""
    parts = version.split(".")
    return ".".join(parts[:2])
