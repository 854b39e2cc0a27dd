"""Play-rate Service — refreshes and loads the champion play-rate table.

Invariants:
    - refresh_playrates upserts every champion from the summary in one commit
    - load_playrates returns an empty dict when the table is empty (role
      identification then falls back to uniform probabilities)
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.core.playrates import champion_ids, parse_patch, parse_role_rates
from bootcamp_tracker.core.role_identification import RoleRates
from bootcamp_tracker.infrastructure.static_data import StaticDataClient
from bootcamp_tracker.models.champion_playrate import ChampionPlayrate

logger = logging.getLogger(__name__)


async def load_playrates(db: AsyncSession) -> dict[int, RoleRates]:
    rows = (await db.execute(select(ChampionPlayrate))).scalars().all()
    return {
        row.champion_id: RoleRates(
            top=row.top_rate,
            jungle=row.jungle_rate,
            mid=row.mid_rate,
            adc=row.adc_rate,
            support=row.support_rate,
        )
        for row in rows
    }


async def refresh_playrates(db: AsyncSession, static_data: StaticDataClient) -> int:
    """Fetch Community Dragon data and upsert it. Returns the champion count."""
    summary = await static_data.champion_summary()
    script = await static_data.champion_statistics_script()
    patch = parse_patch(await static_data.content_version())

    rates = parse_role_rates(script, champion_ids(summary))
    existing = {
        row.champion_id: row
        for row in (await db.execute(select(ChampionPlayrate))).scalars().all()
    }
    now = datetime.now(timezone.utc)

    for champion_id, role_rates in rates.items():
        row = existing.get(champion_id)
        if row is None:
            row = ChampionPlayrate(champion_id=champion_id)
            db.add(row)
        row.top_rate = role_rates.top
        row.jungle_rate = role_rates.jungle
        row.mid_rate = role_rates.mid
        row.adc_rate = role_rates.adc
        row.support_rate = role_rates.support
        row.patch = patch
        row.updated_at = now

    await db.commit()
    logger.info(f"Updated {len(rates)} champion playrates (patch {patch})")
    return len(rates)
