"""
Loading and editing the auto_weights configuration row.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.models.tables import AutoWeightsRow, utcnow
from medprice.schemas.weights import AutoWeights, AutoWeightsUpdate

logger = structlog.get_logger(__name__)

BASE_WEIGHT_KEY = "base_weight"


async def get_weights_row(session: AsyncSession) -> Optional[AutoWeightsRow]:
    """The live row is the one with the lowest id."""
    result = await session.execute(
        select(AutoWeightsRow).order_by(AutoWeightsRow.id).limit(1)
    )
    return result.scalar_one_or_none()


def weights_from_row(row: Optional[AutoWeightsRow]) -> AutoWeights:
    """Unset columns (or a missing row) fall back to 1.0."""
    if row is None:
        return AutoWeights()

    def _pick(value: Optional[float]) -> float:
        return float(value) if value is not None else 1.0

    return AutoWeights(
        similarity=_pick(row.weight_similarity),
        provider=_pick(row.weight_provider),
        duplicate=_pick(row.weight_duplicate),
        priority=_pick(row.weight_priority),
    )


async def load_auto_weights(session: AsyncSession) -> AutoWeights:
    return weights_from_row(await get_weights_row(session))


async def get_or_create_weights_row(session: AsyncSession) -> AutoWeightsRow:
    row = await get_weights_row(session)
    if row is not None:
        return row

    row = AutoWeightsRow(
        key=BASE_WEIGHT_KEY,
        weight_similarity=1.0,
        weight_provider=1.0,
        weight_duplicate=1.0,
        weight_priority=1.0,
    )
    session.add(row)
    await session.flush()
    logger.info("auto_weights_default_row_created", weights_id=row.id)
    return row


async def update_auto_weights(session: AsyncSession, update: AutoWeightsUpdate) -> AutoWeightsRow:
    row = await get_or_create_weights_row(session)
    changes = update.model_dump(exclude_none=True)
    for field, value in changes.items():
        setattr(row, field, value)
    row.updated_at = utcnow()
    await session.flush()

    logger.info("auto_weights_updated", weights_id=row.id, **changes)
    return row
