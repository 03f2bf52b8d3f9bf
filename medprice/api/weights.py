"""
/api/auto-weights endpoints.
Read and edit the scorer weight row.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.dependencies import get_db, verify_api_key
from medprice.schemas.weights import AutoWeightsResponse, AutoWeightsUpdate
from medprice.services.weights import get_or_create_weights_row, update_auto_weights

router = APIRouter(prefix="/api/auto-weights", tags=["auto-weights"], dependencies=[Depends(verify_api_key)])


@router.get("", response_model=AutoWeightsResponse)
async def get_weights(session: AsyncSession = Depends(get_db)):
    """Return the live weights row, creating a default one if the table is empty."""
    row = await get_or_create_weights_row(session)
    await session.commit()
    return AutoWeightsResponse.model_validate(row)


@router.put("", response_model=AutoWeightsResponse)
async def put_weights(body: AutoWeightsUpdate, session: AsyncSession = Depends(get_db)):
    row = await update_auto_weights(session, body)
    await session.commit()
    return AutoWeightsResponse.model_validate(row)
