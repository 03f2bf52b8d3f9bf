"""
/api/public/prices endpoint.
Public price search across active providers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medprice.dependencies import get_db
from medprice.models.tables import Price, Provider, Service
from medprice.schemas.prices import PriceItem, PriceSearchResponse

router = APIRouter(prefix="/api/public/prices", tags=["prices"])

ALL_REGIONS = "전체"


@router.get("", response_model=PriceSearchResponse)
async def search_prices(
    region: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Service name contains"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200, alias="pageSize"),
    session: AsyncSession = Depends(get_db),
):
    """Prices joined with their provider and service, newest first."""
    query = (
        select(Price, Provider, Service)
        .join(Provider, Price.provider_id == Provider.id)
        .outerjoin(Service, Price.service_id == Service.id)
        .where(Provider.is_active.is_(True))
    )

    region = (region or "").strip()
    if region and region != ALL_REGIONS:
        query = query.where(Provider.region == region)
    if q:
        query = query.where(Service.name.contains(q.strip(), autoescape=True))

    query = query.order_by(Price.id.desc()).offset((page - 1) * page_size).limit(page_size)
    result = await session.execute(query)

    items = [
        PriceItem(
            id=price.id,
            provider_id=provider.id,
            service_id=service.id if service else None,
            provider_name=provider.name,
            provider_region=provider.region,
            service_name=service.name if service else None,
            service_category=service.category if service else None,
            price=price.price,
            min_price=price.min_price,
            max_price=price.max_price,
            unit=price.unit,
            note=price.note,
            source_url=price.source_url,
            updated_at=price.updated_at,
        )
        for price, provider, service in result.all()
    ]
    return PriceSearchResponse(items=items, page=page, page_size=page_size)
