"""
Pydantic schemas for the public price search.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PriceItem(BaseModel):
    id: int
    provider_id: Optional[int] = None
    service_id: Optional[int] = None
    provider_name: Optional[str] = None
    provider_region: Optional[str] = None
    service_name: Optional[str] = None
    service_category: Optional[str] = None
    price: Optional[int] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    unit: Optional[str] = None
    note: Optional[str] = None
    source_url: Optional[str] = None
    updated_at: Optional[datetime] = None


class PriceSearchResponse(BaseModel):
    ok: bool = True
    items: list[PriceItem]
    page: int
    page_size: int = Field(serialization_alias="pageSize")
