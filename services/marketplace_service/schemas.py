"""Pydantic schemas for marketplace service.

Request bodies keep the camelCase keys the storefront sends.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OAuthCodeRequest(BaseModel):
    code: Optional[str] = None


class OAuthResponse(BaseModel):
    ok: bool
    user_id: str
    saved: bool


class TokenRefreshResponse(BaseModel):
    success: bool
    message: str = "Token refreshed and saved successfully."
    user_id: str
    expires_in: Optional[int] = None
    updated_at: str


class PackageDimensions(BaseModel):
    width: float
    height: float
    length: float
    weight: Optional[float] = None


class ShippingQuoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    zip_code_to: str = Field(..., alias="zipCodeTo", min_length=1)
    dimensions: PackageDimensions


class CreateShipmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: uuid.UUID = Field(..., alias="orderId")
    # Marketplace account; defaults to the most recently linked one
    user_id: Optional[str] = Field(None, alias="userId")


class SyncProductRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="productId")


class SyncProductResponse(BaseModel):
    success: bool
    action: str  # created | updated
    ml_id: str
    permalink: Optional[str] = None
    status: Optional[str] = None


class SubscribeRequest(BaseModel):
    topic: str = "orders_v2"
    url: Optional[str] = None
