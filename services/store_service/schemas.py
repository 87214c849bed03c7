"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.store_service.models import OrderStatus, SaleType, ShippingMethod

# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(..., ge=0)
    stock: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None
    images: Optional[list[Any]] = None  # url strings or {"url", "color"}
    draft: bool = False


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None
    images: Optional[list[Any]] = None
    draft: Optional[bool] = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ml_item_id: Optional[str] = None
    ml_status: Optional[str] = None
    last_ml_sync: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartLine(BaseModel):
    """A cart line as held by the browser. Not authoritative."""

    id: int
    quantity: int = Field(..., ge=1)
    sale_type: str = SaleType.UNIDAD.value
    name: Optional[str] = None
    price: Optional[Decimal] = None


class CartReconcileRequest(BaseModel):
    # Raw entries: malformed ones are dropped during sanitization, not rejected
    items: list[Any] = []


class CartReconcileResponse(BaseModel):
    items: list[CartLine]
    changed: bool
    notice: Optional[str] = None


class CartAddRequest(BaseModel):
    items: list[CartLine] = []
    product_id: int
    quantity: int = Field(1, ge=1)
    sale_type: Optional[str] = None


class CartQuantityRequest(BaseModel):
    items: list[CartLine] = []
    product_id: int
    delta: int


class CartResponse(BaseModel):
    items: list[CartLine]
    total: Decimal
    item_count: int


# ============================================================================
# CHECKOUT / ORDER SCHEMAS
# ============================================================================


class CheckoutItem(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)
    sale_type: str = SaleType.UNIDAD.value


class CheckoutRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_address: Optional[str] = Field(None, max_length=500)
    customer_city: Optional[str] = Field(None, max_length=100)
    customer_province: Optional[str] = Field(None, max_length=100)
    customer_postal_code: Optional[str] = Field(None, max_length=20)
    street_name: Optional[str] = Field(None, max_length=255)
    street_number: Optional[str] = Field(None, max_length=20)
    shipping_method: ShippingMethod = ShippingMethod.RETIRO
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    items: list[CheckoutItem] = Field(..., min_length=1)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    name: str
    sale_type: str
    quantity: int
    price: Decimal


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_city: Optional[str] = None
    customer_province: Optional[str] = None
    customer_postal_code: Optional[str] = None
    street_name: Optional[str] = None
    street_number: Optional[str] = None
    subtotal: Decimal
    shipping_cost: Decimal
    total: Decimal
    status: OrderStatus
    payment_id: Optional[str] = None
    payment_status: Optional[str] = None
    shipping_method: ShippingMethod
    tracking_number: Optional[str] = None
    ml_shipment_id: Optional[str] = None
    notes: Optional[str] = None
    items: list[OrderItemResponse] = []
    created_at: datetime
    updated_at: datetime


class OrderTrackingResponse(BaseModel):
    """Public tracking view: no contact details."""

    model_config = ConfigDict(from_attributes=True)

    order_number: str
    customer_name: str
    status: OrderStatus
    shipping_method: ShippingMethod
    tracking_number: Optional[str] = None
    total: Decimal
    items: list[OrderItemResponse] = []
    created_at: datetime


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None


# ============================================================================
# INTERNAL SCHEMAS (service-to-service)
# ============================================================================


class OrderPaymentUpdate(BaseModel):
    status: OrderStatus
    payment_id: Optional[str] = None
    payment_status: str


class StockDecrementRequest(BaseModel):
    external_item_id: str
    quantity: int = Field(..., ge=0)
    # Marketplace order id; repeats of (reference, item) are not applied twice
    reference: Optional[str] = None


class StockDecrementResponse(BaseModel):
    linked: bool
    applied: bool = False
    duplicate: bool = False
    product_id: Optional[int] = None
    name: Optional[str] = None
    stock: Optional[int] = None


class OrderShipmentUpdate(BaseModel):
    ml_shipment_id: str
    tracking_number: Optional[str] = None


class ProductListingUpdate(BaseModel):
    ml_item_id: str
    ml_status: Optional[str] = None


# ============================================================================
# FIND-LINK SCHEMAS
# ============================================================================


class FindLinkRequest(BaseModel):
    text: str = ""


class FindLinkResponse(BaseModel):
    found: bool
    url: str
    product: Optional[str] = None
    product_id: Optional[int] = None
    match_type: Optional[str] = None  # exact_name_in_text | keyword_match
    score: Optional[int] = None
    reason: Optional[str] = None
