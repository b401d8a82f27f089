# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal, Optional
from datetime import datetime


PaymentMethod = Literal["cod", "card", "razorpay"]


class AddLineIn(BaseModel):
    """Schema dla dodawania produktu do koszyka. Ilosc przycinana do [1, 99] w domenie."""

    item_id: str = Field(..., min_length=1, max_length=64, description="ID pozycji z katalogu")
    quantity: int = Field(1, description="Ilosc (przycinana do 1..99)")


class SetQuantityIn(BaseModel):
    """Schema dla zmiany ilosci; 0 lub mniej usuwa linie."""

    item_id: str = Field(..., min_length=1, max_length=64)
    quantity: int


class CartLineOut(BaseModel):
    item_id: str
    quantity: int
    title: str
    price: int
    currency: str
    image_url: Optional[str] = None


class CartOut(BaseModel):
    """Schema dla snapshotu koszyka (response)."""

    ok: bool = True
    mode: str
    lines: List[CartLineOut]
    subtotal: int
    currency: str


class ShippingIn(BaseModel):
    """Dane wysylki - walidowane przed jakimkolwiek zapisem."""

    name: str = Field(..., min_length=2, max_length=255)
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(None, max_length=32)
    address_line1: str = Field(..., min_length=2, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=2, max_length=128)
    state: str = Field(..., min_length=2, max_length=128)
    postal_code: str = Field(..., min_length=3, max_length=32)
    country: str = Field("India", min_length=2, max_length=64)


class OrderLineIn(BaseModel):
    """Tylko id i ilosc - cena zawsze z katalogu."""

    model_config = ConfigDict(extra="ignore")

    item_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., ge=1, le=99)


class OrderCreateIn(BaseModel):
    """Schema dla tworzenia zamowienia. Bez linii -> koszyk serwera zalogowanego."""

    shipping: ShippingIn
    lines: Optional[List[OrderLineIn]] = None
    payment_method: PaymentMethod = "cod"


class OrderCreatedOut(BaseModel):
    ok: bool = True
    id: str
    amount: int
    subtotal: int
    shipping: int
    currency: str
    payment_method: PaymentMethod
    cart_cleared: bool
    lines: List[CartLineOut] = []


class OrderLineOut(BaseModel):
    id: str
    item_id: str
    title: str
    qty: int
    price: int
    currency: str
    image_url: Optional[str] = None
    line_total: int


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: str
    status: str
    payment_method: str
    payment_status: str
    payment_ref: Optional[str] = None
    subtotal: int
    shipping: int
    total: int
    currency: str
    created_at: datetime
    line_count: Optional[int] = None
    lines: Optional[List[OrderLineOut]] = None

    model_config = ConfigDict(from_attributes=True)


class OrderDetailOut(BaseModel):
    ok: bool = True
    order: OrderOut


class OrderListOut(BaseModel):
    ok: bool = True
    page: int
    limit: int
    total: int
    orders: List[OrderOut]


class OrderRefIn(BaseModel):
    order_id: str = Field(..., min_length=1, max_length=36)


class StripeIntentOut(BaseModel):
    ok: bool = True
    order_id: str
    intent_id: str
    client_secret: str
    amount: int
    currency: str


class StripeResultIn(BaseModel):
    order_id: str = Field(..., min_length=1, max_length=36)
    intent_id: str = Field(..., min_length=1)
    status: Optional[str] = None


class StripeResultOut(BaseModel):
    ok: bool = True
    order_id: str
    status: str
    payment_status: str
    intent_status: str
    proceed: bool
    requires_action: bool


class RazorpayOrderOut(BaseModel):
    ok: bool = True
    order_id: str
    provider_order_id: str
    amount: int
    currency: str
    key: Optional[str] = None


class RazorpayVerifyIn(BaseModel):
    order_id: str = Field(..., min_length=1, max_length=36)
    provider_order_id: str = Field(..., min_length=8)
    payment_id: str = Field(..., min_length=8)
    signature: str = Field(..., min_length=8)


class PaymentStatusOut(BaseModel):
    ok: bool = True
    order_id: str
    status: str
    payment_status: str
