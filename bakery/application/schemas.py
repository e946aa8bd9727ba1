from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Optional
from bakery.domain.state_machines import OrderStatus, InquiryStatus, QuoteStatus

# --- Checkout ---

class CartItem(BaseModel):
    menu_item_id: int = Field(alias="menuItemId")
    quantity: int = Field(gt=0, le=100)
    # display name from the client; never used for pricing
    name: Optional[str] = None
    class Config:
        populate_by_name = True

class DeliveryAddress(BaseModel):
    line1: str = Field(min_length=1, max_length=200)
    line2: Optional[str] = Field(default=None, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=2, max_length=50)
    postal_code: str = Field(alias="postalCode", min_length=1, max_length=10)
    class Config:
        populate_by_name = True

class CheckoutRequest(BaseModel):
    items: list[CartItem] = Field(default_factory=list)
    delivery_date: Optional[date] = Field(default=None, alias="deliveryDate")
    delivery_window_id: Optional[int] = Field(default=None, alias="deliveryWindowId")
    delivery_address: Optional[DeliveryAddress] = Field(default=None, alias="deliveryAddress")
    notes: Optional[str] = Field(default=None, max_length=500)
    class Config:
        populate_by_name = True

class CheckoutResponse(BaseModel):
    url: str
    session_id: str

# --- Orders ---

class OrderItemRead(BaseModel):
    id: int
    menu_item_id: int
    quantity: int
    unit_price: float
    line_total: float
    name_snapshot: Optional[str] = None
    class Config:
        from_attributes = True

class OrderRead(BaseModel):
    id: int
    order_number: str
    user_id: int
    pickup_date: date
    pickup_window_id: Optional[int] = None
    status: OrderStatus
    subtotal_amount: float
    service_fee_amount: float
    delivery_fee_amount: float
    tax_amount: float
    total_amount: float
    stripe_session_id: Optional[str] = None
    delivery_address: Optional[dict] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemRead]
    class Config:
        from_attributes = True

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

class ConfirmationLine(BaseModel):
    name: str
    quantity: int
    price: float

class OrderConfirmation(BaseModel):
    order_id: int
    order_number: str
    pickup_date: date
    pickup_window: Optional[str] = None
    total: float
    items: list[ConfirmationLine]

class OrderStatistics(BaseModel):
    total: int
    by_status: dict[str, int]
    total_revenue: float

# --- Menu & inventory ---

class MenuItemCreate(BaseModel):
    slug: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    base_price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(default=None, max_length=50)
    dietary_tags: list[str] = Field(default_factory=list)
    image_url: Optional[str] = Field(default=None, max_length=500)
    active: bool = True

class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    base_price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(default=None, max_length=50)
    dietary_tags: Optional[list[str]] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    active: Optional[bool] = None

    @field_validator("name", "base_price", "dietary_tags", "active")
    @classmethod
    def not_null(cls, value):
        # omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("may not be null")
        return value

class MenuItemRead(BaseModel):
    id: int
    slug: str
    name: str
    description: Optional[str] = None
    base_price: float
    category: Optional[str] = None
    dietary_tags: list[str] = []
    image_url: Optional[str] = None
    active: bool
    class Config:
        from_attributes = True

class MenuItemAvailability(MenuItemRead):
    pickup_date: date
    daily_cap: int
    reserved_quantity: int
    available_quantity: int
    is_sold_out: bool

class InventoryUpsert(BaseModel):
    menu_item_id: int
    pickup_date: date
    daily_cap: int = Field(ge=0)

class InventoryRead(BaseModel):
    id: int
    menu_item_id: int
    pickup_date: date
    daily_cap: int
    reserved_quantity: int
    available_quantity: int
    class Config:
        from_attributes = True

class PickupWindowRead(BaseModel):
    id: int
    label: str
    start_time: time
    end_time: time
    max_capacity: int
    active: bool
    class Config:
        from_attributes = True

# --- Inquiries ---

class EventType(str, Enum):
    BIRTHDAY = "birthday"
    WEDDING = "wedding"
    ANNIVERSARY = "anniversary"
    GRADUATION = "graduation"
    BABY_SHOWER = "baby_shower"
    OTHER = "other"

class CakeShape(str, Enum):
    ROUND = "round"
    SQUARE = "square"
    RECTANGULAR = "rectangular"
    HEART = "heart"
    OTHER = "other"

class DecorationStyle(str, Enum):
    SIMPLE = "simple"
    SEMI_NAKED = "semi_naked"
    FLORAL = "floral"
    TEXTURED = "textured"
    DRIP = "drip"
    BUTTERCREAM = "buttercream"
    FONDANT = "fondant"
    OTHER = "other"

class InquiryCreate(BaseModel):
    event_type: EventType
    event_date: date
    servings: int = Field(gt=0, le=500)
    tiers: int = Field(ge=1, le=4)
    shape: CakeShape
    style: DecorationStyle
    color_palette_text: Optional[str] = Field(default=None, max_length=200)
    dietary_notes: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=1000)
    image_urls: list[str] = Field(default_factory=list)

class InquiryImageCreate(BaseModel):
    image_url: str = Field(min_length=1, max_length=500)

class InquiryImageRead(BaseModel):
    id: int
    image_url: str
    created_at: datetime
    class Config:
        from_attributes = True

class QuoteCreate(BaseModel):
    total_price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    deposit_amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    expires_at: Optional[datetime] = None
    send_payment_link: bool = False

class QuoteRead(BaseModel):
    id: int
    inquiry_id: int
    total_price: float
    deposit_amount: Optional[float] = None
    payment_link_url: Optional[str] = None
    status: QuoteStatus
    expires_at: Optional[datetime] = None
    created_at: datetime
    class Config:
        from_attributes = True

class InquiryRead(BaseModel):
    id: int
    user_id: int
    event_type: EventType
    event_date: date
    servings: int
    tiers: int
    shape: CakeShape
    style: DecorationStyle
    color_palette_text: Optional[str] = None
    dietary_notes: Optional[str] = None
    notes: Optional[str] = None
    status: InquiryStatus
    created_at: datetime
    updated_at: datetime
    images: list[InquiryImageRead] = []
    quotes: list[QuoteRead] = []
    class Config:
        from_attributes = True

class InquiryStatusUpdate(BaseModel):
    status: InquiryStatus

class InquiryStatistics(BaseModel):
    total: int
    by_status: dict[str, int]
    new_count: int
    pending_review_count: int

# --- Runtime settings ---

class ServiceFeeSetting(BaseModel):
    rate: float = Field(ge=0, le=1)

class OrderingEnabledSetting(BaseModel):
    enabled: bool

class DeliverySetting(BaseModel):
    free_minimum: Decimal = Field(ge=0)
    fee: Decimal = Field(ge=0)

class PickupInstructionsSetting(BaseModel):
    en: str = Field(default="", max_length=1000)
    es: str = Field(default="", max_length=1000)
    pt: str = Field(default="", max_length=1000)

class BusinessInfoSetting(BaseModel):
    name: str = Field(max_length=100)
    address: str = Field(max_length=200)
    phone: str = Field(max_length=20)
    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
