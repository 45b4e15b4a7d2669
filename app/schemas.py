import re
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

OrderStatus = Literal["pending_payment", "pending", "processing", "completed", "cancelled"]


class OrderItem(BaseModel):
    """Snapshot of a menu item at the time the order was placed."""

    product_id: Optional[str] = None
    name: str = "Unknown Product"
    price: float = 0.0
    quantity: float = 1.0
    subtotal: float = 0.0


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    items: List[OrderItem] = Field(default_factory=list)
    customer_name: str = "Unknown Customer"
    status: str = "unknown"
    total_amount: float = 0.0
    amount_source: str = "default"
    payment_method: Optional[str] = None
    payment_status: str = "unpaid"
    created_at: Optional[datetime] = None


class DailyBucket(BaseModel):
    date: date
    label: str
    count: int = 0
    revenue: float = 0.0


class HourBandDistribution(BaseModel):
    morning: int = 0
    afternoon: int = 0
    evening: int = 0
    total: int = 0
    morning_percent: int = 0
    afternoon_percent: int = 0
    evening_percent: int = 0


class ProductStat(BaseModel):
    name: str
    quantity: float = 0.0
    revenue: float = 0.0


class RevenueTotals(BaseModel):
    total_revenue: float = 0.0
    total_orders: int = 0
    average_order_value: float = 0.0


class RevenueReport(BaseModel):
    start_date: date
    end_date: date
    totals: RevenueTotals = Field(default_factory=RevenueTotals)
    previous_revenue: float = 0.0
    percent_change: float = 0.0
    daily: List[DailyBucket] = Field(default_factory=list)
    chart: Dict[str, Any] = Field(default_factory=dict)
    product_chart: Dict[str, Any] = Field(default_factory=dict)
    top_products: List[ProductStat] = Field(default_factory=list)
    recent_orders: List[Order] = Field(default_factory=list)
    error: Optional[str] = Field(default=None, description="Banner shown when the store could not be reached")


class StatusCounts(BaseModel):
    all: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    cancelled: int = 0


class OrderListResponse(BaseModel):
    orders: List[Order] = Field(default_factory=list)
    counts: StatusCounts = Field(default_factory=StatusCounts)
    error: Optional[str] = None


class StatusUpdatePayload(BaseModel):
    status: OrderStatus


class StatusUpdateResponse(BaseModel):
    id: str
    previous_status: str
    status: OrderStatus
    payment_status: str


MENU_CATEGORIES = ("Minuman", "Makanan", "Cemilan", "Dessert")
MENU_IMAGE_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|bmp|webp)$", re.IGNORECASE)
PROMOTION_IMAGE_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)
PROMOTION_IMAGE_HOSTS = ("firebasestorage.googleapis.com", "cloudinary.com", "imgur.com")


def _is_absolute_url(value: str) -> bool:
    parts = urlsplit(value)
    return bool(parts.scheme and (parts.netloc or parts.path))


def _clean_text(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class MenuItem(BaseModel):
    id: str
    name: str = "No Name"
    description: str = "No Description"
    category: str = ""
    price: float = 0.0
    image: str = ""
    rating: Optional[float] = None
    reviews: Optional[int] = None
    translations: Dict[str, Dict[str, str]] = Field(default_factory=dict)


class MenuItemPayload(BaseModel):
    """Menu form; the Indonesian name is the one required translation."""

    id_name: str = Field(..., min_length=1, max_length=120)
    id_description: str = Field(default="", max_length=1000)
    en_name: str = Field(default="", max_length=120)
    en_description: str = Field(default="", max_length=1000)
    category: str = Field(..., min_length=1, max_length=60)
    price: float = Field(..., ge=0)
    image: str = ""
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    reviews: Optional[int] = Field(default=None, ge=0)

    @field_validator("id_name", "id_description", "en_name", "en_description", "image", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return _clean_text(value)

    @field_validator("category", mode="before")
    @classmethod
    def _lower_category(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: str) -> str:
        if value and not (_is_absolute_url(value) and MENU_IMAGE_PATTERN.search(value)):
            raise ValueError("image must be a URL ending in jpg, jpeg, png, gif, bmp or webp")
        return value


class Promotion(BaseModel):
    id: str
    title: str = "No Title"
    description: str = "No Description"
    action_link: str = ""
    active: bool = False
    image: str = ""
    order: int = 1
    menu_item_ids: List[str] = Field(default_factory=list)
    translations: Dict[str, Dict[str, str]] = Field(default_factory=dict)


class PromotionPayload(BaseModel):
    id_title: str = Field(..., min_length=1, max_length=120)
    id_description: str = Field(default="", max_length=1000)
    en_title: str = Field(default="", max_length=120)
    en_description: str = Field(default="", max_length=1000)
    action_link: str = Field(default="", max_length=500)
    image: str = ""
    order: int = 1
    active: bool = True
    menu_item_ids: List[str] = Field(default_factory=list)

    @field_validator("id_title", "id_description", "en_title", "en_description", "action_link", "image", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return _clean_text(value)

    @field_validator("order", mode="before")
    @classmethod
    def _default_order(cls, value: Any) -> Any:
        # Blank or zero positions fall back to the first slot.
        if value in (None, "", 0, "0"):
            return 1
        return value

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: str) -> str:
        if not value:
            return value
        hosted = any(host in value for host in PROMOTION_IMAGE_HOSTS)
        if not (_is_absolute_url(value) and (PROMOTION_IMAGE_PATTERN.search(value) or hosted)):
            raise ValueError("image must be a jpg, jpeg, png, gif, webp or svg URL, or a known image host")
        return value


class PromotionActiveResponse(BaseModel):
    id: str
    active: bool


class MenuOption(BaseModel):
    """Menu entry offered when linking items to a promotion."""

    id: str
    name: str = "Unknown Item"
    category: str = "Uncategorized"
    price: float = 0.0
    image: Optional[str] = None
