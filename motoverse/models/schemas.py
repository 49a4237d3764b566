from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

ALL = "All"


class Category(str, Enum):
    BIKES = "Bikes"
    PARTS = "Parts"
    ACCESSORIES = "Accessories"


class Condition(str, Enum):
    NEW = "New"
    USED = "Used"


class FuelType(str, Enum):
    PETROL = "Petrol"
    ELECTRIC = "Electric"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


DEFAULT_CATEGORY = Category.ACCESSORIES
DEFAULT_BRAND = "Generic"


# --- Catalog ---

class ProductSpecs(BaseModel):
    model_config = ConfigDict(frozen=True)

    engine: str = "N/A"
    power: str = "N/A"
    weight: str = "N/A"


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    brand: str = DEFAULT_BRAND
    category: Category = DEFAULT_CATEGORY
    price: float = Field(..., ge=0)
    image: str = ""
    description: str = ""
    stock: int = Field(0, ge=0)
    specs: Optional[ProductSpecs] = None
    condition: Condition = Condition.NEW
    fuel_type: FuelType = FuelType.PETROL


class ProductIn(BaseModel):
    """Admin inventory form."""

    name: str = Field(..., min_length=1)
    brand: str = DEFAULT_BRAND
    category: Category = DEFAULT_CATEGORY
    price: float = Field(..., gt=0)
    image: str = Field(..., min_length=1)
    description: str = ""
    stock: int = Field(0, ge=0)
    specs: ProductSpecs = Field(default_factory=ProductSpecs)
    condition: Condition = Condition.NEW
    fuel_type: FuelType = FuelType.PETROL


class ProductFilter(BaseModel):
    category: str = ALL
    brand: str = ALL
    condition: str = ALL
    fuel_type: str = ALL
    query: str = ""
    min_price: Optional[float] = None
    max_price: Optional[float] = None


# --- Cart & orders ---

class CartItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product: Product
    quantity: int = Field(1, ge=1)

    @property
    def id(self) -> str:
        return self.product.id

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


class CartItemIn(BaseModel):
    product_id: str


class QuantityUpdate(BaseModel):
    delta: int


class CheckoutIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    customer_address: str = Field(..., min_length=1)


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    customer_name: str
    customer_phone: str
    customer_address: str
    items: Tuple[CartItem, ...]
    total: float = Field(..., ge=0)
    created_at: datetime
    status: OrderStatus = OrderStatus.PENDING

    @property
    def items_total(self) -> float:
        return sum((item.line_total for item in self.items), 0.0)


class StatusUpdate(BaseModel):
    status: OrderStatus


class CheckoutOut(BaseModel):
    order: Order
    persisted: bool
    handoff_url: str
    notice: str
    redirect: str = "home"


class CartOut(BaseModel):
    items: Tuple[CartItem, ...]
    total: float
    count: int


# --- Auth ---

class Session(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    email: Optional[str] = None
    expires_at: Optional[int] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UploadResult(BaseModel):
    url: Optional[str] = None
    error: Optional[str] = None


# --- Analytics ---

class RevenuePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    label: str
    revenue: float
    orders: int


class CategorySales(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    value: float
    percentage: float


class TopProduct(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    revenue: float
    quantity: int


class Growth(BaseModel):
    model_config = ConfigDict(frozen=True)

    revenue: float
    orders: float


class DashboardMetrics(BaseModel):
    total_revenue: float
    total_orders: int
    average_order_value: float
    products_in_stock: int
    low_stock_count: int
    pending_orders: int
    revenue_growth: float
    orders_growth: float
