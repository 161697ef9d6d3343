from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from typing import Any, Optional


class RenderState(str, Enum):
    LOADING = "Loading"
    NO_SHOP_NAME = "NoShopName"
    NOT_FOUND = "NotFound"
    INCOMPLETE = "Incomplete"
    SUSPENDED = "Suspended"
    ACTIVE = "Active"


class Theme(str, Enum):
    THEME_A = "ThemeA"
    THEME_B = "ThemeB"
    THEME_C = "ThemeC"
    UNKNOWN = "Unknown"


class SortDirection(str, Enum):
    ASC = "asc"
    DES = "des"


class Seller(BaseModel):
    # the seller API speaks the storefront's original wire keys
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    business_name: Optional[str] = Field(default=None, alias="nombreNegocio")
    description: Optional[str] = None
    logo: Optional[str] = Field(default=None, alias="imageLogo")
    categories: Optional[list[str]] = Field(default=None, alias="categorias")
    template_page: Optional[str] = None
    suspended: bool = False


class ErrorState(BaseModel):
    code: Optional[int] = None
    message: Optional[str] = None


class Product(BaseModel):
    id: str = ""
    name: str
    stock: int = Field(default=0, ge=0)
    price_local: float
    price_dolar: Optional[float] = None
    image: Optional[str] = None
    suspended: bool = False
    size: Optional[str] = None
    categories: str = ""
    description: str = ""


class Review(BaseModel):
    id: str
    body: str = ""
    score: int = 0
    user: Optional[dict[str, Any]] = None


class ReviewInput(BaseModel):
    id: Optional[str] = None
    body: Optional[str] = None
    score: Optional[int] = None


class ProductDetail(Product):
    name: str = ""
    price_local: float = 0
    reviews: list[Review] = []


# ── Request / response models ────────────────────────────────────────────────

class CheckoutRequest(BaseModel):
    id: str = Field(..., description="Payment method token")
    amount: int = Field(..., gt=0, description="Amount in cents")
    description: Optional[str] = None


class ShopVisibility(BaseModel):
    shop_name: Optional[str]
    state: RenderState
    theme: Optional[Theme] = None
