"""
Database Schemas

MongoDB collection schemas as Pydantic models.
Model name is converted to lowercase for the collection name:
- User -> "user" collection
- Product -> "product" collection

Documents use camelCase keys (mainCategory, inStock, ...), so every model
aliases its fields with to_camel and accepts either spelling on input.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MainCategory(str, Enum):
    keyboards = "keyboards"
    mice = "mice"
    headphones = "headphones"
    accessories = "accessories"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


# -----------------------------
# USERS
# -----------------------------
class User(CamelModel):
    """Users collection schema, owned by the auth service and only read here."""
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    is_admin: bool = Field(False, description="Whether the user may manage the catalog")


# -----------------------------
# REVIEWS (embedded in products)
# -----------------------------
class Review(CamelModel):
    name: str = Field(..., description="Reviewer display name at submission time")
    user: str = Field(..., description="Id of the reviewing user")
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""
    created_at: Optional[datetime] = None


class ReviewIn(CamelModel):
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: str = Field("", description="Review text")


# -----------------------------
# PRODUCTS
# -----------------------------
class Product(CamelModel):
    name: str = Field(..., min_length=1, description="Unique product name")
    slug: str = Field(..., description="URL-safe identifier derived from name")
    vendor: str = ""
    price: float = Field(..., ge=0, description="Price in dollars")
    description: str = ""
    image: str = Field("", description="Primary image URL")
    main_category: MainCategory
    sub_category: str = Field("", description="e.g. mech_wired, wireless, mousePad")
    in_stock: int = Field(0, ge=0, description="Units in stock")
    featured: bool = False
    rating: float = Field(0, ge=0, le=5, description="Mean of review ratings")
    number_of_reviews: int = Field(0, ge=0)
    reviews: List[Review] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductIn(CamelModel):
    """Body of an admin create. rating and numberOfReviews are derived and not accepted."""
    name: str = Field(..., min_length=1)
    vendor: str = ""
    price: float = Field(..., ge=0)
    description: str = ""
    image: str = ""
    main_category: MainCategory
    sub_category: str = ""
    in_stock: int = Field(0, ge=0)
    featured: bool = False


class ProductUpdate(CamelModel):
    """Body of an admin partial update. Only fields present in the body are applied."""
    name: Optional[str] = Field(None, min_length=1)
    vendor: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    main_category: Optional[MainCategory] = None
    sub_category: Optional[str] = None
    in_stock: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None
