from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List

# Wire format is camelCase (originalPrice, isNew, createdAt)
_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ProductDraft(BaseModel):
    """Validated product fields, before id and createdAt are assigned."""
    model_config = _CAMEL

    name: str
    variant: str
    price: float
    original_price: Optional[float] = None
    category: str
    colors: List[str] = Field(default_factory=list)
    rating: float = 0
    reviews: float = 0
    is_new: bool = False
    badge: Optional[str] = None
    images: List[str] = Field(default_factory=list)


class ProductOut(ProductDraft):
    id: str
    created_at: datetime


class ProductUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: Optional[str] = None
    variant: Optional[str] = None
    price: Optional[float] = None
    original_price: Optional[float] = None
    category: Optional[str] = None
    colors: Optional[List[str]] = None
    rating: Optional[float] = None
    reviews: Optional[float] = None
    is_new: Optional[bool] = None
    badge: Optional[str] = None
    images: Optional[List[str]] = None

    @model_validator(mode="after")
    def _required_not_null(self):
        for field in ("name", "variant", "price", "category", "colors", "rating", "reviews", "is_new", "images"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{to_camel(field)} cannot be null")
        return self

    def changes(self) -> dict:
        """Only the fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class HealthResponse(BaseModel):
    message: str
    time: datetime


class ErrorResponse(BaseModel):
    error: str
