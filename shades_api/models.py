from sqlalchemy import Column, String, Float, Boolean, DateTime
from sqlalchemy.types import JSON
from .db import Base

class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, index=True)
    name = Column(String, nullable=False)
    variant = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    original_price = Column(Float, nullable=True)
    category = Column(String, nullable=False, index=True)
    colors = Column(JSON, nullable=False, default=list)   # list[str]

    rating = Column(Float, nullable=False, default=0)
    reviews = Column(Float, nullable=False, default=0)
    is_new = Column(Boolean, nullable=False, default=False)
    badge = Column(String, nullable=True)

    # Images: filenames inside UPLOAD_DIR, in upload order
    images = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
