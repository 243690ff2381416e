# shades_api/repository.py
import logging
import re
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import InternalError, NotFoundError, ValidationError
from .models import Product
from .schemas import ProductDraft, ProductOut

logger = logging.getLogger("shades_api.repository")

_ID_RE = re.compile(r"[0-9a-f]{32}")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_product_id() -> str:
    return uuid.uuid4().hex


def check_product_id(raw: str) -> str:
    """Return the id if well formed, else raise ValidationError (distinct from not found)."""
    if raw is None or not _ID_RE.fullmatch(raw):
        raise ValidationError(f"Invalid product id: {raw!r}")
    return raw


def _to_out(row: Product) -> ProductOut:
    data = {c.name: getattr(row, c.name) for c in Product.__table__.columns}
    # SQLite hands back naive datetimes; they were written as UTC
    if data["created_at"] is not None and data["created_at"].tzinfo is None:
        data["created_at"] = data["created_at"].replace(tzinfo=timezone.utc)
    return ProductOut(**data)


class ProductRepository(ABC):
    """Storage of product records, independent of the backing technology."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utcnow

    @abstractmethod
    def insert(self, draft: ProductDraft) -> ProductOut: ...

    @abstractmethod
    def list_all(self) -> List[ProductOut]:
        """Every record, newest first."""

    @abstractmethod
    def get_by_id(self, product_id: str) -> ProductOut: ...

    @abstractmethod
    def update_by_id(self, product_id: str, fields: dict) -> ProductOut: ...

    @abstractmethod
    def delete_by_id(self, product_id: str) -> ProductOut:
        """Remove the record and return its prior state."""


class SqlAlchemyProductRepository(ProductRepository):

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.db = db

    def _get_row(self, product_id: str) -> Product:
        product_id = check_product_id(product_id)
        try:
            row = self.db.execute(select(Product).where(Product.id == product_id)).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("Database error while loading product %s", product_id)
            raise InternalError("Database error while loading product") from e
        if row is None:
            raise NotFoundError("Not found")
        return row

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Database error during %s", action)
            raise InternalError(f"Database error during {action}") from e

    def insert(self, draft: ProductDraft) -> ProductOut:
        row = Product(id=new_product_id(), created_at=self.clock(), **draft.model_dump())
        self.db.add(row)
        self._commit("insert")
        self.db.refresh(row)
        return _to_out(row)

    def list_all(self) -> List[ProductOut]:
        try:
            rows = self.db.execute(select(Product).order_by(Product.created_at.desc())).scalars().all()
        except SQLAlchemyError as e:
            logger.exception("Database error while listing products")
            raise InternalError("Database error while listing products") from e
        return [_to_out(r) for r in rows]

    def get_by_id(self, product_id: str) -> ProductOut:
        return _to_out(self._get_row(product_id))

    def update_by_id(self, product_id: str, fields: dict) -> ProductOut:
        row = self._get_row(product_id)
        for key, value in fields.items():
            setattr(row, key, value)
        self.db.add(row)
        self._commit("update")
        self.db.refresh(row)
        return _to_out(row)

    def delete_by_id(self, product_id: str) -> ProductOut:
        row = self._get_row(product_id)
        prior = _to_out(row)
        self.db.delete(row)
        self._commit("delete")
        return prior


class InMemoryProductRepository(ProductRepository):
    """Dict-backed repository for tests and local experiments."""

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self._items: Dict[str, ProductOut] = {}
        self._lock = threading.Lock()

    def _get(self, product_id: str) -> ProductOut:
        item = self._items.get(check_product_id(product_id))
        if item is None:
            raise NotFoundError("Not found")
        return item

    def insert(self, draft: ProductDraft) -> ProductOut:
        item = ProductOut(id=new_product_id(), created_at=self.clock(), **draft.model_dump())
        with self._lock:
            self._items[item.id] = item
        return item.model_copy(deep=True)

    def list_all(self) -> List[ProductOut]:
        with self._lock:
            newest_inserted_first = list(reversed(list(self._items.values())))
        ordered = sorted(newest_inserted_first, key=lambda p: p.created_at, reverse=True)
        return [p.model_copy(deep=True) for p in ordered]

    def get_by_id(self, product_id: str) -> ProductOut:
        return self._get(product_id).model_copy(deep=True)

    def update_by_id(self, product_id: str, fields: dict) -> ProductOut:
        with self._lock:
            current = self._get(product_id)
            updated = ProductOut(**{**current.model_dump(), **fields})
            self._items[product_id] = updated
        return updated.model_copy(deep=True)

    def delete_by_id(self, product_id: str) -> ProductOut:
        with self._lock:
            item = self._get(product_id)
            del self._items[product_id]
        return item
