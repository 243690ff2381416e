from fastapi import Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from .config import CORS_ORIGINS, UPLOAD_DIR
from .db import get_db
from .image_store import ImageStore
from .repository import ProductRepository, SqlAlchemyProductRepository
from .service import ProductService

_image_store = ImageStore(UPLOAD_DIR)

def add_cors(app, origins=None):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

def get_image_store() -> ImageStore:
    return _image_store

def get_repository(db: Session = Depends(get_db)) -> ProductRepository:
    return SqlAlchemyProductRepository(db)

def get_service(
    repo: ProductRepository = Depends(get_repository),
    images: ImageStore = Depends(get_image_store),
) -> ProductService:
    return ProductService(repo, images)
