# shades_api/main.py
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, Depends, File, Form, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import API_TITLE, API_VERSION, HOST, LOG_LEVEL, PORT
from .db import init_db
from .deps import add_cors, get_image_store, get_repository, get_service
from .errors import ApiError
from .repository import ProductRepository
from .schemas import ErrorResponse, HealthResponse, ProductOut, ProductUpdate
from .service import ProductService

logger = logging.getLogger("shades_api")

# ---------------------------------------------------------
# 🚀 Initialization
# ---------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
    except Exception:
        logger.exception("❌ Database connection failed, shutting down")
        raise RuntimeError("Database unavailable")
    logger.info("✅ %s ready", API_TITLE)
    yield


app = FastAPI(title=API_TITLE, version=API_VERSION, docs_url="/api-docs", lifespan=lifespan)
add_cors(app)

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

# ---------------------------------------------------------
# ⚠️ Error envelope: {"error": message}
# ---------------------------------------------------------
@app.exception_handler(ApiError)
async def handle_api_error(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(parts) or "Invalid request"})


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.error("❌ Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

# ---------------------------------------------------------
# 🩺 Health check
# ---------------------------------------------------------
@app.get("/", response_model=HealthResponse)
def health():
    return {"message": "Sunglasses API Running", "time": datetime.now(timezone.utc)}

# ---------------------------------------------------------
# 🕶️ Products
# ---------------------------------------------------------
@app.post(
    "/api/products",
    response_model=ProductOut,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
def create_product(
    images: Optional[List[UploadFile]] = File(None),
    name: Optional[str] = Form(None),
    variant: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    original_price: Optional[str] = Form(None, alias="originalPrice"),
    category: Optional[str] = Form(None),
    colors: Optional[List[str]] = Form(None),
    rating: Optional[str] = Form(None),
    reviews: Optional[str] = Form(None),
    is_new: Optional[str] = Form(None, alias="isNew"),
    badge: Optional[str] = Form(None),
    service: ProductService = Depends(get_service),
):
    fields = {
        "name": name,
        "variant": variant,
        "price": price,
        "originalPrice": original_price,
        "category": category,
        "colors": colors,
        "rating": rating,
        "reviews": reviews,
        "isNew": is_new,
        "badge": badge,
    }
    try:
        return service.create(fields, images or [])
    finally:
        for upload in images or []:
            upload.file.close()


@app.get("/api/products", response_model=List[ProductOut], responses=_ERRORS)
def list_products(repo: ProductRepository = Depends(get_repository)):
    return repo.list_all()


@app.get("/api/products/{id}", response_model=ProductOut, responses=_ERRORS)
def get_product(id: str, repo: ProductRepository = Depends(get_repository)):
    return repo.get_by_id(id)


@app.put("/api/products/{id}", response_model=ProductOut, responses=_ERRORS)
def update_product(id: str, payload: ProductUpdate, repo: ProductRepository = Depends(get_repository)):
    return repo.update_by_id(id, payload.changes())


@app.delete(
    "/api/products/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_ERRORS,
)
def delete_product(id: str, service: ProductService = Depends(get_service)):
    service.delete(id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# ---------------------------------------------------------
# 🖼️ Uploaded images
# ---------------------------------------------------------
# Flat upload directory, e.g. /uploads/1718000000000-123456789.jpg
_uploads_dir = get_image_store().directory
_uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=_uploads_dir), name="uploads")


def run():
    import uvicorn

    logging.basicConfig(level=LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("shades_api.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL)


if __name__ == "__main__":
    run()
