# shades_api/service.py
import logging
from typing import Any, List, Mapping, Sequence

from .config import MIN_PRODUCT_IMAGES
from .errors import ValidationError
from .image_store import ImageStore, Upload
from .normalize import normalize_product_form
from .repository import ProductRepository
from .schemas import ProductOut

logger = logging.getLogger("shades_api.service")


class ProductService:
    """Create and delete workflows spanning the image store and the repository."""

    def __init__(self, repo: ProductRepository, images: ImageStore):
        self.repo = repo
        self.images = images

    def create(self, fields: Mapping[str, Any], uploads: Sequence[Upload]) -> ProductOut:
        uploads = [u for u in uploads if u is not None and u.filename]
        if len(uploads) < MIN_PRODUCT_IMAGES:
            raise ValidationError(f"Minimum {MIN_PRODUCT_IMAGES} images required")

        filenames = self.images.store(uploads)
        try:
            draft = normalize_product_form(fields, images=filenames)
            product = self.repo.insert(draft)
        except Exception:
            # compensate: nothing references these files anymore
            logger.info("Create failed, discarding %d uploaded image(s)", len(filenames))
            self.images.discard(filenames)
            raise

        logger.info("Created product %s with %d image(s)", product.id, len(filenames))
        return product

    def delete(self, product_id: str) -> ProductOut:
        product = self.repo.delete_by_id(product_id)

        leftover: List[str] = [name for name in product.images if not self.images.remove(name)]
        if leftover:
            logger.warning(
                "Product %s deleted but %d image(s) were not removed, clean up manually: %s",
                product.id, len(leftover), ", ".join(leftover),
            )
        else:
            logger.info("Deleted product %s and %d image(s)", product.id, len(product.images))
        return product
