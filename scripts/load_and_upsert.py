# scripts/load_and_upsert.py
"""
Bulk-load products from a CSV into the catalog database.

Columns: name, variant, price, originalPrice, category, colors, rating,
reviews, isNew, badge, images. `images` holds filenames (comma separated or a
JSON list) that must already exist in UPLOAD_DIR; `colors` may be JSON text
or a comma separated list.
"""
import sys
import pandas as pd

from shades_api.config import MIN_PRODUCT_IMAGES, UPLOAD_DIR
from shades_api.db import SessionLocal, init_db
from shades_api.errors import ValidationError
from shades_api.image_store import ImageStore
from shades_api.normalize import coerce_images, normalize_product_form
from shades_api.repository import SqlAlchemyProductRepository

FORM_COLUMNS = ["name", "variant", "price", "originalPrice", "category",
                "colors", "rating", "reviews", "isNew", "badge"]


def row_fields(r) -> dict:
    """CSV row -> form-like field dict (NaN cells become missing)."""
    fields = {}
    for c in FORM_COLUMNS:
        v = r.get(c)
        if v is None or (isinstance(v, float) and pd.isna(v)):
            continue
        if c == "isNew":
            v = "true" if str(v).strip().lower() in {"true", "1", "yes"} else "false"
        elif c == "colors" and not str(v).strip().startswith("["):
            v = [p.strip() for p in str(v).split(",") if p.strip()]
        else:
            v = str(v)
        fields[c] = v
    return fields


def main(csv_path: str) -> int:
    df = pd.read_csv(csv_path)
    if "images" not in df.columns:
        print("❌ CSV has no 'images' column")
        return 1

    init_db()
    store = ImageStore(UPLOAD_DIR)
    loaded, failed = 0, 0

    with SessionLocal() as session:
        repo = SqlAlchemyProductRepository(session)
        for i, r in df.iterrows():
            raw_images = r.get("images")
            try:
                images = [] if isinstance(raw_images, float) and pd.isna(raw_images) else coerce_images(raw_images)
                missing = [name for name in images if not store.exists(name)]
                if missing:
                    raise ValidationError(f"images not found in {UPLOAD_DIR}: {', '.join(missing)}")
                if len(images) < MIN_PRODUCT_IMAGES:
                    raise ValidationError(f"Minimum {MIN_PRODUCT_IMAGES} images required")
                product = repo.insert(normalize_product_form(row_fields(r), images=images))
            except ValidationError as e:
                failed += 1
                print(f"⚠️ row {i}: {e.message}")
                continue
            loaded += 1
            print(f"✅ row {i}: {product.id} {product.name}")

    print(f"Loaded {loaded} product(s), {failed} row(s) skipped.")
    return 1 if failed else 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/load_and_upsert.py products.csv")
        sys.exit(1)
    sys.exit(main(sys.argv[1]))
