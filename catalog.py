"""
Catalog queries and mutations over the "product" collection.

Search requests are translated into a Mongo filter, a sort specification and
skip/limit pagination. Reviews are embedded in the product document; the
derived `rating` and `numberOfReviews` fields are rewritten in the same update
that appends a review, so readers never see one without the other.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from slugify import slugify

from auth import Principal
from database import create_document, get_documents
from errors import (
    ERROR_BODY_MISSING,
    ERROR_INVALID_DATA,
    ERROR_INVALID_PAGE,
    ERROR_INVALID_PRICE,
    ERROR_INVALID_PRODUCT_ID,
    ERROR_INVALID_RATING,
    ERROR_NAME_TAKEN,
    ERROR_NO_PRODUCTS,
    ERROR_PRODUCT_EXISTS,
    ERROR_PRODUCT_NOT_FOUND,
    ERROR_REVIEW_CONTENTION,
    ERROR_REVIEW_LIMIT,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from logger import get_logger, sanitize_string_for_logging
from schemas import ProductIn, ProductUpdate
from settings import settings

logger = get_logger(__name__)

COLLECTION = "product"

# Search parameters equal to this value are ignored
ALL = "all"

SORT_ORDERS = {
    "featured": [("featured", DESCENDING)],
    "lowest": [("price", ASCENDING)],
    "highest": [("price", DESCENDING)],
    "toprated": [("rating", DESCENDING)],
    "newest": [("createdAt", DESCENDING)],
}
DEFAULT_SORT = [("_id", DESCENDING)]


def _products(db: Database):
    return db[COLLECTION]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _object_id(product_id: str) -> ObjectId:
    if not ObjectId.is_valid(product_id):
        raise InvalidInputError(ERROR_INVALID_PRODUCT_ID)
    return ObjectId(product_id)


def _contains(text: str) -> Dict[str, str]:
    """Case-insensitive substring match on a string field."""
    return {"$regex": re.escape(text), "$options": "i"}


def _is_active(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


def _describe_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


# -----------------------------
# Query building
# -----------------------------

def _parse_number(raw: str, message: str) -> float:
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise InvalidInputError(message)
    if not math.isfinite(number):
        raise InvalidInputError(message)
    return number


def parse_price_range(price: str) -> Tuple[float, float]:
    """Parse the legacy "min-max" price filter, e.g. "10-50"."""
    parts = price.split("-")
    if len(parts) != 2:
        raise InvalidInputError(ERROR_INVALID_PRICE)
    low, high = (_parse_number(part.strip(), ERROR_INVALID_PRICE) for part in parts)
    return low, high


def build_search_filter(
    query: Optional[str] = None,
    main_category: Optional[str] = None,
    price: Optional[str] = None,
    rating: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
) -> Dict[str, Any]:
    """Combine every active search parameter into one AND-ed Mongo filter."""
    filters: Dict[str, Any] = {}

    if _is_active(query):
        filters["$or"] = [
            {"name": _contains(query)},
            {"mainCategory": _contains(query)},
            {"subCategory": _contains(query)},
        ]

    if _is_active(main_category):
        filters["mainCategory"] = main_category

    if _is_active(rating):
        filters["rating"] = {"$gte": _parse_number(rating, ERROR_INVALID_RATING)}

    price_bounds: Dict[str, float] = {}
    if _is_active(price):
        low, high = parse_price_range(price)
        price_bounds = {"$gte": low, "$lte": high}
    # explicit bounds override the matching end of the legacy range
    if price_min is not None:
        price_bounds["$gte"] = price_min
    if price_max is not None:
        price_bounds["$lte"] = price_max
    if price_bounds:
        filters["price"] = price_bounds

    return filters


def build_sort(order: Optional[str]) -> List[Tuple[str, int]]:
    return SORT_ORDERS.get(order or "", DEFAULT_SORT)


# -----------------------------
# Review aggregation
# -----------------------------

def summarize_reviews(reviews: List[Dict[str, Any]]) -> Tuple[float, int]:
    """Return (mean rating, review count); the mean of no reviews is 0."""
    count = len(reviews)
    if count == 0:
        return 0, 0
    return sum(review["rating"] for review in reviews) / count, count


def _reviews_unchanged(reviews: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Filter matching a product whose review list still has the size that was read."""
    if not reviews:
        # products stored before reviews existed have no array at all
        return {"$or": [{"reviews": {"$exists": False}}, {"reviews": {"$size": 0}}]}
    return {"reviews": {"$size": len(reviews)}}


def count_user_reviews(reviews: List[Dict[str, Any]], user_id: str) -> int:
    return sum(1 for review in reviews if str(review.get("user")) == user_id)


# -----------------------------
# Listing & retrieval
# -----------------------------

def list_products(db: Database) -> List[dict]:
    products = get_documents(db, COLLECTION)
    if not products:
        raise NotFoundError(ERROR_NO_PRODUCTS)
    return products


def order_categories(categories: List[str]) -> List[str]:
    """Shortest name first; equal lengths keep their relative order."""
    return sorted(categories, key=len)


def list_categories(db: Database) -> List[str]:
    return order_categories(_products(db).distinct("mainCategory"))


def get_product_by_slug(db: Database, slug: str) -> dict:
    product = _products(db).find_one({"slug": slug})
    if product is None:
        raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)
    return product


def get_product_by_id(db: Database, product_id: str) -> dict:
    product = _products(db).find_one({"_id": _object_id(product_id)})
    if product is None:
        raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)
    return product


def list_products_by_category(db: Database, category: str) -> List[dict]:
    products = get_documents(db, COLLECTION, {"mainCategory": category})
    if not products:
        raise NotFoundError(f"No products were found under {category}")
    return products


def list_products_by_subcategory(db: Database, category: str, subcategory: str) -> List[dict]:
    products = get_documents(
        db, COLLECTION, {"mainCategory": category, "subCategory": _contains(subcategory)}
    )
    if not products:
        raise NotFoundError(f"No products were found under {category}/{subcategory}")
    return products


# -----------------------------
# Search
# -----------------------------

def search_products(
    db: Database,
    query: Optional[str] = None,
    main_category: Optional[str] = None,
    price: Optional[str] = None,
    rating: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    page_size: Optional[int] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Filtered, sorted and paginated product search.

    Returns a dict with the page of `products`, the total `countProducts`
    matching the filters, the current `page` and the number of `pages`.
    """
    if page_size is None:
        page_size = settings.PAGE_SIZE
    if page < 1 or page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
        raise InvalidInputError(ERROR_INVALID_PAGE)

    filters = build_search_filter(query, main_category, price, rating, price_min, price_max)
    logger.debug("Search filter %s", sanitize_string_for_logging(str(filters), max_length=200))

    products = list(
        _products(db)
        .find(filters)
        .sort(build_sort(order))
        .skip(page_size * (page - 1))
        .limit(page_size)
    )
    count = _products(db).count_documents(filters)

    return {
        "products": products,
        "countProducts": count,
        "page": page,
        "pages": math.ceil(count / page_size),
    }


# -----------------------------
# Reviews
# -----------------------------

def add_review(
    db: Database, slug: str, principal: Principal, rating: int, comment: str
) -> Tuple[dict, int]:
    """
    Append a review by `principal` and recompute the product's rating.

    Returns the updated product and how many reviews the principal had on it
    before this one. The write only applies if the review list still has the
    size that was read, so a concurrent append forces a re-read and a fresh
    check of the per-user limit.
    """
    limit = settings.REVIEW_LIMIT_PER_USER

    for _ in range(settings.REVIEW_WRITE_ATTEMPTS):
        product = get_product_by_slug(db, slug)
        reviews = product.get("reviews", [])

        prior_reviews = count_user_reviews(reviews, principal.id)
        if prior_reviews >= limit:
            logger.warning("User %s hit the review limit on %s", principal.id, slug)
            raise ConflictError(ERROR_REVIEW_LIMIT.format(limit=limit))

        review = {
            "name": principal.name,
            "user": principal.id,
            "rating": int(rating),
            "comment": comment,
            "createdAt": _now(),
        }
        average, count = summarize_reviews(reviews + [review])

        updated = _products(db).find_one_and_update(
            {"_id": product["_id"], **_reviews_unchanged(reviews)},
            {
                "$push": {"reviews": review},
                "$set": {"rating": average, "numberOfReviews": count, "updatedAt": _now()},
            },
            return_document=ReturnDocument.AFTER,
        )
        if updated is not None:
            return updated, prior_reviews

        logger.info("Reviews of %s changed during submission, retrying", slug)

    raise ConflictError(ERROR_REVIEW_CONTENTION)


# -----------------------------
# Admin mutations
# -----------------------------

def create_product(db: Database, body: Optional[Dict[str, Any]]) -> dict:
    if not body:
        raise InvalidInputError(ERROR_BODY_MISSING)

    try:
        product_in = ProductIn.model_validate(body)
    except ValidationError as exc:
        raise InvalidInputError(f"{ERROR_INVALID_DATA}: {_describe_validation_error(exc)}")

    if _products(db).find_one({"name": product_in.name}):
        raise ConflictError(ERROR_PRODUCT_EXISTS)

    document = product_in.model_dump(by_alias=True)
    document.update(
        slug=slugify(product_in.name),
        rating=0,
        numberOfReviews=0,
        reviews=[],
    )
    try:
        product_id = create_document(db, COLLECTION, document)
    except DuplicateKeyError:
        # a different name with the same slug, or a concurrent create
        raise ConflictError(ERROR_PRODUCT_EXISTS)

    logger.info("Created product %s", product_id)
    return _products(db).find_one({"_id": ObjectId(product_id)})


def update_product(db: Database, product_id: str, body: Optional[Dict[str, Any]]) -> dict:
    """
    Apply a partial update.

    Every field present in the body overwrites the stored value, falsy values
    included; absent or null fields are left alone. A new name re-derives the
    slug. The derived review fields cannot be set here.
    """
    if not body:
        raise InvalidInputError(ERROR_BODY_MISSING)

    object_id = _object_id(product_id)
    product = _products(db).find_one({"_id": object_id})
    if product is None:
        raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)

    try:
        patch = ProductUpdate.model_validate(body)
    except ValidationError as exc:
        raise InvalidInputError(f"{ERROR_INVALID_DATA}: {_describe_validation_error(exc)}")

    changes = patch.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)

    new_name = changes.pop("name", None)
    if new_name is not None and new_name != product["name"]:
        if _products(db).find_one({"name": new_name, "_id": {"$ne": object_id}}):
            raise ConflictError(ERROR_NAME_TAKEN)
        changes["name"] = new_name
        changes["slug"] = slugify(new_name)

    changes["updatedAt"] = _now()
    try:
        updated = _products(db).find_one_and_update(
            {"_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        raise ConflictError(ERROR_NAME_TAKEN)

    if updated is None:
        raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)
    logger.info("Updated product %s fields %s", product_id, sorted(changes))
    return updated


def delete_product(db: Database, product_id: str) -> dict:
    object_id = _object_id(product_id)
    product = _products(db).find_one_and_delete({"_id": object_id})
    if product is None:
        raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)
    logger.info("Deleted product %s", product_id)
    return product


# -----------------------------
# Demo data
# -----------------------------

SAMPLE_PRODUCTS = [
    {
        "name": "Keychron K2 Wireless",
        "vendor": "Keychron",
        "price": 89.0,
        "description": "75% wireless mechanical keyboard with hot-swappable switches.",
        "mainCategory": "keyboards",
        "subCategory": "mech_wireless",
        "inStock": 25,
        "featured": True,
    },
    {
        "name": "Ducky One 3 TKL",
        "vendor": "Ducky",
        "price": 119.0,
        "description": "Tenkeyless wired mechanical keyboard with PBT keycaps.",
        "mainCategory": "keyboards",
        "subCategory": "mech_wired",
        "inStock": 12,
    },
    {
        "name": "Logitech K120",
        "vendor": "Logitech",
        "price": 15.0,
        "description": "Full-size wired membrane keyboard.",
        "mainCategory": "keyboards",
        "subCategory": "membrane_wired",
        "inStock": 60,
    },
    {
        "name": "Logitech G Pro X Superlight",
        "vendor": "Logitech",
        "price": 149.0,
        "description": "Ultra-light wireless gaming mouse.",
        "mainCategory": "mice",
        "subCategory": "wireless",
        "inStock": 30,
        "featured": True,
    },
    {
        "name": "Razer DeathAdder Essential",
        "vendor": "Razer",
        "price": 29.0,
        "description": "Ergonomic wired gaming mouse.",
        "mainCategory": "mice",
        "subCategory": "wired",
        "inStock": 40,
    },
    {
        "name": "HyperX Cloud II",
        "vendor": "HyperX",
        "price": 99.0,
        "description": "Wired gaming headset with virtual 7.1 surround.",
        "mainCategory": "headphones",
        "subCategory": "wired",
        "inStock": 18,
    },
    {
        "name": "Glorious Padded Wrist Rest",
        "vendor": "Glorious",
        "price": 24.0,
        "description": "Memory-foam wrist rest for tenkeyless keyboards.",
        "mainCategory": "accessories",
        "subCategory": "wristRest",
        "inStock": 50,
    },
    {
        "name": "SteelSeries QcK Desk Mat",
        "vendor": "SteelSeries",
        "price": 34.0,
        "description": "Extended cloth desk mat.",
        "mainCategory": "accessories",
        "subCategory": "deskMat",
        "inStock": 35,
    },
]


def seed_products(db: Database) -> List[dict]:
    """Insert the demo catalog into an empty collection; returns what was inserted."""
    if _products(db).count_documents({}) > 0:
        logger.info("Product collection is not empty, skipping seed")
        return []
    return [create_product(db, dict(sample)) for sample in SAMPLE_PRODUCTS]
