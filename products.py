# products.py
"""
Product catalog routes.

Static paths (categoriesList, search, slug/..., category/...) are declared
before "/{product_id}" so they are matched first.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from pymongo.database import Database

import catalog
from auth import Principal, authenticate, authenticate_admin
from database import get_db, serialize_document
from logger import get_logger, sanitize_string_for_logging
from schemas import ReviewIn
from settings import settings

logger = get_logger(__name__)
router = APIRouter(prefix=f"{settings.API_PREFIX}/products", tags=["Products"])


def _listing(products: List[dict]) -> Dict[str, Any]:
    total = len(products)
    return {
        "message": f"Success! {total} products were found",
        "numberOfProducts": total,
        "products": [serialize_document(p) for p in products],
    }


# -----------------------------
# Public endpoints
# -----------------------------

@router.get("", summary="List all products")
def list_products(db: Database = Depends(get_db)):
    logger.info("GET /api/products was called")
    return _listing(catalog.list_products(db))


@router.get("/categoriesList", summary="Distinct main categories, shortest first")
def list_categories(db: Database = Depends(get_db)):
    return {"message": "Success!", "categories": catalog.list_categories(db)}


@router.get("/search", summary="Filter, sort and paginate products")
def search_products(
    query: Optional[str] = None,
    mainCategory: Optional[str] = None,
    price: Optional[str] = Query(None, description='Legacy "min-max" range, e.g. "10-50"'),
    priceMin: Optional[float] = Query(None, ge=0),
    priceMax: Optional[float] = Query(None, ge=0),
    rating: Optional[str] = None,
    order: Optional[str] = Query(None, description="featured, lowest, highest, toprated or newest"),
    page: int = 1,
    pageSize: Optional[int] = None,
    db: Database = Depends(get_db),
):
    logger.info(
        "GET /api/products/search was called with query=%s",
        sanitize_string_for_logging(query),
    )
    result = catalog.search_products(
        db,
        query=query,
        main_category=mainCategory,
        price=price,
        rating=rating,
        order=order,
        page=page,
        page_size=pageSize,
        price_min=priceMin,
        price_max=priceMax,
    )
    result["products"] = [serialize_document(p) for p in result["products"]]
    return result


@router.get("/slug/{slug}", summary="Get a product by slug")
def get_product_by_slug(slug: str, db: Database = Depends(get_db)):
    logger.info("GET /api/products/slug/%s was called", sanitize_string_for_logging(slug))
    return serialize_document(catalog.get_product_by_slug(db, slug))


@router.get("/category/{category}", summary="List products of a main category")
def list_products_by_category(category: str, db: Database = Depends(get_db)):
    logger.info("GET /api/products/category/%s was called", sanitize_string_for_logging(category))
    return _listing(catalog.list_products_by_category(db, category))


@router.get(
    "/category/{category}/{subcategory}",
    summary="List products of a main category whose subcategory contains the given text",
)
def list_products_by_subcategory(category: str, subcategory: str, db: Database = Depends(get_db)):
    logger.info(
        "GET /api/products/category/%s/%s was called",
        sanitize_string_for_logging(category),
        sanitize_string_for_logging(subcategory),
    )
    return _listing(catalog.list_products_by_subcategory(db, category, subcategory))


@router.get("/{product_id}", summary="Get a product by id")
def get_product(product_id: str, db: Database = Depends(get_db)):
    logger.info("GET /api/products/%s was called", sanitize_string_for_logging(product_id))
    return serialize_document(catalog.get_product_by_id(db, product_id))


# -----------------------------
# User endpoints
# -----------------------------

@router.post("/{slug}/review", status_code=status.HTTP_201_CREATED, summary="Review a product")
def add_review(
    slug: str,
    review: ReviewIn,
    principal: Principal = Depends(authenticate),
    db: Database = Depends(get_db),
):
    logger.info("POST /api/products/%s/review was called", sanitize_string_for_logging(slug))
    product, prior_reviews = catalog.add_review(db, slug, principal, review.rating, review.comment)
    return {
        "message": "Review was added",
        "numOfReviewsForUser": prior_reviews,
        "product": serialize_document(product),
    }


# -----------------------------
# Admin endpoints
# -----------------------------

@router.delete("/{product_id}", summary="Delete a product")
def delete_product(
    product_id: str,
    admin: Principal = Depends(authenticate_admin),
    db: Database = Depends(get_db),
):
    logger.info("DELETE /api/products/%s was called by %s", sanitize_string_for_logging(product_id), admin.id)
    product = catalog.delete_product(db, product_id)
    return {"message": "Product was deleted", "product": serialize_document(product)}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a product")
def create_product(
    body: Optional[Dict[str, Any]] = Body(None),
    admin: Principal = Depends(authenticate_admin),
    db: Database = Depends(get_db),
):
    logger.info("POST /api/products was called by %s", admin.id)
    product = catalog.create_product(db, body)
    return {"message": "Product was added", "newProduct": serialize_document(product)}


@router.put("/{product_id}", summary="Partially update a product")
def update_product(
    product_id: str,
    body: Optional[Dict[str, Any]] = Body(None),
    admin: Principal = Depends(authenticate_admin),
    db: Database = Depends(get_db),
):
    logger.info("PUT /api/products/%s was called by %s", sanitize_string_for_logging(product_id), admin.id)
    product = catalog.update_product(db, product_id, body)
    return {"message": "Product was updated", "updatedProduct": serialize_document(product)}
