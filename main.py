import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database

import catalog
import database
from auth import Principal, authenticate_admin
from database import ensure_indexes, get_db, serialize_document
from errors import CatalogError
from logger import get_logger
from products import router as products_router
from settings import settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        ensure_indexes(database.db)
        logger.info("Product indexes ensured")
    yield
    if database.client is not None:
        database.client.close()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_router)


# -----------------------------
# Error handlers
# -----------------------------
@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    logger.warning("%s %s rejected: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": errors},
    )


# -----------------------------
# Basic routes
# -----------------------------
@app.get("/")
def read_root():
    return {"message": "Catalog backend is running"}


@app.get(f"{settings.API_PREFIX}/health")
def health_check(db: Database = Depends(get_db)):
    """Report whether the document store answers a ping."""
    try:
        db.command("ping")
    except Exception as e:
        logger.error("Database ping failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "database": f"Error: {str(e)[:50]}"},
        )
    return {"status": "ok", "database": db.name}


# -----------------------------
# Schema endpoint (for viewers/tools)
# -----------------------------
@app.get("/schema")
def get_schema():
    from schemas import Product, Review, User
    return {
        "user": User.model_json_schema(by_alias=True),
        "product": Product.model_json_schema(by_alias=True),
        "review": Review.model_json_schema(by_alias=True),
    }


# -----------------------------
# Demo data
# -----------------------------
@app.post(f"{settings.API_PREFIX}/seed", status_code=status.HTTP_201_CREATED)
def seed_products(
    admin: Principal = Depends(authenticate_admin),
    db: Database = Depends(get_db),
):
    logger.info("POST /api/seed was called by %s", admin.id)
    inserted = catalog.seed_products(db)
    return {
        "message": f"Seeded {len(inserted)} products",
        "products": [serialize_document(p) for p in inserted],
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
