"""
Catalog errors.

Message constants are shared between the service layer and the routes; the
exception classes carry the HTTP status they map to.
"""

# Product errors
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_NO_PRODUCTS = "No products found"
ERROR_PRODUCT_EXISTS = "Product already exists"
ERROR_NAME_TAKEN = "Product name is already taken"
ERROR_INVALID_PRODUCT_ID = "Invalid product id"

# Review errors
ERROR_REVIEW_LIMIT = "It seems that you have already reviewed this product at least {limit} times"
ERROR_REVIEW_CONTENTION = "The product is being reviewed concurrently, please try again"

# Request errors
ERROR_BODY_MISSING = "Request body is missing"
ERROR_INVALID_DATA = "Invalid data"
ERROR_INVALID_PRICE = "Invalid price range"
ERROR_INVALID_RATING = "Invalid rating filter"
ERROR_INVALID_PAGE = "Invalid page or page size"

# Auth errors
ERROR_NO_TOKEN = "Not authorized, no token"
ERROR_TOKEN_FAILED = "Not authorized, token failed"
ERROR_NOT_ADMIN = "Not authorized as an admin"

# Generic errors
ERROR_DATABASE_UNAVAILABLE = "Database not available"


class CatalogError(Exception):
    """Base class for errors surfaced to the client as-is."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(CatalogError):
    status_code = 400


class NotFoundError(CatalogError):
    status_code = 404


class ConflictError(CatalogError):
    status_code = 409
