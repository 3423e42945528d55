"""Tests for the product API endpoints"""
import pytest


@pytest.fixture
def catalog_products(make_product):
    """A small catalog across all main categories"""
    return [
        make_product(name="Keychron K8", price=79.0, mainCategory="keyboards", subCategory="mech_wireless"),
        make_product(name="Ducky One", price=99.0, mainCategory="keyboards", subCategory="mech_wired"),
        make_product(name="Viper Mini", price=39.0, mainCategory="mice", subCategory="wired"),
        make_product(name="Cloud II", price=89.0, mainCategory="headphones", subCategory="wired"),
        make_product(name="Wrist Rest", price=19.0, mainCategory="accessories", subCategory="wristRest"),
    ]


# ==================== BASIC ====================

def test_root(client):
    response = client.get("/")
    assert response.status_code == 200


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_schema_uses_camel_case(client):
    response = client.get("/schema")
    assert response.status_code == 200
    assert "mainCategory" in response.json()["product"]["properties"]


# ==================== LISTING ====================

def test_list_products(client, catalog_products):
    response = client.get("/api/products")
    assert response.status_code == 200
    data = response.json()
    assert data["numberOfProducts"] == 5
    assert data["message"] == "Success! 5 products were found"
    assert all("id" in p and "_id" not in p for p in data["products"])


def test_list_products_empty(client):
    response = client.get("/api/products")
    assert response.status_code == 404
    assert response.json()["detail"] == "No products found"


def test_categories_list(client, catalog_products):
    response = client.get("/api/products/categoriesList")
    assert response.status_code == 200
    assert response.json()["categories"] == ["mice", "keyboards", "headphones", "accessories"]


def test_get_product_by_slug_and_id(client, catalog_products):
    response = client.get("/api/products/slug/keychron-k8")
    assert response.status_code == 200
    product = response.json()
    assert product["name"] == "Keychron K8"

    response = client.get(f"/api/products/{product['id']}")
    assert response.status_code == 200
    assert response.json()["slug"] == "keychron-k8"


def test_get_product_not_found(client, missing_id):
    assert client.get("/api/products/slug/nothing-here").status_code == 404
    assert client.get(f"/api/products/{missing_id}").status_code == 404


def test_get_product_invalid_id(client):
    response = client.get("/api/products/not-an-object-id")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid product id"


def test_list_by_category(client, catalog_products):
    response = client.get("/api/products/category/keyboards")
    assert response.status_code == 200
    assert response.json()["numberOfProducts"] == 2

    response = client.get("/api/products/category/mice/WIRED")
    assert response.status_code == 200
    assert [p["name"] for p in response.json()["products"]] == ["Viper Mini"]


def test_list_by_category_empty(client, catalog_products):
    response = client.get("/api/products/category/monitors")
    assert response.status_code == 404
    assert response.json()["detail"] == "No products were found under monitors"

    response = client.get("/api/products/category/mice/wireless")
    assert response.status_code == 404


# ==================== SEARCH ====================

def test_search_envelope(client, catalog_products):
    response = client.get("/api/products/search", params={"pageSize": 2, "page": 2})
    assert response.status_code == 200
    data = response.json()
    assert data["countProducts"] == 5
    assert data["page"] == 2
    assert data["pages"] == 3
    assert len(data["products"]) == 2


def test_search_filters_and_order(client, catalog_products):
    response = client.get(
        "/api/products/search",
        params={"query": "all", "mainCategory": "keyboards", "price": "50-100", "order": "lowest"},
    )
    assert response.status_code == 200
    prices = [p["price"] for p in response.json()["products"]]
    assert prices == [79.0, 99.0]


def test_search_explicit_price_bounds(client, catalog_products):
    response = client.get("/api/products/search", params={"priceMin": 30, "priceMax": 90})
    assert response.status_code == 200
    assert sorted(p["name"] for p in response.json()["products"]) == ["Cloud II", "Keychron K8", "Viper Mini"]


def test_search_invalid_params(client, catalog_products):
    assert client.get("/api/products/search", params={"price": "cheap"}).status_code == 400
    assert client.get("/api/products/search", params={"rating": "five"}).status_code == 400
    assert client.get("/api/products/search", params={"page": "first"}).status_code == 400
    assert client.get("/api/products/search", params={"pageSize": 1000}).status_code == 400


# ==================== REVIEWS ====================

def test_submit_review(client, catalog_products, user_headers):
    response = client.post(
        "/api/products/keychron-k8/review",
        json={"rating": 4, "comment": "Solid board"},
        headers=user_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Review was added"
    assert data["numOfReviewsForUser"] == 0
    assert data["product"]["numberOfReviews"] == 1
    assert data["product"]["rating"] == 4
    assert data["product"]["reviews"][0]["name"] == "Jane Tester"


def test_submit_review_limit(client, catalog_products, user_headers):
    for rating in (5, 4, 3):
        response = client.post(
            "/api/products/keychron-k8/review", json={"rating": rating}, headers=user_headers
        )
        assert response.status_code == 201

    response = client.post("/api/products/keychron-k8/review", json={"rating": 1}, headers=user_headers)
    assert response.status_code == 409

    product = client.get("/api/products/slug/keychron-k8").json()
    assert product["numberOfReviews"] == 3
    assert product["rating"] == 4


def test_submit_review_validation(client, catalog_products, user_headers):
    response = client.post("/api/products/keychron-k8/review", json={"rating": 6}, headers=user_headers)
    assert response.status_code == 400


def test_submit_review_unknown_product(client, user_headers):
    response = client.post("/api/products/unknown/review", json={"rating": 5}, headers=user_headers)
    assert response.status_code == 404


def test_submit_review_unauthorized(client, catalog_products):
    response = client.post("/api/products/keychron-k8/review", json={"rating": 5})
    assert response.status_code == 401


# ==================== ADMIN ====================

def test_create_product(client, admin_headers, sample_product):
    response = client.post("/api/products", json=sample_product, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Product was added"
    assert data["newProduct"]["slug"] == "keychron-q1"
    assert data["newProduct"]["rating"] == 0


def test_create_product_duplicate(client, admin_headers, sample_product):
    client.post("/api/products", json=sample_product, headers=admin_headers)
    response = client.post("/api/products", json=sample_product, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Product already exists"
    assert client.get("/api/products").json()["numberOfProducts"] == 1


def test_create_product_missing_body(client, admin_headers):
    response = client.post("/api/products", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Request body is missing"

    response = client.post("/api/products", json={}, headers=admin_headers)
    assert response.status_code == 400


def test_create_product_requires_admin(client, user_headers, sample_product):
    assert client.post("/api/products", json=sample_product).status_code == 401
    assert client.post("/api/products", json=sample_product, headers=user_headers).status_code == 403


def test_update_product(client, admin_headers, catalog_products):
    product_id = str(catalog_products[0]["_id"])
    response = client.put(
        f"/api/products/{product_id}",
        json={"name": "Keychron K8 Pro", "inStock": 0},
        headers=admin_headers,
    )
    assert response.status_code == 200
    updated = response.json()["updatedProduct"]
    assert updated["slug"] == "keychron-k8-pro"
    assert updated["inStock"] == 0
    assert updated["price"] == 79.0


def test_update_product_name_taken(client, admin_headers, catalog_products):
    product_id = str(catalog_products[0]["_id"])
    response = client.put(f"/api/products/{product_id}", json={"name": "Ducky One"}, headers=admin_headers)
    assert response.status_code == 409


def test_update_product_errors(client, admin_headers, catalog_products, missing_id):
    product_id = str(catalog_products[0]["_id"])
    assert client.put(f"/api/products/{product_id}", json={}, headers=admin_headers).status_code == 400
    assert client.put(f"/api/products/{missing_id}", json={"price": 1}, headers=admin_headers).status_code == 404


def test_delete_product(client, admin_headers, catalog_products, missing_id):
    product_id = str(catalog_products[0]["_id"])
    response = client.delete(f"/api/products/{product_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["product"]["id"] == product_id

    assert client.get(f"/api/products/{product_id}").status_code == 404
    assert client.delete(f"/api/products/{missing_id}", headers=admin_headers).status_code == 404


def test_seed_requires_admin(client, user_headers, admin_headers):
    assert client.post("/api/seed", headers=user_headers).status_code == 403
    response = client.post("/api/seed", headers=admin_headers)
    assert response.status_code == 201
    assert len(response.json()["products"]) > 0


def test_routes_follow_configured_api_prefix():
    from main import app
    from products import router
    from settings import settings

    assert router.prefix == f"{settings.API_PREFIX}/products"
    paths = {route.path for route in app.routes}
    assert f"{settings.API_PREFIX}/products/search" in paths
    assert f"{settings.API_PREFIX}/health" in paths
