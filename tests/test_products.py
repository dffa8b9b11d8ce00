"""Tests for Product API endpoints."""
import os
import uuid

from conftest import UPLOAD_DIR, auth_headers, create_product

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_create_product(client, user_token):
    """Test creating a new product starts it in pending status."""
    response = create_product(client, user_token, condition="Like New")

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["name"] == "Desk Lamp"
    assert data["price"] == 10
    assert data["stock"] == 5
    assert data["category"] == "Home & Garden"
    assert data["condition"] == "Like New"
    assert data["status"] == "pending"
    assert data["image"] is None
    assert "id" in data
    assert "ownerId" in data
    assert "createdAt" in data


def test_create_product_requires_token(client):
    response = client.post("/api/products", data={"name": "Lamp"})

    assert response.status_code == 401


def test_create_product_negative_price(client, user_token):
    """Test creating product with negative price lists the price field."""
    response = create_product(client, user_token, price="-1")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert list(body["errors"]) == ["price"]


def test_create_product_reports_every_invalid_field(client, user_token):
    response = client.post(
        "/api/products",
        data={"description": "No name", "price": "abc", "category": "Toys", "stock": "-5"},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 400
    assert set(response.json()["errors"]) == {"name", "price", "category", "stock"}


def test_create_product_ignores_client_owner(client, user_token, other_token):
    me = client.get("/api/auth/me", headers=auth_headers(user_token)).json()["data"]
    other = client.get("/api/auth/me", headers=auth_headers(other_token)).json()["data"]

    response = create_product(client, user_token, ownerId=other["id"], owner_id=other["id"], status="approved")

    data = response.json()["data"]
    assert data["ownerId"] == me["id"]
    assert data["status"] == "pending"


def test_create_product_with_image(client, user_token):
    response = client.post(
        "/api/products",
        data={"name": "Lamp", "description": "LED", "price": "10", "category": "Other", "stock": "1"},
        files={"image": ("lamp.png", PNG_BYTES, "image/png")},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 201
    image = response.json()["data"]["image"]
    assert image.startswith("/uploads/")
    assert image.endswith(".png")
    assert os.path.exists(os.path.join(UPLOAD_DIR, os.path.basename(image)))

    served = client.get(image)
    assert served.status_code == 200
    assert served.content == PNG_BYTES


def test_create_product_rejects_non_image(client, user_token):
    response = client.post(
        "/api/products",
        data={"name": "Lamp", "description": "LED", "price": "10", "category": "Other", "stock": "1"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 400
    assert response.json()["errors"] == {"image": "Only image files are allowed!"}


def test_list_products_only_own(client, user_token, other_token):
    create_product(client, user_token, name="Mine 1")
    create_product(client, user_token, name="Mine 2")
    create_product(client, other_token, name="Theirs")

    for path in ("/api/products", "/api/products/user"):
        response = client.get(path, headers=auth_headers(user_token))
        assert response.status_code == 200
        names = [p["name"] for p in response.json()["data"]]
        assert sorted(names) == ["Mine 1", "Mine 2"]


def test_get_product(client, user_token):
    product_id = create_product(client, user_token).json()["data"]["id"]

    response = client.get(f"/api/products/{product_id}", headers=auth_headers(user_token))

    assert response.status_code == 200
    assert response.json()["data"]["id"] == product_id


def test_get_product_not_owner(client, user_token, other_token, admin_token):
    """Test only the owner can read a product, whatever the caller's role."""
    product_id = create_product(client, user_token).json()["data"]["id"]

    for token in (other_token, admin_token):
        response = client.get(f"/api/products/{product_id}", headers=auth_headers(token))
        assert response.status_code == 403
        assert response.json()["success"] is False


def test_get_product_not_found(client, user_token):
    response = client.get(f"/api/products/{uuid.uuid4()}", headers=auth_headers(user_token))

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Product not found"}


def test_get_product_invalid_id(client, user_token):
    response = client.get("/api/products/not-an-id", headers=auth_headers(user_token))

    assert response.status_code == 400


def test_update_product(client, user_token):
    """Test updating a product."""
    product_id = create_product(client, user_token, name="Original Name").json()["data"]["id"]

    response = client.put(
        f"/api/products/{product_id}",
        data={"name": "Updated Name", "price": "75"},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Updated Name"
    assert data["price"] == 75
    assert data["stock"] == 5  # Stock should remain unchanged
    assert data["status"] == "pending"


def test_update_product_not_owner(client, user_token, other_token, admin_token):
    product_id = create_product(client, user_token).json()["data"]["id"]

    for token in (other_token, admin_token):
        response = client.put(
            f"/api/products/{product_id}",
            data={"name": "Hijacked"},
            headers=auth_headers(token),
        )
        assert response.status_code == 403

    data = client.get(f"/api/products/{product_id}", headers=auth_headers(user_token)).json()["data"]
    assert data["name"] == "Desk Lamp"


def test_update_product_validation(client, user_token):
    product_id = create_product(client, user_token).json()["data"]["id"]

    response = client.put(
        f"/api/products/{product_id}",
        data={"stock": "-1", "price": "-2"},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 400
    assert set(response.json()["errors"]) == {"stock", "price"}


def test_update_product_not_found(client, user_token):
    response = client.put(
        f"/api/products/{uuid.uuid4()}",
        data={"name": "Nothing"},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 404


def test_update_product_replaces_image(client, user_token):
    files = {"image": ("a.png", PNG_BYTES, "image/png")}
    created = client.post(
        "/api/products",
        data={"name": "Lamp", "description": "LED", "price": "10", "category": "Other", "stock": "1"},
        files=files,
        headers=auth_headers(user_token),
    ).json()["data"]

    response = client.put(
        f"/api/products/{created['id']}",
        files={"image": ("b.gif", b"GIF89a", "image/gif")},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 200
    new_image = response.json()["data"]["image"]
    assert new_image.endswith(".gif")
    assert os.path.exists(os.path.join(UPLOAD_DIR, os.path.basename(new_image)))
    assert not os.path.exists(os.path.join(UPLOAD_DIR, os.path.basename(created["image"])))


def test_delete_product(client, user_token):
    """Test deleting a product."""
    product_id = create_product(client, user_token).json()["data"]["id"]

    response = client.delete(f"/api/products/{product_id}", headers=auth_headers(user_token))
    assert response.status_code == 200
    assert response.json()["message"] == "Product deleted successfully"

    # Verify it's deleted
    get_response = client.get(f"/api/products/{product_id}", headers=auth_headers(user_token))
    assert get_response.status_code == 404


def test_delete_product_not_owner(client, user_token, other_token):
    product_id = create_product(client, user_token).json()["data"]["id"]

    response = client.delete(f"/api/products/{product_id}", headers=auth_headers(other_token))

    assert response.status_code == 403
    assert client.get(f"/api/products/{product_id}", headers=auth_headers(user_token)).status_code == 200


def test_create_product_rejects_non_finite_price(client, user_token):
    for price in ("inf", "nan", "-inf"):
        response = create_product(client, user_token, price=price)

        assert response.status_code == 400
        assert list(response.json()["errors"]) == ["price"]


def test_update_product_rejects_non_finite_price(client, user_token):
    product_id = create_product(client, user_token).json()["data"]["id"]

    response = client.put(
        f"/api/products/{product_id}",
        data={"price": "inf"},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 400
    assert list(response.json()["errors"]) == ["price"]


def test_update_product_blank_condition_is_ignored(client, user_token):
    """Test an empty condition field is treated as omitted, as on create."""
    product_id = create_product(client, user_token, condition="Like New").json()["data"]["id"]

    response = client.put(
        f"/api/products/{product_id}",
        data={"condition": "", "name": "Renamed"},
        headers=auth_headers(user_token),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Renamed"
    assert data["condition"] == "Like New"
