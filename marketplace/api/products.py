from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import List, Optional

from marketplace.api.deps import (
    get_current_user,
    get_moderation_service,
    get_product_service,
    require_moderator,
)
from marketplace.models.user import User
from marketplace.services.moderation_service import ModerationService
from marketplace.services.product_service import ProductService
from marketplace.schemas.common import Envelope
from marketplace.schemas.product import ProductResponse, RejectRequest

router = APIRouter(prefix="/products", tags=["Products"])


def _product_envelope(product) -> Envelope[ProductResponse]:
    return Envelope[ProductResponse](data=ProductResponse.model_validate(product))


def _list_envelope(products) -> Envelope[List[ProductResponse]]:
    return Envelope[List[ProductResponse]](
        data=[ProductResponse.model_validate(p) for p in products]
    )


@router.post(
    "",
    response_model=Envelope[ProductResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a product listing (multipart form with an optional `image` file). "
                "New listings start in `pending` status.",
)
def create_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    condition: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    """
    Create a new product owned by the caller.

    - **name**: Product name, up to 100 characters (required)
    - **description**: Up to 1000 characters (required)
    - **price**: Non-negative number (required)
    - **category**: One of the supported categories (required)
    - **stock**: Non-negative integer (required)
    - **condition**: Item condition (optional)
    - **image**: jpeg/jpg/png/gif file up to 5MB (optional)

    Every invalid field is reported at once.
    """
    fields = {
        "name": name,
        "description": description,
        "price": price,
        "category": category,
        "condition": condition or None,
        "stock": stock,
    }
    product = service.create(current_user.id, fields, image)
    return _product_envelope(product)


@router.get("", response_model=Envelope[List[ProductResponse]], summary="List own products")
def list_products(
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    """Get the caller's products, newest first."""
    return _list_envelope(service.list_by_owner(current_user.id))


@router.get("/user", response_model=Envelope[List[ProductResponse]], summary="List own products")
def list_user_products(
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    return _list_envelope(service.list_by_owner(current_user.id))


@router.get(
    "/pending",
    response_model=Envelope[List[ProductResponse]],
    summary="Moderation queue",
    description="Pending products from all users, newest first. Admin or subadmin only.",
)
def list_pending_products(
    moderator: User = Depends(require_moderator),
    service: ModerationService = Depends(get_moderation_service),
):
    return _list_envelope(service.list_pending())


@router.get(
    "/{product_id}",
    response_model=Envelope[ProductResponse],
    summary="Get product by ID",
    description="Get one of the caller's products. Results are cached in Redis.",
)
def get_product(
    product_id: str,
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    return Envelope[ProductResponse](data=service.get_owned(product_id, current_user.id))


@router.put(
    "/{product_id}",
    response_model=Envelope[ProductResponse],
    summary="Update a product",
    description="Update product details. Only provided fields will be updated.",
)
def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    condition: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    """
    Update a product owned by the caller.

    Partial updates are supported. Owner and status cannot be changed here.
    Uploading a new image replaces the stored one.
    """
    fields = {
        "name": name,
        "description": description,
        "price": price,
        "category": category,
        "condition": condition or None,
        "stock": stock,
    }
    product = service.update(product_id, current_user.id, fields, image)
    return _product_envelope(product)


@router.delete("/{product_id}", response_model=Envelope, summary="Delete a product")
def delete_product(
    product_id: str,
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    """Delete a product owned by the caller, together with its image."""
    service.delete(product_id, current_user.id)
    return Envelope(message="Product deleted successfully")


@router.put(
    "/{product_id}/approve",
    response_model=Envelope[ProductResponse],
    summary="Approve a pending product",
)
def approve_product(
    product_id: str,
    moderator: User = Depends(require_moderator),
    service: ModerationService = Depends(get_moderation_service),
):
    return _product_envelope(service.approve(product_id, moderator.id))


@router.put(
    "/{product_id}/reject",
    response_model=Envelope[ProductResponse],
    summary="Reject a pending product",
)
def reject_product(
    product_id: str,
    body: Optional[RejectRequest] = None,
    moderator: User = Depends(require_moderator),
    service: ModerationService = Depends(get_moderation_service),
):
    """Reject a pending product. **reason** is required."""
    reason = body.reason if body else None
    return _product_envelope(service.reject(product_id, moderator.id, reason))
