from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from pydantic import ValidationError as PydanticValidationError
from typing import Any, Dict, List, Optional
import logging
import uuid

from marketplace.models.product import Product, ProductStatus
from marketplace.schemas.common import field_errors
from marketplace.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from marketplace.services.exceptions import (
    ForbiddenError,
    InvalidIdError,
    NotFoundError,
    ValidationError,
)
from marketplace.utils.cache import CacheService, cache_service
from marketplace.utils.storage import ImageStorage

logger = logging.getLogger(__name__)


def parse_product_id(product_id: str) -> str:
    """
    Normalize a product identifier.

    Raises:
        InvalidIdError: If the value is not a well-formed UUID
    """
    try:
        return str(uuid.UUID(str(product_id)))
    except ValueError:
        raise InvalidIdError(f"Invalid product id: {product_id}") from None


def load_product(db: Session, product_id: str) -> Product:
    """
    Load a product by ID.

    Raises:
        InvalidIdError: If the ID is malformed (checked before querying)
        NotFoundError: If no product has this ID
    """
    product_id = parse_product_id(product_id)
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def _present(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _has_file(image) -> bool:
    return image is not None and bool(getattr(image, "filename", None))


class ProductService:
    """
    Service class for Product CRUD operations.

    Every mutation is restricted to the product's owner. The owner is always
    the caller resolved by the auth layer, never a client-supplied value.
    Images are accepted as upload objects exposing ``file``, ``filename``
    and ``content_type`` and stored only once the fields have validated.
    """

    CACHE_PREFIX = "product"

    def __init__(
        self,
        db: Session,
        storage: ImageStorage,
        cache: CacheService = None,
        require_image: bool = False,
        require_condition: bool = False,
    ):
        self.db = db
        self.storage = storage
        self.cache = cache or cache_service
        self.require_image = require_image
        self.require_condition = require_condition

    def validate_create(self, fields: Dict[str, Any], image=None) -> ProductCreate:
        """
        Validate the fields of a new product.

        Raises:
            ValidationError: Listing every violated field, not just the first
        """
        errors: Dict[str, str] = {}
        data = None
        try:
            data = ProductCreate.model_validate(_present(fields))
        except PydanticValidationError as e:
            errors.update(field_errors(e.errors()))

        if self.require_condition and fields.get("condition") in (None, ""):
            errors.setdefault("condition", "Please specify product condition")
        self._check_image(image, errors)

        if errors:
            raise ValidationError(errors)
        return data

    def validate_update(self, fields: Dict[str, Any], image=None) -> ProductUpdate:
        errors: Dict[str, str] = {}
        patch = None
        try:
            patch = ProductUpdate.model_validate(_present(fields))
        except PydanticValidationError as e:
            errors.update(field_errors(e.errors()))

        if _has_file(image):
            self._check_image(image, errors)

        if errors:
            raise ValidationError(errors)
        return patch

    def _check_image(self, image, errors: Dict[str, str]) -> None:
        if not _has_file(image):
            if self.require_image:
                errors["image"] = "Please add an image"
            return
        try:
            self.storage.check(image.filename, image.content_type)
        except ValidationError as e:
            errors.update(e.errors)

    def _store_image(self, image) -> Optional[str]:
        if not _has_file(image):
            return None
        return self.storage.save(image.file, image.filename, image.content_type)

    def _commit(self, image_ref: Optional[str]) -> None:
        """Commit the session, removing a freshly stored image if the write fails."""
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            self.storage.discard(image_ref)
            raise

    def create(self, owner_id: str, fields: Dict[str, Any], image=None) -> Product:
        """
        Create a new product in pending status.

        Args:
            owner_id: Resolved caller who will own the product
            fields: Raw product fields
            image: Optional uploaded image

        Returns:
            Created product instance
        """
        data = self.validate_create(fields, image)
        image_ref = self._store_image(image)

        product = Product(
            name=data.name,
            description=data.description,
            price=data.price,
            category=data.category,
            condition=data.condition,
            stock=data.stock,
            image=image_ref,
            status=ProductStatus.PENDING,
            owner_id=owner_id,
        )
        self.db.add(product)
        self._commit(image_ref)
        self.db.refresh(product)

        logger.info(f"Product {product.id} created by user {owner_id}")
        return product

    def list_by_owner(self, owner_id: str) -> List[Product]:
        """Get the owner's products, newest first."""
        return (
            self.db.query(Product)
            .filter(Product.owner_id == owner_id)
            .order_by(Product.created_at.desc())
            .all()
        )

    def get_by_id(self, product_id: str) -> Product:
        """Get a product by ID, see load_product."""
        return load_product(self.db, product_id)

    def get_owned(self, product_id: str, caller_id: str) -> ProductResponse:
        """
        Get product details for its owner, served from Redis when cached.

        Raises:
            ForbiddenError: If the caller does not own the product
        """
        product_id = parse_product_id(product_id)
        cached = self.cache.get(self.CACHE_PREFIX, product_id)
        if cached:
            self._check_owner(cached.get("owner_id"), caller_id, "access")
            return ProductResponse.model_validate(cached)

        product = self.get_by_id(product_id)
        self._check_owner(product.owner_id, caller_id, "access")

        response = ProductResponse.model_validate(product)
        self.cache.set(self.CACHE_PREFIX, product_id, response.model_dump(mode="json"))
        return response

    def update(self, product_id: str, caller_id: str, fields: Dict[str, Any], image=None) -> Product:
        """
        Update an existing product.

        Only provided fields change; owner and status are never patchable.
        A new image replaces the stored one.

        Raises:
            NotFoundError: If the product does not exist
            ForbiddenError: If the caller does not own the product
            ValidationError: If any provided field is invalid
        """
        product = self.get_by_id(product_id)
        self._check_owner(product.owner_id, caller_id, "update")

        patch = self.validate_update(fields, image)
        for field, value in patch.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(product, field, value)

        old_image = None
        image_ref = self._store_image(image)
        if image_ref:
            old_image, product.image = product.image, image_ref

        self._commit(image_ref)
        self.db.refresh(product)

        self._invalidate_cache(product.id)
        self.storage.discard(old_image)

        logger.info(f"Product {product.id} updated by user {caller_id}")
        return product

    def delete(self, product_id: str, caller_id: str) -> None:
        """
        Hard-delete a product and its stored image.

        Raises:
            NotFoundError: If the product does not exist
            ForbiddenError: If the caller does not own the product
        """
        product = self.get_by_id(product_id)
        self._check_owner(product.owner_id, caller_id, "delete")

        product_id, image_ref = product.id, product.image
        self.db.delete(product)
        self.db.commit()

        self._invalidate_cache(product_id)
        self.storage.discard(image_ref)

        logger.info(f"Product {product_id} deleted by user {caller_id}")

    def _check_owner(self, owner_id: Optional[str], caller_id: str, action: str) -> None:
        if str(owner_id) != str(caller_id):
            logger.warning(f"User {caller_id} denied {action} on a product they do not own")
            raise ForbiddenError(f"Not authorized to {action} this product")

    def _invalidate_cache(self, product_id: str) -> None:
        """Invalidate cache for a product."""
        self.cache.delete(self.CACHE_PREFIX, product_id)
