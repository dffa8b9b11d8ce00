from sqlalchemy.orm import Session
from sqlalchemy import update
from typing import List, Optional
import logging

from marketplace.database import utcnow
from marketplace.models.product import Product, ProductStatus
from marketplace.services.exceptions import InvalidTransitionError, ValidationError
from marketplace.services.product_service import ProductService, load_product
from marketplace.utils.cache import CacheService, cache_service

logger = logging.getLogger(__name__)


class ModerationService:
    """
    Moderation workflow for product listings.

    STATE MACHINE:
    ==============
        pending --approve--> approved
        pending --reject---> rejected

    Approved and rejected are terminal. Moderators act on other users'
    listings, so no ownership check applies here; the role check happens
    in the API layer.

    Each transition is a single conditional UPDATE guarded by
    ``status = 'pending'``. If two moderators race on the same product the
    second UPDATE matches no row and fails with InvalidTransitionError
    instead of silently overwriting the first decision.
    """

    def __init__(self, db: Session, cache: CacheService = None):
        self.db = db
        self.cache = cache or cache_service

    def list_pending(self) -> List[Product]:
        """Get the review queue, newest first."""
        return (
            self.db.query(Product)
            .filter(Product.status == ProductStatus.PENDING)
            .order_by(Product.created_at.desc())
            .all()
        )

    def approve(self, product_id: str, moderator_id: str) -> Product:
        """
        Approve a pending product.

        Raises:
            InvalidIdError: If the ID is malformed
            NotFoundError: If the product does not exist
            InvalidTransitionError: If the product is not pending
        """
        return self._transition(product_id, moderator_id, ProductStatus.APPROVED)

    def reject(self, product_id: str, moderator_id: str, reason: Optional[str]) -> Product:
        """
        Reject a pending product with a reason.

        Raises:
            ValidationError: If the reason is missing or blank
            InvalidIdError: If the ID is malformed
            NotFoundError: If the product does not exist
            InvalidTransitionError: If the product is not pending
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError({"reason": "Please provide a rejection reason"})
        return self._transition(product_id, moderator_id, ProductStatus.REJECTED, reason)

    def _transition(
        self,
        product_id: str,
        moderator_id: str,
        target: ProductStatus,
        reason: Optional[str] = None,
    ) -> Product:
        product = load_product(self.db, product_id)
        if product.status != ProductStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot move product from {product.status.value} to {target.value}"
            )

        now = utcnow()
        result = self.db.execute(
            update(Product)
            .where(Product.id == product.id, Product.status == ProductStatus.PENDING)
            .values(
                status=target,
                rejection_reason=reason,
                moderated_by=moderator_id,
                moderated_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            self.db.rollback()
            raise InvalidTransitionError(f"Product {product.id} was already moderated")

        self.db.commit()
        self.db.refresh(product)

        self.cache.delete(ProductService.CACHE_PREFIX, product.id)

        logger.info(f"Product {product.id} {target.value} by moderator {moderator_id}")
        return product
