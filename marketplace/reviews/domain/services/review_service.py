"""
ReviewService - seller and product reviews.

A review targets a seller and optionally one of their products. Product
reviews require a completed purchase and are unique per (reviewer, product).
Every mutation recomputes the seller's rating in the same transaction.
"""

from typing import Dict, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from marketplace.catalog.domain.models import Product
from marketplace.domain.events import SellerRatingChangedEvent
from marketplace.infra.observability.metrics import reviews_written_total
from marketplace.ordering.domain.models import Order, OrderItem
from marketplace.reviews.domain.models import Review
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, paginate, service_err, service_ok
from utils.rbac import is_admin

User = get_user_model()


def parse_rating(rating) -> Optional[int]:
    """Return the rating as an int in 1..5, or None when it is out of range or not a whole number."""
    if isinstance(rating, bool):
        return None
    try:
        value = int(rating)
    except (TypeError, ValueError):
        return None
    if value != rating and str(value) != str(rating).strip():
        return None
    return value if 1 <= value <= 5 else None


class ReviewService(BaseService):
    """
    Dependencies:
    - SellerRatingService: recompute and read seller aggregates
    - event_bus: publishes seller.rating_changed after commit
    """

    def __init__(self, rating_service, event_bus):
        super().__init__()
        self.rating_service = rating_service
        self.event_bus = event_bus

    def has_purchased(self, user, product_id) -> bool:
        """A completed order of ``user`` contains the product."""
        return OrderItem.objects.filter(
            order__buyer=user, order__status=Order.STATUS_COMPLETED, product_id=product_id
        ).exists()

    def has_reviewed(self, user, product_id) -> bool:
        return Review.objects.filter(reviewer=user, product_id=product_id).exists()

    def _rating_changed(self, seller_id, rating, action: str) -> None:
        reviews_written_total.labels(action=action).inc()
        try:
            total = Review.objects.filter(seller_id=seller_id).count()
            event = SellerRatingChangedEvent(
                seller_id=str(seller_id), rating=str(rating), total_reviews=total, action=action
            )
            self.event_bus.publish(event.event_type, event.payload)
        except Exception as e:
            self.logger.error(f"Failed to publish rating change for seller {seller_id}: {e}")

    @BaseService.log_performance
    def create_review(
        self, user, seller_id, rating, comment: str = "", product_id=None
    ) -> ServiceResult[Review]:
        """
        Errors:
            INVALID_RATING, USER_NOT_FOUND, SELF_REVIEW, PRODUCT_NOT_FOUND,
            SELLER_MISMATCH, NOT_PURCHASED, ALREADY_REVIEWED
        """
        value = parse_rating(rating)
        if value is None:
            return service_err(ErrorCodes.INVALID_RATING, "Rating must be a whole number between 1 and 5")

        try:
            seller = User.objects.filter(id=seller_id).first()
            if seller is None:
                return service_err(ErrorCodes.USER_NOT_FOUND, "Seller not found")
            if seller.id == user.id:
                return service_err(ErrorCodes.SELF_REVIEW, "You cannot review yourself")

            product = None
            if product_id:
                product = Product.objects.filter(id=product_id).first()
                if product is None:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
                if product.seller_id != seller.id:
                    return service_err(ErrorCodes.SELLER_MISMATCH, "Product does not belong to this seller")
                if not self.has_purchased(user, product.id):
                    return service_err(ErrorCodes.NOT_PURCHASED, "You can only review products you have purchased")
                if self.has_reviewed(user, product.id):
                    return service_err(ErrorCodes.ALREADY_REVIEWED, "You have already reviewed this product")

            try:
                with transaction.atomic():
                    review = Review.objects.create(
                        reviewer=user, seller=seller, product=product, rating=value, comment=comment or ""
                    )
                    new_rating = self.rating_service.recompute_seller_rating(seller.id)
            except IntegrityError:
                # Lost a race with a concurrent insert for the same product
                return service_err(ErrorCodes.ALREADY_REVIEWED, "You have already reviewed this product")

            self._rating_changed(seller.id, new_rating, "created")
            self.logger.info(f"Review {review.id} created for seller {seller.id} by {user.id}")
            return service_ok(review)
        except Exception as e:
            return self.internal_error("creating review", e)

    @BaseService.log_performance
    def update_review(self, user, review_id, rating=None, comment: Optional[str] = None) -> ServiceResult[Review]:
        try:
            value = None
            if rating is not None:
                value = parse_rating(rating)
                if value is None:
                    return service_err(ErrorCodes.INVALID_RATING, "Rating must be a whole number between 1 and 5")

            with transaction.atomic():
                review = Review.objects.select_for_update().filter(pk=review_id).first()
                if review is None:
                    return service_err(ErrorCodes.REVIEW_NOT_FOUND, "Review not found")
                if review.reviewer_id != user.id and not is_admin(user):
                    return service_err(ErrorCodes.PERMISSION_DENIED, "Not authorized to update this review")

                if value is not None:
                    review.rating = value
                if comment is not None:
                    review.comment = comment
                review.save()
                new_rating = self.rating_service.recompute_seller_rating(review.seller_id)

            self._rating_changed(review.seller_id, new_rating, "updated")
            return service_ok(review)
        except Exception as e:
            return self.internal_error(f"updating review {review_id}", e)

    @BaseService.log_performance
    def delete_review(self, user, review_id) -> ServiceResult[None]:
        try:
            with transaction.atomic():
                review = Review.objects.select_for_update().filter(pk=review_id).first()
                if review is None:
                    return service_err(ErrorCodes.REVIEW_NOT_FOUND, "Review not found")
                if review.reviewer_id != user.id and not is_admin(user):
                    return service_err(ErrorCodes.PERMISSION_DENIED, "Not authorized to delete this review")

                seller_id = review.seller_id
                review.delete()
                new_rating = self.rating_service.recompute_seller_rating(seller_id)

            self._rating_changed(seller_id, new_rating, "deleted")
            return service_ok(None)
        except Exception as e:
            return self.internal_error(f"deleting review {review_id}", e)

    # ---- queries -----------------------------------------------------------

    def _reviews(self):
        return Review.objects.select_related("reviewer", "product")

    @BaseService.log_performance
    def get_seller_reviews(self, seller_id, page=None, page_size=None) -> ServiceResult[Dict]:
        try:
            if not User.objects.filter(id=seller_id).exists():
                return service_err(ErrorCodes.USER_NOT_FOUND, "Seller not found")
            page_data = paginate(self._reviews().filter(seller_id=seller_id), page, page_size)
            page_data["rating_stats"] = self.rating_service.get_seller_rating_stats(seller_id)
            return service_ok(page_data)
        except Exception as e:
            return self.internal_error(f"listing reviews for seller {seller_id}", e)

    @BaseService.log_performance
    def get_product_reviews(self, product_id, page=None, page_size=None) -> ServiceResult[Dict]:
        try:
            if not Product.objects.filter(id=product_id).exists():
                return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
            return service_ok(paginate(self._reviews().filter(product_id=product_id), page, page_size))
        except Exception as e:
            return self.internal_error(f"listing reviews for product {product_id}", e)

    def get_seller_rating_stats(self, seller_id) -> ServiceResult[Dict]:
        try:
            return service_ok(self.rating_service.get_seller_rating_stats(seller_id))
        except Exception as e:
            return self.internal_error(f"computing rating stats for seller {seller_id}", e)

    @BaseService.log_performance
    def get_user_review_for_product(self, requester, user_id, product_id) -> ServiceResult[Optional[Review]]:
        """The review ``user_id`` left on a product, or None. Visible to that user and admins."""
        try:
            if str(requester.id) != str(user_id) and not is_admin(requester):
                return service_err(ErrorCodes.PERMISSION_DENIED, "Not authorized to view this review")
            return service_ok(self._reviews().filter(reviewer_id=user_id, product_id=product_id).first())
        except Exception as e:
            return self.internal_error("fetching user review", e)

    @BaseService.log_performance
    def check_eligibility(self, user, product_id) -> ServiceResult[Dict]:
        try:
            product = Product.objects.filter(id=product_id).only("id", "seller_id").first()
            if product is None:
                return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
            has_purchased = self.has_purchased(user, product.id)
            has_reviewed = self.has_reviewed(user, product.id)
            return service_ok(
                {
                    "can_review": has_purchased and not has_reviewed and product.seller_id != user.id,
                    "has_purchased": has_purchased,
                    "has_reviewed": has_reviewed,
                }
            )
        except Exception as e:
            return self.internal_error(f"checking review eligibility for product {product_id}", e)
