from decimal import Decimal

import pytest
from django.test import TestCase

from infrastructure.events.memory_event_bus import InMemoryEventBus
from marketplace.models import Order, Review
from marketplace.reviews.domain.services import ReviewService, SellerRatingService
from marketplace.reviews.domain.services.review_service import parse_rating
from marketplace.tests.factories import (
    AdminFactory,
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    ReviewFactory,
    SellerFactory,
    UserFactory,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "raw, expected",
    [(1, 1), (5, 5), ("4", 4), (0, None), (6, None), (4.5, None), ("4.5", None), ("five", None), (None, None), (True, None)],
)
def test_parse_rating(raw, expected):
    assert parse_rating(raw) == expected


class ReviewServiceTests(TestCase):
    def setUp(self):
        self.event_bus = InMemoryEventBus()
        self.service = ReviewService(rating_service=SellerRatingService(), event_bus=self.event_bus)
        self.buyer = UserFactory()
        self.seller = SellerFactory()
        self.product = ProductFactory(seller=self.seller)

    def purchase(self, buyer=None, product=None, status=Order.STATUS_COMPLETED):
        product = product or self.product
        order = OrderFactory(buyer=buyer or self.buyer, status=status)
        OrderItemFactory(order=order, product=product)
        return order

    def seller_rating(self):
        self.seller.refresh_from_db()
        return self.seller.rating

    def test_product_review_after_purchase(self):
        self.purchase()

        result = self.service.create_review(self.buyer, self.seller.id, 4, "Great", product_id=self.product.id)

        self.assertTrue(result.ok)
        self.assertEqual(self.seller_rating(), Decimal("4.00"))
        self.assertEqual(self.event_bus.published[0]["event_type"], "seller.rating_changed")
        self.assertEqual(self.event_bus.published[0]["payload"]["total_reviews"], 1)

    def test_product_review_requires_completed_purchase(self):
        self.purchase(status=Order.STATUS_PENDING)

        result = self.service.create_review(self.buyer, self.seller.id, 5, product_id=self.product.id)

        self.assertEqual(result.error, "not_purchased")
        self.assertEqual(result.category, "forbidden")

    def test_one_review_per_product(self):
        self.purchase()
        self.service.create_review(self.buyer, self.seller.id, 5, product_id=self.product.id)

        result = self.service.create_review(self.buyer, self.seller.id, 1, product_id=self.product.id)

        self.assertEqual(result.error, "already_reviewed")
        self.assertEqual(Review.objects.count(), 1)

    def test_seller_review_without_product(self):
        result = self.service.create_review(self.buyer, self.seller.id, "3")

        self.assertTrue(result.ok)
        self.assertIsNone(result.value.product)

    def test_invalid_rating(self):
        result = self.service.create_review(self.buyer, self.seller.id, 7)

        self.assertEqual(result.error, "invalid_rating")
        self.assertFalse(Review.objects.exists())

    def test_cannot_review_self(self):
        self.assertEqual(self.service.create_review(self.seller, self.seller.id, 5).error, "self_review")

    def test_product_must_belong_to_seller(self):
        other = ProductFactory()
        self.purchase(product=other)

        result = self.service.create_review(self.buyer, self.seller.id, 5, product_id=other.id)

        self.assertEqual(result.error, "seller_mismatch")

    def test_rating_is_mean_of_reviews(self):
        ReviewFactory(seller=self.seller, rating=5)
        ReviewFactory(seller=self.seller, rating=4)

        self.service.create_review(self.buyer, self.seller.id, 2)

        # (5 + 4 + 2) / 3
        self.assertEqual(self.seller_rating(), Decimal("3.67"))

    def test_update_and_delete_recompute(self):
        review = self.service.create_review(self.buyer, self.seller.id, 2).value
        ReviewFactory(seller=self.seller, rating=4)

        self.service.update_review(self.buyer, review.id, rating=4, comment="Changed my mind")
        self.assertEqual(self.seller_rating(), Decimal("4.00"))

        self.service.delete_review(self.buyer, review.id)
        self.assertEqual(self.seller_rating(), Decimal("4.00"))
        self.assertEqual([e["payload"]["action"] for e in self.event_bus.published], ["created", "updated", "deleted"])

    def test_delete_last_review_resets_rating(self):
        review = self.service.create_review(self.buyer, self.seller.id, 5).value

        self.service.delete_review(self.buyer, review.id)

        self.assertEqual(self.seller_rating(), Decimal("0.00"))

    def test_only_author_or_admin_can_edit(self):
        review = ReviewFactory(seller=self.seller)

        self.assertEqual(self.service.update_review(self.buyer, review.id, rating=1).error, "permission_denied")
        self.assertEqual(self.service.delete_review(self.buyer, review.id).error, "permission_denied")
        self.assertTrue(self.service.delete_review(AdminFactory(), review.id).ok)

    def test_rating_stats_distribution(self):
        for rating in (5, 5, 3):
            ReviewFactory(seller=self.seller, rating=rating)

        stats = self.service.get_seller_rating_stats(self.seller.id).value

        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["average"], Decimal("4.33"))
        self.assertEqual(stats["distribution"], {1: 0, 2: 0, 3: 1, 4: 0, 5: 2})

    def test_seller_reviews_page(self):
        ReviewFactory.create_batch(3, seller=self.seller)

        page = self.service.get_seller_reviews(self.seller.id, page=1, page_size=2).value

        self.assertEqual(page["count"], 2)
        self.assertEqual(page["total"], 3)
        self.assertEqual(page["total_pages"], 2)
        self.assertEqual(page["rating_stats"]["total"], 3)

    def test_check_eligibility(self):
        before = self.service.check_eligibility(self.buyer, self.product.id).value
        self.assertFalse(before["can_review"])

        self.purchase()
        self.assertTrue(self.service.check_eligibility(self.buyer, self.product.id).value["can_review"])

        self.service.create_review(self.buyer, self.seller.id, 5, product_id=self.product.id)
        after = self.service.check_eligibility(self.buyer, self.product.id).value
        self.assertEqual(after, {"can_review": False, "has_purchased": True, "has_reviewed": True})

    def test_user_review_lookup_visibility(self):
        self.purchase()
        review = self.service.create_review(self.buyer, self.seller.id, 5, product_id=self.product.id).value

        own = self.service.get_user_review_for_product(self.buyer, self.buyer.id, self.product.id)
        self.assertEqual(own.value, review)
        other = self.service.get_user_review_for_product(UserFactory(), self.buyer.id, self.product.id)
        self.assertEqual(other.error, "permission_denied")
