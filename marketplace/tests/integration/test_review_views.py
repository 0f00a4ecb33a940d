import pytest
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.models import Order
from marketplace.tests.factories import OrderFactory, OrderItemFactory, ProductFactory, ReviewFactory, UserFactory

pytestmark = pytest.mark.integration


class ReviewViewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.buyer = UserFactory()
        self.product = ProductFactory()
        self.seller = self.product.seller
        order = OrderFactory(buyer=self.buyer, status=Order.STATUS_COMPLETED)
        OrderItemFactory(order=order, product=self.product)
        self.client.force_authenticate(user=self.buyer)

        self.reviews_url = reverse("marketplace:reviews")

    def post_review(self, rating=5, **extra):
        payload = {"seller_id": str(self.seller.id), "product_id": str(self.product.id), "rating": rating, **extra}
        return self.client.post(self.reviews_url, payload, format="json")

    def test_create_review_updates_seller_rating(self):
        response = self.post_review(4, comment="Smooth pickup")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["rating"], 4)
        self.seller.refresh_from_db()
        self.assertEqual(str(self.seller.rating), "4.00")

    def test_duplicate_review_conflicts(self):
        self.post_review()

        response = self.post_review()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"], "already_reviewed")

    def test_rating_out_of_range(self):
        for rating in (0, 6, 3.5, "great"):
            response = self.post_review(rating)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, rating)
            self.assertEqual(response.data["error"], "invalid_rating")

    def test_review_without_purchase(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.post_review()

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_and_delete(self):
        review_id = self.post_review(5).data["data"]["id"]
        url = reverse("marketplace:review-detail", kwargs={"pk": review_id})

        response = self.client.put(url, {"rating": 2}, format="json")
        self.assertEqual(response.data["data"]["rating"], 2)

        self.client.force_authenticate(user=UserFactory())
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.buyer)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_200_OK)

    def test_public_listings(self):
        ReviewFactory(seller=self.seller, rating=3)
        self.post_review(5)
        self.client.force_authenticate(user=None)

        seller_reviews = self.client.get(reverse("marketplace:reviews-seller", kwargs={"seller_id": self.seller.id}))
        self.assertEqual(seller_reviews.status_code, status.HTTP_200_OK)
        self.assertEqual(seller_reviews.data["total"], 2)
        self.assertEqual(seller_reviews.data["rating_stats"]["total"], 2)

        product_reviews = self.client.get(reverse("marketplace:reviews-product", kwargs={"product_id": self.product.id}))
        self.assertEqual(product_reviews.data["total"], 1)

    def test_eligibility_and_user_review(self):
        eligibility_url = reverse("marketplace:reviews-check-eligibility", kwargs={"product_id": self.product.id})
        user_review_url = reverse(
            "marketplace:reviews-user-product", kwargs={"user_id": self.buyer.id, "product_id": self.product.id}
        )

        self.assertTrue(self.client.get(eligibility_url).data["data"]["can_review"])
        self.assertIsNone(self.client.get(user_review_url).data["data"])

        self.post_review(5)

        self.assertFalse(self.client.get(eligibility_url).data["data"]["can_review"])
        self.assertEqual(self.client.get(user_review_url).data["data"]["rating"], 5)
