import uuid
from unittest.mock import Mock

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.domain.services import AccountService
from marketplace.models import Product
from marketplace.tests.factories import AdminFactory, OrderItemFactory, ProductFactory, UserFactory

pytestmark = pytest.mark.integration

User = get_user_model()

STRONG_PASSWORD = "Lecture-Hall-42!"


class RegisterTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("register")
        self.payload = {
            "first_name": "Grace",
            "last_name": "Hopper",
            "email": "Grace.Hopper@Campus.edu",
            "password": STRONG_PASSWORD,
        }

    def test_register_signs_user_in(self):
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["email"], "grace.hopper@campus.edu")
        self.assertEqual(response.data["data"]["role"], "user")
        user = User.objects.get(email="grace.hopper@campus.edu")
        self.assertTrue(user.check_password(STRONG_PASSWORD))
        self.assertEqual(AccessToken(response.data["tokens"]["access"])["user_id"], str(user.id))

    def test_duplicate_email(self):
        UserFactory(email="grace.hopper@campus.edu")

        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "email_taken")

    def test_weak_password(self):
        response = self.client.post(self.url, {**self.payload, "password": "password"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email="grace.hopper@campus.edu").exists())

    def test_missing_fields(self):
        response = self.client.post(self.url, {"email": "a@campus.edu"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "validation_error")

    def test_campus_domain_restriction(self):
        restricted = {**settings.MARKETPLACE, "ALLOWED_EMAIL_DOMAINS": ["campus.edu"]}

        with self.settings(MARKETPLACE=restricted):
            outsider = self.client.post(self.url, {**self.payload, "email": "grace@gmail.com"}, format="json")
            student = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(outsider.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(student.status_code, status.HTTP_201_CREATED)

    def test_usernames_stay_unique(self):
        service = AccountService()
        UserFactory(username="grace", email="grace@other.edu")

        result = service.register({**self.payload, "email": "grace@campus.edu"})

        self.assertTrue(result.ok)
        self.assertNotEqual(result.value.username, "grace")
        self.assertTrue(result.value.username.startswith("grace-"))


class OwnAccountTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = UserFactory(first_name="Ada", last_name="Byron")
        self.client.force_authenticate(user=self.user)

    def test_me(self):
        response = self.client.get(reverse("me"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["id"], str(self.user.id))
        self.assertFalse(response.data["data"]["is_admin"])

    def test_me_requires_login(self):
        self.client.force_authenticate(user=None)

        self.assertEqual(self.client.get(reverse("me")).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_profile(self):
        response = self.client.put(reverse("me"), {"last_name": "Lovelace", "phone": "555-0100"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.last_name, "Lovelace")
        self.assertEqual(self.user.phone, "555-0100")
        self.assertEqual(self.user.first_name, "Ada")

    def test_blank_name_rejected(self):
        response = self.client.put(reverse("me"), {"first_name": "   "}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, "Ada")

    def test_change_password(self):
        url = reverse("change_password")

        wrong = self.client.put(url, {"current_password": "nope", "new_password": STRONG_PASSWORD}, format="json")
        self.assertEqual(wrong.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(wrong.data["error"], "invalid_credentials")

        weak = self.client.put(url, {"current_password": "defaultpassword", "new_password": "123"}, format="json")
        self.assertEqual(weak.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put(
            url, {"current_password": "defaultpassword", "new_password": STRONG_PASSWORD}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password(STRONG_PASSWORD))


class UserPagesTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.seller = UserFactory()
        self.active = ProductFactory(seller=self.seller)
        self.pending = ProductFactory(seller=self.seller, status=Product.STATUS_PENDING)

    def url(self, name, user_id=None):
        return reverse(name, kwargs={"user_id": user_id or self.seller.id})

    def test_public_profile(self):
        response = self.client.get(self.url("user_profile"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["active_listings"], 1)
        self.assertNotIn("email", response.data["data"])
        self.assertEqual(self.client.get(self.url("user_profile", uuid.uuid4())).status_code, 404)

    def test_profile_edit_is_owner_or_admin(self):
        self.client.force_authenticate(user=UserFactory())
        stranger = self.client.put(self.url("user_profile"), {"first_name": "Eve"}, format="json")
        self.assertEqual(stranger.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=AdminFactory())
        admin = self.client.put(self.url("user_profile"), {"first_name": "Evelyn"}, format="json")
        self.assertEqual(admin.status_code, status.HTTP_200_OK)
        self.seller.refresh_from_db()
        self.assertEqual(self.seller.first_name, "Evelyn")

    def test_listings_visibility(self):
        public = self.client.get(self.url("user_listings"))
        self.assertEqual([p["id"] for p in public.data["data"]], [str(self.active.id)])

        hidden = self.client.get(self.url("user_listings"), {"status": "pending"})
        self.assertEqual(hidden.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.seller)
        everything = self.client.get(self.url("user_listings"), {"status": "all"})
        self.assertEqual(everything.data["total"], 2)

        unknown = self.client.get(self.url("user_listings"), {"status": "archived"})
        self.assertEqual(unknown.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sales_are_private(self):
        line = OrderItemFactory(product=ProductFactory(seller=self.seller, status=Product.STATUS_SOLD))

        self.client.force_authenticate(user=UserFactory())
        self.assertEqual(self.client.get(self.url("user_sales")).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.seller)
        response = self.client.get(self.url("user_sales"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 1)
        self.assertEqual(response.data["data"][0]["order_number"], line.order.order_number)


class AccountServiceTests(TestCase):
    def test_profile_update_of_missing_user(self):
        result = AccountService().update_profile(AdminFactory(), uuid.uuid4(), {"first_name": "Nobody"})

        self.assertEqual(result.error, "user_not_found")

    def test_anonymous_viewer_sees_active_listings_only(self):
        seller = UserFactory()
        ProductFactory(seller=seller, status=Product.STATUS_SUSPENDED)
        anonymous = Mock(is_authenticated=False)

        self.assertEqual(AccountService().get_listings(anonymous, seller.id).value["total"], 0)
        self.assertEqual(AccountService().get_listings(anonymous, seller.id, "suspended").error, "permission_denied")
