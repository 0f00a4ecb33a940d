import pytest
from asgiref.sync import async_to_sync
from django.test import TestCase, TransactionTestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from marketplace.tests.factories import AdminFactory, UserFactory
from messaging.middleware.auth import HandshakeAuthMiddleware

pytestmark = pytest.mark.integration


class TokenObtainTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = UserFactory(email="student@campus.edu", first_name="Ada", last_name="Byron")

    def obtain(self, email, password="defaultpassword"):
        return self.client.post(reverse("token_obtain_pair"), {"email": email, "password": password}, format="json")

    def test_access_token_carries_role_claims(self):
        response = self.obtain("student@campus.edu")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        access = AccessToken(response.data["access"])
        self.assertEqual(access["user_id"], str(self.user.id))
        self.assertEqual(access["role"], "user")
        self.assertFalse(access["is_admin"])
        self.assertEqual(access["first_name"], "Ada")

    def test_admin_claim(self):
        admin = AdminFactory()

        response = self.obtain(admin.email)

        self.assertTrue(AccessToken(response.data["access"])["is_admin"])

    def test_wrong_password(self):
        response = self.obtain("student@campus.edu", "nope")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data["success"])

    def test_refresh(self):
        refresh = self.obtain("student@campus.edu").data["refresh"]

        response = self.client.post(reverse("token_refresh"), {"refresh": refresh}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)

    def test_bearer_token_authenticates_api(self):
        access = self.obtain("student@campus.edu").data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        response = self.client.get(reverse("marketplace:cart"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)


class HandshakeAuthMiddlewareTests(TransactionTestCase):
    def setUp(self):
        self.middleware = HandshakeAuthMiddleware(inner=None)
        self.user = UserFactory()

    def test_valid_token_resolves_user(self):
        token = str(RefreshToken.for_user(self.user).access_token)

        user = async_to_sync(self.middleware.get_user_from_token)(token)

        self.assertEqual(user, self.user)

    def test_invalid_token(self):
        self.assertIsNone(async_to_sync(self.middleware.get_user_from_token)("not-a-jwt"))

    def test_inactive_user_is_rejected(self):
        token = str(RefreshToken.for_user(self.user).access_token)
        self.user.is_active = False
        self.user.save()

        self.assertIsNone(async_to_sync(self.middleware.get_user_from_token)(token))

    def test_token_from_query(self):
        scope = {"query_string": b"token=abc.def&x=1"}

        self.assertEqual(HandshakeAuthMiddleware.token_from_query(scope), "abc.def")
        self.assertIsNone(HandshakeAuthMiddleware.token_from_query({"query_string": b""}))
