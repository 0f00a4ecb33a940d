import pytest
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.models import Product, Report
from marketplace.tests.factories import AdminFactory, ProductFactory, ReportFactory, UserFactory

pytestmark = pytest.mark.integration


class ReportViewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.admin = AdminFactory()
        self.product = ProductFactory()
        self.client.force_authenticate(user=self.user)

        self.reports_url = reverse("marketplace:reports")

    def test_file_report(self):
        payload = {"type": "Listing", "item_id": str(self.product.id), "reason": "Looks counterfeit"}

        response = self.client.post(self.reports_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["item"]["name"], self.product.name)
        self.assertEqual(self.client.post(self.reports_url, payload, format="json").status_code, status.HTTP_409_CONFLICT)

        check_url = reverse("marketplace:reports-check", kwargs={"report_type": "Listing", "item_id": self.product.id})
        self.assertTrue(self.client.get(check_url).data["data"]["has_reported"])

    def test_admin_only_routes(self):
        report = ReportFactory()

        self.assertEqual(self.client.get(self.reports_url).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            self.client.get(reverse("marketplace:report-detail", kwargs={"pk": report.id})).status_code,
            status.HTTP_403_FORBIDDEN,
        )

    def test_admin_moderation(self):
        report = ReportFactory(type=Report.TYPE_LISTING, item_id=self.product.id)
        ReportFactory()
        self.client.force_authenticate(user=self.admin)

        listing = self.client.get(self.reports_url, {"type": "Listing"})
        self.assertEqual(listing.data["total"], 1)
        self.assertEqual(self.client.get(reverse("marketplace:reports-pending-count")).data["data"]["count"], 2)

        response = self.client.put(
            reverse("marketplace:report-status", kwargs={"pk": report.id}), {"status": "resolved"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.status, Product.STATUS_SUSPENDED)

        stats = self.client.get(reverse("marketplace:reports-stats")).data["data"]
        self.assertEqual(stats["resolved"], 1)

        deleted = self.client.delete(reverse("marketplace:report-detail", kwargs={"pk": report.id}))
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        missing = self.client.get(reverse("marketplace:report-detail", kwargs={"pk": report.id}))
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)
