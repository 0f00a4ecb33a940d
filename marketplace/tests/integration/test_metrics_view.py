import pytest
from django.test import TestCase
from django.urls import reverse

from marketplace.models import Product
from marketplace.tests.factories import ProductFactory, ReportFactory

pytestmark = pytest.mark.integration


class MetricsViewTest(TestCase):
    def test_exposes_moderation_queue(self):
        ProductFactory(status=Product.STATUS_PENDING)
        ProductFactory(status=Product.STATUS_PENDING)
        ReportFactory()

        response = self.client.get(reverse("marketplace:metrics"))

        self.assertEqual(response.status_code, 200)
        body = response.content.decode()
        self.assertIn('marketplace_moderation_queue_size{queue="pending_products"} 2.0', body)
        self.assertIn('marketplace_moderation_queue_size{queue="pending_reports"} 1.0', body)
