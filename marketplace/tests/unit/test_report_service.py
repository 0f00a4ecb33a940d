import uuid

import pytest
from django.test import TestCase

from marketplace.catalog.domain.services import CatalogService
from marketplace.models import Product, Report
from marketplace.moderation.domain.services import ReportService
from marketplace.settings_provider.domain.services import SettingsService
from marketplace.tests.factories import ProductFactory, ReportFactory, UserFactory

pytestmark = pytest.mark.unit


class ReportServiceTests(TestCase):
    def setUp(self):
        self.service = ReportService(catalog_service=CatalogService(settings_service=SettingsService()))
        self.reporter = UserFactory()

    def test_report_user(self):
        target = UserFactory()

        result = self.service.create_report(self.reporter, Report.TYPE_USER, target.id, "Rude messages")

        self.assertTrue(result.ok)
        self.assertEqual(result.value.status, Report.STATUS_PENDING)
        self.assertTrue(self.service.has_reported(self.reporter, Report.TYPE_USER, str(target.id)))

    def test_duplicate_report(self):
        product = ProductFactory()
        self.service.create_report(self.reporter, Report.TYPE_LISTING, product.id, "Counterfeit")

        result = self.service.create_report(self.reporter, Report.TYPE_LISTING, product.id, "Again")

        self.assertEqual(result.error, "already_reported")
        self.assertEqual(result.category, "conflict")

    def test_invalid_reports(self):
        cases = [
            (("Spam", uuid.uuid4(), "reason"), "invalid_input"),
            ((Report.TYPE_USER, uuid.uuid4(), "  "), "invalid_input"),
            ((Report.TYPE_USER, "not-a-uuid", "reason"), "invalid_input"),
            ((Report.TYPE_USER, uuid.uuid4(), "reason"), "user_not_found"),
            ((Report.TYPE_LISTING, uuid.uuid4(), "reason"), "product_not_found"),
            ((Report.TYPE_USER, self.reporter.id, "reason"), "self_report"),
        ]
        for args, error in cases:
            self.assertEqual(self.service.create_report(self.reporter, *args).error, error, args)

    def test_cannot_report_own_listing(self):
        product = ProductFactory(seller=self.reporter)

        result = self.service.create_report(self.reporter, Report.TYPE_LISTING, product.id, "Mine")

        self.assertEqual(result.error, "self_report")

    def test_resolving_listing_report_suspends_listing(self):
        product = ProductFactory()
        report = ReportFactory(type=Report.TYPE_LISTING, item_id=product.id)

        result = self.service.update_report_status(report.id, Report.STATUS_RESOLVED)

        self.assertTrue(result.ok)
        product.refresh_from_db()
        self.assertEqual(product.status, Product.STATUS_SUSPENDED)

    def test_dismissing_keeps_listing(self):
        product = ProductFactory()
        report = ReportFactory(type=Report.TYPE_LISTING, item_id=product.id)

        self.service.update_report_status(report.id, Report.STATUS_DISMISSED)

        product.refresh_from_db()
        self.assertEqual(product.status, Product.STATUS_ACTIVE)

    def test_update_status_validation(self):
        report = ReportFactory()

        self.assertEqual(self.service.update_report_status(report.id, "closed").error, "invalid_input")
        self.assertEqual(self.service.update_report_status(999999, Report.STATUS_RESOLVED).error, "report_not_found")

    def test_list_and_stats(self):
        ReportFactory.create_batch(2)
        ReportFactory(status=Report.STATUS_RESOLVED, type=Report.TYPE_LISTING)

        pending = self.service.list_reports(status=Report.STATUS_PENDING).value
        self.assertEqual(pending["total"], 2)
        self.assertEqual(self.service.list_reports(status="open").error, "invalid_input")

        stats = self.service.get_stats().value
        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["pending"], 2)
        self.assertEqual(stats["resolved"], 1)
        self.assertEqual(stats["listings"], 1)
        self.assertEqual(stats["last_week"], 3)
        self.assertEqual(self.service.get_pending_count(), 2)

    def test_delete_report(self):
        report = ReportFactory()

        self.assertTrue(self.service.delete_report(report.id).ok)
        self.assertEqual(self.service.delete_report(report.id).error, "report_not_found")

    def test_describe_item(self):
        product = ProductFactory(name="Desk lamp")
        report = ReportFactory(type=Report.TYPE_LISTING, item_id=product.id)

        self.assertEqual(
            self.service.describe_item(report),
            {"name": "Desk lamp", "owner_id": str(product.seller_id), "status": Product.STATUS_ACTIVE},
        )
