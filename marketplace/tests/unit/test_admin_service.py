import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.test import TestCase
from django.utils import timezone

from infrastructure.container import container
from marketplace.models import Order, Product
from marketplace.services.base import ErrorCodes, service_err
from marketplace.tests.factories import (
    AdminFactory,
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    ReportFactory,
    SellerFactory,
    UserFactory,
)

pytestmark = pytest.mark.unit


class UserModerationTests(TestCase):
    def setUp(self):
        container.reset()
        self.service = container.admin_service()
        self.admin = AdminFactory()

    def test_suspend_user(self):
        user = UserFactory()

        result = self.service.update_user_status(self.admin, user.id, "suspended")

        self.assertTrue(result.ok)
        user.refresh_from_db()
        self.assertEqual(user.account_status, "suspended")
        self.assertFalse(user.can_sell_products())

    def test_status_rules(self):
        other_admin = AdminFactory()

        cases = [
            ((other_admin.id, "inactive"), "permission_denied"),
            ((UserFactory().id, "banned"), "invalid_input"),
            ((uuid.uuid4(), "active"), "user_not_found"),
            (("not-a-uuid", "active"), "user_not_found"),
        ]
        for args, error in cases:
            self.assertEqual(self.service.update_user_status(self.admin, *args).error, error, args)

        other_admin.refresh_from_db()
        self.assertEqual(other_admin.account_status, "active")

    def test_promote_and_demote(self):
        user = UserFactory()

        promoted = self.service.update_user_role(self.admin, user.id, "admin").value
        self.assertTrue(promoted.is_admin())
        self.assertTrue(promoted.is_staff)

        demoted_admin = AdminFactory()
        demoted = self.service.update_user_role(self.admin, demoted_admin.id, "seller").value
        demoted.refresh_from_db()
        self.assertFalse(demoted.is_superuser)
        self.assertFalse(demoted.is_admin())

    def test_role_rules(self):
        self.assertEqual(self.service.update_user_role(self.admin, self.admin.id, "user").error, "permission_denied")
        self.assertEqual(self.service.update_user_role(self.admin, UserFactory().id, "owner").error, "invalid_input")

        self.admin.refresh_from_db()
        self.assertTrue(self.admin.is_admin())

    def test_list_users_filters(self):
        UserFactory(first_name="Linus", account_status="suspended")
        SellerFactory()

        self.assertEqual(self.service.list_users({"role": "seller"}).value["total"], 1)
        self.assertEqual(self.service.list_users({"status": "suspended"}).value["total"], 1)
        self.assertEqual(self.service.list_users({"search": "linus"}).value["total"], 1)
        self.assertEqual(self.service.list_users().value["total"], 3)


class DashboardTests(TestCase):
    def setUp(self):
        container.reset()
        self.service = container.admin_service()

    def test_dashboard_sections(self):
        ProductFactory()
        ProductFactory(status=Product.STATUS_PENDING)
        OrderFactory(status=Order.STATUS_COMPLETED, total=Decimal("30.00"))
        ReportFactory()

        result = self.service.dashboard()

        self.assertTrue(result.ok)
        dashboard = result.value
        self.assertEqual(
            set(dashboard),
            {"user_stats", "product_stats", "order_stats", "report_stats", "pending_reports", "recent_activity"},
        )
        self.assertEqual(dashboard["product_stats"]["total"], 2)
        self.assertEqual(dashboard["product_stats"]["pending"], 1)
        self.assertEqual(dashboard["order_stats"]["total_sales"], Decimal("30.00"))
        self.assertEqual(dashboard["pending_reports"], 1)
        self.assertEqual(len(dashboard["recent_activity"]["listings"]), 2)
        self.assertEqual(len(dashboard["recent_activity"]["orders"]), 1)

    def test_dashboard_fails_with_its_collaborators(self):
        failure = service_err(ErrorCodes.INTERNAL_ERROR, "Stats unavailable")

        with patch.object(self.service.order_service, "get_stats", return_value=failure):
            self.assertEqual(self.service.dashboard().error, "internal_error")


class SalesReportTests(TestCase):
    def setUp(self):
        container.reset()
        self.service = container.admin_service()
        self.today = timezone.localdate()

    def sell(self, category, price, order_status=Order.STATUS_COMPLETED, seller=None):
        order = OrderFactory(status=order_status, total=price, service_fee=Decimal("1.00"))
        product = ProductFactory(
            category=category, price=price, status=Product.STATUS_SOLD, seller=seller or SellerFactory()
        )
        OrderItemFactory(order=order, product=product)
        return order

    def test_only_completed_orders_in_range_count(self):
        seller = SellerFactory()
        self.sell("Books", Decimal("40.00"), seller=seller)
        self.sell("Books", Decimal("10.00"), seller=seller)
        self.sell("Furniture", Decimal("90.00"))
        self.sell("Books", Decimal("500.00"), order_status=Order.STATUS_PENDING)
        old = self.sell("Books", Decimal("700.00"))
        Order.objects.filter(id=old.id).update(created_at=timezone.now() - timedelta(days=40))

        start = (self.today - timedelta(days=7)).isoformat()
        report = self.service.sales_report(start, self.today.isoformat()).value

        self.assertEqual(report["totals"]["total_orders"], 3)
        self.assertEqual(report["totals"]["total_revenue"], Decimal("140.00"))
        self.assertEqual(report["totals"]["total_fees"], Decimal("3.00"))
        self.assertEqual(len(report["sales_data"]), 1)
        self.assertEqual(report["sales_data"][0]["orders"], 3)
        self.assertEqual([row["category"] for row in report["top_categories"]], ["Furniture", "Books"])
        self.assertEqual(report["top_categories"][1]["revenue"], Decimal("50.00"))
        self.assertEqual(report["top_sellers"][1]["seller_id"], seller.id)
        self.assertEqual(report["top_sellers"][1]["orders"], 2)

    def test_empty_range_has_zero_totals(self):
        report = self.service.sales_report("2020-01-01", "2020-01-31").value

        self.assertEqual(report["totals"]["total_orders"], 0)
        self.assertEqual(report["totals"]["total_revenue"], Decimal("0.00"))
        self.assertEqual(report["sales_data"], [])

    def test_date_validation(self):
        for start, end in (
            (None, "2026-01-01"),
            ("2026-01-01", ""),
            ("yesterday", "2026-01-01"),
            ("2026-02-30", "2026-03-01"),
            ("2026-03-01", "2026-02-01"),
        ):
            self.assertEqual(self.service.sales_report(start, end).error, "invalid_input", (start, end))


class UserActivityReportTests(TestCase):
    def setUp(self):
        container.reset()
        self.service = container.admin_service()

    def test_activity_and_distributions(self):
        buyer = UserFactory()
        SellerFactory(account_status="suspended")
        OrderFactory(buyer=buyer)
        OrderFactory(buyer=buyer)

        report = self.service.user_activity_report("7").value

        self.assertEqual(report["days"], 7)
        self.assertEqual(sum(row["count"] for row in report["new_users"]), 2)
        self.assertEqual(report["active_users"][0]["count"], 1)
        self.assertEqual(report["role_distribution"], {"user": 1, "seller": 1, "admin": 0})
        self.assertEqual(report["status_distribution"]["suspended"], 1)

    def test_window_validation(self):
        self.assertEqual(self.service.user_activity_report().value["days"], 30)
        for days in ("0", "366", "week"):
            self.assertEqual(self.service.user_activity_report(days).error, "invalid_input", days)
