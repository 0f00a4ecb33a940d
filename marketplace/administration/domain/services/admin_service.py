"""
AdminService - user moderation, the admin dashboard and reporting.

Reports only count completed orders; pending and cancelled orders never
contribute revenue.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone
from django.utils.dateparse import parse_date

from marketplace.catalog.domain.models import Product
from marketplace.ordering.domain.models import Order, OrderItem
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, paginate, service_err, service_ok

User = get_user_model()

ACCOUNT_STATUSES = [value for value, _ in User.ACCOUNT_STATUS_CHOICES]
ROLES = [value for value, _ in User.ROLE_CHOICES]
TOP_LIMIT = 5
RECENT_LIMIT = 5
MAX_REPORT_DAYS = 365


def line_revenue():
    amount = ExpressionWrapper(
        F("price_at_purchase") * F("quantity"), output_field=DecimalField(max_digits=14, decimal_places=2)
    )
    return Sum(amount)


class AdminService(BaseService):
    def __init__(self, order_service, report_service):
        super().__init__()
        self.order_service = order_service
        self.report_service = report_service

    def _find_user(self, user_id) -> Optional[User]:
        try:
            return User.objects.select_for_update().filter(id=user_id).first()
        except ValidationError:
            return None

    # ---- users -------------------------------------------------------------

    @BaseService.log_performance
    def list_users(self, filters: Optional[Dict] = None, page=None, page_size=None) -> ServiceResult[Dict]:
        try:
            filters = filters or {}
            queryset = User.objects.order_by("-date_joined")
            if filters.get("role"):
                queryset = queryset.filter(role=filters["role"])
            if filters.get("status"):
                queryset = queryset.filter(account_status=filters["status"])
            if filters.get("search"):
                term = filters["search"]
                queryset = queryset.filter(
                    Q(email__icontains=term) | Q(first_name__icontains=term) | Q(last_name__icontains=term)
                )
            return service_ok(paginate(queryset, page, page_size))
        except Exception as e:
            return self.internal_error("listing users", e)

    @BaseService.log_performance
    def update_user_status(self, admin, user_id, status: str) -> ServiceResult[User]:
        """
        Activate, deactivate or suspend an account. Other admins' accounts
        are off limits.

        Errors:
            INVALID_INPUT, USER_NOT_FOUND, PERMISSION_DENIED
        """
        if status not in ACCOUNT_STATUSES:
            return service_err(ErrorCodes.INVALID_INPUT, f"Status must be one of: {', '.join(ACCOUNT_STATUSES)}")
        try:
            with transaction.atomic():
                user = self._find_user(user_id)
                if user is None:
                    return service_err(ErrorCodes.USER_NOT_FOUND, "User not found")
                if user.is_admin() and user.id != admin.id:
                    return service_err(ErrorCodes.PERMISSION_DENIED, "Cannot change the status of another admin user")
                user.account_status = status
                user.save(update_fields=["account_status"])

            self.logger.info(f"Admin {admin.id} set status of user {user_id} to {status}")
            return service_ok(user)
        except Exception as e:
            return self.internal_error(f"updating status of user {user_id}", e)

    @BaseService.log_performance
    def update_user_role(self, admin, user_id, role: str) -> ServiceResult[User]:
        """
        Change an account's role. Admins cannot change their own role.

        Errors:
            INVALID_INPUT, USER_NOT_FOUND, PERMISSION_DENIED
        """
        if role not in ROLES:
            return service_err(ErrorCodes.INVALID_INPUT, f"Role must be one of: {', '.join(ROLES)}")
        try:
            with transaction.atomic():
                user = self._find_user(user_id)
                if user is None:
                    return service_err(ErrorCodes.USER_NOT_FOUND, "User not found")
                if user.id == admin.id:
                    return service_err(ErrorCodes.PERMISSION_DENIED, "You cannot change your own role")
                user.role = role
                # The admin check also honours is_superuser, so demotion clears it
                user.is_superuser = user.is_superuser and role == "admin"
                user.is_staff = role == "admin"
                user.save(update_fields=["role", "is_superuser", "is_staff"])

            self.logger.info(f"Admin {admin.id} set role of user {user_id} to {role}")
            return service_ok(user)
        except Exception as e:
            return self.internal_error(f"updating role of user {user_id}", e)

    # ---- dashboard -----------------------------------------------------------

    @BaseService.log_performance
    def dashboard(self) -> ServiceResult[Dict]:
        try:
            now = timezone.now()
            today = now.replace(hour=0, minute=0, second=0, microsecond=0)

            order_stats = self.order_service.get_stats()
            if not order_stats.ok:
                return order_stats
            report_stats = self.report_service.get_stats()
            if not report_stats.ok:
                return report_stats

            product_stats = Product.objects.aggregate(
                total=Count("id"),
                active=Count("id", filter=Q(status=Product.STATUS_ACTIVE)),
                pending=Count("id", filter=Q(status=Product.STATUS_PENDING)),
                sold=Count("id", filter=Q(status=Product.STATUS_SOLD)),
                new_last_week=Count("id", filter=Q(created_at__gte=now - timedelta(days=7))),
            )
            recent_listings = list(
                Product.objects.order_by("-created_at").values(
                    "id", "name", "price", "status", "created_at", "seller__first_name", "seller__last_name"
                )[:RECENT_LIMIT]
            )
            recent_orders = list(
                Order.objects.order_by("-created_at").values(
                    "id", "order_number", "total", "status", "created_at", "buyer__first_name", "buyer__last_name"
                )[:RECENT_LIMIT]
            )

            return service_ok(
                {
                    "user_stats": {
                        "total_users": User.objects.count(),
                        "new_users_today": User.objects.filter(date_joined__gte=today).count(),
                    },
                    "product_stats": product_stats,
                    "order_stats": order_stats.value,
                    "report_stats": report_stats.value,
                    "pending_reports": self.report_service.get_pending_count(),
                    "recent_activity": {"listings": recent_listings, "orders": recent_orders},
                }
            )
        except Exception as e:
            return self.internal_error("building admin dashboard", e)

    # ---- reports -------------------------------------------------------------

    @BaseService.log_performance
    def sales_report(self, start_date, end_date) -> ServiceResult[Dict]:
        """
        Completed-order sales between two dates, both inclusive: a row per day,
        totals, and the top categories and sellers by revenue.
        """
        if not start_date or not end_date:
            return service_err(ErrorCodes.INVALID_INPUT, "Start date and end date are required")
        try:
            start, end = parse_date(str(start_date)), parse_date(str(end_date))
        except ValueError:
            start = end = None
        if start is None or end is None:
            return service_err(ErrorCodes.INVALID_INPUT, "Dates must be in YYYY-MM-DD format")
        if start > end:
            return service_err(ErrorCodes.INVALID_INPUT, "Start date must not be after end date")

        try:
            tz = timezone.get_current_timezone()
            since = timezone.make_aware(datetime.combine(start, time.min), tz)
            until = timezone.make_aware(datetime.combine(end + timedelta(days=1), time.min), tz)
            orders = Order.objects.filter(status=Order.STATUS_COMPLETED, created_at__gte=since, created_at__lt=until)
            lines = OrderItem.objects.filter(order__in=orders)

            daily = list(
                orders.annotate(date=TruncDate("created_at"))
                .values("date")
                .annotate(orders=Count("id"), revenue=Sum("total"), fees=Sum("service_fee"))
                .order_by("date")
            )
            totals = orders.aggregate(
                total_orders=Count("id"), total_revenue=Sum("total"), total_fees=Sum("service_fee")
            )
            totals["total_revenue"] = totals["total_revenue"] or Decimal("0.00")
            totals["total_fees"] = totals["total_fees"] or Decimal("0.00")

            top_categories = list(
                lines.values(category=F("product__category"))
                .annotate(orders=Count("order", distinct=True), revenue=line_revenue())
                .order_by("-revenue", "category")[:TOP_LIMIT]
            )
            top_sellers = [
                {
                    "seller_id": row["seller_id"],
                    "seller": f"{row['seller__first_name']} {row['seller__last_name']}".strip(),
                    "orders": row["orders"],
                    "revenue": row["revenue"],
                }
                for row in lines.values("seller_id", "seller__first_name", "seller__last_name")
                .annotate(orders=Count("order", distinct=True), revenue=line_revenue())
                .order_by("-revenue", "seller_id")[:TOP_LIMIT]
            ]

            return service_ok(
                {
                    "date_range": {"start_date": start.isoformat(), "end_date": end.isoformat()},
                    "sales_data": daily,
                    "totals": totals,
                    "top_categories": top_categories,
                    "top_sellers": top_sellers,
                }
            )
        except Exception as e:
            return self.internal_error("building sales report", e)

    @BaseService.log_performance
    def user_activity_report(self, days=None) -> ServiceResult[Dict]:
        """New sign-ups and distinct ordering buyers per day, plus role and status breakdowns."""
        try:
            days = int(days or 30)
        except (TypeError, ValueError):
            return service_err(ErrorCodes.INVALID_INPUT, "days must be an integer")
        if not 1 <= days <= MAX_REPORT_DAYS:
            return service_err(ErrorCodes.INVALID_INPUT, f"days must be between 1 and {MAX_REPORT_DAYS}")

        try:
            since = timezone.now() - timedelta(days=days)
            new_users = list(
                User.objects.filter(date_joined__gte=since)
                .annotate(date=TruncDate("date_joined"))
                .values("date")
                .annotate(count=Count("id"))
                .order_by("date")
            )
            active_users = list(
                Order.objects.filter(created_at__gte=since)
                .annotate(date=TruncDate("created_at"))
                .values("date")
                .annotate(count=Count("buyer", distinct=True))
                .order_by("date")
            )
            roles = {role: 0 for role in ROLES}
            for row in User.objects.order_by().values("role").annotate(count=Count("id")):
                roles[row["role"]] = row["count"]
            statuses = {status: 0 for status in ACCOUNT_STATUSES}
            for row in User.objects.order_by().values("account_status").annotate(count=Count("id")):
                statuses[row["account_status"]] = row["count"]

            return service_ok(
                {
                    "days": days,
                    "new_users": new_users,
                    "active_users": active_users,
                    "role_distribution": roles,
                    "status_distribution": statuses,
                }
            )
        except Exception as e:
            return self.internal_error("building user activity report", e)
