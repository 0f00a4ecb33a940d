"""
ReportService - user and listing reports for admin moderation.
"""

import uuid
from datetime import timedelta
from typing import Dict, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from marketplace.catalog.domain.models import Product
from marketplace.infra.observability.metrics import reports_filed_total
from marketplace.moderation.domain.models import Report
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, paginate, service_err, service_ok

User = get_user_model()


class ReportService(BaseService):
    def __init__(self, catalog_service):
        super().__init__()
        self.catalog_service = catalog_service

    def _parse_item_id(self, item_id) -> Optional[uuid.UUID]:
        try:
            return uuid.UUID(str(item_id))
        except ValueError:
            return None

    def describe_item(self, report: Report) -> Dict:
        """Name and owner of the reported user or listing, for admin screens."""
        if report.type == Report.TYPE_USER:
            user = User.objects.filter(id=report.item_id).only("id", "username", "email").first()
            return {"name": user.username if user else None, "owner_id": str(user.id) if user else None}
        product = Product.objects.filter(id=report.item_id).only("id", "name", "seller_id", "status").first()
        return {
            "name": product.name if product else None,
            "owner_id": str(product.seller_id) if product else None,
            "status": product.status if product else None,
        }

    @BaseService.log_performance
    def create_report(self, reporter, report_type: str, item_id, reason: str) -> ServiceResult[Report]:
        """
        Errors:
            INVALID_INPUT, USER_NOT_FOUND, PRODUCT_NOT_FOUND, SELF_REPORT, ALREADY_REPORTED
        """
        if report_type not in dict(Report.TYPE_CHOICES):
            return service_err(ErrorCodes.INVALID_INPUT, "Report type must be 'User' or 'Listing'")
        reason = (reason or "").strip()
        if not reason:
            return service_err(ErrorCodes.INVALID_INPUT, "A reason is required")
        item_uuid = self._parse_item_id(item_id)
        if item_uuid is None:
            return service_err(ErrorCodes.INVALID_INPUT, "Invalid item id")

        try:
            if report_type == Report.TYPE_USER:
                if not User.objects.filter(id=item_uuid).exists():
                    return service_err(ErrorCodes.USER_NOT_FOUND, "User not found")
                if item_uuid == reporter.id:
                    return service_err(ErrorCodes.SELF_REPORT, "You cannot report yourself")
            else:
                product = Product.objects.filter(id=item_uuid).only("id", "seller_id").first()
                if product is None:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
                if product.seller_id == reporter.id:
                    return service_err(ErrorCodes.SELF_REPORT, "You cannot report your own listing")

            if Report.objects.filter(reported_by=reporter, type=report_type, item_id=item_uuid).exists():
                return service_err(ErrorCodes.ALREADY_REPORTED, "You have already reported this item")

            try:
                with transaction.atomic():
                    report = Report.objects.create(
                        reported_by=reporter, type=report_type, item_id=item_uuid, reason=reason
                    )
            except IntegrityError:
                return service_err(ErrorCodes.ALREADY_REPORTED, "You have already reported this item")

            reports_filed_total.labels(type=report_type).inc()
            self.logger.info(f"Report {report.id} filed by {reporter.id} on {report_type} {item_uuid}")
            return service_ok(report)
        except Exception as e:
            return self.internal_error("creating report", e)

    @BaseService.log_performance
    def list_reports(
        self, status: Optional[str] = None, report_type: Optional[str] = None, page=None, page_size=None
    ) -> ServiceResult[Dict]:
        try:
            if status and status not in dict(Report.STATUS_CHOICES):
                return service_err(ErrorCodes.INVALID_INPUT, "Invalid report status")
            if report_type and report_type not in dict(Report.TYPE_CHOICES):
                return service_err(ErrorCodes.INVALID_INPUT, "Invalid report type")

            queryset = Report.objects.select_related("reported_by")
            if status:
                queryset = queryset.filter(status=status)
            if report_type:
                queryset = queryset.filter(type=report_type)
            return service_ok(paginate(queryset, page, page_size))
        except Exception as e:
            return self.internal_error("listing reports", e)

    @BaseService.log_performance
    def get_report(self, report_id) -> ServiceResult[Report]:
        try:
            report = Report.objects.select_related("reported_by").filter(pk=report_id).first()
            if report is None:
                return service_err(ErrorCodes.REPORT_NOT_FOUND, "Report not found")
            return service_ok(report)
        except Exception as e:
            return self.internal_error(f"getting report {report_id}", e)

    @BaseService.log_performance
    def update_report_status(self, report_id, status: str) -> ServiceResult[Report]:
        """Resolving a listing report also suspends the listing."""
        if status not in dict(Report.STATUS_CHOICES):
            return service_err(ErrorCodes.INVALID_INPUT, "Status must be pending, resolved or dismissed")

        try:
            with transaction.atomic():
                report = Report.objects.select_for_update().filter(pk=report_id).first()
                if report is None:
                    return service_err(ErrorCodes.REPORT_NOT_FOUND, "Report not found")
                report.status = status
                report.save(update_fields=["status", "updated_at"])

                if status == Report.STATUS_RESOLVED and report.type == Report.TYPE_LISTING:
                    suspended = self.catalog_service.suspend(report.item_id)
                    if suspended:
                        self.logger.info(f"Listing {report.item_id} suspended after report {report.id}")

            return service_ok(report)
        except Exception as e:
            return self.internal_error(f"updating report {report_id}", e)

    @BaseService.log_performance
    def delete_report(self, report_id) -> ServiceResult[int]:
        try:
            deleted, _ = Report.objects.filter(pk=report_id).delete()
            if not deleted:
                return service_err(ErrorCodes.REPORT_NOT_FOUND, "Report not found")
            return service_ok(deleted)
        except Exception as e:
            return self.internal_error(f"deleting report {report_id}", e)

    @BaseService.log_performance
    def get_stats(self) -> ServiceResult[Dict]:
        try:
            week_ago = timezone.now() - timedelta(days=7)
            stats = Report.objects.aggregate(
                total=Count("id"),
                pending=Count("id", filter=Q(status=Report.STATUS_PENDING)),
                resolved=Count("id", filter=Q(status=Report.STATUS_RESOLVED)),
                dismissed=Count("id", filter=Q(status=Report.STATUS_DISMISSED)),
                users=Count("id", filter=Q(type=Report.TYPE_USER)),
                listings=Count("id", filter=Q(type=Report.TYPE_LISTING)),
                last_week=Count("id", filter=Q(created_at__gte=week_ago)),
            )
            return service_ok(stats)
        except Exception as e:
            return self.internal_error("computing report stats", e)

    def get_pending_count(self) -> int:
        return Report.objects.filter(status=Report.STATUS_PENDING).count()

    def has_reported(self, reporter, report_type: str, item_id) -> bool:
        item_uuid = self._parse_item_id(item_id)
        if item_uuid is None or report_type not in dict(Report.TYPE_CHOICES):
            return False
        return Report.objects.filter(reported_by=reporter, type=report_type, item_id=item_uuid).exists()
