from .report_views import ReportViewSet


__all__ = ["ReportViewSet"]
