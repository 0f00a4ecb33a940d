from .report_serializers import CreateReportSerializer, ReportSerializer, ReportStatusSerializer


__all__ = ["CreateReportSerializer", "ReportSerializer", "ReportStatusSerializer"]
