"""Report services package."""
from .report_service import ReportService

__all__ = ['ReportService']
