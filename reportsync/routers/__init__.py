"""API routers for the ReportSync service."""
