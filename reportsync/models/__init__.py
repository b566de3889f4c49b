"""Database models for the ReportSync backend."""

from .change_entry import SectionChangeEntry
from .report import Report
from .section import ReportSection

__all__ = ["Report", "ReportSection", "SectionChangeEntry"]
