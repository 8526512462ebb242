"""Display-time status and search for the report list."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List

from schemas import InspectionReport


class ReportStatus(str, Enum):
    DRAFT = "Draft"
    DEFECT_FOUND = "Defect Found"
    NO_DEFECT = "No Defect"


def derive_status(report: InspectionReport) -> ReportStatus:
    if not report.is_completed:
        return ReportStatus.DRAFT
    if any(item.is_defective for item in report.answers()):
        return ReportStatus.DEFECT_FOUND
    return ReportStatus.NO_DEFECT


def filter_reports(reports: Iterable[InspectionReport], term: str = "") -> List[InspectionReport]:
    """Case-insensitive substring match on vehicle registration or inspector name"""
    needle = (term or "").lower()
    if not needle:
        return list(reports)
    return [
        r for r in reports
        if needle in r.header.vehicle_reg.lower() or needle in r.inspector_name.lower()
    ]


@dataclass
class DashboardRow:
    report: InspectionReport
    status: ReportStatus


@dataclass
class DashboardSummary:
    total: int
    defect_found: int
    no_defect: int
    drafts: int


def build_rows(reports: Iterable[InspectionReport], term: str = "") -> List[DashboardRow]:
    return [DashboardRow(r, derive_status(r)) for r in filter_reports(reports, term)]


def summarize(rows: List[DashboardRow]) -> DashboardSummary:
    counts = {status: 0 for status in ReportStatus}
    for row in rows:
        counts[row.status] += 1
    return DashboardSummary(
        total=len(rows),
        defect_found=counts[ReportStatus.DEFECT_FOUND],
        no_defect=counts[ReportStatus.NO_DEFECT],
        drafts=counts[ReportStatus.DRAFT],
    )
