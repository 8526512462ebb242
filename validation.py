"""Submission rules for a draft inspection report."""

from dataclasses import dataclass, field
from typing import List, Set

from errors import ValidationFailure
from schemas import InspectionReport

HEADER_MESSAGE = "Please fill in all required fields."


@dataclass
class RuleViolation:
    rule: str
    message: str
    offending: Set[str] = field(default_factory=set)


def _header_incomplete(report: InspectionReport) -> Set[str]:
    header = report.header
    missing = set()
    if not header.vehicle_reg:
        missing.add("vehicleReg")
    if not header.date:
        missing.add("date")
    if header.road_worthiness is None:
        missing.add("roadWorthiness")
    if header.insurance is None:
        missing.add("insurance")
    return missing


def _incomplete(items) -> Set[str]:
    return {item.id for item in items if not item.is_filled}


def _missing_remarks(items) -> Set[str]:
    return {f"{item.id}-remarks" for item in items if item.missing_remarks}


# Evaluated in this order; the first violated rule supplies the message.
RULES: List[tuple] = [
    ("header", _header_incomplete,
     lambda n: HEADER_MESSAGE),
    ("section-a-complete", lambda r: _incomplete(r.section_a),
     lambda n: f"Please complete all items in Section A. {n} remaining."),
    ("section-a-remarks", lambda r: _missing_remarks(r.section_a),
     lambda n: "Please provide remarks for all defective items in Section A."),
    ("section-b-remarks", lambda r: _missing_remarks(r.section_b),
     lambda n: "Please provide remarks for all defective items in Section B."),
    ("section-b-complete", lambda r: _incomplete(r.section_b),
     lambda n: f"Please complete all items in Section B. {n} remaining."),
]


def find_violations(report: InspectionReport) -> List[RuleViolation]:
    violations = []
    for name, check, message in RULES:
        offending = check(report)
        if offending:
            violations.append(RuleViolation(name, message(len(offending)), offending))
    return violations


def validate_report(report: InspectionReport) -> None:
    """Raise ValidationFailure carrying every offending id if any rule is violated"""
    violations = find_violations(report)
    if violations:
        offending = set().union(*(v.offending for v in violations))
        raise ValidationFailure(offending, violations[0].message)


def complete(report: InspectionReport) -> InspectionReport:
    """Validate and return a completed copy ready for persistence"""
    validate_report(report)
    return report.model_copy(update={"is_completed": True}, deep=True)
