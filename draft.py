"""
In-progress inspection reports.

A draft is never persisted. It is seeded from the catalog, edited through
the mutators below, and handed to the validator at submit time.
"""

import json
from datetime import date
from typing import Mapping, Optional

from pydantic import ValidationError

import catalog
from errors import MalformedSubmission
from schemas import AnswerItem, DocumentValidity, Header, InspectionReport, ItemKind, ItemStatus

HEADER_FIELDS = {
    "vehicleReg": "vehicle_reg",
    "date": "date",
    "roadWorthiness": "road_worthiness",
    "insurance": "insurance",
}

ANSWER_FIELDS = ("status", "remarks", "value")


def _section_key(section: str) -> str:
    key = section.upper()
    if key not in catalog.SECTIONS:
        raise ValueError(f"Unknown section: {section}")
    return key


class ReportDraft:
    """Mutable wrapper around a not-yet-submitted InspectionReport"""

    def __init__(self, report: InspectionReport):
        self.report = report

    @classmethod
    def new(
        cls,
        inspector_name: str,
        vehicle_reg: str = "",
        today: Optional[date] = None,
    ) -> "ReportDraft":
        today = today or date.today()
        header = Header(
            vehicle_reg=vehicle_reg,
            date=today.isoformat(),
            road_worthiness=DocumentValidity.VALID,
            insurance=DocumentValidity.VALID,
        )
        report = InspectionReport(
            inspector_name=inspector_name,
            header=header,
            section_a=catalog.new_answers("A"),
            section_b=catalog.new_answers("B"),
        )
        return cls(report)

    @classmethod
    def blank(cls, inspector_name: str) -> "ReportDraft":
        """Catalog items with an empty header"""
        return cls(InspectionReport(
            inspector_name=inspector_name,
            section_a=catalog.new_answers("A"),
            section_b=catalog.new_answers("B"),
        ))

    @classmethod
    def from_json(cls, raw: str, inspector_name: str) -> "ReportDraft":
        """Parse a serialized report, rejecting anything that does not fit the catalog"""
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            raise MalformedSubmission("Report data is not valid JSON")
        if not isinstance(payload, dict):
            raise MalformedSubmission("Report data must be a JSON object")

        for key in ("id", "_id", "timestampCreated", "timestamp_created", "inspector_name"):
            payload.pop(key, None)
        payload["inspectorName"] = inspector_name
        payload["isCompleted"] = False

        try:
            report = InspectionReport.model_validate(payload)
        except ValidationError as e:
            raise MalformedSubmission(f"Report data does not match the checklist: {e.error_count()} error(s)")

        catalog.relabel("A", report.section_a)
        catalog.relabel("B", report.section_b)
        if not catalog.conforms("A", report.section_a):
            raise MalformedSubmission("Section A items do not match the checklist")
        if not catalog.conforms("B", report.section_b):
            raise MalformedSubmission("Section B items do not match the checklist")
        return cls(report)

    @classmethod
    def from_form(cls, fields: Mapping[str, str], inspector_name: str) -> "ReportDraft":
        """Build a draft from flat form fields: header names plus <id>-status/-remarks/-value"""
        draft = cls.blank(inspector_name)
        try:
            for name in HEADER_FIELDS:
                if name in fields:
                    draft.set_header_field(name, fields[name])
            for section in catalog.SECTIONS:
                for item in draft.section(section):
                    for field in ANSWER_FIELDS:
                        key = f"{item.id}-{field}"
                        if key in fields:
                            draft.set_answer(section, item.id, field, fields[key])
        except ValueError as e:
            raise MalformedSubmission(str(e))
        return draft

    def section(self, section: str):
        key = _section_key(section)
        return self.report.section_a if key == "A" else self.report.section_b

    def _item(self, section: str, item_id: str) -> AnswerItem:
        for item in self.section(section):
            if item.id == item_id:
                return item
        raise ValueError(f"Unknown item {item_id} in section {section}")

    def set_header_field(self, field: str, value: str) -> None:
        attr = HEADER_FIELDS.get(field, field)
        if attr not in HEADER_FIELDS.values():
            raise ValueError(f"Unknown header field: {field}")
        data = self.report.header.model_dump()
        data[attr] = value
        try:
            self.report.header = Header.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {field}: {value!r}") from e

    def set_answer(self, section: str, item_id: str, field: str, value: str) -> None:
        if field not in ANSWER_FIELDS:
            raise ValueError(f"Unknown answer field: {field}")
        item = self._item(section, item_id)
        value = value or ""

        if field == "status":
            if item.kind != ItemKind.CHECK:
                if value:
                    raise ValueError(f"{item_id} is a reading and has no status")
                return
            try:
                item.status = ItemStatus(value) if value else ItemStatus.UNSET
            except ValueError:
                raise ValueError(f"Invalid status for {item_id}: {value!r}") from None
        elif field == "value":
            if item.kind != ItemKind.NUMERIC:
                if value.strip():
                    raise ValueError(f"{item_id} is a check and has no value")
                return
            item.value = value
        else:
            item.remarks = value

    def mark_all(self, section: str, status: ItemStatus) -> None:
        """Set every check item of a section to status and clear its remarks"""
        for item in self.section(section):
            if item.kind == ItemKind.CHECK:
                item.status = status
                item.remarks = ""

    def compute_progress(self) -> int:
        items = self.report.answers()
        filled = sum(1 for item in items if item.is_filled)
        current = filled + (1 if self.report.header.date else 0)
        total = len(items) + 1
        return min(100, round(current / total * 100))
