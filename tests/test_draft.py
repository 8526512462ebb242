import json

import pytest

from conftest import INSPECTOR, fill
from draft import ReportDraft
from errors import MalformedSubmission
from schemas import DocumentValidity, ItemKind, ItemStatus


def test_new_draft_is_seeded_from_catalog(new_draft):
    report = new_draft.report
    assert report.inspector_name == INSPECTOR
    assert report.header.vehicle_reg == "WR 1838-11"
    assert report.header.date == "2025-03-14"
    assert report.header.road_worthiness == DocumentValidity.VALID
    assert len(report.section_a) == 43
    assert len(report.section_b) == 7
    assert report.is_completed is False


def test_progress_bounds(new_draft):
    assert ReportDraft.blank(INSPECTOR).compute_progress() == 0
    # only the date counts at the start: 1 of 51
    assert new_draft.compute_progress() == 2
    assert fill(new_draft).compute_progress() == 100


def test_progress_never_regresses_while_filling(new_draft):
    seen = [new_draft.compute_progress()]
    for item in new_draft.section("A"):
        if item.kind == ItemKind.NUMERIC:
            new_draft.set_answer("A", item.id, "value", "100")
        else:
            new_draft.set_answer("A", item.id, "status", "DEFECTIVE")
            new_draft.set_answer("A", item.id, "remarks", "worn")
        seen.append(new_draft.compute_progress())
    for item in new_draft.section("B"):
        field, value = ("value", "5") if item.kind == ItemKind.NUMERIC else ("status", "OK")
        new_draft.set_answer("B", item.id, field, value)
        seen.append(new_draft.compute_progress())

    assert seen == sorted(seen)
    assert all(0 <= p <= 100 for p in seen)
    assert seen[-1] == 100


def test_blank_reading_is_not_filled(new_draft):
    before = new_draft.compute_progress()
    new_draft.set_answer("A", "a_0", "value", "   ")
    assert new_draft.compute_progress() == before


def test_set_header_field_accepts_either_name(new_draft):
    new_draft.set_header_field("roadWorthiness", "Expired")
    new_draft.set_header_field("vehicle_reg", "GT 4410-20")
    assert new_draft.report.header.road_worthiness == DocumentValidity.EXPIRED
    assert new_draft.report.header.vehicle_reg == "GT 4410-20"

    new_draft.set_header_field("insurance", "")
    assert new_draft.report.header.insurance is None


@pytest.mark.parametrize("field,value", [
    ("insurance", "Maybe"),
    ("date", "14/03/2025"),
    ("colour", "red"),
])
def test_set_header_field_rejects_bad_input(new_draft, field, value):
    with pytest.raises(ValueError):
        new_draft.set_header_field(field, value)


def test_set_answer_respects_item_kind(new_draft):
    with pytest.raises(ValueError):
        new_draft.set_answer("A", "a_0", "status", "OK")
    with pytest.raises(ValueError):
        new_draft.set_answer("A", "a_1", "value", "12")
    with pytest.raises(ValueError):
        new_draft.set_answer("A", "a_1", "status", "BROKEN")
    with pytest.raises(ValueError):
        new_draft.set_answer("A", "b_0", "status", "OK")
    with pytest.raises(ValueError):
        new_draft.set_answer("C", "a_1", "status", "OK")


def test_mark_all_skips_readings_and_clears_remarks(new_draft):
    new_draft.set_answer("A", "a_0", "value", "987")
    new_draft.set_answer("A", "a_3", "status", "DEFECTIVE")
    new_draft.set_answer("A", "a_3", "remarks", "low")

    new_draft.mark_all("A", ItemStatus.OK)

    section = new_draft.section("A")
    assert section[0].status == ItemStatus.UNSET
    assert section[0].value == "987"
    assert all(i.status == ItemStatus.OK for i in section[1:])
    assert section[3].remarks == ""
    assert all(i.status == ItemStatus.UNSET for i in new_draft.section("B"))


def test_from_json_uses_session_name(filled_draft):
    payload = filled_draft.report.model_dump(by_alias=True, mode="json")
    payload.update({"inspectorName": "Someone Else", "id": "abc", "isCompleted": True})

    draft = ReportDraft.from_json(json.dumps(payload), INSPECTOR)

    assert draft.report.inspector_name == INSPECTOR
    assert draft.report.id is None
    assert draft.report.is_completed is False
    assert draft.report.section_a == filled_draft.report.section_a


def test_from_json_takes_labels_from_catalog(filled_draft):
    payload = filled_draft.report.model_dump(by_alias=True, mode="json")
    payload["sectionA"][13]["label"] = "Brakes replaced, all fine"
    payload["sectionB"][0]["label"] = ""

    draft = ReportDraft.from_json(json.dumps(payload), INSPECTOR)

    assert draft.section("A")[13].label == "Emergency Brake"
    assert draft.section("B")[0].label == "Engine Oil Level"
    assert draft.report.section_a == filled_draft.report.section_a


def test_from_json_rejects_malformed(filled_draft):
    payload = filled_draft.report.model_dump(by_alias=True, mode="json")

    with pytest.raises(MalformedSubmission):
        ReportDraft.from_json("{not json", INSPECTOR)
    with pytest.raises(MalformedSubmission):
        ReportDraft.from_json("[]", INSPECTOR)

    missing = dict(payload, sectionB=payload["sectionB"][:-1])
    with pytest.raises(MalformedSubmission):
        ReportDraft.from_json(json.dumps(missing), INSPECTOR)

    bad_kind = json.loads(json.dumps(payload))
    bad_kind["sectionA"][0]["status"] = "OK"
    with pytest.raises(MalformedSubmission):
        ReportDraft.from_json(json.dumps(bad_kind), INSPECTOR)


def test_from_form_builds_draft():
    fields = {
        "vehicleReg": "WR 1838-11",
        "date": "2025-03-14",
        "roadWorthiness": "Valid",
        "insurance": "Expired",
        "a_0-value": "12345",
        "a_1-status": "DEFECTIVE",
        "a_1-remarks": "Cracked housing",
        "b_4-value": "3",
    }
    draft = ReportDraft.from_form(fields, INSPECTOR)

    assert draft.report.header.insurance == DocumentValidity.EXPIRED
    assert draft.section("A")[0].value == "12345"
    assert draft.section("A")[1].status == ItemStatus.DEFECTIVE
    assert draft.section("A")[1].remarks == "Cracked housing"
    assert draft.section("A")[2].status == ItemStatus.UNSET
    assert draft.section("B")[4].value == "3"


def test_from_form_rejects_bad_status():
    with pytest.raises(MalformedSubmission):
        ReportDraft.from_form({"a_1-status": "MAYBE"}, INSPECTOR)
