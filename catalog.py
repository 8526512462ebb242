"""Fixed checklist items, in the order they appear on the paper form."""

from typing import Dict, List

from schemas import AnswerItem, ChecklistItemDefinition, ItemKind

SECTION_TITLES = {
    "A": "Fire Tender",
    "B": "Portable Fire Pump",
}

_SECTION_A_LABELS = [
    "Current Odometer reading",
    "Fire tender",
    "Power Steering Fluid",
    "Engine Oil Level",
    "Water Coolant Level",
    "Water/Oil Leaks",
    "Tires & Lug Nuts",
    "Head Lamps",
    "Turn Signals",
    "Hazard Lights",
    "Brake Lights",
    "Backup Beep",
    "Starter",
    "Emergency Brake",
    "Air Pressure Gauges",
    "Oil Pressure Gauge",
    "Battery Charging System",
    "Fuel Gauge",
    "Ignition Indication",
    "Siren",
    "Steering Fluid (ATF)",
    "Water Level in Reservoir",
    "Carry out brake hold test",
    "Carry Out Brake test",
    "Two Way Radio",
    "Jack & Wheel Spanner",
    "Wheel chocks",
    "First Aid Box",
    "Warning Triangle",
    "Park Brake Operation",
    "Glass (all) & Mirror",
    "Hydraulic Operations",
    "Sounds/Vibrations",
    "Air-Condition",
    "Spare tyre",
    "Gear Stick Sealed & Correct",
    "Seat Belt Condition",
    "Driver & Passenger Doors",
    "Beacon Light",
    "Air Horn",
    "Wiper & Washer Fluid",
    "Radiator Coolant Level",
    "6% AFFF Concentrate Level",
]

_SECTION_B_LABELS = [
    "Engine Oil Level",
    "Fuel Level",
    "Gauge Operative",
    "Indicator Lamp",
    "Pump Running time (Hour)",
    "Delivery Pressure",
    "Flow rate",
]

# Readings rather than OK/defective checks
_NUMERIC_LABELS = {
    "A": {"Current Odometer reading"},
    "B": {"Pump Running time (Hour)", "Delivery Pressure", "Flow rate"},
}


def _build(section: str, labels: List[str]) -> List[ChecklistItemDefinition]:
    prefix = section.lower()
    return [
        ChecklistItemDefinition(
            id=f"{prefix}_{index}",
            label=label,
            kind=ItemKind.NUMERIC if label in _NUMERIC_LABELS[section] else ItemKind.CHECK,
        )
        for index, label in enumerate(labels)
    ]


SECTION_A = tuple(_build("A", _SECTION_A_LABELS))
SECTION_B = tuple(_build("B", _SECTION_B_LABELS))

SECTIONS: Dict[str, tuple] = {"A": SECTION_A, "B": SECTION_B}


def definitions(section: str) -> tuple:
    try:
        return SECTIONS[section.upper()]
    except KeyError:
        raise ValueError(f"Unknown section: {section}") from None


def new_answers(section: str) -> List[AnswerItem]:
    """Blank answers for every item of a section, in catalog order"""
    return [
        AnswerItem(id=d.id, label=d.label, kind=d.kind)
        for d in definitions(section)
    ]


def relabel(section: str, answers: List[AnswerItem]) -> None:
    """Replace submitted labels with the catalog wording"""
    labels = {d.id: d.label for d in definitions(section)}
    for answer in answers:
        if answer.id in labels:
            answer.label = labels[answer.id]


def conforms(section: str, answers: List[AnswerItem]) -> bool:
    """True when answers cover exactly the section's items, in order, with matching kinds and labels"""
    expected = [(d.id, d.kind, d.label) for d in definitions(section)]
    return [(a.id, a.kind, a.label) for a in answers] == expected
