"""
Database Schemas

MongoDB collection schemas as Pydantic models.
Field names are snake_case in Python and camelCase in stored documents
and in the submitted report JSON (vehicleReg, sectionA, isCompleted, ...).
"""

from datetime import date as date_type, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ItemKind(str, Enum):
    CHECK = "check"
    NUMERIC = "numeric"


class ItemStatus(str, Enum):
    UNSET = "UNSET"
    OK = "OK"
    DEFECTIVE = "DEFECTIVE"


class DocumentValidity(str, Enum):
    VALID = "Valid"
    EXPIRED = "Expired"


class UserRole(str, Enum):
    INSPECTOR = "inspector"
    ADMIN = "admin"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChecklistItemDefinition(BaseModel):
    """One line of the paper checklist"""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    kind: ItemKind


class AnswerItem(CamelModel):
    """A catalog item's recorded response within one report"""
    id: str
    label: str = ""
    kind: ItemKind
    status: ItemStatus = ItemStatus.UNSET
    remarks: str = ""
    value: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _blank_status(cls, v):
        return ItemStatus.UNSET if v in (None, "") else v

    @field_validator("remarks", "value", mode="before")
    @classmethod
    def _none_to_blank(cls, v):
        return "" if v is None else v

    @model_validator(mode="after")
    def _fields_match_kind(self):
        if self.kind == ItemKind.NUMERIC and self.status != ItemStatus.UNSET:
            raise ValueError(f"{self.id}: numeric items take a value, not a status")
        if self.kind == ItemKind.CHECK and self.value.strip():
            raise ValueError(f"{self.id}: check items take a status, not a value")
        return self

    @property
    def is_filled(self) -> bool:
        if self.kind == ItemKind.NUMERIC:
            return bool(self.value.strip())
        return self.status != ItemStatus.UNSET

    @property
    def is_defective(self) -> bool:
        return self.status == ItemStatus.DEFECTIVE

    @property
    def missing_remarks(self) -> bool:
        return self.is_defective and not self.remarks.strip()


class Header(CamelModel):
    vehicle_reg: str = ""
    date: str = Field("", description="Inspection date, YYYY-MM-DD")
    road_worthiness: Optional[DocumentValidity] = None
    insurance: Optional[DocumentValidity] = None

    @field_validator("road_worthiness", "insurance", mode="before")
    @classmethod
    def _blank_validity(cls, v):
        return None if v in (None, "") else v

    @field_validator("vehicle_reg", "date", mode="before")
    @classmethod
    def _strip(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        if v:
            date_type.fromisoformat(v)
        return v


class InspectionReport(CamelModel):
    """Collection: inspection"""
    id: Optional[str] = None
    inspector_name: str = Field(..., min_length=1)
    timestamp_created: Optional[datetime] = None
    header: Header = Field(default_factory=Header)
    section_a: List[AnswerItem] = Field(default_factory=list)
    section_b: List[AnswerItem] = Field(default_factory=list)
    is_completed: bool = False

    def answers(self) -> List[AnswerItem]:
        return [*self.section_a, *self.section_b]


class User(CamelModel):
    """Collection: user"""
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    role: UserRole = UserRole.INSPECTOR
