"""
MongoDB access.

The client is created once per process by connect() and the resulting
Database handle is passed to the gateways; nothing here is global.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

import catalog
from errors import MalformedSubmission, PersistenceFailure, ReportNotFound, ValidationFailure
from logging_config import get_logger
from schemas import InspectionReport
from validation import HEADER_MESSAGE, validate_report

logger = get_logger(__name__)

REPORT_COLLECTION = "inspection"


def connect(url: str, name: str, timeout_ms: int = 5000) -> Tuple[MongoClient, Database]:
    client = MongoClient(url, tz_aware=True, serverSelectionTimeoutMS=timeout_ms)
    return client, client[name]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_obj_id(id_str: str) -> Optional[ObjectId]:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        return None


def serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


def ping(db: Database) -> bool:
    try:
        db.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"Database ping failed: {e}")
        return False


class ReportRepository:
    """Append-only store of completed inspection reports"""

    def __init__(self, db: Database):
        self.collection = db[REPORT_COLLECTION]

    def create(self, report: InspectionReport) -> str:
        if not report.is_completed:
            raise ValidationFailure(set(), "Only completed reports are stored")
        if not report.inspector_name.strip():
            raise ValidationFailure({"inspectorName"}, HEADER_MESSAGE)
        if not (catalog.conforms("A", report.section_a) and catalog.conforms("B", report.section_b)):
            raise MalformedSubmission("Report items do not match the checklist")
        validate_report(report)

        doc = report.model_dump(by_alias=True, mode="json", exclude={"id", "timestamp_created"})
        doc["timestampCreated"] = utc_now()
        try:
            inserted_id = self.collection.insert_one(doc).inserted_id
        except PyMongoError as e:
            logger.error(f"Failed to store inspection report: {e}")
            raise PersistenceFailure("Failed to submit report. Please try again.", operation="create") from e

        report_id = str(inserted_id)
        logger.info(
            f"Stored inspection report {report_id}",
            extra={"report_id": report_id},
        )
        return report_id

    def find_by_id(self, report_id: str) -> InspectionReport:
        obj_id = to_obj_id(report_id)
        if obj_id is None:
            raise ReportNotFound(report_id)
        try:
            doc = self.collection.find_one({"_id": obj_id})
        except PyMongoError as e:
            logger.error(f"Failed to load inspection report {report_id}: {e}")
            raise PersistenceFailure("Failed to load inspection", operation="find") from e
        if doc is None:
            raise ReportNotFound(report_id)
        return InspectionReport.model_validate(serialize(doc))

    def list_all(self) -> List[InspectionReport]:
        """All reports, newest first"""
        try:
            docs = list(self.collection.find({}).sort("timestampCreated", DESCENDING))
        except PyMongoError as e:
            logger.error(f"Failed to list inspection reports: {e}")
            raise PersistenceFailure("Failed to load inspections", operation="list") from e
        return [InspectionReport.model_validate(serialize(doc)) for doc in docs]
