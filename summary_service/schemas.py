# summary_service/schemas.py
import datetime
import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

# Column order of the persisted sheet
SHEET_COLUMNS = [
    "Timestamp",
    "ProjectID",
    "Summary",
    "Key_Changes",
    "Previous_Context",
    "Data_Snapshot",
]


def utc_now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class StatusRecord(BaseModel):
    """One appended row of the status store."""

    timestamp: str = Field(default_factory=utc_now_iso)
    project_id: str
    summary: str
    key_changes: str = ""
    previous_context: str = ""
    data_snapshot: Optional[str] = None

    @field_validator("project_id", "timestamp")
    @classmethod
    def must_not_be_blank(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("must be a non-empty string")
        return str(v).strip()

    @classmethod
    def with_snapshot(cls, payload: Dict[str, Any], **kwargs) -> "StatusRecord":
        snapshot = json.dumps(payload, ensure_ascii=False, default=str) if payload is not None else None
        return cls(data_snapshot=snapshot, **kwargs)

    def to_row(self) -> Dict[str, str]:
        return {
            "Timestamp": self.timestamp,
            "ProjectID": self.project_id,
            "Summary": self.summary,
            "Key_Changes": self.key_changes,
            "Previous_Context": self.previous_context,
            "Data_Snapshot": self.data_snapshot or "",
        }


class HistoryEntry(BaseModel):
    timestamp: str = ""
    summary: str = ""
    key_changes: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            timestamp=str(row.get("Timestamp") or ""),
            summary=str(row.get("Summary") or ""),
            key_changes=str(row.get("Key_Changes") or ""),
        )
