# summary_service/history.py
import time
from typing import List

from summary_service import monitoring
from summary_service.schemas import HistoryEntry, StatusRecord
from summary_service.store import StoreHandle


def _same_project(value, project_id: str) -> bool:
    return str(value if value is not None else "").strip() == project_id.strip()


def fetch_previous_summaries(handle: StoreHandle, project_id: str, limit: int = 5) -> List[HistoryEntry]:
    """
    Return the last `limit` stored summaries for project_id, in store order
    (oldest first). History is optional context: any store error is logged
    and an empty list returned.
    """
    try:
        rows = handle.get().get_rows()
    except Exception:
        monitoring.inc_history_fetch("fail")
        monitoring.logger.exception("Error fetching previous summaries", extra={"project_id": project_id})
        return []

    matches = [r for r in rows if _same_project(r.get("ProjectID"), project_id)]
    if limit <= 0:
        matches = []
    else:
        matches = matches[-limit:]
    monitoring.inc_history_fetch("success")
    return [HistoryEntry.from_row(r) for r in matches]


def save_summary_record(handle: StoreHandle, record: StatusRecord, retry_delay: float = 1.0) -> bool:
    """
    Append one record. On failure, reconnect and retry exactly once after
    `retry_delay` seconds. Returns whether the record was saved.
    """
    row = record.to_row()
    try:
        handle.get().append_row(row)
        monitoring.inc_sheet_write("success")
        return True
    except Exception:
        monitoring.logger.warning("Save failed, retrying once", exc_info=True,
                                  extra={"project_id": record.project_id})

    time.sleep(retry_delay)
    handle.invalidate()
    try:
        handle.get().append_row(row)
        monitoring.inc_sheet_write("retry_success")
        return True
    except Exception:
        monitoring.inc_sheet_write("fail")
        monitoring.logger.exception("Save failed after retry", extra={"project_id": record.project_id})
        return False
