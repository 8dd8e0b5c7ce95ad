# summary_service/store.py
"""
Row-oriented record stores and the process-wide handle that owns the connection.

Two backends share one interface:
- SheetsRecordStore: first tab of a Google Sheet (production)
- SqlRecordStore: SQLAlchemy table (local development / tests)

Both return rows as dicts keyed by the sheet column names, in write order.
"""

import threading
from typing import Any, Callable, Dict, List, Optional

from summary_service import config
from summary_service import db as dbmod
from summary_service import monitoring
from summary_service.connectors import sheets_connector as _sheets
from summary_service.schemas import SHEET_COLUMNS


class StoreError(RuntimeError):
    pass


class RecordStore:
    name = "base"

    def get_rows(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def append_row(self, row: Dict[str, Any]) -> None:
        raise NotImplementedError

    def ping(self) -> bool:
        self.get_rows()
        return True


class SheetsRecordStore(RecordStore):
    name = "sheets"

    def __init__(self, spreadsheet_id: str, client_email: str, private_key: str, service=None):
        self.spreadsheet_id = spreadsheet_id
        try:
            self._service = service or _sheets.build_sheets_service(client_email, private_key)
            self._title = _sheets.first_sheet_title(self._service, spreadsheet_id)
        except Exception as e:
            raise StoreError(f"Could not open spreadsheet {spreadsheet_id}: {e}") from e

    def get_rows(self) -> List[Dict[str, Any]]:
        try:
            return _sheets.read_header_and_rows(self._service, self.spreadsheet_id, self._title)["rows"]
        except Exception as e:
            raise StoreError(f"Sheet read failed: {e}") from e

    def append_row(self, row: Dict[str, Any]) -> None:
        try:
            header = _sheets.read_header(self._service, self.spreadsheet_id, self._title)
            values = []
            if not header:
                header = list(SHEET_COLUMNS)
                values.append(header)
            values.append([row.get(col, "") for col in header])
            _sheets.append_values(self._service, self.spreadsheet_id, self._title, values)
        except Exception as e:
            raise StoreError(f"Sheet append failed: {e}") from e

    def ping(self) -> bool:
        try:
            _sheets.first_sheet_title(self._service, self.spreadsheet_id)
        except Exception as e:
            raise StoreError(f"Sheet unreachable: {e}") from e
        return True


class SqlRecordStore(RecordStore):
    name = "sql"

    _FIELDS = {
        "Timestamp": "timestamp",
        "ProjectID": "project_id",
        "Summary": "summary",
        "Key_Changes": "key_changes",
        "Previous_Context": "previous_context",
        "Data_Snapshot": "data_snapshot",
    }

    def __init__(self):
        try:
            dbmod.init_db()
        except Exception as e:
            raise StoreError(f"DB init failed: {e}") from e

    def get_rows(self) -> List[Dict[str, Any]]:
        from summary_service.models import StatusRow
        session = dbmod.SessionLocal()
        try:
            found = session.query(StatusRow).order_by(StatusRow.id.asc()).all()
            return [
                {col: getattr(r, attr) or "" for col, attr in self._FIELDS.items()}
                for r in found
            ]
        except Exception as e:
            raise StoreError(f"DB read failed: {e}") from e
        finally:
            session.close()

    def append_row(self, row: Dict[str, Any]) -> None:
        from summary_service.models import StatusRow
        session = dbmod.SessionLocal()
        try:
            session.add(StatusRow(**{attr: row.get(col) for col, attr in self._FIELDS.items()}))
            session.commit()
        except Exception as e:
            session.rollback()
            raise StoreError(f"DB write failed: {e}") from e
        finally:
            session.close()


def default_store_factory() -> RecordStore:
    if config.STORE_BACKEND == "sql":
        return SqlRecordStore()
    return SheetsRecordStore(
        config.GOOGLE_SHEET_ID,
        config.GOOGLE_SERVICE_ACCOUNT_EMAIL,
        config.GOOGLE_PRIVATE_KEY,
    )


class StoreHandle:
    """
    Lazily connects on first use and memoizes the store for the process.
    Initialization is guarded by a lock so concurrent requests share one
    connection; invalidate() forces the next get() to reconnect.
    """

    def __init__(self, factory: Optional[Callable[[], RecordStore]] = None):
        self._factory = factory or default_store_factory
        self._store: Optional[RecordStore] = None
        self._lock = threading.Lock()

    def get(self) -> RecordStore:
        store = self._store
        if store is not None:
            return store
        with self._lock:
            if self._store is None:
                monitoring.logger.info("Connecting record store")
                self._store = self._factory()
            return self._store

    def invalidate(self) -> None:
        with self._lock:
            self._store = None

    def ping(self) -> bool:
        try:
            return self.get().ping()
        except Exception:
            monitoring.logger.warning("Record store health check failed", exc_info=True)
            return False
