# summary_service/processors/identifier.py
"""
Payload normalizer for inbound status requests.

No-code platforms send the same logical field under different names
("projectId", "Row ID", "rowID", ...). FIELD_ALIASES maps each canonical
field to its accepted names, consulted in order; the first non-empty
value wins. Keys that match no alias are returned separately so they can
still be passed through to the prompt.
"""

from typing import Any, Dict, List, Mapping, Tuple

PROJECT_ID = "projectId"

FIELD_ALIASES: List[Tuple[str, Tuple[str, ...]]] = [
    (PROJECT_ID, (
        "projectId", "projectID", "ProjectID", "ProjectId", "project_id", "Project ID",
        "rowID", "rowId", "RowID", "RowId", "Row ID", "row_id", "id",
    )),
    ("drawings", ("drawings", "Drawings", "engineeringDrawings", "Engineering Drawings", "engineering_drawings")),
    ("materials", ("materials", "Materials", "materialsStatus", "Materials Status", "materials_status")),
    ("process", ("process", "Process", "processStatus", "Process Status", "process_status")),
    ("conversations", ("conversations", "Conversations", "recentConversations",
                       "Recent Conversations", "recent_conversations")),
]

IDENTIFIER_ALIASES = dict(FIELD_ALIASES)[PROJECT_ID]


class MissingIdentifier(ValueError):
    def __init__(self):
        super().__init__("ProjectID is required")
        self.hint = "Provide one of: " + ", ".join(IDENTIFIER_ALIASES)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v is not None)
    return str(value).strip()


def resolve_project_id(payload: Mapping[str, Any]) -> str:
    """First non-empty identifier alias, trimmed. Raises MissingIdentifier."""
    for alias in IDENTIFIER_ALIASES:
        value = _clean(payload.get(alias))
        if value:
            return value
    raise MissingIdentifier()


def normalize_fields(payload: Mapping[str, Any]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Split a raw payload into (known, extra).

    known: canonical field -> first non-empty alias value (missing fields omitted)
    extra: every other non-empty key, stringified
    """
    known: Dict[str, str] = {}
    consumed = set()
    for canonical, aliases in FIELD_ALIASES:
        consumed.update(aliases)
        for alias in aliases:
            value = _clean(payload.get(alias))
            if value:
                known[canonical] = value
                break

    extra = {}
    for key, value in payload.items():
        if key in consumed:
            continue
        cleaned = _clean(value)
        if cleaned:
            extra[str(key)] = cleaned
    return known, extra
