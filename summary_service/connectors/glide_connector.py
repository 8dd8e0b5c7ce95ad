# summary_service/connectors/glide_connector.py
"""
Pushes a generated summary into a Glide table row.

Glide's mutateTables endpoint takes a list of mutations; a single
"set-columns-in-row" mutation updates one column of the row whose
row ID matches the project identifier.
"""

from typing import Any, Dict, Optional

import requests

from summary_service import config
from summary_service import monitoring


class PropagationError(RuntimeError):
    pass


def is_configured() -> bool:
    return config.glide_configured()


def build_mutation(row_id: str, summary: str, column: Optional[str] = None) -> Dict[str, Any]:
    return {
        "appID": config.GLIDE_APP_ID,
        "mutations": [
            {
                "kind": "set-columns-in-row",
                "tableName": config.GLIDE_TABLE_NAME,
                "columnValues": {column or config.GLIDE_SUMMARY_COLUMN: summary},
                "rowID": row_id,
            }
        ],
    }


def set_summary_column(row_id: str, summary: str, timeout: int = 15) -> Any:
    """One POST, no retry. Raises PropagationError on HTTP or payload errors."""
    headers = {
        "Authorization": f"Bearer {config.GLIDE_API_TOKEN}",
        "Content-Type": "application/json",
    }
    try:
        r = requests.post(config.GLIDE_API_URL, headers=headers,
                          json=build_mutation(row_id, summary), timeout=timeout)
    except requests.RequestException as e:
        raise PropagationError(f"Glide request failed: {e}") from e

    text = r.text or ""
    if r.status_code >= 300:
        raise PropagationError(f"Glide HTTP error: {r.status_code} {text[:500]}")
    try:
        data = r.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("error"):
        raise PropagationError(f"Glide error: {str(data.get('error'))[:500]}")
    return data


def push_summary(project_id: str, summary: str) -> bool:
    """
    Best-effort propagation. Returns True when skipped (not configured) or
    when Glide accepted the update, False on any failure.
    """
    if not is_configured():
        return True
    try:
        set_summary_column(project_id, summary)
        monitoring.inc_glide_push("success")
        return True
    except Exception:
        monitoring.inc_glide_push("fail")
        monitoring.logger.exception("Glide propagation failed", extra={"project_id": project_id})
        return False
