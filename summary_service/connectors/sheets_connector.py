# summary_service/connectors/sheets_connector.py
from typing import Any, Dict, List

from google.oauth2 import service_account
from googleapiclient.discovery import build

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def build_sheets_service(client_email: str, private_key: str):
    """Authenticate as a service account and return a Sheets v4 service object."""
    creds = service_account.Credentials.from_service_account_info(
        {
            "type": "service_account",
            "client_email": client_email,
            "private_key": private_key,
            "token_uri": TOKEN_URI,
        },
        scopes=SHEETS_SCOPES,
    )
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def first_sheet_title(service, spreadsheet_id: str) -> str:
    meta = service.spreadsheets().get(
        spreadsheetId=spreadsheet_id,
        fields="sheets(properties(title))",
    ).execute()
    sheets = meta.get("sheets") or []
    if not sheets:
        raise RuntimeError(f"Spreadsheet {spreadsheet_id} has no sheets")
    return sheets[0]["properties"]["title"]


def _quote_title(title: str) -> str:
    return "'" + title.replace("'", "''") + "'"


def read_header_and_rows(service, spreadsheet_id: str, title: str) -> Dict[str, Any]:
    """
    Read the whole tab. The first row is the header.

    Returns:
        {"header": [...], "rows": [{"<header>": "<cell>", ...}, ...]}  (rows in sheet order)
    """
    resp = service.spreadsheets().values().get(
        spreadsheetId=spreadsheet_id,
        range=_quote_title(title),
    ).execute()
    values: List[List[Any]] = resp.get("values", [])
    if not values:
        return {"header": [], "rows": []}

    header = [str(h).strip() for h in values[0]]
    rows = []
    for raw in values[1:]:
        padded = list(raw) + [""] * (len(header) - len(raw))
        rows.append({h: padded[i] for i, h in enumerate(header) if h})
    return {"header": header, "rows": rows}


def read_header(service, spreadsheet_id: str, title: str) -> List[str]:
    resp = service.spreadsheets().values().get(
        spreadsheetId=spreadsheet_id,
        range=f"{_quote_title(title)}!1:1",
    ).execute()
    values = resp.get("values", [])
    return [str(h).strip() for h in values[0]] if values else []


def append_values(service, spreadsheet_id: str, title: str, values: List[List[Any]]) -> Dict[str, Any]:
    return service.spreadsheets().values().append(
        spreadsheetId=spreadsheet_id,
        range=f"{_quote_title(title)}!A1",
        valueInputOption="RAW",
        insertDataOption="INSERT_ROWS",
        body={"values": values},
    ).execute()
