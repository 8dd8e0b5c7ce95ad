import pytest

from summary_service.processors.identifier import (
    IDENTIFIER_ALIASES,
    MissingIdentifier,
    normalize_fields,
    resolve_project_id,
)


@pytest.mark.parametrize("alias", ["projectId", "rowID", "ProjectID", "RowID", "Row ID", "project_id"])
def test_each_alias_is_accepted(alias):
    assert resolve_project_id({alias: "P-17"}) == "P-17"


def test_alias_priority_follows_declared_order():
    payload = {"Row ID": "row-9", "projectId": "proj-1"}
    assert resolve_project_id(payload) == "proj-1"


def test_empty_alias_falls_through_to_next():
    payload = {"projectId": "   ", "rowID": "row-2"}
    assert resolve_project_id(payload) == "row-2"


def test_value_is_trimmed_and_stringified():
    assert resolve_project_id({"ProjectID": " 42 "}) == "42"
    assert resolve_project_id({"projectId": 42}) == "42"


def test_missing_identifier_raises_with_hint():
    with pytest.raises(MissingIdentifier) as exc:
        resolve_project_id({"drawings": "rev B", "ProjectName": "Gearbox"})
    assert "projectId" in exc.value.hint
    assert str(exc.value) == "ProjectID is required"


def test_identifier_aliases_include_row_variants():
    for alias in ("rowID", "RowID", "Row ID"):
        assert alias in IDENTIFIER_ALIASES


def test_normalize_fields_maps_aliases_and_keeps_extras():
    payload = {
        "Row ID": "7",
        "Drawings": "Rev C approved",
        "materials_status": "Steel delayed",
        "Recent Conversations": "Vendor call done",
        "Customer": "Acme",
        "Empty": "",
    }
    known, extra = normalize_fields(payload)
    assert known == {
        "projectId": "7",
        "drawings": "Rev C approved",
        "materials": "Steel delayed",
        "conversations": "Vendor call done",
    }
    assert extra == {"Customer": "Acme"}


def test_normalize_fields_drops_unused_aliases_from_extras():
    known, extra = normalize_fields({"projectId": "1", "rowID": "2"})
    assert known["projectId"] == "1"
    assert extra == {}
