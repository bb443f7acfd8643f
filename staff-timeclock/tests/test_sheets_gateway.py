import socket
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from services.errors import NotFound, StoreUnavailable
from services.sheets_gateway import GoogleSheetsStore, load_credentials


def _make_store(service):
    credentials = MagicMock(service_account_email="timeclock@example.iam.gserviceaccount.com")
    return GoogleSheetsStore("sheet-123", credentials=credentials, service=service)


def _values(service):
    return service.spreadsheets.return_value.values.return_value


def test_read_range():
    service = MagicMock()
    _values(service).get.return_value.execute.return_value = {"values": [["Lisa", "ADMIN"]]}

    rows = _make_store(service).read_range("'Staff Roster'!A2:E")

    assert rows == [["Lisa", "ADMIN"]]
    _values(service).get.assert_called_with(
        spreadsheetId="sheet-123", range="'Staff Roster'!A2:E"
    )


def test_read_empty_range():
    """values キーが無い（空のレンジ）場合は空リスト"""
    service = MagicMock()
    _values(service).get.return_value.execute.return_value = {"range": "Dashboard!A2:K"}
    assert _make_store(service).read_range("'Dashboard'!A2:K") == []


def test_append_returns_row_number():
    service = MagicMock()
    _values(service).append.return_value.execute.return_value = {
        "updates": {"updatedRange": "Dashboard!A57:K57"}
    }

    row = _make_store(service).append_row("'Dashboard'!A:K", ["02/24/2026", "Lisa"])

    assert row == 57
    kwargs = _values(service).append.call_args.kwargs
    assert kwargs["valueInputOption"] == "USER_ENTERED"
    assert kwargs["body"] == {"values": [["02/24/2026", "Lisa"]]}


def test_update_cells():
    service = MagicMock()
    _make_store(service).update_cells("'Dashboard'!J5", [["Finished"]])
    _values(service).update.assert_called_with(
        spreadsheetId="sheet-123",
        range="'Dashboard'!J5",
        valueInputOption="USER_ENTERED",
        body={"values": [["Finished"]]},
    )


def test_http_error_wrapped():
    """HTTPエラーは StoreUnavailable に包まれ、元のメッセージを保持すること"""
    service = MagicMock()
    error = HttpError(
        httplib2.Response({"status": "403"}),
        b'{"error": {"message": "The caller does not have permission"}}',
    )
    _values(service).get.return_value.execute.side_effect = error

    with pytest.raises(StoreUnavailable) as exc_info:
        _make_store(service).read_range("'Dashboard'!A2:K")
    assert "permission" in exc_info.value.message
    assert exc_info.value.__cause__ is error


def test_timeout_wrapped():
    service = MagicMock()
    _values(service).update.return_value.execute.side_effect = socket.timeout("timed out")

    with pytest.raises(StoreUnavailable):
        _make_store(service).update_cells("'Dashboard'!J5", [["Finished"]])


def test_list_and_rename_sheets():
    service = MagicMock()
    service.spreadsheets.return_value.get.return_value.execute.return_value = {
        "sheets": [
            {"properties": {"sheetId": 0, "title": "Dashboard"}},
            {"properties": {"sheetId": 7, "title": "Lisa"}},
        ]
    }
    store = _make_store(service)

    assert store.list_sheets() == ["Dashboard", "Lisa"]

    store.rename_sheet("Lisa", "Lisa B")
    body = service.spreadsheets.return_value.batchUpdate.call_args.kwargs["body"]
    assert body["requests"][0]["updateSheetProperties"]["properties"] == {
        "sheetId": 7,
        "title": "Lisa B",
    }

    with pytest.raises(NotFound):
        store.rename_sheet("Nobody", "Somebody")


def test_add_sheet():
    service = MagicMock()
    _make_store(service).add_sheet("Clare H")
    body = service.spreadsheets.return_value.batchUpdate.call_args.kwargs["body"]
    assert body == {"requests": [{"addSheet": {"properties": {"title": "Clare H"}}}]}


def test_describe():
    info = _make_store(MagicMock()).describe()
    assert info["sheetId"] == "sheet-123"
    assert info["connectedEmail"] == "timeclock@example.iam.gserviceaccount.com"


def test_load_credentials_invalid_json():
    with pytest.raises(StoreUnavailable):
        load_credentials(credentials_json="{not json")


def test_load_credentials_missing_file():
    with pytest.raises(StoreUnavailable):
        load_credentials(credentials_path="nonexistent-credentials.json")
