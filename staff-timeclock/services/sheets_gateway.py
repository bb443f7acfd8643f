# services/sheets_gateway.py
import json
import logging
import socket
import threading
from typing import Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from services.a1 import parse_range
from services.errors import NotFound, StoreUnavailable
from services.store_interface import RowStoreInterface

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# 数式列を残すため USER_ENTERED で書き込む
VALUE_INPUT_OPTION = "USER_ENTERED"


def load_credentials(credentials_json: str = "", credentials_path: str = "credentials.json"):
    """サービスアカウントの認証情報を読み込む

    本番は環境変数の JSON 文字列、開発時はローカルファイルを使う。
    """
    try:
        if credentials_json:
            info = json.loads(credentials_json)
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        return service_account.Credentials.from_service_account_file(
            credentials_path, scopes=SCOPES
        )
    except (ValueError, OSError) as e:
        raise StoreUnavailable(f"Failed to load Google credentials: {e}") from e


class GoogleSheetsStore(RowStoreInterface):
    """Google Sheets API v4 による行ストア

    httplib2.Http はスレッドセーフでないため、サービスはスレッドごとに生成する。
    自動リトライはしない（呼び出し側がリクエスト全体を再試行する）。
    """

    def __init__(
        self,
        spreadsheet_id: str,
        credentials=None,
        timeout_seconds: float = 15,
        service=None,
    ):
        self._spreadsheet_id = spreadsheet_id
        self._credentials = credentials
        self._timeout = timeout_seconds
        self._service = service
        self._local = threading.local()

    def _get_service(self):
        if self._service is not None:
            return self._service
        service = getattr(self._local, "service", None)
        if service is None:
            http = AuthorizedHttp(
                self._credentials, http=httplib2.Http(timeout=self._timeout)
            )
            service = build("sheets", "v4", http=http, cache_discovery=False)
            self._local.service = service
        return service

    def _call(self, action: str, make_request):
        """API呼び出しを実行し、低レベルの失敗を StoreUnavailable に包む"""
        try:
            request = make_request(self._get_service())
            return request.execute()
        except HttpError as e:
            logger.error("Sheets %s failed: %s", action, e)
            raise StoreUnavailable(f"Sheets {action} failed: {e}") from e
        except (GoogleAuthError, httplib2.HttpLib2Error, socket.timeout, OSError) as e:
            logger.error("Sheets %s failed: %s", action, e)
            raise StoreUnavailable(f"Sheets {action} failed: {e}") from e

    def read_range(self, range_: str) -> list[list]:
        result = self._call(
            f"read {range_}",
            lambda svc: svc.spreadsheets().values().get(
                spreadsheetId=self._spreadsheet_id, range=range_
            ),
        )
        return result.get("values", [])

    def append_row(self, range_: str, row: list) -> Optional[int]:
        result = self._call(
            f"append {range_}",
            lambda svc: svc.spreadsheets().values().append(
                spreadsheetId=self._spreadsheet_id,
                range=range_,
                valueInputOption=VALUE_INPUT_OPTION,
                body={"values": [row]},
            ),
        )
        updated = (result.get("updates") or {}).get("updatedRange")
        if not updated:
            return None
        try:
            return parse_range(updated).start_row
        except ValueError:
            logger.warning("Could not parse appended range: %s", updated)
            return None

    def update_cells(self, range_: str, values: list[list]) -> None:
        self._call(
            f"update {range_}",
            lambda svc: svc.spreadsheets().values().update(
                spreadsheetId=self._spreadsheet_id,
                range=range_,
                valueInputOption=VALUE_INPUT_OPTION,
                body={"values": values},
            ),
        )

    def _sheet_properties(self) -> list[dict]:
        result = self._call(
            "metadata read",
            lambda svc: svc.spreadsheets().get(
                spreadsheetId=self._spreadsheet_id,
                fields="sheets.properties(sheetId,title)",
            ),
        )
        return [s.get("properties", {}) for s in result.get("sheets", [])]

    def list_sheets(self) -> list[str]:
        return [p.get("title", "") for p in self._sheet_properties()]

    def _batch_update(self, action: str, requests: list[dict]) -> None:
        self._call(
            action,
            lambda svc: svc.spreadsheets().batchUpdate(
                spreadsheetId=self._spreadsheet_id, body={"requests": requests}
            ),
        )

    def add_sheet(self, title: str) -> None:
        self._batch_update(
            f"add sheet {title}",
            [{"addSheet": {"properties": {"title": title}}}],
        )

    def rename_sheet(self, old_title: str, new_title: str) -> None:
        sheet_id = None
        for props in self._sheet_properties():
            if props.get("title") == old_title:
                sheet_id = props.get("sheetId")
                break
        if sheet_id is None:
            raise NotFound(f"Sheet not found: {old_title}")
        self._batch_update(
            f"rename sheet {old_title}",
            [
                {
                    "updateSheetProperties": {
                        "properties": {"sheetId": sheet_id, "title": new_title},
                        "fields": "title",
                    }
                }
            ],
        )

    def describe(self) -> dict:
        email = getattr(self._credentials, "service_account_email", None)
        return {"sheetId": self._spreadsheet_id, "connectedEmail": email or "Unknown"}
