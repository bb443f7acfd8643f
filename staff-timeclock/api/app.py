# api/app.py
"""画面（ポーリングするダッシュボード）向けのHTTP API

入力を解釈して業務ロジックを呼び出し、結果をJSONに変換するだけの薄い層。
"""
import logging
from typing import Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from services.a1 import a1
from services.context import AppContext
from services.errors import StoreUnavailable, TimeclockError
from services.models import StaffRecord
from services.roster import parse_wage

logger = logging.getLogger(__name__)


class StaffNameRequest(BaseModel):
    staffName: Optional[str] = None


class StaffRecordRequest(BaseModel):
    name: str = ""
    department: str = ""
    position: str = ""
    hourlyWage: Union[float, str, None] = 0
    status: str = "Active"

    def to_record(self) -> StaffRecord:
        wage = self.hourlyWage
        if isinstance(wage, str):
            wage = parse_wage(wage)
        return StaffRecord(
            name=self.name,
            department=self.department,
            position=self.position,
            hourly_wage=wage if wage is not None else 0.0,
            status=self.status,
        )


class StaffUpdateRequest(StaffRecordRequest):
    oldName: str = ""


def _error_body(message: str, code: str) -> dict:
    return {"success": False, "error": message, "code": code}


def create_app(context: AppContext, lifespan=None) -> FastAPI:
    app = FastAPI(title="Staff Timeclock", lifespan=lifespan)
    app.state.context = context

    @app.exception_handler(TimeclockError)
    async def handle_timeclock_error(request: Request, exc: TimeclockError):
        if isinstance(exc, StoreUnavailable):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.code))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=_error_body("Invalid request body", "ValidationError"))

    @app.get("/staff")
    def get_staff():
        return [record.to_dict() for record in context.roster.load_roster()]

    @app.get("/status")
    def get_status():
        return [view.to_dict() for view in context.resolver.resolve_current_status()]

    @app.post("/clock-in")
    def clock_in(body: StaffNameRequest):
        return context.engine.clock_in(body.staffName).to_dict()

    @app.post("/clock-out")
    def clock_out(body: StaffNameRequest):
        return context.engine.clock_out(body.staffName).to_dict()

    @app.post("/take-break")
    def take_break(body: StaffNameRequest):
        return context.engine.take_break(body.staffName).to_dict()

    @app.post("/return-break")
    def return_break(body: StaffNameRequest):
        return context.engine.return_from_break(body.staffName).to_dict()

    @app.post("/staff/add")
    def add_staff(body: StaffRecordRequest):
        context.mutator.add_staff(body.to_record())
        return {"success": True}

    @app.post("/staff/update")
    def update_staff(body: StaffUpdateRequest):
        context.mutator.update_staff(body.oldName, body.to_record())
        return {"success": True}

    @app.get("/debug")
    def debug():
        """接続確認。ロスターの先頭20行をそのまま返す"""
        range_ = a1(context.layout.roster, "A", 1, "E", 20)
        info = context.store.describe()
        try:
            values = context.store.read_range(range_)
        except StoreUnavailable as e:
            return JSONResponse(
                status_code=500,
                content={
                    "status": "Error",
                    "message": e.message,
                    "connectedEmail": info.get("connectedEmail", "Unknown"),
                },
            )
        return {
            "status": "Connected",
            "sheetId": info.get("sheetId", context.spreadsheet_id),
            "connectedEmail": info.get("connectedEmail", "Unknown"),
            "range": range_,
            "values": values or "NO DATA FOUND",
        }

    return app
