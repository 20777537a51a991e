from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.auth.rbac import Capability
from carcheck.core.clock import Clock, get_clock
from carcheck.core.db import get_db
from carcheck.models.user import User
from carcheck.schemas.report import ReportOut
from carcheck.services.car_service import CarService
from carcheck.services.report_service import ReportService, render_html

router = APIRouter(prefix="/cars/{car_id}", tags=["reports"])


@router.get("/report", response_model=ReportOut)
async def get_report(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    await CarService(db).require_role(car_id, current_user, Capability.VIEW_REPORT)
    report = await ReportService(db, now=now).aggregate(car_id)
    return ReportOut.model_validate(report)


@router.get("/report.html", response_class=HTMLResponse)
async def get_report_html(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    """Printable report; save as PDF from the browser."""
    await CarService(db).require_role(car_id, current_user, Capability.VIEW_REPORT)
    report = await ReportService(db, now=now).aggregate(car_id)
    return HTMLResponse(content=render_html(report))
