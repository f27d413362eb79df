"""Routes guarded by the static API token: machine-to-machine reads and reports."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine

from . import reports, store
from .deps import get_engine, require_api_token
from .errors import ValidationError
from .schemas import ApplicationList, ApplicationOne, ApplicationOut

router = APIRouter(dependencies=[Depends(require_api_token)])


@router.get("/applications", response_model=ApplicationList)
def list_applications(engine: Engine = Depends(get_engine)):
    items = [ApplicationOut(**r.to_dict()) for r in store.list_all(engine)]
    return ApplicationList(applications=items, count=len(items))


@router.get("/applications/{app_id}", response_model=ApplicationOne)
def get_application(app_id: int, engine: Engine = Depends(get_engine)):
    if app_id <= 0:
        raise ValidationError("invalid application id")
    row = store.get_application(engine, app_id)
    return ApplicationOne(application=ApplicationOut(**row.to_dict()))


@router.get("/reports/full")
def full_report(engine: Engine = Depends(get_engine)):
    return {"success": True, "report": reports.full_report(engine)}


@router.get("/reports/status")
def status_report(engine: Engine = Depends(get_engine)):
    with engine.connect() as conn:
        return {"success": True, "report": {"statusStats": reports.status_breakdown(conn)}}


@router.get("/reports/priority")
def priority_report(engine: Engine = Depends(get_engine)):
    with engine.connect() as conn:
        return {"success": True, "report": {"priorityStats": reports.priority_breakdown(conn)}}


@router.get("/reports/users")
def users_report(engine: Engine = Depends(get_engine)):
    with engine.connect() as conn:
        return {"success": True, "report": {"users": reports.per_user_rollup(conn)}}


@router.get("/reports/pending-items")
def pending_items_report(engine: Engine = Depends(get_engine)):
    with engine.connect() as conn:
        return {"success": True, "report": {"pendingItems": reports.pending_by_subject(conn)}}


@router.get("/reports/weekly")
def weekly_report(engine: Engine = Depends(get_engine)):
    with engine.connect() as conn:
        return {"success": True, "report": {"weeklyStats": reports.weekly_time_series(conn)}}
