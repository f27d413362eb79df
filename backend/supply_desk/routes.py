from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from sqlalchemy.engine import Engine

from . import store
from .admin_registry import AdminRegistry
from .admin_schemas import AdminChangeOut, AdminListOut
from .auth import TokenClaims, make_token
from .config import Settings
from .credentials import CredentialVerifier, Outcome
from .deps import get_current_user, get_engine, get_registry, get_settings, get_verifier, require_admin
from .errors import AuthError, InternalError, UpstreamTimeout, ValidationError
from .schemas import (
    ApplicationCreate,
    ApplicationCreated,
    ApplicationList,
    ApplicationOut,
    AuthIn,
    AuthOut,
    Message,
    PriorityIn,
    StatusIn,
)

router = APIRouter()

STATUS_LABELS = {"active": "Active", "completed": "Completed", "cancelled": "Cancelled"}
PRIORITY_LABELS = {"normal": "Normal", "high": "High", "urgent": "Urgent"}


def _as_list(rows) -> ApplicationList:
    items = [ApplicationOut(**r.to_dict()) for r in rows]
    return ApplicationList(applications=items, count=len(items))


@router.post("/auth", response_model=AuthOut)
async def authenticate(
    body: AuthIn,
    settings: Settings = Depends(get_settings),
    verifier: CredentialVerifier = Depends(get_verifier),
    registry: AdminRegistry = Depends(get_registry),
):
    username = body.username.strip()
    password = body.password
    if not username or not password:
        raise ValidationError("username/password required")

    result = await verifier.verify(username, password)
    if result.outcome is Outcome.TIMEOUT:
        raise UpstreamTimeout("authentication server timed out")
    if result.outcome is Outcome.REJECTED:
        raise AuthError("invalid credentials")
    if not result.ok:
        raise InternalError("authentication server error")

    # the registry reads a file; keep it off the event loop
    is_admin = await run_in_threadpool(registry.is_admin, result.username)
    token = make_token(result.username, result.full_name, is_admin, settings.jwt_secret, settings.jwt_ttl_seconds)
    logger.info("User authenticated", username=result.username, is_admin=is_admin)
    return AuthOut(token=token, user=result.full_name, username=result.username, is_admin=is_admin)


@router.post("/applications", response_model=ApplicationCreated)
def create_application(
    body: ApplicationCreate,
    user: TokenClaims = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    new_id = store.create_application(
        engine,
        owner_username=user.username,
        owner_display_name=user.full_name,
        subject=body.subject,
        quantity=body.quantity,
        need_by_date=body.need_by_date,
        link=body.link,
        priority=body.priority,
    )
    return ApplicationCreated(id=new_id, message="Application created")


@router.get("/my-applications", response_model=ApplicationList)
def my_applications(
    status: str = "all",
    priority: str = "all",
    user: TokenClaims = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    return _as_list(store.list_for_owner(engine, user.username, status=status, priority=priority))


@router.patch("/applications/{app_id}/status", response_model=Message)
def set_status(
    app_id: int,
    body: StatusIn,
    user: TokenClaims = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    store.update_status(engine, app_id, body.status, owner=user.username)
    st = body.status.strip().lower()
    return Message(message=f'Status changed to "{STATUS_LABELS[st]}"')


@router.patch("/applications/{app_id}/priority", response_model=Message)
def set_priority(
    app_id: int,
    body: PriorityIn,
    user: TokenClaims = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    store.update_priority(engine, app_id, body.priority, owner=user.username)
    pr = body.priority.strip().lower()
    return Message(message=f'Priority changed to "{PRIORITY_LABELS[pr]}"')


@router.get("/admin/applications", response_model=ApplicationList)
def admin_list_applications(
    status: str = "all",
    priority: str = "all",
    _: TokenClaims = Depends(require_admin),
    engine: Engine = Depends(get_engine),
):
    return _as_list(store.list_all(engine, status=status, priority=priority))


@router.patch("/applications/{app_id}/admin-status", response_model=Message)
def admin_set_status(
    app_id: int,
    body: StatusIn,
    _: TokenClaims = Depends(require_admin),
    engine: Engine = Depends(get_engine),
):
    store.update_status(engine, app_id, body.status)
    st = body.status.strip().lower()
    return Message(message=f'Status changed to "{STATUS_LABELS[st]}"')


@router.get("/admin/users", response_model=AdminListOut)
def admin_list_users(
    _: TokenClaims = Depends(require_admin),
    registry: AdminRegistry = Depends(get_registry),
):
    return AdminListOut(admins=registry.list_admins())


@router.post("/admin/users/{username}", response_model=AdminChangeOut)
def admin_add_user(
    username: str,
    _: TokenClaims = Depends(require_admin),
    registry: AdminRegistry = Depends(get_registry),
):
    change = registry.add(username)
    if not change.changed:
        return AdminChangeOut(success=False, message=f"{username} is already an administrator", admins=change.admins)
    return AdminChangeOut(success=True, message=f"{username} added to administrators", admins=change.admins)


@router.delete("/admin/users/{username}", response_model=AdminChangeOut)
def admin_remove_user(
    username: str,
    _: TokenClaims = Depends(require_admin),
    registry: AdminRegistry = Depends(get_registry),
):
    change = registry.remove(username)
    if not change.changed:
        return AdminChangeOut(success=False, message=f"{username} is not an administrator", admins=change.admins)
    return AdminChangeOut(success=True, message=f"{username} removed from administrators", admins=change.admins)
