from __future__ import annotations

from loguru import logger
from sqlalchemy import case, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .errors import NotFoundError, ValidationError
from .models import MAX_DB_INT, OWNER_STATUSES, PRIORITIES, PRIORITY_RANK, STATUSES, Application, now_s

_priority_rank = case(PRIORITY_RANK, value=Application.priority, else_=4)


def _touched_at():
    # clock skew must not push updated_at below created_at
    ts = now_s()
    return case((Application.created_at > ts, Application.created_at), else_=ts)


def _normalize_filter(value: str | None, allowed: tuple[str, ...], name: str) -> str | None:
    v = (value or "").strip().lower()
    if not v or v == "all":
        return None
    if v not in allowed:
        raise ValidationError(f"{name} must be one of: all|{'|'.join(allowed)}")
    return v


def _require_id(app_id: int) -> None:
    # ids outside the column range cannot exist
    if not 1 <= app_id <= MAX_DB_INT:
        raise NotFoundError("application not found")


def _require_choice(value: str | None, allowed: tuple[str, ...], name: str) -> str:
    v = (value or "").strip().lower()
    if v not in allowed:
        raise ValidationError(f"{name} must be {'|'.join(allowed)}")
    return v


def create_application(
    engine: Engine,
    owner_username: str,
    owner_display_name: str,
    subject: str,
    quantity: int,
    need_by_date: str,
    link: str | None = None,
    priority: str | None = "normal",
    now: int | None = None,
) -> int:
    subject = (subject or "").strip()
    need_by_date = (need_by_date or "").strip()
    if not subject or not need_by_date:
        raise ValidationError("subject, quantity and need-by date are required")

    # bool is an int subclass, but True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    if quantity < 1:
        raise ValidationError("quantity must be at least 1")
    if quantity > MAX_DB_INT:
        raise ValidationError("quantity is too large")

    pr = _require_choice(priority or "normal", PRIORITIES, "priority")

    ts = now_s() if now is None else int(now)
    with Session(engine) as s:
        row = Application(
            owner_username=owner_username,
            owner_display_name=owner_display_name or owner_username,
            subject=subject,
            quantity=quantity,
            need_by_date=need_by_date,
            link=(link or "").strip(),
            status="active",
            priority=pr,
            created_at=ts,
            updated_at=ts,
        )
        s.add(row)
        s.commit()
        new_id = int(row.id)

    logger.info("Application created", id=new_id, owner=owner_username, priority=pr)
    return new_id


def _listing(owner: str | None, status: str | None, priority: str | None):
    st = _normalize_filter(status, STATUSES, "status")
    pr = _normalize_filter(priority, PRIORITIES, "priority")

    q = select(Application)
    if owner is not None:
        q = q.where(Application.owner_username == owner)
    if st is not None:
        q = q.where(Application.status == st)
    if pr is not None:
        q = q.where(Application.priority == pr)
    return q.order_by(_priority_rank.asc(), Application.created_at.desc(), Application.id.desc())


def list_for_owner(
    engine: Engine, owner: str, status: str | None = "all", priority: str | None = "all"
) -> list[Application]:
    q = _listing(owner, status, priority)
    with Session(engine, expire_on_commit=False) as s:
        return list(s.execute(q).scalars().all())


def list_all(engine: Engine, status: str | None = "all", priority: str | None = "all") -> list[Application]:
    q = _listing(None, status, priority)
    with Session(engine, expire_on_commit=False) as s:
        return list(s.execute(q).scalars().all())


def get_application(engine: Engine, app_id: int) -> Application:
    _require_id(app_id)
    with Session(engine, expire_on_commit=False) as s:
        row = s.get(Application, app_id)
        if row is None:
            raise NotFoundError("application not found")
        return row


def update_status(engine: Engine, app_id: int, status: str, owner: str | None = None) -> None:
    """Set the status of one application.

    With ``owner`` this is the owner path: only active/cancelled, and the row must belong
    to ``owner``. Without it (administrator path) any status is allowed on any row.
    """
    allowed = OWNER_STATUSES if owner is not None else STATUSES
    st = _require_choice(status, allowed, "status")
    _require_id(app_id)

    stmt = update(Application).where(Application.id == app_id)
    if owner is not None:
        stmt = stmt.where(Application.owner_username == owner)
    stmt = stmt.values(status=st, updated_at=_touched_at())

    with engine.begin() as conn:
        changed = conn.execute(stmt).rowcount

    if changed == 0:
        # a foreign row is reported exactly like a missing one
        raise NotFoundError("application not found" if owner is None else "application not found or not yours")
    logger.info("Application status updated", id=app_id, status=st, by_owner=owner is not None)


def update_priority(engine: Engine, app_id: int, priority: str, owner: str) -> None:
    pr = _require_choice(priority, PRIORITIES, "priority")
    _require_id(app_id)

    stmt = (
        update(Application)
        .where(Application.id == app_id, Application.owner_username == owner)
        .values(priority=pr, updated_at=_touched_at())
    )
    with engine.begin() as conn:
        changed = conn.execute(stmt).rowcount

    if changed == 0:
        raise NotFoundError("application not found or not yours")
    logger.info("Application priority updated", id=app_id, priority=pr)
