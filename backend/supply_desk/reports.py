"""
Read-only aggregate reports over the ``applications`` table.

Every function takes an open SQLAlchemy connection so a caller can run several
of them inside one transaction and get a consistent snapshot. The SQL targets
SQLite (``date(.., 'unixepoch')``, ``group_concat``).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from .models import now_s

WEEK_SECONDS = 7 * 24 * 60 * 60

_SUMMARY_SQL = text(
    """
    SELECT
      COUNT(*) AS total,
      COALESCE(SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END), 0) AS active,
      COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0) AS completed,
      COALESCE(SUM(CASE WHEN status = 'cancelled' THEN 1 ELSE 0 END), 0) AS cancelled,
      COALESCE(SUM(CASE WHEN priority = 'normal' THEN 1 ELSE 0 END), 0) AS normal,
      COALESCE(SUM(CASE WHEN priority = 'high' THEN 1 ELSE 0 END), 0) AS high,
      COALESCE(SUM(CASE WHEN priority = 'urgent' THEN 1 ELSE 0 END), 0) AS urgent
    FROM applications
    """
)

_USERS_SQL = text(
    """
    SELECT
      owner_username AS username,
      owner_display_name AS full_name,
      COUNT(*) AS total_applications,
      SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END) AS active,
      SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END) AS completed,
      SUM(CASE WHEN status = 'cancelled' THEN 1 ELSE 0 END) AS cancelled,
      MAX(created_at) AS last_activity
    FROM applications
    GROUP BY owner_username, owner_display_name
    ORDER BY total_applications DESC, owner_username ASC
    """
)

_PENDING_SQL = """
    SELECT
      subject,
      SUM(quantity) AS total_quantity,
      COUNT(*) AS total_requests,
      SUM(CASE WHEN priority = 'urgent' THEN 1 ELSE 0 END) AS urgent_requests,
      SUM(CASE WHEN priority = 'high' THEN 1 ELSE 0 END) AS high_requests,
      MIN(need_by_date) AS earliest_need_date,
      MAX(need_by_date) AS latest_need_date,
      GROUP_CONCAT(DISTINCT owner_display_name) AS requester_names
    FROM applications
    WHERE status = 'active'
    GROUP BY subject
    ORDER BY total_quantity DESC{tiebreak}
"""

_WEEKLY_SQL = """
    SELECT
      date(created_at, 'unixepoch') AS date,
      COUNT(*) AS applications_count,
      SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END) AS completed{priority_columns}
    FROM applications
    WHERE created_at >= :since
    GROUP BY date(created_at, 'unixepoch')
    ORDER BY date ASC
"""

_WEEKLY_PRIORITY_COLUMNS = """,
      SUM(CASE WHEN priority = 'urgent' THEN 1 ELSE 0 END) AS urgent,
      SUM(CASE WHEN priority = 'high' THEN 1 ELSE 0 END) AS high"""

_STATUS_SQL = text(
    """
    SELECT
      status,
      COUNT(*) AS count,
      ROUND(COUNT(*) * 100.0 / (SELECT COUNT(*) FROM applications), 2) AS percentage
    FROM applications
    GROUP BY status
    ORDER BY count DESC, status ASC
    """
)

_PRIORITY_SQL = text(
    """
    SELECT
      priority,
      COUNT(*) AS count,
      ROUND(COUNT(*) * 100.0 / (SELECT COUNT(*) FROM applications), 2) AS percentage
    FROM applications
    GROUP BY priority
    ORDER BY
      CASE priority
        WHEN 'urgent' THEN 1
        WHEN 'high' THEN 2
        WHEN 'normal' THEN 3
        ELSE 4
      END
    """
)


def _rows(conn: Connection, stmt, **params) -> list[dict]:
    return [dict(r._mapping) for r in conn.execute(stmt, params)]


def summary(conn: Connection) -> dict:
    row = conn.execute(_SUMMARY_SQL).one()
    return {k: int(v or 0) for k, v in row._mapping.items()}


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).isoformat()


def per_user_rollup(conn: Connection) -> list[dict]:
    """One row per requester; ``last_activity`` is the newest ``created_at`` as an ISO-8601 UTC string."""
    return [{**r, "last_activity": _iso(r["last_activity"])} for r in _rows(conn, _USERS_SQL)]


def pending_by_subject(conn: Connection, urgent_tiebreak: bool = True) -> list[dict]:
    tiebreak = ", urgent_requests DESC" if urgent_tiebreak else ""
    return _rows(conn, text(_PENDING_SQL.format(tiebreak=tiebreak)))


def weekly_time_series(conn: Connection, now: int | None = None, with_priorities: bool = True) -> list[dict]:
    since = (now_s() if now is None else int(now)) - WEEK_SECONDS
    columns = _WEEKLY_PRIORITY_COLUMNS if with_priorities else ""
    return _rows(conn, text(_WEEKLY_SQL.format(priority_columns=columns)), since=since)


def status_breakdown(conn: Connection) -> list[dict]:
    return [{**r, "percentage": round(float(r["percentage"]), 2)} for r in _rows(conn, _STATUS_SQL)]


def priority_breakdown(conn: Connection) -> list[dict]:
    return [{**r, "percentage": round(float(r["percentage"]), 2)} for r in _rows(conn, _PRIORITY_SQL)]


def full_report(engine: Engine, now: int | None = None) -> dict:
    generated = now_s() if now is None else int(now)
    with engine.begin() as conn:
        return {
            "timestamp": _iso(generated),
            "summary": summary(conn),
            "users": per_user_rollup(conn),
            "pendingItems": pending_by_subject(conn, urgent_tiebreak=False),
            "weeklyStats": weekly_time_series(conn, now=generated, with_priorities=False),
        }
