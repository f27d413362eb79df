import pytest

from supply_desk import reports, store

# 2025-10-09 08:53:20 UTC
NOW = 1_760_000_000
DAY = 24 * 60 * 60


def _add(engine, owner, subject, quantity, priority="normal", need="2025-12-01", created=NOW - 60):
    return store.create_application(
        engine, owner, owner.title(), subject, quantity, need, priority=priority, now=created
    )


@pytest.fixture
def seeded(engine):
    """alice: 3 requests (one completed), bob: 2 requests (one cancelled)."""
    _add(engine, "alice", "Toner", 2, priority="urgent", need="2025-11-01")
    _add(engine, "alice", "Printer paper", 10, priority="high")
    done = _add(engine, "alice", "Stapler", 1, created=NOW - DAY)
    _add(engine, "bob", "Printer paper", 5, need="2025-10-20")
    dropped = _add(engine, "bob", "Chair", 1, created=NOW - 8 * DAY)
    store.update_status(engine, done, "completed")
    store.update_status(engine, dropped, "cancelled", owner="bob")
    return engine


def test_summary_counts(seeded):
    with seeded.connect() as conn:
        totals = reports.summary(conn)

    assert totals == {
        "total": 5,
        "active": 3,
        "completed": 1,
        "cancelled": 1,
        "normal": 3,
        "high": 1,
        "urgent": 1,
    }


def test_summary_of_empty_table_is_all_zero(engine):
    with engine.connect() as conn:
        totals = reports.summary(conn)

    assert set(totals.values()) == {0}


def test_per_user_rollup(seeded):
    with seeded.connect() as conn:
        users = reports.per_user_rollup(conn)

    assert [u["username"] for u in users] == ["alice", "bob"]
    alice = users[0]
    assert alice["full_name"] == "Alice"
    assert alice["total_applications"] == 3
    assert (alice["active"], alice["completed"], alice["cancelled"]) == (2, 1, 0)
    assert alice["last_activity"] == "2025-10-09T08:52:20+00:00"
    assert (users[1]["active"], users[1]["cancelled"]) == (1, 1)


def test_pending_items_aggregate_active_requests_by_subject(seeded):
    with seeded.connect() as conn:
        items = reports.pending_by_subject(conn)

    assert [i["subject"] for i in items] == ["Printer paper", "Toner"]
    paper = items[0]
    assert paper["total_quantity"] == 15
    assert paper["total_requests"] == 2
    assert paper["high_requests"] == 1
    assert paper["urgent_requests"] == 0
    assert paper["earliest_need_date"] == "2025-10-20"
    assert paper["latest_need_date"] == "2025-12-01"
    assert set(paper["requester_names"].split(",")) == {"Alice", "Bob"}


def test_pending_items_break_quantity_ties_by_urgency(engine):
    _add(engine, "alice", "Pens", 4)
    _add(engine, "bob", "Markers", 4, priority="urgent")

    with engine.connect() as conn:
        items = reports.pending_by_subject(conn, urgent_tiebreak=True)

    assert [i["subject"] for i in items] == ["Markers", "Pens"]


def test_weekly_series_covers_last_seven_days_oldest_first(seeded):
    with seeded.connect() as conn:
        series = reports.weekly_time_series(conn, now=NOW)

    assert series == [
        {"date": "2025-10-08", "applications_count": 1, "completed": 1, "urgent": 0, "high": 0},
        {"date": "2025-10-09", "applications_count": 3, "completed": 0, "urgent": 1, "high": 1},
    ]


def test_weekly_series_window_starts_exactly_one_week_back(engine):
    _add(engine, "alice", "Old", 1, created=NOW - 7 * DAY + 100)
    _add(engine, "alice", "Older", 1, created=NOW - 7 * DAY - 100)

    with engine.connect() as conn:
        series = reports.weekly_time_series(conn, now=NOW, with_priorities=False)

    assert series == [{"date": "2025-10-02", "applications_count": 1, "completed": 0}]


def test_status_breakdown_percentages(seeded):
    with seeded.connect() as conn:
        rows = reports.status_breakdown(conn)

    assert rows[0] == {"status": "active", "count": 3, "percentage": 60.0}
    assert {r["status"]: r["percentage"] for r in rows[1:]} == {"completed": 20.0, "cancelled": 20.0}
    assert sum(r["percentage"] for r in rows) == pytest.approx(100.0)


def test_priority_breakdown_is_ordered_by_rank(seeded):
    with seeded.connect() as conn:
        rows = reports.priority_breakdown(conn)

    assert [r["priority"] for r in rows] == ["urgent", "high", "normal"]
    assert [r["count"] for r in rows] == [1, 1, 3]
    assert rows[2]["percentage"] == 60.0


def test_three_way_split_rounds_to_two_places(engine):
    for priority in ("urgent", "high", "normal"):
        _add(engine, "alice", priority, 1, priority=priority)

    with engine.connect() as conn:
        rows = reports.priority_breakdown(conn)

    assert [r["percentage"] for r in rows] == [33.33, 33.33, 33.33]


def test_full_report_shape(seeded):
    report = reports.full_report(seeded, now=NOW)

    assert set(report) == {"timestamp", "summary", "users", "pendingItems", "weeklyStats"}
    assert report["timestamp"].startswith("2025-10-09T08:53:20")
    assert report["summary"]["total"] == 5
    assert set(report["weeklyStats"][0]) == {"date", "applications_count", "completed"}
    assert "urgent_requests" in report["pendingItems"][0]
