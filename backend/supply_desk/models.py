from __future__ import annotations

import time

from sqlalchemy import BigInteger, Column, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

STATUSES = ("active", "completed", "cancelled")
OWNER_STATUSES = ("active", "cancelled")
PRIORITIES = ("normal", "high", "urgent")

# listing / report order: urgent first, unknown values last
PRIORITY_RANK = {"urgent": 1, "high": 2, "normal": 3}

# largest value an INTEGER column holds
MAX_DB_INT = 2**63 - 1


def now_s() -> int:
    return int(time.time())


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_username = Column(String(64), nullable=False, index=True)
    owner_display_name = Column(String(255), nullable=False)

    subject = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    need_by_date = Column(String(32), nullable=False)  # opaque, as supplied by the client
    link = Column(Text, nullable=False, default="")

    status = Column(String(16), nullable=False, default="active")  # active|completed|cancelled
    priority = Column(String(16), nullable=False, default="normal")  # normal|high|urgent

    created_at = Column(BigInteger, nullable=False)  # unix seconds
    updated_at = Column(BigInteger, nullable=False)  # unix seconds

    def to_dict(self) -> dict:
        return {
            "id": int(self.id),
            "owner_username": self.owner_username,
            "owner_display_name": self.owner_display_name,
            "subject": self.subject,
            "quantity": int(self.quantity),
            "need_by_date": self.need_by_date,
            "link": self.link or "",
            "status": self.status or "active",
            "priority": self.priority or "normal",
            "created_at": int(self.created_at),
            "updated_at": int(self.updated_at if self.updated_at is not None else self.created_at),
        }
