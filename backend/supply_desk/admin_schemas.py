from __future__ import annotations

from pydantic import BaseModel


class AdminListOut(BaseModel):
    success: bool = True
    admins: list[str]


class AdminChangeOut(BaseModel):
    success: bool
    message: str
    admins: list[str]
