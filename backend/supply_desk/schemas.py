from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AuthIn(BaseModel):
    username: str = ""
    password: str = ""


class AuthOut(BaseModel):
    success: bool = True
    token: str
    user: str  # display name
    username: str
    is_admin: bool = Field(serialization_alias="isAdmin")


class ApplicationCreate(BaseModel):
    subject: str
    quantity: int
    # the web form posts need_date; need_by_date is accepted too
    need_by_date: str = Field(validation_alias="need_date")
    link: str | None = None
    priority: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class StatusIn(BaseModel):
    status: str


class PriorityIn(BaseModel):
    priority: str


class ApplicationOut(BaseModel):
    id: int
    owner_username: str
    owner_display_name: str
    subject: str
    quantity: int
    need_by_date: str
    link: str
    status: str
    priority: str
    created_at: int
    updated_at: int


class ApplicationCreated(BaseModel):
    success: bool = True
    id: int
    message: str


class ApplicationList(BaseModel):
    success: bool = True
    applications: list[ApplicationOut]
    count: int


class ApplicationOne(BaseModel):
    success: bool = True
    application: ApplicationOut


class Message(BaseModel):
    success: bool = True
    message: str
