"""
Pydantic v2 schemas for response serialisation.

Request bodies are checked by the field validators in ``app.services``; these
models only shape what leaves the API.  Field names are snake_case in Python
and camelCase on the wire.
"""

from __future__ import annotations

from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Shared
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# -----------------------------------------------------------------------------

class OKResponse(BaseModel):
    type: Literal["success"] = "success"


class ApiSuccess(BaseModel, Generic[T]):
    type: Literal["success"] = "success"
    data: T


class ApiErrorResponse(BaseModel):
    type: Literal["error"] = "error"
    error: str
    readableError: str


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Logins
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class LoginInfoResponse(ApiModel):
    name: str
    id: str
    is_admin: bool


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Base rows (asset fields already rewritten to public paths)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PersonRow(ApiModel):
    id: str
    name: str
    owner: str


class OrganisationRow(ApiModel):
    id: str
    name: str
    image: Optional[str] = None
    website: Optional[str] = None


class InitiativeRow(ApiModel):
    id: str
    short_name: str
    full_name: str
    website: Optional[str] = None
    pdf: str
    image: Optional[str] = None
    deadline: Optional[str] = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Enriched read models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class InitiativeResponse(InitiativeRow):
    signatures: list[PersonRow]
    organisations: list[OrganisationRow]


class OrganisationResponse(OrganisationRow):
    initiatives: list[InitiativeRow]


class PersonResponse(PersonRow):
    initiatives: list[InitiativeRow]
