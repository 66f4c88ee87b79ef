from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field


def _check_email(value: str) -> str:
    value = value.strip()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("invalid email address")
    return value


Email = Annotated[str, AfterValidator(_check_email)]


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(min_length=1)


class BulkDeleteFailure(BaseModel):
    id: int
    code: str
    message: str


class BulkDeleteResult(BaseModel):
    """Items are processed one by one; earlier deletes stay even when a later one fails."""

    deleted: list[int] = Field(default_factory=list)
    failed: list[BulkDeleteFailure] = Field(default_factory=list)
