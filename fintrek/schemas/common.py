"""Shared schema building blocks."""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    """Base for the REST layer, which speaks camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ORMModel(BaseModel):
    """Base for snake_case responses built from ORM rows."""

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(CamelModel):
    message: str


class ProfileBrief(ORMModel):
    name: Optional[str] = None
    avatar_url: Optional[str] = None
