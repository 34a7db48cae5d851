from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# Base configuration: ORM compatibility and camelCase field names on the wire
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


T = TypeVar("T")


# Success envelope wrapping every response payload
class Envelope(ORMBase, Generic[T]):
    success: bool = True
    data: T


# Error body of the failure envelope
class ErrorBody(ORMBase):
    message: str
    code: str
    details: Optional[Any] = None


class ErrorEnvelope(ORMBase):
    success: bool = False
    error: ErrorBody


class Pagination(ORMBase):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        total_pages = (total_count + limit - 1) // limit
        return cls(
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class MessageOut(ORMBase):
    message: str

