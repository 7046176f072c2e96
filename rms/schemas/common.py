"""Common schema utilities and base classes."""

import math
from decimal import Decimal
from typing import Annotated, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimals leave the API as JSON numbers rather than strings.
DecimalNumber = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    Fields are snake_case in Python and camelCase on the wire; requests
    accept either spelling.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
    )


T = TypeVar("T")


class ApiResponse(BaseSchema, Generic[T]):
    """Standard success envelope."""

    success: bool = True
    message: str | None = None
    data: T | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class PaginationInfo(BaseSchema):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PaginationMeta(BaseSchema):
    pagination: PaginationInfo


class PaginatedResponse(BaseSchema, Generic[T]):
    """Paginated envelope."""

    success: bool = True
    message: str | None = None
    data: list[T]
    meta: PaginationMeta

    @classmethod
    def build(cls, items: list, page: int, limit: int, total: int, message: str | None = None):
        return cls(
            message=message,
            data=items,
            meta=PaginationMeta(
                pagination=PaginationInfo(
                    page=page,
                    limit=limit,
                    total=total,
                    total_pages=math.ceil(total / limit) if limit else 0,
                    has_next=page * limit < total,
                    has_prev=page > 1,
                )
            ),
        )


class BulkItemError(BaseSchema):
    """One failed entry of a bulk operation."""

    student_id: int
    error: str
