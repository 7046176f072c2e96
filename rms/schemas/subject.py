"""Subject schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field, model_validator

from rms.models.subject import SubjectCategory
from rms.schemas.common import BaseSchema, DecimalNumber


class SubjectCreate(BaseSchema):
    """Subject creation schema."""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    max_marks: Decimal = Field(Decimal("100"), gt=0)
    pass_marks: Decimal = Field(Decimal("40"), ge=0)
    category: SubjectCategory = SubjectCategory.THEORY
    credits: int = Field(3, ge=0)
    description: str | None = None
    assigned_teacher_id: int | None = None

    @model_validator(mode="after")
    def check_pass_marks(self) -> "SubjectCreate":
        if self.pass_marks > self.max_marks:
            raise ValueError("pass_marks cannot exceed max_marks")
        return self


class SubjectUpdate(BaseSchema):
    """Subject update schema; scheme changes are checked in the service."""

    name: str | None = Field(None, min_length=1, max_length=255)
    max_marks: Decimal | None = Field(None, gt=0)
    pass_marks: Decimal | None = Field(None, ge=0)
    category: SubjectCategory | None = None
    credits: int | None = Field(None, ge=0)
    description: str | None = None
    assigned_teacher_id: int | None = None
    is_active: bool | None = None


class SubjectBrief(BaseSchema):
    id: int
    code: str
    name: str
    max_marks: DecimalNumber
    pass_marks: DecimalNumber


class SubjectResponse(SubjectBrief):
    category: SubjectCategory
    credits: int
    description: str | None
    assigned_teacher_id: int | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
