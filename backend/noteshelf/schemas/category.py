"""Category request/response schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from noteshelf.models.category import CATEGORY_NAME_MAX_LENGTH


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=CATEGORY_NAME_MAX_LENGTH)

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name cannot be blank")
        return v


class CategoryResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)
