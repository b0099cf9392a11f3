"""
Pydantic schemas for questions as shown to candidates.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QuestionResponse(BaseModel):
    """Question without its correct option or explanation."""

    id: int = Field(..., description="Question ID")
    content: str = Field(..., description="Question text")
    difficulty: str = Field(..., description="Difficulty level")
    subject: str = Field(..., description="Subject")
    options: Optional[Any] = Field(
        None, description="Answer choices (quiz questions only)"
    )

    model_config = ConfigDict(from_attributes=True)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _enum_value(cls, value: Any) -> Any:
        return getattr(value, "value", value)
