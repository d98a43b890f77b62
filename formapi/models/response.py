from datetime import datetime
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResponseIn(BaseModel):
    answers: Dict[str, str]

    @field_validator("answers")
    @classmethod
    def keys_are_question_ids(cls, v: Dict[str, str]) -> Dict[str, str]:
        for key in v:
            if not (key.isascii() and key.isdigit()):
                raise ValueError(f"Answer key '{key}' is not a question id")
        return v


class FormResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    form_id: int = Field(alias="formId")
    answers: Dict[str, str]
    created_at: datetime = Field(alias="createdAt")
