from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

QuestionType = Literal["text", "dropdown"]


class FormMetaIn(BaseModel):
    title: str
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Form title is required")
        return v


class QuestionIn(BaseModel):
    text: str
    type: QuestionType
    required: bool = False
    options: Optional[List[str]] = None

    @field_validator("text")
    @classmethod
    def text_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Question text is required")
        return v

    @model_validator(mode="after")
    def check_options(self):
        # only dropdown questions carry options
        if self.type != "dropdown":
            self.options = []
            return self
        options = [o.strip() for o in self.options or [] if o.strip()]
        if not options:
            raise ValueError("Dropdown questions require at least one option")
        self.options = options
        return self


class FormTreeIn(BaseModel):
    """
    Payload for creating or replacing a form:
    {
      "form": {"title": "Feedback", "description": "..."},
      "questions": [
        {"text": "Name", "type": "text", "required": true},
        {"text": "Color", "type": "dropdown", "options": ["Red", "Blue"]}
      ]
    }
    """

    form: FormMetaIn
    questions: List[QuestionIn] = Field(min_length=1)


class Option(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    question_id: int = Field(alias="questionId")
    text: str
    order: int


class Question(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    form_id: int = Field(alias="formId")
    text: str
    type: QuestionType
    required: bool = False
    order: int
    options: List[Option] = []


class Form(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    user_id: int = Field(alias="userId")
    title: str
    description: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")
    questions: List[Question] = []
    response_count: int = Field(0, alias="responseCount")
