from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    UPLOAD = "upload"
    DATETIME = "datetime"
    PASSWORD = "password"


CHOICE_TYPES = {FieldType.DROPDOWN, FieldType.CHECKBOX, FieldType.RADIO}

ALLOWED_UPLOAD_TYPES = ("image/jpeg", "image/png", "application/pdf")


def clean_options(options: Optional[List[str]]) -> List[str]:
    """Strip option strings and drop the blank ones."""
    return [o.strip() for o in options or [] if o and o.strip()]


class FormField(BaseModel):
    id: str = Field(..., min_length=1)
    label: str
    type: FieldType
    options: Optional[List[str]] = None
    required: bool = True

    @field_validator("label")
    @classmethod
    def label_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field label is required")
        return v

    @model_validator(mode="after")
    def check_options(self):
        if self.type not in CHOICE_TYPES:
            self.options = None
            return self

        if self.options is None and self.type == FieldType.CHECKBOX:
            # single boolean toggle
            return self

        options = clean_options(self.options)
        if not options:
            raise ValueError(f"Field '{self.label}' needs at least one option")
        if len(set(options)) != len(options):
            raise ValueError(f"Field '{self.label}' has duplicate options")
        self.options = options
        return self

    @property
    def is_multi_select(self) -> bool:
        return self.type == FieldType.CHECKBOX and bool(self.options)


class FormIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    creator_id: int = Field(..., alias="creatorId")
    title: str
    fields: List[FormField] = Field(..., min_length=1)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Form title is required")
        return v

    @model_validator(mode="after")
    def unique_fields(self):
        labels = [f.label for f in self.fields]
        if len(set(labels)) != len(labels):
            raise ValueError("Field labels must be unique")
        ids = [f.id for f in self.fields]
        if len(set(ids)) != len(ids):
            raise ValueError("Field ids must be unique")
        return self


class Form(FormIn):
    id: int = Field(..., alias="_id")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    share_url: Optional[str] = Field(None, alias="shareUrl")

    def field_by_id(self, field_id: str) -> FormField:
        for f in self.fields:
            if f.id == field_id:
                return f
        raise KeyError(field_id)


EntryValue = Union[bool, str, List[str], None]


class ResponseEntry(BaseModel):
    key: str = Field(..., min_length=1)
    value: EntryValue = None


class ResponseIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_id: int = Field(..., alias="formId")
    entries: List[ResponseEntry] = Field(..., alias="responses")


class Response(ResponseIn):
    id: int = Field(..., alias="_id")
    creator_id: Optional[int] = Field(None, alias="creatorId")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
