"""Turns a form definition into input controls and tracks what the user enters.

``render_form`` is pure: it maps every field to a ``Control`` describing the
widget a UI should draw. ``FormSession`` holds the in-progress answers for
one fill-in of a form. Each UI event maps to one method call. An edit
stores the new value and clears the error recorded for that field; errors
are only recomputed by ``validate``.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from formapi.models.form import ALLOWED_UPLOAD_TYPES, FieldType, Form, FormField
from formapi.validation import is_allowed_upload, is_valid, upload_message, validate_values


class Widget(str, Enum):
    INPUT = "input"
    SELECT = "select"
    CHECKBOX_GROUP = "checkbox-group"
    TOGGLE = "toggle"
    RADIO_GROUP = "radio-group"
    FILE = "file"
    DATETIME = "datetime-local"


class Choice(BaseModel):
    value: str
    text: str


class Control(BaseModel):
    field_id: str
    label: str
    widget: Widget
    required: bool = True
    input_type: Optional[str] = None
    name: Optional[str] = None
    placeholder: Optional[str] = None
    choices: List[Choice] = []
    accept: List[str] = []


class RenderedForm(BaseModel):
    title: str
    controls: List[Control]


class FileSelection(BaseModel):
    filename: str
    content_type: str
    data: bytes = b""


class UploadRejected(ValueError):
    pass


_INPUT_TYPES = {FieldType.TEXT, FieldType.EMAIL, FieldType.PASSWORD, FieldType.NUMBER}


def render_field(field: FormField) -> Control:
    control = Control(
        field_id=field.id,
        label=field.label,
        widget=Widget.INPUT,
        required=field.required,
    )
    if field.type in _INPUT_TYPES:
        control.input_type = field.type.value
        control.placeholder = f"Enter {field.label}"
    elif field.type == FieldType.DROPDOWN:
        control.widget = Widget.SELECT
        control.choices = [Choice(value="", text=f"Select {field.label}")] + [
            Choice(value=o, text=o) for o in field.options
        ]
    elif field.type == FieldType.CHECKBOX:
        if field.is_multi_select:
            control.widget = Widget.CHECKBOX_GROUP
            control.choices = [Choice(value=o, text=o) for o in field.options]
        else:
            control.widget = Widget.TOGGLE
    elif field.type == FieldType.RADIO:
        control.widget = Widget.RADIO_GROUP
        control.name = field.id
        control.choices = [Choice(value=o, text=o) for o in field.options]
    elif field.type == FieldType.UPLOAD:
        control.widget = Widget.FILE
        control.accept = list(ALLOWED_UPLOAD_TYPES)
    elif field.type == FieldType.DATETIME:
        control.widget = Widget.DATETIME
    return control


def render_form(form: Form) -> RenderedForm:
    return RenderedForm(title=form.title, controls=[render_field(f) for f in form.fields])


class FormSession:
    def __init__(self, form: Form):
        self.form = form
        self.values: Dict[str, Any] = {}
        self.errors: Dict[str, str] = {}
        self.upload_progress: Optional[int] = None
        self.upload_error: Optional[str] = None

    def render(self) -> RenderedForm:
        return render_form(self.form)

    def field(self, field_id: str) -> FormField:
        return self.form.field_by_id(field_id)

    def _set(self, field_id: str, value: Any) -> None:
        self.values[field_id] = value
        self.errors[field_id] = ""

    def change(self, field_id: str, value: Any) -> None:
        field = self.field(field_id)
        if field.is_multi_select:
            raise ValueError(f"Use toggle_option for the options of '{field.label}'")
        if field.type == FieldType.UPLOAD:
            raise ValueError(f"Use select_file for '{field.label}'")
        if field.type == FieldType.CHECKBOX:
            self.toggle(field_id, value)
            return

        # inputs hold text, a typed number is kept the way the input shows it
        if field.type == FieldType.NUMBER and isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"'{field.label}' takes text, got {type(value).__name__}")
        if field.type in (FieldType.DROPDOWN, FieldType.RADIO) and value and value not in field.options:
            raise ValueError(f"'{value}' is not an option of '{field.label}'")
        self._set(field_id, value)

    def toggle_option(self, field_id: str, option: str, checked: bool) -> List[str]:
        """Select or deselect one checkbox option; returns the selection in option order."""
        field = self.field(field_id)
        if not field.is_multi_select:
            raise ValueError(f"'{field.label}' has no options to toggle")
        if option not in field.options:
            raise ValueError(f"'{option}' is not an option of '{field.label}'")

        selected = set(self.values.get(field_id) or [])
        if checked:
            selected.add(option)
        else:
            selected.discard(option)
        value = [o for o in field.options if o in selected]
        self._set(field_id, value)
        return value

    def toggle(self, field_id: str, checked: bool) -> None:
        field = self.field(field_id)
        if field.type != FieldType.CHECKBOX or field.is_multi_select:
            raise ValueError(f"'{field.label}' is not a single checkbox")
        self._set(field_id, bool(checked))

    def select_file(self, field_id: str, selection: FileSelection) -> None:
        field = self.field(field_id)
        if field.type != FieldType.UPLOAD:
            raise ValueError(f"'{field.label}' is not an upload field")
        if not is_allowed_upload(selection):
            message = upload_message(field)
            self.errors[field_id] = message
            self.upload_error = message
            raise UploadRejected(message)
        self.upload_error = None
        self._set(field_id, selection)

    def files(self) -> Dict[str, FileSelection]:
        return {k: v for k, v in self.values.items() if isinstance(v, FileSelection)}

    def validate(self) -> bool:
        self.errors = validate_values(self.form, self.values)
        return is_valid(self.errors)
