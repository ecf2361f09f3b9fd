import logging
from typing import List, Optional

from pydantic import BaseModel, ValidationError

from formapi.client.api import ApiError, FormApiClient, UserSession
from formapi.client.submitter import Notification
from formapi.models.form import CHOICE_TYPES, FieldType, Form, FormField, clean_options

logger = logging.getLogger(__name__)


class BuilderError(ValueError):
    pass


class FieldDraft(BaseModel):
    label: str = ""
    type: FieldType = FieldType.TEXT
    options: List[str] = []
    required: bool = True


class BuildResult(BaseModel):
    success: bool
    form: Optional[Form] = None
    notification: Optional[Notification] = None
    redirect: Optional[str] = None


class FormBuilder:
    """Authoring state for one new form owned by the signed-in user."""

    def __init__(self, api: FormApiClient, user: UserSession):
        self.api = api
        self.user = user
        self.title = ""
        self.fields: List[FormField] = []
        self.draft = FieldDraft()
        self.editing_id: Optional[str] = None
        self._last_id = 0
        self._submitting = False

    def set_title(self, title: str) -> None:
        self.title = title

    def set_label(self, label: str) -> None:
        self.draft.label = label

    def set_type(self, type: FieldType) -> None:
        self.draft.type = FieldType(type)

    def set_required(self, required: bool) -> None:
        self.draft.required = required

    def add_option(self, value: str = "") -> None:
        self.draft.options.append(value)

    def remove_option(self, index: int) -> None:
        del self.draft.options[index]

    def edit_option(self, index: int, value: str) -> None:
        self.draft.options[index] = value

    def _next_id(self) -> str:
        self._last_id += 1
        return f"field-{self._last_id}"

    def add_field(self) -> FormField:
        """Commit the draft: append a new field, or replace the one being edited."""
        label = self.draft.label.strip()
        if not label:
            raise BuilderError("Please provide a label and select a type.")
        if any(f.label == label and f.id != self.editing_id for f in self.fields):
            raise BuilderError(
                f'Field with the label "{label}" already exists. Please use a different label.'
            )

        options = None
        if self.draft.type in CHOICE_TYPES:
            options = clean_options(self.draft.options)
            if not options:
                if self.draft.type != FieldType.CHECKBOX:
                    raise BuilderError(f'Please add at least one option for "{label}".')
                options = None

        try:
            field = FormField(
                id=self.editing_id or self._next_id(),
                label=label,
                type=self.draft.type,
                options=options,
                required=self.draft.required,
            )
        except ValidationError as e:
            raise BuilderError(e.errors()[0]["msg"].removeprefix("Value error, ")) from e

        if self.editing_id is not None:
            index = next(i for i, f in enumerate(self.fields) if f.id == self.editing_id)
            self.fields[index] = field
            self.editing_id = None
        else:
            self.fields.append(field)
        self.draft = FieldDraft()
        return field

    def edit_field(self, field_id: str) -> None:
        field = self._find(field_id)
        self.draft = FieldDraft(
            label=field.label,
            type=field.type,
            options=list(field.options or []),
            required=field.required,
        )
        self.editing_id = field_id

    def cancel_edit(self) -> None:
        self.draft = FieldDraft()
        self.editing_id = None

    def delete_field(self, field_id: str) -> None:
        self.fields.remove(self._find(field_id))
        if self.editing_id == field_id:
            self.cancel_edit()

    def _find(self, field_id: str) -> FormField:
        for f in self.fields:
            if f.id == field_id:
                return f
        raise KeyError(field_id)

    def submit_form(self) -> BuildResult:
        """Save the form through the API.

        The call blocks until the server answers. A submit issued from inside
        that call (a callback of the API layer) raises ``BuilderError``.
        """
        if self._submitting:
            raise BuilderError("The form is already being saved.")
        title = self.title.strip()
        if not title:
            raise BuilderError("Form title is required")
        if not self.fields:
            raise BuilderError("Add at least one field before saving the form.")

        self._submitting = True
        try:
            form = self.api.add_form(self.user.user_id, title, self.fields)
        except ApiError as e:
            logger.error(f"Saving form '{title}' failed: {e.message}")
            return BuildResult(
                success=False,
                notification=Notification(level="error", message=e.message),
            )
        finally:
            self._submitting = False

        logger.info(f"Form {form.id} saved")
        return BuildResult(
            success=True,
            form=form,
            notification=Notification(level="success", message="Form saved successfully"),
            redirect="/forms",
        )
