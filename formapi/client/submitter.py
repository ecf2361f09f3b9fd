import logging
from typing import Callable, Dict, List, Literal, Optional, Protocol

from pydantic import BaseModel

from formapi.client.api import ApiError
from formapi.client.renderer import FileSelection, FormSession
from formapi.models.form import FieldType, Form, ResponseEntry

logger = logging.getLogger(__name__)


class BlobStorage(Protocol):
    def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> str: ...


class ResponseStore(Protocol):
    def add_response(self, form_id: int, entries: List[ResponseEntry]) -> dict: ...


class Notification(BaseModel):
    level: Literal["success", "error"]
    message: str


class SubmitResult(BaseModel):
    success: bool
    entries: List[ResponseEntry] = []
    errors: Dict[str, str] = {}
    notification: Optional[Notification] = None
    redirect: Optional[str] = None


class UploadFailed(Exception):
    pass


def build_entries(form: Form, values: Dict[str, object], urls: Dict[str, str]) -> List[ResponseEntry]:
    entries = []
    for field in form.fields:
        if field.type == FieldType.UPLOAD:
            value = urls.get(field.id)
        else:
            value = values.get(field.id)
        entries.append(ResponseEntry(key=field.label, value=value))
    return entries


class ResponseSubmitter:
    def __init__(self, api: ResponseStore, storage: BlobStorage):
        self.api = api
        self.storage = storage

    def upload_file(self, session: FormSession, selection: FileSelection) -> str:
        session.upload_error = None

        def on_progress(percent: int) -> None:
            session.upload_progress = percent

        try:
            url = self.storage.upload(
                selection.filename,
                selection.data,
                selection.content_type,
                on_progress=on_progress,
            )
        except Exception as e:
            logger.exception(f"Upload of {selection.filename} failed")
            session.upload_error = "File upload failed"
            raise UploadFailed(str(e)) from e
        finally:
            session.upload_progress = None
        return url

    def submit(self, session: FormSession) -> SubmitResult:
        if not session.validate():
            return SubmitResult(success=False, errors=session.errors)

        try:
            urls = {
                field_id: self.upload_file(session, selection)
                for field_id, selection in session.files().items()
            }
        except UploadFailed:
            return SubmitResult(
                success=False,
                notification=Notification(level="error", message="File upload failed"),
            )

        entries = build_entries(session.form, session.values, urls)
        try:
            self.api.add_response(session.form.id, entries)
        except ApiError as e:
            logger.error(f"Form submission error: {e.message}")
            return SubmitResult(
                success=False,
                entries=entries,
                notification=Notification(
                    level="error", message="Error submitting form. Please try again later."
                ),
            )

        logger.info(f"Response submitted for form {session.form.id}")
        return SubmitResult(
            success=True,
            entries=entries,
            notification=Notification(level="success", message="Form submitted successfully!"),
            redirect="/success",
        )
