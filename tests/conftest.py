import copy
import os

os.environ["ENV_STATE"] = "test"

import pytest  # noqa: E402

from formapi.models.form import Form  # noqa: E402
from formapi.storage import object_name_for  # noqa: E402

SAMPLE_FIELDS = [
    {"id": "field-1", "label": "Email", "type": "email", "required": True},
    {"id": "field-2", "label": "Age", "type": "number", "required": False},
    {"id": "field-3", "label": "Gender", "type": "radio", "options": ["Male", "Female", "Other"]},
    {
        "id": "field-4",
        "label": "Favorite Colors",
        "type": "checkbox",
        "options": ["Red", "Green", "Blue"],
        "required": False,
    },
    {"id": "field-5", "label": "Country", "type": "dropdown", "options": ["USA", "Canada", "UK"]},
    {"id": "field-6", "label": "Resume", "type": "upload", "required": False},
    {"id": "field-7", "label": "Appointment", "type": "datetime", "required": False},
]


class FakeStorage:
    """In-memory stand-in for the MinIO bucket."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.objects = {}

    def upload(self, filename, data, content_type, on_progress=None):
        if self.fail:
            raise ConnectionError("storage unreachable")
        name = object_name_for(filename)
        if on_progress:
            on_progress(50)
            on_progress(100)
        self.objects[name] = (data, content_type)
        return f"http://storage.test/form-uploads/{name}"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def sample_fields() -> list:
    return copy.deepcopy(SAMPLE_FIELDS)


@pytest.fixture()
def sample_form(sample_fields) -> Form:
    return Form.model_validate(
        {"_id": 1, "creatorId": 1, "title": "Sample Form", "fields": sample_fields}
    )


@pytest.fixture()
def fake_storage() -> FakeStorage:
    return FakeStorage()
