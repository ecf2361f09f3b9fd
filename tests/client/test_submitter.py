import re

import pytest

from formapi.client.api import ApiError
from formapi.client.renderer import FileSelection, FormSession
from formapi.client.submitter import ResponseSubmitter, build_entries


class FakeApi:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def add_response(self, form_id, entries):
        self.calls.append((form_id, entries))
        if self.fail:
            raise ApiError(500, "Internal server error")
        return {"_id": 1, "formId": form_id}


@pytest.fixture()
def filled(sample_form) -> FormSession:
    session = FormSession(sample_form)
    session.change("field-1", "jane@example.com")
    session.change("field-3", "Female")
    session.toggle_option("field-4", "Green", True)
    session.change("field-5", "USA")
    return session


def test_invalid_form_is_not_sent(sample_form, fake_storage):
    api = FakeApi()
    session = FormSession(sample_form)

    result = ResponseSubmitter(api, fake_storage).submit(session)

    assert not result.success
    assert result.errors["field-1"] == "Email is required"
    assert session.errors == result.errors
    assert api.calls == []


def test_submit_sends_label_keyed_entries(filled, fake_storage):
    api = FakeApi()

    result = ResponseSubmitter(api, fake_storage).submit(filled)

    assert result.success
    assert result.redirect == "/success"
    assert result.notification.level == "success"
    assert result.notification.message == "Form submitted successfully!"
    (form_id, entries) = api.calls[0]
    assert form_id == 1
    assert [(e.key, e.value) for e in entries] == [
        ("Email", "jane@example.com"),
        ("Age", None),
        ("Gender", "Female"),
        ("Favorite Colors", ["Green"]),
        ("Country", "USA"),
        ("Resume", None),
        ("Appointment", None),
    ]
    assert result.entries == entries


def test_upload_resolves_to_storage_url(filled, fake_storage):
    api = FakeApi()
    filled.select_file("field-6", FileSelection(filename="cv.pdf", content_type="application/pdf", data=b"%PDF"))
    seen = []

    class WatchingStorage:
        def upload(self, filename, data, content_type, on_progress=None):
            def record(percent):
                on_progress(percent)
                seen.append(filled.upload_progress)

            return fake_storage.upload(filename, data, content_type, on_progress=record)

    result = ResponseSubmitter(api, WatchingStorage()).submit(filled)

    assert result.success
    resume = next(e for e in result.entries if e.key == "Resume")
    assert re.fullmatch(r"http://storage\.test/form-uploads/\d+-cv\.pdf", resume.value)
    assert seen == [50, 100]
    assert filled.upload_progress is None


def test_failed_upload_stops_before_saving(filled):
    class BrokenStorage:
        def upload(self, filename, data, content_type, on_progress=None):
            raise ConnectionError("bucket unreachable")

    api = FakeApi()
    filled.select_file("field-6", FileSelection(filename="cv.pdf", content_type="application/pdf"))

    result = ResponseSubmitter(api, BrokenStorage()).submit(filled)

    assert not result.success
    assert result.notification.message == "File upload failed"
    assert filled.upload_error == "File upload failed"
    assert api.calls == []


def test_api_failure_surfaces_notification(filled, fake_storage):
    result = ResponseSubmitter(FakeApi(fail=True), fake_storage).submit(filled)

    assert not result.success
    assert result.notification.level == "error"
    assert result.notification.message == "Error submitting form. Please try again later."
    assert result.redirect is None


def test_build_entries_skips_raw_files(sample_form):
    values = {"field-6": FileSelection(filename="a.png", content_type="image/png")}

    entries = build_entries(sample_form, values, urls={})

    assert next(e for e in entries if e.key == "Resume").value is None


@pytest.mark.parametrize("typed, sent", [(42, "42"), (0, "0"), (1, "1"), (2.5, "2.5")])
def test_numeric_answer_is_sent_as_text(filled, fake_storage, typed, sent):
    api = FakeApi()
    filled.change("field-2", typed)

    result = ResponseSubmitter(api, fake_storage).submit(filled)

    assert result.success
    (_, entries) = api.calls[0]
    assert next(e for e in entries if e.key == "Age").value == sent
