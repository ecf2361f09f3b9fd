import pytest

from formapi.client.api import ApiError, UserSession
from formapi.client.builder import BuilderError, FormBuilder
from formapi.models.form import FieldType, Form


class FakeApi:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def add_form(self, creator_id, title, fields):
        self.calls.append((creator_id, title, list(fields)))
        if self.fail:
            raise ApiError(400, "fields: Field labels must be unique")
        return Form(id=10, creator_id=creator_id, title=title, fields=fields)


@pytest.fixture()
def user() -> UserSession:
    return UserSession(user_id=7, name="Ada", email="ada@example.net", access_token="token")


@pytest.fixture()
def builder(user) -> FormBuilder:
    return FormBuilder(FakeApi(), user)


def add(builder, label, type=FieldType.TEXT, options=()):
    builder.set_label(label)
    builder.set_type(type)
    for option in options:
        builder.add_option(option)
    return builder.add_field()


def test_add_field_appends_and_resets_draft(builder):
    field = add(builder, "Name")

    assert builder.fields == [field]
    assert field.id == "field-1"
    assert field.required is True
    assert builder.draft.label == ""


def test_duplicate_label_is_rejected(builder):
    add(builder, "Name")

    with pytest.raises(BuilderError, match='label "Name" already exists'):
        add(builder, "Name", FieldType.EMAIL)

    assert [f.label for f in builder.fields] == ["Name"]


def test_label_is_required(builder):
    with pytest.raises(BuilderError):
        add(builder, "   ")


def test_options_only_kept_for_choice_types(builder):
    text = add(builder, "Name", FieldType.TEXT, ["stray"])
    radio = add(builder, "Size", FieldType.RADIO, ["S", " M ", ""])

    assert text.options is None
    assert radio.options == ["S", "M"]


def test_dropdown_needs_options(builder):
    with pytest.raises(BuilderError, match="at least one option"):
        add(builder, "Country", FieldType.DROPDOWN)


def test_checkbox_without_options_becomes_toggle(builder):
    field = add(builder, "I agree", FieldType.CHECKBOX)
    assert field.options is None


def test_duplicate_options_rejected(builder):
    with pytest.raises(BuilderError, match="duplicate options"):
        add(builder, "Size", FieldType.RADIO, ["S", "S"])


def test_edit_and_remove_options(builder):
    builder.set_label("Size")
    builder.set_type("dropdown")
    builder.add_option("S")
    builder.add_option("M")
    builder.add_option("X")
    builder.edit_option(2, "L")
    builder.remove_option(0)

    assert builder.add_field().options == ["M", "L"]


def test_edit_field_replaces_in_place(builder):
    add(builder, "Name")
    add(builder, "Email", FieldType.EMAIL)
    add(builder, "Age", FieldType.NUMBER)

    builder.edit_field("field-2")
    assert builder.draft.label == "Email"
    builder.set_label("Work email")
    builder.set_required(False)
    field = builder.add_field()

    assert [f.label for f in builder.fields] == ["Name", "Work email", "Age"]
    assert field.id == "field-2"
    assert field.required is False
    assert builder.editing_id is None


def test_editing_may_keep_its_own_label(builder):
    add(builder, "Name")
    builder.edit_field("field-1")
    builder.set_type(FieldType.PASSWORD)

    assert builder.add_field().type == FieldType.PASSWORD


def test_delete_field_does_not_reuse_ids(builder):
    add(builder, "A")
    add(builder, "B")
    builder.delete_field("field-1")

    assert add(builder, "C").id == "field-3"
    assert [f.id for f in builder.fields] == ["field-2", "field-3"]


def test_delete_unknown_field(builder):
    with pytest.raises(KeyError):
        builder.delete_field("field-9")


def test_submit_requires_title(builder):
    add(builder, "Name")

    with pytest.raises(BuilderError, match="title is required"):
        builder.submit_form()

    assert builder.api.calls == []


def test_submit_sends_form_for_signed_in_user(builder):
    add(builder, "Name")
    builder.set_title("  Survey ")

    result = builder.submit_form()

    assert result.success
    assert result.redirect == "/forms"
    assert result.form.id == 10
    (creator_id, title, fields) = builder.api.calls[0]
    assert creator_id == 7
    assert title == "Survey"
    assert [f.label for f in fields] == ["Name"]


def test_submit_failure_is_reported(user):
    builder = FormBuilder(FakeApi(fail=True), user)
    add(builder, "Name")
    builder.set_title("Survey")

    result = builder.submit_form()

    assert not result.success
    assert result.notification.level == "error"
    assert result.redirect is None


def test_submit_from_inside_a_save_is_rejected(user):
    class ReenteringApi(FakeApi):
        def __init__(self):
            super().__init__()
            self.nested_error = None

        def add_form(self, creator_id, title, fields):
            # e.g. a progress callback that fires another save
            try:
                builder.submit_form()
            except BuilderError as e:
                self.nested_error = str(e)
            return super().add_form(creator_id, title, fields)

    api = ReenteringApi()
    builder = FormBuilder(api, user)
    add(builder, "Name")
    builder.set_title("Survey")

    result = builder.submit_form()

    assert result.success
    assert api.nested_error == "The form is already being saved."
    assert len(api.calls) == 1


def test_submit_can_be_retried_after_a_failure(user):
    api = FakeApi(fail=True)
    builder = FormBuilder(api, user)
    add(builder, "Name")
    builder.set_title("Survey")
    assert not builder.submit_form().success

    api.fail = False

    assert builder.submit_form().success
    assert len(api.calls) == 2
