"""
Unit tests for binding declarations and settings loading.
"""

import pytest

from formbind.bindings.config import (
    FieldBinding,
    FormBinding,
    Nested,
    Repeatable,
    resolve_model,
)
from formbind.core.exceptions import InvalidBindingError
from formbind.core.settings import BindingSettings, get_unknown_setting_keys

pytestmark = pytest.mark.unit


class DummyForm:
    pass


class TestFormBinding:
    """Tests for FormBinding.from_class."""

    def test_missing_binding_class_gives_empty_binding(self):
        binding = FormBinding.from_class(None)

        assert binding.model is None
        assert binding.fields == {}
        assert binding.nested == {}
        assert binding.exclude == []

    def test_dict_entries_become_field_bindings(self):
        class Binding:
            model = "test_app.User"
            fields = {"title": {"null_if_empty": True}, "name": FieldBinding(read_only=True)}
            exclude = ("secret",)

        binding = FormBinding.from_class(Binding)

        assert binding.model == "test_app.User"
        assert binding.fields["title"].null_if_empty is True
        assert binding.fields["name"].read_only is True
        assert binding.exclude == ["secret"]

    def test_unknown_field_option_is_rejected(self):
        class Binding:
            fields = {"title": {"no_such_option": 1}}

        with pytest.raises(InvalidBindingError) as exc_info:
            FormBinding.from_class(Binding)

        assert exc_info.value.field == "title"
        assert exc_info.value.code == "INVALID_BINDING"

    def test_field_entry_of_wrong_type_is_rejected(self):
        class Binding:
            fields = {"title": "null_if_empty"}

        with pytest.raises(InvalidBindingError):
            FormBinding.from_class(Binding)

    def test_nested_entry_must_be_nested_or_repeatable(self):
        class Binding:
            nested = {"profile": DummyForm}

        with pytest.raises(InvalidBindingError):
            FormBinding.from_class(Binding)

    def test_for_field_defaults_for_undeclared_fields(self):
        binding = FormBinding.from_class(None)

        field_binding = binding.for_field("anything")

        assert field_binding.options_from_model is True
        assert field_binding.read_only is False


class TestRepeatable:
    """Tests for Repeatable validation and row limits."""

    def test_new_rows_max_defaults_to_empty_rows(self):
        assert Repeatable(DummyForm, empty_rows=3).rows_limit == 3

    def test_explicit_new_rows_max_wins(self):
        assert Repeatable(DummyForm, empty_rows=1, new_rows_max=5).rows_limit == 5

    def test_zero_means_unlimited(self):
        assert Repeatable(DummyForm).rows_limit is None

    def test_negative_counts_are_rejected(self):
        with pytest.raises(InvalidBindingError):
            Repeatable(DummyForm, empty_rows=-1)
        with pytest.raises(InvalidBindingError):
            Repeatable(DummyForm, new_rows_max=-2)

    def test_form_class_is_required(self):
        with pytest.raises(InvalidBindingError):
            Repeatable(None)
        with pytest.raises(InvalidBindingError):
            Nested(None)


class TestResolveModel:
    def test_string_is_looked_up_in_app_registry(self):
        from test_app.models import User

        assert resolve_model("test_app.User") is User

    def test_model_class_is_returned_unchanged(self):
        from test_app.models import Band

        assert resolve_model(Band) is Band
        assert resolve_model(None) is None

    def test_unknown_model_raises(self):
        with pytest.raises(InvalidBindingError):
            resolve_model("test_app.Missing")


class TestBindingSettings:
    """Tests for hierarchical settings loading."""

    def test_library_defaults(self, settings):
        settings.FORMBIND = {}

        binding_settings = BindingSettings.from_settings()

        assert binding_settings.auto_options_from_model is True
        assert binding_settings.max_nested_depth == 10
        assert binding_settings.default_id_field == "id"
        assert binding_settings.label_columns == ["name", "title", "label"]

    def test_django_settings_override_defaults(self, settings):
        settings.FORMBIND = {"max_nested_depth": 3, "default_id_field": "pk"}

        binding_settings = BindingSettings.from_settings()

        assert binding_settings.max_nested_depth == 3
        assert binding_settings.default_id_field == "pk"

    def test_explicit_overrides_win(self, settings):
        settings.FORMBIND = {"validate_instances": False}

        binding_settings = BindingSettings.from_settings({"validate_instances": True})

        assert binding_settings.validate_instances is True

    def test_unknown_keys_are_ignored_and_reported(self, settings):
        settings.FORMBIND = {"max_nested_depth": 4, "colour": "blue"}

        binding_settings = BindingSettings.from_settings()

        assert binding_settings.max_nested_depth == 4
        assert get_unknown_setting_keys() == ["colour"]
