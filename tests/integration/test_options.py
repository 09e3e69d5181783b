"""
Integration tests for filling select options from querysets.
"""

import pytest
from django import forms

from formbind import BindingForm, FieldBinding, Repeatable
from formbind.core.settings import BindingSettings
from formbind.testing import formset_management_data
from test_app.forms import BandFilterForm, UserForm, UserNotesForm
from test_app.models import Band, Master, Note, Tag, User

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


class StatusRowForm(forms.Form):
    status = forms.ChoiceField(required=False)


class OptOutForm(BindingForm):
    master = forms.ChoiceField(required=False)
    tags = forms.MultipleChoiceField(required=False)

    class Binding:
        model = "test_app.User"
        fields = {"master": FieldBinding(options_from_model=False)}
        exclude = ["tags"]


class MasterUsersForm(BindingForm):
    name = forms.CharField()

    class Binding:
        model = "test_app.Master"
        nested = {"users": Repeatable(StatusRowForm, empty_rows=1)}


class TestRelationOptions:
    """Options derived from the relation behind a field."""

    def test_foreign_key_with_empty_first(self):
        boss = Master.objects.create(name="Boss")

        form = UserForm()

        assert form.fields["master"].choices == [("", "---------"), (boss.pk, "Boss")]

    def test_order_by(self):
        zeta = Band.objects.create(name="Zeta")
        alpha = Band.objects.create(name="Alpha")

        form = UserForm()

        assert form.fields["bands"].choices == [(alpha.pk, "Alpha"), (zeta.pk, "Zeta")]

    def test_label_column(self):
        tag = Tag.objects.create(title="math")

        form = UserForm()

        assert form.fields["tags"].choices == [(tag.pk, "math")]

    def test_callable_label(self):
        note = Note.objects.create(text="remember")

        form = UserNotesForm()

        assert form.fields["notes"].choices == [(note.pk, "REMEMBER")]

    def test_column_choices(self):
        form = UserForm()

        assert form.fields["status"].choices == [("active", "Active"), ("retired", "Retired")]

    def test_submitted_option_validates(self):
        boss = Master.objects.create(name="Boss")
        data = {"name": "Ada", "master": str(boss.pk), "profile-bio": ""}
        data.update(formset_management_data("addresses", total=0))

        form = UserForm(data)

        assert form.is_valid(), form.tree_errors()
        assert form.cleaned_data["master"] == str(boss.pk)

    def test_repeatable_rows_get_options(self):
        form = MasterUsersForm()

        row = form.nested_forms["users"].forms[0]
        assert row.fields["status"].choices == list(User.STATUS_CHOICES)


class TestDeclaredSources:
    """Options from a declared model, queryset and context."""

    @pytest.fixture
    def bands(self):
        return {
            "engines": Band.objects.create(name="Engines"),
            "looms": Band.objects.create(name="Looms"),
            "retired": Band.objects.create(name="Analysts", active=False),
        }

    def make_form(self, **context):
        context.setdefault("masters", Master.objects.all())
        return BandFilterForm(context=context)

    def test_model_with_condition_and_order(self, bands):
        form = self.make_form()

        assert form.fields["band"].choices == [
            (bands["looms"].pk, "Looms"),
            (bands["engines"].pk, "Engines"),
        ]

    def test_model_choice_field_is_narrowed_from_context(self, bands):
        form = self.make_form(prefix="E")

        assert list(form.fields["band_choice"].queryset) == [bands["engines"]]

    def test_missing_context_key_leaves_queryset(self, bands):
        form = self.make_form()

        assert form.fields["band_choice"].queryset.count() == 3

    def test_existing_choices_are_kept(self, bands):
        form = self.make_form()

        assert form.fields["fixed"].choices == [("a", "A")]

    def test_queryset_callable_and_value_column(self):
        Master.objects.create(name="Boss")
        Master.objects.create(name="Other")

        form = self.make_form(masters=Master.objects.filter(name="Boss"))

        assert form.fields["master"].choices == [("Boss", "Boss")]


class TestOptOut:
    def test_field_and_exclude_opt_out(self):
        Master.objects.create(name="Boss")
        Tag.objects.create(title="math")

        form = OptOutForm()

        assert form.fields["master"].choices == []
        assert form.fields["tags"].choices == []

    def test_automatic_options_can_be_disabled(self):
        Master.objects.create(name="Boss")

        form = UserForm(binding_settings=BindingSettings(auto_options_from_model=False))

        assert form.fields["master"].choices == []

    def test_explicit_call_returns_form(self):
        Master.objects.create(name="Boss")
        form = UserForm(binding_settings=BindingSettings(auto_options_from_model=False))

        assert form.model.options_from_model() is form
        assert len(form.fields["master"].choices) == 2
