from django import forms

from formbind import BindingForm, FieldBinding, Nested, Repeatable, Unique

from .models import Band


class ProfileForm(forms.Form):
    bio = forms.CharField(required=False)
    website = forms.CharField(required=False)


class MasterForm(forms.Form):
    name = forms.CharField(required=False)


class AddressForm(forms.Form):
    street = forms.CharField(required=False)
    city = forms.CharField(required=False)
    remove = forms.BooleanField(required=False)


class TagRowForm(forms.Form):
    title = forms.CharField(required=False)


class UserForm(BindingForm):
    name = forms.CharField()
    title = forms.CharField(required=False)
    status = forms.ChoiceField(required=False)
    master = forms.ChoiceField(required=False)
    bands = forms.MultipleChoiceField(required=False)
    tags = forms.MultipleChoiceField(required=False)

    class Binding:
        model = "test_app.User"
        fields = {
            "title": {"null_if_empty": True},
            "status": FieldBinding(ignore_if_empty=True),
            "master": FieldBinding(empty_first=True),
            "bands": FieldBinding(link_values={"role": "guest"}, order_by=["name"]),
            "tags": FieldBinding(label_column="title"),
        }
        nested = {
            "profile": Nested(ProfileForm, delete_if_empty=True),
            "addresses": Repeatable(
                AddressForm, empty_rows=1, new_rows_max=2, delete_if_true="remove"
            ),
        }


class AccessorForm(BindingForm):
    name = forms.CharField(required=False)
    alias = forms.CharField(required=False)
    shout = forms.CharField(required=False)
    greeting = forms.CharField(required=False)
    new_name = forms.CharField(required=False)
    title = forms.CharField(required=False)

    class Binding:
        model = "test_app.User"
        fields = {
            "new_name": FieldBinding(accessor="rename", ignore_if_empty=True),
            "greeting": FieldBinding(read_only=True),
        }
        exclude = ["title"]


class UserMasterForm(BindingForm):
    name = forms.CharField()

    class Binding:
        model = "test_app.User"
        nested = {"master": Nested(MasterForm, delete_if_empty=True)}


class UserNotesForm(BindingForm):
    name = forms.CharField()
    notes = forms.MultipleChoiceField(required=False)
    shadow = forms.CharField(required=False)

    class Binding:
        model = "test_app.User"
        fields = {
            "notes": FieldBinding(label_column=lambda note: note.text.upper()),
            "shadow": FieldBinding(read_only=True, accessor="nickname"),
        }


class UserTagsForm(BindingForm):
    name = forms.CharField()

    class Binding:
        model = "test_app.User"
        nested = {"tags": Repeatable(TagRowForm, empty_rows=2, can_delete=True)}


class UniqueUserForm(BindingForm):
    name = forms.CharField()
    email = forms.CharField(required=False)

    class Binding:
        model = "test_app.User"
        fields = {
            "name": FieldBinding(unique=Unique(case_insensitive=True)),
            "email": FieldBinding(unique=Unique(others=["name"])),
        }


class BandFilterForm(BindingForm):
    band = forms.ChoiceField(required=False)
    band_choice = forms.ModelChoiceField(queryset=Band.objects.all(), required=False)
    fixed = forms.ChoiceField(choices=[("a", "A")], required=False)
    master = forms.ChoiceField(required=False)

    class Binding:
        fields = {
            "band": FieldBinding(
                model="test_app.Band",
                condition={"active": True},
                order_by=["-name"],
            ),
            "band_choice": FieldBinding(condition_from_context={"name__startswith": "prefix"}),
            "master": FieldBinding(
                queryset=lambda form: form.context["masters"],
                value_column="name",
            ),
        }


class RecursiveCategoryForm(BindingForm):
    name = forms.CharField(required=False)

    class Binding:
        model = "test_app.Category"


RecursiveCategoryForm.Binding.nested = {"parent": Nested(RecursiveCategoryForm)}
