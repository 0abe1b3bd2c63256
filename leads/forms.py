from django import forms

from bookings.forms import clean_full_name, clean_mobile, clean_pincode

from .models import ContactSubmission


class TestDriveForm(forms.Form):
    full_name = forms.CharField(max_length=100, error_messages={"required": "Full name is required"})
    phone = forms.CharField(max_length=20, error_messages={"required": "Phone number is required"})
    email = forms.EmailField(
        error_messages={"required": "Email is required", "invalid": "Please enter a valid email address"},
    )
    pincode = forms.CharField(max_length=10, error_messages={"required": "Pincode is required"})
    message = forms.CharField(required=False, max_length=1000)
    date = forms.DateField(required=False, input_formats=["%Y-%m-%d", "%d-%m-%Y"])

    def clean_full_name(self):
        return clean_full_name(self.cleaned_data.get("full_name"))

    def clean_phone(self):
        return clean_mobile(self.cleaned_data.get("phone"))

    def clean_pincode(self):
        return clean_pincode(self.cleaned_data.get("pincode"))

    def field_errors(self) -> dict:
        return {name: str(errors[0]) for name, errors in self.errors.items()}


class ContactForm(forms.Form):
    name = forms.CharField(
        min_length=2,
        max_length=100,
        error_messages={
            "required": "Full name is required",
            "min_length": "Full name must be at least 2 characters",
            "max_length": "Full name cannot exceed 100 characters",
        },
    )
    phone = forms.CharField(max_length=20, error_messages={"required": "Phone number is required"})
    email = forms.EmailField(
        max_length=255,
        error_messages={
            "required": "Email is required",
            "invalid": "Please enter a valid email address",
            "max_length": "Email address is too long",
        },
    )
    help = forms.ChoiceField(
        choices=ContactSubmission.HELP_CHOICES,
        error_messages={
            "required": "Please select a valid concern type",
            "invalid_choice": "Please select a valid concern type",
        },
    )
    message = forms.CharField(required=False, max_length=2000)

    def clean_phone(self):
        return clean_mobile(self.cleaned_data.get("phone"))

    def field_errors(self) -> dict:
        return {name: str(errors[0]) for name, errors in self.errors.items()}
