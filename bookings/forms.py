import re

from django import forms

NAME_RE = re.compile(r"^[a-zA-Z\s]+$")
PLACE_RE = re.compile(r"^[a-zA-Z\s]+$")
MOBILE_RE = re.compile(r"^[6-9]\d{9}$")
PINCODE_RE = re.compile(r"^[1-9][0-9]{5}$")


def clean_full_name(value: str) -> str:
    value = (value or "").strip()
    if len(value) < 2:
        raise forms.ValidationError("Name should be larger than 2 characters")
    if not NAME_RE.match(value):
        raise forms.ValidationError("Enter a valid name")
    return value


def clean_mobile(value: str) -> str:
    digits = re.sub(r"\D", "", value or "")
    if not MOBILE_RE.match(digits):
        raise forms.ValidationError("Please enter a valid 10-digit mobile number")
    return digits


def clean_pincode(value: str) -> str:
    value = (value or "").strip()
    if not PINCODE_RE.match(value):
        raise forms.ValidationError("Please enter a valid 6-digit pin code")
    return value


def _required(label):
    return {"required": f"This field is required ({label})"}


class BookingForm(forms.Form):
    """Booking details posted from /book-now before payment."""

    firstname = forms.CharField(max_length=100, error_messages=_required("Full Name"))
    phone = forms.CharField(max_length=20, error_messages=_required("Phone"))
    email = forms.EmailField(
        error_messages={**_required("Email"), "invalid": "Please enter a valid email address"},
    )
    address = forms.CharField(
        min_length=5,
        error_messages={**_required("Address"), "min_length": "Address must be at least 5 characters"},
    )
    city = forms.CharField(max_length=100, error_messages=_required("City"))
    state = forms.CharField(max_length=100, error_messages=_required("State"))
    pincode = forms.CharField(max_length=10, error_messages=_required("Pincode"))
    variant = forms.ChoiceField(
        choices=[("dx", "DX"), ("dx-plus", "DX+")],
        error_messages={"required": "Please select a valid variant", "invalid_choice": "Please select a valid variant"},
    )
    color = forms.ChoiceField(
        choices=[("red", "Red"), ("blue", "Blue"), ("white", "White"), ("black", "Black"), ("grey", "Grey")],
        error_messages={"required": "Please select a valid color", "invalid_choice": "Please select a valid color"},
    )
    terms = forms.BooleanField(error_messages={"required": "You must agree to the terms and conditions"})
    ownedBefore = forms.BooleanField(required=False)
    txnid = forms.CharField(max_length=100, required=False)
    amount = forms.DecimalField(
        required=False,
        max_digits=10,
        decimal_places=2,
        min_value=1,
        error_messages={"invalid": "Enter a valid amount", "min_value": "Enter a valid amount"},
    )

    def clean_firstname(self):
        return clean_full_name(self.cleaned_data.get("firstname"))

    def clean_phone(self):
        return clean_mobile(self.cleaned_data.get("phone"))

    def clean_city(self):
        value = self.cleaned_data.get("city", "").strip()
        if not PLACE_RE.match(value):
            raise forms.ValidationError("Enter a valid city name")
        return value

    def clean_state(self):
        value = self.cleaned_data.get("state", "").strip()
        if not PLACE_RE.match(value):
            raise forms.ValidationError("Enter a valid state name")
        return value

    def clean_pincode(self):
        return clean_pincode(self.cleaned_data.get("pincode"))

    def error_summary(self) -> str:
        """All messages in field order, joined the way /book-now displays them."""
        messages = []
        for name in self.fields:
            messages.extend(str(m) for m in self.errors.get(name, []))
        messages.extend(str(m) for m in self.non_field_errors())
        return ". ".join(messages)
