"""Vendor signup: step validation, step navigation and the application payload."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from chopchoo.core.constants import (
    DEFAULT_COMMISSION_RATE,
    DEFAULT_PAYOUT_FREQUENCY,
    DEFAULT_VENDOR_LOGO,
    MIN_DELIVERY_RADIUS_KM,
)
from chopchoo.core.exceptions import SignupValidationError


class SignupStep:
    BUSINESS_INFO = 1
    OWNER_DETAILS = 2
    LOCATION = 3
    OPERATING_HOURS = 4

    FIRST = BUSINESS_INFO
    LAST = OPERATING_HOURS


STEP_TITLES: Mapping[int, str] = {
    SignupStep.BUSINESS_INFO: "Business Info",
    SignupStep.OWNER_DETAILS: "Owner Details",
    SignupStep.LOCATION: "Location",
    SignupStep.OPERATING_HOURS: "Operating Hours",
}

DAY_NAMES: Mapping[str, str] = {
    "Mon": "monday",
    "Tue": "tuesday",
    "Wed": "wednesday",
    "Thu": "thursday",
    "Fri": "friday",
    "Sat": "saturday",
    "Sun": "sunday",
}


class VendorStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class VendorSignupForm:
    restaurant_name: str = ""
    business_type: str = ""
    cuisine: str = ""
    owner_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    delivery_radius: str = ""
    open_time: str = ""
    close_time: str = ""
    operating_days: list[str] = field(default_factory=list)
    bank_name: str = ""
    account_number: str = ""
    account_holder: str = ""


@dataclass(frozen=True, slots=True)
class StepValidationResult:
    ok: bool
    reason: str | None = None


def _is_number(value: str) -> bool:
    try:
        number = float(value)
    except ValueError:
        return False
    return math.isfinite(number)


# (predicate, error message) pairs, checked in order per step
_StepCheck = tuple[Callable[[VendorSignupForm], bool], str]

_STEP_CHECKS: Mapping[int, tuple[_StepCheck, ...]] = {
    SignupStep.BUSINESS_INFO: (
        (lambda f: bool(f.restaurant_name.strip()), "Restaurant name is required"),
        (lambda f: bool(f.business_type.strip()), "Business type is required"),
        (lambda f: bool(f.cuisine.strip()), "Cuisine type is required"),
    ),
    SignupStep.OWNER_DETAILS: (
        (lambda f: bool(f.owner_name.strip()), "Owner name is required"),
        (lambda f: bool(f.email.strip()) and "@" in f.email, "Valid email address is required"),
        (lambda f: bool(f.phone.strip()), "Phone number is required"),
    ),
    SignupStep.LOCATION: (
        (lambda f: bool(f.address.strip()), "Address is required"),
        (lambda f: bool(f.city.strip()), "City is required"),
        (
            lambda f: bool(f.delivery_radius.strip()) and _is_number(f.delivery_radius.strip()),
            "Valid delivery radius is required",
        ),
    ),
    SignupStep.OPERATING_HOURS: (
        (lambda f: bool(f.open_time.strip()), "Opening time is required"),
        (lambda f: bool(f.close_time.strip()), "Closing time is required"),
        (lambda f: len(f.operating_days) > 0, "Please select at least one operating day"),
    ),
}


def validate_step(form: VendorSignupForm, step: int) -> StepValidationResult:
    """Check the fields owned by ``step``; first failing check wins."""
    checks = _STEP_CHECKS.get(step)
    if checks is None:
        return StepValidationResult(False, f"Unknown signup step: {step}")
    for check, message in checks:
        if not check(form):
            return StepValidationResult(False, message)
    return StepValidationResult(True)


def make_slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


def build_opening_hours(form: VendorSignupForm) -> dict[str, dict[str, Any]]:
    hours = {
        day: {"open": form.open_time, "close": form.close_time, "is_open": False}
        for day in DAY_NAMES.values()
    }
    for short in form.operating_days:
        full = DAY_NAMES.get(short)
        if full:
            hours[full]["is_open"] = True
    return hours


def build_vendor_application(form: VendorSignupForm) -> dict[str, Any]:
    """Payload submitted for admin review once every step passes."""
    for step in range(SignupStep.FIRST, SignupStep.LAST + 1):
        result = validate_step(form, step)
        if not result.ok:
            raise SignupValidationError(step, result.reason or "Please fill in all required fields")

    delivery_radius = float(form.delivery_radius)
    if delivery_radius < MIN_DELIVERY_RADIUS_KM:
        raise SignupValidationError(
            SignupStep.LOCATION, f"Delivery radius must be at least {MIN_DELIVERY_RADIUS_KM}km"
        )

    return {
        "name": form.restaurant_name.strip(),
        "slug": make_slug(form.restaurant_name),
        "logo": DEFAULT_VENDOR_LOGO,
        "cuisine_type": form.cuisine.strip(),
        "address": form.address.strip(),
        "city": form.city.strip(),
        "phone": form.phone.strip(),
        "email": form.email.strip(),
        "rating": 0,
        "status": VendorStatus.PENDING,
        "delivery_radius": delivery_radius,
        "opening_hours": build_opening_hours(form),
        "owner_name": form.owner_name.strip(),
        "business_type": form.business_type.strip(),
        "bank_account": {
            "bank_name": form.bank_name or "Not provided",
            "account_number": form.account_number or "Not provided",
            "account_holder": form.account_holder or form.owner_name,
        },
        "commission_rate": DEFAULT_COMMISSION_RATE,
        "payout_frequency": DEFAULT_PAYOUT_FREQUENCY,
    }


class VendorSignupFlow:
    """Multi-step form state: Business Info -> Owner -> Location -> Hours."""

    def __init__(self, form: VendorSignupForm | None = None):
        self.form = form or VendorSignupForm()
        self.current_step = SignupStep.FIRST

    @property
    def is_last_step(self) -> bool:
        return self.current_step == SignupStep.LAST

    def next_step(self) -> dict[str, Any] | None:
        """Advance past a valid step; on the last step return the application.

        Raises SignupValidationError and stays put when the step is invalid.
        """
        result = validate_step(self.form, self.current_step)
        if not result.ok:
            raise SignupValidationError(self.current_step, result.reason or "")
        if self.is_last_step:
            return build_vendor_application(self.form)
        self.current_step += 1
        return None

    def prev_step(self) -> None:
        if self.current_step > SignupStep.FIRST:
            self.current_step -= 1
