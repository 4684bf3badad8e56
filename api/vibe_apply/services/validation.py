from __future__ import annotations

from typing import Any

from vibe_apply.core.normalize import EMAIL_RE, clean_text, normalize_email, normalize_text
from vibe_apply.services.errors import ValidationError

AGE_MIN = 16
AGE_MAX = 120
GENDERS = {"male", "female"}
CANDIDATE_FIELDS = ("name", "age", "email", "phone", "stake", "ward", "gender", "more_info", "served_mission")
REQUIRED_TEXT_FIELDS = ("name", "phone", "stake", "ward")


def normalize_candidate_form(
    form: dict[str, Any],
    *,
    email_required: bool,
    partial: bool = False,
) -> dict[str, Any]:
    """Validate an application or recommendation form and return the stored shape.

    Stake, ward and email are trimmed and lower-cased, free text is trimmed.
    With ``partial=True`` only the keys present in ``form`` are checked, which
    is how patches are validated.
    """
    values = {key: form[key] for key in CANDIDATE_FIELDS if key in form and (form[key] is not None or key == "email")}
    errors: list[str] = []
    normalized: dict[str, Any] = {}

    for field in REQUIRED_TEXT_FIELDS:
        if field not in values:
            if not partial:
                errors.append(f"{field} is required")
            continue
        text = clean_text(values[field])
        if not text:
            errors.append(f"{field} is required")
            continue
        normalized[field] = normalize_text(text) if field in {"stake", "ward"} else text

    if "age" in values or not partial:
        age = _coerce_age(values.get("age"))
        if age is None:
            errors.append("age must be a whole number")
        elif age < AGE_MIN or age > AGE_MAX:
            errors.append(f"age must be between {AGE_MIN} and {AGE_MAX}")
        else:
            normalized["age"] = age

    if "email" in values or not partial:
        email = normalize_email(values.get("email"))
        if email is None:
            if email_required:
                errors.append("email is required")
            elif "email" in values:
                normalized["email"] = None
        elif not EMAIL_RE.match(email):
            errors.append("email must be a valid address")
        else:
            normalized["email"] = email

    if "gender" in values or not partial:
        gender = normalize_text(values.get("gender"))
        if gender not in GENDERS:
            errors.append("gender must be male or female")
        else:
            normalized["gender"] = gender

    if "more_info" in values or not partial:
        normalized["more_info"] = clean_text(values.get("more_info"))

    if "served_mission" in values:
        normalized["served_mission"] = bool(values["served_mission"])

    if errors:
        raise ValidationError("; ".join(errors))
    return normalized


def normalize_note_content(content: Any) -> str:
    text = clean_text(content)
    if not text:
        raise ValidationError("content is required")
    return text


def _coerce_age(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return None
    return None
