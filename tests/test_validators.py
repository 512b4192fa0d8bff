import pytest

from contact_relay.validators import (
    FULL_RULES,
    REDUCED_RULES,
    is_email,
    normalize,
    rules_for,
    validate_submission,
)


def full_payload(**overrides):
    payload = {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane.doe@renservices.com",
        "phone": "555-0100",
        "address": "12 Main Street",
        "city": "Springfield",
        "zipCode": "12345",
        "message": "Please call me back about a quote.",
    }
    payload.update(overrides)
    return payload


def error_paths(result):
    return [e.path for e in result.errors]


def test_valid_full_payload_is_trimmed():
    result = validate_submission(full_payload(firstName="  Jane  ", city="\tSpringfield\n"))

    assert result.ok
    assert result.submission.first_name == "Jane"
    assert result.submission.city == "Springfield"
    assert result.submission.zip_code == "12345"


@pytest.mark.parametrize("rule", FULL_RULES, ids=lambda r: r.field)
def test_each_required_field_missing_or_blank(rule):
    missing = full_payload()
    del missing[rule.field]
    blank = full_payload(**{rule.field: "   "})

    for payload in (missing, blank):
        result = validate_submission(payload)
        assert not result.ok
        assert error_paths(result) == [rule.field]
        assert result.errors[0].msg == rule.message


def test_all_errors_are_collected():
    """Every violation is reported at once, in rule order."""
    result = validate_submission({"email": "not-an-email", "message": "hi"})

    assert error_paths(result) == [
        "firstName",
        "lastName",
        "email",
        "phone",
        "address",
        "city",
        "zipCode",
    ]


def test_invalid_email_reported_even_when_everything_else_is_valid():
    result = validate_submission(full_payload(email="not-an-email"))

    assert len(result.errors) == 1
    error = result.errors[0]
    assert error.path == "email"
    assert error.msg == "Valid email is required"
    assert error.value == "not-an-email"
    assert error.type == "field"
    assert error.location == "body"


@pytest.mark.parametrize(
    "value",
    ["plainaddress", "@renservices.com", "jane@", "jane@@renservices.com", "jane@localhost", ""],
)
def test_is_email_rejects(value):
    assert not is_email(value)


def test_is_email_accepts_common_addresses():
    assert is_email("jane.doe+contact@renservices.com")
    assert is_email("j@sub.renservices.co.uk")


def test_normalize_handles_untrusted_types():
    assert normalize("  x ") == "x"
    assert normalize(12345) == "12345"
    assert normalize(None) is None
    assert normalize(True) is None
    assert normalize({"a": 1}) is None
    assert normalize(["a"]) is None


def test_numeric_zip_code_is_accepted():
    result = validate_submission(full_payload(zipCode=12345))

    assert result.ok
    assert result.submission.zip_code == "12345"


def test_object_value_counts_as_missing():
    result = validate_submission(full_payload(phone={"number": "555"}))

    assert error_paths(result) == ["phone"]


def test_reduced_variant_does_not_require_city_or_zip():
    payload = full_payload()
    del payload["city"]
    del payload["zipCode"]

    result = validate_submission(payload, "reduced")

    assert result.ok
    assert result.submission.city is None
    assert result.submission.zip_code is None


def test_reduced_variant_ignores_overrides():
    result = validate_submission(
        full_payload(subject="Hi\nBcc: x@renservices.com", to="bogus"), "reduced"
    )

    assert result.ok
    assert result.submission.subject is None
    assert result.submission.to is None


def test_full_variant_keeps_overrides():
    result = validate_submission(full_payload(subject=" Quote ", to="sales@renservices.com"))

    assert result.submission.subject == "Quote"
    assert result.submission.to == "sales@renservices.com"


def test_blank_overrides_fall_back_to_none():
    result = validate_submission(full_payload(subject="  ", to=""))

    assert result.ok
    assert result.submission.subject is None
    assert result.submission.to is None


def test_override_rules_reject_bad_values():
    result = validate_submission(full_payload(subject="a\r\nBcc: x@renservices.com", to="nope"))

    assert error_paths(result) == ["subject", "to"]
    assert result.errors[1].msg == "Valid recipient email is required"


def test_rules_for_unknown_variant():
    assert rules_for("reduced") == REDUCED_RULES
    with pytest.raises(ValueError):
        rules_for("compact")


def test_recipient_override_must_be_ascii():
    """The SMTP envelope cannot carry a non-ASCII recipient without SMTPUTF8."""
    result = validate_submission(full_payload(to="jösé@renservices.com"))

    assert error_paths(result) == ["to"]
    assert result.errors[0].msg == "Valid recipient email is required"


def test_unicode_sender_email_is_still_accepted():
    result = validate_submission(full_payload(email="jösé@renservices.com"))

    assert result.ok
    assert result.submission.email == "jösé@renservices.com"
