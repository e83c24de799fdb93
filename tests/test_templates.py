from __future__ import annotations

import pytest

from core.templates import DEFAULT_TEMPLATES, TemplateError, TemplateMatcher, build_templates


def _matcher() -> TemplateMatcher:
    return TemplateMatcher(build_templates(DEFAULT_TEMPLATES))


@pytest.mark.parametrize(
    "body",
    [
        "INR 500.00 debited from A/c no. XX1133 on 15-01-24. Avl Bal INR 1200.00",
        "INR 42 debited\nA/c no. XX1133",
        "Alert: INR 9.5 debited via UPI, A/c no. XX1133 - not you? call 1800",
        "Sent Rs.250.00 from Kotak Bank AC X4321 to merchant@upi on 15-01-24",
        "Sent Rs.7 from Kotak Bank",
    ],
)
def test_default_templates_match_prefix_with_any_suffix(body: str) -> None:
    assert _matcher().matches(body)


@pytest.mark.parametrize(
    "body",
    [
        "Your OTP is 1234",
        "",
        "inr 500.00 debited from A/c no. XX1133",
        "INR 500.00 debited from A/c no. XX9999",
        "sent rs.250 from kotak bank",
        "Sent Rs. 250 from Kotak Bank",
    ],
)
def test_default_templates_reject_other_messages(body: str) -> None:
    assert not _matcher().matches(body)


def test_match_is_total_on_unusual_input() -> None:
    matcher = _matcher()
    assert matcher.match(None) is None
    assert not matcher.matches("x" * 200_000)
    assert not matcher.matches("\x00\n\t")


def test_match_extracts_named_fields() -> None:
    match = _matcher().match("Sent Rs.250.75 from Kotak Bank AC X4321")
    assert match is not None
    assert match.rule_name == "kotak_sent"
    assert match.fields == {"amount": "250.75"}


def test_first_matching_template_wins() -> None:
    templates = build_templates(
        [
            {"name": "first", "pattern": r"PAID"},
            {"name": "second", "pattern": r"PAID \d+"},
        ]
    )
    match = TemplateMatcher(templates).match("PAID 10")
    assert match is not None
    assert match.rule_name == "first"


def test_disabled_templates_are_skipped() -> None:
    templates = build_templates(
        [
            {"name": "off", "pattern": r"hello", "enabled": False},
            {"name": "on", "pattern": r"world"},
        ]
    )
    assert [template.name for template in templates] == ["on"]


def test_invalid_pattern_fails_at_build_time() -> None:
    with pytest.raises(TemplateError):
        build_templates([{"name": "broken", "pattern": r"INR (\d+"}])


def test_missing_pattern_fails_at_build_time() -> None:
    with pytest.raises(TemplateError):
        build_templates([{"name": "empty"}])
