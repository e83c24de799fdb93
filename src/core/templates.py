"""Template compilation and matching logic (core domain)."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Iterable, List, Optional

DEFAULT_TEMPLATES: List[dict] = [
    {
        "name": "debit_xx1133",
        "pattern": r"INR (?P<amount>\d+(\.\d+)?) debited[\s\S]*A/c no\. XX1133[\s\S]*",
    },
    {
        "name": "kotak_sent",
        "pattern": r"Sent Rs\.(?P<amount>\d+(\.\d+)?) from Kotak Bank[\s\S]*",
    },
]


class TemplateError(ValueError):
    """Raised when a template config entry cannot be compiled."""


@dataclass(frozen=True)
class Template:
    """Compiled template rule used by the matcher."""

    name: str
    pattern: re.Pattern
    raw_pattern: str


@dataclass(frozen=True)
class TemplateMatch:
    """A template hit with any named groups the pattern extracted."""

    rule_name: str
    fields: dict[str, str] = field(default_factory=dict)


def build_templates(templates_config: Iterable[dict]) -> List[Template]:
    """Normalize template configs and compile their patterns.

    Patterns are compiled without flags: case and whitespace must match the
    configured template text literally.
    """

    compiled: List[Template] = []
    for index, entry in enumerate(templates_config):
        if not entry.get("enabled", True):
            continue
        name = entry.get("name") or f"template_{index}"
        raw_pattern = entry.get("pattern")
        if not isinstance(raw_pattern, str) or not raw_pattern:
            raise TemplateError(f"Template {name!r} has no pattern")
        try:
            pattern = re.compile(raw_pattern)
        except re.error as exc:
            raise TemplateError(f"Template {name!r} has an invalid pattern: {exc}") from exc
        compiled.append(Template(name=name, pattern=pattern, raw_pattern=raw_pattern))
    return compiled


class TemplateMatcher:
    """Decide whether a message body matches any configured template.

    Matching is a search anywhere in the body, so templates anchored on a
    semantic prefix accept arbitrary surrounding text. The matcher is pure
    and total: any string, including an empty one, is a valid input.
    """

    def __init__(self, templates: Iterable[Template]) -> None:
        self._templates = list(templates)

    def match(self, body: Optional[str]) -> Optional[TemplateMatch]:
        """Return the first template hit for the body, or None."""

        if not isinstance(body, str) or not body:
            return None
        for template in self._templates:
            found = template.pattern.search(body)
            if found is None:
                continue
            fields = {key: value for key, value in found.groupdict().items() if value is not None}
            return TemplateMatch(rule_name=template.name, fields=fields)
        return None

    def matches(self, body: Optional[str]) -> bool:
        return self.match(body) is not None
