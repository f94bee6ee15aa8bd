"""Scraper rules that extract data from responses by regexp or CSS query."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup

from .models import Response, ScraperResult


class ScraperError(Exception):
    """Raised when scraper rules or groups cannot be loaded."""


def header_string(headers: dict[str, list[str]]) -> str:
    """Render headers as "Name: value" lines."""
    return "".join(
        f"{name}: {value}\n" for name, values in headers.items() for value in values
    )


def parse_active_groups(active: str) -> list[str]:
    """Split a comma separated list of group names into normalised names."""
    return [part.strip().lower() for part in active.split(",")]


def is_active(name: str, active_groups: list[str]) -> bool:
    """Tell whether a group name is among the active groups."""
    return name.strip().lower() in active_groups


def _typed(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ScraperError(f"field {key!r} has an invalid type")
    return value


@dataclass
class ScraperRule:
    """One extraction rule: a regexp or a CSS query against part of a response."""

    name: str = ""
    rule: str = ""
    target: str = ""
    type: str = ""
    only_matched: bool = False
    action: list[str] = field(default_factory=list)
    _compiled: re.Pattern[str] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    @classmethod
    def from_dict(cls, data: Any) -> ScraperRule:
        if not isinstance(data, dict):
            raise ScraperError("scraper rule must be an object")
        action = _typed(data, "action", list, [])
        if not all(isinstance(item, str) for item in action):
            raise ScraperError("field 'action' must hold strings")
        return cls(
            name=_typed(data, "name", str, ""),
            rule=_typed(data, "rule", str, ""),
            target=_typed(data, "target", str, ""),
            type=_typed(data, "type", str, ""),
            only_matched=_typed(data, "onlymatched", bool, False),
            action=list(action),
        )

    def compile(self) -> None:
        """Prepare the rule for use; raises ScraperError on a bad regexp."""
        if self.type == "regexp":
            try:
                self._compiled = re.compile(self.rule)
            except re.error as exc:
                raise ScraperError(str(exc)) from exc

    def check(self, data: str) -> list[str]:
        """Return everything the rule extracts from data."""
        if self.type == "regexp":
            return self._check_regexp(data)
        if self.type == "query":
            return self._check_query(data)
        return []

    def _check_regexp(self, data: str) -> list[str]:
        if self._compiled is None:
            return []
        found: list[str] = []
        for match in self._compiled.finditer(data):
            found.append(match.group(0))
            found.extend(group or "" for group in match.groups())
        return found

    def _check_query(self, data: str) -> list[str]:
        soup = BeautifulSoup(data, "html.parser")
        try:
            selection = soup.select(self.rule)
        except Exception:  # invalid selectors simply select nothing
            return []
        return [element.get_text() for element in selection]


@dataclass
class ScraperGroup:
    """A named set of rules as stored in one JSON file."""

    rules: list[ScraperRule] = field(default_factory=list)
    name: str = ""
    active: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> ScraperGroup:
        if not isinstance(data, dict):
            raise ScraperError("scraper group must be an object")
        rules = _typed(data, "rules", list, [])
        return cls(
            rules=[ScraperRule.from_dict(item) for item in rules],
            name=_typed(data, "groupname", str, ""),
            active=_typed(data, "active", bool, False),
        )


def read_group(path: str | Path) -> ScraperGroup:
    """Load a scraper group from a JSON file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ScraperError(str(exc)) from exc
    return ScraperGroup.from_dict(data)


@dataclass
class Scraper:
    """Applies a list of compiled rules to responses."""

    rules: list[ScraperRule] = field(default_factory=list)

    def append_from_file(self, path: str | Path) -> None:
        """Add the valid rules of a group file; invalid rules are skipped."""
        group = read_group(path)
        for rule in group.rules:
            try:
                rule.compile()
            except ScraperError:
                continue
            self.rules.append(rule)

    def execute(self, response: Response, matched: bool) -> list[ScraperResult]:
        """Run every applicable rule against the response."""
        body = response.data.decode("utf-8", errors="replace")
        results: list[ScraperResult] = []
        for rule in self.rules:
            if not matched and rule.only_matched:
                continue
            if rule.target == "body":
                source = body
            elif rule.target == "headers":
                source = header_string(response.headers)
            else:
                source = header_string(response.headers) + body
            found = rule.check(source)
            if found:
                results.append(
                    ScraperResult(
                        name=rule.name,
                        type=rule.type,
                        action=list(rule.action),
                        results=found,
                    )
                )
        return results


def from_dir(dirname: str | Path, active: str) -> tuple[Scraper, list[ScraperError]]:
    """Load the active groups of a directory of JSON files.

    Returns the scraper and the problems met with individual files or rules.
    Raises ScraperError when the directory itself cannot be read.
    """
    groups = parse_active_groups(active)
    directory = Path(dirname)
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise ScraperError(str(exc)) from exc
    scraper = Scraper()
    errors: list[ScraperError] = []
    for path in entries:
        if path.is_symlink() or not path.is_file() or not path.name.endswith(".json"):
            continue
        try:
            group = read_group(path)
        except ScraperError as exc:
            errors.append(ScraperError(f"{path} : {exc}"))
            continue
        if (group.active and is_active("all", groups)) or is_active(group.name, groups):
            for rule in group.rules:
                try:
                    rule.compile()
                except ScraperError as exc:
                    errors.append(ScraperError(f"{path} : {exc}"))
                    continue
                scraper.rules.append(rule)
    return scraper, errors