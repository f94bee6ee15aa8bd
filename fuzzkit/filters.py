"""Response filters and matchers, and the manager that holds them."""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Union

from .models import Response

ALL_STATUSES = 0

_RANGE_RE = re.compile(r"(\d+)-(\d+)", re.ASCII)
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)


class FilterError(ValueError):
    """Raised when a filter or matcher value cannot be parsed."""


def _parse_range(text: str) -> tuple[int, int]:
    match = _RANGE_RE.fullmatch(text)
    if match:
        return int(match[1]), int(match[2])
    if _INT_RE.fullmatch(text):
        number = int(text)
        return number, number
    raise ValueError(text)


def _format_range(low: int, high: int) -> str:
    return str(low) if low == high else f"{low}-{high}"


class RangeFilter(ABC):
    """Base for filters that compare a numeric response property to ranges."""

    _label = "Response value"
    _error_template = "Filter or matcher: invalid value: {}"

    def __init__(self, value: str) -> None:
        ranges = []
        for part in value.split(","):
            try:
                ranges.append(self._parse_part(part))
            except ValueError:
                raise FilterError(self._error_template.format(part)) from None
        self.value: list[tuple[int, int]] = ranges

    def _parse_part(self, part: str) -> tuple[int, int]:
        return _parse_range(part)

    @abstractmethod
    def _measure(self, response: Response) -> int:
        """Return the response property this filter compares."""

    def filter(self, response: Response) -> bool:
        measured = self._measure(response)
        return any(low <= measured <= high for low, high in self.value)

    def repr(self) -> str:
        return ",".join(_format_range(low, high) for low, high in self.value)

    def repr_verbose(self) -> str:
        return f"{self._label}: {self.repr()}"

    def to_json(self) -> dict[str, str]:
        return {"value": self.repr()}


class SizeFilter(RangeFilter):
    """Matches on the response content length."""

    _label = "Response size"
    _error_template = "Size filter or matcher (-fs / -ms): invalid value: {}"

    def _measure(self, response: Response) -> int:
        return response.content_length


class WordFilter(RangeFilter):
    """Matches on the number of space-separated words in the body."""

    _label = "Response words"
    _error_template = "Word filter or matcher (-fw / -mw): invalid value: {}"

    def _measure(self, response: Response) -> int:
        return len(response.data.split(b" "))


class LineFilter(RangeFilter):
    """Matches on the number of lines in the body."""

    _label = "Response lines"
    _error_template = "Line filter or matcher (-fl / -ml): invalid value: {}"

    def _measure(self, response: Response) -> int:
        return len(response.data.split(b"\n"))


class StatusFilter(RangeFilter):
    """Matches on the HTTP status code; "all" matches every status."""

    _label = "Response status"
    _error_template = "Status filter or matcher (-fc / -mc): invalid value {}"

    def _parse_part(self, part: str) -> tuple[int, int]:
        if part == "all":
            return ALL_STATUSES, ALL_STATUSES
        return _parse_range(part)

    def _measure(self, response: Response) -> int:
        return response.status_code

    def filter(self, response: Response) -> bool:
        status = response.status_code
        return any(
            (low, high) == (ALL_STATUSES, ALL_STATUSES) or low <= status <= high
            for low, high in self.value
        )

    def repr(self) -> str:
        return ",".join(
            "all"
            if (low, high) == (ALL_STATUSES, ALL_STATUSES)
            else _format_range(low, high)
            for low, high in self.value
        )


class RegexpFilter:
    """Matches a regular expression against the response headers and body."""

    def __init__(self, value: str) -> None:
        try:
            self.pattern = re.compile(value)
        except re.error:
            raise FilterError(
                f"Regexp filter or matcher (-fr / -mr): invalid value: {value}"
            ) from None
        self.value = value

    def filter(self, response: Response) -> bool:
        header_text = "".join(
            f"{name}: {item}\r\n"
            for name, items in response.headers.items()
            for item in items
        )
        text = header_text + response.data.decode("utf-8", errors="replace")
        pattern = self.value
        if response.request is not None:
            for keyword, item in response.request.input.items():
                pattern = pattern.replace(
                    keyword, re.escape(item.decode("utf-8", errors="replace"))
                )
        try:
            return re.search(pattern, text) is not None
        except re.error:
            return False

    def repr(self) -> str:
        return self.value

    def repr_verbose(self) -> str:
        return f"Regexp: {self.value}"

    def to_json(self) -> dict[str, str]:
        return {"value": self.value}


class TimeFilter:
    """Matches responses faster ("<ms") or slower (">ms") than a threshold."""

    def __init__(self, value: str) -> None:
        error = f"Time filter or matcher (-ft / -mt): invalid value: {value}"
        self.gt = value.startswith(">")
        self.lt = value.startswith("<")
        if self.gt == self.lt:
            raise FilterError(error)
        number = value[1:]
        if not _INT_RE.fullmatch(number):
            raise FilterError(error)
        self.ms = int(number)
        self.value = value

    def filter(self, response: Response) -> bool:
        elapsed_ms = response.duration // 1_000_000
        if self.gt:
            return elapsed_ms > self.ms
        return elapsed_ms < self.ms

    def repr(self) -> str:
        return self.value

    def repr_verbose(self) -> str:
        return f"Response time: {self.value}"

    def to_json(self) -> dict[str, str]:
        return {"value": self.value}


Filter = Union[RangeFilter, RegexpFilter, TimeFilter]

_FILTER_TYPES: dict[str, Any] = {
    "status": StatusFilter,
    "size": SizeFilter,
    "word": WordFilter,
    "line": LineFilter,
    "regexp": RegexpFilter,
    "time": TimeFilter,
}


def new_filter_by_name(name: str, value: str) -> Filter:
    """Create the filter of the given kind from its textual value."""
    try:
        factory = _FILTER_TYPES[name]
    except KeyError:
        raise FilterError(f"Could not create filter with name {name}") from None
    return factory(value)


@dataclass
class PerDomainFilter:
    """Filters and calibration state for one host."""

    filters: dict[str, Filter]
    is_calibrated: bool = False


def _merged(current: dict[str, Filter], name: str, option: str, replace: bool) -> None:
    created = new_filter_by_name(name, option)
    existing = current.get(name)
    if existing is None or replace:
        current[name] = created
        return
    try:
        current[name] = new_filter_by_name(name, f"{existing.repr()},{option}")
    except FilterError:
        pass


@dataclass
class MatcherManager:
    """Holds the matchers, global filters and per-host filters of a job."""

    is_calibrated: bool = False
    matchers: dict[str, Filter] = field(default_factory=dict)
    filters: dict[str, Filter] = field(default_factory=dict)
    per_domain_filters: dict[str, PerDomainFilter] = field(default_factory=dict)

    def __init__(self) -> None:
        self.is_calibrated = False
        self.matchers = {}
        self.filters = {}
        self.per_domain_filters = {}
        self._lock = threading.Lock()

    def set_calibrated(self, value: bool) -> None:
        self.is_calibrated = value

    def set_calibrated_for_host(self, host: str, value: bool) -> None:
        existing = self.per_domain_filters.get(host)
        if existing is not None:
            existing.is_calibrated = value
        else:
            self.per_domain_filters[host] = PerDomainFilter(self.filters, True)

    def add_filter(self, name: str, option: str, replace: bool) -> None:
        """Add a filter, appending to an existing one unless replace is set."""
        with self._lock:
            _merged(self.filters, name, option, replace)

    def add_per_domain_filter(self, domain: str, name: str, option: str) -> None:
        """Add a filter to the filter set of one domain."""
        with self._lock:
            per_domain = self.per_domain_filters.get(domain)
            if per_domain is None:
                per_domain = PerDomainFilter(self.filters)
            try:
                _merged(per_domain.filters, name, option, False)
            finally:
                self.per_domain_filters[domain] = per_domain

    def remove_filter(self, name: str) -> None:
        with self._lock:
            self.filters.pop(name, None)

    def add_matcher(self, name: str, option: str) -> None:
        """Add a matcher, appending to an existing one of the same kind."""
        with self._lock:
            _merged(self.matchers, name, option, False)

    def filters_for_domain(self, domain: str) -> dict[str, Filter]:
        per_domain = self.per_domain_filters.get(domain)
        return self.filters if per_domain is None else per_domain.filters

    def calibrated_for_domain(self, domain: str) -> bool:
        per_domain = self.per_domain_filters.get(domain)
        return per_domain.is_calibrated if per_domain is not None else False