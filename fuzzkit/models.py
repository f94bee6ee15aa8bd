"""Core data records shared by the fuzzer: requests, responses, results and configuration."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any


@dataclass
class InputProviderConfig:
    """Describes one source of fuzz values bound to a keyword."""

    name: str = "wordlist"
    keyword: str = "FUZZ"
    value: str = ""
    encoders: str = ""


@dataclass
class Config:
    """Settings for a fuzzing job."""

    url: str = ""
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    data: str = ""
    input_mode: str = "clusterbomb"
    input_providers: list[InputProviderConfig] = field(default_factory=list)
    input_num: int = 100
    input_shell: str = ""
    command_keywords: list[str] = field(default_factory=list)
    command_line: str = ""
    extensions: list[str] = field(default_factory=list)
    dir_search_compat: bool = False
    ignore_wordlist_comments: bool = False
    output_file: str = ""
    output_format: str = "json"
    output_directory: str = ""
    output_skip_empty_file: bool = False
    quiet: bool = False
    colors: bool = False
    json: bool = False
    verbose: bool = False
    follow_redirects: bool = False
    auto_calibration: bool = False
    proxy_url: str = ""
    replay_proxy_url: str = ""
    timeout: int = 10
    threads: int = 40
    rate: int = 0
    # (min, max) seconds; equal values mean a fixed delay
    delay: tuple[float, float] | None = None
    raw: bool = False
    ignore_body: bool = False
    http2: bool = False
    sni: str = ""
    client_cert: str = ""
    client_key: str = ""
    matcher_manager: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable view of the configuration."""
        out: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            if f.name == "matcher_manager":
                continue
            value = getattr(self, f.name)
            if f.name == "input_providers":
                value = [dataclasses.asdict(p) for p in value]
            elif isinstance(value, (list, tuple)):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            out[f.name] = value
        manager = self.matcher_manager
        if manager is not None:
            out["matchers"] = {k: v.to_json() for k, v in manager.matchers.items()}
            out["filters"] = {k: v.to_json() for k, v in manager.filters.items()}
        return out


@dataclass
class Request:
    """An HTTP request template or a prepared request."""

    method: str = "GET"
    url: str = ""
    host: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    data: bytes = b""
    input: dict[str, bytes] = field(default_factory=dict)
    position: int = 0
    raw: str = ""

    def copy(self) -> Request:
        """Return an independent copy of this request."""
        return dataclasses.replace(
            self, headers=dict(self.headers), input=dict(self.input)
        )


@dataclass
class Response:
    """An HTTP response together with the request that produced it."""

    status_code: int = 0
    headers: dict[str, list[str]] = field(default_factory=dict)
    data: bytes = b""
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    cancelled: bool = False
    request: Request | None = None
    raw: str = ""
    result_file: str = ""
    scraper_data: dict[str, list[str]] = field(default_factory=dict)
    duration: int = 0  # nanoseconds until the first response byte

    def redirect_location(self) -> str:
        """Return the first Location header value, or an empty string."""
        for name, values in self.headers.items():
            if name.lower() == "location" and values:
                return values[0]
        return ""


@dataclass
class ScraperResult:
    """Data extracted from a response by one scraper rule."""

    name: str = ""
    type: str = ""
    action: list[str] = field(default_factory=list)
    results: list[str] = field(default_factory=list)


@dataclass
class Result:
    """A matched response as recorded for output."""

    input: dict[str, bytes] = field(default_factory=dict)
    position: int = 0
    status_code: int = 0
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    redirect_location: str = ""
    scraper_data: dict[str, list[str]] = field(default_factory=dict)
    duration: int = 0  # nanoseconds
    result_file: str = ""
    url: str = ""
    host: str = ""
    html_color: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON record written for this result."""
        return {
            "input": {
                k: v.decode("utf-8", errors="replace") for k, v in self.input.items()
            },
            "position": self.position,
            "status": self.status_code,
            "length": self.content_length,
            "words": self.content_words,
            "lines": self.content_lines,
            "content-type": self.content_type,
            "redirectlocation": self.redirect_location,
            "scraper": {k: list(v) for k, v in self.scraper_data.items()},
            "duration": self.duration,
            "resultfile": self.result_file,
            "url": self.url,
            "host": self.host,
        }


def result_from_response(response: Response) -> Result:
    """Build a Result record from a received response."""
    request = response.request or Request()
    return Result(
        input=dict(request.input),
        position=request.position,
        status_code=response.status_code,
        content_length=response.content_length,
        content_words=response.content_words,
        content_lines=response.content_lines,
        content_type=response.content_type,
        redirect_location=response.redirect_location(),
        scraper_data=response.scraper_data,
        url=request.url,
        duration=response.duration,
        result_file=response.result_file,
        host=request.host,
    )