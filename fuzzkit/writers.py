"""Writers that save results as CSV, JSON, HTML or Markdown files."""

from __future__ import annotations

import base64
import csv
import dataclasses
import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Any

import jinja2

from .models import Config, Result

HASH_KEYWORD = "FFUFHASH"

STATIC_HEADERS = [
    "url",
    "redirectlocation",
    "position",
    "status_code",
    "content_length",
    "content_words",
    "content_lines",
    "content_type",
    "duration",
    "resultfile",
    "Ffufhash",
]

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000


def _fraction(value: int, unit: int) -> str:
    whole, rest = divmod(value, unit)
    if not rest:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{str(rest).zfill(digits).rstrip('0')}"


def _format_duration(ns: int) -> str:
    """Render nanoseconds as e.g. "123ns", "1.5ms" or "1h2m3s"."""
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    n = abs(ns)
    if n < _NS_PER_US:
        return f"{sign}{n}ns"
    if n < _NS_PER_MS:
        return f"{sign}{_fraction(n, _NS_PER_US)}µs"
    if n < _NS_PER_S:
        return f"{sign}{_fraction(n, _NS_PER_MS)}ms"
    text = _fraction(n % (60 * _NS_PER_S), _NS_PER_S) + "s"
    minutes = n // (60 * _NS_PER_S)
    if minutes:
        hours, minutes = divmod(minutes, 60)
        text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return sign + text


def _text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _now() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


def _keywords(config: Config) -> list[str]:
    return [provider.keyword for provider in config.input_providers]


def to_csv(result: Result) -> list[str]:
    """Return the CSV row for a result."""
    row: list[str] = []
    ffuf_hash = ""
    for key, value in result.input.items():
        if key == HASH_KEYWORD:
            ffuf_hash = _text(value)
        else:
            row.append(_text(value))
    row.extend(
        [
            result.url,
            result.redirect_location,
            str(result.position),
            str(result.status_code),
            str(result.content_length),
            str(result.content_words),
            str(result.content_lines),
            result.content_type,
            _format_duration(result.duration),
            result.result_file,
            ffuf_hash,
        ]
    )
    return row


def write_csv(
    filename: str, config: Config, results: Iterable[Result], encode: bool
) -> None:
    """Write results as CSV; with encode set, inputs are base64 encoded."""
    with open(filename, "w", newline="", encoding="utf-8") as stream:
        writer = csv.writer(stream, lineterminator="\n")
        writer.writerow(_keywords(config) + STATIC_HEADERS)
        for result in results:
            if encode:
                result = dataclasses.replace(
                    result,
                    input={k: base64.b64encode(v) for k, v in result.input.items()},
                )
            writer.writerow(to_csv(result))


def _dump(filename: str, document: dict[str, Any]) -> None:
    with open(filename, "w", encoding="utf-8") as stream:
        stream.write(json.dumps(document, ensure_ascii=False, separators=(",", ":")))


def write_ejson(filename: str, config: Config, results: Iterable[Result]) -> None:
    """Write results as JSON with base64 encoded input values."""
    records = []
    for result in results:
        record = result.to_dict()
        record["input"] = {
            k: base64.b64encode(v).decode("ascii") for k, v in result.input.items()
        }
        records.append(record)
    _dump(
        filename,
        {
            "commandline": config.command_line,
            "time": _now(),
            "results": records,
            "config": None,
        },
    )


def write_json(filename: str, config: Config, results: Iterable[Result]) -> None:
    """Write results and the job configuration as JSON."""
    _dump(
        filename,
        {
            "commandline": config.command_line,
            "time": _now(),
            "results": [result.to_dict() for result in results],
            "config": config.to_dict(),
        },
    )


_STATUS_COLORS = (
    (200, 299, "#adea9e"),
    (300, 399, "#bbbbe6"),
    (400, 499, "#d2cb7e"),
    (500, 599, "#de8dc1"),
)


def colorize_results(results: Iterable[Result]) -> list[Result]:
    """Return copies of the results with a row colour chosen by status code."""
    colored = []
    for result in results:
        color = next(
            (c for low, high, c in _STATUS_COLORS if low <= result.status_code <= high),
            "black",
        )
        colored.append(dataclasses.replace(result, html_color=color))
    return colored


@dataclass
class _ReportRow:
    input: dict[str, str] = field(default_factory=dict)
    position: int = 0
    status_code: int = 0
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    redirect_location: str = ""
    scraper_data: str = ""
    duration: str = ""
    result_file: str = ""
    url: str = ""
    host: str = ""
    html_color: str = ""
    ffuf_hash: str = ""


def _row(result: Result, inputs: dict[str, str], scraper: str, ffuf_hash: str) -> _ReportRow:
    return _ReportRow(
        input=inputs,
        position=result.position,
        status_code=result.status_code,
        content_length=result.content_length,
        content_words=result.content_words,
        content_lines=result.content_lines,
        content_type=result.content_type,
        redirect_location=result.redirect_location,
        scraper_data=scraper,
        duration=_format_duration(result.duration),
        result_file=result.result_file,
        url=result.url,
        host=result.host,
        html_color=result.html_color,
        ffuf_hash=ffuf_hash,
    )


def _scraper_html(data: dict[str, list[str]], quote: bool) -> str:
    convert = escape if quote else (lambda s: s)
    return "".join(
        f"<p><b>{convert(name)}:</b><br />"
        + "<br />".join(convert(v) for v in values)
        + "</p>"
        for name, values in data.items()
        if values
    )


_ENV = jinja2.Environment(autoescape=True, keep_trailing_newline=True)

_HTML_TEMPLATE = _ENV.from_string(
    """
<!DOCTYPE html>
<html>
  <head>
    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />
    <meta
      name="viewport"
      content="width=device-width, initial-scale=1, maximum-scale=1.0"
    />
    <title>FFUF Report - </title>
    <style>
      body {
        display: flex;
        min-height: 100vh;
        flex-direction: column;
        font-family: sans-serif;
      }

      main {
        flex: 1 0 auto;
      }

      table, th, td {
        border: 1px solid #999;
        border-collapse: collapse;
        padding: 4px;
      }
    </style>
  </head>

  <body>
    <nav>
      <div class="nav-wrapper">
        <a href="#" class="brand-logo">FFUF</a>
      </div>
    </nav>

    <main class="section no-pad-bot" id="index-banner">
      <div class="container">
        <br /><br />
        <h1 class="header center ">FFUF Report</h1>
        <div class="row center">

		<pre>{{ command_line }}</pre>
		<pre>{{ time }}</pre>

   <table id="ffufreport">
        <thead>
        <div style="display:none">
|result_raw|StatusCode{% for key in keys %}|{{ key }}{% endfor %}|Url|RedirectLocation|Position|ContentLength|ContentWords|ContentLines|ContentType|Duration|Resultfile|ScraperData|FfufHash|
        </div>
          <tr>
              <th>Status</th>
{% for key in keys %}              <th>{{ key }}</th>{% endfor %}
			  <th>URL</th>
			  <th>Redirect location</th>
              <th>Position</th>
              <th>Length</th>
              <th>Words</th>
			  <th>Lines</th>
			  <th>Type</th>
              <th>Duration</th>
			  <th>Resultfile</th>
              <th>Scraper data</th>
              <th>Ffuf Hash</th>
          </tr>
        </thead>

        <tbody>
			{% for r in results %}
                <div style="display:none">
|result_raw|{{ r.status_code }}{% for key, value in r.input|dictsort %}|{{ value }}{% endfor %}|{{ r.url }}|{{ r.redirect_location }}|{{ r.position }}|{{ r.content_length }}|{{ r.content_words }}|{{ r.content_lines }}|{{ r.content_type }}|{{ r.duration }}|{{ r.result_file }}|{{ r.scraper_data }}|{{ r.ffuf_hash }}|
                </div>
                <tr class="result-{{ r.status_code }}" style="background-color: {{ r.html_color }};">
                    <td><font color="black" class="status-code">{{ r.status_code }}</font></td>
                    {% for key, value in r.input|dictsort %}
                        <td>{{ value }}</td>
                    {% endfor %}
                    <td><a href="{{ r.url }}">{{ r.url }}</a></td>
                    <td><a href="{{ r.redirect_location }}">{{ r.redirect_location }}</a></td>
                    <td>{{ r.position }}</td>
                    <td>{{ r.content_length }}</td>
                    <td>{{ r.content_words }}</td>
					<td>{{ r.content_lines }}</td>
					<td>{{ r.content_type }}</td>
					<td>{{ r.duration }}</td>
                    <td>{{ r.result_file }}</td>
					<td>{{ r.scraper_data }}</td>
					<td>{{ r.ffuf_hash }}</td>
                </tr>
            {% endfor %}
        </tbody>
      </table>

        </div>
        <br /><br />
      </div>
    </main>
  </body>
</html>
"""
)

_MARKDOWN_TEMPLATE = _ENV.from_string(
    """# FFUF Report

  Command line : `{{ command_line }}`
  Time: {{ time }}

  {% for key in keys %}| {{ key }} {% endfor %}| URL | Redirectlocation | Position | Status Code | Content Length | Content Words | Content Lines | Content Type | Duration | ResultFile | ScraperData | Ffufhash
  {% for key in keys %}| :- {% endfor %}| :-- | :--------------- | :---- | :------- | :---------- | :------------- | :------------ | :--------- | :----------- | :------------ | :-------- |
  {% for r in results %}{% for key, value in r.input|dictsort %}| {{ value }} {% endfor %}| {{ r.url }} | {{ r.redirect_location }} | {{ r.position }} | {{ r.status_code }} | {{ r.content_length }} | {{ r.content_words }} | {{ r.content_lines }} | {{ r.content_type }} | {{ r.duration }} | {{ r.result_file }} | {{ r.scraper_data }} | {{ r.ffuf_hash }}
  {% endfor %}"""
)


def write_html(filename: str, config: Config, results: Iterable[Result]) -> None:
    """Write an HTML report of the results."""
    rows = []
    for result in colorize_results(results):
        ffuf_hash = ""
        inputs: dict[str, str] = {}
        for key, value in result.input.items():
            if key == HASH_KEYWORD:
                ffuf_hash = _text(value)
            else:
                inputs[key] = _text(value)
        scraper = _scraper_html(result.scraper_data, quote=True)
        rows.append(_row(result, inputs, scraper, ffuf_hash))
    document = _HTML_TEMPLATE.render(
        command_line=config.command_line,
        time=_now(),
        keys=_keywords(config),
        results=rows,
    )
    with open(filename, "w", encoding="utf-8") as stream:
        stream.write(document)


def write_markdown(filename: str, config: Config, results: Iterable[Result]) -> None:
    """Write a Markdown report of the results."""
    rows = []
    # The hash carries over to later rows that have none of their own.
    ffuf_hash = ""
    for result in results:
        inputs: dict[str, str] = {}
        for key, value in result.input.items():
            if key == HASH_KEYWORD:
                ffuf_hash = _text(value)
            else:
                inputs[key] = _text(value)
        scraper = _scraper_html(result.scraper_data, quote=False)
        rows.append(_row(dataclasses.replace(result, html_color=""), inputs, scraper, ffuf_hash))
    document = _MARKDOWN_TEMPLATE.render(
        command_line=config.command_line,
        time=_now(),
        keys=_keywords(config),
        results=rows,
    )
    with open(filename, "w", encoding="utf-8") as stream:
        stream.write(document)