"""Terminal output: banner, progress, log messages, result lines and result files."""

from __future__ import annotations

import base64
import hashlib
import json
import os
import sys
import time
from dataclasses import dataclass, field

from .models import Config, Response, Result, result_from_response
from .runner import VERSION
from .writers import write_csv, write_ejson, write_html, write_json, write_markdown

if os.name == "nt":
    TERMINAL_CLEAR_LINE = "\r\r"
    ANSI_CLEAR = ""
    ANSI_RED = ""
    ANSI_GREEN = ""
    ANSI_BLUE = ""
    ANSI_YELLOW = ""
else:
    TERMINAL_CLEAR_LINE = "\r\x1b[2K"
    ANSI_CLEAR = "\x1b[0m"
    ANSI_RED = "\x1b[31m"
    ANSI_GREEN = "\x1b[32m"
    ANSI_BLUE = "\x1b[34m"
    ANSI_YELLOW = "\x1b[33m"

BANNER_HEADER = r"""
        /'___\  /'___\           /'___\       
       /\ \__/ /\ \__/  __  __  /\ \__/       
       \ \ ,__\\ \ ,__\/\ \/\ \ \ \ ,__\      
        \ \ \_/ \ \ \_/\ \ \_\ \ \ \ \_/      
         \ \_\   \ \_\  \ \____/  \ \_\       
          \/_/    \/_/   \/___/    \/_/       
"""
BANNER_SEP = "________________________________________________"

ALL_EXTENSIONS = ".{json,ejson,html,md,csv,ecsv}"

_NS_PER_MS = 1_000_000


@dataclass
class Progress:
    """A snapshot of the progress of a running job."""

    started_at: float = field(default_factory=time.time)
    req_count: int = 0
    req_total: int = 0
    req_sec: int = 0
    queue_pos: int = 0
    queue_total: int = 0
    error_count: int = 0


def _stderr(text: str) -> None:
    sys.stderr.write(text)
    sys.stderr.flush()


def _print_option(name: str, value: str) -> None:
    _stderr(f" :: {name:<16} : {value}\n")


def _input_text(value: bytes | None) -> str:
    return "" if value is None else value.decode("utf-8", errors="replace")


class StdOutput:
    """Writes progress and results to the terminal and saves result files."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.results: list[Result] = []
        self.current_results: list[Result] = []
        self.fuzz_keywords = sorted(p.keyword for p in config.input_providers)

    def banner(self) -> None:
        """Print the job banner with the main settings to stderr."""
        config = self.config
        version = VERSION.replace("<3", f"{ANSI_RED}<3{ANSI_CLEAR}")
        _stderr(f"{BANNER_HEADER}\n       v{version}\n{BANNER_SEP}\n\n")
        _print_option("Method", config.method)
        _print_option("URL", config.url)
        for provider in config.input_providers:
            if provider.name == "wordlist":
                _print_option("Wordlist", f"{provider.keyword}: {provider.value}")
        for name, value in config.headers.items():
            _print_option("Header", f"{name}: {value}")
        if config.data:
            _print_option("Data", config.data)
        if config.extensions:
            _print_option("Extensions", "".join(f"{ext} " for ext in config.extensions))
        if config.output_file:
            output_file = config.output_file
            if config.output_format == "all":
                output_file += ALL_EXTENSIONS
            _print_option("Output file", output_file)
            _print_option("File format", config.output_format)
        _print_option("Follow redirects", str(config.follow_redirects).lower())
        _print_option("Calibration", str(config.auto_calibration).lower())
        if config.proxy_url:
            _print_option("Proxy", config.proxy_url)
        if config.replay_proxy_url:
            _print_option("ReplayProxy", config.replay_proxy_url)
        _print_option("Timeout", str(config.timeout))
        _print_option("Threads", str(config.threads))
        if config.delay is not None:
            low, high = config.delay
            if low != high:
                delay = f"{low:.2f} - {high:.2f} seconds"
            else:
                delay = f"{low:.2f} seconds"
            _print_option("Delay", delay)
        manager = config.matcher_manager
        if manager is not None:
            for matcher in manager.matchers.values():
                _print_option("Matcher", matcher.repr_verbose())
            for flt in manager.filters.values():
                _print_option("Filter", flt.repr_verbose())
        _stderr(f"{BANNER_SEP}\n\n")

    def reset(self) -> None:
        """Drop the results of the current job."""
        self.current_results = []

    def cycle(self) -> None:
        """Move the current job's results to the overall results."""
        self.results.extend(self.current_results)
        self.reset()

    def progress(self, status: Progress) -> None:
        """Print a one-line progress report unless in quiet mode."""
        if self.config.quiet:
            return
        elapsed = max(0, int(time.time() - status.started_at))
        req_rate = status.req_sec if elapsed > 0 else 0
        hours, rest = divmod(elapsed, 3600)
        minutes, seconds = divmod(rest, 60)
        _stderr(
            f"{TERMINAL_CLEAR_LINE}:: Progress: [{status.req_count}/{status.req_total}]"
            f" :: Job [{status.queue_pos}/{status.queue_total}]"
            f" :: {req_rate} req/sec"
            f" :: Duration: [{hours}:{minutes:02d}:{seconds:02d}]"
            f" :: Errors: {status.error_count} ::"
        )

    def _message(self, label: str, color: str, text: str, ending: str) -> None:
        if self.config.quiet:
            _stderr(text)
        elif not self.config.colors:
            _stderr(f"{TERMINAL_CLEAR_LINE}[{label}] {text}{ending}")
        else:
            _stderr(f"{TERMINAL_CLEAR_LINE}[{color}{label}{ANSI_CLEAR}] {text}{ending}")

    def info(self, text: str) -> None:
        self._message("INFO", ANSI_BLUE, text, "\n\n")

    def error(self, text: str) -> None:
        self._message("ERR", ANSI_RED, text, "\n")

    def warning(self, text: str) -> None:
        self._message("WARN", ANSI_RED, text, "\n")

    def raw(self, text: str) -> None:
        _stderr(f"{TERMINAL_CLEAR_LINE}{text}")

    def _write_to_all(self, results: list[Result]) -> None:
        base = self.config.output_file
        writers = (
            (".json", lambda name: write_json(name, self.config, results)),
            (".ejson", lambda name: write_ejson(name, self.config, results)),
            (".html", lambda name: write_html(name, self.config, results)),
            (".md", lambda name: write_markdown(name, self.config, results)),
            (".csv", lambda name: write_csv(name, self.config, results, False)),
            (".ecsv", lambda name: write_csv(name, self.config, results, True)),
        )
        for suffix, write in writers:
            self.config.output_file = base + suffix
            try:
                write(self.config.output_file)
            except OSError as exc:
                self.error(str(exc))

    def save_file(self, filename: str, fmt: str) -> None:
        """Save all results so far in the given format ("all" writes every format).

        Raises OSError when a single-format file cannot be written.
        """
        if self.config.output_skip_empty_file and not self.results:
            self.info("No results and -or defined, output file not written.")
            return
        results = self.results + self.current_results
        if fmt == "all":
            self._write_to_all(results)
        elif fmt == "json":
            write_json(filename, self.config, results)
        elif fmt == "ejson":
            write_ejson(filename, self.config, results)
        elif fmt == "html":
            write_html(filename, self.config, results)
        elif fmt == "md":
            write_markdown(filename, self.config, results)
        elif fmt == "csv":
            write_csv(filename, self.config, results, False)
        elif fmt == "ecsv":
            write_csv(filename, self.config, results, True)

    def finalize(self) -> None:
        """Write the configured output file once all jobs are done."""
        if self.config.output_file:
            try:
                self.save_file(self.config.output_file, self.config.output_format)
            except OSError as exc:
                self.error(str(exc))
        if not self.config.quiet:
            _stderr("\n")

    def result(self, response: Response) -> None:
        """Record a matched response and print it."""
        if self.config.output_directory:
            response.result_file = self._write_result_to_file(response)
        record = result_from_response(response)
        self.current_results.append(record)
        self.print_result(record)

    def _write_result_to_file(self, response: Response) -> str:
        directory = self.config.output_directory
        try:
            os.makedirs(directory, mode=0o750, exist_ok=True)
        except OSError as exc:
            self.error(str(exc))
            return ""
        request_raw = response.request.raw if response.request is not None else ""
        content = (
            f"{request_raw}\n---- ↑ Request ---- Response ↓ ----\n\n{response.raw}"
        ).encode("utf-8")
        name = hashlib.md5(content).hexdigest()
        path = os.path.join(directory, name)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o640)
            with os.fdopen(fd, "wb") as stream:
                stream.write(content)
        except OSError as exc:
            self.error(str(exc))
        return name

    def print_result(self, result: Result) -> None:
        """Print a result in the style the configuration asks for."""
        config = self.config
        if config.json:
            self._result_json(result)
        elif config.quiet:
            self._result_quiet(result)
        elif (
            len(self.fuzz_keywords) > 1
            or config.verbose
            or config.output_directory
            or result.scraper_data
        ):
            self._result_multiline(result)
        else:
            self._result_normal(result)

    def _keyword_value(self, result: Result, keyword: str) -> str:
        if keyword in self.config.command_keywords:
            return str(result.position)
        return _input_text(result.input.get(keyword))

    def _inputs_one_line(self, result: Result) -> str:
        if len(self.fuzz_keywords) > 1:
            return "".join(
                f"{k} : {self._keyword_value(result, k)} " for k in self.fuzz_keywords
            )
        inputs = ""
        for keyword in self.fuzz_keywords:
            inputs = self._keyword_value(result, keyword)
        return inputs

    def _stats(self, result: Result) -> str:
        return (
            f"[Status: {result.status_code}, Size: {result.content_length}, "
            f"Words: {result.content_words}, Lines: {result.content_lines}, "
            f"Duration: {result.duration // _NS_PER_MS}ms]"
        )

    def _result_quiet(self, result: Result) -> None:
        print(self._inputs_one_line(result))

    def _result_multiline(self, result: Result) -> None:
        clear = TERMINAL_CLEAR_LINE
        header = (
            f"{clear}{self._colorize(result.status_code)}{self._stats(result)}{ANSI_CLEAR}"
        )
        lines: list[str] = []
        if self.config.verbose:
            lines.append(f"{clear}| URL | {result.url}\n")
            if result.redirect_location:
                lines.append(f"{clear}| --> | {result.redirect_location}\n")
        if result.result_file:
            lines.append(f"{clear}| RES | {result.result_file}\n")
        for keyword in self.fuzz_keywords:
            lines.append(f"{clear}    * {keyword}: {self._keyword_value(result, keyword)}\n")
        if result.scraper_data:
            lines.append(f"{clear}| SCR |\n")
            for name, values in result.scraper_data.items():
                lines.extend(f"{clear}    * {name}: {value}\n" for value in values)
        print(f"{header}\n{''.join(lines)}")

    def _result_normal(self, result: Result) -> None:
        inputs = self._inputs_one_line(result)
        print(
            f"{TERMINAL_CLEAR_LINE}{self._colorize(result.status_code)}"
            f"{inputs:<23} {self._stats(result)}{ANSI_CLEAR}"
        )

    def _result_json(self, result: Result) -> None:
        record = result.to_dict()
        record["input"] = {
            k: base64.b64encode(v).decode("ascii") for k, v in result.input.items()
        }
        try:
            text = json.dumps(record, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            self.error(str(exc))
            return
        _stderr(TERMINAL_CLEAR_LINE)
        print(text)

    def _colorize(self, status: int) -> str:
        if not self.config.colors:
            return ""
        if 200 <= status < 300:
            return ANSI_GREEN
        if 300 <= status < 400:
            return ANSI_BLUE
        if 400 <= status < 500:
            return ANSI_YELLOW
        if 500 <= status < 600:
            return ANSI_RED
        return ANSI_CLEAR


def new_output_provider_by_name(name: str, config: Config) -> StdOutput:
    """Return the output provider for a name; the terminal output is the only one."""
    return StdOutput(config)