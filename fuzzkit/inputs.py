"""Input providers: external commands and the combining main provider."""

from __future__ import annotations

import base64
import hashlib
import html
import os
import subprocess
import urllib.parse
from collections.abc import Callable
from typing import Protocol

from .models import Config, InputProviderConfig
from .wordlist import WordlistInput

if os.name == "nt":
    SHELL_CMD = "cmd.exe"
    SHELL_ARG = "/C"
else:
    SHELL_CMD = "/bin/sh"
    SHELL_ARG = "-c"

INPUT_MODES = ("clusterbomb", "pitchfork", "sniper")


class InputError(ValueError):
    """Raised when input providers cannot be set up."""

    def __init__(self, message: str, errors: list[Exception] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class _Source(Protocol):
    keyword: str
    position: int
    active: bool

    def has_next(self) -> bool: ...

    def increment_position(self) -> None: ...

    def reset_position(self) -> None: ...

    def value(self) -> bytes: ...

    def total(self) -> int: ...

    def enable(self) -> None: ...

    def disable(self) -> None: ...


class CommandInput:
    """Produces input by running a shell command; FFUF_NUM holds the position."""

    def __init__(self, keyword: str, command: str, config: Config) -> None:
        self.keyword = keyword
        self.command = command
        self.config = config
        self.active = True
        self.position = 0
        self.shell = config.input_shell or SHELL_CMD

    def has_next(self) -> bool:
        return self.position < self.config.input_num

    def increment_position(self) -> None:
        self.position += 1

    def reset_position(self) -> None:
        self.position = 0

    def value(self) -> bytes:
        """Run the command and return its standard output, or b"" on failure."""
        env = dict(os.environ, FFUF_NUM=str(self.position))
        try:
            completed = subprocess.run(
                [self.shell, SHELL_ARG, self.command],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                env=env,
                check=False,
            )
        except OSError:
            return b""
        if completed.returncode != 0:
            return b""
        return completed.stdout

    def total(self) -> int:
        return self.config.input_num

    def enable(self) -> None:
        self.active = True

    def disable(self) -> None:
        self.active = False


def _digest(name: str) -> Callable[[bytes], bytes]:
    return lambda data: hashlib.new(name, data).hexdigest().encode()


_ENCODERS: dict[str, Callable[[bytes], bytes]] = {
    "b64encode": base64.b64encode,
    "b64decode": lambda data: base64.b64decode(data, validate=True),
    "hexencode": lambda data: data.hex().encode(),
    "hexdecode": lambda data: bytes.fromhex(data.decode("ascii")),
    "urlencode": lambda data: urllib.parse.quote_plus(data).encode(),
    "urldecode": lambda data: urllib.parse.unquote_to_bytes(data.replace(b"+", b" ")),
    "urlencodeall": lambda data: "".join(f"%{b:02X}" for b in data).encode(),
    "htmlescape": lambda data: html.escape(data.decode("utf-8")).encode(),
    "htmlunescape": lambda data: html.unescape(data.decode("utf-8")).encode(),
    "lower": bytes.lower,
    "upper": bytes.upper,
    "md5": _digest("md5"),
    "sha1": _digest("sha1"),
    "sha224": _digest("sha224"),
    "sha256": _digest("sha256"),
    "sha384": _digest("sha384"),
    "sha512": _digest("sha512"),
}


class _EncoderChain:
    def __init__(self, names: list[str]) -> None:
        unknown = [n for n in names if n not in _ENCODERS]
        if unknown:
            raise InputError(f"Encoder {unknown[0]!r} not found")
        self.steps = [_ENCODERS[n] for n in names]

    def encode(self, data: bytes) -> bytes:
        for step in self.steps:
            data = step(data)
        return data


class InputProvider:
    """Combines the configured input sources according to the input mode."""

    def __init__(self, config: Config) -> None:
        if config.input_mode not in INPUT_MODES:
            raise InputError(f"Input mode (-mode) {config.input_mode} not recognized")
        self.config = config
        self.providers: list[_Source] = []
        self.encoders: dict[str, _EncoderChain] = {}
        self.position = 0
        self._msb_iterator = 0
        errors: list[Exception] = []
        for provider in config.input_providers:
            try:
                self.add_provider(provider)
            except InputError as exc:
                errors.append(exc)
        if errors:
            raise InputError("\n".join(str(e) for e in errors), errors)

    @property
    def _combinatorial(self) -> bool:
        return self.config.input_mode in ("clusterbomb", "sniper")

    def add_provider(self, provider: InputProviderConfig) -> None:
        """Create and register the source described by provider."""
        if provider.name == "command":
            self.providers.append(
                CommandInput(provider.keyword, provider.value, self.config)
            )
        else:
            try:
                source = WordlistInput(provider.keyword, provider.value, self.config)
            except OSError as exc:
                raise InputError(str(exc), [exc]) from exc
            self.providers.append(source)
        if provider.encoders:
            names = provider.encoders.strip().split(" ")
            self.encoders[provider.keyword] = _EncoderChain(names)

    def activate_keywords(self, keywords: list[str]) -> None:
        """Enable sources whose keyword is listed and disable the rest."""
        for source in self.providers:
            if source.keyword in keywords:
                source.enable()
            else:
                source.disable()

    def keywords(self) -> list[str]:
        return [source.keyword for source in self.providers]

    def advance(self) -> bool:
        """Move to the next combination; False when all are used up."""
        if self.position >= self.total():
            return False
        self.position += 1
        return True

    def value(self) -> dict[str, bytes]:
        """Return the keyword-to-input mapping for the current combination."""
        if self._combinatorial:
            values = self._clusterbomb_value()
        elif self.config.input_mode == "pitchfork":
            values = self._pitchfork_value()
        else:
            values = {}
        for key, raw in values.items():
            chain = self.encoders.get(key)
            if chain is None:
                continue
            try:
                values[key] = chain.encode(raw)
            except ValueError as exc:
                print(f"ERROR: {exc}")
                values[key] = b""
        return values

    def reset(self) -> None:
        for source in self.providers:
            source.reset_position()
        self.position = 0
        self._msb_iterator = 0

    def total(self) -> int:
        """Return the number of input combinations available."""
        active = [s for s in self.providers if s.active]
        if self.config.input_mode == "pitchfork":
            return max((s.total() for s in active), default=0)
        if self._combinatorial:
            count = 1
            for source in active:
                count *= source.total()
            return count
        return 0

    def set_position(self, pos: int) -> None:
        """Move the provider to a given position."""
        if self._combinatorial:
            self.reset()
            if pos > self.total():
                return
            while self.position < pos - 1:
                self.advance()
                self.value()
        else:
            for source in self.providers:
                source.position = pos

    def _pitchfork_value(self) -> dict[str, bytes]:
        values: dict[str, bytes] = {}
        for source in self.providers:
            if not source.active:
                continue
            if not source.has_next():
                source.reset_position()
            values[source.keyword] = source.value()
            source.increment_position()
        return values

    def _clusterbomb_value(self) -> dict[str, bytes]:
        while True:
            values = self._clusterbomb_attempt()
            if values is not None:
                return values

    def _clusterbomb_attempt(self) -> dict[str, bytes] | None:
        values: dict[str, bytes] = {}
        signal_next = False
        first = True
        active = (s for s in self.providers if s.active)
        for index, source in enumerate(active):
            if signal_next:
                source.increment_position()
                signal_next = False
            if not source.has_next():
                if index == self._msb_iterator:
                    self._msb_iterator += 1
                    self._clusterbomb_iterator_reset()
                    return None
                source.reset_position()
                signal_next = True
            values[source.keyword] = source.value()
            if first:
                source.increment_position()
                first = False
        return values

    def _clusterbomb_iterator_reset(self) -> None:
        active = (s for s in self.providers if s.active)
        for index, source in enumerate(active):
            if index < self._msb_iterator:
                source.reset_position()
            if index == self._msb_iterator:
                source.increment_position()