"""HTTP runner that prepares fuzzed requests and executes them."""

from __future__ import annotations

import gzip
import string
import warnings
import zlib
from datetime import timedelta
from urllib.parse import urlsplit

import brotli
import requests
from requests.adapters import HTTPAdapter

from .models import Config, Request, Response

# Bodies larger than this are not downloaded.
MAX_DOWNLOAD_SIZE = 5242880

VERSION = "2.1.0"
USER_AGENT = f"Fuzz Faster U Fool v{VERSION}"

_TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")


def canonical_header_key(key: str) -> str:
    """Return the canonical form of a header name, e.g. "content-type" -> "Content-Type".

    Names holding characters that are not valid in a header name are returned unchanged.
    """
    if any(char not in _TOKEN_CHARS for char in key):
        return key
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def count_words(data: bytes) -> int:
    """Count space separated words the way responses are measured."""
    return len(data.split(b" "))


def count_lines(data: bytes) -> int:
    """Count newline separated lines the way responses are measured."""
    return len(data.split(b"\n"))


def _decode_body(body: bytes, encoding: str) -> bytes | None:
    """Undo a content encoding; None when the body cannot be decoded."""
    try:
        if encoding == "gzip":
            if not body.startswith(b"\x1f\x8b"):
                return body
            return gzip.decompress(body)
        if encoding == "br":
            return brotli.decompress(body)
        if encoding == "deflate":
            return zlib.decompress(body, -zlib.MAX_WBITS)
    except (OSError, EOFError, zlib.error, brotli.error):
        return None
    return body


def _dump_request(prepared: requests.PreparedRequest) -> bytes:
    parts = urlsplit(prepared.url or "")
    target = parts.path or "/"
    if parts.query:
        target += "?" + parts.query
    host = prepared.headers.get("Host", parts.netloc)
    lines = [f"{prepared.method} {target} HTTP/1.1", f"Host: {host}"]
    lines.extend(
        f"{name}: {value}"
        for name, value in prepared.headers.items()
        if name.lower() != "host"
    )
    body = prepared.body or b""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + body


def _header_lists(http_response: requests.Response) -> dict[str, list[str]]:
    raw_headers = http_response.raw.headers
    return {canonical_header_key(k): list(raw_headers.getlist(k)) for k in raw_headers}


def _dump_response(
    http_response: requests.Response, headers: dict[str, list[str]], body: bytes
) -> bytes:
    version = "1.0" if getattr(http_response.raw, "version", 11) == 10 else "1.1"
    status = f"HTTP/{version} {http_response.status_code} {http_response.reason or ''}"
    lines = [status.rstrip()]
    lines.extend(f"{name}: {value}" for name, values in headers.items() for value in values)
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + body


class SimpleRunner:
    """Sends requests one at a time over a shared HTTP session."""

    def __init__(self, config: Config, replay: bool = False) -> None:
        self.config = config
        proxy = config.replay_proxy_url if replay else config.proxy_url
        self._proxies = {"http": proxy, "https": proxy} if proxy else {}
        session = requests.Session()
        session.headers.clear()
        session.verify = False
        if config.client_cert and config.client_key:
            session.cert = (config.client_cert, config.client_key)
        adapter = HTTPAdapter(pool_connections=1000, pool_maxsize=500)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        self.session = session

    def prepare(self, inputs: dict[str, bytes], base_request: Request) -> Request:
        """Return a copy of base_request with every keyword replaced by its input."""
        request = base_request.copy()
        for keyword, item in inputs.items():
            text = item.decode("utf-8", errors="surrogateescape")
            request.method = request.method.replace(keyword, text)
            request.headers = {
                canonical_header_key(name.replace(keyword, text)): value.replace(
                    keyword, text
                )
                for name, value in request.headers.items()
            }
            request.url = request.url.replace(keyword, text)
            request.data = request.data.replace(keyword.encode("utf-8"), item)
        request.input = dict(inputs)
        return request

    def _prepared(self, request: Request) -> requests.PreparedRequest:
        request.headers.setdefault("User-Agent", USER_AGENT)
        if "Host" in request.headers:
            request.host = request.headers["Host"]
        else:
            request.host = urlsplit(request.url).netloc.rpartition("@")[2]
        outgoing = requests.Request(
            method=request.method,
            url=request.url,
            headers=dict(request.headers),
            data=request.data or None,
        )
        prepared = self.session.prepare_request(outgoing)
        if self.config.raw:
            prepared.url = request.url
        return prepared

    def execute(self, request: Request) -> Response:
        """Send the request and measure the response.

        Transport errors propagate as requests exceptions.
        """
        prepared = self._prepared(request)
        raw_request = _dump_request(prepared) if self.config.output_directory else b""
        settings = self.session.merge_environment_settings(
            prepared.url, dict(self._proxies), True, False, None
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            http_response = self.session.send(
                prepared,
                allow_redirects=self.config.follow_redirects,
                timeout=self.config.timeout or None,
                **settings,
            )
        try:
            headers = _header_lists(http_response)
            response = Response(
                status_code=http_response.status_code,
                headers=headers,
                content_type=http_response.headers.get("Content-Type", ""),
                request=request,
            )
            try:
                size: int | None = int(http_response.headers.get("Content-Length", ""))
            except ValueError:
                size = None
            if size is not None:
                response.content_length = size
                if self.config.ignore_body or size > MAX_DOWNLOAD_SIZE:
                    response.cancelled = True
                    return response

            try:
                body = http_response.raw.read(decode_content=False) or b""
                complete = True
            except Exception:  # a broken body leaves the response without data
                body = b""
                complete = False

            if self.config.output_directory:
                request.raw = raw_request.decode("utf-8", errors="replace")
                response.raw = _dump_response(http_response, headers, body).decode(
                    "utf-8", errors="replace"
                )

            if complete:
                encoding = http_response.headers.get("Content-Encoding", "")
                decoded = _decode_body(body, encoding)
                if decoded is not None:
                    response.content_length = len(decoded)
                    response.data = decoded
        finally:
            http_response.close()

        response.content_words = count_words(response.data)
        response.content_lines = count_lines(response.data)
        response.duration = http_response.elapsed // timedelta(microseconds=1) * 1000
        return response

    def dump(self, request: Request) -> bytes:
        """Return the raw bytes of the request as it would be sent."""
        return _dump_request(self._prepared(request))