"""URLs as context sources: classification, display names, and guarded retrieval.

Before any connection is opened the host is resolved and every address it
maps to must be globally routable. Only http(s) is fetched, at most three
redirects are followed, and the body is capped and must be textual. HTML is
reduced to readable text with BeautifulSoup and html2text.
"""

from __future__ import annotations

import ipaddress
import socket
import urllib.error
import urllib.parse
import urllib.request

import html2text
from bs4 import BeautifulSoup

from ctxload.errors import LoadIOError

USER_AGENT = "ctxload/0.1"
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
MAX_REDIRECTS = 3

SCHEMES = frozenset({"http", "https"})
TEXT_TYPES = frozenset({"text/html", "text/plain", "text/markdown", "application/json"})

# Elements that carry page chrome rather than content.
_BOILERPLATE = ("head", "script", "style", "noscript", "nav", "footer")

ELLIPSIS = "⋯"


class SsrfError(LoadIOError):
    """The URL's host resolves to an address that is not publicly routable."""


def is_url(value: str) -> bool:
    """True for http(s) URLs with a host; anything else is treated as a path."""
    try:
        parsed = urllib.parse.urlsplit(value)
    except ValueError:
        return False
    return parsed.scheme in SCHEMES and bool(parsed.netloc)


def sanitize_url(url: str) -> str:
    """Drop userinfo, query, and fragment so a URL is safe to print or store as a name."""
    parsed = urllib.parse.urlsplit(url)
    netloc = parsed.netloc.rpartition("@")[2]
    return urllib.parse.urlunsplit((parsed.scheme, netloc, parsed.path, "", ""))


def shorten(name: str, limit: int) -> str:
    """Keep the first and last ``limit // 2`` characters around a midpoint ellipsis."""
    if len(name) <= limit:
        return name
    keep = limit // 2
    return f"{name[:keep]}{ELLIPSIS}{name[-keep:]}"


def fetch_url(url: str, timeout: int = DEFAULT_TIMEOUT, max_bytes: int = DEFAULT_MAX_BYTES) -> str:
    """Fetch *url* and return its content as plain text.

    Raises:
        SsrfError: The host resolves to a private, loopback, or reserved address.
        LoadIOError: Any other reason the page could not be loaded.
    """
    shown = sanitize_url(url)
    parsed = urllib.parse.urlsplit(url)
    if parsed.scheme not in SCHEMES:
        raise LoadIOError(f"Cannot load {shown}: only http:// and https:// URLs are supported.")
    if not parsed.hostname:
        raise LoadIOError(f"Cannot load {shown}: the URL has no hostname.")
    ensure_public_host(parsed.hostname, shown)

    body, media_type, charset = _download(url, shown, timeout, max_bytes)
    text = _decode(body, charset)
    if media_type == "text/html":
        return html_to_text(text)
    return text


def ensure_public_host(hostname: str, shown: str | None = None) -> None:
    """Raise SsrfError unless every address *hostname* resolves to is global."""
    shown = shown or hostname
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror as exc:
        raise LoadIOError(f"Cannot resolve host '{hostname}' for {shown}: {exc}") from exc

    for info in infos:
        try:
            address = ipaddress.ip_address(info[4][0])
        except ValueError:
            continue
        if not address.is_global or address.is_multicast:
            raise SsrfError(
                f"Refusing to load {shown}: '{hostname}' resolves to the non-public "
                f"address {address}."
            )


def html_to_text(html: str) -> str:
    """Strip page chrome and convert the remaining markup to markdown-ish text."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.find_all(_BOILERPLATE):
        element.decompose()
    # HTML2Text keeps parse state on the instance; workers each need their own.
    converter = html2text.HTML2Text()
    converter.body_width = 0
    converter.ignore_images = True
    return converter.handle(str(soup)).strip()


class _RedirectCap(urllib.request.HTTPRedirectHandler):
    max_redirections = MAX_REDIRECTS


def _download(url: str, shown: str, timeout: int, max_bytes: int) -> tuple[bytes, str, str | None]:
    opener = urllib.request.build_opener(_RedirectCap())
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        response = opener.open(request, timeout=timeout)
    except (urllib.error.URLError, OSError) as exc:
        raise LoadIOError(f"Failed to fetch content from URL {shown}: {exc}") from exc

    with response:
        media_type = response.headers.get_content_type()
        if media_type not in TEXT_TYPES:
            raise LoadIOError(
                f"Cannot load {shown}: content type '{media_type}' is not text "
                f"(expected one of {', '.join(sorted(TEXT_TYPES))})."
            )
        charset = response.headers.get_content_charset()
        body = response.read(max_bytes + 1)

    if len(body) > max_bytes:
        raise LoadIOError(f"Cannot load {shown}: response exceeds {max_bytes} bytes.")
    return body, media_type, charset


def _decode(body: bytes, charset: str | None) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")
