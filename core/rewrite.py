"""HTML rewriting: <base> injection and same-origin anchor rewriting.

Works on raw markup with a small start-tag tokenizer instead of a DOM parse,
so everything outside the touched attribute values is emitted byte-for-byte.
"""

import html
import re
from collections.abc import Iterator
from dataclasses import dataclass
from urllib.parse import quote, urljoin, urlsplit

from core.request_types import RewriteContext

# Start tags. A quote only opens a value right after '=', so quoted values
# may contain '>' while a stray quote (title=it's) stays part of its value.
TAG_PATTERN = re.compile(
    r"<!--.*?(?:-->|\Z)"
    r"|<(?P<name>[a-zA-Z][^\s/>]*)"
    r"(?P<attrs>(?:\s+|/|[^\s\"'>/=]++(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>]*))?|[\"'=])*+)>",
    re.DOTALL,
)
ATTR_PATTERN = re.compile(
    r"(?P<key>[^\s\"'>/=]+)"
    r"(?:\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<uq>[^\s>]+)))?"
)
# Elements whose content is raw text, never markup
RAW_TEXT_ELEMENTS = frozenset({"script", "style", "textarea", "title"})

SKIPPED_HREF = re.compile(r"^(#|javascript:|mailto:|tel:)", re.IGNORECASE)
DEFAULT_PORTS = {"http": 80, "https": 443}
# Characters encodeURIComponent leaves alone
URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class Attribute:
    name: str
    value: str | None
    start: int
    end: int
    quoted: bool


@dataclass(frozen=True)
class StartTag:
    name: str
    start: int
    end: int
    attributes: tuple[Attribute, ...]

    def get(self, name: str) -> Attribute | None:
        """First attribute called `name`; later duplicates are ignored like browsers do."""
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None


@dataclass(frozen=True)
class RewriteResult:
    html: str
    base_injected: bool
    links_rewritten: int


def iter_start_tags(markup: str) -> Iterator[StartTag]:
    """Yield start tags in document order, skipping comments and raw text."""
    pos = 0
    while True:
        match = TAG_PATTERN.search(markup, pos)
        if match is None:
            return
        pos = match.end()
        if match.group("name") is None:
            continue

        name = match.group("name").lower()
        yield StartTag(
            name=name,
            start=match.start(),
            end=match.end(),
            attributes=tuple(_parse_attributes(markup, match.start("attrs"), match.end("attrs"))),
        )

        if name in RAW_TEXT_ELEMENTS:
            close = re.compile(rf"</{re.escape(name)}\s*>", re.IGNORECASE).search(markup, pos)
            pos = close.end() if close else len(markup)


def _parse_attributes(markup: str, start: int, end: int) -> Iterator[Attribute]:
    for match in ATTR_PATTERN.finditer(markup, start, end):
        for group in ("dq", "sq", "uq"):
            if match.group(group) is not None:
                value_start, value_end = match.span(group)
                yield Attribute(
                    name=match.group("key").lower(),
                    value=match.group(group),
                    start=value_start,
                    end=value_end,
                    quoted=group != "uq",
                )
                break
        else:
            yield Attribute(
                name=match.group("key").lower(),
                value=None,
                start=match.end(),
                end=match.end(),
                quoted=False,
            )


def origin_of(url: str) -> str:
    """scheme://host[:port] with default ports dropped and hosts in IDNA form.

    Raises ValueError when the URL has no scheme/host, an invalid port or a
    host that cannot be IDNA-encoded.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        raise ValueError(f"no origin in {url!r}")
    if not host.isascii():
        host = host.encode("idna").decode("ascii")
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is None or port == DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


class HtmlRewriter:
    """Patch fetched HTML so it keeps working inside the relay's frame."""

    def rewrite(self, markup: str, context: RewriteContext) -> RewriteResult:
        """Inject the <base> tag and, when enabled, rewrite same-origin anchors."""
        edits: list[tuple[int, int, str]] = []
        base_injected = False
        links_rewritten = 0
        base = f"{context.upstream_origin}{context.upstream_path}"

        for tag in iter_start_tags(markup):
            if tag.name == "head" and not base_injected:
                base_tag = f'\n<base href="{html.escape(context.upstream_origin, quote=True)}/" />'
                edits.append((tag.end, tag.end, base_tag))
                base_injected = True
            elif tag.name == "a" and context.rewrite_links:
                href = tag.get("href")
                if href is None or href.value is None:
                    continue
                new_value = self.rewrite_href(href.value, base, context)
                if new_value is None:
                    continue
                escaped = html.escape(new_value, quote=True)
                edits.append((href.start, href.end, escaped if href.quoted else f'"{escaped}"'))
                links_rewritten += 1

        return RewriteResult(
            html=_apply_edits(markup, edits),
            base_injected=base_injected,
            links_rewritten=links_rewritten,
        )

    def rewrite_href(self, raw_href: str, base: str, context: RewriteContext) -> str | None:
        """Relay URL for a same-origin href, or None to leave it untouched."""
        if not raw_href or SKIPPED_HREF.match(raw_href):
            return None

        href = html.unescape(raw_href).strip()
        if not href or SKIPPED_HREF.match(href):
            return None
        if href.startswith(f"{context.relay_endpoint}?"):
            return None

        try:
            absolute = urljoin(base, href)
            if origin_of(absolute) != context.upstream_origin:
                return None
        except ValueError:
            return None

        return f"{context.relay_endpoint}?url={quote(absolute, safe=URI_COMPONENT_SAFE)}"


def _apply_edits(markup: str, edits: list[tuple[int, int, str]]) -> str:
    if not edits:
        return markup
    parts = []
    pos = 0
    for start, end, replacement in sorted(edits, key=lambda edit: edit[0]):
        parts.append(markup[pos:start])
        parts.append(replacement)
        pos = end
    parts.append(markup[pos:])
    return "".join(parts)
