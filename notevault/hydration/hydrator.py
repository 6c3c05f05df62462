"""Image marker hydration for note bodies."""

import re
from dataclasses import dataclass
from html import escape
from html.parser import HTMLParser
from typing import List, Optional, Sequence

from loguru import logger

from notevault.exceptions import NoResolvableReferences

MARKER_TAG = "img"
PATH_ATTRIBUTE = "data-note-path"
URL_ATTRIBUTE = "src"

# Attributes inside a single start tag, scanned the way html.parser does.
_ATTRIBUTE_PATTERN = re.compile(
    r"""(?P<name>[^\s/>][^\s/=>]*)"""
    r"""(?:\s*=+\s*(?P<value>'[^']*'|"[^"]*"|(?!['"])[^>\s]*))?"""
)
_TAG_NAME_PATTERN = re.compile(r"<\s*[a-zA-Z][^\s/>]*")


@dataclass(frozen=True)
class ImageMarker:
    """An image element found in a body.

    Attributes:
        path: Value of the path identifier attribute.
        start: Offset of the start tag in the body.
        raw: The start tag exactly as written in the body.
    """

    path: str
    start: int
    raw: str

    @property
    def end(self) -> int:
        return self.start + len(self.raw)


class _MarkerParser(HTMLParser):
    """Collects image start tags carrying a path identifier."""

    def __init__(self, body: str) -> None:
        super().__init__(convert_charrefs=True)
        self.markers: List[ImageMarker] = []
        self._line_offsets = [0]
        for line in body.split("\n")[:-1]:
            self._line_offsets.append(self._line_offsets[-1] + len(line) + 1)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        if tag != MARKER_TAG:
            return
        path = next((value for name, value in attrs if name == PATH_ATTRIBUTE), None)
        if not path:
            return
        raw = self.get_starttag_text()
        if raw is None:
            return
        line, column = self.getpos()
        start = self._line_offsets[line - 1] + column
        self.markers.append(ImageMarker(path=path, start=start, raw=raw))


def _find_markers(body: str) -> List[ImageMarker]:
    parser = _MarkerParser(body)
    parser.feed(body)
    parser.close()
    return parser.markers


def _replace_url(tag: str, url: str) -> str:
    """Return ``tag`` with its URL attribute set to ``url``.

    Only the value of the first URL attribute changes. A tag without one gets it
    inserted right after the tag name.
    """
    quoted = f'"{escape(url, quote=True)}"'
    name_match = _TAG_NAME_PATTERN.match(tag)
    start = name_match.end() if name_match else 0
    for match in _ATTRIBUTE_PATTERN.finditer(tag, start):
        if match.group("name").lower() != URL_ATTRIBUTE:
            continue
        if match.group("value") is None:
            return f"{tag[: match.end('name')]}={quoted}{tag[match.end('name') :]}"
        return f"{tag[: match.start('value')]}{quoted}{tag[match.end('value') :]}"
    return f"{tag[:start]} {URL_ATTRIBUTE}={quoted}{tag[start:]}"


def _url_map(paths: Sequence[str], resolved_urls: Sequence[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for index, path in enumerate(paths):
        url = resolved_urls[index] if index < len(resolved_urls) else ""
        if path and url:
            mapping[path] = url
    return mapping


def _substitute(body: str, mapping: Optional[dict[str, str]]) -> str:
    """Replace marker URLs from ``mapping``, or clear all of them when it is None."""
    parts: List[str] = []
    cursor = 0
    for marker in _find_markers(body):
        url = "" if mapping is None else mapping.get(marker.path)
        if url is None:
            continue
        parts.append(body[cursor : marker.start])
        parts.append(_replace_url(marker.raw, url))
        cursor = marker.end
    parts.append(body[cursor:])
    return "".join(parts)


class ReferenceHydrator:
    """Keeps image markers in a note body pointing at valid URLs.

    Markers look like ``<img data-note-path="owner/note/id.png" src="...">``.
    The path identifier is permanent; the ``src`` URL is temporary and is
    rewritten from freshly issued URLs every time the body is read.
    """

    @staticmethod
    def extract_paths(body: str, *, unique: bool = False) -> List[str]:
        """Extract path identifiers of all image markers in document order.

        Args:
            body: HTML note body.
            unique: Drop repeated paths, keeping the first occurrence.

        Returns:
            List of path identifiers.
        """
        paths = [marker.path for marker in _find_markers(body)]
        if unique:
            return list(dict.fromkeys(paths))
        return paths

    @staticmethod
    def rewrite(
        body: str,
        paths: Sequence[str],
        resolved_urls: Sequence[str],
        *,
        strict: bool = False,
    ) -> str:
        """Point image markers at their resolved URLs.

        ``resolved_urls`` is aligned by index with ``paths``; empty or missing
        entries mean the path could not be resolved and its markers are left as
        they are. Only the URL attribute of matching markers changes, so running
        the rewrite again on its own output gives the same result.

        Args:
            body: HTML note body.
            paths: Path identifiers to resolve.
            resolved_urls: URL for each path, or an empty string.
            strict: Raise when paths were given but none of them has a URL.

        Returns:
            The rewritten body.

        Raises:
            NoResolvableReferences: In strict mode, if every URL is empty.
        """
        mapping = _url_map(paths, resolved_urls)
        if not mapping:
            if strict and paths:
                raise NoResolvableReferences(list(paths))
            return body

        rewritten = _substitute(body, mapping)
        logger.debug(f"Rewrote image markers for {len(mapping)} resolved path(s)")
        return rewritten

    @staticmethod
    def clear_urls(body: str) -> str:
        """Empty the URL attribute of every image marker.

        Signed URLs expire, so bodies are stored without them and rehydrated on
        every read.
        """
        return _substitute(body, None)

    @classmethod
    def unresolved_paths(
        cls, body: str, paths: Sequence[str], resolved_urls: Sequence[str]
    ) -> List[str]:
        """Paths referenced in ``body`` that have no resolved URL."""
        mapping = _url_map(paths, resolved_urls)
        return [path for path in cls.extract_paths(body, unique=True) if path not in mapping]

    @staticmethod
    def build_marker(path: str, url: str, alt: str = "Attached image") -> str:
        """Build the paragraph snippet embedding an uploaded image."""
        return (
            f'<p><img src="{escape(url, quote=True)}" '
            f'{PATH_ATTRIBUTE}="{escape(path, quote=True)}" '
            f'alt="{escape(alt, quote=True)}" /></p>'
        )


def rewrite(body: str, paths: Sequence[str], resolved_urls: Sequence[str]) -> str:
    return ReferenceHydrator.rewrite(body, paths, resolved_urls)


def extract_paths(body: str, *, unique: bool = False) -> List[str]:
    return ReferenceHydrator.extract_paths(body, unique=unique)
