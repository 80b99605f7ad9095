"""Character encoding rules for DGII e-CF documents.

Two independent encodings live here: numeric character references for XML
text content, and a fixed percent-encoding table for text embedded in QR
payloads. All functions are total over strings and never raise.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

XML_ESCAPE_MAP = {
    '"': "&#34;",
    "&": "&#38;",
    "'": "&#39;",
    "<": "&#60;",
    ">": "&#62;",
}

# DGII catalog for QR payload text. Narrower than RFC 3986 on purpose:
# letters, digits and ~ % { | } pass through untouched.
URL_ENCODE_MAP = {
    " ": "%20",
    "!": "%21",
    '"': "%22",
    "#": "%23",
    "$": "%24",
    "&": "%26",
    "'": "%27",
    "(": "%28",
    ")": "%29",
    "*": "%2A",
    "+": "%2B",
    ",": "%2C",
    "-": "%2D",
    ".": "%2E",
    "/": "%2F",
    ":": "%3A",
    ";": "%3B",
    "<": "%3C",
    "=": "%3D",
    ">": "%3E",
    "?": "%3F",
    "@": "%40",
    "[": "%5B",
    "]": "%5D",
    "\\": "%5C",
    "^": "%5E",
    "_": "%5F",
    "`": "%60",
}

_XML_SPECIAL = re.compile(r"[&<>\"']")
_URL_SPECIAL = re.compile("[" + re.escape("".join(URL_ENCODE_MAP)) + "]")

# An ampersand that does not start a character or entity reference
_UNESCAPED_XML = re.compile(r"&(?!#[0-9]+;|#x[0-9A-Fa-f]+;|[A-Za-z][A-Za-z0-9]*;)|[<>\"']")

_TAG_NAME = r"[A-Za-z_][\w.:-]*"
_EMPTY_PAIR = re.compile(rf"<({_TAG_NAME})(?:\s[^<>]*)?></\1>")
_SELF_CLOSING = re.compile(rf"<({_TAG_NAME})(?:\s[^<>]*)?/>")
_BLANK_LINES = re.compile(r"\s*\n\s*\n")
_TEXT_NODE = re.compile(r">([^<]+)<")


@dataclass(frozen=True)
class ContentValidation:
    is_valid: bool
    invalid_characters: tuple[str, ...] = ()


@dataclass(frozen=True)
class EmptyTagValidation:
    is_valid: bool
    empty_tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class CleanedXML:
    is_valid: bool
    cleaned_xml: str
    errors: tuple[str, ...] = ()


def _distinct(values) -> tuple[str, ...]:
    """Distinct values in order of first appearance."""
    return tuple(dict.fromkeys(values))


def escape_xml_characters(text: str) -> str:
    """Replace & < > " ' with decimal numeric character references.

    Single-pass substitution, so an inserted reference is never re-escaped.
    Empty input is returned unchanged.
    """
    if not text:
        return text
    return _XML_SPECIAL.sub(lambda m: XML_ESCAPE_MAP[m.group()], text)


def encode_for_url(text: str) -> str:
    """Percent-encode the DGII QR punctuation catalog (URL_ENCODE_MAP only)."""
    if not text:
        return text
    return _URL_SPECIAL.sub(lambda m: URL_ENCODE_MAP[m.group()], text)


def validate_xml_content(text: str) -> ContentValidation:
    """Find unescaped XML special characters in a text value.

    An ampersand that begins a character or entity reference counts as
    escaped, so the output of escape_xml_characters always validates.
    """
    found = _distinct(m.group()[0] for m in _UNESCAPED_XML.finditer(text or ""))
    return ContentValidation(is_valid=not found, invalid_characters=found)


def validate_url_content(text: str) -> ContentValidation:
    """Find characters from the QR catalog that were not percent-encoded."""
    found = _distinct(m.group() for m in _URL_SPECIAL.finditer(text or ""))
    return ContentValidation(is_valid=not found, invalid_characters=found)


def remove_empty_tags(xml_text: str) -> str:
    """Strip <tag></tag> and <tag/> elements, then collapse blank lines.

    Repeats until nothing changes, so the result is a fixed point. Only
    literally adjacent pairs count as empty: a container whose remaining
    content is whitespace, as in an indented document, is kept.
    """
    if not xml_text:
        return xml_text
    previous = None
    cleaned = xml_text
    while cleaned != previous:
        previous = cleaned
        cleaned = _EMPTY_PAIR.sub("", cleaned)
        cleaned = _SELF_CLOSING.sub("", cleaned)
        cleaned = _BLANK_LINES.sub("\n", cleaned)
    return cleaned


def validate_no_empty_tags(xml_text: str) -> EmptyTagValidation:
    """Report the distinct names of empty elements, paired form first."""
    text = xml_text or ""
    names = [m.group(1) for m in _EMPTY_PAIR.finditer(text)]
    names += [m.group(1) for m in _SELF_CLOSING.finditer(text)]
    found = _distinct(names)
    return EmptyTagValidation(is_valid=not found, empty_tags=found)


def prepare_for_xml(text: str) -> str:
    if not text:
        return text
    return escape_xml_characters(text.strip())


def prepare_for_qr_code(text: str) -> str:
    if not text:
        return text
    return encode_for_url(text.strip())


def validate_and_clean_xml(xml_text: str) -> CleanedXML:
    """Check a whole document for empty tags and unescaped text content.

    Empty tags are removed from the returned document when found. Content
    checks only look at text nodes, since markup itself is made of < > and
    quotes. The cleaned document is always returned, valid or not.
    """
    errors: list[str] = []
    cleaned = xml_text

    empty = validate_no_empty_tags(xml_text)
    if not empty.is_valid:
        errors.append(f"Tags vacíos encontrados: {', '.join(empty.empty_tags)}")
        cleaned = remove_empty_tags(cleaned)

    text_nodes = "".join(m.group(1) for m in _TEXT_NODE.finditer(xml_text or ""))
    content = validate_xml_content(text_nodes)
    if not content.is_valid:
        errors.append(f"Caracteres XML no escapados: {', '.join(content.invalid_characters)}")

    return CleanedXML(is_valid=not errors, cleaned_xml=cleaned, errors=tuple(errors))
