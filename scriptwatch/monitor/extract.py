"""
Text Extraction

Pure functions that pull structured fields out of chat messages and
split generated scripts into their plot / Q&A segments.

Chat messages carry order details as "■"-prefixed sections, e.g.

    ■基本情報
    株式会社サンプル
    ■企業URL
    https://example.co.jp

A section body runs from its header to the next "■" (or end of text).
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, NamedTuple, Pattern, Sequence

from .models import Message


# ==================== Section Headers ====================

BASIC_INFO_HEADER = "■基本情報"
LIST_INFO_HEADER = "■リスト情報"
COMPANY_URL_HEADER = "■企業URL"
PRODUCT_INFO_HEADER = "■商材情報"
CLOSING_INFO_HEADER = "■トーク情報(着地)"

SECTION_MARK = "■"

DEFAULT_DOCUMENT_TITLE = "無題"
DEFAULT_SHEET_TITLE = "default"


# ==================== HTML ====================

_BR = re.compile(r"<br\s*/?>(\r?\n)?", re.IGNORECASE)
_BLOCK_END = re.compile(r"</(p|div|li)>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")


def strip_html(html: str) -> str:
    """Convert a MEMBERS message body to plain text, keeping line breaks."""
    text = _BR.sub("\n", html or "")
    text = _BLOCK_END.sub("\n", text)
    text = _TAG.sub("", text)
    return (
        text.replace("&nbsp;", " ")
        .replace("&lt;", "<")
        .replace("&gt;", ">")
    )


# ==================== Chat Sections ====================

def extract_section_body(messages: Sequence[Message], section_header: str) -> str:
    """
    Body of the most recent message section with the given header.

    Messages are searched newest first; the body ends at the next "■".
    Returns an empty string when no message carries the header.
    """
    for message in reversed(messages):
        text = strip_html(message.body)
        index = text.find(section_header)
        if index == -1:
            continue
        from_header = text[index + len(section_header):]
        next_header = from_header.find(SECTION_MARK)
        content = from_header if next_header == -1 else from_header[:next_header]
        return content.strip()
    return ""


def _first_line(text: str) -> str:
    return text.strip().split("\n")[0].strip()


class SheetTitles(NamedTuple):
    """Names used for the exported spreadsheet and its first sheet."""
    document_title: str
    sheet_title: str


def extract_titles(messages: Sequence[Message]) -> SheetTitles:
    """Document title from ■基本情報, sheet title from ■リスト情報."""
    basic_body = extract_section_body(messages, BASIC_INFO_HEADER)
    list_body = extract_section_body(messages, LIST_INFO_HEADER)
    return SheetTitles(
        document_title=_first_line(basic_body) or DEFAULT_DOCUMENT_TITLE,
        sheet_title=_first_line(list_body) or DEFAULT_SHEET_TITLE,
    )


_COMPANY_NAME = re.compile(r"■基本情報\s*([^\n■]+)")
_COMPANY_URL = re.compile(r"■企業URL\s*([^\n■]+)")


def extract_company_basic_info(messages: Iterable[Message]) -> tuple[str, str]:
    """
    Company name and URL from the chat, later messages overriding earlier ones.

    Returns:
        (company_name, company_url), empty strings when absent
    """
    company_name = ""
    company_url = ""

    for message in messages:
        text = strip_html(message.body)

        name_match = _COMPANY_NAME.search(text)
        if name_match:
            company_name = name_match.group(1).strip()

        url_match = _COMPANY_URL.search(text)
        if url_match:
            company_url = url_match.group(1).strip()

    return company_name, company_url


@dataclass
class ExportFields:
    """Everything the export pipeline needs from the chat context."""
    document_title: str = DEFAULT_DOCUMENT_TITLE
    sheet_title: str = DEFAULT_SHEET_TITLE
    basic_info: str = ""
    company_url: str = ""
    product_info: str = ""
    closing_info: str = ""
    company_name: str = ""
    send_time: int | None = None
    segments: dict[str, str] = field(default_factory=dict)


def extract_export_fields(messages: Sequence[Message]) -> ExportFields:
    """Collect all chat-derived export fields in one pass."""
    titles = extract_titles(messages)
    company_name, company_url = extract_company_basic_info(messages)
    return ExportFields(
        document_title=titles.document_title,
        sheet_title=titles.sheet_title,
        basic_info=extract_section_body(messages, BASIC_INFO_HEADER),
        company_url=extract_section_body(messages, COMPANY_URL_HEADER) or company_url,
        product_info=extract_section_body(messages, PRODUCT_INFO_HEADER),
        closing_info=extract_section_body(messages, CLOSING_INFO_HEADER),
        company_name=company_name or titles.document_title,
        send_time=messages[-1].send_time if messages else None,
    )


# ==================== Script Segments ====================
# Each segment has candidate header patterns in priority order; the first
# pattern that matches anywhere in the text wins. Add new formats here.

_DIGITS = {
    1: "[①1１]",
    2: "[②2２]",
    3: "[③3３]",
    4: "[④4４]",
    5: "[⑤5５]",
}

_DECORATION = r"(?:[■#＃*＊]+[ \t　]*)?"
_NOT_MORE_DIGITS = r"(?![0-9０-９])"
_PAREN_NOTE = r"(?:[ \t　]*[（(][^）)\n]*[）)])?"


def _plot_patterns(n: int) -> tuple[Pattern[str], ...]:
    digit = _DIGITS[n] + _NOT_MORE_DIGITS
    return (
        re.compile(rf"【\s*プロット\s*{digit}[^】\n]*】"),
        re.compile(rf"{_DECORATION}プロット\s*{digit}{_PAREN_NOTE}"),
    )


_QA = r"[QＱ]\s*[&＆]\s*[AＡ]"

SEGMENT_PATTERNS: tuple[tuple[str, tuple[Pattern[str], ...]], ...] = (
    ("plot_1", _plot_patterns(1)),
    ("plot_2", _plot_patterns(2)),
    ("plot_3", _plot_patterns(3)),
    ("plot_4", _plot_patterns(4)),
    ("plot_5", _plot_patterns(5)),
    ("qa", (
        re.compile(rf"【\s*想定\s*{_QA}[^】\n]*】"),
        re.compile(rf"{_DECORATION}想定\s*{_QA}集?{_PAREN_NOTE}"),
        re.compile(rf"{_DECORATION}{_QA}集"),
    )),
)

SEGMENT_NAMES: tuple[str, ...] = tuple(name for name, _ in SEGMENT_PATTERNS)


class SegmentMatch(NamedTuple):
    name: str
    start: int
    end: int


def find_segment_headers(text: str) -> list[SegmentMatch]:
    """Matched segment headers, ordered by position in the text."""
    found: list[SegmentMatch] = []
    for name, candidates in SEGMENT_PATTERNS:
        for pattern in candidates:
            match = pattern.search(text)
            if match:
                found.append(SegmentMatch(name, match.start(), match.end()))
                break
    found.sort(key=lambda m: m.start)
    return found


def split_script_by_sections(text: str) -> dict[str, str]:
    """
    Split a generated script into plot 1-5 and Q&A segments.

    Each segment runs from the end of its own header to the start of the
    next matched header, or to the end of the text, untrimmed: the headers
    plus their segments rebuild the original text. Segments whose header
    never appears are empty strings.

    Returns:
        Dict keyed by SEGMENT_NAMES, in that order
    """
    segments = {name: "" for name in SEGMENT_NAMES}
    headers = find_segment_headers(text or "")

    for i, header in enumerate(headers):
        stop = headers[i + 1].start if i + 1 < len(headers) else len(text)
        segments[header.name] = text[header.end:stop] if stop > header.end else ""

    return segments
