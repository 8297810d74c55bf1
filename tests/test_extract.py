"""
Tests for chat field extraction and script segmentation.
"""

import pytest

from scriptwatch.monitor.extract import (
    SEGMENT_NAMES,
    extract_company_basic_info,
    extract_export_fields,
    extract_section_body,
    extract_titles,
    find_segment_headers,
    split_script_by_sections,
    strip_html,
)

from conftest import make_message


def test_split_three_ordered_segments():
    text = "プロット①（受付突破）\nA\nプロット②（営業対象者との通話）\nB\n想定Q&A\nC"

    segments = split_script_by_sections(text)

    assert list(segments) == list(SEGMENT_NAMES)
    assert segments["plot_1"] == "\nA\n"
    assert segments["plot_2"] == "\nB\n"
    assert segments["qa"] == "\nC"
    assert segments["plot_3"] == segments["plot_4"] == segments["plot_5"] == ""


@pytest.mark.parametrize("text", [
    "プロット ① \nA\nプロット　②\nB\n想定 Q & A\nC",
    "■プロット1\nA\n■プロット2\nB\n■想定Q&A集\nC",
    "【プロット①：受付】\nA\n【プロット②：本題】\nB\n【想定Q&A】\nC",
    "## プロット１\nA\n## プロット２\nB\n## Ｑ＆Ａ集\nC",
])
def test_split_tolerates_header_variants(text):
    segments = split_script_by_sections(text)

    assert tuple(segments[name].strip() for name in ("plot_1", "plot_2", "qa")) == ("A", "B", "C")


def test_split_is_deterministic():
    text = "プロット①\nA\nプロット②\nB\nプロット③\nC\n想定Q&A\nD"
    assert split_script_by_sections(text) == split_script_by_sections(text)


def test_split_without_headers_is_empty():
    assert split_script_by_sections("ただの文章") == {name: "" for name in SEGMENT_NAMES}
    assert split_script_by_sections("") == {name: "" for name in SEGMENT_NAMES}


def test_plot_ten_is_not_plot_one():
    segments = split_script_by_sections("プロット10\nX\nプロット①\nA")
    assert segments["plot_1"] == "\nA"


@pytest.mark.parametrize("text", [
    "プロット①  本文A  プロット②\n本文B\n想定Q&A 本文C ",
    "前置き\n■ プロット１\n 本文A\n\n## プロット２\t本文B\n【想定Q&A】\n本文C\n",
])
def test_headers_and_segments_rebuild_the_text(text):
    headers = find_segment_headers(text)
    segments = split_script_by_sections(text)

    rebuilt = text[:headers[0].start] + "".join(
        text[h.start:h.end] + segments[h.name] for h in headers
    )

    assert rebuilt == text
    assert segments["qa"].strip() == "本文C"


def test_header_match_excludes_leading_whitespace():
    text = "プロット①  本文A  プロット②\n本文B"

    plot_2 = next(h for h in find_segment_headers(text) if h.name == "plot_2")

    assert text[plot_2.start:plot_2.end] == "プロット②"
    assert split_script_by_sections(text)["plot_1"] == "  本文A  "


def test_strip_html_keeps_line_breaks():
    assert strip_html("a<br>b<br/>c</p><span>d</span>&nbsp;&lt;x&gt;") == "a\nb\nc\nd <x>"


def test_section_body_prefers_newest_message():
    messages = [
        make_message(1, "■商材情報\n古い商材"),
        make_message(2, "■商材情報\n新しい商材\n■トーク情報(着地)\n着地"),
    ]

    assert extract_section_body(messages, "■商材情報") == "新しい商材"
    assert extract_section_body(messages, "■リスト情報") == ""


def test_titles_use_first_line_or_defaults():
    messages = [make_message(1, "■基本情報\n\n株式会社テスト\n大阪府\n■リスト情報\n製造業リスト")]

    assert extract_titles(messages) == ("株式会社テスト", "製造業リスト")
    assert extract_titles([make_message(2, "雑談")]) == ("無題", "default")


def test_company_basic_info_last_match_wins():
    messages = [
        make_message(1, "■基本情報 株式会社旧名\n■企業URL https://old.example.jp"),
        make_message(2, "■基本情報<br>株式会社新名"),
    ]

    assert extract_company_basic_info(messages) == ("株式会社新名", "https://old.example.jp")


def test_export_fields_fall_back_to_title_for_company_name():
    messages = [make_message(1, "■リスト情報\nリストA")]

    fields = extract_export_fields(messages)

    assert fields.document_title == "無題"
    assert fields.sheet_title == "リストA"
    assert fields.company_name == "無題"
    assert fields.send_time == messages[0].send_time
