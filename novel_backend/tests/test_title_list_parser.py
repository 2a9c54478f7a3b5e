"""제목 목록 파서 테스트"""
from novel_backend.ingestion.models import WarningKind
from novel_backend.ingestion.title_list_parser import (
    extract_chapter_number,
    match_chapters_with_titles,
    parse_title_list,
    parse_titles_for_preview,
    strip_chapter_prefix,
    validate_title_list,
)


def test_duplicate_numbers_last_line_wins():
    """같은 번호는 하나로 합쳐지고 마지막 줄이 우선"""
    text = "Chapter 1: Dawn\nChapter 1: Dawn Reprise\nChapter 2: Dusk"

    assert parse_title_list(text) == {1: "Dawn Reprise", 2: "Dusk"}


def test_separator_variants():
    text = "\n".join([
        "Chapter 1: The Beginning",
        "Chapter 2 - The Middle",
        "Ch. 3 The End",
        "chapter 4 – Epilogue",
    ])

    mapping = parse_title_list(text)

    assert mapping == {1: "The Beginning", 2: "The Middle", 3: "The End", 4: "Epilogue"}


def test_lines_without_marker_are_skipped():
    text = "Table of contents\n\nChapter 7: Found\nrandom note\r\nChapter 9: Also Found\r\n"

    assert parse_title_list(text) == {7: "Found", 9: "Also Found"}


def test_no_matching_lines_returns_empty_mapping():
    assert parse_title_list("nothing here\njust notes") == {}
    assert parse_title_list("") == {}


def test_marker_only_line_keeps_original_line():
    assert strip_chapter_prefix("Chapter 12") == "Chapter 12"
    assert parse_title_list("Chapter 12") == {12: "Chapter 12"}


def test_extract_chapter_number():
    assert extract_chapter_number("Chapter 5: Title") == 5
    assert extract_chapter_number("Ch.12 Title") == 12
    assert extract_chapter_number("Prologue") is None


def test_parse_titles_for_preview_sorted():
    entries = parse_titles_for_preview("Chapter 3: C\nChapter 1: A\nChapter 2: B")

    assert [e.chapter_number for e in entries] == [1, 2, 3]
    assert entries[0].title == "A"
    assert entries[0].original_line == "Chapter 1: A"


def test_match_chapters_with_titles():
    drafts = match_chapters_with_titles(3, {1: "Dawn", 3: "Dusk"})

    assert [(d.number, d.title, d.matched) for d in drafts] == [
        (1, "Dawn", True),
        (2, "Chapter 2", False),
        (3, "Dusk", True),
    ]


def test_validate_title_list_missing_titles():
    report = validate_title_list({1: "A"}, 3)

    assert report.has(WarningKind.MISSING_TITLES)
    missing = next(w for w in report.warnings if w.kind == WarningKind.MISSING_TITLES)
    assert missing.numbers == [2, 3]


def test_validate_title_list_extra_titles():
    report = validate_title_list({1: "A", 2: "B", 3: "C"}, 2)

    assert report.has(WarningKind.EXTRA_TITLES)
    assert not report.has(WarningKind.MISSING_TITLES)


def test_validate_title_list_empty_mapping():
    report = validate_title_list({}, 2)

    assert report.has(WarningKind.EMPTY_TITLE_LIST)
    assert report.has(WarningKind.MISSING_TITLES)


def test_validate_title_list_exact_count_is_valid():
    assert validate_title_list({1: "A", 2: "B"}, 2).valid
