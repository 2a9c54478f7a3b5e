"""단일 텍스트 챕터 분할 테스트"""
import re
from novel_backend.ingestion.chapter_splitter import (
    BoundaryPattern,
    ChapterSplitter,
    find_number_gaps,
    sort_chapters,
    validate_chapters,
)
from novel_backend.ingestion.models import ParsedChapterDraft, WarningKind, count_words

# 56단어, 한 줄 120자 초과 (본문 문장)
PROSE = (
    "The rain fell on the old city while the guards walked the walls and watched the dark road. "
    "Nobody came that night, and the captain said nothing as the lamps burned low. "
    "Somewhere below the gate a dog barked twice, then the silence returned and stayed "
    "until the grey light of morning crept over the hills."
)


def test_zero_markers_returns_empty_list():
    assert ChapterSplitter().split_into_chapters(PROSE + "\n\n" + PROSE) == []
    assert ChapterSplitter().split_into_chapters("") == []


def test_gap_in_numbering_is_preserved():
    """Chapter 2가 없으면 1, 3 그대로 유지"""
    text = f"Chapter 1\n\n{PROSE}\n\nChapter 3\n\n{PROSE} {PROSE}"

    chapters = ChapterSplitter().split_into_chapters(text)

    assert [ch.number for ch in chapters] == [1, 3]
    assert chapters[0].title == "Chapter 1"
    assert chapters[0].content.startswith("Chapter 1")
    assert not any(ch.matched for ch in chapters)


def test_short_segments_are_dropped():
    """대사 속 가짜 경계가 1단어 챕터가 되지 않음"""
    text = (
        f"Chapter 1\n{PROSE}\n"
        "...he said, 'Chapter 5 was the hardest,' she replied.\n"
        "Chapter 5\nwas the hardest.\n"
        f"Chapter 2\n{PROSE}\n"
    )

    chapters = ChapterSplitter().split_into_chapters(text)

    assert [ch.number for ch in chapters] == [1, 2]
    assert all(count_words(ch.content) >= 50 for ch in chapters)


def test_titles_extracted_from_marker_line():
    text = f"Chapter 1: Rainfall\n{PROSE}\nChapter 2 - The Hollow Crown\n{PROSE}"

    chapters = ChapterSplitter().split_into_chapters(text)

    assert [ch.title for ch in chapters] == ["Rainfall", "The Hollow Crown"]


def test_windows_line_endings():
    text = f"Chapter 1\r\n{PROSE}\r\nChapter 2\r\n{PROSE}\r\n"

    assert [ch.number for ch in ChapterSplitter().split_into_chapters(text)] == [1, 2]


def test_pattern_with_most_matches_wins():
    """'1. ...' 목록 한 줄보다 'Ch.' 표시 세 개가 우선"""
    text = (
        f"1. Preface notes\n{PROSE}\n"
        f"Ch. 1\n{PROSE}\nCh. 2\n{PROSE}\nCh. 3\n{PROSE}\n"
    )
    splitter = ChapterSplitter()

    pattern, matches = splitter.select_pattern(text)

    assert pattern.name == "short"
    assert len(matches) == 3
    assert [ch.number for ch in splitter.split_into_chapters(text)] == [1, 2, 3]


def test_decorated_markers():
    text = f"=== Chapter 1 ===\n{PROSE}\n=== Chapter 2 ===\n{PROSE}"

    chapters = ChapterSplitter().split_into_chapters(text)

    assert [ch.number for ch in chapters] == [1, 2]


def test_custom_patterns_and_min_words():
    pattern = BoundaryPattern("part", re.compile(r"^Part\s+(\d+)$", re.MULTILINE))
    splitter = ChapterSplitter(patterns=[pattern], min_words=3)

    chapters = splitter.split_into_chapters("Part 1\none two three\nPart 2\nfour five six")

    assert [ch.number for ch in chapters] == [1, 2]


def test_validate_chapters_reports_duplicates_and_gaps():
    chapters = [
        ParsedChapterDraft(number=1, title="A", content="text"),
        ParsedChapterDraft(number=1, title="B", content="text"),
        ParsedChapterDraft(number=4, title="C", content=""),
    ]

    report = validate_chapters(chapters)

    assert report.has(WarningKind.DUPLICATE_NUMBERS)
    assert report.has(WarningKind.NUMBERING_GAP)
    assert report.has(WarningKind.EMPTY_CONTENT)
    gap = next(w for w in report.warnings if w.kind == WarningKind.NUMBERING_GAP)
    assert gap.numbers == [1]


def test_validate_chapters_empty():
    assert validate_chapters([]).has(WarningKind.NO_CHAPTERS)


def test_validate_chapters_clean():
    chapters = [ParsedChapterDraft(number=n, title="T", content="text") for n in (1, 2, 3)]

    assert validate_chapters(chapters).valid


def test_find_number_gaps():
    assert find_number_gaps([1, 2, 5, 6, 9]) == [2, 6]
    assert find_number_gaps([3, 1, 2]) == []


def test_sort_chapters():
    chapters = [ParsedChapterDraft(number=n, title="T") for n in (3, 1, 2)]

    assert [ch.number for ch in sort_chapters(chapters)] == [1, 2, 3]
