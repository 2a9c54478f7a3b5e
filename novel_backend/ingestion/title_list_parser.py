"""
제목 목록(titles.txt) 파서

한 줄에 하나씩 "Chapter 5: 제목" 형태로 적힌 제목 목록을
{챕터 번호: 제목} 매핑으로 변환합니다.
"""

import logging
import re
from typing import Dict, List, Optional

from pydantic import BaseModel

from novel_backend.config.constants import CHAPTER_MARKER_PATTERN, CHAPTER_PREFIX_PATTERN
from novel_backend.ingestion.models import ParsedChapterDraft, ValidationReport, WarningKind
from novel_backend.ingestion.title_extractor import default_title

logger = logging.getLogger(__name__)

TitleMapping = Dict[int, str]


class TitleListEntry(BaseModel):
    """미리보기/편집용 제목 목록 항목"""
    chapter_number: int
    title: str
    original_line: str


def _split_lines(text: str) -> List[str]:
    lines = [line.strip() for line in re.split(r"\r?\n|\r", text)]
    return [line for line in lines if line]


def extract_chapter_number(line: str) -> Optional[int]:
    """
    줄 맨 앞의 챕터 번호 추출

    "Chapter 5: Title", "Chapter 5 - Title", "Ch. 5 Title" 모두 5를 반환하며,
    번호가 없으면 None
    """
    match = CHAPTER_MARKER_PATTERN.match(line)
    if not match:
        return None
    return int(match.group(1))


def strip_chapter_prefix(line: str) -> str:
    """"Chapter 5: The Great Adventure" → "The Great Adventure" (남는 것이 없으면 원본 줄)"""
    cleaned = CHAPTER_PREFIX_PATTERN.sub("", line).strip()
    return cleaned or line


def parse_title_list(text: str) -> TitleMapping:
    """
    제목 목록 텍스트를 {챕터 번호: 제목} 매핑으로 변환

    번호를 찾을 수 없는 줄은 조용히 건너뛰며, 같은 번호가 여러 번 나오면
    마지막 줄이 우선합니다. 일치하는 줄이 없으면 빈 매핑을 반환합니다.

    Args:
        text: 제목 목록 원문

    Returns:
        {chapter_number: title}
    """
    mapping: TitleMapping = {}
    skipped = 0

    for line in _split_lines(text):
        chapter_number = extract_chapter_number(line)
        if chapter_number is None:
            skipped += 1
            continue
        mapping[chapter_number] = strip_chapter_prefix(line)

    logger.info(f"[INFO] 제목 목록 파싱 완료: {len(mapping)}개 제목, 건너뛴 줄 {skipped}개")
    return mapping


def parse_titles_for_preview(text: str) -> List[TitleListEntry]:
    """편집 화면용: 원본 줄을 포함한 항목 목록 (번호순 정렬)"""
    entries = []
    for line in _split_lines(text):
        chapter_number = extract_chapter_number(line)
        if chapter_number is None:
            continue
        entries.append(
            TitleListEntry(
                chapter_number=chapter_number,
                title=strip_chapter_prefix(line),
                original_line=line,
            )
        )
    return sorted(entries, key=lambda e: e.chapter_number)


def match_chapters_with_titles(chapter_count: int, mapping: TitleMapping) -> List[ParsedChapterDraft]:
    """
    업로드 순서(1..chapter_count)대로 번호를 매기고 제목 목록과 매칭

    Args:
        chapter_count: 업로드된 챕터 파일 수
        mapping: 제목 목록 매핑

    Returns:
        ParsedChapterDraft 리스트 (매칭되지 않은 챕터는 "Chapter {n}", matched=False)
    """
    drafts = []
    for number in range(1, chapter_count + 1):
        matched_title = mapping.get(number)
        drafts.append(
            ParsedChapterDraft(
                number=number,
                title=matched_title or default_title(number),
                matched=bool(matched_title),
            )
        )
    return drafts


def validate_title_list(mapping: TitleMapping, expected_count: int) -> ValidationReport:
    """
    제목 목록 검증 (경고만 반환, 업로드를 막지 않음)

    Args:
        mapping: 제목 목록 매핑
        expected_count: 예상 챕터 수

    Returns:
        ValidationReport
    """
    report = ValidationReport()

    if not mapping:
        report.add(WarningKind.EMPTY_TITLE_LIST, "No valid chapter titles found in titles list")

    if len(mapping) < expected_count:
        missing = expected_count - len(mapping)
        report.add(
            WarningKind.MISSING_TITLES,
            f"Only {len(mapping)} titles found for {expected_count} chapters. "
            f"{missing} chapters will use default naming.",
            [n for n in range(1, expected_count + 1) if n not in mapping],
        )

    if len(mapping) > expected_count:
        extra = len(mapping) - expected_count
        report.add(
            WarningKind.EXTRA_TITLES,
            f"Titles list contains {extra} extra titles that won't be used.",
            sorted(n for n in mapping if n > expected_count),
        )

    return report
