"""
챕터 분할 모듈 (단일 텍스트 업로드용)

여러 경계 패턴을 전체 텍스트에 적용해 일치 개수가 가장 많은 패턴 하나를
이 문서의 챕터 경계로 사용합니다. 여러 패턴에 표면적으로 걸리는 문서라도
실제 구조를 나타내는 것은 하나뿐이기 때문입니다.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from novel_backend.config.constants import CHAPTER_BOUNDARY_PATTERNS
from novel_backend.config.settings import settings
from novel_backend.ingestion.models import ParsedChapterDraft, ValidationReport, WarningKind, count_words
from novel_backend.ingestion.title_extractor import ChapterTitleExtractor

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BoundaryPattern:
    """챕터 경계 패턴 (그룹 1 = 챕터 번호)"""
    name: str
    regex: re.Pattern

    def find(self, text: str) -> List[re.Match]:
        return list(self.regex.finditer(text))


DEFAULT_BOUNDARY_PATTERNS = tuple(BoundaryPattern(name, regex) for name, regex in CHAPTER_BOUNDARY_PATTERNS)


class ChapterSplitter:
    """챕터 분할 클래스"""

    def __init__(
        self,
        patterns: Optional[Sequence[BoundaryPattern]] = None,
        min_words: Optional[int] = None,
        title_extractor: Optional[ChapterTitleExtractor] = None,
    ):
        """
        Args:
            patterns: 경계 패턴 (선호 순서, None이면 기본 패턴)
            min_words: 챕터 최소 단어 수 (None이면 settings.min_words_per_split_chapter)
            title_extractor: 제목 추출기
        """
        self.patterns = tuple(patterns) if patterns is not None else DEFAULT_BOUNDARY_PATTERNS
        self.min_words = min_words if min_words is not None else settings.min_words_per_split_chapter
        self.title_extractor = title_extractor or ChapterTitleExtractor()

    def select_pattern(self, text: str) -> Tuple[Optional[BoundaryPattern], List[re.Match]]:
        """
        일치 개수가 가장 많은 패턴 선택 (동률이면 앞선 패턴 유지)

        Returns:
            (선택된 패턴 또는 None, 일치 목록)
        """
        best_pattern = None
        best_matches: List[re.Match] = []

        for pattern in self.patterns:
            matches = pattern.find(text)
            logger.debug(f"[DEBUG] 경계 패턴 '{pattern.name}': {len(matches)}개 일치")
            if len(matches) > len(best_matches):
                best_pattern = pattern
                best_matches = matches

        return best_pattern, best_matches

    def split_into_chapters(self, text: str) -> List[ParsedChapterDraft]:
        """
        텍스트를 챕터 초안 목록으로 분할

        Args:
            text: 업로드된 전체 텍스트

        Returns:
            문서 순서의 ParsedChapterDraft 리스트 (번호순 정렬 보장 안 함).
            챕터 표시를 찾지 못하면 빈 리스트
        """
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        pattern, matches = self.select_pattern(text)

        if not matches:
            logger.warning("[WARNING] 챕터 경계 패턴을 찾지 못함")
            return []

        logger.info(f"[INFO] 경계 패턴 선택: '{pattern.name}' ({len(matches)}개 일치)")

        chapters = []
        dropped = 0
        for idx, match in enumerate(matches):
            start = match.start()
            end = matches[idx + 1].start() if idx + 1 < len(matches) else len(text)
            chapter_text = text[start:end].strip()

            # 대사 속 "Chapter 5" 같은 가짜 경계 제거
            if count_words(chapter_text) < self.min_words:
                dropped += 1
                logger.debug(
                    f"[DEBUG] 짧은 구간 제외: offset={start}, words={count_words(chapter_text)}"
                )
                continue

            chapter_number = int(match.group(1))
            chapters.append(
                ParsedChapterDraft(
                    number=chapter_number,
                    title=self.title_extractor.extract_title(chapter_text, chapter_number),
                    content=chapter_text,
                )
            )

        logger.info(
            f"[INFO] 챕터 분할 완료: {len(chapters)}개 챕터 "
            f"(일치 {len(matches)}개 중 {dropped}개 제외, 최소 {self.min_words}단어)"
        )
        return chapters


def validate_chapters(chapters: Sequence[ParsedChapterDraft]) -> ValidationReport:
    """
    챕터 구조 검증 (중복 번호, 빈 본문, 번호 누락)

    Args:
        chapters: 챕터 초안 목록

    Returns:
        ValidationReport (모두 경고, 커밋을 막지 않음)
    """
    report = ValidationReport()

    if not chapters:
        report.add(WarningKind.NO_CHAPTERS, "No chapters found")
        return report

    empty = [ch.number for ch in chapters if not ch.content.strip()]
    if empty:
        report.add(
            WarningKind.EMPTY_CONTENT,
            f"Chapters with no content: {', '.join(map(str, empty))}",
            empty,
        )

    return report.merge(validate_numbering([ch.number for ch in chapters]))


def validate_numbering(numbers: Sequence[int]) -> ValidationReport:
    """번호 중복 / 번호 누락 경고"""
    report = ValidationReport()

    duplicates = sorted(n for n, c in Counter(numbers).items() if c > 1)
    if duplicates:
        report.add(
            WarningKind.DUPLICATE_NUMBERS,
            f"Duplicate chapter numbers: {', '.join(map(str, duplicates))}",
            duplicates,
        )

    gaps = find_number_gaps(numbers)
    if gaps:
        report.add(
            WarningKind.NUMBERING_GAP,
            f"Potential missing chapters after: {', '.join(map(str, gaps))}",
            gaps,
        )

    return report


def find_number_gaps(numbers: Iterable[int]) -> List[int]:
    """번호가 1보다 크게 건너뛰는 지점 직전의 번호 목록"""
    ordered = sorted(set(numbers))
    return [a for a, b in zip(ordered, ordered[1:]) if b - a > 1]


def sort_chapters(chapters: Iterable[T]) -> List[T]:
    """번호순 정렬"""
    return sorted(chapters, key=lambda ch: ch.number)
