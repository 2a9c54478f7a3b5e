"""
챕터 제목 추출 모듈

챕터 본문(또는 파일명)에서 사람이 읽을 수 있는 제목을 추출합니다.
챕터 표시 줄("Chapter 3: ...") 이후 1~3줄을 제목 후보로 모으되,
본문(서술) 문장으로 보이는 줄이 나오면 즉시 멈춥니다.
"""

import logging
import re
from pathlib import PurePosixPath, PureWindowsPath
from typing import List, Optional

from novel_backend.config.constants import (
    CHAPTER_MARKER_PATTERN,
    CHAPTER_PREFIX_PATTERN,
    DEFAULT_UNTITLED,
    FILENAME_EXTENSION_PATTERN,
    FILENAME_ORDER_PREFIX_PATTERN,
    PROSE_ENDING_PATTERN,
    PROSE_MAX_LINE_LENGTH,
    PROSE_MIN_LENGTH,
    PROSE_WORD_PATTERN,
)
from novel_backend.config.settings import settings

logger = logging.getLogger(__name__)

_EDGE_SEPARATORS = re.compile(r"^[-:–—\s]+|[-:–—\s]+$")


def default_title(chapter_number: int) -> str:
    return f"Chapter {chapter_number}"


def clean_title(title: str) -> str:
    """공백 정리, en/em 대시를 '-'로 통일, 앞뒤 구분자 제거"""
    title = re.sub(r"\s+", " ", title)
    title = re.sub(r"[–—]", "-", title)
    title = _EDGE_SEPARATORS.sub("", title)
    return title.strip()


def is_probably_prose(line: str) -> bool:
    """
    본문(서술) 문장으로 보이는 줄인지 판별

    15자 미만의 짧은 줄("Part I" 등)은 내용과 무관하게 항상 제목 후보로 봅니다.
    """
    if len(line) < PROSE_MIN_LENGTH:
        return False

    # 관사/서술 동사가 단어 단위로 포함된 경우
    if PROSE_WORD_PATTERN.search(line):
        return True

    return looks_like_sentence(line)


def looks_like_sentence(line: str) -> bool:
    """긴 줄 또는 문장부호(. ! ?, 닫는 따옴표 허용)로 끝나는 줄"""
    if len(line) < PROSE_MIN_LENGTH:
        return False
    return len(line) > PROSE_MAX_LINE_LENGTH or bool(PROSE_ENDING_PATTERN.search(line))


class ChapterTitleExtractor:
    """챕터 제목 추출 클래스"""

    def __init__(
        self,
        scan_lines: Optional[int] = None,
        max_title_lines: Optional[int] = None,
        max_filename_length: Optional[int] = None,
    ):
        """
        Args:
            scan_lines: 챕터 표시 줄을 찾을 최대 줄 수 (None이면 settings 값)
            max_title_lines: 제목 후보로 모을 최대 줄 수 (표시 줄 포함)
            max_filename_length: 파일명 기반 제목 최대 길이
        """
        self.scan_lines = scan_lines if scan_lines is not None else settings.title_scan_lines
        self.max_title_lines = max_title_lines if max_title_lines is not None else settings.max_title_lines
        self.max_filename_length = (
            max_filename_length if max_filename_length is not None else settings.max_filename_title_length
        )

    def extract_title(self, content: str, chapter_number: int) -> str:
        """
        챕터 본문에서 제목 추출

        Args:
            content: 챕터 텍스트
            chapter_number: 이미 확정된 챕터 번호 (기본 제목용)

        Returns:
            정리된 제목, 찾지 못하면 "Chapter {chapter_number}"
        """
        lines = [line.strip() for line in re.split(r"\r?\n", content)]
        lines = [line for line in lines if line]

        if not lines:
            return default_title(chapter_number)

        found_index = self._find_marker_line(lines)
        if found_index is None:
            logger.debug(
                f"[DEBUG] 챕터 {chapter_number}: 앞 {self.scan_lines}줄 안에 챕터 표시 없음"
            )
            return default_title(chapter_number)

        title_lines = self._collect_title_lines(lines, found_index)

        title = " ".join(title_lines).strip()
        title = CHAPTER_PREFIX_PATTERN.sub("", title).strip()
        title = clean_title(title)

        return title or default_title(chapter_number)

    def _find_marker_line(self, lines: List[str]) -> Optional[int]:
        for idx, line in enumerate(lines[: self.scan_lines]):
            if CHAPTER_MARKER_PATTERN.match(line):
                return idx
        return None

    def _collect_title_lines(self, lines: List[str], start: int) -> List[str]:
        # 표시 줄 자체는 "The Hollow Crown"처럼 관사가 들어가도 제목이므로 형태만 확인
        marker_line = lines[start]
        if looks_like_sentence(marker_line):
            return []

        collected = [marker_line]
        for line in lines[start + 1 : start + self.max_title_lines]:
            if is_probably_prose(line):
                break
            collected.append(line)
        return collected

    def extract_title_from_filename(self, filename: str) -> str:
        """
        파일명에서 제목 추출 (개별 챕터 파일 업로드용)

        "003 - the_long_night.txt" → "The Long Night"

        Args:
            filename: 업로드된 파일명 (디렉토리 경로 포함 가능)

        Returns:
            정리된 제목, 비어 있으면 "Untitled"
        """
        # 브라우저 폴더 업로드는 "folder/001.txt" 또는 "folder\\001.txt" 형태
        name = PureWindowsPath(PurePosixPath(filename).name).name

        title = FILENAME_EXTENSION_PATTERN.sub("", name)
        title = FILENAME_ORDER_PREFIX_PATTERN.sub("", title).strip()
        title = title.replace("_", " ")

        if title.islower():
            title = " ".join(word.capitalize() for word in title.split())

        if len(title) > self.max_filename_length:
            title = title[: self.max_filename_length - 3] + "..."

        return clean_title(title) or DEFAULT_UNTITLED

    def get_chapter_title(self, content: str, filename: str, chapter_number: int) -> str:
        """
        본문 기반 제목 우선, 기본 제목이면 파일명 기반 제목으로 대체

        Args:
            content: 챕터 텍스트
            filename: 원본 파일명
            chapter_number: 챕터 번호

        Returns:
            최종 제목
        """
        title_from_content = self.extract_title(content, chapter_number)
        if title_from_content == default_title(chapter_number):
            title_from_file = self.extract_title_from_filename(filename)
            if title_from_file != DEFAULT_UNTITLED:
                return title_from_file
        return title_from_content
