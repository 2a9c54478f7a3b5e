"""
업로드 파이프라인 데이터 모델

챕터 번호 중복, 번호 누락, 제목 목록 개수 불일치 등은 업로드를 막지 않는
경고(advisory)로만 수집하여 성공 결과와 함께 반환합니다 (ValidationReport).
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class WarningKind(str, Enum):
    """경고 종류"""
    NO_CHAPTERS = "no_chapters"
    EMPTY_TITLE_LIST = "empty_title_list"
    MISSING_TITLES = "missing_titles"
    EXTRA_TITLES = "extra_titles"
    DUPLICATE_NUMBERS = "duplicate_numbers"
    NUMBERING_GAP = "numbering_gap"
    EMPTY_CONTENT = "empty_content"
    SKIPPED_SHORT_FILE = "skipped_short_file"
    TITLE_CROSS_CHECK = "title_cross_check"


class ValidationWarning(BaseModel):
    """경고 한 건"""
    kind: WarningKind
    message: str
    numbers: List[int] = Field(default_factory=list)


class ValidationReport(BaseModel):
    """경고 목록 (커밋을 막지 않음)"""
    warnings: List[ValidationWarning] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.warnings

    @property
    def messages(self) -> List[str]:
        return [w.message for w in self.warnings]

    def add(self, kind: WarningKind, message: str, numbers: Optional[List[int]] = None) -> None:
        self.warnings.append(ValidationWarning(kind=kind, message=message, numbers=numbers or []))

    def has(self, kind: WarningKind) -> bool:
        return any(w.kind == kind for w in self.warnings)

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        self.warnings.extend(other.warnings)
        return self


class ParsedChapterDraft(BaseModel):
    """미리보기/편집 단계의 챕터 초안 (커밋 전까지만 존재)"""
    number: int
    title: str
    content: str = ""
    matched: bool = False  # 제목 목록(TitleMapping)에서 온 제목인지
    source_name: Optional[str] = None  # 원본 파일명 (개별 파일 업로드)


class ChapterRecord(BaseModel):
    """커밋된 챕터 메타데이터"""
    number: int
    title: str
    storage_ref: str
    word_count: int = 0

    model_config = {
        "from_attributes": True,
    }


class UploadedFile(BaseModel):
    """업로드된 텍스트 파일 (전송 계층과 무관한 형태)"""
    name: str
    content: str


class PreviewResult(BaseModel):
    """미리보기 결과"""
    drafts: List[ParsedChapterDraft]
    report: ValidationReport = Field(default_factory=ValidationReport)


class CommitResult(BaseModel):
    """커밋 결과"""
    added_count: int
    total_count: int
    chapters: List[ChapterRecord] = Field(default_factory=list)
    report: ValidationReport = Field(default_factory=ValidationReport)


def count_words(text: str) -> int:
    """공백 기준 단어 수"""
    return len(text.split())
