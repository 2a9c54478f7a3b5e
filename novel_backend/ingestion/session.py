"""
업로드 세션 상태 머신

메타데이터 입력 → 파일 선택 → 미리보기(제목 편집) → 커밋 중 → 완료
각 전이는 새 세션 객체를 반환하며 기존 세션은 바뀌지 않습니다.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from novel_backend.ingestion.errors import InvalidTransitionError, ValidationError
from novel_backend.ingestion.models import (
    CommitResult,
    ParsedChapterDraft,
    UploadedFile,
    ValidationReport,
)


class UploadState(str, Enum):
    """업로드 단계"""
    METADATA_ENTRY = "metadata_entry"
    FILE_SELECTION = "file_selection"
    PREVIEW = "preview"
    COMMITTING = "committing"
    DONE = "done"


class UploadMode(str, Enum):
    """업로드 방식"""
    MANUAL = "manual"  # 챕터별 개별 파일
    BULK = "bulk"  # 단일 텍스트 또는 폴더


# 뒤로 가기 허용 전이
_BACK_TRANSITIONS = {
    UploadState.FILE_SELECTION: UploadState.METADATA_ENTRY,
    UploadState.PREVIEW: UploadState.FILE_SELECTION,
}


@dataclass(frozen=True)
class UploadSession:
    """업로드 세션 (불변)"""
    mode: UploadMode = UploadMode.MANUAL
    state: UploadState = UploadState.METADATA_ENTRY
    slug: Optional[str] = None
    files: Tuple[UploadedFile, ...] = ()
    drafts: Tuple[ParsedChapterDraft, ...] = ()
    report: ValidationReport = field(default_factory=ValidationReport)
    result: Optional[CommitResult] = None
    # 미리보기가 단일 텍스트 분할 경로였는지 (커밋도 같은 경로 사용)
    blob: bool = False

    def _require(self, *states: UploadState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransitionError(
                f"Invalid upload step: current={self.state.value}, expected one of [{allowed}]"
            )

    def submit_metadata(self, slug: str) -> "UploadSession":
        """소설 생성 완료 → 파일 선택 단계"""
        self._require(UploadState.METADATA_ENTRY)
        if not slug:
            raise ValidationError("Novel slug is required")
        return replace(self, state=UploadState.FILE_SELECTION, slug=slug)

    def select_files(
        self,
        files,
        drafts,
        report: Optional[ValidationReport] = None,
        blob: bool = False,
    ) -> "UploadSession":
        """파일 선택 + 미리보기 생성 완료 → 미리보기 단계"""
        self._require(UploadState.FILE_SELECTION)
        if not drafts:
            raise ValidationError("No chapters selected")
        return replace(
            self,
            state=UploadState.PREVIEW,
            files=tuple(files),
            drafts=tuple(drafts),
            report=report or ValidationReport(),
            blob=blob,
        )

    def edit_title(self, index: int, title: str) -> "UploadSession":
        """미리보기 단계에서 제목 한 개 수정"""
        self._require(UploadState.PREVIEW)
        if not 0 <= index < len(self.drafts):
            raise ValidationError(f"Draft index out of range: {index}")
        title = title.strip()
        if not title:
            raise ValidationError("Chapter title must not be empty")

        drafts = list(self.drafts)
        drafts[index] = drafts[index].model_copy(update={"title": title})
        return replace(self, drafts=tuple(drafts))

    def back(self) -> "UploadSession":
        """이전 단계로 (선택한 파일/초안은 버림)"""
        previous = _BACK_TRANSITIONS.get(self.state)
        if previous is None:
            raise InvalidTransitionError(f"Cannot go back from {self.state.value}")
        if previous == UploadState.FILE_SELECTION:
            return replace(
                self, state=previous, files=(), drafts=(), report=ValidationReport(), blob=False
            )
        return replace(self, state=previous)

    def begin_commit(self) -> "UploadSession":
        self._require(UploadState.PREVIEW)
        return replace(self, state=UploadState.COMMITTING)

    def finish(self, result: CommitResult) -> "UploadSession":
        self._require(UploadState.COMMITTING)
        return replace(self, state=UploadState.DONE, result=result)

    def fail(self) -> "UploadSession":
        """커밋 실패 → 미리보기로 복귀 (초안 유지)"""
        self._require(UploadState.COMMITTING)
        return replace(self, state=UploadState.PREVIEW)
