"""소설/챕터 관련 Pydantic 스키마"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List
from novel_backend.api.models.novel import NovelStatus
from novel_backend.ingestion.models import ChapterRecord, ParsedChapterDraft, ValidationWarning


class NovelResponse(BaseModel):
    """소설 응답 스키마"""
    id: int
    slug: str
    title: str
    author: str
    description: str = ""
    genres: List[str] = []
    status: NovelStatus
    cover_image: Optional[str] = None
    total_chapters: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


class NovelListResponse(BaseModel):
    """소설 리스트 응답 스키마"""
    novels: List[NovelResponse]
    total: int


class NovelDetailResponse(NovelResponse):
    """소설 상세 응답 스키마 (챕터 목록 포함)"""
    chapters: List[ChapterRecord] = []


class NovelCreatedResponse(BaseModel):
    """소설 생성 응답 스키마"""
    slug: str
    novel: NovelResponse
    message: str = "Novel created successfully. Now upload chapters."


class DraftResponse(BaseModel):
    """챕터 초안 응답 스키마 (본문 대신 단어 수)"""
    number: int
    title: str
    matched: bool
    source_name: Optional[str] = None
    word_count: int

    @classmethod
    def from_draft(cls, draft: ParsedChapterDraft) -> "DraftResponse":
        return cls(
            number=draft.number,
            title=draft.title,
            matched=draft.matched,
            source_name=draft.source_name,
            word_count=len(draft.content.split()),
        )


class PreviewResponse(BaseModel):
    """미리보기 응답 스키마"""
    drafts: List[DraftResponse]
    warnings: List[ValidationWarning] = []


class CommitResponse(BaseModel):
    """커밋 응답 스키마"""
    added_chapters: int
    total_chapters: int
    chapters: List[ChapterRecord] = []
    warnings: List[ValidationWarning] = []
    message: str


class ChapterContentResponse(ChapterRecord):
    """챕터 본문 응답 스키마"""
    content: str
