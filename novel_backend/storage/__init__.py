"""저장소 모듈"""

from novel_backend.storage.chapter_repository import ChapterRepository

__all__ = ["ChapterRepository"]
