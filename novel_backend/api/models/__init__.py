"""데이터 모델 패키지"""
from novel_backend.api.models.novel import Novel, Chapter, NovelStatus

__all__ = [
    "Novel",
    "Chapter",
    "NovelStatus",
]
