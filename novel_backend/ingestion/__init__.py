"""챕터 업로드(ingestion) 파이프라인"""

from novel_backend.ingestion.chapter_splitter import ChapterSplitter, BoundaryPattern, validate_chapters
from novel_backend.ingestion.title_extractor import ChapterTitleExtractor
from novel_backend.ingestion.title_list_parser import parse_title_list, validate_title_list
from novel_backend.ingestion.session import UploadSession, UploadState, UploadMode

__all__ = [
    "ChapterSplitter",
    "BoundaryPattern",
    "validate_chapters",
    "ChapterTitleExtractor",
    "parse_title_list",
    "validate_title_list",
    "UploadSession",
    "UploadState",
    "UploadMode",
]
