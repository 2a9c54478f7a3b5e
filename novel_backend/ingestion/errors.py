"""챕터 업로드(ingestion) 예외"""


class IngestionError(Exception):
    """업로드 세션을 중단시키는 오류의 기본 클래스"""


class ValidationError(IngestionError, ValueError):
    """필수 입력 누락/형식 오류 (예: 제목, 저자 누락)"""


class DuplicateNovelError(IngestionError):
    """같은 slug의 소설이 이미 존재함"""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"A novel with this title already exists: {slug}")


class NovelNotFoundError(IngestionError, LookupError):
    """소설을 찾을 수 없음"""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Novel not found: {slug}")


class NoChaptersFoundError(IngestionError):
    """텍스트에서 챕터 표시를 하나도 찾지 못함"""

    def __init__(self, detail: str = "Could not detect chapter markers"):
        self.detail = detail
        super().__init__(f"No chapters found in file: {detail}")


class ConcurrentIngestionError(IngestionError):
    """같은 소설에 대한 다른 업로드가 진행 중이거나 챕터 목록이 중간에 바뀜"""


class InvalidTransitionError(IngestionError):
    """업로드 세션 상태에서 허용되지 않는 전이"""
