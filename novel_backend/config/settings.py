"""애플리케이션 설정"""

from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 데이터베이스 (비어 있으면 data_dir/novels.db SQLite 사용)
    database_url: str = ""

    # 파일 저장 경로
    data_dir: Path = Path(__file__).parent.parent.parent / "data"
    novels_dir: Path = (
        Path(__file__).parent.parent.parent / "data" / "novels"
    )  # 소설별 폴더 (metadata, chapters.json, chapters/)

    # 로깅
    log_level: str = "DEBUG"

    # 챕터 최소 단어 수 (입력 형태별로 다름)
    min_words_per_file: int = 10  # 개별 파일 업로드 (커밋 시 적용)
    min_words_per_split_chapter: int = 50  # 단일 텍스트 분할 (분할 시 적용)

    # 제목 추출
    title_scan_lines: int = 20  # 챕터 표시 줄을 찾을 최대 줄 수
    max_title_lines: int = 4  # 제목 후보 최대 줄 수 (표시 줄 포함)
    max_filename_title_length: int = 250

    # 동일 소설 동시 업로드 잠금 대기 시간 (초)
    lock_timeout_seconds: float = 30.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # .env에 정의되지 않은 필드는 무시
    }


# 전역 설정 인스턴스
settings = Settings()

# 디렉토리 생성
settings.data_dir.mkdir(parents=True, exist_ok=True)
settings.novels_dir.mkdir(parents=True, exist_ok=True)
