"""FastAPI 메인 애플리케이션"""
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from novel_backend.api.database import init_db
from novel_backend.api.routers import novels
from novel_backend.config.settings import settings


def setup_logging():
    """
    서버 로깅 설정

    settings.log_level 이상의 로그를 표준 출력으로 내보냅니다.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.DEBUG

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 기존 핸들러 제거 (중복 방지)
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)

    formatter = logging.Formatter(
        "[%(asctime)s] %(name)s - %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    stdout_handler.setFormatter(formatter)

    root_logger.addHandler(stdout_handler)

    # 업로드 파이프라인 로거 레벨 설정
    logging.getLogger("novel_backend.ingestion").setLevel(level)
    logging.getLogger("novel_backend.storage").setLevel(level)

    logger = logging.getLogger(__name__)
    logger.info(f"[INFO] 서버 로깅 설정 완료 ({logging.getLevelName(level)} 레벨)")


setup_logging()

init_db()

app = FastAPI(
    title="Novel Library API",
    description="웹소설 업로드 및 챕터 관리 서비스",
    version="0.1.0",
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 개발 환경용
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(novels.router)


@app.get("/")
async def root():
    """루트 엔드포인트"""
    return {"message": "Novel Library API", "version": "0.1.0"}


@app.get("/health")
async def health_check():
    """헬스체크 엔드포인트"""
    return {"status": "ok"}
