"""테스트 공통 픽스처 (인메모리 DB, 임시 소설 폴더, TestClient)"""
import pytest
from pathlib import Path
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from novel_backend.api.database import Base, get_db
from novel_backend.api.models.novel import Novel, Chapter  # noqa: F401 (테이블 정의 로드)
from novel_backend.config.settings import settings
from novel_backend.ingestion.locks import NovelLockRegistry
from novel_backend.ingestion.orchestrator import IngestionOrchestrator
from novel_backend.storage.chapter_repository import ChapterRepository


@pytest.fixture(scope="function")
def db_session():
    """테스트마다 새로 만드는 인메모리 SQLite 세션"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def novels_dir(tmp_path: Path, monkeypatch) -> Path:
    """임시 소설 폴더 (전역 settings.novels_dir 대체)"""
    path = tmp_path / "novels"
    path.mkdir()
    monkeypatch.setattr(settings, "novels_dir", path)
    return path


@pytest.fixture(scope="function")
def repository(db_session, novels_dir: Path) -> ChapterRepository:
    return ChapterRepository(db_session, novels_dir)


@pytest.fixture(scope="function")
def orchestrator(repository: ChapterRepository) -> IngestionOrchestrator:
    return IngestionOrchestrator(repository, locks=NovelLockRegistry())


@pytest.fixture(scope="function")
def client(db_session, novels_dir: Path):
    """get_db를 테스트 세션으로 대체한 TestClient"""
    from novel_backend.api.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
