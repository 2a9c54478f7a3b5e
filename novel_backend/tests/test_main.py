"""FastAPI 앱 기본 테스트"""
import logging
from fastapi.testclient import TestClient
from novel_backend.api.main import app, setup_logging

client = TestClient(app)


def test_root():
    """루트 엔드포인트 테스트"""
    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()
    assert response.json()["version"] == "0.1.0"


def test_health_check():
    """헬스체크 엔드포인트 테스트"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_setup_logging_installs_single_stdout_handler():
    """로깅 재설정 시 핸들러가 중복되지 않음"""
    setup_logging()
    setup_logging()

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert handlers[-1].formatter._fmt == "[%(asctime)s] %(name)s - %(levelname)s: %(message)s"
