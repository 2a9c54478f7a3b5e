"""SQLAlchemy 데이터베이스 설정"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from novel_backend.config.settings import settings

# 데이터베이스 URL (설정이 없으면 data 디렉토리의 SQLite 파일)
DATABASE_URL = settings.database_url or f"sqlite:///{settings.data_dir / 'novels.db'}"

# SQLAlchemy 엔진 생성
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    echo=False,
)

# 세션 팩토리
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base 클래스
Base = declarative_base()


def get_db():
    """데이터베이스 세션 의존성"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """데이터베이스 초기화 (테이블 생성)"""
    # 모델 import로 테이블 정의 로드
    from novel_backend.api.models.novel import Novel, Chapter

    Base.metadata.create_all(bind=engine)
