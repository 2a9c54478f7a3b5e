"""소설 관련 데이터 모델"""
from enum import Enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from novel_backend.api.database import Base


class NovelStatus(str, Enum):
    """연재 상태 Enum"""
    ONGOING = "ongoing"
    COMPLETED = "completed"
    HIATUS = "hiatus"


class Novel(Base):
    """소설 테이블"""
    __tablename__ = "novels"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, nullable=False, unique=True, index=True)  # 제목에서 생성 (폴더명)
    title = Column(String, nullable=False)
    author = Column(String, nullable=False)
    description = Column(Text, default="", nullable=False)
    genres = Column(JSON, default=list, nullable=False)
    status = Column(SQLEnum(NovelStatus), default=NovelStatus.ONGOING, nullable=False)
    cover_image = Column(String, nullable=True)  # 커버 파일명 (예: cover.jpg)
    total_chapters = Column(Integer, default=0, nullable=False)
    folder_path = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # 관계
    chapters = relationship(
        "Chapter",
        back_populates="novel",
        cascade="all, delete-orphan",
        order_by="Chapter.number",
    )


class Chapter(Base):
    """챕터 테이블 (소설별 append-only 목록, 번호 중복은 경고만)"""
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True, index=True)
    novel_id = Column(Integer, ForeignKey("novels.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Integer, nullable=False, index=True)  # 읽기 순서 (연속일 필요 없음)
    title = Column(String, nullable=False)
    storage_ref = Column(String, nullable=False)  # 본문 파일명: "0001 - 제목.txt"
    word_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # 관계
    novel = relationship("Novel", back_populates="chapters")
