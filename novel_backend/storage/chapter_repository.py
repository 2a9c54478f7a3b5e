"""
소설/챕터 저장소

소설과 챕터 메타데이터는 DB에, 챕터 본문은 소설 폴더의 chapters/ 아래
개별 텍스트 파일로 저장합니다.

    {novels_dir}/{slug}/metadata.json
    {novels_dir}/{slug}/chapters.json      # 정렬된 챕터 목록 (DB 미러)
    {novels_dir}/{slug}/chapters/0001 - 제목.txt
"""
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from novel_backend.api.models.novel import Chapter, Novel, NovelStatus
from novel_backend.config.settings import settings
from novel_backend.ingestion.errors import ConcurrentIngestionError, NovelNotFoundError
from novel_backend.ingestion.models import ChapterRecord

logger = logging.getLogger(__name__)


class ChapterRepository:
    """소설/챕터 저장소 클래스"""

    def __init__(self, db: Session, novels_dir: Optional[Path] = None):
        """
        Args:
            db: 데이터베이스 세션
            novels_dir: 소설 폴더 루트 (None이면 settings.novels_dir)
        """
        self.db = db
        self.novels_dir = Path(novels_dir) if novels_dir is not None else settings.novels_dir

    # ------------------------------------------------------------------
    # 소설
    # ------------------------------------------------------------------

    def novel_path(self, slug: str) -> Path:
        return self.novels_dir / slug

    def chapters_path(self, slug: str) -> Path:
        return self.novel_path(slug) / "chapters"

    def novel_exists(self, slug: str) -> bool:
        """DB 레코드 또는 폴더가 있으면 존재하는 것으로 간주"""
        in_db = self.db.query(Novel.id).filter(Novel.slug == slug).first() is not None
        return in_db or self.novel_path(slug).exists()

    def get_novel(self, slug: str) -> Optional[Novel]:
        return self.db.query(Novel).filter(Novel.slug == slug).first()

    def require_novel(self, slug: str) -> Novel:
        novel = self.get_novel(slug)
        if novel is None:
            raise NovelNotFoundError(slug)
        return novel

    def list_novels(self, skip: int = 0, limit: int = 100) -> List[Novel]:
        return (
            self.db.query(Novel)
            .order_by(Novel.created_at.desc(), Novel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create_novel(
        self,
        slug: str,
        title: str,
        author: str,
        description: str = "",
        genres: Optional[List[str]] = None,
        status: NovelStatus = NovelStatus.ONGOING,
        cover_image: Optional[str] = None,
    ) -> Novel:
        """
        소설 DB 레코드와 폴더 구조 생성

        DB 커밋이 성공한 뒤에 폴더를 만들고, 폴더 생성이 실패하면 레코드를 지웁니다.
        (실패한 생성이 폴더나 레코드를 남기면 재시도가 중복으로 거부됨)

        Returns:
            생성된 Novel 객체
        """
        novel = Novel(
            slug=slug,
            title=title,
            author=author,
            description=description or "",
            genres=list(genres or []),
            status=status,
            cover_image=cover_image,
            total_chapters=0,
            folder_path=str(self.novel_path(slug)),
        )
        self.db.add(novel)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"[ERROR] 소설 레코드 저장 실패: slug={slug}, error={e}")
            raise
        self.db.refresh(novel)

        try:
            self.chapters_path(slug).mkdir(parents=True, exist_ok=True)
            self._write_json(self.novel_path(slug) / "metadata.json", self._novel_metadata(novel))
            self._write_json(self.novel_path(slug) / "chapters.json", [])
        except OSError as e:
            logger.error(f"[ERROR] 소설 폴더 생성 실패: slug={slug}, error={e}")
            self.delete_novel(slug)
            raise

        logger.info(f"[INFO] Novel created: id={novel.id}, slug={slug}")
        return novel

    def delete_novel(self, slug: str) -> None:
        """소설 레코드와 폴더 삭제 (생성 실패 정리용)"""
        novel = self.get_novel(slug)
        if novel is not None:
            self.db.delete(novel)
            self.db.commit()
        shutil.rmtree(self.novel_path(slug), ignore_errors=True)
        logger.info(f"[INFO] Novel removed: slug={slug}")

    def write_cover(self, slug: str, filename: str, data: bytes) -> Path:
        cover_path = self.novel_path(slug) / filename
        cover_path.parent.mkdir(parents=True, exist_ok=True)
        cover_path.write_bytes(data)
        logger.info(f"[INFO] 커버 이미지 저장: {cover_path}")
        return cover_path

    # ------------------------------------------------------------------
    # 챕터
    # ------------------------------------------------------------------

    def get_chapter_list(self, slug: str) -> List[ChapterRecord]:
        """번호순으로 정렬된 챕터 목록 (같은 번호는 추가 순서)"""
        novel = self.require_novel(slug)
        rows = (
            self.db.query(Chapter)
            .filter(Chapter.novel_id == novel.id)
            .order_by(Chapter.number, Chapter.id)
            .all()
        )
        return [ChapterRecord.model_validate(row) for row in rows]

    def get_max_chapter_number(self, slug: str) -> int:
        novel = self.require_novel(slug)
        max_number = (
            self.db.query(func.max(Chapter.number)).filter(Chapter.novel_id == novel.id).scalar()
        )
        return max_number or 0

    def append_chapters(
        self,
        slug: str,
        records: Sequence[ChapterRecord],
        expected_max_number: Optional[int] = None,
    ) -> List[ChapterRecord]:
        """
        챕터 목록 뒤에 추가

        같은 번호 + 같은 파일명의 레코드가 이미 있으면 재시도로 보고 건너뜁니다.

        Args:
            slug: 소설 slug
            records: 추가할 챕터
            expected_max_number: 지정 시 현재 최대 번호가 이 값과 다르면 중단 (compare-and-append)

        Returns:
            실제로 추가된 챕터 목록

        Raises:
            NovelNotFoundError: 소설 없음
            ConcurrentIngestionError: expected_max_number 불일치
        """
        novel = self.require_novel(slug)

        if expected_max_number is not None:
            current_max = self.get_max_chapter_number(slug)
            if current_max != expected_max_number:
                raise ConcurrentIngestionError(
                    f"Chapter list of '{slug}' changed during upload: "
                    f"expected max={expected_max_number}, actual max={current_max}"
                )

        existing = {
            (number, ref)
            for number, ref in self.db.query(Chapter.number, Chapter.storage_ref).filter(
                Chapter.novel_id == novel.id
            )
        }

        added = []
        for record in records:
            key = (record.number, record.storage_ref)
            if key in existing:
                logger.info(f"[INFO] 이미 저장된 챕터 건너뜀: {record.storage_ref}")
                continue
            self.db.add(
                Chapter(
                    novel_id=novel.id,
                    number=record.number,
                    title=record.title,
                    storage_ref=record.storage_ref,
                    word_count=record.word_count,
                )
            )
            existing.add(key)
            added.append(record)

        self.db.flush()
        novel.total_chapters = (
            self.db.query(func.count(Chapter.id)).filter(Chapter.novel_id == novel.id).scalar()
        )
        novel.updated_at = datetime.utcnow()
        self.db.commit()

        self._write_chapters_json(slug)
        logger.info(
            f"[INFO] 챕터 추가 완료: slug={slug}, 추가 {len(added)}개, 전체 {novel.total_chapters}개"
        )
        return added

    def write_chapter_body(self, slug: str, storage_ref: str, content: str) -> Path:
        """본문 파일 쓰기 (같은 이름이면 덮어씀)"""
        chapters_dir = self.chapters_path(slug)
        chapters_dir.mkdir(parents=True, exist_ok=True)
        chapter_path = chapters_dir / storage_ref
        chapter_path.write_text(content, encoding="utf-8")
        return chapter_path

    def read_chapter_body(self, slug: str, storage_ref: str) -> Optional[str]:
        chapter_path = self.chapters_path(slug) / storage_ref
        try:
            return chapter_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"[ERROR] 챕터 본문 읽기 실패: {chapter_path}, error={e}")
            return None

    def get_chapter(self, slug: str, number: int) -> Optional[ChapterRecord]:
        for record in self.get_chapter_list(slug):
            if record.number == number:
                return record
        return None

    # ------------------------------------------------------------------
    # JSON 미러
    # ------------------------------------------------------------------

    def _write_chapters_json(self, slug: str) -> None:
        chapters = [
            {"number": ch.number, "title": ch.title, "file": ch.storage_ref}
            for ch in self.get_chapter_list(slug)
        ]
        self._write_json(self.novel_path(slug) / "chapters.json", chapters)

    def _novel_metadata(self, novel: Novel) -> dict:
        return {
            "slug": novel.slug,
            "title": novel.title,
            "author": novel.author,
            "description": novel.description,
            "genres": novel.genres,
            "status": novel.status.value,
            "coverImage": novel.cover_image or "",
            "addedAt": novel.created_at.isoformat() if novel.created_at else None,
        }

    def _write_json(self, path: Path, data) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error(f"[ERROR] JSON 파일 저장 실패: {e}, path={path}")
            raise
