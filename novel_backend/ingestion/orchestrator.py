"""
챕터 업로드 오케스트레이터

한 소설의 업로드 세션을 처음부터 끝까지 실행합니다.

- 개별 업로드(manual): 챕터 파일을 선택 순서대로 1..n 번호 부여, 파일명/본문 기반 제목,
  제목 목록이 있으면 해당 번호의 제목으로 대체. 커밋 시 10단어 미만 파일은 건너뜀
- 일괄 업로드(bulk): 단일 텍스트는 ChapterSplitter로 분할 (본문 속 번호 유지, 50단어 미만 제외),
  폴더는 파일명 정렬 후 개별 업로드와 동일하게 처리
"""
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from novel_backend.api.models.novel import Novel, NovelStatus
from novel_backend.config.constants import (
    CHAPTER_BODY_EXTENSIONS,
    NOVEL_STATUSES,
    SLUG_INVALID_CHARS,
    UNSAFE_FILENAME_CHARS,
)
from novel_backend.config.settings import Settings, settings as default_settings
from novel_backend.ingestion.chapter_splitter import ChapterSplitter, validate_chapters, validate_numbering
from novel_backend.ingestion.errors import (
    DuplicateNovelError,
    NoChaptersFoundError,
    ValidationError,
)
from novel_backend.ingestion.locks import NovelLockRegistry, novel_locks
from novel_backend.ingestion.models import (
    ChapterRecord,
    CommitResult,
    ParsedChapterDraft,
    PreviewResult,
    UploadedFile,
    ValidationReport,
    WarningKind,
    count_words,
)
from novel_backend.ingestion.session import UploadMode, UploadSession
from novel_backend.ingestion.title_extractor import ChapterTitleExtractor, default_title
from novel_backend.ingestion.title_list_parser import (
    TitleMapping,
    match_chapters_with_titles,
    parse_title_list,
    validate_title_list,
)
from novel_backend.storage.chapter_repository import ChapterRepository

logger = logging.getLogger(__name__)


def generate_slug(title: str) -> str:
    """"The Hollow Crown!" → "the_hollow_crown\""""
    return SLUG_INVALID_CHARS.sub("_", title.lower()).strip("_")


def sanitize_title(title: str) -> str:
    """파일명에 쓸 수 없는 문자(\\ / * ? : " < > |) 제거"""
    return UNSAFE_FILENAME_CHARS.sub("", title).strip()


def build_storage_ref(number: int, title: str, extension: str = ".txt") -> str:
    """
    챕터 본문 파일명 생성 (같은 번호 + 같은 제목이면 항상 같은 이름)

    Args:
        number: 챕터 번호
        title: 챕터 제목
        extension: 확장자 (".txt" 또는 ".md")

    Returns:
        "0001 - Title.txt"
    """
    return f"{number:04d} - {sanitize_title(title)}{extension}"


def _body_extension(filename: Optional[str]) -> str:
    suffix = Path(filename).suffix.lower() if filename else ""
    return suffix if suffix in CHAPTER_BODY_EXTENSIONS else ".txt"


class IngestionOrchestrator:
    """챕터 업로드 오케스트레이터 클래스"""

    def __init__(
        self,
        repository: ChapterRepository,
        locks: Optional[NovelLockRegistry] = None,
        config: Optional[Settings] = None,
    ):
        """
        Args:
            repository: 소설/챕터 저장소
            locks: 소설별 잠금 레지스트리 (None이면 전역 레지스트리)
            config: 설정 (None이면 전역 settings)
        """
        self.repository = repository
        self.locks = locks if locks is not None else novel_locks
        self.config = config or default_settings
        self.title_extractor = ChapterTitleExtractor(
            scan_lines=self.config.title_scan_lines,
            max_title_lines=self.config.max_title_lines,
            max_filename_length=self.config.max_filename_title_length,
        )
        self.splitter = ChapterSplitter(
            min_words=self.config.min_words_per_split_chapter,
            title_extractor=self.title_extractor,
        )

    # ------------------------------------------------------------------
    # 1. 소설 생성
    # ------------------------------------------------------------------

    def create_novel(
        self,
        title: str,
        author: str,
        description: str = "",
        genres: Optional[List[str]] = None,
        status: str = "ongoing",
        cover_filename: Optional[str] = None,
        cover_data: Optional[bytes] = None,
    ) -> Novel:
        """
        소설 생성 (챕터 업로드 전 단계)

        Args:
            title: 소설 제목 (필수)
            author: 저자 (필수)
            description: 소개
            genres: 장르 목록
            status: 연재 상태 (ongoing/completed/hiatus)
            cover_filename: 커버 원본 파일명 (확장자 결정용)
            cover_data: 커버 이미지 바이트

        Returns:
            생성된 Novel 객체

        Raises:
            ValidationError: 필수 항목 누락/잘못된 상태
            DuplicateNovelError: 같은 slug의 소설이 이미 있음
        """
        logger.info("=" * 80)
        logger.info("[FUNCTION] IngestionOrchestrator.create_novel 호출됨")
        logger.info(f"[PARAM] title={title}, author={author}, status={status}")

        title = (title or "").strip()
        author = (author or "").strip()
        if not title or not author:
            raise ValidationError("Title and author are required")

        status = (status or "ongoing").strip().lower()
        if status not in NOVEL_STATUSES:
            raise ValidationError(f"Invalid status '{status}', expected one of {list(NOVEL_STATUSES)}")

        slug = generate_slug(title)
        if not slug:
            raise ValidationError("Title must contain at least one letter or digit")

        if self.repository.novel_exists(slug):
            logger.info(f"[ERROR] 이미 존재하는 소설: slug={slug}")
            raise DuplicateNovelError(slug)

        cover_image = None
        if cover_data:
            cover_image = f"cover{Path(cover_filename or 'cover.jpg').suffix or '.jpg'}"

        novel = self.repository.create_novel(
            slug=slug,
            title=title,
            author=author,
            description=description,
            genres=[g.strip() for g in (genres or []) if g and g.strip()],
            status=NovelStatus(status),
            cover_image=cover_image,
        )
        if cover_data:
            try:
                self.repository.write_cover(slug, cover_image, cover_data)
            except OSError as e:
                logger.error(f"[ERROR] 커버 저장 실패, 소설 생성 취소: slug={slug}, error={e}")
                self.repository.delete_novel(slug)
                raise

        logger.info(f"[RETURN] create_novel() 반환값: novel_id={novel.id}, slug={slug}")
        logger.info("=" * 80)
        return novel

    # ------------------------------------------------------------------
    # 2. 제목 목록
    # ------------------------------------------------------------------

    def load_title_mapping(self, raw: Optional[str]) -> TitleMapping:
        """
        제목 목록 로드 (실패 시 빈 매핑)

        JSON 객체 {"1": "제목", ...} 또는 "Chapter 1: 제목" 형식의 텍스트를 받습니다.
        """
        if not raw or not raw.strip():
            return {}

        stripped = raw.strip()
        if stripped.startswith("{"):
            try:
                data = json.loads(stripped)
                if not isinstance(data, dict):
                    raise ValueError(f"expected an object, got {type(data).__name__}")
                mapping = {}
                for key, value in data.items():
                    title = str(value).strip() if value is not None else ""
                    if title:
                        mapping[int(key)] = title
                logger.info(f"[INFO] 제목 목록 {len(mapping)}개 로드 (JSON)")
                return mapping
            except (ValueError, TypeError) as e:
                logger.warning(f"[WARNING] 제목 목록 JSON 파싱 실패, 제목 대체 없이 진행: {e}")
                return {}

        return parse_title_list(stripped)

    def read_title_list_file(self, path) -> TitleMapping:
        """제목 목록 파일 읽기 (I/O, 인코딩 오류 시 빈 매핑)"""
        try:
            text = Path(path).read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"[WARNING] 제목 목록 파일 읽기 실패, 제목 대체 없이 진행: {path}, error={e}")
            return {}
        return self.load_title_mapping(text)

    def cross_check_title_list(self, slug: str, mapping: TitleMapping) -> ValidationReport:
        """
        제목 목록을 이미 저장된 챕터 수와 비교 (조회 실패 시 검사 생략)
        """
        report = ValidationReport()
        try:
            chapters = self.repository.get_chapter_list(slug)
        except (LookupError, SQLAlchemyError) as e:
            logger.warning(f"[WARNING] 제목 목록 교차 검사 생략: slug={slug}, error={e}")
            return report

        stored = {ch.number for ch in chapters}
        overlapping = sorted(n for n in mapping if n in stored)
        if overlapping:
            report.add(
                WarningKind.TITLE_CROSS_CHECK,
                f"Titles list has entries for already uploaded chapters: "
                f"{', '.join(map(str, overlapping))}",
                overlapping,
            )
        return report

    # ------------------------------------------------------------------
    # 3. 미리보기
    # ------------------------------------------------------------------

    def preview_chapters(self, file_count: int, mapping: TitleMapping) -> List[ParsedChapterDraft]:
        """업로드 순서대로 1..file_count 번호와 제목 목록 매칭"""
        return match_chapters_with_titles(file_count, mapping)

    def preview_files(
        self,
        files: Sequence[UploadedFile],
        mapping: Optional[TitleMapping] = None,
        sort_by_name: bool = False,
    ) -> PreviewResult:
        """
        개별 파일(또는 폴더) 미리보기

        번호는 파일명 속 숫자와 무관하게 선택 순서(폴더는 파일명 정렬 순서)로 1..n을 부여합니다.

        Args:
            files: 업로드 파일 목록
            mapping: 제목 목록 매핑
            sort_by_name: 폴더 업로드처럼 파일명순으로 정렬할지 여부

        Returns:
            PreviewResult (초안 + 경고)
        """
        mapping = mapping or {}
        ordered = sorted(files, key=lambda f: f.name) if sort_by_name else list(files)
        logger.info(f"[INFO] 파일 미리보기: {len(ordered)}개 파일, 제목 목록 {len(mapping)}개")

        drafts = []
        for draft, file in zip(self.preview_chapters(len(ordered), mapping), ordered):
            if not draft.matched:
                draft = draft.model_copy(
                    update={
                        "title": self.title_extractor.get_chapter_title(
                            file.content, file.name, draft.number
                        )
                    }
                )
            drafts.append(draft.model_copy(update={"content": file.content, "source_name": file.name}))

        report = ValidationReport()
        if mapping:
            report.merge(validate_title_list(mapping, len(drafts)))
        return PreviewResult(drafts=drafts, report=report)

    def preview_blob(self, text: str, mapping: Optional[TitleMapping] = None) -> PreviewResult:
        """
        단일 텍스트 미리보기 (분할 + 제목 목록 대체)

        Raises:
            NoChaptersFoundError: 챕터 표시를 찾지 못함
        """
        mapping = mapping or {}
        drafts = self.splitter.split_into_chapters(text)
        if not drafts:
            logger.error("[ERROR] No chapters found")
            raise NoChaptersFoundError()

        if mapping:
            drafts = [
                draft.model_copy(update={"title": mapping[draft.number], "matched": True})
                if draft.number in mapping
                else draft
                for draft in drafts
            ]

        report = validate_chapters(drafts)
        if mapping:
            report.merge(validate_title_list(mapping, len(drafts)))
        return PreviewResult(drafts=drafts, report=report)

    def edit_title(
        self, drafts: Sequence[ParsedChapterDraft], index: int, title: str
    ) -> List[ParsedChapterDraft]:
        """커밋 전 제목 수정 (새 리스트 반환)"""
        if not 0 <= index < len(drafts):
            raise ValidationError(f"Draft index out of range: {index}")
        title = title.strip()
        if not title:
            raise ValidationError("Chapter title must not be empty")
        edited = list(drafts)
        edited[index] = edited[index].model_copy(update={"title": title})
        return edited

    # ------------------------------------------------------------------
    # 4. 커밋
    # ------------------------------------------------------------------

    def commit_chapters(
        self,
        slug: str,
        drafts: Sequence[ParsedChapterDraft],
        files: Sequence[UploadedFile],
    ) -> CommitResult:
        """
        개별 파일 커밋

        기존 최대 번호 뒤에 이어서 번호를 매기며, 단어 수가 기준 미만인 파일은 건너뜁니다.

        Args:
            slug: 소설 slug
            drafts: 미리보기(편집 완료) 초안, files와 같은 순서
            files: 업로드 파일

        Returns:
            CommitResult

        Raises:
            NovelNotFoundError: 소설 없음
            ValidationError: 초안/파일 개수 불일치
        """
        logger.info("=" * 80)
        logger.info("[FUNCTION] IngestionOrchestrator.commit_chapters 호출됨")
        logger.info(f"[PARAM] slug={slug}, drafts={len(drafts)}, files={len(files)}")

        if len(drafts) != len(files):
            raise ValidationError(
                f"Draft count ({len(drafts)}) does not match file count ({len(files)})"
            )

        report = ValidationReport()
        min_words = self.config.min_words_per_file

        with self.locks.hold(slug):
            start_max = self.repository.get_max_chapter_number(slug)
            next_number = start_max + 1
            records = []
            skipped = []

            for draft, file in zip(drafts, files):
                word_count = count_words(file.content)
                if word_count < min_words:
                    logger.warning(
                        f"[WARNING] 단어 수 부족으로 건너뜀: {file.name} ({word_count} < {min_words})"
                    )
                    skipped.append(draft.number)
                    continue

                # 기본 제목은 미리보기 위치 기준이므로 실제 번호로 다시 생성
                title = draft.title
                if not draft.matched and title == default_title(draft.number):
                    title = default_title(next_number)

                storage_ref = build_storage_ref(next_number, title, _body_extension(file.name))
                self.repository.write_chapter_body(slug, storage_ref, file.content)
                records.append(
                    ChapterRecord(
                        number=next_number,
                        title=title,
                        storage_ref=storage_ref,
                        word_count=word_count,
                    )
                )
                next_number += 1

            if skipped:
                report.add(
                    WarningKind.SKIPPED_SHORT_FILE,
                    f"Skipped {len(skipped)} files with fewer than {min_words} words",
                    skipped,
                )

            added = self.repository.append_chapters(slug, records, expected_max_number=start_max)
            total = len(self.repository.get_chapter_list(slug))

        logger.info(f"[RETURN] commit_chapters() 반환값: added={len(added)}, total={total}")
        logger.info("=" * 80)
        return CommitResult(added_count=len(added), total_count=total, chapters=added, report=report)

    def commit_blob_chapters(self, slug: str, drafts: Sequence[ParsedChapterDraft]) -> CommitResult:
        """
        단일 텍스트 분할 결과 커밋 (본문 속 번호 유지, 단어 수 기준은 분할 시 이미 적용)

        Returns:
            CommitResult (기존 챕터와 번호가 겹치면 경고)
        """
        logger.info("=" * 80)
        logger.info("[FUNCTION] IngestionOrchestrator.commit_blob_chapters 호출됨")
        logger.info(f"[PARAM] slug={slug}, drafts={len(drafts)}")

        if not drafts:
            raise NoChaptersFoundError()

        with self.locks.hold(slug):
            existing = self.repository.get_chapter_list(slug)
            start_max = max((ch.number for ch in existing), default=0)

            records = []
            for draft in drafts:
                storage_ref = build_storage_ref(draft.number, draft.title)
                self.repository.write_chapter_body(slug, storage_ref, draft.content)
                records.append(
                    ChapterRecord(
                        number=draft.number,
                        title=draft.title,
                        storage_ref=storage_ref,
                        word_count=count_words(draft.content),
                    )
                )

            added = self.repository.append_chapters(slug, records, expected_max_number=start_max)
            all_chapters = self.repository.get_chapter_list(slug)

        report = validate_numbering([ch.number for ch in all_chapters])
        logger.info(f"[RETURN] commit_blob_chapters() 반환값: added={len(added)}, total={len(all_chapters)}")
        logger.info("=" * 80)
        return CommitResult(
            added_count=len(added),
            total_count=len(all_chapters),
            chapters=added,
            report=report,
        )

    # ------------------------------------------------------------------
    # 세션 단위 실행
    # ------------------------------------------------------------------

    def preview_session(
        self,
        session: UploadSession,
        files: Sequence[UploadedFile],
        mapping: Optional[TitleMapping] = None,
        sort_by_name: bool = False,
    ) -> UploadSession:
        """파일 선택 단계 세션 → 미리보기 단계 세션 (세션의 파일은 초안과 같은 순서)"""
        blob = len(files) == 1 and session.mode == UploadMode.BULK and not sort_by_name
        if blob:
            preview = self.preview_blob(files[0].content, mapping)
        else:
            if sort_by_name:
                files = sorted(files, key=lambda f: f.name)
            preview = self.preview_files(files, mapping)
        if session.slug and mapping:
            preview.report.merge(self.cross_check_title_list(session.slug, mapping))
        return session.select_files(files, preview.drafts, preview.report, blob=blob)

    def commit_session(self, session: UploadSession) -> UploadSession:
        """미리보기 단계 세션 커밋 → 완료 세션 (실패 시 예외 전파)"""
        committing = session.begin_commit()
        drafts = list(committing.drafts)
        if committing.blob:
            result = self.commit_blob_chapters(committing.slug, drafts)
        else:
            result = self.commit_chapters(committing.slug, drafts, list(committing.files))
        result.report.merge(committing.report)
        return committing.finish(result)
