"""소설/챕터 업로드 API 라우터"""
import json
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from novel_backend.api.database import get_db
from novel_backend.api.schemas.novel import (
    ChapterContentResponse,
    CommitResponse,
    DraftResponse,
    NovelCreatedResponse,
    NovelDetailResponse,
    NovelListResponse,
    NovelResponse,
    PreviewResponse,
)
from novel_backend.ingestion.errors import (
    ConcurrentIngestionError,
    DuplicateNovelError,
    IngestionError,
    NoChaptersFoundError,
    NovelNotFoundError,
    ValidationError,
)
from novel_backend.ingestion.models import CommitResult, PreviewResult, UploadedFile
from novel_backend.ingestion.orchestrator import IngestionOrchestrator
from novel_backend.ingestion.title_list_parser import TitleMapping
from novel_backend.storage.chapter_repository import ChapterRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/novels", tags=["novels"])

TEXT_EXTENSIONS = (".txt", ".md")


def get_repository(db: Session = Depends(get_db)) -> ChapterRepository:
    """저장소 의존성"""
    return ChapterRepository(db)


def get_orchestrator(repository: ChapterRepository = Depends(get_repository)) -> IngestionOrchestrator:
    """업로드 오케스트레이터 의존성"""
    return IngestionOrchestrator(repository)


def _to_http_error(e: IngestionError) -> HTTPException:
    """업로드 예외 → HTTP 예외"""
    if isinstance(e, NovelNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConcurrentIngestionError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (ValidationError, DuplicateNovelError, NoChaptersFoundError)):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


async def _read_upload(file: UploadFile) -> UploadedFile:
    """UploadFile → UploadedFile (UTF-8, BOM 제거, 잘못된 바이트는 대체 문자)"""
    data = await file.read()
    return UploadedFile(name=file.filename or "", content=data.decode("utf-8-sig", errors="replace"))


async def _title_mapping(
    orchestrator: IngestionOrchestrator,
    titles: Optional[str],
    titles_file: Optional[UploadFile],
) -> TitleMapping:
    """폼의 titles(JSON/텍스트) 또는 titles_file에서 제목 목록 로드 (실패 시 빈 매핑)"""
    if titles_file is not None:
        try:
            uploaded = await _read_upload(titles_file)
        except OSError as e:
            logger.warning(f"[WARNING] 제목 목록 파일 읽기 실패: {e}")
            return {}
        return orchestrator.load_title_mapping(uploaded.content)
    return orchestrator.load_title_mapping(titles)


def _parse_genres(genres: Optional[str]) -> List[str]:
    """장르 폼 값: JSON 배열 또는 쉼표 구분 문자열"""
    if not genres:
        return []
    try:
        value = json.loads(genres)
    except ValueError:
        return [g.strip() for g in genres.split(",") if g.strip()]
    if isinstance(value, list):
        return [str(g) for g in value]
    return [str(value)]


def _preview_response(preview: PreviewResult) -> PreviewResponse:
    return PreviewResponse(
        drafts=[DraftResponse.from_draft(d) for d in preview.drafts],
        warnings=preview.report.warnings,
    )


def _commit_response(result: CommitResult) -> CommitResponse:
    return CommitResponse(
        added_chapters=result.added_count,
        total_chapters=result.total_count,
        chapters=result.chapters,
        warnings=result.report.warnings,
        message=f"Successfully uploaded {result.added_count} chapters",
    )


@router.post("/upload", response_model=NovelCreatedResponse, status_code=201)
async def create_novel(
    title: str = Form(...),
    author: str = Form(...),
    description: str = Form(""),
    genres: Optional[str] = Form(None, description="JSON 배열 또는 쉼표 구분"),
    status: str = Form("ongoing"),
    cover: Optional[UploadFile] = File(None),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
):
    """
    소설 생성

    폴더 구조와 DB 레코드를 만든 뒤 챕터 업로드를 기다립니다.
    """
    logger.info(f"[INFO] 소설 생성 요청: title={title}, author={author}")
    cover_data = await cover.read() if cover is not None else None
    try:
        novel = orchestrator.create_novel(
            title=title,
            author=author,
            description=description,
            genres=_parse_genres(genres),
            status=status,
            cover_filename=cover.filename if cover is not None else None,
            cover_data=cover_data or None,
        )
    except IngestionError as e:
        logger.warning(f"[WARNING] 소설 생성 실패: {e}")
        raise _to_http_error(e)
    except Exception as e:
        logger.error(f"[ERROR] 소설 생성 중 예외: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create novel: {str(e)}")

    return NovelCreatedResponse(slug=novel.slug, novel=NovelResponse.model_validate(novel))


@router.post("/upload/preview", response_model=PreviewResponse)
async def preview_chapter_files(
    chapters: List[UploadFile] = File(...),
    slug: Optional[str] = Form(None),
    titles: Optional[str] = Form(None),
    titles_file: Optional[UploadFile] = File(None),
    sort_by_name: bool = Form(False),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
):
    """
    개별 챕터 파일 미리보기 (저장하지 않음)

    선택 순서(폴더 업로드는 파일명 순서)대로 1..n 번호와 제목을 돌려줍니다.
    """
    files = [await _read_upload(f) for f in chapters]
    mapping = await _title_mapping(orchestrator, titles, titles_file)
    preview = orchestrator.preview_files(files, mapping, sort_by_name=sort_by_name)
    if slug and mapping:
        preview.report.merge(orchestrator.cross_check_title_list(slug, mapping))
    return _preview_response(preview)


@router.post("/upload/chapters", response_model=CommitResponse)
async def upload_chapters(
    slug: str = Form(...),
    chapters: List[UploadFile] = File(...),
    titles: Optional[str] = Form(None, description='편집된 제목 {"1": "제목", ...} 또는 제목 목록 텍스트'),
    titles_file: Optional[UploadFile] = File(None),
    sort_by_name: bool = Form(False),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
):
    """
    개별 챕터 파일 업로드

    기존 챕터 뒤에 이어서 번호를 매기며, 10단어 미만 파일은 건너뜁니다.
    """
    logger.info(f"[INFO] 챕터 업로드 요청: slug={slug}, files={len(chapters)}")
    files = [await _read_upload(f) for f in chapters]
    files = [f for f in files if f.name.lower().endswith(TEXT_EXTENSIONS)] or files
    if sort_by_name:
        files = sorted(files, key=lambda f: f.name)

    mapping = await _title_mapping(orchestrator, titles, titles_file)
    try:
        preview = orchestrator.preview_files(files, mapping)
        result = orchestrator.commit_chapters(slug, preview.drafts, files)
    except IngestionError as e:
        logger.error(f"[ERROR] 챕터 업로드 실패: slug={slug}, error={e}")
        raise _to_http_error(e)
    except Exception as e:
        logger.error(f"[ERROR] 챕터 업로드 중 예외: slug={slug}, error={e}")
        raise HTTPException(status_code=500, detail=f"Failed to upload chapters: {str(e)}")

    result.report.merge(preview.report)
    return _commit_response(result)


@router.post("/upload/parse")
async def parse_and_upload(
    slug: str = Form(...),
    file: UploadFile = File(...),
    titles: Optional[str] = Form(None),
    titles_file: Optional[UploadFile] = File(None),
    preview_only: bool = Form(False),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
):
    """
    단일 텍스트 파일을 챕터로 분할하여 업로드

    preview_only=true이면 분할 결과만 돌려주고 저장하지 않습니다.
    """
    logger.info(f"[INFO] 텍스트 분할 요청: slug={slug}, file={file.filename}, preview_only={preview_only}")
    if not (file.filename or "").lower().endswith(TEXT_EXTENSIONS) and file.content_type != "text/plain":
        raise HTTPException(status_code=400, detail="Unsupported file type (use TXT or MD)")

    uploaded = await _read_upload(file)
    mapping = await _title_mapping(orchestrator, titles, titles_file)
    try:
        preview = orchestrator.preview_blob(uploaded.content, mapping)
        if mapping:
            preview.report.merge(orchestrator.cross_check_title_list(slug, mapping))
        if preview_only:
            return _preview_response(preview)
        result = orchestrator.commit_blob_chapters(slug, preview.drafts)
    except IngestionError as e:
        logger.error(f"[ERROR] 텍스트 분할 업로드 실패: slug={slug}, error={e}")
        raise _to_http_error(e)
    except Exception as e:
        logger.error(f"[ERROR] 텍스트 분할 업로드 중 예외: slug={slug}, error={e}")
        raise HTTPException(status_code=500, detail=f"Failed to parse chapters: {str(e)}")

    result.report.merge(preview.report)
    return _commit_response(result)


@router.get("", response_model=NovelListResponse)
def list_novels(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    repository: ChapterRepository = Depends(get_repository),
):
    """소설 리스트 조회"""
    novels = repository.list_novels(skip=skip, limit=limit)
    return NovelListResponse(
        novels=[NovelResponse.model_validate(n) for n in novels],
        total=len(novels),
    )


@router.get("/{slug}", response_model=NovelDetailResponse)
def get_novel(slug: str, repository: ChapterRepository = Depends(get_repository)):
    """소설 상세 조회 (챕터 목록 포함)"""
    novel = repository.get_novel(slug)
    if not novel:
        raise HTTPException(status_code=404, detail="Novel not found")

    detail = NovelDetailResponse.model_validate(novel)
    detail.chapters = repository.get_chapter_list(slug)
    return detail


@router.get("/{slug}/chapter/{chapter_number}", response_model=ChapterContentResponse)
def get_chapter(
    slug: str,
    chapter_number: int,
    repository: ChapterRepository = Depends(get_repository),
):
    """챕터 본문 조회"""
    try:
        chapter = repository.get_chapter(slug, chapter_number)
    except NovelNotFoundError:
        raise HTTPException(status_code=404, detail="Novel not found")

    if not chapter:
        raise HTTPException(status_code=404, detail="Chapter not found")

    content = repository.read_chapter_body(slug, chapter.storage_ref)
    if content is None:
        raise HTTPException(status_code=500, detail="Failed to read chapter content")

    return ChapterContentResponse(**chapter.model_dump(), content=content)
