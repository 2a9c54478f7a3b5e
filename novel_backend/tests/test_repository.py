"""소설/챕터 저장소 테스트"""
import json
import pytest
from pathlib import Path
from sqlalchemy.exc import OperationalError

from novel_backend.api.models.novel import NovelStatus
from novel_backend.ingestion.errors import ConcurrentIngestionError, NovelNotFoundError
from novel_backend.ingestion.models import ChapterRecord


@pytest.fixture
def novel(repository):
    return repository.create_novel(slug="dawn", title="Dawn", author="A", status=NovelStatus.HIATUS)


def test_create_and_get_novel(repository, novel, novels_dir: Path):
    assert repository.novel_exists("dawn")
    assert repository.get_novel("dawn").status == NovelStatus.HIATUS
    assert novel.folder_path == str(novels_dir / "dawn")
    assert [n.slug for n in repository.list_novels()] == ["dawn"]


def test_folder_without_db_row_counts_as_existing(repository, novels_dir: Path):
    (novels_dir / "orphan").mkdir()

    assert repository.novel_exists("orphan")
    assert repository.get_novel("orphan") is None


def test_failed_commit_leaves_nothing_behind(repository, db_session, monkeypatch, novels_dir: Path):
    """DB 커밋 실패 후 같은 소설을 다시 만들 수 있음"""
    def locked_commit():
        raise OperationalError("INSERT INTO novels", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", locked_commit)
    with pytest.raises(OperationalError):
        repository.create_novel(slug="lost_novel", title="Lost Novel", author="A")
    monkeypatch.undo()

    assert not repository.novel_exists("lost_novel")
    assert not (novels_dir / "lost_novel").exists()

    novel = repository.create_novel(slug="lost_novel", title="Lost Novel", author="A")
    assert novel.id is not None
    assert (novels_dir / "lost_novel" / "chapters").is_dir()


def test_failed_folder_write_removes_row(repository, monkeypatch, novels_dir: Path):
    def broken_write_json(path, data):
        raise OSError("read-only file system")

    monkeypatch.setattr(repository, "_write_json", broken_write_json)
    with pytest.raises(OSError):
        repository.create_novel(slug="readonly", title="Readonly", author="A")

    assert repository.get_novel("readonly") is None
    assert not (novels_dir / "readonly").exists()


def test_require_missing_novel(repository):
    with pytest.raises(NovelNotFoundError):
        repository.require_novel("missing")
    with pytest.raises(NovelNotFoundError):
        repository.get_max_chapter_number("missing")


def test_append_and_list_chapters(repository, novel, novels_dir: Path):
    records = [
        ChapterRecord(number=3, title="Three", storage_ref="0003 - Three.txt", word_count=30),
        ChapterRecord(number=1, title="One", storage_ref="0001 - One.txt", word_count=10),
    ]

    added = repository.append_chapters("dawn", records, expected_max_number=0)

    assert len(added) == 2
    assert [ch.number for ch in repository.get_chapter_list("dawn")] == [1, 3]
    assert repository.get_max_chapter_number("dawn") == 3
    assert repository.get_novel("dawn").total_chapters == 2

    mirror = json.loads((novels_dir / "dawn" / "chapters.json").read_text(encoding="utf-8"))
    assert mirror == [
        {"number": 1, "title": "One", "file": "0001 - One.txt"},
        {"number": 3, "title": "Three", "file": "0003 - Three.txt"},
    ]


def test_append_same_record_twice(repository, novel):
    record = ChapterRecord(number=1, title="One", storage_ref="0001 - One.txt")

    repository.append_chapters("dawn", [record])
    added = repository.append_chapters("dawn", [record])

    assert added == []
    assert len(repository.get_chapter_list("dawn")) == 1


def test_append_with_stale_max_number(repository, novel):
    repository.append_chapters("dawn", [ChapterRecord(number=1, title="One", storage_ref="0001 - One.txt")])

    with pytest.raises(ConcurrentIngestionError):
        repository.append_chapters(
            "dawn",
            [ChapterRecord(number=1, title="Other", storage_ref="0001 - Other.txt")],
            expected_max_number=0,
        )
    assert len(repository.get_chapter_list("dawn")) == 1


def test_chapter_body_round_trip(repository, novel):
    repository.write_chapter_body("dawn", "0001 - One.txt", "본문 텍스트")

    assert repository.read_chapter_body("dawn", "0001 - One.txt") == "본문 텍스트"
    assert repository.read_chapter_body("dawn", "missing.txt") is None


def test_get_chapter(repository, novel):
    repository.append_chapters("dawn", [ChapterRecord(number=2, title="Two", storage_ref="0002 - Two.txt")])

    assert repository.get_chapter("dawn", 2).title == "Two"
    assert repository.get_chapter("dawn", 5) is None
