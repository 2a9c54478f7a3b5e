"""애플리케이션 상수"""

import re

# 챕터 경계 패턴 (ChapterSplitter용, 선호 순서)
# 그룹 1 = 챕터 번호, 그룹 2 = 같은 줄의 제목 (선택)
CHAPTER_BOUNDARY_PATTERNS = [
    (
        "standard",
        re.compile(r"^Chapter\s+(\d{1,4})(?:\s*[:\-–—]\s*(.*))?$", re.IGNORECASE | re.MULTILINE),
    ),  # Chapter 1: 제목
    (
        "short",
        re.compile(r"^Ch\.?\s+(\d{1,4})(?:\s*[:\-–—]\s*(.*))?$", re.IGNORECASE | re.MULTILINE),
    ),  # Ch. 1 - 제목
    (
        "numbered",
        re.compile(r"^(\d{1,4})\.\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    ),  # 1. 제목
    (
        "decorated",
        re.compile(r"^-+\s*Chapter\s+(\d{1,4})\s*:?\s*(.*?)\s*-+$", re.IGNORECASE | re.MULTILINE),
    ),  # --- Chapter 1 ---
    (
        "decorated2",
        re.compile(r"^=+\s*Chapter\s+(\d{1,4})\s*:?\s*(.*?)\s*=+$", re.IGNORECASE | re.MULTILINE),
    ),  # === Chapter 1 ===
]

# 줄 맨 앞의 챕터 표시 (제목 목록 / 제목 추출 공통)
CHAPTER_MARKER_PATTERN = re.compile(r"^(?:chapter|ch\.?)\s*(\d+)", re.IGNORECASE)

# 챕터 표시 + 구분자 제거용
CHAPTER_PREFIX_PATTERN = re.compile(r"^(?:chapter|ch\.?)\s*\d+\s*[:\-–—]?\s*", re.IGNORECASE)

# 본문(서술) 판별용 기능어
PROSE_WORD_PATTERN = re.compile(
    r"\b(the|a|an|was|were|had|has|said|looked|turned|walked|went|came)\b",
    re.IGNORECASE,
)
PROSE_ENDING_PATTERN = re.compile(r"[.!?]\"?$")
PROSE_MIN_LENGTH = 15  # 이보다 짧은 줄은 항상 제목 후보
PROSE_MAX_LINE_LENGTH = 120

# 파일명 정리
FILENAME_EXTENSION_PATTERN = re.compile(r"\.(txt|md)$", re.IGNORECASE)
FILENAME_ORDER_PREFIX_PATTERN = re.compile(r"^\d+\s*[-_\s]+")

# 챕터 본문 파일명에 사용할 수 없는 문자: \ / * ? : " < > |
UNSAFE_FILENAME_CHARS = re.compile(r'[\\/*?:"<>|]')

# 소설 slug 생성
SLUG_INVALID_CHARS = re.compile(r"[^a-z0-9]+")

# 소설 연재 상태
NOVEL_STATUSES = ("ongoing", "completed", "hiatus")

DEFAULT_UNTITLED = "Untitled"
CHAPTER_BODY_EXTENSIONS = (".txt", ".md")
