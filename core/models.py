"""데이터 모델 정의 모듈"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional, Tuple, Iterable
import datetime
import uuid

from utils.exceptions import ValidationError


UNASSIGNED_ARTICLE = "Unassigned"


def _new_id() -> str:
    return str(uuid.uuid4())


class Operation(str, Enum):
    """공정 단계. 선언 순서가 곧 작업 흐름(canonical) 순서입니다."""
    RIBBONIZING = "Ribbon-izing"
    ASSEMBLY = "Assembly"
    POLISHING = "Polishing"
    CLEAN_GEOMETRY = "Clean/Geometry"
    FRAMING = "Framing"
    LABELING = "Labeling"
    POLARITY = "Polarity"
    TESTING = "Testing"
    CLEANING_QA = "Cleaning/QA"
    PACKAGING = "Packaging"

    @classmethod
    def canonical_order(cls) -> Tuple["Operation", ...]:
        return tuple(cls)

    @classmethod
    def from_label(cls, text: str) -> "Operation":
        """표시 라벨 또는 멤버 이름(대소문자 무시)으로 공정을 찾습니다."""
        normalized = (text or "").strip().lower()
        for operation in cls:
            if normalized in (operation.value.lower(), operation.name.lower()):
                return operation
        raise ValidationError(f"알 수 없는 공정입니다: {text!r}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OperationLog:
    """공정 이력 한 건"""
    operation: Operation
    timestamp: datetime.datetime
    id: str = field(default_factory=_new_id)


@dataclass
class Article:
    """품목 정보. expected_piece_count는 검수 완료 비교에만 쓰입니다."""
    name: str
    description: Optional[str] = None
    expected_piece_count: Optional[int] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        if self.expected_piece_count is None:
            return
        if isinstance(self.expected_piece_count, bool) or not isinstance(self.expected_piece_count, int):
            raise ValidationError(
                f"예상 수량은 정수여야 합니다: {self.name} ({self.expected_piece_count!r})")
        if self.expected_piece_count < 0:
            raise ValidationError(
                f"예상 수량은 0 이상이어야 합니다: {self.name} ({self.expected_piece_count})")


@dataclass
class ScannedCodeRecord:
    """스캔된 바코드 한 건과 누적된 생산 정보를 관리합니다.

    품목은 값 복사 대신 article_id로 참조하며, 조회 시점에 ArticleCatalog로 해석합니다.
    """
    code: str
    created_at: datetime.datetime = field(default_factory=datetime.datetime.now)
    article_id: Optional[str] = None
    audited: bool = False
    piece_count: Optional[int] = None
    ship_date: Optional[datetime.datetime] = None
    modified_at: Optional[datetime.datetime] = None
    operation_history: List[OperationLog] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    def _history_latest_first(self) -> List[OperationLog]:
        # 타임스탬프가 같으면 나중에 추가된 이력이 앞에 옵니다.
        indexed = sorted(enumerate(self.operation_history),
                         key=lambda pair: (pair[1].timestamp, pair[0]),
                         reverse=True)
        return [log for _, log in indexed]

    def current_operation_log(self) -> Optional[OperationLog]:
        history = self._history_latest_first()
        return history[0] if history else None

    def previous_operation_log(self) -> Optional[OperationLog]:
        history = self._history_latest_first()
        return history[1] if len(history) > 1 else None

    def current_operation(self) -> Optional[Operation]:
        log = self.current_operation_log()
        return log.operation if log else None

    def previous_operation(self) -> Optional[Operation]:
        log = self.previous_operation_log()
        return log.operation if log else None

    def is_packaged(self) -> bool:
        return self.current_operation() is Operation.PACKAGING


class ArticleCatalog:
    """article_id -> Article 조회용 읽기 전용 카탈로그"""

    def __init__(self, articles: Iterable[Article] = ()):
        self._articles: Dict[str, Article] = {article.id: article for article in articles}

    def __len__(self) -> int:
        return len(self._articles)

    def __iter__(self):
        return iter(self._articles.values())

    def get(self, article_id: Optional[str]) -> Optional[Article]:
        if article_id is None:
            return None
        return self._articles.get(article_id)

    def resolve(self, record: ScannedCodeRecord) -> Optional[Article]:
        """레코드의 품목을 찾습니다. 삭제된 품목을 가리키면 None."""
        return self.get(record.article_id)

    def name_for(self, record: ScannedCodeRecord) -> str:
        article = self.resolve(record)
        return article.name if article else UNASSIGNED_ARTICLE


# ---------------------------------------------------------------------
# 검수(수량) 상태
# ---------------------------------------------------------------------

class PieceStatus(str, Enum):
    UNKNOWN = "unknown"
    COMPLETE = "complete"
    SHORT = "short"
    EXCESS = "excess"


def missing_pieces(record: ScannedCodeRecord, article: Optional[Article]) -> Optional[int]:
    """완료까지 부족한 수량. 예상 수량이나 검수 수량이 없으면 None."""
    if article is None or article.expected_piece_count is None or record.piece_count is None:
        return None
    return max(0, article.expected_piece_count - record.piece_count)


def completion_percentage(record: ScannedCodeRecord, article: Optional[Article]) -> Optional[float]:
    """검수 수량의 완료율(최대 100.0)."""
    if article is None or not article.expected_piece_count or record.piece_count is None:
        return None
    return min(100.0, record.piece_count / article.expected_piece_count * 100.0)


def has_discrepancy(record: ScannedCodeRecord, article: Optional[Article]) -> bool:
    if article is None or article.expected_piece_count is None or record.piece_count is None:
        return False
    return record.piece_count != article.expected_piece_count


def piece_status(record: ScannedCodeRecord, article: Optional[Article]) -> PieceStatus:
    if article is None or article.expected_piece_count is None or record.piece_count is None:
        return PieceStatus.UNKNOWN
    if record.piece_count == article.expected_piece_count:
        return PieceStatus.COMPLETE
    if record.piece_count < article.expected_piece_count:
        return PieceStatus.SHORT
    return PieceStatus.EXCESS


# ---------------------------------------------------------------------
# 리포트 입출력 모델
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class ReportSettings:
    """리포트 생성 시점의 설정 스냅샷"""
    operator_name: str = ""
    shift: str = "N1"
    logo_reference: Optional[bytes] = None


@dataclass(frozen=True)
class OperationSummary:
    operation: Operation
    total_count: int = 0
    audited_count: int = 0


@dataclass(frozen=True)
class DaySummary:
    """하루 전체 요약. 모든 페이지에 동일하게 붙습니다."""
    total_records: int = 0
    total_audited: int = 0
    total_packaged: int = 0
    operation_distribution: Tuple[OperationSummary, ...] = ()

    def count_for(self, operation: Operation) -> int:
        for entry in self.operation_distribution:
            if entry.operation is operation:
                return entry.total_count
        return 0


@dataclass(frozen=True)
class ReportPageDescriptor:
    """리포트 한 페이지의 내용. 생성 후 변경되지 않습니다."""
    page_number: int
    total_pages: int
    report_date: datetime.date
    is_first_page: bool
    settings: ReportSettings
    packaged_records: Tuple[ScannedCodeRecord, ...] = ()
    process_records: Tuple[ScannedCodeRecord, ...] = ()
    summary: DaySummary = field(default_factory=DaySummary)

    @property
    def operator_name(self) -> str:
        return self.settings.operator_name

    @property
    def shift(self) -> str:
        return self.settings.shift

    @property
    def logo_reference(self) -> Optional[bytes]:
        return self.settings.logo_reference

    @property
    def total_records(self) -> int:
        return self.summary.total_records

    @property
    def total_audited(self) -> int:
        return self.summary.total_audited

    @property
    def total_packaged(self) -> int:
        return self.summary.total_packaged

    @property
    def operation_distribution(self) -> Tuple[OperationSummary, ...]:
        return self.summary.operation_distribution

    def record_ids(self) -> List[str]:
        return [record.id for record in self.packaged_records + self.process_records]
