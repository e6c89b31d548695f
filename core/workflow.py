"""레코드 공정 이동 및 검수 처리"""

import datetime
from typing import Optional

from core.models import Article, Operation, OperationLog, ScannedCodeRecord
from utils.exceptions import ValidationError


def record_operation(record: ScannedCodeRecord, operation: Operation,
                     timestamp: Optional[datetime.datetime] = None) -> OperationLog:
    """공정 이력을 추가합니다. 포장으로 이동하면 검수 상태가 해제됩니다."""
    now = timestamp or datetime.datetime.now()
    log = OperationLog(operation=operation, timestamp=now)
    record.operation_history.append(log)
    if operation is Operation.PACKAGING:
        record.audited = False
    record.modified_at = now
    return log


def mark_audited(record: ScannedCodeRecord, piece_count: Optional[int] = None,
                 timestamp: Optional[datetime.datetime] = None):
    """검수 완료로 표시합니다. 포장된 레코드는 검수할 수 없습니다."""
    if record.is_packaged():
        raise ValidationError(f"포장된 코드는 검수할 수 없습니다: {record.code}")
    if piece_count is not None and piece_count < 0:
        raise ValidationError(f"수량은 0 이상이어야 합니다: {piece_count}")

    record.audited = True
    if piece_count is not None:
        record.piece_count = piece_count
    record.modified_at = timestamp or datetime.datetime.now()


def correct_created_at(record: ScannedCodeRecord, created_at: datetime.datetime,
                       timestamp: Optional[datetime.datetime] = None):
    record.created_at = created_at
    record.modified_at = timestamp or datetime.datetime.now()


def assign_article(record: ScannedCodeRecord, article: Optional[Article],
                   timestamp: Optional[datetime.datetime] = None):
    record.article_id = article.id if article else None
    record.modified_at = timestamp or datetime.datetime.now()
