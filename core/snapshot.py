"""JSON 내보내기 파일을 리포트용 스냅샷으로 읽어옵니다.

형식:
    {
        "articles": [{"id", "name", "description", "expected_piece_count"}],
        "codes": [{"id", "code", "created_at", "article_id", "audited", "piece_count",
                   "ship_date", "modified_at",
                   "operation_history": [{"id", "operation", "timestamp"}]}]
    }
"""

import datetime
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from core.models import Article, ArticleCatalog, Operation, OperationLog, ScannedCodeRecord
from utils.exceptions import FileHandlingError, ValidationError


@dataclass(frozen=True)
class ReportSnapshot:
    """리포트 생성 한 번 동안 변하지 않는 입력 묶음"""
    records: Tuple[ScannedCodeRecord, ...]
    catalog: ArticleCatalog


def _parse_datetime(value: Optional[str], field_name: str) -> Optional[datetime.datetime]:
    if value in (None, ""):
        return None
    try:
        return datetime.datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} 값이 ISO-8601 형식이 아닙니다: {value!r}")


def _format_datetime(value: Optional[datetime.datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _optional_int(data: Dict[str, Any], key: str, owner: str) -> Optional[int]:
    value = data.get(key)
    # bool은 int의 하위 타입이므로 따로 거릅니다.
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValidationError(f"{key} 값은 정수여야 합니다: {owner} ({value!r})")
    return value


def _optional_str(data: Dict[str, Any], key: str, owner: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{key} 값은 문자열이어야 합니다: {owner} ({value!r})")
    return value


def _require_dict(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} 항목은 객체여야 합니다: {data!r}")
    return data


def _require_list(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{what} 값은 배열이어야 합니다: {value!r}")
    return value


def _article_from_dict(data: Dict[str, Any]) -> Article:
    data = _require_dict(data, "articles")
    name = data.get('name')
    if not name or not isinstance(name, str):
        raise ValidationError(f"품목 이름이 없습니다: {data}")
    kwargs = {}
    if data.get('id'):
        kwargs['id'] = _optional_str(data, 'id', name)
    return Article(
        name=name,
        description=_optional_str(data, 'description', name),
        expected_piece_count=_optional_int(data, 'expected_piece_count', name),
        **kwargs
    )


def _record_from_dict(data: Dict[str, Any]) -> ScannedCodeRecord:
    data = _require_dict(data, "codes")
    code = data.get('code')
    if not code or not isinstance(code, str):
        raise ValidationError(f"코드 값이 없습니다: {data}")

    history = []
    for entry in _require_list(data.get('operation_history'), f"{code} operation_history"):
        entry = _require_dict(entry, f"{code} operation_history")
        timestamp = _parse_datetime(entry.get('timestamp'), 'timestamp')
        if timestamp is None:
            raise ValidationError(f"공정 이력에 timestamp가 없습니다: {code}")
        label = entry.get('operation')
        if not isinstance(label, str):
            raise ValidationError(f"공정 이력의 operation 값이 올바르지 않습니다: {code} ({label!r})")
        log_kwargs = {'id': _optional_str(entry, 'id', code)} if entry.get('id') else {}
        history.append(OperationLog(operation=Operation.from_label(label), timestamp=timestamp, **log_kwargs))

    kwargs = {'id': _optional_str(data, 'id', code)} if data.get('id') else {}
    created_at = _parse_datetime(data.get('created_at'), 'created_at')
    if created_at is None:
        raise ValidationError(f"created_at 값이 없습니다: {code}")
    piece_count = _optional_int(data, 'piece_count', code)
    if piece_count is not None and piece_count < 0:
        raise ValidationError(f"piece_count 값은 0 이상이어야 합니다: {code} ({piece_count})")
    return ScannedCodeRecord(
        code=code,
        created_at=created_at,
        article_id=_optional_str(data, 'article_id', code),
        audited=bool(data.get('audited', False)),
        piece_count=piece_count,
        ship_date=_parse_datetime(data.get('ship_date'), 'ship_date'),
        modified_at=_parse_datetime(data.get('modified_at'), 'modified_at'),
        operation_history=history,
        **kwargs
    )


def _check_timezones(records: Tuple[ScannedCodeRecord, ...]):
    """한 파일 안의 시각은 모두 시간대가 있거나 모두 없어야 비교할 수 있습니다."""
    aware = set()
    for record in records:
        stamps = [record.created_at, record.ship_date, record.modified_at]
        stamps.extend(log.timestamp for log in record.operation_history)
        aware.update(stamp.tzinfo is not None for stamp in stamps if stamp is not None)
    if len(aware) > 1:
        raise ValidationError("시간대가 있는 시각과 없는 시각이 섞여 있습니다.")


def snapshot_from_dict(data: Dict[str, Any]) -> ReportSnapshot:
    articles = [_article_from_dict(item) for item in _require_list(data.get('articles'), 'articles')]
    records = tuple(_record_from_dict(item) for item in _require_list(data.get('codes'), 'codes'))
    _check_timezones(records)
    return ReportSnapshot(records=records, catalog=ArticleCatalog(articles))


def snapshot_to_dict(snapshot: ReportSnapshot) -> Dict[str, Any]:
    return {
        'articles': [
            {
                'id': article.id,
                'name': article.name,
                'description': article.description,
                'expected_piece_count': article.expected_piece_count,
            }
            for article in snapshot.catalog
        ],
        'codes': [
            {
                'id': record.id,
                'code': record.code,
                'created_at': _format_datetime(record.created_at),
                'article_id': record.article_id,
                'audited': record.audited,
                'piece_count': record.piece_count,
                'ship_date': _format_datetime(record.ship_date),
                'modified_at': _format_datetime(record.modified_at),
                'operation_history': [
                    {'id': log.id, 'operation': log.operation.value,
                     'timestamp': _format_datetime(log.timestamp)}
                    for log in record.operation_history
                ],
            }
            for record in snapshot.records
        ],
    }


def load_snapshot(path: str) -> ReportSnapshot:
    """내보내기 JSON 파일을 읽습니다."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise FileHandlingError(f"스냅샷 파일을 읽을 수 없습니다: {path} ({e})") from e
    if not isinstance(data, dict):
        raise ValidationError(f"스냅샷 최상위 값은 객체여야 합니다: {path}")
    return snapshot_from_dict(data)


def save_snapshot(snapshot: ReportSnapshot, path: str):
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(snapshot_to_dict(snapshot), f, ensure_ascii=False, indent=4)
    except OSError as e:
        raise FileHandlingError(f"스냅샷 파일을 저장할 수 없습니다: {path} ({e})") from e
