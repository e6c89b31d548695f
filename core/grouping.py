"""레코드 그룹화 모듈

품목명별, 공정별로 레코드를 나눕니다. 그룹 내부 순서는 입력 순서를 유지하며,
키 정렬은 호출하는 쪽이 iter_by_article_name / iter_by_operation 으로 처리합니다.
"""

import datetime
from collections import Counter
from typing import Dict, Iterable, Iterator, List, Set, Tuple

from core.models import ArticleCatalog, Operation, ScannedCodeRecord


DEFAULT_FALLBACK_OPERATION = Operation.CLEANING_QA


def group_by_article_name(records: Iterable[ScannedCodeRecord],
                          catalog: ArticleCatalog) -> Dict[str, List[ScannedCodeRecord]]:
    """품목명으로 나눕니다. 품목이 없으면 'Unassigned'로 묶습니다."""
    groups: Dict[str, List[ScannedCodeRecord]] = {}
    for record in records:
        groups.setdefault(catalog.name_for(record), []).append(record)
    return groups


def group_by_operation(records: Iterable[ScannedCodeRecord],
                       fallback: Operation = DEFAULT_FALLBACK_OPERATION
                       ) -> Dict[Operation, List[ScannedCodeRecord]]:
    """현재 공정으로 나눕니다. 이력이 없는 레코드는 fallback 공정으로 들어갑니다."""
    groups: Dict[Operation, List[ScannedCodeRecord]] = {}
    for record in records:
        operation = record.current_operation() or fallback
        groups.setdefault(operation, []).append(record)
    return groups


def iter_by_article_name(groups: Dict[str, List[ScannedCodeRecord]]
                         ) -> Iterator[Tuple[str, List[ScannedCodeRecord]]]:
    for name in sorted(groups):
        yield name, groups[name]


def iter_by_operation(groups: Dict[Operation, List[ScannedCodeRecord]]
                      ) -> Iterator[Tuple[Operation, List[ScannedCodeRecord]]]:
    for operation in Operation.canonical_order():
        records = groups.get(operation)
        if records:
            yield operation, records


def categorize_records(records: Iterable[ScannedCodeRecord]
                       ) -> Tuple[List[ScannedCodeRecord], List[ScannedCodeRecord], List[ScannedCodeRecord]]:
    """리포트 입력용으로 (포장, 검수, 기타) 세 목록으로 나눕니다."""
    packaged, audited, other = [], [], []
    for record in records:
        if record.is_packaged():
            packaged.append(record)
        elif record.audited:
            audited.append(record)
        else:
            other.append(record)
    packaged.sort(key=lambda r: r.code)
    audited.sort(key=lambda r: r.code)
    return packaged, audited, other


def select_day(records: Iterable[ScannedCodeRecord], day: datetime.date) -> List[ScannedCodeRecord]:
    """생성일이 해당 날짜인 레코드만 고릅니다."""
    if isinstance(day, datetime.datetime):
        day = day.date()
    return [record for record in records if record.created_at.date() == day]


def find_duplicate_codes(records: Iterable[ScannedCodeRecord]) -> Set[str]:
    """두 번 이상 스캔된 코드 값. 중복은 표시만 하고 제거하지 않습니다."""
    counts = Counter(record.code for record in records)
    return {code for code, count in counts.items() if count > 1}
