"""일일 생산 리포트 생성 및 통계 모듈"""

import datetime
from collections import Counter
from typing import Iterable, List, Optional, Tuple

from core.grouping import DEFAULT_FALLBACK_OPERATION, categorize_records, select_day
from core.line_cost import DEFAULT_COSTS, LineCostPolicy
from core.models import (
    ArticleCatalog,
    Operation,
    ReportPageDescriptor,
    ReportSettings,
    ScannedCodeRecord,
)
from core.paginator import DEFAULT_LAYOUT, PageLayout, ReportPaginator
from core.snapshot import ReportSnapshot


def generate_daily_report(snapshot: ReportSnapshot, day: datetime.date, settings: ReportSettings,
                          layout: Optional[PageLayout] = None,
                          costs: Optional[LineCostPolicy] = None,
                          fallback_operation: Operation = DEFAULT_FALLBACK_OPERATION
                          ) -> List[ReportPageDescriptor]:
    """스냅샷에서 해당 날짜의 레코드를 골라 페이지 목록을 만듭니다."""
    if isinstance(day, datetime.datetime):
        day = day.date()
    records = select_day(snapshot.records, day)
    packaged, audited, other = categorize_records(records)
    paginator = ReportPaginator(snapshot.catalog,
                                layout=layout or DEFAULT_LAYOUT,
                                costs=costs or DEFAULT_COSTS,
                                fallback_operation=fallback_operation)
    return paginator.paginate(packaged, audited, other, day, settings)


def build_share_text(records: Iterable[ScannedCodeRecord], catalog: ArticleCatalog,
                     day: datetime.date, generated_at: Optional[datetime.datetime] = None) -> str:
    """공유용 하루 요약 텍스트를 만듭니다."""
    records = list(records)
    generated_at = generated_at or datetime.datetime.now()

    lines = [f"= DAILY JOB SUMMARY - {day.strftime('%Y-%m-%d')} =", ""]
    lines.append(f"Total for the day: {len(records)}")
    lines.append(f"Audited: {sum(1 for r in records if r.audited)}")
    lines.append(f"Packaged: {sum(1 for r in records if r.is_packaged())}")
    lines.append("")
    lines.append("# CODE DETAIL:")

    for record in sorted(records, key=lambda r: r.code):
        line = f"- *{record.code}*"
        article = catalog.resolve(record)
        if article:
            line += f" [{article.name}]"
        operation = record.current_operation()
        if operation is Operation.PACKAGING:
            line += " | Packaging"
        elif operation:
            line += f"  _{operation.value}_"
        else:
            line += "  No operation"
        if record.audited:
            line += " | Audited"
        if record.piece_count is not None:
            line += f" | *{record.piece_count}* pcs"
        lines.append(line)

    lines.append("")
    lines.append("---")
    lines.append(f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}")
    return "\n".join(lines) + "\n"


def packaging_progress(records: Iterable[ScannedCodeRecord]) -> float:
    """포장까지 끝난 레코드 비율(%)."""
    records = list(records)
    if not records:
        return 0.0
    packaged = sum(1 for record in records if record.is_packaged())
    return packaged / len(records) * 100.0


def count_by_operation(records: Iterable[ScannedCodeRecord]) -> List[Tuple[Operation, int]]:
    """현재 공정별 건수(많은 순). 이력이 없는 레코드는 제외합니다."""
    counts = Counter(op for op in (record.current_operation() for record in records) if op)
    order = {operation: index for index, operation in enumerate(Operation.canonical_order())}
    return sorted(counts.items(), key=lambda item: (-item[1], order[item[0]]))


def count_by_article(records: Iterable[ScannedCodeRecord], catalog: ArticleCatalog) -> List[Tuple[str, int]]:
    """품목별 건수(많은 순). 품목이 없는 레코드는 제외합니다."""
    counts = Counter(article.name for article in (catalog.resolve(r) for r in records) if article)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def records_for_operation(records: Iterable[ScannedCodeRecord], operation: Operation) -> List[ScannedCodeRecord]:
    """현재 공정이 operation인 레코드(생성 시각 순)."""
    return sorted((r for r in records if r.current_operation() is operation), key=lambda r: r.created_at)


def records_for_article(records: Iterable[ScannedCodeRecord], catalog: ArticleCatalog,
                        article_name: str) -> List[ScannedCodeRecord]:
    """품목명이 article_name인 레코드(생성 시각 순). 품목이 없는 레코드는 제외합니다."""
    matched = []
    for record in records:
        article = catalog.resolve(record)
        if article and article.name == article_name:
            matched.append(record)
    return sorted(matched, key=lambda r: r.created_at)


def matches_code(code: str, search_text: str) -> bool:
    """검색어가 코드에 맞는지 확인합니다.

    코드는 '12345678T-01-000'처럼 '-'로 나뉜 3부분 이상이어야 하며, 다음 중 하나면 일치입니다.
    - 마지막 부분(일련번호)에 검색어 포함
    - 첫 부분의 끝 4글자에 검색어 포함
    - 코드 전체에 검색어 포함 (대소문자 무시)
    """
    text = (search_text or "").strip()
    if not text:
        return True

    parts = code.split("-")
    if len(parts) < 3:
        return False

    first_part, last_part = parts[0], parts[2]
    if text in last_part:
        return True
    if len(first_part) >= 4 and text in first_part[-4:]:
        return True
    return text.lower() in code.lower()


def search_codes(records: Iterable[ScannedCodeRecord], search_text: str) -> List[ScannedCodeRecord]:
    """검색어에 맞는 레코드를 최근 생성 순으로 반환합니다."""
    matched = [record for record in records if matches_code(record.code, search_text)]
    return sorted(matched, key=lambda r: r.created_at, reverse=True)
