"""리포트 조립 모듈: 하루 요약 계산과 페이지 마무리"""

import dataclasses
import datetime
from typing import List, Sequence

from core.grouping import DEFAULT_FALLBACK_OPERATION, group_by_operation
from core.models import (
    DaySummary,
    Operation,
    OperationSummary,
    ReportPageDescriptor,
    ReportSettings,
    ScannedCodeRecord,
)


def summarize_day(packaged: Sequence[ScannedCodeRecord],
                  audited: Sequence[ScannedCodeRecord],
                  in_process: Sequence[ScannedCodeRecord],
                  fallback: Operation = DEFAULT_FALLBACK_OPERATION) -> DaySummary:
    """페이지 분할 전에 하루 전체 집계를 한 번 계산합니다.

    공정별 분포는 공정 중 레코드만 대상으로 하며 모든 공정을 순서대로, 0건도 포함해 나열합니다.
    """
    by_operation = group_by_operation(in_process, fallback)
    distribution = tuple(
        OperationSummary(
            operation=operation,
            total_count=len(by_operation.get(operation, [])),
            audited_count=sum(1 for record in by_operation.get(operation, []) if record.audited),
        )
        for operation in Operation.canonical_order()
    )
    return DaySummary(
        total_records=len(packaged) + len(in_process),
        total_audited=len(audited),
        total_packaged=len(packaged),
        operation_distribution=distribution,
    )


def empty_page(report_date: datetime.date, settings: ReportSettings) -> ReportPageDescriptor:
    return ReportPageDescriptor(
        page_number=1,
        total_pages=1,
        report_date=report_date,
        is_first_page=True,
        settings=settings,
    )


def finalize_pages(pages: Sequence[ReportPageDescriptor], summary: DaySummary) -> List[ReportPageDescriptor]:
    """모든 페이지에 같은 전체 페이지 수와 하루 요약을 붙인 새 목록을 반환합니다."""
    total_pages = len(pages)
    return [dataclasses.replace(page, total_pages=total_pages, summary=summary) for page in pages]
