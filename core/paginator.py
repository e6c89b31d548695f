"""리포트 페이지 분할 모듈

하루치 레코드를 고정 용량 페이지에 그리디 방식으로 나눠 담습니다.

페이지마다 두 단계로 채웁니다.
1. 포장 단계: 남은 포장 레코드를 품목명 순으로 보며, 들어가는 품목 그룹은 통째로 담고
   들어가지 않는 그룹은 다음 페이지로 넘깁니다.
2. 공정 단계: 남은 공정 중 레코드를 공정 순서대로 보며, 공정 제목 줄이 들어가지 않으면
   단계를 끝냅니다. 공정 안에서는 품목명 순으로 담다가 들어가지 않는 그룹을 만나면
   다음 공정으로 넘어갑니다.

그룹은 절대 두 페이지로 나뉘지 않습니다.
"""

import datetime
from dataclasses import dataclass
from typing import List, Sequence, Set, Tuple

from core.grouping import (
    DEFAULT_FALLBACK_OPERATION,
    group_by_article_name,
    group_by_operation,
    iter_by_article_name,
    iter_by_operation,
)
from core.line_cost import (
    DEFAULT_COSTS,
    LineCostPolicy,
    operation_header_cost,
    packaged_article_cost,
    process_article_cost,
)
from core.models import (
    ArticleCatalog,
    DaySummary,
    Operation,
    ReportPageDescriptor,
    ReportSettings,
    ScannedCodeRecord,
)
from core.summary import empty_page, finalize_pages, summarize_day
from utils.exceptions import ConfigurationError, PaginationError


@dataclass(frozen=True)
class PageLayout:
    """페이지 용량 정책. 예산 = 전체 줄 수 - 머리글 예약 줄 수"""
    first_page_lines: int = 50
    first_page_header_lines: int = 15
    page_lines: int = 55
    page_header_lines: int = 5

    @property
    def first_page_budget(self) -> int:
        return self.first_page_lines - self.first_page_header_lines

    @property
    def page_budget(self) -> int:
        return self.page_lines - self.page_header_lines

    def budget_for(self, page_number: int) -> int:
        return self.first_page_budget if page_number == 1 else self.page_budget

    def max_budget_from(self, page_number: int) -> int:
        """page_number 페이지 이후로 얻을 수 있는 가장 큰 예산."""
        if page_number == 1:
            return max(self.first_page_budget, self.page_budget)
        return self.page_budget

    def validate(self, costs: LineCostPolicy = DEFAULT_COSTS):
        """레코드 1건짜리 그룹이 빈 페이지에 항상 들어가는지 확인합니다."""
        floor = costs.min_group_cost()
        for label, budget in (("first page", self.first_page_budget), ("page", self.page_budget)):
            if budget < floor:
                raise ConfigurationError(
                    f"{label} budget {budget} is smaller than the minimum group cost {floor}")


DEFAULT_LAYOUT = PageLayout()


@dataclass
class _PageFill:
    packaged: List[ScannedCodeRecord]
    process: List[ScannedCodeRecord]
    used_lines: int = 0

    def is_empty(self) -> bool:
        return not self.packaged and not self.process


class ReportPaginator:
    """포장/공정 중 레코드를 페이지 단위로 나눕니다.

    입력 목록은 변경하지 않으며, 호출할 때마다 새로운 페이지 목록을 만듭니다.
    """

    def __init__(self, catalog: ArticleCatalog,
                 layout: PageLayout = DEFAULT_LAYOUT,
                 costs: LineCostPolicy = DEFAULT_COSTS,
                 fallback_operation: Operation = DEFAULT_FALLBACK_OPERATION):
        layout.validate(costs)
        self.catalog = catalog
        self.layout = layout
        self.costs = costs
        self.fallback_operation = fallback_operation

    def paginate(self, packaged: Sequence[ScannedCodeRecord],
                 audited: Sequence[ScannedCodeRecord],
                 other: Sequence[ScannedCodeRecord],
                 report_date: datetime.date,
                 settings: ReportSettings) -> List[ReportPageDescriptor]:
        """페이지 목록을 만들고 전체 페이지 수와 하루 요약을 모든 페이지에 붙입니다.

        레코드가 하나도 없으면 빈 페이지 1장을 반환합니다.
        """
        in_process = sorted(list(audited) + list(other), key=lambda r: r.code)
        summary = summarize_day(packaged, audited, in_process, self.fallback_operation)

        pages = self.split_pages(packaged, in_process, report_date, settings)
        if not pages:
            pages = [empty_page(report_date, settings)]
        return finalize_pages(pages, summary)

    def split_pages(self, packaged: Sequence[ScannedCodeRecord],
                    in_process: Sequence[ScannedCodeRecord],
                    report_date: datetime.date,
                    settings: ReportSettings) -> List[ReportPageDescriptor]:
        """그리디 분할만 수행합니다. total_pages와 summary는 채우지 않습니다."""
        remaining_packaged = list(packaged)
        remaining_process = sorted(in_process, key=lambda r: r.code)

        pages: List[ReportPageDescriptor] = []
        page_number = 1

        while remaining_packaged or remaining_process:
            budget = self.layout.budget_for(page_number)
            fill = _PageFill(packaged=[], process=[])

            if remaining_packaged:
                self._fill_packaged(fill, remaining_packaged, budget)
                remaining_packaged = _without(remaining_packaged, fill.packaged)

            if remaining_process and budget - fill.used_lines > operation_header_cost(self.costs):
                self._fill_process(fill, remaining_process, budget)
                remaining_process = _without(remaining_process, fill.process)

            if fill.is_empty() and budget >= self.layout.max_budget_from(page_number):
                raise self._oversized_error(remaining_packaged, remaining_process, budget)

            pages.append(ReportPageDescriptor(
                page_number=page_number,
                total_pages=0,
                report_date=report_date,
                is_first_page=page_number == 1,
                settings=settings,
                packaged_records=tuple(fill.packaged),
                process_records=tuple(fill.process),
                summary=DaySummary(),
            ))
            page_number += 1

        return pages

    def _fill_packaged(self, fill: _PageFill, remaining: List[ScannedCodeRecord], budget: int):
        groups = group_by_article_name(remaining, self.catalog)
        for _, records in iter_by_article_name(groups):
            cost = packaged_article_cost(len(records), self.costs)
            if fill.used_lines + cost <= budget:
                fill.packaged.extend(records)
                fill.used_lines += cost

    def _fill_process(self, fill: _PageFill, remaining: List[ScannedCodeRecord], budget: int):
        header = operation_header_cost(self.costs)
        by_operation = group_by_operation(remaining, self.fallback_operation)

        for _, operation_records in iter_by_operation(by_operation):
            if fill.used_lines + header > budget:
                break

            header_charged = False
            groups = group_by_article_name(operation_records, self.catalog)
            for _, records in iter_by_article_name(groups):
                cost = process_article_cost(len(records), self.costs)
                pending_header = 0 if header_charged else header
                if fill.used_lines + pending_header + cost > budget:
                    break
                fill.used_lines += pending_header + cost
                header_charged = True
                fill.process.extend(records)

    def _oversized_error(self, remaining_packaged: List[ScannedCodeRecord],
                         remaining_process: List[ScannedCodeRecord],
                         budget: int) -> PaginationError:
        group, cost = self._first_blocking_group(remaining_packaged, remaining_process)
        return PaginationError(
            f"Group '{group}' needs {cost} lines but a page holds at most {budget}; "
            f"it can never be placed without splitting",
            group=group, cost=cost, budget=budget)

    def _first_blocking_group(self, remaining_packaged: List[ScannedCodeRecord],
                              remaining_process: List[ScannedCodeRecord]) -> Tuple[str, int]:
        if remaining_packaged:
            groups = group_by_article_name(remaining_packaged, self.catalog)
            name, records = next(iter_by_article_name(groups))
            return f"packaged / {name}", packaged_article_cost(len(records), self.costs)

        by_operation = group_by_operation(remaining_process, self.fallback_operation)
        operation, operation_records = next(iter_by_operation(by_operation))
        groups = group_by_article_name(operation_records, self.catalog)
        name, records = next(iter_by_article_name(groups))
        cost = operation_header_cost(self.costs) + process_article_cost(len(records), self.costs)
        return f"{operation.value} / {name}", cost


def _without(records: List[ScannedCodeRecord], placed: List[ScannedCodeRecord]) -> List[ScannedCodeRecord]:
    """배치된 레코드를 객체 식별자 기준으로 제거합니다."""
    placed_ids: Set[int] = {id(record) for record in placed}
    return [record for record in records if id(record) not in placed_ids]
