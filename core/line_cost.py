"""리포트 줄 수(line cost) 계산 모듈

그룹 하나가 페이지에서 차지하는 줄 수를 계산합니다. 페이지에 들어가는지 판단할 때만 사용합니다.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LineCostPolicy:
    """그룹별 고정 오버헤드 줄 수.

    - packaged_article_overhead: 포장 품목 제목 1줄 + 소계 1줄
    - operation_header: 공정 섹션 제목 (공정당 한 번)
    - process_article_overhead: 공정 내 품목 블록 제목 2줄 + 소계 1줄
    """
    packaged_article_overhead: int = 2
    operation_header: int = 2
    process_article_overhead: int = 3

    def min_group_cost(self) -> int:
        """가장 작은 배치 단위(레코드 1건)의 줄 수."""
        return max(
            packaged_article_cost(1, self),
            operation_header_cost(self) + process_article_cost(1, self),
        )


DEFAULT_COSTS = LineCostPolicy()


def packaged_article_cost(record_count: int, costs: LineCostPolicy = DEFAULT_COSTS) -> int:
    return costs.packaged_article_overhead + record_count


def operation_header_cost(costs: LineCostPolicy = DEFAULT_COSTS) -> int:
    return costs.operation_header


def process_article_cost(record_count: int, costs: LineCostPolicy = DEFAULT_COSTS) -> int:
    return costs.process_article_overhead + record_count
