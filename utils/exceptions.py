"""커스텀 예외 클래스들"""

from typing import Optional


class ReportError(Exception):
    """생산 리포트 시스템의 기본 예외 클래스"""
    pass


class ConfigurationError(ReportError):
    """설정 관련 오류"""
    pass


class FileHandlingError(ReportError):
    """파일 처리 관련 오류"""
    pass


class ValidationError(ReportError):
    """데이터 검증 관련 오류"""
    pass


class RenderError(ReportError):
    """리포트 렌더링 관련 오류"""
    pass


class PaginationError(ReportError):
    """빈 페이지에도 들어가지 않는 그룹이 있어 페이지 분할이 진행될 수 없을 때 발생합니다."""

    def __init__(self, message: str, group: Optional[str] = None,
                 cost: Optional[int] = None, budget: Optional[int] = None):
        super().__init__(message)
        self.group = group
        self.cost = cost
        self.budget = budget
