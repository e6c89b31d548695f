import argparse
import datetime
import json
import os
import sys
from typing import Any, Dict, List, Optional

from core.grouping import find_duplicate_codes, select_day
from core.line_cost import LineCostPolicy
from core.models import Operation, ReportPageDescriptor, ReportSettings
from core.paginator import PageLayout
from core.report import build_share_text, generate_daily_report
from core.snapshot import ReportSnapshot, load_snapshot
from render.pdf_report import PdfReportRenderer
from utils.exceptions import ConfigurationError, ReportError, ValidationError
from utils.file_handler import ensure_directory_exists, get_report_filename, read_binary_file, resource_path
from utils.logger import EventLogger

# #####################################################################
# # 설정 관리 클래스
# #####################################################################

class ConfigManager:
    """애플리케이션 설정을 관리하는 클래스"""

    def __init__(self, config_file: str = "config.json"):
        self.config_file = config_file
        self.config = self._load_config()

    def _config_path(self) -> str:
        script_dir = os.path.dirname(os.path.abspath(__file__))
        return os.path.join(script_dir, self.config_file)

    def _load_config(self) -> Dict[str, Any]:
        """설정 파일을 로드합니다."""
        try:
            config_path = self._config_path()

            if os.path.exists(config_path):
                with open(config_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            else:
                # 기본 설정 생성
                return self._create_default_config()
        except (OSError, json.JSONDecodeError) as e:
            print(f"설정 파일 로드 오류: {e}")
            return self._create_default_config()

    def _create_default_config(self) -> Dict[str, Any]:
        """기본 설정을 생성합니다."""
        default_config = {
            "app": {
                "name": "Production Report",
                "version": "v1.0.0",
                "description": "일일 생산 리포트 생성기"
            },
            "report": {
                "first_page_lines": 50,
                "first_page_header_lines": 15,
                "page_lines": 55,
                "page_header_lines": 5,
                "packaged_article_overhead": 2,
                "operation_header": 2,
                "process_article_overhead": 3,
                "fallback_operation": Operation.CLEANING_QA.value
            },
            "settings": {
                "operator_name": "",
                "shift": "N1",
                "shifts": ["N1", "N2", "N3", "N4"],
                "logo_path": ""
            },
            "render": {
                "font_path": "",
                "page_size": [1240, 1754],
                "qr_enabled": True,
                "output_folder": "reports"
            },
            "logging": {
                "enabled": True,
                "log_file": "report_log.csv"
            }
        }
        self.save_config(default_config)
        return default_config

    def get(self, key_path: str, default=None):
        """점 표기법으로 설정값을 가져옵니다. 예: 'report.page_lines'"""
        keys = key_path.split('.')
        value = self.config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key_path: str, value):
        """점 표기법으로 설정값을 설정합니다."""
        keys = key_path.split('.')
        config = self.config

        for key in keys[:-1]:
            if key not in config:
                config[key] = {}
            config = config[key]

        config[keys[-1]] = value

    def save_config(self, config_data=None):
        """설정을 파일로 저장합니다."""
        try:
            data = config_data if config_data is not None else self.config

            with open(self._config_path(), 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=4)
        except OSError as e:
            print(f"설정 파일 저장 오류: {e}")


def _int_setting(config_manager: ConfigManager, key_path: str, default: int) -> int:
    value = config_manager.get(key_path, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{key_path} 값은 정수여야 합니다: {value!r}")
    return value


def layout_from_config(config_manager: ConfigManager) -> PageLayout:
    defaults = PageLayout()
    return PageLayout(
        first_page_lines=_int_setting(config_manager, 'report.first_page_lines', defaults.first_page_lines),
        first_page_header_lines=_int_setting(config_manager, 'report.first_page_header_lines',
                                             defaults.first_page_header_lines),
        page_lines=_int_setting(config_manager, 'report.page_lines', defaults.page_lines),
        page_header_lines=_int_setting(config_manager, 'report.page_header_lines', defaults.page_header_lines),
    )


def costs_from_config(config_manager: ConfigManager) -> LineCostPolicy:
    defaults = LineCostPolicy()
    return LineCostPolicy(
        packaged_article_overhead=_int_setting(config_manager, 'report.packaged_article_overhead',
                                               defaults.packaged_article_overhead),
        operation_header=_int_setting(config_manager, 'report.operation_header', defaults.operation_header),
        process_article_overhead=_int_setting(config_manager, 'report.process_article_overhead',
                                              defaults.process_article_overhead),
    )


def fallback_operation_from_config(config_manager: ConfigManager) -> Operation:
    label = config_manager.get('report.fallback_operation', Operation.CLEANING_QA.value)
    try:
        return Operation.from_label(label)
    except ValidationError as e:
        raise ConfigurationError(f"report.fallback_operation 설정 오류: {e}") from e


def settings_from_config(config_manager: ConfigManager) -> ReportSettings:
    """리포트용 설정 스냅샷을 만듭니다. 로고 파일은 바이트로 읽어 둡니다."""
    shift = config_manager.get('settings.shift', "N1")
    shifts = config_manager.get('settings.shifts', [])
    if shifts and shift not in shifts:
        raise ConfigurationError(f"알 수 없는 근무조입니다: {shift} (가능: {', '.join(shifts)})")
    return ReportSettings(
        operator_name=config_manager.get('settings.operator_name', "") or "",
        shift=shift,
        logo_reference=read_binary_file(config_manager.get('settings.logo_path')),
    )


# 전역 설정 매니저 인스턴스
config = ConfigManager()

# #####################################################################
# # 리포트 생성
# #####################################################################

class ReportWorker:
    """스냅샷을 읽어 일일 리포트를 만들고 PDF/공유 텍스트로 내보냅니다."""

    def __init__(self, config_manager: ConfigManager = config, event_logger: Optional[EventLogger] = None):
        self.config = config_manager
        self.layout = layout_from_config(config_manager)
        self.costs = costs_from_config(config_manager)
        self.layout.validate(self.costs)
        self.fallback_operation = fallback_operation_from_config(config_manager)
        self.event_logger = event_logger
        if self.event_logger is None and config_manager.get('logging.enabled', True):
            self.event_logger = EventLogger(config_manager.get('logging.log_file', "report_log.csv"))

    def _log_event(self, event_type: str, detail: Optional[Dict] = None):
        if self.event_logger:
            self.event_logger.log_event(event_type, detail)

    def generate(self, snapshot: ReportSnapshot, day: datetime.date,
                 settings: Optional[ReportSettings] = None) -> List[ReportPageDescriptor]:
        settings = settings or settings_from_config(self.config)
        day_records = select_day(snapshot.records, day)

        duplicates = find_duplicate_codes(day_records)
        if duplicates:
            self._log_event('DUPLICATE_CODES_FOUND', detail={'date': day.isoformat(), 'codes': sorted(duplicates)})

        try:
            pages = generate_daily_report(snapshot, day, settings, layout=self.layout, costs=self.costs,
                                          fallback_operation=self.fallback_operation)
        except ReportError as e:
            self._log_event('REPORT_FAILED', detail={'date': day.isoformat(), 'error': str(e)})
            raise

        self._log_event('REPORT_GENERATED', detail={
            'date': day.isoformat(),
            'pages': len(pages),
            'total_records': pages[0].total_records,
            'packaged': pages[0].total_packaged,
            'audited': pages[0].total_audited,
        })
        return pages

    def export_pdf(self, pages: List[ReportPageDescriptor], snapshot: ReportSnapshot,
                   output_folder: Optional[str] = None) -> str:
        output_folder = output_folder or self.config.get('render.output_folder', "reports")
        ensure_directory_exists(output_folder)
        output_path = os.path.join(output_folder, get_report_filename(pages[0].report_date, pages[0].shift))

        font_path = self.config.get('render.font_path') or None
        if font_path and not os.path.isabs(font_path):
            font_path = resource_path(font_path)

        renderer = PdfReportRenderer(
            snapshot.catalog,
            font_path=font_path,
            page_size=tuple(self.config.get('render.page_size', [1240, 1754])),
            qr_enabled=self.config.get('render.qr_enabled', True),
            fallback_operation=self.fallback_operation,
        )
        renderer.render(pages, output_path)
        self._log_event('REPORT_RENDERED', detail={'path': output_path, 'pages': len(pages)})
        return output_path

    def share_text(self, snapshot: ReportSnapshot, day: datetime.date) -> str:
        return build_share_text(select_day(snapshot.records, day), snapshot.catalog, day)

    def close(self):
        if self.event_logger:
            self.event_logger.stop_logger()


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="production-report",
        description="스캔 코드 내보내기 파일로 일일 생산 리포트 PDF를 만듭니다.",
    )
    p.add_argument("--data", required=True, help="내보내기 JSON 파일 경로")
    p.add_argument("--date", default=None, help="리포트 날짜 YYYY-MM-DD (기본: 오늘)")
    p.add_argument("--output", default=None, help="PDF 저장 폴더 (기본: render.output_folder)")
    p.add_argument("--config", default=None, help="설정 파일 경로")
    p.add_argument("--share-text", action="store_true", help="공유용 요약 텍스트도 출력합니다.")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        day = datetime.date.fromisoformat(args.date) if args.date else datetime.date.today()
    except ValueError:
        print(f"날짜 형식 오류: {args.date}")
        return 2

    config_manager = ConfigManager(args.config) if args.config else config
    try:
        worker = ReportWorker(config_manager)
    except ReportError as e:
        print(f"설정 오류: {e}")
        return 2

    try:
        snapshot = load_snapshot(args.data)
        pages = worker.generate(snapshot, day)
        output_path = worker.export_pdf(pages, snapshot, args.output)
        print(f"리포트 생성 완료: {output_path} ({len(pages)} 페이지)")
        if args.share_text:
            print(worker.share_text(snapshot, day))
        return 0
    except ReportError as e:
        print(f"리포트 생성 실패: {e}")
        return 2
    finally:
        worker.close()


if __name__ == "__main__":
    sys.exit(main())
