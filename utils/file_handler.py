"""파일 처리 유틸리티 모듈"""

import datetime
import os
import re
import sys
from typing import Optional


def resource_path(relative_path: str) -> str:
    """ PyInstaller로 패키징했을 때의 리소스 경로를 가져옵니다. """
    try:
        base_path = sys._MEIPASS
    except AttributeError:
        # 메인 스크립트의 디렉토리를 기준으로 설정
        base_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(base_path, relative_path)


def ensure_directory_exists(directory_path: str) -> bool:
    """디렉토리가 없으면 생성합니다."""
    try:
        if not os.path.exists(directory_path):
            os.makedirs(directory_path, exist_ok=True)
        return True
    except OSError as e:
        print(f"디렉토리 생성 실패: {e}")
        return False


def get_safe_filename(filename: str) -> str:
    """파일명에서 안전하지 않은 문자를 제거합니다."""
    # 파일명에 사용할 수 없는 문자들을 언더스코어로 대체
    safe_name = re.sub(r'[<>:"/\\|?*]', '_', filename)
    return safe_name.strip()


def get_report_filename(report_date: datetime.date, shift: str = "", extension: str = "pdf") -> str:
    """리포트 날짜와 근무조로 저장 파일명을 만듭니다. 예: production_report_2026-10-18_N1.pdf"""
    parts = ["production_report", report_date.strftime('%Y-%m-%d')]
    if shift:
        parts.append(shift)
    return get_safe_filename("_".join(parts) + f".{extension}")


def read_binary_file(file_path: Optional[str]) -> Optional[bytes]:
    """로고 등 바이너리 파일을 읽습니다. 경로가 없거나 파일이 없으면 None."""
    if not file_path or not os.path.exists(file_path):
        return None
    with open(file_path, 'rb') as f:
        return f.read()
