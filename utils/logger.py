"""로깅 유틸리티 모듈"""

import csv
import json
import datetime
import os
import queue
import threading
from typing import Dict, Any, Optional, List


class EventLogger:
    """리포트 생성 이벤트를 CSV 파일에 기록하는 클래스"""

    FIELDNAMES = ['timestamp', 'event_type', 'detail']

    def __init__(self, log_file_path: str):
        self.log_file_path = log_file_path
        self.log_queue = queue.Queue()
        self.log_writer_running = True
        self._start_log_writer_thread()

    def _start_log_writer_thread(self):
        """로그 작성 스레드를 시작합니다."""
        self._log_thread = threading.Thread(target=self._event_log_writer, daemon=True)
        self._log_thread.start()

    def _event_log_writer(self):
        """이벤트 로그를 파일에 작성하는 스레드 함수"""
        while self.log_writer_running:
            try:
                log_entry = self.log_queue.get(timeout=1)
            except queue.Empty:
                continue

            if log_entry is None:
                self.log_queue.task_done()
                break

            try:
                file_exists = os.path.exists(self.log_file_path)
                with open(self.log_file_path, mode='a', newline='', encoding='utf-8') as csvfile:
                    writer = csv.DictWriter(csvfile, fieldnames=self.FIELDNAMES)

                    if not file_exists:
                        writer.writeheader()

                    writer.writerow(log_entry)
                    csvfile.flush()
            except OSError as e:
                print(f"로그 작성 오류: {e}")
            finally:
                self.log_queue.task_done()

    def log_event(self, event_type: str, detail: Optional[Dict] = None):
        """이벤트를 로그에 기록합니다."""
        log_entry = {
            'timestamp': datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            'event_type': event_type,
            'detail': json.dumps(detail, ensure_ascii=False, default=str) if detail else ""
        }
        self.log_queue.put(log_entry)

    def flush(self):
        """대기 중인 로그가 모두 파일에 기록될 때까지 기다립니다."""
        self.log_queue.join()

    def _read_rows(self, file_path: str) -> List[Dict[str, Any]]:
        rows = []
        with open(file_path, mode='r', encoding='utf-8') as csvfile:
            reader = csv.DictReader(csvfile)
            for row in reader:
                try:
                    detail = json.loads(row['detail']) if row['detail'] else {}
                except json.JSONDecodeError:
                    continue
                rows.append({
                    'timestamp': row['timestamp'],
                    'event_type': row['event_type'],
                    'detail': detail
                })
        return rows

    def find_log_in_file(self, file_path: str, search_key: str) -> Optional[Dict]:
        """파일에서 detail에 search_key가 들어있는 가장 최근 로그를 찾습니다."""
        if not os.path.exists(file_path):
            return None

        try:
            rows = self._read_rows(file_path)
        except OSError as e:
            print(f"로그 파일 읽기 오류: {e}")
            return None

        for row in reversed(rows):
            if search_key in json.dumps(row['detail'], ensure_ascii=False):
                return row
        return None

    def get_todays_logs(self) -> List[Dict[str, Any]]:
        """오늘 날짜의 모든 로그를 반환합니다."""
        today = datetime.date.today().strftime('%Y-%m-%d')

        if not os.path.exists(self.log_file_path):
            return []

        try:
            rows = self._read_rows(self.log_file_path)
        except OSError as e:
            print(f"로그 파일 읽기 오류: {e}")
            return []
        return [row for row in rows if row['timestamp'].startswith(today)]

    def stop_logger(self):
        """로깅을 중지합니다."""
        self.log_queue.put(None)  # 종료 신호
        self._log_thread.join(timeout=5)
        self.log_writer_running = False
