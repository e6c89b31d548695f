"""이벤트 로거 테스트"""

import unittest
import tempfile
import shutil
import sys
import os

# 상위 디렉토리의 모듈들을 import 하기 위해 경로 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils.logger import EventLogger


class TestEventLogger(unittest.TestCase):
    """EventLogger 테스트"""

    def setUp(self):
        """테스트 시작 전 설정"""
        self.temp_dir = tempfile.mkdtemp()
        self.log_path = os.path.join(self.temp_dir, "report_log.csv")
        self.logger = EventLogger(self.log_path)

    def tearDown(self):
        """테스트 종료 후 정리"""
        self.logger.stop_logger()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_log_event_writes_csv(self):
        """이벤트가 CSV로 기록됨"""
        self.logger.log_event('REPORT_GENERATED', {'date': '2026-10-18', 'pages': 3})
        self.logger.log_event('REPORT_RENDERED')
        self.logger.flush()

        with open(self.log_path, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
        self.assertEqual(lines[0], 'timestamp,event_type,detail')
        self.assertEqual(len(lines), 3)

        logs = self.logger.get_todays_logs()
        self.assertEqual([log['event_type'] for log in logs], ['REPORT_GENERATED', 'REPORT_RENDERED'])
        self.assertEqual(logs[0]['detail'], {'date': '2026-10-18', 'pages': 3})
        self.assertEqual(logs[1]['detail'], {})

    def test_find_log_in_file(self):
        """detail 검색은 가장 최근 로그를 반환"""
        self.logger.log_event('REPORT_GENERATED', {'date': '2026-10-17', 'pages': 1})
        self.logger.log_event('REPORT_GENERATED', {'date': '2026-10-18', 'pages': 2})
        self.logger.log_event('REPORT_GENERATED', {'date': '2026-10-18', 'pages': 4})
        self.logger.flush()

        found = self.logger.find_log_in_file(self.log_path, '2026-10-18')
        self.assertEqual(found['detail']['pages'], 4)
        self.assertIsNone(self.logger.find_log_in_file(self.log_path, '1999-01-01'))
        self.assertIsNone(self.logger.find_log_in_file(os.path.join(self.temp_dir, "none.csv"), 'x'))

    def test_no_file_yet(self):
        """로그 파일이 없으면 빈 목록"""
        self.assertEqual(self.logger.get_todays_logs(), [])


if __name__ == '__main__':
    unittest.main()
