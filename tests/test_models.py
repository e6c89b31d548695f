"""데이터 모델 테스트"""

import unittest
import datetime
import sys
import os

# 상위 디렉토리의 모듈들을 import 하기 위해 경로 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.models import (
    UNASSIGNED_ARTICLE, Article, ArticleCatalog, Operation, OperationLog, PieceStatus,
    ReportPageDescriptor, ReportSettings, ScannedCodeRecord,
    completion_percentage, has_discrepancy, missing_pieces, piece_status,
)
from utils.exceptions import ValidationError
from factories import BASE_TIME, REPORT_DAY, make_record


class TestOperation(unittest.TestCase):
    """Operation 열거형 테스트"""

    def test_canonical_order(self):
        """작업 흐름 순서 테스트"""
        order = Operation.canonical_order()
        self.assertEqual(len(order), 10)
        self.assertEqual(order[0], Operation.RIBBONIZING)
        self.assertEqual(order[-1], Operation.PACKAGING)
        self.assertEqual(order.index(Operation.CLEANING_QA), 8)
        self.assertNotEqual(list(order), sorted(order, key=lambda op: op.value))

    def test_from_label(self):
        """라벨/이름으로 공정 찾기 테스트"""
        self.assertIs(Operation.from_label("Cleaning/QA"), Operation.CLEANING_QA)
        self.assertIs(Operation.from_label("packaging"), Operation.PACKAGING)
        self.assertIs(Operation.from_label("CLEAN_GEOMETRY"), Operation.CLEAN_GEOMETRY)

    def test_from_label_unknown(self):
        """알 수 없는 공정 라벨 테스트"""
        with self.assertRaises(ValidationError):
            Operation.from_label("Painting")


class TestScannedCodeRecord(unittest.TestCase):
    """ScannedCodeRecord 모델 테스트"""

    def test_default_values(self):
        """기본값 설정 테스트"""
        record = ScannedCodeRecord(code="123456789")
        self.assertEqual(record.code, "123456789")
        self.assertFalse(record.audited)
        self.assertIsNone(record.article_id)
        self.assertIsNone(record.piece_count)
        self.assertEqual(len(record.operation_history), 0)
        self.assertTrue(record.id)

    def test_ids_are_unique(self):
        """레코드 식별자 고유성 테스트"""
        self.assertNotEqual(ScannedCodeRecord(code="A").id, ScannedCodeRecord(code="A").id)

    def test_empty_history(self):
        """이력이 없을 때 현재/이전 공정 테스트"""
        record = ScannedCodeRecord(code="A")
        self.assertIsNone(record.current_operation())
        self.assertIsNone(record.previous_operation())
        self.assertFalse(record.is_packaged())

    def test_current_and_previous_by_timestamp(self):
        """타임스탬프 기준 현재/이전 공정 테스트"""
        record = ScannedCodeRecord(code="A")
        record.operation_history.append(OperationLog(Operation.TESTING, BASE_TIME + datetime.timedelta(hours=2)))
        record.operation_history.append(OperationLog(Operation.ASSEMBLY, BASE_TIME))
        record.operation_history.append(OperationLog(Operation.POLISHING, BASE_TIME + datetime.timedelta(hours=1)))

        self.assertIs(record.current_operation(), Operation.TESTING)
        self.assertIs(record.previous_operation(), Operation.POLISHING)

    def test_single_entry_has_no_previous(self):
        """이력이 1건이면 이전 공정이 없음"""
        record = make_record("A", operations=[Operation.FRAMING])
        self.assertIs(record.current_operation(), Operation.FRAMING)
        self.assertIsNone(record.previous_operation())

    def test_timestamp_tie_last_appended_wins(self):
        """같은 타임스탬프면 나중에 추가된 이력이 현재 공정"""
        record = ScannedCodeRecord(code="A")
        record.operation_history.append(OperationLog(Operation.ASSEMBLY, BASE_TIME))
        record.operation_history.append(OperationLog(Operation.PACKAGING, BASE_TIME))

        self.assertIs(record.current_operation(), Operation.PACKAGING)
        self.assertIs(record.previous_operation(), Operation.ASSEMBLY)
        self.assertTrue(record.is_packaged())

    def test_queries_do_not_reorder_history(self):
        """조회가 이력 순서를 바꾸지 않음"""
        record = ScannedCodeRecord(code="A")
        record.operation_history.append(OperationLog(Operation.TESTING, BASE_TIME + datetime.timedelta(hours=1)))
        record.operation_history.append(OperationLog(Operation.ASSEMBLY, BASE_TIME))
        before = list(record.operation_history)
        record.current_operation()
        record.previous_operation()
        self.assertEqual(record.operation_history, before)


class TestArticleCatalog(unittest.TestCase):
    """ArticleCatalog 테스트"""

    def setUp(self):
        """테스트 시작 전 설정"""
        self.article = Article(name="Widget", expected_piece_count=10)
        self.catalog = ArticleCatalog([self.article])

    def test_resolve_and_name(self):
        """품목 조회 테스트"""
        record = make_record("A", self.article)
        self.assertIs(self.catalog.resolve(record), self.article)
        self.assertEqual(self.catalog.name_for(record), "Widget")

    def test_unassigned_and_dangling(self):
        """품목이 없거나 삭제된 품목을 가리키는 경우"""
        no_article = make_record("A")
        dangling = ScannedCodeRecord(code="B", article_id="deleted-article")
        self.assertEqual(self.catalog.name_for(no_article), UNASSIGNED_ARTICLE)
        self.assertIsNone(self.catalog.resolve(dangling))
        self.assertEqual(self.catalog.name_for(dangling), UNASSIGNED_ARTICLE)

    def test_article_edit_is_visible(self):
        """품목 수정이 조회 시점에 반영됨"""
        record = make_record("A", self.article)
        self.article.name = "Widget Mk2"
        self.assertEqual(self.catalog.name_for(record), "Widget Mk2")

    def test_negative_expected_count_rejected(self):
        """음수 예상 수량 거부 테스트"""
        with self.assertRaises(ValidationError):
            Article(name="Bad", expected_piece_count=-1)

    def test_non_integer_expected_count_rejected(self):
        """정수가 아닌 예상 수량 거부 테스트"""
        with self.assertRaises(ValidationError):
            Article(name="Bad", expected_piece_count="5")
        with self.assertRaises(ValidationError):
            Article(name="Bad", expected_piece_count=2.5)


class TestAuditFacts(unittest.TestCase):
    """검수 수량 상태 테스트"""

    def setUp(self):
        """테스트 시작 전 설정"""
        self.article = Article(name="Widget", expected_piece_count=10)

    def test_short_count(self):
        """수량 부족"""
        record = make_record("A", self.article, piece_count=7)
        self.assertEqual(missing_pieces(record, self.article), 3)
        self.assertAlmostEqual(completion_percentage(record, self.article), 70.0)
        self.assertTrue(has_discrepancy(record, self.article))
        self.assertIs(piece_status(record, self.article), PieceStatus.SHORT)

    def test_complete_count(self):
        """수량 일치"""
        record = make_record("A", self.article, piece_count=10)
        self.assertEqual(missing_pieces(record, self.article), 0)
        self.assertFalse(has_discrepancy(record, self.article))
        self.assertIs(piece_status(record, self.article), PieceStatus.COMPLETE)

    def test_excess_count(self):
        """수량 초과"""
        record = make_record("A", self.article, piece_count=12)
        self.assertEqual(missing_pieces(record, self.article), 0)
        self.assertEqual(completion_percentage(record, self.article), 100.0)
        self.assertIs(piece_status(record, self.article), PieceStatus.EXCESS)

    def test_unknown_without_information(self):
        """정보가 없으면 판단하지 않음"""
        record = make_record("A", self.article)
        self.assertIsNone(missing_pieces(record, self.article))
        self.assertIsNone(completion_percentage(record, None))
        self.assertFalse(has_discrepancy(record, None))
        self.assertIs(piece_status(record, None), PieceStatus.UNKNOWN)

    def test_zero_expected_has_no_percentage(self):
        """예상 수량 0이면 완료율 없음"""
        article = Article(name="Empty", expected_piece_count=0)
        record = make_record("A", article, piece_count=0)
        self.assertIsNone(completion_percentage(record, article))
        self.assertIs(piece_status(record, article), PieceStatus.COMPLETE)


class TestReportPageDescriptor(unittest.TestCase):
    """ReportPageDescriptor 테스트"""

    def test_settings_passthrough(self):
        """설정 스냅샷 값 노출 테스트"""
        settings = ReportSettings(operator_name="Ana", shift="N2", logo_reference=b"logo")
        page = ReportPageDescriptor(page_number=1, total_pages=1, report_date=REPORT_DAY,
                                    is_first_page=True, settings=settings)
        self.assertEqual(page.operator_name, "Ana")
        self.assertEqual(page.shift, "N2")
        self.assertEqual(page.logo_reference, b"logo")
        self.assertEqual(page.total_records, 0)
        self.assertEqual(page.record_ids(), [])


if __name__ == '__main__':
    unittest.main()
