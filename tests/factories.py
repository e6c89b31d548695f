"""테스트용 레코드/품목 생성 도우미"""

import datetime
from typing import Iterable, Optional

from core.models import Article, ArticleCatalog, Operation, OperationLog, ScannedCodeRecord


REPORT_DAY = datetime.date(2026, 10, 18)
BASE_TIME = datetime.datetime(2026, 10, 18, 8, 0, 0)


def make_record(code: str, article: Optional[Article] = None, operations: Iterable[Operation] = (),
                audited: bool = False, piece_count: Optional[int] = None,
                created_at: datetime.datetime = BASE_TIME) -> ScannedCodeRecord:
    history = [OperationLog(operation=op, timestamp=created_at + datetime.timedelta(minutes=i))
               for i, op in enumerate(operations)]
    return ScannedCodeRecord(
        code=code,
        created_at=created_at,
        article_id=article.id if article else None,
        audited=audited,
        piece_count=piece_count,
        operation_history=history,
    )


def make_packaged(prefix: str, article: Optional[Article], count: int):
    return [make_record(f"{prefix}-{i:03d}", article, [Operation.ASSEMBLY, Operation.PACKAGING])
            for i in range(count)]


def make_in_process(prefix: str, article: Optional[Article], operation: Operation, count: int,
                    audited: bool = False):
    return [make_record(f"{prefix}-{i:03d}", article, [operation], audited=audited)
            for i in range(count)]


def make_catalog(*names: str):
    articles = {name: Article(name=name) for name in names}
    return articles, ArticleCatalog(articles.values())
