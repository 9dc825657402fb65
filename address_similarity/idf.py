from __future__ import annotations
import math
from collections import Counter
from typing import Dict, Iterable

from .models import Document

# 查询词条在地址库 IDF 表中不存在时使用的默认 IDF
MISSING_IDF = 4.0


def count_document_refs(documents: Iterable[Document]) -> Dict[str, int]:
    """统计每个词条出现在多少个文档中（同一文档内重复出现只算一次）"""
    refs: Counter = Counter()
    for doc in documents:
        if not doc.terms:
            continue
        refs.update({term.text for term in doc.terms})
    return dict(refs)


def compute_idf(documents: Iterable[Document]) -> Dict[str, float]:
    """IDF = ln(文档总数 / (包含该词的文档数 + 1))，负值截断为 0"""
    docs = list(documents)
    total = len(docs)
    idfs: Dict[str, float] = {}
    for text, refs in count_document_refs(docs).items():
        idfs[text] = max(0.0, math.log(total / (refs + 1)))
    return idfs
