from __future__ import annotations
import logging
import time
from typing import Optional, Protocol, Sequence

from .analyzer import Analyzer
from .cache import VectorCache
from .config import Config
from .errors import InputError, NoCorpusError
from .models import AddressEntity, Query, RegionType
from .scoring import get_scorer
from .segment import Segmenter


logger = logging.getLogger(__name__)


class Interpreter(Protocol):
    def interpret(self, text: str) -> Optional[AddressEntity]:
        ...


class SimilaritySearch:
    """相似地址搜索主流程：解析地址 -> 加载地址库向量 -> 分析查询地址 -> 逐条评分 -> 取 topN。"""

    def __init__(self, cfg: Config,
                 interpreter: Optional[Interpreter] = None,
                 segmenter: Optional[Segmenter] = None,
                 cache: Optional[VectorCache] = None):
        self.cfg = cfg
        self.interpreter = interpreter
        self.cache = cache or VectorCache.from_config(cfg)
        self.analyzer = Analyzer(segmenter, self.cache, cfg.missing_idf)

    def find_similar(self, address_text: str, top_n: Optional[int] = None, mode: int = 2) -> Query:
        start = time.time()
        scorer = get_scorer(mode, self.cfg.missing_idf)
        query = Query(top_n=top_n if top_n is not None else self.cfg.default_top_n)

        if address_text is None or not address_text.strip():
            raise InputError("Null or empty address text! Please provide a valid address.")
        if self.interpreter is None:
            raise RuntimeError("No address interpreter configured")
        addr = self.interpreter.interpret(address_text)
        if addr is None:
            logger.warning("Can't interpret address: %s", address_text)
            raise InputError("Can't interpret address!")
        if not (addr.has_province() and addr.has_city() and addr.has_county()):
            logger.warning(
                "Invalid region %s-%s-%s << %s",
                addr.province.name if addr.has_province() else "X",
                addr.city.name if addr.has_city() else "X",
                addr.county.name if addr.has_county() else "X",
                address_text,
            )
            raise InputError("Can't interpret address, invalid province, city or county name!")

        # 先加载地址库（同时完成 IDF 计算），查询地址分析时才能拿到 IDF
        docs = self.cache.load_documents(addr)
        if not docs:
            raise NoCorpusError(region_name(addr))

        query.query_addr = addr
        query.query_doc = self.analyzer.analyze(addr)

        start_compute = time.time()
        for doc in docs:
            similar = scorer.score(query.query_doc, doc)
            if similar is not None:
                query.add_similar_doc(similar)
        elapsed_compute = time.time() - start_compute

        query.sort_similar_docs()
        logger.info("Find similar elapsed %dms (compute=%dms), %s",
                    (time.time() - start) * 1000, elapsed_compute * 1000, address_text)
        return query

    def build_corpus(self, key: str, addresses: Sequence[AddressEntity]) -> int:
        """重新分析一批地址并重建 key 对应的缓存文件，返回写入的文档数"""
        docs = self.analyzer.analyze_all(addresses)
        if not docs:
            return 0
        self.cache.write_corpus_file(key, docs)
        return len(docs)


def region_name(addr: AddressEntity) -> str:
    name = addr.province.name + addr.city.name
    if addr.county.region_type is not RegionType.CITY_LEVEL_COUNTY:
        name += addr.county.name
    return name
