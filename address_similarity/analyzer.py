from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from .cache import VectorCache, build_cache_key
from .idf import MISSING_IDF
from .models import AddressEntity, Document, RegionEntity, Term, TermType
from .segment import Segmenter, SimpleSegmenter


logger = logging.getLogger(__name__)

STREET_SUFFIX = "街道"
TOWN_SUFFIXES = ("镇", "乡")


class Analyzer:
    """
    把结构化地址转换为词条向量（Document）。
    词条顺序：区县、乡镇、村庄、道路、门牌号，最后是剩余文本的分词结果。
    省、市在同一地址库内 IDF 基本为 0，不生成词条。
    """

    def __init__(self, segmenter: Optional[Segmenter] = None,
                 cache: Optional[VectorCache] = None,
                 missing_idf: float = MISSING_IDF):
        self.segmenter = segmenter or SimpleSegmenter()
        self.cache = cache
        self.missing_idf = missing_idf

    def analyze_all(self, addresses: Sequence[AddressEntity]) -> List[Document]:
        if not addresses:
            return []
        return [self.analyze(addr) for addr in addresses]

    def analyze(self, addr: AddressEntity) -> Document:
        doc = Document(id=addr.id)
        tokens: List[str] = []
        if addr.text:
            tokens = self.segmenter.segment(addr.text)

        terms: List[Term] = []
        if addr.has_county():
            self.add_term(addr.county.name, TermType.COUNTY, terms, addr.county)

        town = self._pick_town(addr.towns)
        if town:
            self.add_term(town, TermType.TOWN, terms)
        if addr.village:
            self.add_term(addr.village, TermType.VILLAGE, terms)

        road_idx: Optional[int] = None
        if addr.road:
            road_term = self.add_term(addr.road, TermType.ROAD, terms)
            if road_term.type is TermType.ROAD:
                road_idx = _index_of(terms, road_term)
            else:
                logger.warning("Add road term failed: doc=%s, road=%s collides with %s term",
                               doc.id, addr.road, road_term.type.name)

        # 门牌号只有在道路相同时才有区分度，这里记录所属道路，评分时据此判断
        if addr.road_num:
            road_num_term = self.add_term(addr.road_num, TermType.ROAD_NUM, terms)
            if road_num_term.type is TermType.ROAD_NUM:
                road_num_term.ref = road_idx

        for token in tokens:
            self.add_term(token, TermType.TEXT, terms)

        idfs = self.cache.idf_table(build_cache_key(addr)) if self.cache is not None else None
        if idfs is not None:
            for term in terms:
                term.idf = idfs.get(term.text, self.missing_idf)

        doc.terms = terms
        return doc

    def add_term(self, text: str, term_type: TermType, terms: List[Term],
                 region: Optional[RegionEntity] = None) -> Term:
        """按文本去重添加词条，文本已存在时返回已有词条（类型可能不同）"""
        term_text = text
        if len(term_text) >= 4 and region is not None:
            names = region.ordered_names()
            if names:
                term_text = names[-1]
        for term in terms:
            if term.text == term_text:
                return term
        new_term = Term(term_type, term_text)
        terms.append(new_term)
        return new_term

    def _pick_town(self, towns: Sequence[str]) -> Optional[str]:
        # 街道的选择随意性大、准确率低，不参与匹配，只取乡镇
        street = None
        town = None
        for name in towns or []:
            if name.endswith(STREET_SUFFIX):
                street = name
                if town is None:
                    continue
                break
            if name.endswith(TOWN_SUFFIXES):
                town = name.rstrip("".join(TOWN_SUFFIXES))
                if street is None:
                    continue
                break
        return town


def _index_of(terms: List[Term], target: Term) -> Optional[int]:
    for i, term in enumerate(terms):
        if term is target:
            return i
    return None
