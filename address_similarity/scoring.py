from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .errors import UnknownModeError
from .idf import MISSING_IDF
from .models import Document, MatchedTerm, SimilarDoc, Term, TermType
from .utils import parse_road_number

BOOST_M = 1.0   # 正常权重
BOOST_L = 2.0   # 加权
BOOST_XL = 3.0  # 高加权
BOOST_S = 0.5   # 降权

# 省市区出现频次高、IDF 低，给高加权；乡镇村、道路本身 IDF 较高，给中等加权；
# 街道选择随意，降权
TYPE_BOOSTS: Dict[TermType, float] = {
    TermType.PROVINCE: BOOST_XL,
    TermType.CITY: BOOST_XL,
    TermType.COUNTY: BOOST_XL,
    TermType.TOWN: BOOST_L,
    TermType.VILLAGE: BOOST_L,
    TermType.ROAD: BOOST_L,
    TermType.ROAD_NUM: BOOST_L,
    TermType.STREET: BOOST_S,
    TermType.TEXT: BOOST_M,
}


def boost_value(term_type: TermType) -> float:
    return TYPE_BOOSTS.get(term_type, BOOST_M)


def road_num_distance_factor(query_num: int, doc_num: int) -> float:
    """门牌号间隔越大，系数越小；门牌号相同时为 1"""
    return 1 / math.sqrt(math.sqrt(abs(query_num - doc_num) + 1))


def candidate_boost(query_doc: Document, doc: Document, term: Term) -> float:
    """地址库文档词条的加权值，门牌号根据道路是否相同及门牌号间隔动态计算"""
    if term.type is not TermType.ROAD_NUM:
        return boost_value(term.type)

    query_num_term = query_doc.last_of(TermType.ROAD_NUM)
    query_road = query_doc.ref_of(query_num_term)
    road = doc.ref_of(term)
    if query_road is None or road is None or query_road != road:
        # 道路不同，门牌号没有意义
        return 0.0
    query_num = parse_road_number(query_num_term.text)
    doc_num = parse_road_number(term.text)
    if query_num > 0 and doc_num > 0:
        return road_num_distance_factor(query_num, doc_num) * BOOST_L
    # 道路相同但门牌号无法比较，降权，把机会让给能按间隔加权的文档
    return BOOST_S


@dataclass
class TextMatch:
    """查询文档 Text 词条在地址库文档中的匹配情况"""
    total: int = 0
    matched: int = 0
    start: int = -1
    end: int = -1

    @property
    def rate(self) -> float:
        if self.total <= 0:
            return 1.0
        return math.sqrt(self.matched / self.total) * 0.5 + 0.5

    @property
    def density(self) -> float:
        # 匹配上的词条越连续，稠密度越高
        if self.total < 2 or self.matched < 2:
            return 1.0
        return math.sqrt(self.matched / (self.end - self.start + 1)) * 0.5 + 0.5


def text_match_stats(query_doc: Document, doc: Document) -> TextMatch:
    tm = TextMatch()
    for qterm in query_doc.terms:
        if qterm.type is not TermType.TEXT:
            continue
        tm.total += 1
        for i, term in enumerate(doc.terms):
            if term.type is not TermType.TEXT or term.text != qterm.text:
                continue
            tm.matched += 1
            if tm.start == -1:
                tm.start = tm.end = i
            else:
                tm.start = min(tm.start, i)
                tm.end = max(tm.end, i)
            break
    return tm


def _cosine(sum_qd: float, sum_qq: float, sum_dd: float) -> Optional[float]:
    if sum_qq == 0 or sum_dd == 0:
        return None
    return sum_qd / math.sqrt(sum_qq * sum_dd)


class CosineScorer:
    """模式 1：所有词条参与的加权余弦相似度，只遍历查询文档的词条"""
    mode = 1

    def __init__(self, missing_idf: float = MISSING_IDF):
        self.missing_idf = missing_idf

    def _idf(self, term: Term) -> float:
        return self.missing_idf if term.idf is None else term.idf

    def score(self, query_doc: Document, doc: Document) -> Optional[SimilarDoc]:
        tm = text_match_stats(query_doc, doc)
        similar = SimilarDoc(doc)

        sum_qq = sum_qd = sum_dd = 0.0
        for qterm in query_doc.terms:
            idf = self._idf(qterm)
            q_weight = idf * boost_value(qterm.type)
            dterm = doc.get_term(qterm.text)
            if dterm is None and qterm.type is TermType.ROAD_NUM:
                dterm = self._road_num_on_same_road(query_doc, qterm, doc)

            d_boost = 0.0
            rate = density = 1.0
            if dterm is not None:
                d_boost = candidate_boost(query_doc, doc, dterm)
                if dterm.type is TermType.TEXT:
                    rate, density = tm.rate, tm.density
            d_weight = idf * d_boost * rate * density
            if dterm is not None:
                similar.add_matched_term(MatchedTerm(dterm, d_boost, rate, density, d_weight))

            sum_qq += q_weight * q_weight
            sum_qd += q_weight * d_weight
            sum_dd += d_weight * d_weight

        value = _cosine(sum_qd, sum_qq, sum_dd)
        if value is None:
            return None
        similar.similarity = similar.text_value = value
        return similar

    @staticmethod
    def _road_num_on_same_road(query_doc: Document, qterm: Term, doc: Document) -> Optional[Term]:
        # 只看地址库文档的第一个门牌号词条
        for term in doc.terms:
            if term.type is not TermType.ROAD_NUM:
                continue
            road = doc.ref_of(term)
            if road is not None and road == query_doc.ref_of(qterm):
                return term
            return None
        return None


class HybridScorer:
    """模式 2：Text 词条余弦相似度 + 乡镇村/道路门牌号确定性匹配，结果按比例混合"""
    mode = 2

    def __init__(self, missing_idf: float = MISSING_IDF):
        self.missing_idf = missing_idf

    def _idf(self, term: Term) -> float:
        return self.missing_idf if term.idf is None else term.idf

    def score(self, query_doc: Document, doc: Document) -> SimilarDoc:
        similar = SimilarDoc(doc)
        similar.text_value = self._text_similarity(query_doc, doc, similar)
        self._apply_exact_rules(query_doc, doc, similar)
        return similar

    def _text_similarity(self, query_doc: Document, doc: Document, similar: SimilarDoc) -> float:
        tm = text_match_stats(query_doc, doc)
        sum_qq = sum_qd = sum_dd = 0.0
        for qterm in query_doc.terms:
            if qterm.type is not TermType.TEXT:
                continue
            q_weight = self._idf(qterm) * boost_value(qterm.type)
            d_weight = 0.0
            term = doc.get_term(qterm.text)
            if term is not None:
                boost = candidate_boost(query_doc, doc, term)
                is_text = term.type is TermType.TEXT
                rate = tm.rate if is_text else 1.0
                density = tm.density if is_text else 1.0
                d_weight = self._idf(term) * boost * rate * density
                similar.add_matched_term(MatchedTerm(term, boost, rate, density, d_weight))
            sum_qq += q_weight * q_weight
            sum_qd += q_weight * d_weight
            sum_dd += d_weight * d_weight
        value = _cosine(sum_qd, sum_qq, sum_dd)
        return 0.0 if value is None else value

    def _apply_exact_rules(self, query_doc: Document, doc: Document, similar: SimilarDoc) -> None:
        qtown, qvillage, qroad, qroad_num = _structure_terms(query_doc)
        dtown, dvillage, droad, droad_num = _structure_terms(doc)
        text_value = similar.text_value

        # 乡镇、村
        if qtown is not None and qtown == dtown:
            similar.add_matched_term(MatchedTerm(dtown))
            if qvillage is not None and qvillage == dvillage:
                similar.add_matched_term(MatchedTerm(dvillage))
                similar.blend(0.98, 1.0)
            else:
                similar.blend(0.98, 0.96 / 0.98)
            return
        if qtown is not None and dtown is not None:
            similar.blend(0.2, 0.0)
            return

        # 道路、门牌号
        if qroad is not None and qroad == droad:
            similar.add_matched_term(MatchedTerm(droad))
            if qroad_num is not None and droad_num is not None:
                similar.add_matched_term(MatchedTerm(droad_num))
                qnum = parse_road_number(qroad_num.text)
                dnum = parse_road_number(droad_num.text)
                if qnum == dnum:
                    similar.blend(0.98, 1.0)
                else:
                    # 文本高度匹配时突出文本，否则突出门牌号间隔
                    percent = 0.2 if text_value > 0.9 else 0.7
                    similar.blend(percent, 0.8 + road_num_distance_factor(qnum, dnum) * 0.2)
            elif text_value > 0.9:
                similar.blend(0.3, 0.9)
            else:
                similar.blend(0.7, 0.8)
            return
        if qroad is not None and droad is not None:
            similar.blend(0.07 if text_value > 0.9 else 0.15, 0.0)
            return

        similar.similarity = similar.exact_percent * similar.exact_value + similar.text_percent * text_value


def _structure_terms(doc: Document) -> Tuple[Optional[Term], Optional[Term], Optional[Term], Optional[Term]]:
    return (
        doc.last_of(TermType.TOWN),
        doc.last_of(TermType.VILLAGE),
        doc.last_of(TermType.ROAD),
        doc.last_of(TermType.ROAD_NUM),
    )


def get_scorer(mode: int, missing_idf: float = MISSING_IDF):
    if mode == 1:
        return CosineScorer(missing_idf)
    if mode == 2:
        return HybridScorer(missing_idf)
    raise UnknownModeError(f"Unknown similarity mode: {mode}")
