from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TermType(Enum):
    """词条类型，value 为缓存文件中使用的单字符类型码。"""
    PROVINCE = "1"
    CITY = "2"
    COUNTY = "3"
    STREET = "4"
    TOWN = "T"
    VILLAGE = "V"
    ROAD = "R"
    ROAD_NUM = "N"
    TEXT = "X"

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: str) -> "TermType":
        try:
            return cls(code)
        except ValueError:
            raise ValueError(f"Unknown term type code: {code!r}") from None


class RegionType(Enum):
    PROVINCE = "province"
    CITY = "city"
    CITY_LEVEL_COUNTY = "city_level_county"
    COUNTY = "county"
    STREET = "street"
    TOWN = "town"
    VILLAGE = "village"


@dataclass
class RegionEntity:
    id: int
    name: str
    region_type: RegionType
    parent_id: Optional[int] = None
    aliases: List[str] = field(default_factory=list)

    def ordered_names(self) -> List[str]:
        """名称+别名，按长度升序（稳定排序），最后一个即最长的全称"""
        return sorted([self.name] + [a for a in self.aliases if a], key=len)


@dataclass
class AddressEntity:
    """地址解析器输出的结构化地址，text 为解析后剩余的未识别文本"""
    id: int
    province: Optional[RegionEntity] = None
    city: Optional[RegionEntity] = None
    county: Optional[RegionEntity] = None
    towns: List[str] = field(default_factory=list)
    village: str = ""
    road: str = ""
    road_num: str = ""
    text: str = ""

    def has_province(self) -> bool:
        return self.province is not None

    def has_city(self) -> bool:
        return self.city is not None

    def has_county(self) -> bool:
        return self.county is not None


@dataclass(eq=False)
class Term:
    type: TermType
    text: str
    idf: Optional[float] = None
    # 仅门牌号词条使用：同一文档中道路词条的下标
    ref: Optional[int] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Term):
            return NotImplemented
        return self.type is other.type and self.text == other.text

    def __hash__(self) -> int:
        return hash((self.type, self.text))


@dataclass
class Document:
    id: int
    terms: List[Term] = field(default_factory=list)

    def get_term(self, text: str) -> Optional[Term]:
        for term in self.terms:
            if term.text == text:
                return term
        return None

    def ref_of(self, term: Optional[Term]) -> Optional[Term]:
        if term is None or term.ref is None:
            return None
        if 0 <= term.ref < len(self.terms):
            return self.terms[term.ref]
        return None

    def last_of(self, term_type: TermType) -> Optional[Term]:
        found = None
        for term in self.terms:
            if term.type is term_type:
                found = term
        return found


@dataclass
class MatchedTerm:
    term: Term
    boost: float = 0.0
    rate: float = 0.0
    density: float = 0.0
    weight: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.term.type.name,
            "text": self.term.text,
            "boost": self.boost,
            "rate": self.rate,
            "density": self.density,
            "weight": self.weight,
        }


@dataclass
class SimilarDoc:
    document: Document
    similarity: float = 0.0
    text_value: float = 0.0
    text_percent: float = 1.0
    exact_value: float = 0.0
    exact_percent: float = 0.0
    matched_terms: List[MatchedTerm] = field(default_factory=list)

    def add_matched_term(self, mt: MatchedTerm) -> None:
        self.matched_terms.append(mt)

    def blend(self, exact_percent: float, exact_value: float) -> None:
        """确定性得分与文本得分按比例混合"""
        self.exact_percent = exact_percent
        self.exact_value = exact_value
        self.text_percent = 1 - exact_percent
        self.similarity = self.exact_value * self.exact_percent + self.text_percent * self.text_value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.document.id,
            "similarity": round(self.similarity, 4),
            "text_value": round(self.text_value, 4),
            "text_percent": self.text_percent,
            "exact_value": round(self.exact_value, 4),
            "exact_percent": self.exact_percent,
            "matched_terms": [mt.to_dict() for mt in self.matched_terms],
        }


@dataclass
class Query:
    top_n: int
    query_addr: Optional[AddressEntity] = None
    query_doc: Optional[Document] = None
    similar_docs: List[SimilarDoc] = field(default_factory=list)

    def add_similar_doc(self, doc: SimilarDoc) -> None:
        self.similar_docs.append(doc)

    def sort_similar_docs(self) -> None:
        # sorted 是稳定排序，相似度相同时保持地址库原有顺序
        ranked = sorted(self.similar_docs, key=lambda d: d.similarity, reverse=True)
        self.similar_docs = ranked[: self.top_n]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "top_n": self.top_n,
            "query_terms": [(t.type.name, t.text) for t in self.query_doc.terms] if self.query_doc else [],
            "similar_docs": [d.to_dict() for d in self.similar_docs],
        }
