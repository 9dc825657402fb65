from __future__ import annotations
from typing import Dict, List, Optional

import pytest

from address_similarity.codec import link_road_refs
from address_similarity.models import AddressEntity, Document, RegionEntity, Term, TermType
from address_similarity.simulate import seed_regions


class StubInterpreter:
    def __init__(self, mapping: Dict[str, AddressEntity]):
        self.mapping = mapping

    def interpret(self, text: str) -> Optional[AddressEntity]:
        return self.mapping.get(text)


class ListSegmenter:
    def __init__(self, tokens: List[str]):
        self.tokens = tokens

    def segment(self, text: str) -> List[str]:
        return list(self.tokens)


@pytest.fixture
def regions() -> Dict[int, RegionEntity]:
    return {r.id: r for r in seed_regions()}


@pytest.fixture
def make_address(regions):
    def _make(aid: int, county_id: int = 10101, **kwargs) -> AddressEntity:
        county = regions[county_id]
        city = regions[county.parent_id]
        province = regions[city.parent_id]
        return AddressEntity(id=aid, province=province, city=city, county=county, **kwargs)
    return _make


@pytest.fixture
def make_doc():
    def _make(doc_id: int, *pairs, idf: float = 1.0) -> Document:
        doc = Document(doc_id, [Term(t, text, idf) for t, text in pairs])
        link_road_refs(doc)
        return doc
    return _make


@pytest.fixture
def T():
    return TermType
