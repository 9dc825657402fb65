from __future__ import annotations
from typing import Optional

from .models import Document, Term, TermType

"""
向量缓存文件的行格式：<文档ID>$<类型码><词条文本>|<类型码><词条文本>|...
词条文本不能包含 $ 和 |，门牌号与道路的关联不写入文件，加载时由 link_road_refs 重建。
"""


def serialize(doc: Document) -> str:
    return f"{doc.id}$" + "|".join(f"{t.type.code}{t.text}" for t in doc.terms)


def deserialize(line: str) -> Optional[Document]:
    if line is None or not line.strip():
        return None
    parts = line.strip().split("$")
    if len(parts) != 2 or not parts[1]:
        return None
    doc = Document(id=int(parts[0]))
    for item in parts[1].split("|"):
        if not item:
            continue
        doc.terms.append(Term(TermType.from_code(item[0]), item[1:]))
    link_road_refs(doc)
    return doc


def link_road_refs(doc: Document) -> None:
    road_idx = None
    road_num = None
    for i, term in enumerate(doc.terms):
        if term.type is TermType.ROAD:
            road_idx = i
        elif term.type is TermType.ROAD_NUM:
            road_num = term
    if road_num is not None:
        road_num.ref = road_idx
