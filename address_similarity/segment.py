from __future__ import annotations
import re
from typing import List, Protocol

from .utils import FULLWIDTH_DIGITS


class Segmenter(Protocol):
    def segment(self, text: str) -> List[str]:
        ...


# 连续的英文字母/数字作为一个词，其余文字（汉字、全角字符等）单字成词，标点和空白丢弃；全角数字先转半角
_TOKEN_RE = re.compile(r"[0-9A-Za-z]+|[^\W_]")


class SimpleSegmenter:
    """默认分词器：地址剩余文本通常很短，按单字切分即可。"""

    def segment(self, text: str) -> List[str]:
        if not text:
            return []
        return _TOKEN_RE.findall(text.translate(FULLWIDTH_DIGITS))
