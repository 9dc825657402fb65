from __future__ import annotations
import logging
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .codec import deserialize, serialize
from .config import Config
from .errors import CacheIOError
from .idf import compute_idf
from .models import AddressEntity, Document, RegionType


logger = logging.getLogger(__name__)


def build_cache_key(address: Optional[AddressEntity]) -> Optional[str]:
    """按 省-市[-区县] 划分地址库；区县是市辖的虚拟区县（直筒子市）时只用省-市"""
    if address is None or not address.has_province() or not address.has_city():
        return None
    key = f"{address.province.id}-{address.city.id}"
    if address.has_county() and address.county.region_type is not RegionType.CITY_LEVEL_COUNTY:
        key += f"-{address.county.id}"
    return key


class VectorCache:
    """
    文档向量缓存：
    - 文件缓存：每个地址库一个 <key>.vt 文件，是唯一的数据来源；
    - 内存缓存（可选）：整个进程共享，首次访问时从文件加载，之后常驻内存；
    - IDF 缓存：只在开启内存缓存时计算并缓存，永不失效（重建文件后需重启进程）。
    """

    def __init__(self, cache_dir: str | Path, in_memory: bool = False):
        self.cache_dir = Path(cache_dir).expanduser()
        self.in_memory = in_memory
        self._vectors: Dict[str, List[Document]] = {}
        self._idf_tables: Dict[str, Dict[str, float]] = {}
        self._vectors_lock = threading.Lock()
        self._idf_lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg: Config) -> "VectorCache":
        return cls(cfg.cache_dir, cfg.cache_vectors_in_memory)

    def cache_path(self, key: str) -> Path:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        return self.cache_dir / f"{key}.vt"

    def idf_table(self, key: Optional[str]) -> Optional[Dict[str, float]]:
        if key is None:
            return None
        return self._idf_tables.get(key)

    def load_documents(self, address: AddressEntity) -> List[Document]:
        key = build_cache_key(address)
        if key is None:
            return []

        if not self.in_memory:
            # 未开启内存缓存时直接读文件，不计算 IDF
            return self.read_corpus_file(key)

        docs = self._vectors.get(key)
        if docs is None:
            with self._vectors_lock:
                docs = self._vectors.get(key)
                if docs is None:
                    docs = self.read_corpus_file(key)
                    self._vectors[key] = docs
                    logger.debug("Cached %d documents in memory for %s", len(docs), key)

        idfs = self._idf_tables.get(key)
        if idfs is None:
            with self._idf_lock:
                idfs = self._idf_tables.get(key)
                if idfs is None:
                    idfs = compute_idf(docs)
                    self._idf_tables[key] = idfs
                    logger.debug("Cached %d idf values for %s", len(idfs), key)

        for doc in docs:
            for term in doc.terms:
                term.idf = idfs.get(term.text)
        return docs

    def read_corpus_file(self, key: str) -> List[Document]:
        path = self.cache_dir / f"{key}.vt"
        if not path.exists():
            return []
        docs: List[Document] = []
        try:
            with path.open("r", encoding="utf-8") as fh:
                for lineno, line in enumerate(fh, start=1):
                    try:
                        doc = deserialize(line)
                    except ValueError as exc:
                        logger.warning("Skip malformed line %d in %s: %s", lineno, path, exc)
                        continue
                    if doc is not None:
                        docs.append(doc)
        except (OSError, UnicodeDecodeError):
            # 读取失败时保留已读出的文档
            logger.exception("Error in reading vector cache file: %s", path)
        return docs

    def write_corpus_file(self, key: str, documents: Sequence[Document]) -> Optional[Path]:
        """重建某个地址库的缓存文件（先删除再重新写入），不能与同一 key 的读取并发执行"""
        if not documents:
            return None
        start = time.time()
        path = self.cache_dir / f"{key}.vt"
        try:
            path = self.cache_path(key)
            if path.exists():
                path.unlink()
            with path.open("w", encoding="utf-8", newline="\n") as fh:
                for doc in documents:
                    fh.write(serialize(doc))
                    fh.write("\n")
        except OSError as exc:
            logger.exception("Error in writing vector cache file: %s", path)
            raise CacheIOError(f"Error in writing vector cache file: {path}", str(path)) from exc
        logger.info("Vector cache %s.vt rebuilt, %d docs, elapsed %.3fs", key, len(documents), time.time() - start)
        return path
