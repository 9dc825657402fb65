from __future__ import annotations
import logging
from pathlib import Path

import dotenv
dotenv.load_dotenv()

from address_similarity.config import load_config
from address_similarity.db import connect, load_addresses, group_by_region
from address_similarity.pipeline import SimilaritySearch

"""
离线重建向量缓存文件：从 Excel 读取全部结构化地址，按 省-市[-区县] 分组，
每组重新分析后覆盖写入 <cache_dir>/<key>.vt。
不要在线上服务读取同一地址库时运行；重建后需重启服务进程，IDF 缓存才会刷新。
"""

def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root = Path(__file__).resolve().parent
    cfg = load_config(root / "data" / "config.default.json")

    conn = connect(cfg.db_path)
    groups = group_by_region(load_addresses(conn))

    search = SimilaritySearch(cfg)
    total = 0
    for key, addresses in groups.items():
        total += search.build_corpus(key, addresses)

    print(f"Rebuilt {len(groups)} region caches, {total} docs, in {search.cache.cache_dir}")

if __name__ == "__main__":
    main()
