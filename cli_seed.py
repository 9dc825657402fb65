from __future__ import annotations
from pathlib import Path

import dotenv
dotenv.load_dotenv()

from address_similarity.config import load_config
from address_similarity.db import (
    connect,
    init_db,
    clear_table,
    upsert_region,
    insert_addresses,
)
from address_similarity.simulate import seed_regions, generate_addresses

"""
相似地址搜索的仿真数据初始化脚本：
1) 加载 config.default.json，确定 Excel 文件路径；
2) 清空 regions、addresses 工作表；
3) 写入省/市/区县行政区划；
4) 为每个区县生成一批结构化历史地址；
5) 提示下一步运行 cli_build_cache 重建向量缓存。
"""

def main():
    root = Path(__file__).resolve().parent
    cfg = load_config(root / "data" / "config.default.json")

    conn = connect(cfg.db_path)
    init_db(conn)
    for t in ["regions", "addresses"]:
        clear_table(conn, t)

    regions = seed_regions()
    for r in regions:
        upsert_region(conn, r)

    addresses = generate_addresses(n_per_county=20, seed=7)
    insert_addresses(conn, addresses)

    print(f"Excel 数据写入: {cfg.db_path}")
    print(f"Inserted regions: {len(regions)}")
    print(f"Inserted addresses: {len(addresses)}")
    print("Next: python cli_build_cache.py")

if __name__ == "__main__":
    main()
