from __future__ import annotations
import json
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CACHE_DIR = "~/.vector_cache"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Config:
    cache_dir: str = DEFAULT_CACHE_DIR
    cache_vectors_in_memory: bool = False
    db_path: str = "data/addresses.xlsx"
    missing_idf: float = 4.0
    default_top_n: int = 5


def load_config(path: str | Path) -> Config:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    cfg = Config(
        cache_dir=str(raw.get("cache_dir") or DEFAULT_CACHE_DIR),
        cache_vectors_in_memory=bool(raw.get("cache_vectors_in_memory", False)),
        db_path=str(raw.get("db_path", "data/addresses.xlsx")),
        missing_idf=float(raw.get("missing_idf", 4.0)),
        default_top_n=int(raw.get("default_top_n", 5)),
    )
    return apply_env_overrides(cfg)


def apply_env_overrides(cfg: Config) -> Config:
    # 环境变量优先于配置文件，入口脚本会先 dotenv.load_dotenv()
    cache_dir = os.getenv("ADDR_SIM_CACHE_DIR", "").strip()
    if cache_dir:
        cfg.cache_dir = cache_dir
    in_memory = os.getenv("ADDR_SIM_CACHE_IN_MEMORY")
    if in_memory is not None and in_memory.strip():
        cfg.cache_vectors_in_memory = in_memory.strip().lower() in _TRUE_VALUES
    return cfg
