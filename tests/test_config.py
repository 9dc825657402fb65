import json
from pathlib import Path

from address_similarity.config import DEFAULT_CACHE_DIR, Config, load_config


def _write(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_partial_config_keeps_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("ADDR_SIM_CACHE_DIR", raising=False)
    monkeypatch.delenv("ADDR_SIM_CACHE_IN_MEMORY", raising=False)
    cfg = load_config(_write(tmp_path, {"default_top_n": 10}))
    assert cfg.default_top_n == 10
    assert cfg.cache_dir == DEFAULT_CACHE_DIR
    assert cfg.cache_vectors_in_memory is False
    assert cfg.missing_idf == 4.0


def test_env_overrides_config_file(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ADDR_SIM_CACHE_DIR", str(tmp_path / "vc"))
    monkeypatch.setenv("ADDR_SIM_CACHE_IN_MEMORY", "true")
    cfg = load_config(_write(tmp_path, {"cache_dir": "/tmp/ignored", "cache_vectors_in_memory": False}))
    assert cfg.cache_dir == str(tmp_path / "vc")
    assert cfg.cache_vectors_in_memory is True

    monkeypatch.setenv("ADDR_SIM_CACHE_IN_MEMORY", "0")
    assert load_config(_write(tmp_path, {"cache_vectors_in_memory": True})).cache_vectors_in_memory is False


def test_default_config_file_is_loadable(monkeypatch) -> None:
    monkeypatch.delenv("ADDR_SIM_CACHE_DIR", raising=False)
    monkeypatch.delenv("ADDR_SIM_CACHE_IN_MEMORY", raising=False)
    cfg = load_config(Path(__file__).resolve().parent.parent / "data" / "config.default.json")
    assert cfg.cache_vectors_in_memory is True
    assert cfg == Config(cache_vectors_in_memory=True)
