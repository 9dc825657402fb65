import threading
import time

import pytest

from address_similarity.cache import VectorCache, build_cache_key
from address_similarity.codec import serialize
from address_similarity.errors import CacheIOError
from address_similarity.idf import compute_idf
from address_similarity.models import Document, Term, TermType

KEY = "1-101-10101"


def _corpus():
    docs = []
    for i, (road, num, text) in enumerate([("创新大道", "40号", "园"), ("科学大道", "8号", "园"), ("文昌路", "12号", "楼")]):
        docs.append(Document(i + 1, [
            Term(TermType.COUNTY, "蜀山区"),
            Term(TermType.ROAD, road),
            Term(TermType.ROAD_NUM, num, ref=1),
            Term(TermType.TEXT, text),
        ]))
    return docs


def test_build_cache_key(make_address) -> None:
    assert build_cache_key(make_address(1)) == "1-101-10101"
    assert build_cache_key(make_address(2, county_id=10801)) == "1-108"

    no_county = make_address(3)
    no_county.county = None
    assert build_cache_key(no_county) == "1-101"

    no_city = make_address(4)
    no_city.city = None
    assert build_cache_key(no_city) is None
    assert build_cache_key(None) is None


def test_write_then_read_corpus_file(tmp_path) -> None:
    cache = VectorCache(tmp_path / "vc")
    path = cache.write_corpus_file(KEY, _corpus())
    assert path == tmp_path / "vc" / f"{KEY}.vt"
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "1$3蜀山区|R创新大道|N40号|X园"

    docs = cache.read_corpus_file(KEY)
    assert [d.id for d in docs] == [1, 2, 3]
    assert docs[0].ref_of(docs[0].terms[2]).text == "创新大道"


def test_write_replaces_existing_file(tmp_path) -> None:
    cache = VectorCache(tmp_path)
    cache.write_corpus_file(KEY, _corpus())
    cache.write_corpus_file(KEY, _corpus()[:1])
    assert [d.id for d in cache.read_corpus_file(KEY)] == [1]


def test_write_empty_batch_is_noop(tmp_path) -> None:
    cache = VectorCache(tmp_path)
    assert cache.write_corpus_file(KEY, []) is None
    assert not (tmp_path / f"{KEY}.vt").exists()


def test_write_failure_raises_cache_io_error(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    cache = VectorCache(blocker / "vc")
    with pytest.raises(CacheIOError) as exc_info:
        cache.write_corpus_file(KEY, _corpus())
    assert KEY in exc_info.value.path


def test_read_failure_degrades_to_empty(tmp_path) -> None:
    (tmp_path / f"{KEY}.vt").mkdir()
    assert VectorCache(tmp_path).read_corpus_file(KEY) == []


def test_missing_file_is_empty_corpus(tmp_path) -> None:
    assert VectorCache(tmp_path).read_corpus_file("9-9") == []


def test_malformed_lines_are_skipped(tmp_path) -> None:
    lines = [serialize(_corpus()[0]), "garbage", "x$X1", "2$Q1", "", serialize(_corpus()[1])]
    (tmp_path / f"{KEY}.vt").write_text("\n".join(lines) + "\n", encoding="utf-8")
    assert [d.id for d in VectorCache(tmp_path).read_corpus_file(KEY)] == [1, 2]


def test_file_tier_only_leaves_idf_unset(tmp_path, make_address) -> None:
    cache = VectorCache(tmp_path, in_memory=False)
    cache.write_corpus_file(KEY, _corpus())
    first = cache.load_documents(make_address(1))
    second = cache.load_documents(make_address(1))
    assert [d.id for d in first] == [1, 2, 3]
    assert first is not second
    assert all(t.idf is None for d in first for t in d.terms)
    assert cache.idf_table(KEY) is None


def test_memory_tier_caches_documents_and_idf(tmp_path, make_address) -> None:
    cache = VectorCache(tmp_path, in_memory=True)
    cache.write_corpus_file(KEY, _corpus())
    first = cache.load_documents(make_address(1))
    second = cache.load_documents(make_address(2))
    assert first is second

    expected = compute_idf(_corpus())
    assert cache.idf_table(KEY) == expected
    assert all(t.idf == expected[t.text] for d in first for t in d.terms)
    assert first[0].get_term("蜀山区").idf == 0.0


def test_idf_table_is_never_recomputed(tmp_path, make_address) -> None:
    cache = VectorCache(tmp_path, in_memory=True)
    cache.write_corpus_file(KEY, _corpus())
    cache.load_documents(make_address(1))
    table = cache.idf_table(KEY)

    cache.write_corpus_file(KEY, _corpus()[:1])
    cache.load_documents(make_address(1))
    assert cache.idf_table(KEY) is table


def test_memory_tier_missing_corpus_caches_empty_list(tmp_path, make_address) -> None:
    cache = VectorCache(tmp_path, in_memory=True)
    assert cache.load_documents(make_address(1)) == []
    assert cache.idf_table(KEY) == {}


def test_concurrent_first_load_populates_once(tmp_path, make_address, monkeypatch) -> None:
    cache = VectorCache(tmp_path, in_memory=True)
    cache.write_corpus_file(KEY, _corpus())

    calls = []
    original = cache.read_corpus_file

    def slow_read(key):
        calls.append(key)
        time.sleep(0.05)
        return original(key)

    monkeypatch.setattr(cache, "read_corpus_file", slow_read)

    n_threads = 8
    barrier = threading.Barrier(n_threads)
    results = [None] * n_threads

    def worker(i):
        barrier.wait()
        results[i] = cache.load_documents(make_address(100 + i))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert calls == [KEY]
    assert all(r is results[0] for r in results)
    assert len(results[0]) == 3


def test_cache_dir_expands_user_home() -> None:
    cache = VectorCache("~/.vector_cache")
    assert "~" not in str(cache.cache_dir)


def test_undecodable_file_degrades_to_empty(tmp_path, make_address) -> None:
    (tmp_path / f"{KEY}.vt").write_bytes(b"1$X\xff\xfe\n")
    assert VectorCache(tmp_path).read_corpus_file(KEY) == []
    assert VectorCache(tmp_path, in_memory=True).load_documents(make_address(1)) == []


def test_lines_without_terms_are_skipped(tmp_path) -> None:
    lines = ["5$", serialize(_corpus()[0])]
    (tmp_path / f"{KEY}.vt").write_text("\n".join(lines) + "\n", encoding="utf-8")
    assert [d.id for d in VectorCache(tmp_path).read_corpus_file(KEY)] == [1]
