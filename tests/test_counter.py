# tests/test_counter.py
import os
from pathlib import Path

import pytest

from summarize.core.counter import ParallelTokenEngine, WorkerPool
from summarize.core.ignore import InvalidPatternError
from summarize.models import FilterConfig, TokenizerModel, TokenReport


def word_count(text: str) -> int:
    """Deterministic stand-in for a real tokenizer."""
    return len(text.split())


def make_engine(workers: int, config: FilterConfig = FilterConfig()) -> ParallelTokenEngine:
    return ParallelTokenEngine(
        WorkerPool(workers),
        model=TokenizerModel.GPT_4,
        config=config,
        count_fn=word_count,
        show_progress=False,
    )


@pytest.fixture
def many_files(tmp_path):
    """40 text files with known word counts, plus one file that is not UTF-8."""
    for i in range(40):
        sub = tmp_path / f"pkg{i % 4}"
        sub.mkdir(exist_ok=True)
        (sub / f"mod{i}.py").write_text("word " * (i + 1), encoding="utf-8")
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\xfd")
    return tmp_path


# --- Test 1: WorkerPool ---


def test_worker_pool_zero_uses_all_cores():
    assert WorkerPool(0).size == (os.cpu_count() or 1)
    assert WorkerPool(3).size == 3


def test_worker_pool_rejects_negative_size():
    with pytest.raises(ValueError):
        WorkerPool(-1)


def test_partition_covers_every_item_once():
    items = list(range(10))
    slices = WorkerPool(3).partition(items)

    assert len(slices) == 3
    assert sorted(x for s in slices for x in s) == items


def test_partition_never_returns_empty_slices():
    assert WorkerPool(8).partition([1, 2]) == [[1], [2]]
    assert WorkerPool(8).partition([]) == []


def test_map_slices_joins_all_results():
    results = WorkerPool(4).map_slices(sum, list(range(100)))
    assert sum(results) == sum(range(100))


# --- Test 2: Engine ---


def test_report_totals(many_files):
    report = make_engine(4).run([many_files])

    assert report.files_processed == 40
    assert report.total_tokens == sum(range(1, 41))
    assert report.total_tokens == sum(report.file_tokens.values())
    assert report.file_tokens[many_files / "pkg0" / "mod0.py"] == 1


def test_pool_size_does_not_change_the_report(many_files):
    single = make_engine(1).run([many_files])
    parallel = make_engine(8).run([many_files])

    assert dict(single.file_tokens) == dict(parallel.file_tokens)
    assert single.total_tokens == parallel.total_tokens


def test_unreadable_files_are_skipped(many_files):
    files = make_engine(2).discover([many_files])
    assert many_files / "blob.bin" in files

    report = make_engine(2).run([many_files])
    assert many_files / "blob.bin" not in report.file_tokens


def test_duplicate_roots_are_counted_once(many_files):
    target = many_files / "pkg1" / "mod1.py"
    report = make_engine(2).run([target, target, many_files / "pkg1"])

    assert report.files_processed == 10
    assert report.total_tokens == sum(report.file_tokens.values())


def test_filters_apply_to_discovery(many_files):
    engine = make_engine(2, FilterConfig(ignore_patterns=("pkg0/",)))
    report = engine.run([many_files])

    assert report.files_processed == 30
    assert not any(path.parent.name == "pkg0" for path in report.file_tokens)


def test_empty_tree(tmp_path):
    report = make_engine(4).run([tmp_path])

    assert report.total_tokens == 0
    assert report.files_processed == 0


def test_invalid_pattern_fails_at_construction():
    with pytest.raises(InvalidPatternError):
        make_engine(1, FilterConfig(ignore_patterns=("[bad",)))


def test_default_count_fn_uses_model_tokenizer(monkeypatch, tmp_path):
    calls = []

    def fake_count(text, model):
        calls.append(model)
        return 7

    monkeypatch.setattr("summarize.core.counter.count_tokens", fake_count)
    (tmp_path / "a.txt").write_text("anything", encoding="utf-8")

    engine = ParallelTokenEngine(WorkerPool(1), model=TokenizerModel.CLAUDE_3_OPUS, show_progress=False)
    report = engine.run([tmp_path])

    assert report.total_tokens == 7
    assert calls == [TokenizerModel.CLAUDE_3_OPUS]


# --- Test 3: TokenReport ---


def test_token_report_rejects_inconsistent_total():
    with pytest.raises(ValueError):
        TokenReport(file_tokens={Path("a"): 1}, total_tokens=5)


def test_token_report_is_read_only():
    report = TokenReport.build({Path("a"): 2, Path("b"): 3}, duration_ms=10)

    assert report.total_tokens == 5
    with pytest.raises(TypeError):
        report.file_tokens[Path("c")] = 1


def test_run_announces_each_phase(many_files):
    messages = []
    engine = ParallelTokenEngine(
        WorkerPool(2), count_fn=word_count, show_progress=False, announce=messages.append
    )

    engine.run([many_files])

    assert messages == ["Discovering files to process...", "Counting tokens in 41 files..."]
