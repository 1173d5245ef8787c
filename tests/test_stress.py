"""
rfc822like Stress Tests
=======================
Battle-test the format with large payloads, many records, format
conversions, awkward content and benchmarks.

Run:
    python -m pytest tests/test_stress.py -v --tb=short
    python tests/test_stress.py          # standalone mode with benchmarks
"""

from __future__ import annotations

import sys
import tempfile
import time
from pathlib import Path

# Allow running from repo root
sys.path.insert(0, str(Path(__file__).parent.parent))

from rfc822like.document import Record
from rfc822like.reader import RFC822Reader
from rfc822like.stream import RecordStreamWriter
from rfc822like.writer import RFC822Writer, WriterConfig
from rfc822like import converters


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _timer():
    """Simple context-manager stopwatch."""
    class Timer:
        def __init__(self):
            self.elapsed = 0.0
        def __enter__(self):
            self._start = time.perf_counter()
            return self
        def __exit__(self, *_):
            self.elapsed = time.perf_counter() - self._start
    return Timer()


def _write_temp(records) -> tuple[Path, int]:
    """Write records to a temp file, return (path, nbytes)."""
    with tempfile.NamedTemporaryFile(suffix=".deb822", delete=False) as f:
        path = Path(f.name)
    nbytes = RFC822Writer.write(records, str(path))
    return path, nbytes


def _report(label: str, elapsed: float, size: int = 0):
    mb = size / (1024 * 1024) if size else 0
    rate = f" ({mb / elapsed:.1f} MB/s)" if size and elapsed > 0 else ""
    print(f"  {label}: {elapsed*1000:.1f} ms{rate}")


def _package(i: int) -> dict:
    return {
        "Package": f"pkg-{i:05d}",
        "Version": f"1.{i}-1",
        "Architecture": "amd64",
        "Depends": ["libc6 (>= 2.34)", f"libpkg{i % 50}", "python3"],
        "Description": f"package number {i}\nLong description of package {i}.\n\nSecond paragraph.",
    }


# ===================================================================
# 1. LARGE VALUES
# ===================================================================

class TestLargeValues:
    """Single fields far bigger than anything real."""

    def test_synthetic_5mb_value(self):
        payload = "\n".join(["The quick brown fox jumps over the lazy dog."] * 120_000)  # ~5.4MB
        with _timer() as t:
            data = RFC822Writer.serialize([{"Description": payload}])
        _report("Serialize 5MB", t.elapsed, len(data))

        with _timer() as t:
            [record] = RFC822Reader.parse(data.encode("utf-8"))
        _report("Parse 5MB", t.elapsed, len(data))

        assert record.get("Description") == payload
        print(f"  5MB synthetic: {len(data):,} bytes OK")

    def test_very_long_line(self):
        payload = "x" * 1_000_000
        data = RFC822Writer.serialize([{"Blob": payload}])
        [record] = RFC822Reader.parse(data)
        assert record.get("Blob") == payload

    def test_wrapped_long_paragraph(self):
        payload = "first line\n" + " ".join(f"word{i}" for i in range(5_000))
        config = WriterConfig(wrap=True)
        with _timer() as t:
            data = RFC822Writer.serialize([{"Description": payload}], config)
        _report("Serialize wrapped", t.elapsed, len(data))

        lines = data.split("\n")
        assert all(len(line) <= 80 for line in lines[1:])
        [record] = RFC822Reader.parse(data)
        assert record.get("Description").split() == payload.split()

    def test_size_limit(self):
        data = "A: " + "x" * 100
        try:
            RFC822Reader.parse(data, max_size=50)
        except ValueError as e:
            assert "exceeds maximum" in str(e)
        else:
            raise AssertionError("size limit not enforced")


# ===================================================================
# 2. MANY RECORDS
# ===================================================================

class TestManyRecords:
    """Package-index sized files."""

    def test_1000_records(self):
        packages = [_package(i) for i in range(1000)]
        with _timer() as t:
            data = RFC822Writer.serialize(packages)
        _report("Serialize 1000 records", t.elapsed, len(data))

        with _timer() as t:
            records = RFC822Reader.parse(data)
        _report("Parse 1000 records", t.elapsed, len(data))

        assert len(records) == 1000
        assert records[500].get("Package") == "pkg-00500"
        assert records[999].get_list("Depends") == ["libc6 (>= 2.34)", "libpkg49", "python3"]
        print(f"  1000 records: {len(data):,} bytes OK")

    def test_lazy_iteration_over_file(self):
        packages = [_package(i) for i in range(20_000)]
        path, nbytes = _write_temp(packages)
        try:
            with _timer() as t:
                with RFC822Reader.open(path) as handle:
                    count = 0
                    for record in handle:
                        assert record.get("Package") == f"pkg-{count:05d}"
                        count += 1
            _report("Iterate 20000 records", t.elapsed, nbytes)
            assert count == 20_000
        finally:
            path.unlink()

    def test_line_numbers_stay_accurate(self):
        packages = [_package(i) for i in range(500)]
        data = RFC822Writer.serialize(packages)
        lines = data.split("\n")
        for record in RFC822Reader.parse(data):
            assert lines[record.line - 1] == f"Package: {record.get('Package')}"

    def test_stream_writer_many_records(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "Packages"
            with RecordStreamWriter(path) as w:
                for i in range(300):
                    w.write_record(_package(i))
            with RecordStreamWriter(path, append=True) as w:
                assert w.records_written == 300
                w.write_record(_package(300))
            records = RFC822Reader.read(path)
            assert len(records) == 301
            assert records[-1].get("Package") == "pkg-00300"

    def test_many_fields_in_one_record(self):
        fields = [(f"X-Field-{i}", f"value {i}") for i in range(5000)]
        [record] = RFC822Reader.parse(RFC822Writer.serialize_record(fields))
        assert record.items() == fields


# ===================================================================
# 3. FORMAT BATTLE
# ===================================================================

class TestFormatBattle:
    """Records through every converter and back."""

    def _records(self):
        return RFC822Reader.parse(RFC822Writer.serialize([_package(i) for i in range(200)]))

    def test_json_roundtrip(self):
        records = self._records()
        restored = converters.from_json(converters.to_json(records))
        assert [r.to_dict() for r in records] == restored

    def test_csv_roundtrip(self):
        records = self._records()
        restored = converters.from_csv(converters.to_csv(records))
        assert [r.to_dict() for r in records] == restored

    def test_gauntlet(self):
        records = self._records()
        original = RFC822Writer.serialize(records)
        data = original
        for _ in range(3):
            via_json = converters.from_json(converters.to_json(RFC822Reader.parse(data)))
            via_csv = converters.from_csv(converters.to_csv(via_json))
            data = RFC822Writer.serialize(via_csv)
        assert data == original


# ===================================================================
# 4. AWKWARD CONTENT
# ===================================================================

class TestAwkwardContent:
    """Content that looks like syntax."""

    def test_values_that_look_like_fields(self):
        value = "Package: evil\nVersion: 9.9"
        data = RFC822Writer.serialize([{"Description": value}])
        [record] = RFC822Reader.parse(data)
        assert record.keys() == ["Description"]
        assert record.get("Description") == value

    def test_only_newlines_between_paragraphs(self):
        value = "a\n\n\n\nb"
        [record] = RFC822Reader.parse(RFC822Writer.serialize([{"D": value}]))
        assert record.get("D") == value

    def test_colons_everywhere(self):
        value = "http://example.org:8080/a:b"
        [record] = RFC822Reader.parse(RFC822Writer.serialize([{"Homepage": value}]))
        assert record.get("Homepage") == value

    def test_unicode_stress(self):
        values = {
            "Emoji": "\U0001F600 \U0001F680 \U0001F4A9",
            "Cjk": "中文 日本語 한국어",
            "Rtl": "مرحبا שלום",
            "Combining": "é ä ñ",
            "Zwj": "\U0001F468‍\U0001F469‍\U0001F467",
        }
        [record] = RFC822Reader.parse(RFC822Writer.serialize([values]).encode("utf-8"))
        assert record.to_dict() == values

    def test_tabs_in_values(self):
        value = "a\tb\nc\td"
        [record] = RFC822Reader.parse(RFC822Writer.serialize([{"T": value}]))
        assert record.get("T") == value

    def test_duplicate_keys_survive(self):
        record = Record.from_pairs([("A", "1"), ("A", "2")])
        [decoded] = RFC822Reader.parse(RFC822Writer.serialize([record]))
        assert decoded.get_all("A") == ["1", "2"]


# ===================================================================
# Benchmarks
# ===================================================================

def run_benchmarks():
    print(f"\n{'='*70}")
    print(f"{'Operation':<25} {'Bytes':>12} {'':>12} {'Time':>12}")
    print(f"{'='*70}")

    packages = [_package(i) for i in range(5000)]
    for label, config in (("serialize", WriterConfig()), ("serialize (wrap)", WriterConfig(wrap=True))):
        with _timer() as t:
            data = RFC822Writer.serialize(packages, config)
        size = len(data)
        elapsed = t.elapsed
        size_str = f"{size:,}"
        ms = f"{elapsed*1000:.1f} ms"
        print(f"{label:<25} {size_str:>12} {'':>12} {ms:>12}")

    with _timer() as t:
        RFC822Reader.parse(data)
    size_str = f"{len(data):,}"
    print(f"{'parse':<25} {size_str:>12} {'':>12} {t.elapsed*1000:>9.1f} ms")

    print(f"{'='*70}")


# ===================================================================
# Standalone runner
# ===================================================================

if __name__ == "__main__":
    import traceback

    test_classes = [
        TestLargeValues,
        TestManyRecords,
        TestFormatBattle,
        TestAwkwardContent,
    ]

    passed = 0
    failed = 0

    for cls in test_classes:
        print(f"\n{'='*60}")
        print(f"  {cls.__name__}")
        print(f"{'='*60}")

        instance = cls()
        for name in sorted(dir(instance)):
            if not name.startswith("test_"):
                continue
            try:
                getattr(instance, name)()
                passed += 1
            except AssertionError as e:
                print(f"  FAIL {name}: {e}")
                traceback.print_exc()
                failed += 1
            except Exception as e:
                print(f"  ERROR {name}: {e}")
                traceback.print_exc()
                failed += 1

    run_benchmarks()

    print(f"\n{'='*60}")
    total = passed + failed
    print(f"  RESULTS: {passed}/{total} passed, {failed} failed")
    if failed == 0:
        print("  ALL TESTS PASSED")
    print(f"{'='*60}")

    sys.exit(1 if failed else 0)
