# tests/test_log_store.py
import os
import json
import glob
import tempfile
import threading
import unittest
from api.log_store import LogStore, iter_array_items, parse_timestamp, MAX_RETAINED

T1 = "2025-11-03T08:00:00.000Z"
T2 = "2025-11-03T09:00:00.000Z"
T3 = "2025-11-03T10:00:00.000Z"


def _entry(ts, message, level="INFO"):
    e = {"level": level, "status": "N/A", "message": message}
    if ts is not None:
        e["timestamp"] = ts
    return e


class LogStoreTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "logs.json")

    def tearDown(self):
        self.tmp.cleanup()

    def seed(self, entries):
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(entries, fh, indent=2)

    def read_stream(self, store, from_bound=None, to_bound=None):
        return "".join(store.stream(from_bound, to_bound))


class TestAppend(LogStoreTestCase):

    def test_roundtrip_last_entry(self):
        store = LogStore(self.path)
        store.append("INFO", "first")
        stored = store.append("ERROR", "db timeout", "500")
        entries = json.loads(self.read_stream(store))
        self.assertEqual(entries[-1], stored)
        self.assertEqual(entries[-1]["level"], "ERROR")
        self.assertEqual(entries[-1]["message"], "db timeout")
        self.assertEqual(entries[-1]["status"], "500")
        self.assertTrue(entries[-1]["timestamp"].endswith("Z"))

    def test_status_defaults_to_na(self):
        store = LogStore(self.path)
        store.append("WARN", "slow query")
        self.assertEqual(store.entries()[0]["status"], "N/A")

    def test_bounded_retention_drops_oldest(self):
        store = LogStore(self.path, max_retained=5)
        for i in range(7):
            store.append("INFO", f"m{i}")
            self.assertEqual(len(store.entries()), min(i + 1, 5))
        self.assertEqual([e["message"] for e in store.entries()], ["m2", "m3", "m4", "m5", "m6"])

    def test_default_cap_is_500(self):
        self.assertEqual(MAX_RETAINED, 500)
        self.seed([_entry(T1, f"old{i}") for i in range(500)])
        store = LogStore(self.path)
        store.append("INFO", "newest")
        entries = store.entries()
        self.assertEqual(len(entries), 500)
        self.assertEqual(entries[0]["message"], "old1")
        self.assertEqual(entries[-1]["message"], "newest")

    def test_order_and_timestamps_non_decreasing(self):
        store = LogStore(self.path)
        for i in range(10):
            store.append("INFO", f"m{i}")
        entries = store.entries()
        self.assertEqual([e["message"] for e in entries], [f"m{i}" for i in range(10)])
        stamps = [parse_timestamp(e["timestamp"]) for e in entries]
        self.assertEqual(stamps, sorted(stamps))

    def test_no_temp_files_left_behind(self):
        store = LogStore(self.path)
        store.append("INFO", "x")
        self.assertEqual(os.listdir(self.tmp.name), ["logs.json"])

    def test_corrupt_file_is_quarantined_not_erased(self):
        with open(self.path, "w") as fh:
            fh.write('[{"level": "INFO", "mess')
        store = LogStore(self.path)
        store.append("INFO", "after corruption")
        self.assertEqual([e["message"] for e in store.entries()], ["after corruption"])
        backups = glob.glob(self.path + ".corrupt-*")
        self.assertEqual(len(backups), 1)
        with open(backups[0]) as fh:
            self.assertEqual(fh.read(), '[{"level": "INFO", "mess')

    def test_non_array_file_is_quarantined(self):
        with open(self.path, "w") as fh:
            json.dump({"not": "a list"}, fh)
        store = LogStore(self.path)
        store.append("INFO", "fresh")
        self.assertEqual(len(store.entries()), 1)
        self.assertEqual(len(glob.glob(self.path + ".corrupt-*")), 1)

    def test_concurrent_appends_lose_nothing(self):
        threads, per_thread = 8, 20
        store = LogStore(self.path, max_retained=threads * per_thread)

        def writer(n):
            for i in range(per_thread):
                store.append("INFO", f"t{n}-m{i}")

        workers = [threading.Thread(target=writer, args=(n,)) for n in range(threads)]
        for w in workers:
            w.start()
        for w in workers:
            w.join()

        messages = [e["message"] for e in store.entries()]
        self.assertEqual(len(messages), threads * per_thread)
        self.assertEqual(len(set(messages)), threads * per_thread)
        # each writer's own entries keep their order
        mine = [m for m in messages if m.startswith("t3-")]
        self.assertEqual(mine, [f"t3-m{i}" for i in range(per_thread)])

    def test_write_failure_is_swallowed(self):
        # the store path is a directory, so the final rename fails
        os.makedirs(self.path)
        store = LogStore(self.path)
        with self.assertLogs("api.log_store", level="ERROR"):
            self.assertIsNone(store.append("INFO", "lost"))


class TestQuery(LogStoreTestCase):

    def setUp(self):
        super().setUp()
        self.seed([
            _entry(T1, "one"),
            _entry(None, "no timestamp"),
            _entry(T2, "two"),
            _entry(T3, "three"),
        ])
        self.store = LogStore(self.path, chunk_size=7)

    def messages(self, from_bound=None, to_bound=None):
        return [e["message"] for e in json.loads(self.read_stream(self.store, from_bound, to_bound))]

    def test_from_bound_inclusive(self):
        self.assertEqual(self.messages(from_bound=T2), ["two", "three"])

    def test_to_bound_inclusive(self):
        self.assertEqual(self.messages(to_bound=T2), ["one", "two"])

    def test_equal_bounds(self):
        self.assertEqual(self.messages(T2, T2), ["two"])

    def test_window_matching_nothing_is_empty_array(self):
        self.assertEqual(self.read_stream(self.store, "2030-01-01T00:00:00Z"), "[]")

    def test_offsets_compared_as_instants(self):
        # 10:30+01:00 == 09:30Z, so only T3 is after it
        self.assertEqual(self.messages(from_bound="2025-11-03T10:30:00+01:00"), ["three"])

    def test_no_bounds_is_byte_identical_passthrough(self):
        with open(self.path, encoding="utf-8") as fh:
            raw = fh.read()
        self.assertEqual(self.read_stream(self.store), raw)
        self.assertEqual(self.read_stream(self.store, "undefined", "null"), raw)
        self.assertEqual(self.read_stream(self.store, "not-a-date", ""), raw)

    def test_invalid_from_behaves_like_absent(self):
        self.assertEqual(self.messages("undefined", T2), self.messages(None, T2))
        self.assertEqual(self.messages("null", T2), self.messages(None, T2))

    def test_query_list_matches_stream(self):
        self.assertEqual([e["message"] for e in self.store.query(T2)], ["two", "three"])
        self.assertEqual(len(self.store.query()), 4)


class TestEmptyStore(LogStoreTestCase):

    def test_missing_file(self):
        store = LogStore(self.path)
        self.assertEqual(self.read_stream(store), "[]")
        self.assertEqual(self.read_stream(store, T1, T3), "[]")
        self.assertEqual(store.query(T1), [])

    def test_blank_file(self):
        with open(self.path, "w") as fh:
            fh.write("  \n")
        store = LogStore(self.path)
        self.assertEqual(self.read_stream(store), "[]")
        self.assertEqual(self.read_stream(store, T1), "[]")

    def test_leading_whitespace_longer_than_chunk_is_kept(self):
        raw = " " * 20 + "\n" + json.dumps([_entry(T1, "one")]) + "\n"
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write(raw)
        store = LogStore(self.path, chunk_size=4)
        self.assertEqual(self.read_stream(store), raw)


class TestIterArrayItems(unittest.TestCase):

    def chunked(self, text, size):
        return [text[i:i + size] for i in range(0, len(text), size)]

    def test_arbitrary_chunk_sizes(self):
        doc = json.dumps([{"a": 1, "s": "x, ] y"}, [1, 2], "str", 12, 3.5, True, None, {"nested": {"b": []}}])
        expected = json.loads(doc)
        for size in (1, 2, 3, 5, 64, len(doc)):
            self.assertEqual(list(iter_array_items(self.chunked(doc, size))), expected, size)

    def test_number_split_across_chunks(self):
        self.assertEqual(list(iter_array_items(["[12", "34", "]"])), [1234])

    def test_empty_array(self):
        self.assertEqual(list(iter_array_items(["[", "  ", "]"])), [])

    def test_not_an_array(self):
        with self.assertLogs("api.log_store", level="WARNING"):
            self.assertEqual(list(iter_array_items(['{"a": 1}'])), [])

    def test_truncated_document_yields_complete_items(self):
        with self.assertLogs("api.log_store", level="WARNING"):
            items = list(iter_array_items(['[{"a": 1}, {"b"', ': 2']))
        self.assertEqual(items, [{"a": 1}])


class TestParseTimestamp(unittest.TestCase):

    def test_absent_markers(self):
        for value in (None, "", "null", "undefined", "garbage", 12345):
            self.assertIsNone(parse_timestamp(value))

    def test_naive_is_utc(self):
        self.assertEqual(parse_timestamp("2025-11-03T10:00:00"), parse_timestamp("2025-11-03T10:00:00Z"))

    def test_any_fraction_length(self):
        base = parse_timestamp("2025-11-03T10:00:00.100Z")
        self.assertIsNotNone(base)
        self.assertEqual(parse_timestamp("2025-11-03T10:00:00.1Z"), base)
        self.assertEqual(parse_timestamp("2025-11-03T10:00:00.10+00:00"), base)
        self.assertEqual(parse_timestamp("2025-11-03T10:00:00.1000000Z"), base)


if __name__ == "__main__":
    unittest.main()
