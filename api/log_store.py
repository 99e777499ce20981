# api/log_store.py
"""
Bounded append-only log store.

- Persists log entries as a single JSON array in one file (newest last).
- Keeps at most `max_retained` entries; the oldest are dropped first.
- Appends are serialized per store and written via temp file + os.replace,
  so a concurrent reader only ever sees a complete file.
- Reads stream the file in chunks; filtered reads decode array elements
  incrementally and apply an inclusive [from, to] timestamp window.

Notes
- Unreadable/corrupt history is moved aside to <path>.corrupt-<stamp>
  and the store starts over with an empty history.
- Single writer process assumed; no cross-process locking.
"""

import os
import re
import json
import logging
import tempfile
import threading
import yaml
from datetime import datetime, timezone
from typing import Dict, Any, Iterable, Iterator, List, Optional, IO

logger = logging.getLogger(__name__)


def load_config(path="config.yaml"):
    if os.path.exists(path):
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    return {}

CONFIG = load_config()
STORE_CONFIG = CONFIG.get("log_store", {})

DEFAULT_LOG_FILE = os.path.join(os.path.dirname(__file__), "logs.json")
MAX_RETAINED = STORE_CONFIG.get("max_retained", 500)
CHUNK_SIZE = STORE_CONFIG.get("chunk_size", 64 * 1024)

# query-string values the clients send for "no bound"
_ABSENT_BOUNDS = ("", "null", "undefined", "none")
_FRACTION = re.compile(r"(?<=:\d\d)\.(\d+)")


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2025-11-03T10:30:00.000Z"""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware UTC datetime; None if unusable."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.lower() in _ABSENT_BOUNDS:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat on 3.10 only takes 3 or 6 fractional digits
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def passes_filter(entry: Any, from_time: Optional[datetime], to_time: Optional[datetime]) -> bool:
    """Inclusive window check. Entries without a usable timestamp never pass."""
    if not isinstance(entry, dict):
        return False
    ts = parse_timestamp(entry.get("timestamp"))
    if ts is None:
        return False
    if from_time is not None and ts < from_time:
        return False
    if to_time is not None and ts > to_time:
        return False
    return True


def iter_array_items(chunks: Iterable[str]) -> Iterator[Any]:
    """
    Incrementally decode a top-level JSON array delivered in arbitrary chunks.

    Each element is yielded as soon as it is syntactically complete; the
    buffer only ever holds the unfinished tail. Stops quietly (with a
    warning) when the document is not an array or ends truncated.
    """
    decoder = json.JSONDecoder()
    buf = ""
    pos = 0
    started = False
    finished = False
    eof = False
    it = iter(chunks)

    while not finished:
        # skip whitespace / separators
        while pos < len(buf) and buf[pos] in " \t\r\n,":
            pos += 1

        if pos >= len(buf):
            if eof:
                break
            try:
                buf = buf[pos:] + next(it)
            except StopIteration:
                eof = True
                buf = buf[pos:]
            pos = 0
            continue

        if not started:
            if buf[pos] != "[":
                logger.warning("Log store content is not a JSON array; nothing to stream")
                return
            started = True
            pos += 1
            continue

        if buf[pos] == "]":
            finished = True
            break

        try:
            value, end = decoder.raw_decode(buf, pos)
        except json.JSONDecodeError:
            value, end = None, None

        # bare scalars (numbers, literals) are only done once a delimiter follows
        if end is None:
            complete = False
        elif isinstance(value, (dict, list, str)):
            complete = True
        elif end < len(buf):
            complete = buf[end] in " \t\r\n,]"
        else:
            complete = eof
        if not complete:
            if eof:
                logger.warning("Log store content ended mid-element; stream truncated")
                return
            try:
                buf = buf[pos:] + next(it)
            except StopIteration:
                eof = True
                buf = buf[pos:]
            pos = 0
            continue

        yield value
        pos = end

    if started and not finished:
        logger.warning("Log store array was not closed; stream truncated")


def _read_chunks(fh: IO[str], chunk_size: int) -> Iterator[str]:
    while True:
        chunk = fh.read(chunk_size)
        if not chunk:
            break
        yield chunk


class LogStore:
    """File-backed bounded log history. One instance owns one file."""

    def __init__(self, path: Optional[str] = None, max_retained: int = MAX_RETAINED,
                 chunk_size: int = CHUNK_SIZE):
        if max_retained < 1:
            raise ValueError("max_retained must be at least 1")
        self.path = path or os.environ.get("LOG_FILE") or STORE_CONFIG.get("path") or DEFAULT_LOG_FILE
        self.max_retained = max_retained
        self.chunk_size = chunk_size
        self._write_lock = threading.Lock()

        log_dir = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(log_dir, exist_ok=True)

    # --------------------------
    # write path
    # --------------------------

    def _load_entries(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = fh.read()
        except UnicodeDecodeError as e:
            self._quarantine(f"not UTF-8 text ({e.reason})")
            return []
        if not raw.strip():
            return []
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            self._quarantine(f"invalid JSON ({e})")
            return []
        if not isinstance(entries, list):
            self._quarantine("top-level value is not an array")
            return []
        return entries

    def _quarantine(self, reason: str):
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        target = f"{self.path}.corrupt-{stamp}"
        os.replace(self.path, target)
        logger.warning("Log store %s unreadable (%s); moved to %s and starting empty",
                       self.path, reason, target)

    def _write_entries(self, entries: List[Dict[str, Any]]):
        log_dir = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(prefix=".logs-", suffix=".tmp", dir=log_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entries, fh, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def append(self, level: str, message: str, status: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Stamp and persist one entry. Best effort: I/O failures are logged and
        swallowed so a caller on the write path never crashes.
        Returns the stored entry, or None if the write failed.
        """
        entry = {
            "timestamp": utc_timestamp(),
            "level": level,
            "status": status or "N/A",
            "message": message,
        }
        with self._write_lock:
            try:
                existing = self._load_entries()
                keep = self.max_retained - 1
                entries = (existing[-keep:] if keep else []) + [entry]
                self._write_entries(entries)
            except (OSError, ValueError) as e:
                logger.error("Failed to write to log file %s: %s", self.path, e)
                return None
        return entry

    def entries(self) -> List[Dict[str, Any]]:
        """Full history as a list (tests and small consumers)."""
        fh = self.open_reader()
        if fh is None:
            return []
        with fh:
            return list(iter_array_items(_read_chunks(fh, self.chunk_size)))

    # --------------------------
    # read path
    # --------------------------

    def open_reader(self) -> Optional[IO[str]]:
        """
        Open the store for streaming. None means no history yet.
        Raises OSError if the file exists but cannot be opened, so HTTP
        callers can answer 500 before any bytes are sent.
        """
        try:
            return open(self.path, "r", encoding="utf-8")
        except FileNotFoundError:
            return None

    def stream(self, from_bound: Optional[str] = None, to_bound: Optional[str] = None,
               fh: Optional[IO[str]] = None) -> Iterator[str]:
        """
        Yield the history as JSON text chunks forming one array.

        Without usable bounds the file content is passed through untouched.
        With bounds, each qualifying entry is re-serialized in original order.
        `fh` may be a handle obtained earlier from open_reader(); it is closed
        when the generator finishes.
        """
        from_time = parse_timestamp(from_bound)
        to_time = parse_timestamp(to_bound)

        if fh is None:
            fh = self.open_reader()
        if fh is None:
            yield "[]"
            return

        with fh:
            if from_time is None and to_time is None:
                # leading blank chunks are held back until we know the file is not all blank
                pending = []
                for chunk in _read_chunks(fh, self.chunk_size):
                    if pending is not None:
                        if not chunk.strip():
                            pending.append(chunk)
                            continue
                        if pending:
                            yield "".join(pending)
                        pending = None
                    yield chunk
                if pending is not None:
                    yield "[]"
                return

            first = True
            yield "["
            for entry in iter_array_items(_read_chunks(fh, self.chunk_size)):
                if not passes_filter(entry, from_time, to_time):
                    continue
                yield json.dumps(entry) if first else "," + json.dumps(entry)
                first = False
            yield "]"

    def query(self, from_bound: Optional[str] = None, to_bound: Optional[str] = None) -> List[Dict[str, Any]]:
        """Materialized form of stream(); always returns a list."""
        from_time = parse_timestamp(from_bound)
        to_time = parse_timestamp(to_bound)
        items = self.entries()
        if from_time is None and to_time is None:
            return items
        return [e for e in items if passes_filter(e, from_time, to_time)]
