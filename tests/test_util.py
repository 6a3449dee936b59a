import io
import json
import logging

from remote_dl.util.conv import bytes_to_size, coerce_bool, coerce_int, short
from remote_dl.util.obslog import JsonlFormatter, setup_root_json_logging
from remote_dl.util.time import DAY_MS, date_stamp, format_eta


def test_bytes_to_size() -> None:
    assert bytes_to_size(0) == "0 Bytes"
    assert bytes_to_size(1023) == "1023.00 Bytes"
    assert bytes_to_size(1536) == "1.50 KB"
    assert bytes_to_size(5 * 1024 ** 3) == "5.00 GB"


def test_coercions() -> None:
    assert coerce_int("42") == 42
    assert coerce_int("3.9") == 3
    assert coerce_int(None) == 0
    assert coerce_int("x", default=7) == 7
    assert coerce_bool("yes") is True
    assert coerce_bool("off") is False
    assert coerce_bool("", default=True) is True


def test_short() -> None:
    assert short("abcdefghijklmnopqrstuvwxyz") == "abcdef...wxyz"
    assert short("abc") == "abc"


def test_format_eta() -> None:
    assert format_eta(0) == "Overdue"
    assert format_eta(-5) == "Overdue"
    assert format_eta(2 * DAY_MS + 5 * 3_600_000 + 10) == "2d 5h"


def test_date_stamp() -> None:
    from datetime import datetime

    assert date_stamp(datetime(2025, 3, 7, 23, 59)) == "20250307"


def test_jsonl_formatter_includes_extras() -> None:
    stream = io.StringIO()
    logger = logging.getLogger("remote_dl.test_util")
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonlFormatter(component="test"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    try:
        logger.info("hello %s", "world", extra={"transport": "nostr", "gid": "g1"})
    finally:
        logger.removeHandler(handler)

    rec = json.loads(stream.getvalue().strip())
    assert rec["msg"] == "hello world"
    assert rec["component"] == "test"
    assert rec["transport"] == "nostr"
    assert rec["gid"] == "g1"


def test_setup_root_logging_is_idempotent() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    stream = io.StringIO()
    try:
        setup_root_json_logging(component="t", level="DEBUG", stream=stream, force=True)
        setup_root_json_logging(component="t", level="DEBUG", stream=stream)
        jsonl = [h for h in root.handlers if isinstance(h.formatter, JsonlFormatter)]
        assert len(jsonl) == 1
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
