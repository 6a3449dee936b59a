import pytest

from remote_dl.kernel.errors import InvalidReference
from remote_dl.ports.im.commands import (
    CommandType,
    extract_reference,
    magnet_from_hash,
    parse_message,
)


def test_empty_message_is_not_a_command() -> None:
    assert parse_message("") is None
    assert parse_message("   \n") is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("help", CommandType.HELP),
        ("/help", CommandType.HELP),
        ("HELP", CommandType.HELP),
        ("/start@MyDownloadBot", CommandType.START),
        ("stats", CommandType.STATS),
        ("downloading", CommandType.DOWNLOADING),
        ("clean", CommandType.CLEAN),
        ("ip", CommandType.IP),
        ("time", CommandType.TIME),
        ("download http://x.org/a.iso", CommandType.DOWNLOAD),
        ("dl http://x.org/a.iso", CommandType.DOWNLOAD),
    ],
)
def test_verbs(text: str, expected: CommandType) -> None:
    parsed = parse_message(text)
    assert parsed is not None
    assert parsed.type == expected


def test_prefixed_verbs_keep_argument_case() -> None:
    status = parse_message("/status_2089B05ecca3d829")
    assert status.type == CommandType.STATUS
    assert status.arg == "2089B05ecca3d829"

    cancel = parse_message("Cancel_abc")
    assert cancel.type == CommandType.CANCEL
    assert cancel.arg == "abc"

    by_hash = parse_message("dl_C12FE1C06BBA254A9DC9F519B335AA7C1367A88A")
    assert by_hash.type == CommandType.DOWNLOAD_HASH
    assert by_hash.arg == "C12FE1C06BBA254A9DC9F519B335AA7C1367A88A"


def test_bare_prefix_yields_empty_argument() -> None:
    parsed = parse_message("status_")
    assert parsed.type == CommandType.STATUS
    assert parsed.arg == ""


def test_unknown_verb() -> None:
    parsed = parse_message("frobnicate now")
    assert parsed.type == CommandType.UNKNOWN
    assert parsed.verb == "frobnicate"
    assert parsed.args == ["now"]


def test_download_keeps_rest_of_text() -> None:
    parsed = parse_message("download   magnet:?xt=urn:btih:ABCD123&dn=x  ")
    assert parsed.text == "magnet:?xt=urn:btih:ABCD123&dn=x"


def test_extract_prefers_magnet_over_url() -> None:
    ref = extract_reference("see http://x.org/a and magnet:?xt=urn:btih:ABCD123&dn=Foo bar")
    assert ref.kind == "magnet"
    assert ref.url == "magnet:?xt=urn:btih:ABCD123&dn=Foo"


def test_extract_url() -> None:
    ref = extract_reference("please get https://example.com/files/a.iso?x=1 thanks")
    assert ref.kind == "url"
    assert ref.url == "https://example.com/files/a.iso?x=1"


def test_extract_nothing_raises() -> None:
    with pytest.raises(InvalidReference):
        extract_reference("just some words")


def test_magnet_from_hash() -> None:
    assert magnet_from_hash("ABC") == "magnet:?xt=urn:btih:ABC"
