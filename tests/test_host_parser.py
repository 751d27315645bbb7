"""Tests for host string parsing."""

import pytest

from moshwrap.adapters.cli.host_parser import parse_host_string


@pytest.mark.parametrize(
    "host,expected",
    [
        ("server", ("server", None, None)),
        ("user@server", ("server", "user", None)),
        ("user@server:2222", ("server", "user", 2222)),
        ("server:2222", ("server", None, 2222)),
        ("[::1]:2222", ("::1", None, 2222)),
        ("user@[2001:db8::1]", ("2001:db8::1", "user", None)),
        ("2001:db8::1", ("2001:db8::1", None, None)),
        ("me@corp@server", ("server", "me@corp", None)),
        ("server:ssh", ("server:ssh", None, None)),
    ],
)
def test_parse(host, expected) -> None:
    assert parse_host_string(host) == expected


def test_explicit_arguments_win() -> None:
    assert parse_host_string("user@server:2222", user="other", port=3333) == ("server", "other", 3333)


def test_embedded_values_fill_gaps() -> None:
    assert parse_host_string("user@server", port=2200) == ("server", "user", 2200)
