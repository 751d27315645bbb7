"""Tests for mosh-server response parsing."""

import pytest

from moshwrap.core.exceptions import (
    InvalidPortError,
    MalformedResponseError,
    MarkerNotFoundError,
    ResponseParseError,
)
from moshwrap.domain.bootstrap import BootstrapResponse, format_connect_line, parse_response


SERVER_OUTPUT = (
    b"\r\n"
    b"MOSH CONNECT 60001 AbCdEf123456==\r\n"
    b"\r\n"
    b"mosh-server (mosh 1.4.0) [build mosh 1.4.0]\r\n"
    b"Copyright 2012 Keith Winstein <mosh-devel@mit.edu>\r\n"
    b"[mosh-server detached, pid = 12345]\r\n"
)


def test_parses_real_server_output() -> None:
    """Port and key come from the MOSH CONNECT line of pty output."""
    response = parse_response(SERVER_OUTPUT)
    assert response == BootstrapResponse(port=60001, secret="AbCdEf123456==")


def test_parses_line_with_subcommand_word() -> None:
    """A 'new' word echoed after the marker is tolerated."""
    response = parse_response(b"banner\nMOSH CONNECT new 60001 AbCdEf123456==\ntrailer\n")
    assert response.port == 60001
    assert response.secret == "AbCdEf123456=="


def test_first_match_wins() -> None:
    """Later MOSH CONNECT lines are ignored."""
    output = b"MOSH CONNECT 60001 first\nMOSH CONNECT 60002 second\n"
    response = parse_response(output)
    assert response.port == 60001
    assert response.secret == "first"


def test_no_trailing_newline() -> None:
    assert parse_response(b"MOSH CONNECT 60003 key").port == 60003


def test_missing_marker() -> None:
    """Output without the marker is 'not found', not malformed."""
    with pytest.raises(MarkerNotFoundError):
        parse_response(b"mosh-server: command not found\n")


def test_empty_output() -> None:
    with pytest.raises(MarkerNotFoundError):
        parse_response(b"")


def test_marker_must_start_the_line() -> None:
    with pytest.raises(MarkerNotFoundError):
        parse_response(b"  MOSH CONNECT 60001 key\nsaid MOSH CONNECT 60001 key\n")


def test_missing_fourth_field_is_malformed() -> None:
    """A truncated line is malformed, not 'not found'."""
    with pytest.raises(MalformedResponseError) as exc_info:
        parse_response(b"MOSH CONNECT new 60001\n")
    assert not isinstance(exc_info.value, MarkerNotFoundError)


def test_too_few_fields() -> None:
    with pytest.raises(MalformedResponseError) as exc_info:
        parse_response(b"MOSH CONNECT 60001\n")
    assert type(exc_info.value) is MalformedResponseError
    assert "MOSH CONNECT 60001" in str(exc_info.value)


def test_too_many_fields() -> None:
    with pytest.raises(MalformedResponseError):
        parse_response(b"MOSH CONNECT 60001 key extra\n")


def test_non_numeric_port() -> None:
    with pytest.raises(InvalidPortError) as exc_info:
        parse_response(b"MOSH CONNECT sixty key\n")
    assert "sixty" in str(exc_info.value)


@pytest.mark.parametrize("port", [b"-1", b"+1", b"6_0", b"\xd9\xa1"])
def test_port_must_be_ascii_digits(port: bytes) -> None:
    with pytest.raises(InvalidPortError):
        parse_response(b"MOSH CONNECT " + port + b" key\n")


def test_errors_share_base_class() -> None:
    for output in (b"", b"MOSH CONNECT 1\n", b"MOSH CONNECT x y\n"):
        with pytest.raises(ResponseParseError):
            parse_response(output)


def test_error_messages_do_not_leak_key() -> None:
    """Malformed-line errors mask everything after the port field."""
    with pytest.raises(MalformedResponseError) as exc_info:
        parse_response(b"MOSH CONNECT 60001 SuperSecretKey extra\n")
    assert "SuperSecretKey" not in str(exc_info.value)
    assert "SuperSecretKey" not in exc_info.value.line


def test_secret_not_in_repr() -> None:
    response = parse_response(b"MOSH CONNECT 60001 SuperSecretKey\n")
    assert "SuperSecretKey" not in repr(response)
    assert "60001" in repr(response)


@pytest.mark.parametrize(
    "port,secret",
    [(0, "a"), (60001, "AbCdEf123456=="), (65535, "x/y+z=="), (22, "k" * 64)],
)
def test_round_trip(port: int, secret: str) -> None:
    """Formatting then parsing returns the same pair."""
    for line in (format_connect_line(port, secret), f"MOSH CONNECT new {port} {secret}"):
        response = parse_response(line.encode() + b"\n")
        assert (response.port, response.secret) == (port, secret)


def test_format_connect_line() -> None:
    assert format_connect_line(60001, "key") == "MOSH CONNECT 60001 key"
