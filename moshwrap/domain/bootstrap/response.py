"""
mosh-server response parsing

mosh-server reports its port and session key on a line of the form

    MOSH CONNECT <port> <key>

somewhere in its combined output.
"""
import re
from dataclasses import dataclass, field
from typing import List

from ...core.constants import CONNECT_MARKER
from ...core.exceptions import InvalidPortError, MalformedResponseError, MarkerNotFoundError

_PORT_RE = re.compile(rb"[0-9]+")
_NEW_WORD = b"new"


@dataclass(frozen=True)
class BootstrapResponse:
    """Port and session key reported by mosh-server"""
    port: int
    secret: str = field(repr=False)


def format_connect_line(port: int, secret: str) -> str:
    """Render the line mosh-server prints on success"""
    return f"{CONNECT_MARKER.decode('ascii')} {port} {secret}"


def _redact(fields: List[bytes]) -> str:
    """Offending line with everything after the port masked"""
    shown = [f.decode("utf-8", errors="replace") for f in fields[:3]]
    if len(fields) > 3:
        shown.append("<redacted>")
    return " ".join(shown)


def parse_response(output: bytes) -> BootstrapResponse:
    """
    Extract port and key from mosh-server output.

    The first line starting with 'MOSH CONNECT' is used; later ones are ignored.

    Raises:
        MarkerNotFoundError: If no line starts with 'MOSH CONNECT'
        MalformedResponseError: If that line does not have exactly four fields
        InvalidPortError: If its port field is not numeric
    """
    for line in output.split(b"\n"):
        if line.endswith(b"\r"):
            line = line[:-1]
        if not line.startswith(CONNECT_MARKER):
            continue

        fields = line.split()
        # Tolerate the subcommand word echoed after the marker
        if len(fields) == 5 and fields[2] == _NEW_WORD:
            del fields[2]
        if len(fields) != 4:
            redacted = _redact(fields)
            raise MalformedResponseError(
                f"unexpected response line from mosh-server: {redacted!r}",
                line=redacted,
            )
        if not _PORT_RE.fullmatch(fields[2]):
            redacted = _redact(fields)
            raise InvalidPortError(
                f"non-numeric port {fields[2].decode('utf-8', errors='replace')!r} "
                f"in mosh-server response",
                line=redacted,
            )
        try:
            secret = fields[3].decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedResponseError(
                "session key in mosh-server response is not valid UTF-8",
                line=_redact(fields),
            ) from e
        return BootstrapResponse(port=int(fields[2]), secret=secret)

    raise MarkerNotFoundError("no 'MOSH CONNECT' line from mosh-server")
