"""Exception types raised by pyimgscatter.

Each error subclasses the builtin a caller would already catch, so code that
handles ``ValueError`` / ``OSError`` keeps working.
"""

from __future__ import annotations

from typing import Iterable, Optional


class ConfigError(ValueError):
    """A run precondition failed (missing source, invalid target size, bad config)."""


class DecodeError(OSError):
    """The codec could not read the source image."""


class EncodeError(OSError):
    """The codec could not write the output image."""


class UnknownFilterError(ValueError):
    """A filter name does not match any known filter kind."""

    def __init__(self, name: str, available: Iterable[str] = ()) -> None:
        self.name = str(name)
        self.available = tuple(available)
        choices = ", ".join(self.available) or "<none>"
        super().__init__(f"Unknown filter: {self.name!r}. Choose from: {choices}")


class ProtocolError(RuntimeError):
    """A collective operation received data that does not match the partition tables."""


class GroupAborted(RuntimeError):
    """The cooperating process group was aborted by one of its members."""

    def __init__(self, errorcode: int = 1, reason: Optional[BaseException] = None) -> None:
        self.errorcode = int(errorcode)
        self.reason = reason
        message = f"process group aborted (errorcode={self.errorcode})"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
