"""Exception types shared by the decoder, the explorer and the loader."""

from __future__ import annotations


class ScmError(Exception):
    """Base class for every error raised by :mod:`scmdisasm`."""


class DecodeError(ScmError):
    """A single instruction could not be decoded.

    The explorer treats this as local to one offset: the offset is dropped
    and exploration continues elsewhere.
    """

    def __init__(self, message: str, offset: int = -1) -> None:
        super().__init__(message)
        self.offset = offset


class SchemaError(ScmError):
    """The command schema resource is malformed."""


class CheckError(ScmError):
    """The compatibility check could not run at all."""


class LoaderError(ScmError):
    """A resource path could not be dispatched to a loader."""
