"""Errors for misconfigured test inputs or test environments."""

from __future__ import annotations

from typing import Any, TypeVar

T = TypeVar("T")


class MolluskError(Exception):
    """Base error; the message template takes the offending subject."""

    template = "{0}"

    def __init__(self, subject: Any, cause: BaseException | None = None) -> None:
        self.subject = subject
        self.cause = cause
        message = "    [MOLLUSK]: " + self.template.format(subject)
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class FileOpenError(MolluskError):
    template = "Failed to open file: {0}"


class FileReadError(MolluskError):
    template = "Failed to read file: {0}"


class FileNotFound(MolluskError):
    template = "Program file not found: {0}"


class AccountMissing(MolluskError):
    template = "An account required by the instruction was not provided: {0}"


class ProgramNotCached(MolluskError):
    template = "Program targeted by the instruction is missing from the cache: {0}"


def or_raise(value: T | None | BaseException, error: MolluskError) -> T:
    """Return ``value``, or raise ``error`` if it is None or an exception."""
    if value is None:
        raise error
    if isinstance(value, BaseException):
        raise type(error)(error.subject, cause=value) from value
    return value