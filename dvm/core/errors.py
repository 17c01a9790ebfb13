"""Domain exceptions shared by the core.

The core never prints: managers, the resolver, the registry and the
runtimes raise these, and the CLI decides how to present them.  Every
exception may carry a ``hint`` naming the command that fixes the problem.
"""

from __future__ import annotations


class DvmError(Exception):
    """Base class for all dvm domain errors."""

    hint: str | None = None

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class NotFoundError(DvmError, LookupError):
    """An entity, plugin or container does not exist."""

    def __init__(self, kind: str, name: str | int, *, hint: str | None = None) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' not found", hint=hint)


class AlreadyExistsError(DvmError, ValueError):
    """A create collided with an existing entity of the same name."""

    def __init__(self, kind: str, name: str, *, hint: str | None = None) -> None:
        self.kind = kind
        self.name = name
        super().__init__(
            f"{kind} '{name}' already exists",
            hint=hint or f"choose another name or run 'dvm delete {kind.lower()} {name}' first",
        )


class NoActiveContextError(DvmError, LookupError):
    """No target was given and nothing is active at the requested level."""

    def __init__(self, level: str) -> None:
        self.level = level
        super().__init__(
            f"no active {level} context",
            hint=f"set one with 'dvm use {level} <name>' or pass --{level}",
        )


class NoPlatformDetectedError(DvmError, RuntimeError):
    """No supported container platform is reachable on this host."""

    def __init__(self, message: str | None = None, *, hint: str | None = None) -> None:
        super().__init__(
            message or "no container platform found",
            hint=hint or "install and start one of: OrbStack, Colima, Podman, Docker Desktop, Docker",
        )


class UnsupportedKindError(DvmError, KeyError):
    """A resource kind has no handler, or a resource was unwrapped as the wrong kind."""

    def __init__(self, kind: object, expected: object | None = None) -> None:
        self.kind = kind
        self.expected = expected
        if expected is None:
            msg = f"no handler registered for kind: {kind}"
        else:
            msg = f"expected {expected} resource, got {kind}"
        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class NotSupportedError(DvmError, NotImplementedError):
    """The handler for a kind does not implement the requested operation."""

    def __init__(self, kind: object, operation: str) -> None:
        self.kind = kind
        self.operation = operation
        super().__init__(f"{operation} is not supported for kind: {kind}")


class RuntimeCommunicationError(DvmError, RuntimeError):
    """The container platform was unreachable or did not answer in time."""
