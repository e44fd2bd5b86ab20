"""Pointman protocols."""

from pointman.protocols.principal import (
    Principal,
    PrincipalResolver,
)

__all__ = [
    "Principal",
    "PrincipalResolver",
]
