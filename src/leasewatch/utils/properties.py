"""Preference-list resolution of display fields from lease/policy properties."""

from typing import Mapping, Optional, Sequence

PROGRAM_KEYS: tuple[str, ...] = ("resource.name", "program.name")
USER_KEYS: tuple[str, ...] = ("user.account", "user.id")
HOST_KEYS: tuple[str, ...] = ("host.name",)
PID_KEYS: tuple[str, ...] = ("process.id",)
PROCESS_CREATION_KEYS: tuple[str, ...] = ("process.creation",)


def resolve(
    properties: Optional[Mapping[str, str]],
    keys: Sequence[str],
    default: str = "",
) -> str:
    """
    Return the first non-empty property value among keys, else default.

    Keys are consulted in order; empty strings count as absent.
    """
    if properties:
        for key in keys:
            value = properties.get(key)
            if value:
                return value
    return default or ""
