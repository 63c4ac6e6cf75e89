"""
Descriptor parsing — ``<name>/<version>:<third>`` strings into records.

The registry's list queries encode every entry as a compact string. For
installed modules the third segment is the lifecycle state, for available
updates it is the version on offer. Parsing is total: any input, however
malformed, yields a record whose fields are strings (possibly empty).
Neither the version syntax nor the state value is validated.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from bundlectl.core.models.bundle import ModuleRecord, UpdateRecord


class DescriptorMode(StrEnum):
    INSTALLED = "installed"
    UPDATE = "update"


def split_descriptor(descriptor: str | None) -> tuple[str, str, str]:
    """Split on the first ``/`` and then the first ``:`` after it.

    >>> split_descriptor(" acme / 1.2.0 : ACTIVE ")
    ('acme', '1.2.0', 'ACTIVE')
    >>> split_descriptor("noslash")
    ('noslash', '', '')
    """
    head, slash, rest = (descriptor or "").partition("/")
    if not slash:
        return head.strip(), "", ""
    middle, _, tail = rest.partition(":")
    return head.strip(), middle.strip(), tail.strip()


def parse_installed(descriptor: str | None) -> ModuleRecord:
    name, version, state = split_descriptor(descriptor)
    return ModuleRecord(name=name, version=version, state=state)


def parse_update(descriptor: str | None) -> UpdateRecord:
    name, version, available = split_descriptor(descriptor)
    return UpdateRecord(name=name, current_version=version, available_version=available)


def parse_descriptor(
    descriptor: str | None,
    mode: DescriptorMode = DescriptorMode.INSTALLED,
) -> ModuleRecord | UpdateRecord:
    """Parse one descriptor in the given mode. Never raises."""
    if mode == DescriptorMode.UPDATE:
        return parse_update(descriptor)
    return parse_installed(descriptor)


def parse_many(
    descriptors: Iterable[str | None] | None,
    mode: DescriptorMode = DescriptorMode.INSTALLED,
) -> list[ModuleRecord | UpdateRecord]:
    """Parse a whole list query response, preserving order."""
    return [parse_descriptor(d, mode) for d in descriptors or ()]
