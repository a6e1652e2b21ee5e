"""
Virtual groups: coordinates published under different groups, or sharing a
group with unrelated modules, that move together in version.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

from .dependency import DependencyRecord, VirtualGroup

# kotlinx-coroutines-* and kotlinx-serialization-* share org.jetbrains.kotlinx
# but are released independently of each other.
DEFAULT_VIRTUAL_GROUPS: Tuple[str, ...] = (
    "org.jetbrains.kotlinx.kotlinx-coroutines",
    "org.jetbrains.kotlinx.kotlinx-serialization",
)


@dataclass(frozen=True)
class VirtualGroupRegistry:
    """Read-only set of virtual groups consulted during one resolution pass."""

    groups: Tuple[VirtualGroup, ...] = ()

    @classmethod
    def default(cls) -> "VirtualGroupRegistry":
        return cls.from_config(DEFAULT_VIRTUAL_GROUPS)

    @classmethod
    def from_config(cls, entries: Iterable[Any]) -> "VirtualGroupRegistry":
        """
        Build a registry from configuration entries.

        Each entry is either a ``group.modulePrefix`` string or a mapping
        ``{"label": ..., "members": [{"group": ..., "module_prefix": ...}]}``.

        Raises:
            ValueError: If an entry cannot be interpreted
        """
        groups = []
        for entry in entries:
            if isinstance(entry, VirtualGroup):
                groups.append(entry)
            elif isinstance(entry, str):
                groups.append(VirtualGroup.from_prefix(entry))
            elif isinstance(entry, dict):
                label = entry.get("label")
                members = entry.get("members") or []
                if not label or not members:
                    raise ValueError(
                        f"Virtual group needs a label and members: {entry!r}"
                    )
                groups.append(
                    VirtualGroup(
                        label=str(label),
                        members=tuple(
                            (str(m["group"]), str(m.get("module_prefix", "")))
                            for m in members
                        ),
                    )
                )
            else:
                raise ValueError(f"Unsupported virtual group entry: {entry!r}")
        return cls(groups=tuple(groups))

    def find(self, record: DependencyRecord) -> Optional[VirtualGroup]:
        """First virtual group claiming the record, in configuration order."""
        for group in self.groups:
            if group.claims(record):
                return group
        return None

    def group_or_virtual_group(self, record: DependencyRecord) -> str:
        virtual = self.find(record)
        return virtual.label if virtual is not None else record.group

    def is_virtual(self, record: DependencyRecord) -> bool:
        return self.find(record) is not None
