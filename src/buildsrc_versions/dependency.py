"""
Data model for dependency naming and grouping.

Records are immutable: every resolution pass returns new records instead of
mutating shared ones, so each pass can be exercised on its own.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

NO_VERSION = "none"


class VersionMode(Enum):
    """How the version symbol of a dependency is keyed."""

    MODULE = "MODULE"  # Module name only
    GROUP = "GROUP"  # Shared symbol for a group or virtual group
    GROUP_MODULE = "GROUP_MODULE"  # Group plus module


class ResolutionStage(Enum):
    """Pipeline stage a record has reached."""

    UNRESOLVED = 0
    DISAMBIGUATED = 1
    GROUPED = 2
    ORDERED = 3


@dataclass(frozen=True)
class AvailableVersions:
    """Newer versions reported for a dependency, by channel."""

    release: Optional[str] = None
    milestone: Optional[str] = None
    integration: Optional[str] = None

    def newer_version(self) -> Optional[str]:
        """First non-blank candidate, preferring release over milestone over integration."""
        for candidate in (self.release, self.milestone, self.integration):
            if candidate and candidate.strip():
                return candidate.strip()
        return None


@dataclass(frozen=True)
class DependencyRecord:
    """One dependency to be named and rendered."""

    group: str
    module: str
    version: str
    available: Optional[AvailableVersions] = None
    mode: Optional[VersionMode] = None
    symbol_name: Optional[str] = None
    coordinate_symbol_name: Optional[str] = None
    stage: ResolutionStage = ResolutionStage.UNRESOLVED
    project_url: Optional[str] = None
    group_label: Optional[str] = None  # Set when promoted to GROUP

    @property
    def coordinate(self) -> str:
        return f"{self.group}:{self.module}"

    @property
    def is_gradle_plugin(self) -> bool:
        return self.module.endswith(".gradle.plugin")

    def newer_version(self) -> Optional[str]:
        if self.available is None:
            return None
        return self.available.newer_version()


@dataclass(frozen=True)
class GradleVersions:
    """Build tool version pair from the report."""

    running: str
    current: str


@dataclass
class DependencyGraph:
    """Parsed dependency-updates report."""

    current: List[DependencyRecord] = field(default_factory=list)
    outdated: List[DependencyRecord] = field(default_factory=list)
    exceeded: List[DependencyRecord] = field(default_factory=list)
    unresolved: List[DependencyRecord] = field(default_factory=list)
    gradle: Optional[GradleVersions] = None

    @property
    def total_dependencies(self) -> int:
        return (
            len(self.current)
            + len(self.outdated)
            + len(self.exceeded)
            + len(self.unresolved)
        )


@dataclass(frozen=True)
class VirtualGroup:
    """
    A set of coordinates that share one version identity.

    A record belongs to the virtual group when its group equals one of the
    member groups and its module starts with that member's module prefix.
    """

    label: str
    members: Tuple[Tuple[str, str], ...]

    @classmethod
    def from_prefix(cls, prefix: str) -> "VirtualGroup":
        """
        Build a virtual group from a dotted ``group.modulePrefix`` string.

        ``org.jetbrains.kotlinx.kotlinx-coroutines`` claims every module of
        ``org.jetbrains.kotlinx`` whose name starts with ``kotlinx-coroutines``.
        """
        group, sep, module_prefix = prefix.rpartition(".")
        if not sep or not group or not module_prefix:
            raise ValueError(f"Invalid virtual group prefix: {prefix!r}")
        return cls(label=prefix, members=((group, module_prefix),))

    def claims(self, record: DependencyRecord) -> bool:
        return any(
            record.group == group and record.module.startswith(module_prefix)
            for group, module_prefix in self.members
        )


@dataclass(frozen=True)
class ResolvedSet:
    """Ordered, frozen output of the naming pipeline."""

    records: Tuple[DependencyRecord, ...]
    warnings: Tuple[str, ...] = ()

    def __iter__(self):
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def version_symbols(self) -> Dict[str, str]:
        """Distinct version symbols mapped to their version, in output order."""
        symbols: Dict[str, str] = {}
        for record in self.records:
            symbols.setdefault(record.symbol_name, record.version)
        return symbols

    def library_symbols(self) -> Dict[str, str]:
        """Coordinate symbols mapped to their ``group:module`` coordinate."""
        return {
            record.coordinate_symbol_name: record.coordinate for record in self.records
        }
