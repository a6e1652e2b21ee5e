"""
Version grouping and deterministic ordering.

Dependencies of one group (or virtual group) that always share a version get
one version symbol, so a co-released family is upgraded by editing a single
string.
"""

from dataclasses import replace
from enum import Enum
from typing import Callable, Dict, List, Optional

from .dependency import DependencyRecord, ResolutionStage, VersionMode
from .naming import version_symbol_for
from .structured_logging import get_naming_logger
from .virtual_groups import VirtualGroupRegistry


class OrderBy(Enum):
    """Ordering of generated constants."""

    GROUP_AND_LENGTH = "GROUP_AND_LENGTH"
    GROUP_AND_ALPHABETICAL = "GROUP_AND_ALPHABETICAL"


_MODE_RANK = {
    VersionMode.MODULE: 0,
    VersionMode.GROUP: 1,
    VersionMode.GROUP_MODULE: 2,
}


class VersionGrouper:
    """Promotes partitions sharing one version to GROUP mode."""

    def __init__(self, registry: VirtualGroupRegistry):
        self.registry = registry
        self.logger = get_naming_logger()

    def find_common_versions(
        self, dependencies: List[DependencyRecord]
    ) -> List[DependencyRecord]:
        """
        Return new records with shared-version partitions promoted.

        A partition is promoted when all its members carry the same version
        and it is either a virtual group or has more than one member. Library
        coordinate symbols are never changed.
        """
        partitions: Dict[str, List[int]] = {}
        for index, record in enumerate(dependencies):
            label = self.registry.group_or_virtual_group(record)
            partitions.setdefault(label, []).append(index)

        promoted: Dict[int, str] = {}
        for label in sorted(partitions):
            indexes = partitions[label]
            members = [dependencies[i] for i in indexes]
            same_version = len({d.version for d in members}) == 1
            has_virtual_group = any(self.registry.is_virtual(d) for d in members)
            if same_version and (has_virtual_group or len(members) > 1):
                self.logger.debug(
                    "group_promoted",
                    group=label,
                    members=len(members),
                    version=members[0].version,
                )
                for i in indexes:
                    promoted[i] = label

        grouped = []
        for index, record in enumerate(dependencies):
            if index in promoted:
                record = replace(
                    record, mode=VersionMode.GROUP, group_label=promoted[index]
                )
                record = replace(record, symbol_name=version_symbol_for(record))
            grouped.append(replace(record, stage=ResolutionStage.GROUPED))
        return grouped


def order_dependencies(dependencies: List[DependencyRecord]) -> List[DependencyRecord]:
    """
    Stable sort by version symbol, then library symbol.

    Ties keep their input order.
    """
    ordered = sorted(
        dependencies, key=lambda d: (d.symbol_name, d.coordinate_symbol_name)
    )
    return [replace(d, stage=ResolutionStage.ORDERED) for d in ordered]


def sorted_beautifully_by(
    dependencies: List[DependencyRecord],
    order_by: OrderBy,
    selection: Callable[[DependencyRecord], Optional[str]],
) -> List[DependencyRecord]:
    """
    Order records for display in a generated table.

    Records for which ``selection`` returns None are dropped. Both orders
    list MODULE symbols first, then GROUP, then GROUP_MODULE;
    GROUP_AND_LENGTH puts the longest symbols first within each mode.
    """
    selected = [d for d in dependencies if selection(d) is not None]
    alphabetical = sorted(selected, key=lambda d: selection(d))
    if order_by is OrderBy.GROUP_AND_LENGTH:
        by_length = sorted(alphabetical, key=lambda d: -len(selection(d)))
        return sorted(by_length, key=lambda d: _MODE_RANK[d.mode])
    elif order_by is OrderBy.GROUP_AND_ALPHABETICAL:
        return sorted(alphabetical, key=lambda d: _MODE_RANK[d.mode])
    raise ValueError(f"Unknown order: {order_by!r}")
