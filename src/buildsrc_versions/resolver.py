"""
Naming pipeline entry point.

flatten -> disambiguate -> deduplicate -> group -> order -> verify
"""

from dataclasses import replace
from typing import Dict, List, Optional, Set

from .dependency import DependencyGraph, DependencyRecord, ResolvedSet, VersionMode
from .error_handling import ErrorCategory, NamingInvariantViolation, get_error_handler
from .graph import flatten_graph
from .grouping import VersionGrouper, order_dependencies
from .naming import AmbiguityResolver, NamingOptions
from .structured_logging import get_naming_logger, log_symbol_assignment


def deduplicate(dependencies: List[DependencyRecord]) -> List[DependencyRecord]:
    """Keep the first record of each ``group:module`` coordinate."""
    seen = set()
    unique = []
    for record in dependencies:
        if record.coordinate in seen:
            get_naming_logger().debug("duplicate_dropped", coordinate=record.coordinate)
            continue
        seen.add(record.coordinate)
        unique.append(record)
    return unique


def modules_shadowing_groups(records: List[DependencyRecord]) -> Set[str]:
    """Module names of MODULE records whose version symbol a promoted group took."""
    group_symbols = {r.symbol_name for r in records if r.mode is VersionMode.GROUP}
    return {
        r.module
        for r in records
        if r.mode is VersionMode.MODULE and r.symbol_name in group_symbols
    }


def check_unique_symbols(records: List[DependencyRecord]) -> None:
    """
    Verify that no generated name is shared by unrelated dependencies.

    Library symbols must be pairwise distinct. A version symbol may only be
    shared by GROUP records of one group label carrying the same version.

    Raises:
        NamingInvariantViolation: On any other repeated name
    """
    libraries: Dict[str, DependencyRecord] = {}
    versions: Dict[str, DependencyRecord] = {}

    for record in records:
        previous = libraries.get(record.coordinate_symbol_name)
        if previous is not None:
            _violation(
                f"Library symbol '{record.coordinate_symbol_name}' assigned to "
                f"{previous.coordinate} and {record.coordinate}"
            )
        libraries[record.coordinate_symbol_name] = record

        owner = versions.setdefault(record.symbol_name, record)
        if owner is record:
            continue
        shared = (
            owner.mode is VersionMode.GROUP
            and record.mode is VersionMode.GROUP
            and owner.group_label == record.group_label
            and owner.version == record.version
        )
        if not shared:
            _violation(
                f"Version symbol '{record.symbol_name}' assigned to unrelated "
                f"dependencies {owner.coordinate} ({owner.mode.value}) and "
                f"{record.coordinate} ({record.mode.value})"
            )


def withhold_unstable_updates(
    records: List[DependencyRecord], options: NamingOptions
) -> List[DependencyRecord]:
    """Drop update candidates the stability predicate rejects."""
    if not options.reject_non_stable:
        return records
    kept = []
    for record in records:
        newer = record.newer_version()
        if newer and options.is_non_stable(newer):
            get_naming_logger().debug(
                "unstable_update_hidden", coordinate=record.coordinate, available=newer
            )
            record = replace(record, available=None)
        kept.append(record)
    return kept


def _violation(message: str) -> None:
    get_error_handler().critical(
        ErrorCategory.NAMING, message, "resolver.check_unique_symbols"
    )
    raise NamingInvariantViolation(message)


def resolve_dependencies(
    dependencies: List[DependencyRecord], options: Optional[NamingOptions] = None
) -> ResolvedSet:
    """
    Run naming, grouping and ordering over already flattened records.

    A promoted group may take the version symbol of an unrelated MODULE
    record. That module is then forced to ``group_module`` and the records
    are disambiguated and grouped again, until no promotion shadows a module.
    """
    options = options or NamingOptions()
    resolver = AmbiguityResolver(options)
    grouper = VersionGrouper(options.virtual_groups)

    warnings = resolver.check_overrides(dependencies)
    forced: Set[str] = set()
    while True:
        unique = deduplicate(resolver.resolve(dependencies, forced))
        grouped = grouper.find_common_versions(unique)
        shadowing = modules_shadowing_groups(grouped) - forced
        if not shadowing:
            break
        get_naming_logger().debug("forcing_group_module", modules=sorted(shadowing))
        forced |= shadowing

    ordered = withhold_unstable_updates(order_dependencies(grouped), options)
    check_unique_symbols(ordered)

    for record in ordered:
        log_symbol_assignment(
            record.coordinate,
            record.mode.value,
            record.symbol_name,
            record.coordinate_symbol_name,
        )

    return ResolvedSet(
        records=tuple(ordered), warnings=tuple(str(w) for w in warnings)
    )


def resolve_dependency_graph(
    graph: DependencyGraph, options: Optional[NamingOptions] = None
) -> ResolvedSet:
    """
    Turn a dependency report into a conflict-free, ordered ResolvedSet.

    Raises:
        MalformedGraph: If a record lacks a group or module
        NamingInvariantViolation: If a name collision survives the pipeline
    """
    return resolve_dependencies(flatten_graph(graph), options)
