"""
Identifier escaping and ambiguity resolution.

Every dependency gets the shortest readable name (its module) unless that
name is meaningless on its own, explicitly overridden, or shared with
another dependency; those fall back to ``group_module``.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Set, Tuple

from .dependency import DependencyRecord, ResolutionStage, VersionMode
from .error_handling import AmbiguousConfiguration, log_configuration_warning
from .structured_logging import get_naming_logger
from .virtual_groups import VirtualGroupRegistry

# Generic module names that would produce symbols like Libs.core.
# Many come from https://developer.android.com/jetpack/androidx/migrate
MEANINGLESS_NAMES: Tuple[str, ...] = (
    "common",
    "core",
    "testing",
    "runtime",
    "extensions",
    "compiler",
    "migration",
    "db",
    "rules",
    "runner",
    "monitor",
    "loader",
    "media",
    "print",
    "io",
    "collection",
    "gradle",
    "android",
)

_ESCAPED_CHARS = {"-", ".", ":"}
_STABLE_KEYWORDS = ("RELEASE", "FINAL", "GA")
_STABLE_VERSION = re.compile(r"^[0-9,.v-]+$")


def escape_identifier(name: str) -> str:
    """
    Turn a coordinate string into a lowercase identifier.

    ``-``, ``.`` and ``:`` become ``_``; everything else is lower-cased.
    Distinct inputs may escape to the same identifier.
    """
    return "".join("_" if c in _ESCAPED_CHARS else c.lower() for c in name)


def is_non_stable(version: str) -> bool:
    """
    Default stability predicate.

    There is no standard for naming unstable versions; this treats anything
    that is not purely numeric and carries no RELEASE/FINAL/GA keyword as
    unstable.
    """
    upper = version.upper()
    stable = any(keyword in upper for keyword in _STABLE_KEYWORDS) or bool(
        _STABLE_VERSION.match(version)
    )
    return not stable


@dataclass(frozen=True)
class NamingOptions:
    """Immutable configuration threaded through one resolution pass."""

    use_fqdn_for: Tuple[str, ...] = ()
    meaningless_names: Tuple[str, ...] = MEANINGLESS_NAMES
    virtual_groups: VirtualGroupRegistry = field(
        default_factory=VirtualGroupRegistry.default
    )
    reject_non_stable: bool = False
    is_non_stable: Callable[[str], bool] = is_non_stable


def version_symbol_for(record: DependencyRecord) -> str:
    """Version-table symbol derived from the record's mode."""
    mode = record.mode
    if mode is VersionMode.MODULE:
        return escape_identifier(record.module)
    elif mode is VersionMode.GROUP:
        return escape_identifier(record.group_label or record.group)
    elif mode is VersionMode.GROUP_MODULE:
        return escape_identifier(f"{record.group}:{record.module}")
    raise ValueError(f"Unknown version mode: {mode!r}")


def version_property_for(record: DependencyRecord) -> str:
    """Key used in ``version.<key>=...`` properties lines."""
    mode = record.mode
    if mode is VersionMode.MODULE:
        return record.module
    elif mode is VersionMode.GROUP:
        return record.group_label or record.group
    elif mode is VersionMode.GROUP_MODULE:
        return f"{record.group}..{record.module}"
    raise ValueError(f"Unknown version mode: {mode!r}")


def coordinate_symbol_for(record: DependencyRecord, use_group: bool) -> str:
    if use_group:
        return escape_identifier(f"{record.group}_{record.module}")
    return escape_identifier(record.module)


def compute_use_fqdn_for(
    dependencies: List[DependencyRecord],
    configured: Iterable[str],
    by_default: Iterable[str] = MEANINGLESS_NAMES,
) -> List[str]:
    """
    Names whose dependencies must use the ``group_module`` form.

    Configured entries containing a dot are groups: each is replaced by the
    modules of that group. Module names shared by two or more records after
    escaping are added as well.
    """
    names = list(configured) + list(by_default)
    groups = {name for name in names if "." in name}
    modules_from_groups = [d.module for d in dependencies if d.group in groups]

    by_escaped: Dict[str, List[str]] = {}
    for d in dependencies:
        by_escaped.setdefault(escape_identifier(d.module), []).append(d.module)
    ambiguities = [
        module
        for modules in by_escaped.values()
        if len(modules) > 1
        for module in modules
    ]

    result = set(names) | set(ambiguities) | set(modules_from_groups)
    return sorted(result - groups)


def stale_overrides(
    dependencies: List[DependencyRecord], configured: Iterable[str]
) -> List[str]:
    """Configured override names that match no dependency."""
    modules = {d.module for d in dependencies}
    escaped = {escape_identifier(d.module) for d in dependencies}
    groups = {d.group for d in dependencies}
    return [
        name
        for name in configured
        if name not in modules and name not in escaped and name not in groups
    ]


class AmbiguityResolver:
    """Assigns MODULE or GROUP_MODULE to every record."""

    def __init__(self, options: NamingOptions):
        self.options = options
        self.logger = get_naming_logger()

    def check_overrides(
        self, dependencies: List[DependencyRecord]
    ) -> List[AmbiguousConfiguration]:
        """Warnings for override entries matching no dependency."""
        warnings = []
        for name in stale_overrides(dependencies, self.options.use_fqdn_for):
            warning = AmbiguousConfiguration(name)
            log_configuration_warning(
                str(warning), "naming.AmbiguityResolver.check_overrides", name=name
            )
            warnings.append(warning)
        return warnings

    def resolve(
        self,
        dependencies: List[DependencyRecord],
        forced_modules: Iterable[str] = (),
    ) -> List[DependencyRecord]:
        """
        Disambiguate the whole flattened list.

        ``forced_modules`` are module names that must use ``group_module`` in
        addition to the configured overrides and meaningless names.

        The forced set only grows: a record switched to ``group_module`` can
        never make another record's ``group_module`` form unnecessary, so the
        loop stops as soon as no new module name must be added.

        Returns:
            The disambiguated records, in input order
        """
        forced: Set[str] = set(
            compute_use_fqdn_for(
                dependencies,
                self.options.use_fqdn_for,
                self.options.meaningless_names,
            )
        )
        forced.update(forced_modules)

        while True:
            resolved = [self._assign(d, forced) for d in dependencies]
            colliding = self._colliding_modules(resolved) - forced
            if not colliding:
                break
            self.logger.debug("forcing_group_module", modules=sorted(colliding))
            forced |= colliding

        return resolved

    def _assign(self, record: DependencyRecord, forced: Set[str]) -> DependencyRecord:
        use_group = (
            record.module in forced or escape_identifier(record.module) in forced
        )
        mode = VersionMode.GROUP_MODULE if use_group else VersionMode.MODULE
        assigned = replace(
            record,
            mode=mode,
            coordinate_symbol_name=coordinate_symbol_for(record, use_group),
            stage=ResolutionStage.DISAMBIGUATED,
        )
        return replace(assigned, symbol_name=version_symbol_for(assigned))

    @staticmethod
    def _colliding_modules(records: List[DependencyRecord]) -> Set[str]:
        """Module names of MODULE records whose symbols clash with another record."""
        version_owners: Dict[str, Set[str]] = {}
        library_owners: Dict[str, Set[str]] = {}
        for record in records:
            version_owners.setdefault(record.symbol_name, set()).add(record.coordinate)
            library_owners.setdefault(record.coordinate_symbol_name, set()).add(
                record.coordinate
            )

        return {
            record.module
            for record in records
            if record.mode is VersionMode.MODULE
            and (
                len(version_owners[record.symbol_name]) > 1
                or len(library_owners[record.coordinate_symbol_name]) > 1
            )
        }
