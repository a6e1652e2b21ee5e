"""Generate conflict-free Libs/Versions constants from a Gradle dependency report."""

from .dependency import DependencyGraph, DependencyRecord, ResolvedSet, VersionMode
from .naming import NamingOptions, escape_identifier
from .properties import merge_properties
from .resolver import resolve_dependency_graph

__all__ = [
    "DependencyGraph",
    "DependencyRecord",
    "NamingOptions",
    "ResolvedSet",
    "VersionMode",
    "escape_identifier",
    "merge_properties",
    "resolve_dependency_graph",
]
