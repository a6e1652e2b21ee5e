"""
Dependency report loading and flattening.

Reads the JSON report written by the gradle-versions plugin
(``build/dependencyUpdates/report.json``) and merges its sections into one
list of dependency records.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .dependency import (
    AvailableVersions,
    DependencyGraph,
    DependencyRecord,
    GradleVersions,
)
from .error_handling import MalformedGraph, log_graph_error
from .structured_logging import get_graph_logger

REPORT_SECTIONS = ("current", "outdated", "exceeded", "unresolved")

GRADLE_GROUP = "org.gradle"
GRADLE_LATEST_VERSION = "gradleLatestVersion"


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _parse_available(data: Any) -> Optional[AvailableVersions]:
    if not isinstance(data, dict):
        return None
    available = AvailableVersions(
        release=_optional_str(data.get("release")),
        milestone=_optional_str(data.get("milestone")),
        integration=_optional_str(data.get("integration")),
    )
    if available == AvailableVersions():
        return None
    return available


def _parse_dependency(entry: Any, section: str, index: int) -> DependencyRecord:
    if not isinstance(entry, dict):
        log_graph_error(
            "Dependency entry is not an object", "graph._parse_dependency", section, index
        )
        raise MalformedGraph(f"{section}[{index}] is not an object")

    # Missing coordinates are reported by flatten_graph, keep them empty here
    version = entry.get("version")
    return DependencyRecord(
        group=str(entry.get("group") or ""),
        module=str(entry.get("name") or ""),
        version=str(version) if version is not None else "none",
        available=_parse_available(entry.get("available")),
        project_url=_optional_str(entry.get("projectUrl")),
    )


def _parse_gradle(data: Any) -> GradleVersions:
    try:
        running = data["running"]["version"]
        current = data["current"]["version"]
    except (KeyError, TypeError) as e:
        log_graph_error(
            "Report has no usable gradle section", "graph._parse_gradle", "gradle", exception=e
        )
        raise MalformedGraph(f"Invalid gradle section: {e}") from e
    return GradleVersions(running=str(running), current=str(current))


def parse_report(data: Dict[str, Any]) -> DependencyGraph:
    """
    Build a DependencyGraph from a decoded report.

    Raises:
        MalformedGraph: If a section or the gradle version pair is unusable
    """
    if not isinstance(data, dict):
        raise MalformedGraph("Report root must be a JSON object")

    sections: Dict[str, List[DependencyRecord]] = {}
    for section in REPORT_SECTIONS:
        block = data.get(section, {"dependencies": []})
        entries = block.get("dependencies") if isinstance(block, dict) else None
        if not isinstance(entries, list):
            log_graph_error("Section has no dependency list", "graph.parse_report", section)
            raise MalformedGraph(f"Section '{section}' has no dependency list")
        sections[section] = [
            _parse_dependency(entry, section, i) for i, entry in enumerate(entries)
        ]

    gradle = _parse_gradle(data["gradle"]) if "gradle" in data else None
    return DependencyGraph(gradle=gradle, **sections)


def load_report(path: Union[str, Path]) -> DependencyGraph:
    """
    Load and parse a dependency-updates report from disk.

    Raises:
        MalformedGraph: If the file is missing, is not JSON or is malformed
    """
    report_path = Path(path)
    try:
        with open(report_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise MalformedGraph(
            f"Report not found: {report_path}. Run ./gradlew dependencyUpdates first"
        ) from e
    except json.JSONDecodeError as e:
        log_graph_error("Report is not valid JSON", "graph.load_report", exception=e)
        raise MalformedGraph(f"Invalid JSON in {report_path}: {e}") from e

    graph = parse_report(data)
    get_graph_logger().info(
        "report_loaded",
        report_path=str(report_path),
        total_dependencies=graph.total_dependencies,
    )
    return graph


def gradle_latest_version(gradle: GradleVersions) -> DependencyRecord:
    """Synthetic record tracking the build tool's own version."""
    available = None
    if gradle.current != gradle.running:
        available = AvailableVersions(release=gradle.current)
    return DependencyRecord(
        group=GRADLE_GROUP,
        module=GRADLE_LATEST_VERSION,
        version=gradle.running,
        available=available,
    )


def flatten_graph(graph: DependencyGraph) -> List[DependencyRecord]:
    """
    Merge all report sections into one list.

    Order is current, exceeded, outdated, unresolved, then the build tool
    record. Duplicates are kept.

    Raises:
        MalformedGraph: If any record lacks a group or a module
    """
    dependencies = graph.current + graph.exceeded + graph.outdated + graph.unresolved

    for index, record in enumerate(dependencies):
        if not record.group or not record.module:
            log_graph_error(
                f"Dependency without group or name: '{record.coordinate}'",
                "graph.flatten_graph",
                index=index,
            )
            raise MalformedGraph(
                f"Dependency #{index} has no group or name: '{record.coordinate}'"
            )

    if graph.gradle is not None:
        dependencies.append(gradle_latest_version(graph.gradle))
    return dependencies
