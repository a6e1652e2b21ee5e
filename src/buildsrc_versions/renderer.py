"""
Kotlin source rendering for the version and library tables.

Produces ``Versions.kt`` and ``Libs.kt`` for ``buildSrc/src/main/kotlin``.
"""

import json
from dataclasses import dataclass
from typing import List, Optional

from .dependency import NO_VERSION, DependencyRecord, ResolvedSet
from .graph import GRADLE_GROUP, GRADLE_LATEST_VERSION
from .grouping import OrderBy, sorted_beautifully_by
from .structured_logging import get_render_logger

BUILD_SRC_VERSIONS_URL = "https://github.com/jmfayard/buildSrcVersions"
ISSUE_19_UPDATE_GRADLE = f"{BUILD_SRC_VERSIONS_URL}/issues/19"
ISSUE_23_NO_VERSION = "buildSrcVersions#23"
ISSUE_47_UPDATE_PLUGIN = (
    "See issue #47: how to update buildSrcVersions itself "
    f"{BUILD_SRC_VERSIONS_URL}/issues/47"
)
BUILD_SRC_VERSIONS_PLUGIN_MODULES = (
    "de.fayard.buildSrcVersions.gradle.plugin",
    "buildSrcVersions-plugin",
)
MAX_LINE_LENGTH = 70

KDOC_LIBS = f"""Generated by {BUILD_SRC_VERSIONS_URL}

Update this file with
  `$ ./gradlew buildSrcVersions`"""

KDOC_VERSIONS = f"""Generated by {BUILD_SRC_VERSIONS_URL}

Find which updates are available by running
    `$ ./gradlew buildSrcVersions`
This will only update the comments.

YOU are responsible for updating manually the dependency version."""


@dataclass(frozen=True)
class RenderOptions:
    """Rendering settings taken from the output configuration."""

    libs_name: str = "Libs"
    versions_name: str = "Versions"
    indent: str = "    "
    order_by: OrderBy = OrderBy.GROUP_AND_LENGTH


@dataclass(frozen=True)
class KotlinSources:
    libs: str
    versions: str


def kotlin_string(value: str) -> str:
    """Quote a value as a Kotlin string literal."""
    return json.dumps(value).replace("$", "\\$")


def kdoc(text: str, indent: str = "") -> List[str]:
    lines = [f"{indent}/**"]
    for line in text.splitlines():
        lines.append(f"{indent} * {line}".rstrip())
    lines.append(f"{indent} */")
    return lines


def version_information(record: DependencyRecord) -> str:
    """Trailing comment for a version constant, moved to its own line when long."""
    newer = record.newer_version()

    if record.version == NO_VERSION:
        comment = f"// No version. See {ISSUE_23_NO_VERSION}"
    elif newer is None or newer == record.version:
        comment = ""
    else:
        comment = f'// available: "{newer}"'

    if not comment:
        return ""
    if len(comment) + len(record.symbol_name) + len(record.version) > MAX_LINE_LENGTH:
        return "\n" + comment
    return " " + comment


def _is_build_tool(record: DependencyRecord) -> bool:
    return record.group == GRADLE_GROUP and record.module == GRADLE_LATEST_VERSION


def _const_val(name: str, value: str, indent: str, suffix: str = "") -> List[str]:
    line = f"{indent}const val {name}: String = {value}"
    if suffix.startswith("\n"):
        return [line, f"{indent}{indent}{suffix[1:]}"]
    return [line + suffix]


def render_versions_kt(
    resolved: ResolvedSet,
    gradle_running: Optional[str] = None,
    gradle_current: Optional[str] = None,
    options: Optional[RenderOptions] = None,
) -> str:
    """Render the ``object Versions`` source."""
    options = options or RenderOptions()
    indent = options.indent

    records = [d for d in resolved if not _is_build_tool(d)]
    distinct = {}
    for record in records:
        distinct.setdefault(record.symbol_name, record)
    ordered = sorted_beautifully_by(
        list(distinct.values()), options.order_by, lambda d: d.symbol_name
    )

    lines = kdoc(KDOC_VERSIONS)
    lines.append(f"object {options.versions_name} {{")
    for record in ordered:
        lines.extend(
            _const_val(
                record.symbol_name,
                kotlin_string(record.version),
                indent,
                version_information(record),
            )
        )
        lines.append("")

    if gradle_running is not None:
        latest = gradle_current or gradle_running
        lines.extend(
            kdoc(
                f'Current version: "{gradle_running}"\n'
                "See issue 19: How to update Gradle itself?\n"
                f"{ISSUE_19_UPDATE_GRADLE}",
                indent,
            )
        )
        lines.extend(_const_val(GRADLE_LATEST_VERSION, kotlin_string(latest), indent))
    elif lines[-1] == "":
        lines.pop()
    lines.append("}")

    plugin = next(
        (d for d in resolved if d.module in BUILD_SRC_VERSIONS_PLUGIN_MODULES), None
    )
    if plugin is not None:
        lines.append("")
        lines.extend(kdoc(ISSUE_47_UPDATE_PLUGIN))
        lines.append(
            "inline val PluginDependenciesSpec.buildSrcVersions: PluginDependencySpec"
        )
        lines.append(
            f'{indent}inline get() = id("de.fayard.buildSrcVersions")'
            f".version({options.versions_name}.{plugin.symbol_name})"
        )

    header = []
    if plugin is not None:
        header = [
            "import org.gradle.plugin.use.PluginDependenciesSpec",
            "import org.gradle.plugin.use.PluginDependencySpec",
            "",
        ]
    return "\n".join(header + lines) + "\n"


def render_libs_kt(
    resolved: ResolvedSet, options: Optional[RenderOptions] = None
) -> str:
    """Render the ``object Libs`` source."""
    options = options or RenderOptions()
    indent = options.indent

    ordered = sorted_beautifully_by(
        [d for d in resolved if not _is_build_tool(d)],
        options.order_by,
        lambda d: d.coordinate_symbol_name,
    )

    lines = kdoc(KDOC_LIBS)
    lines.append(f"object {options.libs_name} {{")
    for record in ordered:
        if record.project_url:
            lines.extend(kdoc(record.project_url, indent))
        if record.version == NO_VERSION:
            value = kotlin_string(record.coordinate)
        else:
            value = (
                f"{kotlin_string(record.coordinate + ':')} + "
                f"{options.versions_name}.{record.symbol_name}"
            )
        lines.extend(_const_val(record.coordinate_symbol_name, value, indent))
        lines.append("")
    if lines[-1] == "":
        lines.pop()
    lines.append("}")
    return "\n".join(lines) + "\n"


def render_kotlin_sources(
    resolved: ResolvedSet,
    gradle_running: Optional[str] = None,
    gradle_current: Optional[str] = None,
    options: Optional[RenderOptions] = None,
) -> KotlinSources:
    sources = KotlinSources(
        libs=render_libs_kt(resolved, options),
        versions=render_versions_kt(resolved, gradle_running, gradle_current, options),
    )
    get_render_logger().debug(
        "kotlin_rendered",
        libs_lines=sources.libs.count("\n"),
        versions_lines=sources.versions.count("\n"),
    )
    return sources
