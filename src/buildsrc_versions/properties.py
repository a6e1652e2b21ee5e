"""
gradle.properties generation and merging.

The generated block is spliced into a file the user also edits: lines the
generator produced on a previous run are dropped, every other line is kept
verbatim and in order, and the new block is appended after them.
"""

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from .dependency import NO_VERSION, DependencyRecord, ResolvedSet
from .error_handling import FileUnwritable, log_filesystem_error
from .naming import version_property_for
from .structured_logging import get_properties_logger, log_properties_merge

ISSUE_77_URL = "https://github.com/jmfayard/buildSrcVersions/issues/77"

REFRESH_VERSIONS_START: List[str] = [
    "# Dependencies and Plugin versions with their available updates",
    "# Generated by $ ./gradlew refreshVersions",
    "# You can edit the rest of the file, it will be kept intact",
    f"# See {ISSUE_77_URL}",
]
REFRESH_VERSIONS_END: List[str] = []
OLD_LINES: List[str] = ["# Plugin versions"]
ALL_GRADLE_PROPERTIES_LINES = frozenset(
    REFRESH_VERSIONS_START + REFRESH_VERSIONS_END + OLD_LINES
)

AVAILABLE_MARKER = "# available="
GENERATED_PREFIXES = ("version.", "plugin.")
GRADLE_PLUGIN_SUFFIX = ".gradle.plugin"


def was_generated_by_plugin(line: str) -> bool:
    """True for lines owned by the generator and replaced on every run."""
    return (
        line.startswith(GENERATED_PREFIXES)
        or AVAILABLE_MARKER in line
        or line in ALL_GRADLE_PROPERTIES_LINES
    )


def property_key_for(record: DependencyRecord) -> str:
    if record.is_gradle_plugin:
        return "plugin." + record.module[: -len(GRADLE_PLUGIN_SUFFIX)]
    return "version." + version_property_for(record)


def as_gradle_property(record: DependencyRecord) -> List[str]:
    """
    Property line for one record, plus the available-update comment.

    The comment marker is aligned under the "=" of the property::

        version.okhttp=3.12.1
        #             # available=3.14.0
    """
    key = property_key_for(record)
    lines = [f"{key}={record.version}"]
    newer = record.newer_version()
    if newer and newer != record.version and record.version != NO_VERSION:
        padding = " " * max(0, len(key) - 1)
        lines.append(f"#{padding}{AVAILABLE_MARKER}{newer}")
    return lines


def generate_version_properties(
    resolved: Union[ResolvedSet, Iterable[DependencyRecord]]
) -> List[str]:
    """
    Build the generated block: header, plugins first, then versions.

    Records sharing a property key (a promoted group) produce one line.
    """
    records = list(resolved)
    plugins_first = sorted(records, key=lambda d: not d.is_gradle_plugin)

    lines = list(REFRESH_VERSIONS_START)
    seen = set()
    for record in plugins_first:
        key = property_key_for(record)
        if key in seen:
            continue
        seen.add(key)
        lines.extend(as_gradle_property(record))
    return lines + REFRESH_VERSIONS_END


def merge_lines(
    existing_lines: List[str],
    new_lines: List[str],
    remove_if: Callable[[str], bool] = was_generated_by_plugin,
) -> List[str]:
    """User-owned lines in their original order, followed by the new block."""
    return [line for line in existing_lines if not remove_if(line)] + list(new_lines)


def merge_properties(
    file_path: Union[str, Path],
    new_lines: List[str],
    remove_if: Optional[Callable[[str], bool]] = None,
) -> str:
    """
    Replace the generated block of a properties file.

    Creates the file when missing. Re-running with the same block and the
    same user edits reproduces the same content. Bytes that are not UTF-8
    (e.g. Latin-1 comments) are written back unchanged.

    Returns:
        The content written

    Raises:
        FileUnwritable: If the file cannot be read, created or written
    """
    path = Path(file_path)
    remove_if = remove_if or was_generated_by_plugin

    try:
        if path.exists():
            with open(path, encoding="utf-8", errors="surrogateescape") as f:
                existing_lines = f.read().splitlines()
        else:
            get_properties_logger().debug("properties_file_created", file_path=str(path))
            existing_lines = []

        merged = merge_lines(existing_lines, new_lines, remove_if)
        content = "\n".join(merged)

        with open(path, "w", encoding="utf-8", errors="surrogateescape") as f:
            f.write(content)
    except OSError as e:
        log_filesystem_error(
            "Failed to update properties file",
            "properties.merge_properties",
            file_path=path,
            exception=e,
        )
        raise FileUnwritable(path, e.strerror or str(e)) from e

    removed = len(existing_lines) - (len(merged) - len(new_lines))
    log_properties_merge(
        str(path),
        kept_lines=len(merged) - len(new_lines),
        removed_lines=removed,
        generated_lines=len(new_lines),
    )
    return content
