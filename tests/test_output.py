"""
Output tests for buildsrc-versions.
Tests gradle.properties merging and Kotlin source rendering.
"""

import pytest

from src.buildsrc_versions.dependency import (
    AvailableVersions,
    DependencyRecord,
    ResolvedSet,
    VersionMode,
)
from src.buildsrc_versions.error_handling import FileUnwritable
from src.buildsrc_versions.graph import load_report
from src.buildsrc_versions.properties import (
    REFRESH_VERSIONS_START,
    as_gradle_property,
    generate_version_properties,
    merge_lines,
    merge_properties,
    was_generated_by_plugin,
)
from src.buildsrc_versions.renderer import (
    RenderOptions,
    kotlin_string,
    render_kotlin_sources,
    render_libs_kt,
    render_versions_kt,
    version_information,
)
from src.buildsrc_versions.resolver import resolve_dependency_graph


def resolved_record(group, module, version, mode=VersionMode.MODULE, symbol=None, **kwargs):
    return DependencyRecord(
        group=group,
        module=module,
        version=version,
        mode=mode,
        symbol_name=symbol or module.replace("-", "_").replace(".", "_"),
        coordinate_symbol_name=module.replace("-", "_").replace(".", "_"),
        **kwargs,
    )


@pytest.fixture
def sample_resolved(sample_report_json):
    return resolve_dependency_graph(load_report(sample_report_json))


class TestGeneratedLineDetection:
    """Test which properties lines belong to the generator."""

    @pytest.mark.parametrize(
        "line",
        [
            "version.okhttp=3.12.1",
            "plugin.com.github.ben-manes.versions=0.25.0",
            "#             # available=3.14.0",
            "# Plugin versions",
        ]
        + REFRESH_VERSIONS_START,
    )
    def test_generated_lines(self, line):
        """Test version, plugin, available and header lines are recognized."""
        assert was_generated_by_plugin(line)

    @pytest.mark.parametrize(
        "line", ["org.gradle.jvmargs=-Xmx2g", "# my own comment", "", "kotlin.code.style=official"]
    )
    def test_hand_written_lines(self, line):
        """Test lines written by the user are kept."""
        assert not was_generated_by_plugin(line)


class TestPropertiesGeneration:
    """Test the generated properties block."""

    def test_available_comment_is_aligned(self):
        """Test the update comment marker sits under the key's '=' sign."""
        record = resolved_record(
            "com.squareup.okhttp3",
            "okhttp",
            "3.12.1",
            available=AvailableVersions(release="3.14.0"),
        )

        lines = as_gradle_property(record)

        assert lines == ["version.okhttp=3.12.1", "#" + " " * 13 + "# available=3.14.0"]
        assert lines[1].index("# available") == lines[0].index("=")

    def test_no_comment_without_update(self):
        """Test an up-to-date dependency is a single line."""
        record = resolved_record("com.squareup.okhttp3", "okhttp", "3.12.1")

        assert as_gradle_property(record) == ["version.okhttp=3.12.1"]

    def test_group_module_key(self):
        """Test group_module records use a double-dot key."""
        record = resolved_record(
            "com.example", "core", "1.0.0", mode=VersionMode.GROUP_MODULE
        )

        assert as_gradle_property(record) == ["version.com.example..core=1.0.0"]

    def test_plugin_key(self):
        """Test plugin markers are keyed by plugin id."""
        record = resolved_record(
            "com.github.ben-manes.versions",
            "com.github.ben-manes.versions.gradle.plugin",
            "0.25.0",
        )

        assert as_gradle_property(record) == [
            "plugin.com.github.ben-manes.versions=0.25.0"
        ]

    def test_block_lists_plugins_first_and_groups_once(self):
        """Test plugins come first and a shared group produces one line."""
        records = [
            resolved_record(
                "org.jetbrains.kotlinx",
                "kotlinx-coroutines-core",
                "1.3.2",
                mode=VersionMode.GROUP,
                group_label="org.jetbrains.kotlinx.kotlinx-coroutines",
            ),
            resolved_record(
                "org.jetbrains.kotlinx",
                "kotlinx-coroutines-android",
                "1.3.2",
                mode=VersionMode.GROUP,
                group_label="org.jetbrains.kotlinx.kotlinx-coroutines",
            ),
            resolved_record(
                "com.github.ben-manes.versions",
                "com.github.ben-manes.versions.gradle.plugin",
                "0.25.0",
            ),
        ]

        lines = generate_version_properties(records)

        assert lines == REFRESH_VERSIONS_START + [
            "plugin.com.github.ben-manes.versions=0.25.0",
            "version.org.jetbrains.kotlinx.kotlinx-coroutines=1.3.2",
        ]

    def test_sample_report_block(self, sample_resolved):
        """Test the block generated for a full report."""
        lines = generate_version_properties(sample_resolved)

        assert "version.com.example..core=1.0.0" in lines
        assert "version.okhttp=3.12.1" in lines
        assert "version.gradleLatestVersion=5.6.2" in lines
        assert "version.org.jetbrains.kotlinx.kotlinx-coroutines=1.3.2" in lines
        assert sum(1 for line in lines if "kotlinx-coroutines" in line) == 1


class TestPropertiesMerge:
    """Test merging the generated block into a user-edited file."""

    def test_hand_written_lines_are_preserved_in_order(self, temp_dir):
        """Test user lines keep their order and old generated lines are dropped."""
        properties = temp_dir / "gradle.properties"
        properties.write_text(
            "\n".join(
                ["org.gradle.jvmargs=-Xmx2g"]
                + REFRESH_VERSIONS_START
                + [
                    "version.okhttp=3.12.0",
                    "#             # available=3.12.1",
                    "kotlin.code.style=official",
                ]
            )
            + "\n"
        )
        new_lines = REFRESH_VERSIONS_START + ["version.okhttp=3.12.1"]

        content = merge_properties(properties, new_lines)

        expected = "\n".join(
            ["org.gradle.jvmargs=-Xmx2g", "kotlin.code.style=official"] + new_lines
        )
        assert content == expected
        assert properties.read_text() == expected

    def test_merge_is_idempotent(self, temp_dir):
        """Test merging the same block twice gives the same file."""
        properties = temp_dir / "gradle.properties"
        properties.write_text("org.gradle.caching=true\n")
        new_lines = REFRESH_VERSIONS_START + ["version.okhttp=3.12.1"]

        first = merge_properties(properties, new_lines)
        second = merge_properties(properties, new_lines)

        assert first == second
        assert properties.read_text() == first

    def test_missing_file_is_created(self, temp_dir):
        """Test a missing file is created with only the generated block."""
        properties = temp_dir / "gradle.properties"

        content = merge_properties(properties, ["version.okhttp=3.12.1"])

        assert properties.exists()
        assert content == "version.okhttp=3.12.1"

    def test_latin1_file_round_trips(self, temp_dir):
        """Test a non-UTF-8 user comment is kept byte for byte."""
        properties = temp_dir / "gradle.properties"
        properties.write_bytes(
            "# Caf\xe9 settings\norg.gradle.caching=true\nversion.okhttp=3.12.0\n".encode(
                "latin-1"
            )
        )

        merge_properties(properties, ["version.okhttp=3.12.1"])

        assert properties.read_bytes() == (
            b"# Caf\xe9 settings\norg.gradle.caching=true\nversion.okhttp=3.12.1"
        )

    def test_unwritable_target(self, temp_dir):
        """Test a target that cannot be written raises FileUnwritable."""
        with pytest.raises(FileUnwritable):
            merge_properties(temp_dir, ["version.okhttp=3.12.1"])

    def test_custom_remove_predicate(self):
        """Test a caller-supplied predicate decides which lines are replaced."""
        merged = merge_lines(
            ["keep=1", "drop=2", "keep=3"],
            ["new=4"],
            lambda line: line.startswith("drop"),
        )

        assert merged == ["keep=1", "keep=3", "new=4"]


class TestKotlinRendering:
    """Test Libs.kt and Versions.kt rendering."""

    def test_kotlin_string_escapes_templates(self):
        """Test dollar signs cannot start a Kotlin string template."""
        assert kotlin_string("$version") == '"\\$version"'

    def test_libs_reference_versions(self, sample_resolved):
        """Test library constants concatenate the coordinate and the version symbol."""
        libs = render_libs_kt(sample_resolved)

        assert "object Libs {" in libs
        assert (
            'const val okhttp: String = "com.squareup.okhttp3:okhttp:" + Versions.okhttp'
            in libs
        )
        assert (
            'const val kotlinx_coroutines_core: String = '
            '"org.jetbrains.kotlinx:kotlinx-coroutines-core:" + '
            "Versions.org_jetbrains_kotlinx_kotlinx_coroutines" in libs
        )
        assert " * https://square.github.io/okhttp/" in libs
        assert "gradleLatestVersion" not in libs

    def test_versions_list_each_symbol_once(self, sample_resolved):
        """Test a shared group symbol is declared once with its update."""
        versions = render_versions_kt(sample_resolved, "5.6.2", "6.0.1")

        assert "object Versions {" in versions
        assert versions.count("const val org_jetbrains_kotlinx_kotlinx_coroutines:") == 1
        assert (
            'const val org_jetbrains_kotlinx_kotlinx_coroutines: String = "1.3.2"'
            ' // available: "1.3.3"' in versions
        )
        assert 'const val okhttp: String = "3.12.1"\n' in versions
        assert 'const val gradleLatestVersion: String = "6.0.1"' in versions
        assert "gradlelatestversion" not in versions

    def test_custom_object_names(self, sample_resolved):
        """Test object names and the version reference follow the options."""
        sources = render_kotlin_sources(
            sample_resolved,
            options=RenderOptions(libs_name="Deps", versions_name="Vers", indent="  "),
        )

        assert "object Deps {" in sources.libs
        assert '  const val okhttp: String = "com.squareup.okhttp3:okhttp:" + Vers.okhttp' in sources.libs
        assert "object Vers {" in sources.versions

    def test_no_version(self):
        """Test dependencies without a version render the bare coordinate."""
        record = resolved_record("com.example", "bom", "none")
        resolved = ResolvedSet(records=(record,))

        assert 'const val bom: String = "com.example:bom"' in render_libs_kt(resolved)
        assert version_information(record) == " // No version. See buildSrcVersions#23"

    def test_long_comment_moves_to_next_line(self):
        """Test an update comment that would overflow goes on its own line."""
        record = resolved_record(
            "com.example",
            "lib",
            "1.0.0-alpha01",
            symbol="x" * 50,
            available=AvailableVersions(release="1.0.0-alpha02"),
        )

        assert version_information(record) == '\n// available: "1.0.0-alpha02"'

    def test_plugin_accessor(self):
        """Test the plugin accessor and its imports are added when the plugin is used."""
        record = resolved_record(
            "de.fayard.buildSrcVersions",
            "de.fayard.buildSrcVersions.gradle.plugin",
            "0.7.0",
            symbol="de_fayard_buildsrcversions_gradle_plugin",
        )

        versions = render_versions_kt(ResolvedSet(records=(record,)))

        assert versions.startswith("import org.gradle.plugin.use.PluginDependenciesSpec")
        assert (
            'inline get() = id("de.fayard.buildSrcVersions")'
            ".version(Versions.de_fayard_buildsrcversions_gradle_plugin)" in versions
        )
