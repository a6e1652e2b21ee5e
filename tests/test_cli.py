"""
CLI interface tests for buildsrc-versions.
Tests the command-line interface and main entry points.
"""

import json

from click.testing import CliRunner

from src.buildsrc_versions.main import cli


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        """Test CLI help message."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "buildsrc-versions" in result.output.lower()

    def test_cli_version(self):
        """Test CLI version display."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.4.3" in result.output

    def test_info_command(self):
        """Test the info command."""
        runner = CliRunner()
        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "GROUP_MODULE" in result.output

    def test_escape_command(self):
        """Test the escape command prints generated identifiers."""
        runner = CliRunner()
        result = runner.invoke(
            cli, ["escape", "org.jetbrains.kotlinx:kotlinx-coroutines-core", "Foo-Bar"]
        )

        assert result.exit_code == 0
        assert "org_jetbrains_kotlinx_kotlinx_coroutines_core" in result.output
        assert "foo_bar" in result.output


class TestGenerateCommand:
    """Test the generate command."""

    def test_generate_kotlin_sources(self, sample_report_json, temp_dir, monkeypatch):
        """Test Libs.kt and Versions.kt are written to the output directory."""
        monkeypatch.chdir(temp_dir)
        runner = CliRunner()
        result = runner.invoke(
            cli, ["generate", str(sample_report_json), "--output-dir", "kotlin"]
        )

        assert result.exit_code == 0
        libs = (temp_dir / "kotlin" / "Libs.kt").read_text()
        versions = (temp_dir / "kotlin" / "Versions.kt").read_text()
        assert "object Libs {" in libs
        assert "const val com_example_core: String" in libs
        assert 'const val gradleLatestVersion: String = "6.0.1"' in versions
        assert not (temp_dir / "gradle.properties").exists()

    def test_generate_with_use_fqdn(self, sample_report_json, temp_dir, monkeypatch):
        """Test --use-fqdn forces the group_module form."""
        monkeypatch.chdir(temp_dir)
        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "generate",
                str(sample_report_json),
                "--output-dir",
                "kotlin",
                "--use-fqdn",
                "okhttp",
                "--quiet",
            ],
        )

        assert result.exit_code == 0
        versions = (temp_dir / "kotlin" / "Versions.kt").read_text()
        assert "const val com_squareup_okhttp3_okhttp: String" in versions

    def test_generate_versions_only(self, sample_report_json, temp_dir, monkeypatch):
        """Test --versions-only merges gradle.properties and skips Kotlin sources."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / "gradle.properties").write_text("org.gradle.jvmargs=-Xmx2g\n")
        runner = CliRunner()
        result = runner.invoke(
            cli, ["generate", str(sample_report_json), "--versions-only", "-q"]
        )

        assert result.exit_code == 0
        content = (temp_dir / "gradle.properties").read_text()
        assert content.startswith("org.gradle.jvmargs=-Xmx2g\n")
        assert "version.okhttp=3.12.1" in content
        assert not (temp_dir / "buildSrc").exists()

    def test_generate_dry_run(self, sample_report_json, temp_dir, monkeypatch):
        """Test --dry-run prints sources without writing them."""
        monkeypatch.chdir(temp_dir)
        runner = CliRunner()
        result = runner.invoke(
            cli, ["generate", str(sample_report_json), "--dry-run"]
        )

        assert result.exit_code == 0
        assert "object Versions {" in result.output
        assert not (temp_dir / "buildSrc").exists()

    def test_generate_default_report_path(self, sample_report_data, temp_dir, monkeypatch):
        """Test the report is read from the default location when omitted."""
        report_dir = temp_dir / "build" / "dependencyUpdates"
        report_dir.mkdir(parents=True)
        (report_dir / "report.json").write_text(json.dumps(sample_report_data))
        monkeypatch.chdir(temp_dir)

        runner = CliRunner()
        result = runner.invoke(cli, ["generate", "-q"])

        assert result.exit_code == 0
        assert (temp_dir / "buildSrc" / "src" / "main" / "kotlin" / "Libs.kt").exists()

    def test_generate_malformed_report(self, temp_dir, monkeypatch):
        """Test a malformed report exits with an error and writes nothing."""
        report = temp_dir / "report.json"
        report.write_text(json.dumps({"current": {"dependencies": [{"version": "1.0"}]}}))
        monkeypatch.chdir(temp_dir)

        runner = CliRunner()
        result = runner.invoke(cli, ["generate", str(report), "--output-dir", "kotlin"])

        assert result.exit_code == 1
        assert not (temp_dir / "kotlin").exists()

    def test_generate_missing_report(self, temp_dir, monkeypatch):
        """Test a missing report exits with an error."""
        monkeypatch.chdir(temp_dir)
        runner = CliRunner()
        result = runner.invoke(cli, ["generate", "missing.json"])

        assert result.exit_code == 1

    def test_generate_unwritable_properties(self, sample_report_json, temp_dir, monkeypatch):
        """Test an unwritable properties file fails the run but other files are written."""
        monkeypatch.chdir(temp_dir)
        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "generate",
                str(sample_report_json),
                "--output-dir",
                "kotlin",
                "--properties",
                "missing-dir/gradle.properties",
                "-q",
            ],
        )

        assert result.exit_code == 1
        assert (temp_dir / "kotlin" / "Libs.kt").exists()


class TestConfigCommands:
    """Test configuration management commands."""

    def test_config_init(self, temp_dir, monkeypatch):
        """Test a sample configuration file is created."""
        monkeypatch.chdir(temp_dir)
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "init"])

        assert result.exit_code == 0
        data = json.loads((temp_dir / ".buildsrc-versions.json").read_text())
        assert data["output"]["libs_name"] == "Libs"

    def test_config_init_keeps_existing(self, temp_dir, monkeypatch):
        """Test an existing file is not overwritten without --force."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / ".buildsrc-versions.json").write_text("{}")
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "init"])

        assert result.exit_code == 0
        assert (temp_dir / ".buildsrc-versions.json").read_text() == "{}"

    def test_config_show(self, temp_dir, monkeypatch):
        """Test the current configuration is displayed."""
        monkeypatch.chdir(temp_dir)
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "Versions" in result.output

    def test_config_validate(self, temp_dir):
        """Test a valid file passes and an invalid one fails."""
        valid = temp_dir / "valid.json"
        valid.write_text(json.dumps({"output": {"libs_name": "Deps"}}))
        invalid = temp_dir / "invalid.json"
        invalid.write_text(json.dumps({"output": {"order_by": "RANDOM"}}))

        runner = CliRunner()

        assert runner.invoke(cli, ["config", "validate", str(valid)]).exit_code == 0
        assert runner.invoke(cli, ["config", "validate", str(invalid)]).exit_code == 1
