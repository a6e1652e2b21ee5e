import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel

from .cli_config import (
    build_config,
    create_sample_config,
    get_config,
    load_config,
    load_config_file,
    validate_config_values,
)
from .dependency import ResolvedSet
from .error_handling import (
    BuildSrcVersionsError,
    FileUnwritable,
    MalformedGraph,
    log_filesystem_error,
    setup_error_handling,
)
from .graph import load_report
from .naming import escape_identifier
from .properties import generate_version_properties, merge_properties
from .renderer import render_kotlin_sources
from .reporting import GenerationReporter
from .resolver import resolve_dependency_graph
from .structured_logging import (
    configure_logging,
    log_generation_complete,
    log_generation_start,
)

__version__ = "0.4.3"

console = Console()
err_console = Console(stderr=True)


def write_generated_file(path: Path, content: str) -> None:
    """
    Write a fully generated file, creating parent directories.

    Raises:
        FileUnwritable: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        log_filesystem_error(
            "Failed to write generated file",
            "main.write_generated_file",
            file_path=path,
            exception=e,
        )
        raise FileUnwritable(path, e.strerror or str(e)) from e


def generate_outputs(
    resolved: ResolvedSet,
    gradle_running: Optional[str],
    gradle_current: Optional[str],
    output_dir: Path,
    properties_file: Optional[Path],
    versions_only: bool,
    dry_run: bool,
) -> Tuple[List[str], List[FileUnwritable]]:
    """
    Render and persist the generated artifacts.

    A file that cannot be written does not stop the others.

    Returns:
        Paths written and the failures
    """
    config = get_config()
    outputs = []

    if not versions_only:
        sources = render_kotlin_sources(
            resolved,
            gradle_running,
            gradle_current,
            config.output.to_render_options(),
        )
        outputs.append((output_dir / f"{config.output.libs_name}.kt", sources.libs))
        outputs.append(
            (output_dir / f"{config.output.versions_name}.kt", sources.versions)
        )

    property_lines = None
    if versions_only or properties_file is not None:
        property_lines = generate_version_properties(resolved)

    written: List[str] = []
    failures: List[FileUnwritable] = []

    if dry_run:
        for path, content in outputs:
            console.print(f"[bold]// {path}[/bold]")
            print(content)
        if property_lines is not None:
            console.print(f"[bold]# {properties_file}[/bold]")
            print("\n".join(property_lines))
        return written, failures

    for path, content in outputs:
        try:
            write_generated_file(path, content)
            written.append(str(path))
        except FileUnwritable as e:
            failures.append(e)

    if property_lines is not None:
        try:
            merge_properties(properties_file, property_lines)
            written.append(str(properties_file))
        except FileUnwritable as e:
            failures.append(e)

    return written, failures


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    buildsrc-versions - Generate Libs/Versions tables from a dependency report.

    Reads the report written by ./gradlew dependencyUpdates and generates
    conflict-free Kotlin constants or gradle.properties entries.
    """
    if version:
        console.print(f"buildsrc-versions version {__version__}")
        return

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command()
@click.argument("report", type=click.Path(dir_okay=False), required=False)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    help="Directory for Libs.kt and Versions.kt (default: from config)",
)
@click.option(
    "--use-fqdn",
    "use_fqdn",
    multiple=True,
    help="Dependency name or group that must use the group_module form (repeatable)",
)
@click.option(
    "--properties",
    "properties_path",
    type=click.Path(dir_okay=False),
    help="Also update this gradle.properties file",
)
@click.option(
    "--versions-only",
    is_flag=True,
    help="Only update gradle.properties, do not generate Kotlin sources",
)
@click.option("--dry-run", is_flag=True, help="Print generated content instead of writing")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-critical output")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def generate(
    report: Optional[str],
    output_dir: Optional[str],
    use_fqdn: Tuple[str, ...],
    properties_path: Optional[str],
    versions_only: bool,
    dry_run: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """
    Generate version and library constants from a dependency report.

    Examples:

      buildsrc-versions generate build/dependencyUpdates/report.json

      buildsrc-versions generate --use-fqdn auth --use-fqdn com.example

      buildsrc-versions generate --versions-only --properties gradle.properties
    """
    config = load_config()
    log_level = "DEBUG" if verbose else config.logging.log_level.upper()
    configure_logging(log_level)
    setup_error_handling(log_level=getattr(logging, log_level, logging.WARNING))

    report_path = report or config.output.report_path
    final_output_dir = Path(output_dir or config.output.output_dir)
    properties_file = None
    if properties_path or versions_only:
        properties_file = Path(properties_path or config.output.properties_file)

    run_id = f"run_{int(time.time())}"
    started = time.perf_counter()

    try:
        graph = load_report(report_path)
        log_generation_start(run_id, report_path, graph.total_dependencies)

        resolved = resolve_dependency_graph(
            graph, config.naming.to_options(list(use_fqdn))
        )
        gradle = graph.gradle
        written, failures = generate_outputs(
            resolved,
            gradle.running if gradle else None,
            gradle.current if gradle else None,
            final_output_dir,
            properties_file,
            versions_only,
            dry_run,
        )
    except MalformedGraph as e:
        err_console.print(f"❌ Invalid dependency report: {e}", style="red")
        sys.exit(1)
    except BuildSrcVersionsError as e:
        err_console.print(f"❌ Error: {e}", style="red")
        sys.exit(1)

    log_generation_complete(
        run_id,
        int((time.perf_counter() - started) * 1000),
        len(resolved.version_symbols()),
        len(resolved.library_symbols()),
        len(resolved.warnings),
    )

    if not quiet and not dry_run:
        GenerationReporter(console).print_resolved_set(resolved, report_path, written)

    if failures:
        for failure in failures:
            err_console.print(f"❌ {failure}", style="red")
        sys.exit(1)


@cli.command()
@click.argument("names", nargs=-1, required=True)
def escape(names: Tuple[str, ...]) -> None:
    """
    Show the identifier generated for coordinates or names.

    Example:

      buildsrc-versions escape org.jetbrains.kotlinx:kotlinx-coroutines-core
    """
    for name in names:
        console.print(f"{name} → [bold]{escape_identifier(name)}[/bold]")


@cli.command()
def info():
    """Show how names are generated and where configuration is read from."""
    info_text = """
[bold blue]📋 Input:[/bold blue]

• [green]build/dependencyUpdates/report.json[/green] - written by ./gradlew dependencyUpdates

[bold blue]🏷  Naming:[/bold blue]

• [green]MODULE[/green] - okhttp: the module name alone
• [yellow]GROUP_MODULE[/yellow] - com_example_core: meaningless, ambiguous or overridden names
• [cyan]GROUP[/cyan] - org_jetbrains_kotlinx_kotlinx_coroutines: one version for a whole group

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]BUILDSRC_VERSIONS_USE_FQDN_FOR[/cyan] - Comma-separated names using group_module
• [cyan]BUILDSRC_VERSIONS_VIRTUAL_GROUPS[/cyan] - Comma-separated group.modulePrefix entries
• [cyan]BUILDSRC_VERSIONS_OUTPUT_DIR[/cyan] - Directory for generated Kotlin sources
• [cyan]BUILDSRC_VERSIONS_PROPERTIES_FILE[/cyan] - gradle.properties to update
• [cyan]BUILDSRC_VERSIONS_LOG_LEVEL[/cyan] - Logging level

[bold blue]📄 Configuration Files:[/bold blue]

• [green].buildsrc-versions.json|yaml|toml[/green] - Project-level config
• [green]~/.config/buildsrc-versions/config.json[/green] - User-level config

[bold blue]💡 Usage Examples:[/bold blue]

  # Generate Libs.kt and Versions.kt
  buildsrc-versions generate

  # Only update gradle.properties
  buildsrc-versions generate --versions-only
"""
    console.print(
        Panel(
            info_text,
            title="[bold]buildsrc-versions Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".buildsrc-versions.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        write_generated_file(config_path, create_sample_config())
    except FileUnwritable as e:
        err_console.print(f"❌ Failed to create config file: {e}", style="red")
        sys.exit(1)

    console.print(f"✅ Created configuration file at {config_path}", style="green")


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = get_config()

    console.print("\n[bold blue]🏷  Naming[/bold blue]")
    console.print(f"  Use group_module for: {', '.join(current_config.naming.use_fqdn_for) or '-'}")
    console.print(f"  Meaningless names: {', '.join(current_config.naming.meaningless_names)}")
    console.print("  Virtual groups:")
    for group in current_config.naming.virtual_groups:
        console.print(f"    • {group}")
    console.print(f"  Reject non-stable updates: {current_config.naming.reject_non_stable}")

    console.print("\n[bold blue]📄 Output[/bold blue]")
    output = current_config.output
    console.print(f"  Libs object: {output.libs_name}")
    console.print(f"  Versions object: {output.versions_name}")
    console.print(f"  Output directory: {output.output_dir}")
    console.print(f"  Properties file: {output.properties_file}")
    console.print(f"  Report: {output.report_path}")
    console.print(f"  Order: {output.order_by}")

    console.print("\n[bold blue]📝 Logging[/bold blue]")
    console.print(f"  Level: {current_config.logging.log_level}")


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    file_config = load_config_file(Path(config_file))
    if file_config is None:
        err_console.print(f"❌ Could not read {config_file}", style="red")
        sys.exit(1)

    errors = validate_config_values(build_config(file_config))
    if errors:
        err_console.print("❌ Configuration has errors:", style="red")
        for error in errors:
            err_console.print(f"  • {error}", style="red")
        sys.exit(1)

    console.print(f"✅ {config_file} is valid", style="green")


if __name__ == "__main__":
    cli()
