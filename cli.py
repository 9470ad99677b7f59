#!/usr/bin/env python3
"""
ccdagen CLI

Command-line interface for converting Blue Button JSON records to C-CDA XML.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

console = Console()


def setup_paths():
    """Add the project root to sys.path for imports."""
    root = Path(__file__).parent
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


setup_paths()


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def load_json(path: str):
    """Read a JSON input file, failing with a readable message."""
    try:
        with open(path, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path} is not valid JSON: {e}")


def is_record(payload) -> bool:
    """A whole record has a ``data`` or ``meta`` wrapper or a section-named key."""
    from ccdagen.generator import is_section

    if not isinstance(payload, dict):
        return False
    return any(key in ("data", "meta") or is_section(key) for key in payload)


def print_issues(issues) -> None:
    if not issues:
        return
    table = Table(title="Skipped Entries", title_style="yellow")
    table.add_column("Section", style="cyan")
    table.add_column("Index", justify="right")
    table.add_column("Problem", style="yellow")
    for issue in issues:
        table.add_row(issue.section, "" if issue.index is None else str(issue.index), issue.detail)
    console.print(table)


@click.group()
@click.version_option(version="0.1.0", prog_name="ccdagen")
def cli():
    """
    ccdagen - Blue Button JSON to C-CDA converter

    Turns a structured Continuity of Care record into a C-CDA XML
    document, either whole or one section at a time.
    """
    pass


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write XML to this file")
@click.option("--compact", is_flag=True, help="Do not pretty-print the XML")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def convert(input_file: str, output: Optional[str], compact: bool, verbose: bool):
    """
    Convert a whole record to a C-CDA document.

    Examples:

        ccdagen convert record.json

        ccdagen convert record.json -o record.xml
    """
    from ccdagen import CCDAGenerationError, convert_whole_document, to_xml
    from ccdagen.config import GeneratorConfig

    setup_logging(verbose)
    record = load_json(input_file)
    config = GeneratorConfig(pretty_print=not compact)

    try:
        result = convert_whole_document(record, config=config)
    except CCDAGenerationError as e:
        console.print(f"[red]Conversion failed:[/red] {e}")
        if e.__cause__ is not None:
            console.print(f"[dim]{type(e.__cause__).__name__}: {e.__cause__}[/dim]")
        sys.exit(1)

    if not result.is_document:
        console.print("[yellow]No sections beyond demographics; header only.[/yellow]")
        xml_content = to_xml(result.tree, pretty=not compact)
    else:
        xml_content = result.body

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(xml_content)

        sections = result.tree.findall("./component/structuredBody/component/section/title")
        console.print(Panel(
            f"[bold green]✓ C-CDA Generated[/bold green]\n\n"
            f"Kind: {result.kind}\n"
            f"Sections: {len(sections)}\n"
            f"Skipped entries: {len(result.issues)}\n"
            f"Output: {output_path}",
            title="Conversion Summary",
            border_style="green",
        ))
    else:
        click.echo(xml_content)

    print_issues(result.issues)


@cli.command()
@click.argument("name")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write XML to this file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def section(name: str, input_file: str, output: Optional[str], verbose: bool):
    """
    Convert a single section.

    INPUT_FILE holds either the section's own data or a whole record, in
    which case the section is picked out of it and its siblings are made
    available to sections that reference them.

    Example:

        ccdagen section allergies record.json
    """
    from ccdagen import CCDAGenerationError, convert_section, to_xml
    from ccdagen.generator import is_section
    from ccdagen.models import unwrap_record

    setup_logging(verbose)
    if not is_section(name):
        raise click.BadParameter(f"Unknown section '{name}'", param_hint="NAME")

    payload = load_json(input_file)

    issues = []
    try:
        record = None
        section_data = payload
        if is_record(payload):
            data, _ = unwrap_record(payload)
            record = payload
            section_data = data.get(name)
        node = convert_section(name, section_data, record=record, issues=issues)
    except CCDAGenerationError as e:
        console.print(f"[red]Conversion failed:[/red] {e}")
        sys.exit(1)

    if node is None:
        console.print(f"[yellow]No data for section '{name}'.[/yellow]")
        return

    xml_content = to_xml(node)
    if output:
        Path(output).write_text(xml_content)
        console.print(f"[green]✓[/green] Wrote {name} to {output}")
    else:
        click.echo(xml_content)

    print_issues(issues)


@cli.command()
def sections():
    """List the sections in document order."""
    from ccdagen.generator import NeedsOwnSlice, get_dispatcher, index_of, ordered_names

    dispatcher = get_dispatcher()

    table = Table(title="C-CDA Sections")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Section", style="cyan")
    table.add_column("Handler", style="green")

    for name in ordered_names():
        handler = dispatcher.handler_for(name.value)
        kind = "template" if isinstance(handler, NeedsOwnSlice) else "generator (whole record)"
        table.add_row(str(index_of(name.value)), name.value, kind)

    console.print(table)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
