"""CLI entry point for sdfg-layout."""

import json
import logging
import sys

import click

from sdfg_layout.config import LayoutConfig
from sdfg_layout.errors import GraphFormatError
from sdfg_layout.ir.loader import load_sdfg
from sdfg_layout.layout.engine import LayoutEngine
from sdfg_layout.layout.geometry import collect_geometry, project_geometry
from sdfg_layout.layout.measure import MonospaceMeasurer, PillowMeasurer


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--omit-access-nodes", is_flag=True, help="Hide access nodes and connect their producers and consumers")
@click.option("--vertical/--no-vertical", default=True, help="Lay out control flow top to bottom when possible")
@click.option("--font", "font_path", type=click.Path(exists=True), default=None, help="TrueType font used to measure labels")
@click.option("--monospace", is_flag=True, help="Measure labels with a fixed per-character width")
@click.option("--summary", is_flag=True, help="Print element counts and the drawing size instead of JSON")
@click.option("--verbose", "-v", is_flag=True, help="Log layout decisions to stderr")
def main(
    input: str | None,
    output: str | None,
    omit_access_nodes: bool,
    vertical: bool,
    font_path: str | None,
    monospace: bool,
    summary: bool,
    verbose: bool,
) -> None:
    """Lay out an SDFG JSON file and write it back with geometry attached."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if input:
        try:
            with open(input) as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    try:
        record = json.loads(text)
        sdfg = load_sdfg(record)
    except json.JSONDecodeError as e:
        click.echo(f"error: invalid JSON: {e}", err=True)
        sys.exit(1)
    except GraphFormatError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)

    measurer = MonospaceMeasurer() if monospace else PillowMeasurer(font_path)
    config = LayoutConfig(omit_access_nodes=omit_access_nodes, vertical_state_machine=vertical)
    engine = LayoutEngine(measurer, config)
    graph = engine.relayout(sdfg)
    geometry = collect_geometry(graph)

    if summary:
        click.echo(f"regions: {len(engine.registry)}")
        click.echo(f"elements: {len(geometry)}")
        click.echo(f"size: {graph.width:.0f}x{graph.height:.0f}")
        return

    project_geometry(sdfg, geometry)
    rendered = json.dumps(record, indent=2) + "\n"

    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
