"""CLI entry point for console-mermaid."""

import logging
import sys

import click

from console_mermaid.api import render
from console_mermaid.config import RenderConfig
from console_mermaid.errors import DiagramError


@click.command()
@click.argument("input", required=False, default="-", type=click.Path(allow_dash=True))
@click.option("--ascii", "-a", "use_ascii", is_flag=True, help="Use plain ASCII instead of Unicode")
@click.option("--coords", "show_coords", is_flag=True, help="Show layout coordinates")
@click.option("--verbose", "-v", is_flag=True, help="Log layout decisions to stderr")
@click.option("--box-padding", type=int, default=1, show_default=True, help="Padding inside node boxes")
@click.option("--padding-x", type=int, default=5, show_default=True, help="Horizontal padding between nodes")
@click.option("--padding-y", type=int, default=5, show_default=True, help="Vertical padding between nodes")
@click.option(
    "--graph-direction",
    type=click.Choice(["LR", "TD"], case_sensitive=False),
    default=None,
    help="Override the diagram's direction",
)
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
def main(
    input: str,
    use_ascii: bool,
    show_coords: bool,
    verbose: bool,
    box_padding: int,
    padding_x: int,
    padding_y: int,
    graph_direction: str | None,
    output: str | None,
) -> None:
    """Render a Mermaid flowchart or sequence diagram as ASCII/Unicode text."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(name)s: %(message)s")

    if input == "-":
        text = sys.stdin.read()
    else:
        try:
            with open(input, encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)

    if not text.strip():
        click.echo("error: no input provided", err=True)
        sys.exit(1)

    config = RenderConfig(
        ascii_only=use_ascii,
        show_coordinates=show_coords,
        box_padding=box_padding,
        padding_x=padding_x,
        padding_y=padding_y,
        graph_direction=graph_direction.upper() if graph_direction else None,
    )
    try:
        rendered = render(text, config).to_text()
    except DiagramError as e:
        click.echo(f"error: {e.kind}: {e.message}", err=True)
        sys.exit(1)

    if output:
        try:
            with open(output, "w", encoding="utf-8") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
