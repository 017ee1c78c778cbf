"""Motifscope CLI — find motif occurrences from the command line."""

from __future__ import annotations

import logging
import sys
import threading

import click

from motifscope.client import Motifscope
from motifscope.engine.persistence import load_network

logger = logging.getLogger("motifscope.cli")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _parse_link_types(pairs: tuple[str, ...]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for pair in pairs:
        code, sep, link_type = pair.partition("=")
        if not sep or len(code) != 1 or not link_type:
            raise click.BadParameter(
                f"expected CODE=TYPE with a one-character code, got {pair!r}",
                param_hint="--link-type",
            )
        mapping[code] = link_type
    return mapping


def _parse_node_types(value: str | None) -> list[str | None] | None:
    if not value:
        return None
    return [t or None for t in (part.strip() for part in value.split(","))]


def _open(ctx: click.Context) -> Motifscope:
    path = ctx.obj["network"]
    if path is None:
        raise click.UsageError("No network given (use --network or MOTIFSCOPE_NETWORK).")
    try:
        network = load_network(path, default_type=ctx.obj["default_type"])
    except (OSError, ValueError) as exc:
        raise click.ClickException(f"Cannot load network {path}: {exc}") from exc
    logger.debug("Loaded network %s with %d nodes", path, len(network))
    return Motifscope(network=network)


def _motif_options(fn):
    fn = click.option(
        "--link-type",
        "link_type_pairs",
        multiple=True,
        metavar="CODE=TYPE",
        help="Map a notation code to a link type (repeatable).",
    )(fn)
    fn = click.option(
        "--node-types",
        default=None,
        help="Comma-separated node type per position; leave a slot empty for any.",
    )(fn)
    return fn


@click.group()
@click.option(
    "--network",
    "-n",
    envvar="MOTIFSCOPE_NETWORK",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Network file (.json, or edge list 'source target [type]').",
)
@click.option(
    "--default-type",
    default=None,
    help="Link type for two-column edge-list lines.",
)
@click.option(
    "--log-level",
    envvar="MOTIFSCOPE_LOG_LEVEL",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, network: str | None, default_type: str | None, log_level: str) -> None:
    """Motifscope CLI — enumerate typed motifs in typed networks."""
    # Results go to stdout, logs to stderr
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["network"] = network
    ctx.obj["default_type"] = default_type


@cli.command()
@click.argument("motif")
@_motif_options
@click.option("--track-links", is_flag=True, help="Also list the links used by occurrences.")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Cancel the search after this many seconds and print partial results.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_context
def find(
    ctx: click.Context,
    motif: str,
    link_type_pairs: tuple[str, ...],
    node_types: str | None,
    track_links: bool,
    timeout: float | None,
    as_json: bool,
) -> None:
    """List every occurrence of MOTIF (compact notation, e.g. AAA)."""
    ms = _open(ctx)
    link_types = _parse_link_types(link_type_pairs)
    timer = threading.Timer(timeout, ms.cancel) if timeout else None
    if timer is not None:
        timer.daemon = True
        timer.start()
    try:
        result = ms.find(
            motif,
            track_links=track_links,
            link_types=link_types,
            node_types=_parse_node_types(node_types),
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        if timer is not None:
            timer.cancel()

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return
    for occurrence in result.occurrences:
        click.echo("\t".join(occurrence.nodes))
    if result.used_links is not None:
        click.echo(f"Used links: {len(result.used_links)}")
        for a, b in result.used_links:
            click.echo(f"  {a}\t{b}")
    status = " (cancelled, partial)" if result.cancelled else ""
    click.echo(f"Occurrences: {result.count}{status}", err=True)


@cli.command()
@click.argument("motif")
@_motif_options
@click.pass_context
def count(
    ctx: click.Context,
    motif: str,
    link_type_pairs: tuple[str, ...],
    node_types: str | None,
) -> None:
    """Count occurrences of MOTIF."""
    ms = _open(ctx)
    try:
        total = ms.count(
            motif,
            link_types=_parse_link_types(link_type_pairs),
            node_types=_parse_node_types(node_types),
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(str(total))


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show network statistics."""
    s = _open(ctx).stats()
    click.echo(f"Nodes: {s.node_count}  Links: {s.link_count}")
    if s.nodes_by_type:
        click.echo("Nodes by type:")
        for t, c in sorted(s.nodes_by_type.items()):
            click.echo(f"  {t}: {c}")
    if s.links_by_type:
        click.echo("Links by type:")
        for t, c in sorted(s.links_by_type.items()):
            click.echo(f"  {t}: {c}")


@cli.command()
@click.argument("motif")
@_motif_options
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON.")
def symmetry(
    motif: str,
    link_type_pairs: tuple[str, ...],
    node_types: str | None,
    as_json: bool,
) -> None:
    """Show the automorphism group of MOTIF. No network needed."""
    try:
        report = Motifscope().symmetry(
            motif,
            link_types=_parse_link_types(link_type_pairs),
            node_types=_parse_node_types(node_types),
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if as_json:
        click.echo(report.model_dump_json(indent=2))
        return
    click.echo(f"Motif: {report.motif} ({report.size} positions)")
    click.echo(f"Automorphisms: {report.group_order}")
    click.echo("Orbits: " + " ".join("{" + ",".join(map(str, o)) + "}" for o in report.orbits))
    if report.conditions:
        click.echo("Conditions: " + ", ".join(f"{a}<{b}" for a, b in report.conditions))


if __name__ == "__main__":
    cli()
