"""Command-line interface for cytogate.

Provides CLI commands for gating sample collections and inspecting the
algorithm registry.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
import numpy as np
import pandas as pd
import yaml

from .. import __version__


def setup_logging(verbose: bool = False, debug: bool = False) -> logging.Logger:
    """Setup logging for CLI commands."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    return logging.getLogger("cytogate")


def parse_arg(item: str) -> Tuple[str, Any]:
    """Split ``key=value`` and parse the value as YAML (``K=2`` -> ``("K", 2)``)."""
    if "=" not in item:
        raise click.BadParameter(f"expected key=value, got {item!r}")
    key, value = item.split("=", 1)
    return key.strip(), yaml.safe_load(value)


def summarize_value(value: Any) -> Dict[str, Any]:
    """YAML-safe summary of one per-sample gating result."""
    from cytogate.core.gates import ResultKind, classify_result

    kind = classify_result(value)
    if kind == ResultKind.DECISION_VECTOR:
        mask = np.asarray(value, dtype=bool)
        return {"type": kind.value, "n_events": int(mask.size), "n_selected": int(mask.sum())}
    if kind == ResultKind.LABEL_VECTOR:
        counts = pd.Series(value).value_counts(sort=False)
        return {"type": kind.value, "counts": {str(k): int(v) for k, v in counts.items()}}
    return value.to_dict()


@click.group()
@click.version_option(version=__version__, prog_name="cytogate")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """cytogate: automated gating of cytometry sample collections.

    Examples:

        # List available gating algorithms
        cytogate algorithms

        # Gate CD3+ cells on every sample of a registry
        cytogate gate --registry samples.csv -a mindensity -c CD3 -p cd3+

        # Run a gating step described in YAML
        cytogate gate --registry samples.csv --step step.yaml --out gates.yaml

        # Print the summary as JSON
        cytogate gate --registry samples.csv -a quantile -c CD4 --arg probs=0.99 --format json
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["logger"] = setup_logging(verbose, debug)


@cli.command()
@click.option("--registry", "-r", required=True, type=click.Path(exists=True),
              help="Sample registry CSV (sample_id, table_path, metadata columns)")
@click.option("--step", "-s", "step_path", type=click.Path(exists=True),
              help="Gating step YAML; overrides the step options below")
@click.option("--algorithm", "-a", help="Registered algorithm name")
@click.option("--channel", "-c", "channels", multiple=True, help="Channel to gate on (repeatable)")
@click.option("--pop-alias", "-p", default="+", help="Comma-separated population names")
@click.option("--arg", "args", multiple=True, help="Algorithm argument as key=value (repeatable)")
@click.option("--group-by", "-g", default="", help="Comma-separated metadata keys")
@click.option("--collapse", is_flag=True, help="Gate each group as one merged table")
@click.option("--preprocessing", type=click.Choice(["prior_flowclust", "standardize"]),
              help="Preprocessing method")
@click.option("--options", "-o", "options_path", type=click.Path(exists=True),
              help="Gating options YAML")
@click.option("--n-jobs", type=int, help="Parallel groups (overrides options)")
@click.option("--out", type=click.Path(), help="Write the summary here instead of stdout (replaced if present)")
@click.option("--format", "fmt", type=click.Choice(["yaml", "json"]), default="yaml",
              show_default=True, help="Summary format")
@click.option("--log-file", type=click.Path(), help="Also log to this file (timestamped)")
@click.pass_context
def gate(
    ctx: click.Context,
    registry: str,
    step_path: Optional[str],
    algorithm: Optional[str],
    channels: Tuple[str, ...],
    pop_alias: str,
    args: Tuple[str, ...],
    group_by: str,
    collapse: bool,
    preprocessing: Optional[str],
    options_path: Optional[str],
    n_jobs: Optional[int],
    out: Optional[str],
    fmt: str,
    log_file: Optional[str],
) -> None:
    """Run one gating step over every sample of a registry."""
    logger = ctx.obj["logger"]

    # Import here to avoid slow startup
    from cytogate.config import GatingOptions
    from cytogate.core.dispatch import GatingAdaptor, GatingError
    from cytogate.io import format_record, get_logger, load_sample_collection, write_record
    from cytogate.pipeline import GatingStep, run_gating_step

    if log_file:
        logger, log_path = get_logger("cytogate", log_file)
        click.echo(f"Logging to {log_path}", err=True)

    if step_path:
        step = GatingStep.from_yaml(step_path)
    else:
        if not algorithm or not channels:
            raise click.UsageError("Either --step or both --algorithm and --channel are required")
        step = GatingStep.from_dict(
            {
                "algorithm": algorithm,
                "channels": list(channels),
                "pop_alias": pop_alias,
                "args": dict(parse_arg(item) for item in args),
                "group_by": group_by,
                "collapse": collapse,
                "preprocessing": preprocessing,
            }
        )

    options = GatingOptions.from_yaml(options_path) if options_path else GatingOptions()
    if n_jobs is not None:
        options = GatingOptions.from_dict({**options.to_dict(), "n_jobs": n_jobs})

    samples = load_sample_collection(Path(registry))
    logger.info("Loaded %s", samples)

    adaptor = GatingAdaptor(options, logger=logger)
    try:
        result = run_gating_step(samples, step, adaptor)
    except (GatingError, ValueError) as exc:
        click.echo(f"Gating failed: {exc}", err=True)
        sys.exit(1)

    record = {
        "step": step.to_dict(),
        "options": options.to_dict(),
        "kind": result.kind.value,
        "results": {name: summarize_value(value) for name, value in result.items()},
    }
    if out:
        path = write_record(out, record, fmt)
        click.echo(f"Gated {len(result)} samples; summary written to {path}")
    else:
        click.echo(format_record(record, fmt), nl=False)


@cli.command()
@click.pass_context
def algorithms(ctx: click.Context) -> None:
    """List registered gating algorithms by family."""
    from cytogate.core.dispatch import default_registry

    for family, names in sorted(default_registry().summary().items()):
        click.echo(f"{family}: {', '.join(names)}")


def main() -> None:
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
