"""CLI entry point for snapverify."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from snapverify.capture.renderer import StaticImage
from snapverify.compare.codec import PngCodec
from snapverify.compare.comparator import compare as compare_images
from snapverify.controller import VerificationController
from snapverify.errors import SnapshotError
from snapverify.models.config import SnapshotConfig
from snapverify.models.identity import FileNameType, TestIdentity
from snapverify.models.outcome import Failed, Recorded, Success
from snapverify.naming.paths import compute_file_name, suffixed_failure_directory

console = Console()

DEFAULT_CONFIG = "snapverify.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_config(path: str) -> SnapshotConfig:
    """Load the config file when present, then apply environment overrides."""
    if Path(path).exists():
        cfg = SnapshotConfig.load(path)
    else:
        cfg = SnapshotConfig()
    return cfg.with_env()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression snapshot verification"""
    setup_logging(verbose)


@cli.command()
@click.argument("reference", type=click.Path(exists=True, dir_okay=False))
@click.argument("candidate", type=click.Path(exists=True, dir_okay=False))
@click.option("--tolerance", "-t", default=0.0, type=click.FloatRange(0.0, 1.0), help="Allowed fraction of differing pixels")
@click.option("--epsilon", default=0, type=click.IntRange(0, 255), help="Per-channel difference still counted as equal")
@click.option("--diff-out", type=click.Path(dir_okay=False), help="Write the diff image here on mismatch")
def compare(reference: str, candidate: str, tolerance: float, epsilon: int, diff_out: str | None) -> None:
    """Compare two image files pixel by pixel."""
    codec = PngCodec()
    try:
        ref_img = codec.decode(Path(reference).read_bytes(), Path(reference))
        cand_img = codec.decode(Path(candidate).read_bytes(), Path(candidate))
    except SnapshotError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    result = compare_images(ref_img, cand_img, tolerance, epsilon=epsilon)

    table = Table(title="Comparison")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Reference", f"{ref_img.width}x{ref_img.height}")
    table.add_row("Candidate", f"{cand_img.width}x{cand_img.height}")
    table.add_row("Differing pixels", f"{result.mismatched_pixels} / {result.total_pixels}")
    table.add_row("Mismatch", f"{result.mismatch_fraction:.2%} (tolerance: {tolerance:.2%})")
    table.add_row("Result", "[green]match[/green]" if result.matched else f"[red]{result.reason.value}[/red]")
    console.print(table)

    if result.diff is not None and diff_out:
        Path(diff_out).write_bytes(codec.encode(result.diff))
        console.print(f"  Diff image: [blue]{diff_out}[/blue]")
    if not result.matched:
        sys.exit(1)


@cli.command()
@click.argument("suite")
@click.argument("method")
@click.option("--identifier", "-i", default=None, help="Identifier for multiple snapshots in one test")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def name(suite: str, method: str, identifier: str | None, config: str) -> None:
    """Show the reference and failure file names for a test."""
    cfg = load_config(config)
    controller = VerificationController(cfg)
    identity = TestIdentity(suite=suite, method=method, identifier=identifier)

    table = Table(title=f"{suite}.{method}")
    table.add_column("Kind", style="bold")
    table.add_column("Path")
    for suffix in cfg.suffixes:
        label = f"reference {suffix!r}" if len(cfg.suffixes) > 1 else "reference"
        table.add_row(label, str(controller.reference_path(identity, suffix)))
    for suffix in cfg.suffixes:
        # Non-empty suffixes write their failure images to a subdirectory of failure_dir
        failure_dir = suffixed_failure_directory(cfg.failure_dir, suffix)
        paths = controller.failure_writer.artifact_paths(identity, failure_dir, controller.naming)
        tag = f" {suffix!r}" if len(cfg.suffixes) > 1 else ""
        table.add_row(f"failed reference{tag}", str(paths.reference))
        table.add_row(f"failed test{tag}", str(paths.captured))
        table.add_row(f"diff{tag}", str(paths.diff))
    console.print(table)
    console.print(f"File name: {compute_file_name(identity, FileNameType.REFERENCE, controller.naming)}")


@cli.command()
@click.argument("suite")
@click.argument("method")
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@click.option("--identifier", "-i", default=None, help="Identifier for multiple snapshots in one test")
@click.option("--record", is_flag=True, help="Record IMAGE as the new reference image")
@click.option("--tolerance", "-t", default=None, type=click.FloatRange(0.0, 1.0), help="Override the configured tolerance")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def verify(
    suite: str, method: str, image: str, identifier: str | None,
    record: bool, tolerance: float | None, config: str,
) -> None:
    """Verify IMAGE against the reference images of a test (or record it)."""
    cfg = load_config(config)
    if record:
        cfg = cfg.model_copy(update={"record_mode": True})
    controller = VerificationController(cfg)
    identity = TestIdentity(suite=suite, method=method, identifier=identifier)

    outcome = controller.verify(StaticImage(Path(image)), identity, tolerance=tolerance)
    match outcome:
        case Success():
            console.print(f"[green]Match:[/green] {outcome.reference_path}")
        case Recorded():
            console.print(f"[yellow]Recorded:[/yellow] {outcome.path}")
        case Failed():
            console.print(f"[red]{outcome.message}[/red]")
            for attempt in outcome.attempts:
                console.print(f"  suffix {attempt.suffix!r}: {attempt.error}")
            sys.exit(1)


@cli.command()
@click.option("--reference-dir", "-r", prompt="Reference image directory", help="Where reference images live")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def init(reference_dir: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = SnapshotConfig(reference_dir=reference_dir)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now record a reference image:")
    console.print("  [blue]snapverify verify MySuite testLogo logo.png --record[/blue]")


if __name__ == "__main__":
    cli()
