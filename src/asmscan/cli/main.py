"""asmscan CLI - scan a binary, write its snapshot, or diff it against a baseline."""

from pathlib import Path

import click
import structlog
from rich.text import Text

from asmscan import __version__
from asmscan.config import AsmScanConfig, load_config
from asmscan.core.console import make_output_console, status, suppress_console_logs
from asmscan.core.errors import AsmScanError, ExitCode
from asmscan.core.formatting import join_counts
from asmscan.core.logging import clear_run_id, configure_logging, current_log_file, set_run_id
from asmscan.diff import RecommendationEngine, ScanChange, Severity, compare
from asmscan.scanning import ExternalScanner
from asmscan.snapshot import AssemblySnapshot, dump_snapshot, load_snapshot, save_snapshot

log = structlog.get_logger(__name__)

_SEVERITY_STYLES = {
    Severity.MAJOR: "bold red",
    Severity.MINOR: "yellow",
    Severity.NEGLIGIBLE: "",
    Severity.NONE: "dim",
}


class AsmScanCommand(click.Command):
    """Command whose usage errors exit with ``ExitCode.USAGE``."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = ExitCode.USAGE
            raise


def _usage_error(ctx: click.Context, message: str) -> click.UsageError:
    err = click.UsageError(message, ctx=ctx)
    err.exit_code = ExitCode.USAGE
    return err


@click.command(cls=AsmScanCommand)
@click.version_option(version=__version__, prog_name="asmscan")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./.asmscan.yaml)",
)
@click.argument("args", nargs=-1, metavar="ASSEMBLY [[out] SNAPSHOT]")
@click.pass_context
def cli(ctx: click.Context, args: tuple[str, ...], verbose: bool, config_path: Path | None) -> None:
    """Snapshot a binary's public interface and recommend a version bump.

    \b
    asmscan ASSEMBLY               print the snapshot document
    asmscan ASSEMBLY out SNAPSHOT  write the snapshot document
    asmscan ASSEMBLY SNAPSHOT      diff against a baseline snapshot

    In diff mode the exit code is the recommendation: 0 none, 1 build,
    2 revision, 3 minor, 4 major.
    """
    if len(args) == 1:
        mode = "print"
    elif len(args) == 2:
        mode = "diff"
    elif len(args) == 3 and args[1] == "out":
        mode = "write"
    else:
        raise _usage_error(ctx, "expected ASSEMBLY, ASSEMBLY SNAPSHOT or ASSEMBLY out SNAPSHOT")

    configure_logging(level="DEBUG" if verbose else "WARNING")
    set_run_id()
    try:
        config = load_config(config_path)
        logging_config = config.logging
        if verbose:
            logging_config = logging_config.model_copy(update={"level": "DEBUG"})
        configure_logging(config=logging_config)

        assembly = Path(args[0])
        log.debug("cli_invoked", mode=mode, assembly=str(assembly))

        if mode == "print":
            snapshot = _scan(assembly, config)
            click.echo(dump_snapshot(snapshot, indent=config.output.indent))
        elif mode == "write":
            snapshot = _scan(assembly, config)
            target = Path(args[2])
            status(f"Writing snapshot {target}...")
            save_snapshot(snapshot, target)
            status(f"Wrote snapshot {target}", style="success")
        else:
            ctx.exit(_diff(assembly, Path(args[1]), config))
    except AsmScanError as e:
        log.info("command_failed", **e.to_dict())
        status(e.message, style="error")
        if log_file := current_log_file():
            status(f"See {log_file} for details.", indent=2)
        ctx.exit(e.exit_code)
    finally:
        clear_run_id()


def _scan(assembly: Path, config: AsmScanConfig) -> AssemblySnapshot:
    status(f"Scanning assembly {assembly}...")
    return ExternalScanner(config.scanner).scan(assembly)


def _render(change: ScanChange) -> Text:
    label = change.severity.label
    return Text.assemble((label, _SEVERITY_STYLES[change.severity]), " ", change.description)


def _diff(assembly: Path, snapshot_path: Path, config: AsmScanConfig) -> ExitCode:
    current = _scan(assembly, config)
    status(f"Loading snapshot {snapshot_path}...")
    original = load_snapshot(snapshot_path)

    if current.name != original.name:
        status(
            f"Assembly name '{current.name}' differs from snapshot name '{original.name}'",
            style="warning",
        )

    out = make_output_console(config.output.color)
    engine = RecommendationEngine(current, original)
    with suppress_console_logs():
        for change in engine.consume(compare(current, original)):
            out.print(_render(change), soft_wrap=True)

    result = engine.recommend()
    tally = result.tally
    status(
        "Changes: "
        + join_counts(
            {"major": tally.major, "minor": tally.minor, "negligible": tally.negligible}
        ),
        style="warning" if result.outcome.requires_action else "success",
    )
    out.print(Text(result.message), soft_wrap=True)
    return result.exit_code


if __name__ == "__main__":
    cli()
