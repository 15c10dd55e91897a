"""CLI entry point — the ``bazelcov`` command, built with Click.

    bazelcov [flags] [targets...]

Runs ``bazel coverage`` on the targets (``//...`` when none are given),
makes the paths in the combined LCOV report absolute and renders it to HTML
with genhtml.
"""

import functools
import shlex
import sys

import click

from bazelcov import __version__
from bazelcov.config import DEFAULT_CONFIG_PATH


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _handle_errors(func):
    """Decorator that turns pipeline exceptions into one error line and exit 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from bazelcov.bazel import BazelError
        from bazelcov.config import ConfigError
        from bazelcov.reports import ReportError

        try:
            return func(*args, **kwargs)
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)
        except BazelError as exc:
            click.echo(f"Bazel error: {exc}", err=True)
            sys.exit(1)
        except ReportError as exc:
            click.echo(f"Report error: {exc}", err=True)
            sys.exit(1)

    return wrapper


def _verbose(ctx: click.Context, message: str) -> None:
    if ctx.obj["verbose"]:
        click.echo(f"[verbose] {message}", err=True)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------

@click.command(context_settings={"help_option_names": ["-h", "-help", "--help"],
                                 "allow_interspersed_args": False})
@click.option("-bazel", "--bazel", "bazel", default=None, metavar="PROG",
              help="Name or path of the Bazel program.  [default: bazel]")
@click.option("-genhtml", "--genhtml", "genhtml", default=None, metavar="PROG",
              help="Name or path of the genhtml program.  [default: genhtml]")
@click.option("-output", "--output", "output", default=None, metavar="DIR",
              help="Directory into which to write the coverage report.  "
                   "[default: coverage-report]")
@click.option("--config", "config_path", default=DEFAULT_CONFIG_PATH, show_default=True,
              help="Optional YAML configuration file.")
@click.option("--init-config", is_flag=True, default=False,
              help="Write a template configuration file to --config and exit.")
@click.option("--verbose", is_flag=True, default=False,
              help="Describe each step on stderr.")
@click.version_option(__version__, prog_name="bazelcov")
@click.argument("targets", nargs=-1)
@click.pass_context
@_handle_errors
def main(ctx: click.Context, bazel: str | None, genhtml: str | None, output: str | None,
         config_path: str, init_config: bool, verbose: bool, targets: tuple[str, ...]) -> None:
    """Write an HTML coverage report for the Bazel TARGETS (default: //...).

    Flags must come before the targets; everything from the first target on,
    including exclusions like -//third_party/..., is passed to Bazel as is.
    """
    from bazelcov.bazel import Bazel
    from bazelcov.config import generate_template, load
    from bazelcov.reports.html import genhtml_command, generate_html
    from bazelcov.reports.lcov import munge, read_report

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if init_config:
        generate_template(config_path)
        click.echo(f"Template written to '{config_path}'.")
        return

    config = load(config_path).merge(bazel=bazel, genhtml=genhtml, output=output,
                                     targets=targets)
    resolved = config.resolve()
    _verbose(ctx, f"Using {resolved.bazel} and {resolved.genhtml}")

    bazel_cmd = Bazel(resolved.bazel)
    workspace = bazel_cmd.workspace()
    _verbose(ctx, f"Bazel workspace is {workspace}")

    _verbose(ctx, f"Running: {shlex.join(bazel_cmd.coverage_command(resolved.targets))}")
    report_file = bazel_cmd.coverage(resolved.targets)
    _verbose(ctx, f"Reading coverage data from {report_file}")

    report = munge(read_report(report_file), workspace)

    _verbose(ctx, "Running: "
             + shlex.join(genhtml_command(resolved.genhtml, resolved.output, "<report>")))
    generate_html(resolved.genhtml, report, resolved.output, workspace)
    click.echo(f"Coverage report written to '{resolved.output}'", err=True)
