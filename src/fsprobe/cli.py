"""CLI entrypoint for fsprobe."""

from __future__ import annotations

from pathlib import Path
from typing import Any, TextIO

import click
from pydantic import ValidationError

from fsprobe.config.models import ProbeConfig, parse_duration
from fsprobe.config.store import SettingsStore
from fsprobe.fs.walker import WalkError
from fsprobe.runner import run
from fsprobe.runtime_logging import LOG_LEVELS, configure_runtime_logging
from fsprobe.version import __version__


class DurationType(click.ParamType):
    name = "duration"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> float:
        if isinstance(value, float):
            return value
        try:
            return parse_duration(str(value))
        except ValueError:
            self.fail(
                f"{value!r} is not a positive duration (seconds, or a number with s/m/h/d suffix)",
                param,
                ctx,
            )


DURATION = DurationType()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "root",
    required=False,
    default=".",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.option("-t", "--timeout", type=DURATION, help="Per-probe deadline, e.g. 30, 45s, 2m, 1h")
@click.option("-j", "--jobs", type=click.IntRange(min=1), help="Number of concurrent probes")
@click.option(
    "-a/-A",
    "--access/--no-access",
    "access_check",
    default=None,
    help="Also read one byte of each file (slower, stricter)",
)
@click.option("-s", "--stripe", "stripe_diagnostics", is_flag=True, help="Prefix bad entries with their stripe index")
@click.option("--isolation", type=click.Choice(["subprocess", "thread"]), help="Run probes in child processes or threads")
@click.option("-x", "--exclude", "exclude", multiple=True, help="Gitignore-style pattern to skip (repeatable)")
@click.option("--absolute", "absolute_paths", is_flag=True, help="Print absolute paths instead of root-relative ones")
@click.option("--good-file", type=click.File("w", errors="surrogateescape", lazy=False), help="Write good entries here instead of stdout")
@click.option("--bad-file", type=click.File("w", errors="surrogateescape", lazy=False), help="Write bad entries here instead of stderr")
@click.option("--settings", "settings_file", type=click.Path(dir_okay=False, path_type=Path), help="Defaults file to use")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), help="Runtime log level")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Runtime log file (JSONL)")
@click.version_option(__version__, prog_name="fsprobe")
def main(
    root: Path,
    timeout: float | None,
    jobs: int | None,
    access_check: bool | None,
    stripe_diagnostics: bool,
    isolation: str | None,
    exclude: tuple[str, ...],
    absolute_paths: bool,
    good_file: TextIO | None,
    bad_file: TextIO | None,
    settings_file: Path | None,
    log_level: str | None,
    log_file: Path | None,
) -> None:
    """Probe every entry under ROOT and sort it into good and bad.

    Good entries go to stdout and bad entries to stderr, one per line;
    directories end with a path separator. A probe that does not finish
    within the timeout marks its entry bad. Finding bad entries is a
    successful run.
    """
    configure_runtime_logging(level=log_level, log_file=log_file)
    defaults = SettingsStore(settings_file).load()

    try:
        config = ProbeConfig(
            root=root,
            timeout=timeout if timeout is not None else defaults.timeout,
            access_check=defaults.access_check if access_check is None else access_check,
            concurrency=jobs if jobs is not None else defaults.jobs,
            stripe_diagnostics=stripe_diagnostics,
            isolation=isolation or defaults.isolation,
            exclude=tuple(defaults.exclude) + exclude,
            absolute_paths=absolute_paths,
            stripe_tool=defaults.stripe_tool,
        )
    except ValidationError as exc:
        raise click.UsageError(str(exc)) from exc

    # Names that are not valid in the locale encoding go out as their raw bytes.
    good = good_file or click.get_text_stream("stdout", errors="surrogateescape")
    bad = bad_file or click.get_text_stream("stderr", errors="surrogateescape")
    try:
        run(config, good=good, bad=bad)
    except WalkError as exc:
        raise click.ClickException(str(exc)) from exc


if __name__ == "__main__":
    main()
