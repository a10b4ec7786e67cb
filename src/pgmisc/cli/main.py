"""Cyclopts CLI entry point for pgmisc."""

from __future__ import annotations

import sys
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Final

from cyclopts import App, Parameter

from pgmisc import __version__
from pgmisc.cli.admin_cmd import register_admin_commands
from pgmisc.cli.doctor_cmd import register_doctor_command
from pgmisc.cli.output import OutputConfig, normalize_output_format
from pgmisc.cli.output import emit as emit_output
from pgmisc.cli.signal_cmd import register_signal_commands
from pgmisc.cli.timeline_cmd import register_timeline_commands
from pgmisc.lib.errors import DeliberateAbort, InsufficientPrivilegeError
from pgmisc.lib.logging import configure_logging
from pgmisc.server.main import run_server

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Options accepted anywhere on the command line."""

    output: OutputConfig
    verbosity: int = 0


_DEFAULT_OPTIONS: Final = GlobalOptions(output=OutputConfig(format="text"))
_GLOBAL_OPTIONS: ContextVar[GlobalOptions] = ContextVar("_GLOBAL_OPTIONS", default=_DEFAULT_OPTIONS)

# Flag -> verbosity increment.
_VERBOSE_FLAGS: Final[dict[str, int]] = {"-v": 1, "--verbose": 1, "-vv": 2}


def emit(payload: object) -> None:
    """Print one operation result in the format chosen for this invocation."""

    emit_output(payload, _GLOBAL_OPTIONS.get().output)


def _split_global_options(argv: Sequence[str]) -> tuple[list[str], GlobalOptions]:
    """Pull global flags out of `argv` wherever they appear.

    Everything after `--` is passed through untouched.
    """

    json_mode = porcelain_mode = False
    requested_format: str | None = None
    verbosity = 0
    remaining: list[str] = []

    tokens = iter(argv)
    for token in tokens:
        if token == "--":
            remaining.append(token)
            remaining.extend(tokens)
            break
        if token == "--json":
            json_mode = True
        elif token == "--porcelain":
            porcelain_mode = True
        elif token in _VERBOSE_FLAGS:
            verbosity += _VERBOSE_FLAGS[token]
        elif token == "--format":
            requested_format = next(tokens, None)
            if requested_format is None:
                raise SystemExit("--format requires a value")
        elif token.startswith("--format="):
            requested_format = token.partition("=")[2]
        else:
            remaining.append(token)

    output_format = normalize_output_format(
        requested=requested_format,
        json_mode=json_mode,
        porcelain_mode=porcelain_mode,
    )
    return remaining, GlobalOptions(output=OutputConfig(format=output_format), verbosity=verbosity)


app = App(
    name="pgmisc",
    help="Signal PostgreSQL server processes and report WAL timelines.",
    version=__version__,
    help_formatter="plain",
)


@app.default
def root(
    json_mode: Annotated[
        bool,
        Parameter(name="--json", help="Emit command output as JSON."),
    ] = False,
    output_format: Annotated[
        str | None,
        Parameter(name="--format", help="Set output format: text, json, or porcelain."),
    ] = None,
    porcelain: Annotated[
        bool,
        Parameter(name="--porcelain", help="Emit stable tab-separated key/value output."),
    ] = False,
    verbose: Annotated[
        bool,
        Parameter(name=["--verbose", "-v"], help="Log at INFO; -vv logs at DEBUG."),
    ] = False,
) -> None:
    """Show help. The options above are accepted before or after any command."""

    # Parsed by _split_global_options; declared here for --help only.
    _ = (json_mode, output_format, porcelain, verbose)
    app.help_print()


@app.command(name="serve")
def serve() -> None:
    """Start FastMCP server on stdio."""

    run_server()


admin_app = App(name="admin", help="Failure-injection commands (testing only)", help_formatter="plain")
signal_app = App(name="signal", help="Signal delivery commands", help_formatter="plain")
timeline_app = App(name="timeline", help="WAL timeline status commands", help_formatter="plain")

for _sub_app in (admin_app, signal_app, timeline_app):
    app.command(_sub_app)


_REGISTERED_CLI_COMMANDS: set[str] = set()
_REGISTERED_CLI_DESCRIPTIONS: dict[str, str] = {}


def _register_group_commands() -> None:
    for commands, descriptions in (
        register_admin_commands(admin_app, emit),
        register_signal_commands(signal_app, emit),
        register_timeline_commands(timeline_app, emit),
        register_doctor_command(app, emit),
    ):
        _REGISTERED_CLI_COMMANDS.update(commands)
        _REGISTERED_CLI_DESCRIPTIONS.update(descriptions)


def get_registered_cli_commands() -> set[str]:
    """Expose CLI operation command names for parity tests."""

    return set(_REGISTERED_CLI_COMMANDS)


def get_registered_cli_descriptions() -> dict[str, str]:
    """Expose CLI descriptions for parity tests."""

    return dict(_REGISTERED_CLI_DESCRIPTIONS)


def _reject_unknown_command(argv: Sequence[str]) -> None:
    command = next((token for token in argv if not token.startswith("-")), None)
    if command is None or "--" in argv[: argv.index(command)]:
        return
    known = {name for name in app.resolved_commands() if not name.startswith("-")}
    if command not in known:
        print(f"error: Unknown command: {command}", file=sys.stderr)
        raise SystemExit(1)


def _fail(message: str, *, exit_code: int = 1, detail: str | None = None) -> SystemExit:
    print(message, file=sys.stderr)
    if detail:
        print(f"detail: {detail}", file=sys.stderr)
    return SystemExit(exit_code)


def _error_text(exc: Exception) -> str:
    if isinstance(exc, KeyError) and exc.args:
        return str(exc.args[0])
    return str(exc).strip() or type(exc).__name__


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point used by `pgmisc` and `python -m pgmisc`."""

    args, options = _split_global_options(sys.argv[1:] if argv is None else argv)
    # Before dispatch, so warnings raised while signaling reach stderr.
    configure_logging(json_mode=options.output.format == "json", verbosity=options.verbosity)
    _reject_unknown_command(args)

    token = _GLOBAL_OPTIONS.set(options)
    try:
        app(args)
    except DeliberateAbort as exc:
        raise _fail(f"{exc.severity}: {_error_text(exc)}", exit_code=exc.exit_code) from None
    except InsufficientPrivilegeError as exc:
        raise _fail(f"error: {exc.message}", detail=exc.detail) from None
    except TimeoutError as exc:
        raise _fail(f"error: {_error_text(exc)}", exit_code=124) from None
    except (KeyError, ValueError, RuntimeError, OSError) as exc:
        raise _fail(f"error: {_error_text(exc)}") from None
    finally:
        _GLOBAL_OPTIONS.reset(token)


_register_group_commands()
