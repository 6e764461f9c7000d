"""Dungeon Designer CLI entry point.

Provides subcommands for running the designer API server and for generating
a dungeon offline (printing its validation summary and optionally writing the
JSON level bundle / CSV tile grid). Accepts configuration via flags and
environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import os
import signal
import sys
from pathlib import Path
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()

# Disable colors if output is not a real terminal (e.g., during pytest capture)
try:
    _COLOR_ENABLED = sys.stdout.isatty()
except (AttributeError, ValueError):  # pragma: no cover - detached/closed stdout
    _COLOR_ENABLED = False


def _load_version() -> str:
    try:
        return Path(__file__).with_name("VERSION").read_text(encoding="utf-8").strip()
    except OSError:
        return "0.3.0"


__version__ = _load_version()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Dungeon Designer

    Run the Flask-SocketIO designer server, or generate a dungeon from a seed
    without starting any server. Configuration can be provided via CLI flags or
    environment variables. If both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                            Bind address for the web server (default: 0.0.0.0)
          PORT                            Port for the web server (default: 5000)
          DESIGNER_DEFAULT_SEED           Seed used when none is given (default: dungeon-001)
          DESIGNER_MAX_SESSIONS           Designer session cache size (default: 32)
          DESIGNER_MAX_STEPS_PER_REQUEST  Step cap for one request/playback (default: 5000)
          DESIGNER_MAX_CELLS              Largest width*height accepted (default: 250000)
          DESIGNER_LOG_LEVEL              debug|info|warn|error (default: info)
          DESIGNER_LOG_JSON               1 to emit JSON log lines

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Bind to localhost only on a custom port
          python run.py server --host 127.0.0.1 --port 8080

          # Generate the default dungeon and print its validation summary
          python run.py generate

          # Bigger, loopier dungeon written to files
          python run.py generate --seed crypt-7 --set width=120 --set height=80 \\
              --set extraLoopChance=0.6 --json out/ --csv out/

          # Load variables from .env then run the server
          python run.py --env-file .env server
        """
    )

    parser = argparse.ArgumentParser(
        prog="DungeonDesigner",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Dungeon Designer {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # server subcommand
    server_parser = subparsers.add_parser(
        "server",
        help="Run the Socket.IO web server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the designer HTTP API and Socket.IO playback server",
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )
    server_parser.set_defaults(command="server")

    # generate subcommand
    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate a dungeon to completion without a server",
        formatter_class=argparse.RawTextHelpFormatter,
        description=dedent(
            """
            Run the generator from a seed to completion and print the export
            validation block. Config keys accept camelCase or snake_case and
            default to the designer presets.
            """
        ),
    )
    gen_parser.add_argument("--seed", default=None, help="Seed string (default: env DESIGNER_DEFAULT_SEED or dungeon-001)")
    gen_parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override one config value (repeatable), e.g. --set maxDepth=6",
    )
    gen_parser.add_argument("--json", dest="json_path", default=None, help="Write the JSON level bundle (file or directory)")
    gen_parser.add_argument("--csv", dest="csv_path", default=None, help="Write the CSV tile grid (file or directory)")
    gen_parser.set_defaults(command="generate")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    args = parser.parse_args(argv)
    if args.command is None:  # only global flags given
        args.command = "server"
    return args


def parse_overrides(pairs: list[str]) -> dict:
    """``["width=120", "extraLoopChance=0.5"]`` -> ``{"width": "120", ...}``.

    Values stay strings; ``DungeonConfig.from_mapping`` coerces them.
    """
    out = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"expected KEY=VALUE, got {pair!r}")
        out[key.strip()] = value.strip()
    return out


def _output_path(target: str, default_name: str) -> Path:
    path = Path(target)
    if target.endswith(("/", os.sep)) or path.is_dir():
        path.mkdir(parents=True, exist_ok=True)
        return path / default_name
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _label(text: str) -> str:
    return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text


def _value(val) -> str:
    return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)


def run_generate(args: argparse.Namespace) -> int:
    from dungeon_designer import settings
    from dungeon_designer.dungeon import DungeonGenerator, run_to_completion
    from dungeon_designer.export import (
        build_export_bundle,
        csv_filename,
        export_csv,
        json_filename,
    )

    seed = args.seed or settings.default_seed()
    try:
        config = settings.check_grid_size(settings.default_config().merged(parse_overrides(args.overrides)))
    except ValueError as exc:
        print(f"[ERROR] Invalid config: {exc}", file=sys.stderr)
        return 2

    generator = DungeonGenerator(seed, config)
    report = run_to_completion(generator)
    bundle = build_export_bundle(generator)

    divider = "=" * 40
    lines = [
        divider,
        f"  {_label('Seed:'):12} {_value(seed)}",
        f"  {_label('Size:'):12} {_value(f'{config.width}x{config.height}')}",
        f"  {_label('Steps:'):12} {_value(report.steps)}",
        f"  {_label('Runtime:'):12} {_value(str(report.metrics['runtime_ms']) + ' ms')}",
    ]
    for key, val in bundle["validation"].items():
        lines.append(f"  {_label(key + ':'):12} {_value(val)}")
    lines.append(divider)
    print("\n".join(lines))

    if args.json_path:
        import json

        path = _output_path(args.json_path, json_filename(seed))
        path.write_text(json.dumps(bundle, indent=2), encoding="utf-8")
        print(f"[INFO] Wrote {path}")
    if args.csv_path:
        path = _output_path(args.csv_path, csv_filename(seed))
        path.write_text(export_csv(generator.get_state()), encoding="utf-8")
        print(f"[INFO] Wrote {path}")
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    from dungeon_designer import logging_utils

    logging_utils.configure()
    log = logging_utils.get_logger("dungeon_designer.cli")

    mode = (getattr(args, "command", None) or "server").lower()
    if mode == "generate":
        log.debug(event="startup", mode=mode)
        return run_generate(args)

    # Resolve configuration from CLI flags or env vars
    host = getattr(args, "host", None) or os.getenv("HOST", "0.0.0.0")
    port = int(getattr(args, "port", None) or os.getenv("PORT", "5000"))
    debug = bool(getattr(args, "debug", False) or os.getenv("FLASK_DEBUG") == "1")

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    # Import server entrypoint only after environment is ready
    from dungeon_designer.server import start_server

    title = (
        f"{Fore.CYAN}{Style.BRIGHT}Dungeon Designer Server{Style.RESET_ALL}"
        if _COLOR_ENABLED
        else "Dungeon Designer Server"
    )
    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    lines = [
        divider,
        f"  {title}",
        divider,
        f"  {_label('Mode:'):12} {_value(mode.upper())}",
        f"  {_label('Host:'):12} {_value(host)}",
        f"  {_label('Port:'):12} {_value(port)}",
        f"  {_label('Version:'):12} {_value(__version__)}",
        f"  {_label('WebSockets:'):12} {_value('enabled')}",
        divider,
        "",
    ]
    print("\n".join(lines))
    log.info(event="listen", host=host, port=port, debug=debug)
    start_server(host=host, port=port, debug=debug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
