"""CLI entrypoints for lolcommits commands."""

from __future__ import annotations

import argparse
import os
import sys
from typing import List

from .errors import LolcommitsError
from .logging import configure_logging
from .models import RunOutcome
from .orchestrator import DEBUG_ENV, PERIODS, CaptureOptions, Orchestrator, env_flag


def _add_debug_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Show debug output (also enabled by LOLCOMMITS_DEBUG).",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-D",
        "--debug",
        **kwargs,
    )


def _add_capture_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-d",
        "--device",
        help="Camera device to capture from (env: LOLCOMMITS_DEVICE).",
    )
    parser.add_argument(
        "-a",
        "--animate",
        metavar="SECONDS",
        help="Capture an animated gif of this many seconds (env: LOLCOMMITS_ANIMATE).",
    )
    parser.add_argument(
        "-w",
        "--delay",
        metavar="SECONDS",
        help="Wait before capturing so the camera can warm up (env: LOLCOMMITS_DELAY).",
    )
    parser.add_argument(
        "-s",
        "--stealth",
        action="store_true",
        default=None,
        help="Capture without any notification (env: LOLCOMMITS_STEALTH).",
    )
    parser.add_argument(
        "--fork",
        action="store_true",
        default=None,
        help="Capture in a detached background process (env: LOLCOMMITS_FORK).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lolcommits",
        description="Take a snapshot with your webcam every time you git commit code.",
    )
    _add_debug_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    capture_parser = subparsers.add_parser(
        "capture",
        help="Capture a lolcommit for the latest commit.",
    )
    _add_debug_option(capture_parser, suppress_default=True)
    _add_capture_options(capture_parser)
    capture_parser.add_argument(
        "-t",
        "--test",
        action="store_true",
        help="Test mode: capture without a repository and open the result.",
    )
    capture_parser.add_argument("--sha", help="Commit sha to use in test mode.")
    capture_parser.add_argument("--msg", dest="message", help="Commit message to use in test mode.")

    enable_parser = subparsers.add_parser(
        "enable",
        help="Install the post-commit hook in the current repository.",
    )
    _add_debug_option(enable_parser, suppress_default=True)
    _add_capture_options(enable_parser)

    for name, help_text in (
        ("disable", "Remove the post-commit hook from the current repository."),
        ("last", "Open the most recent lolcommit."),
        ("browse", "Open the lolcommits folder for the current repository."),
        ("plugins", "List installed plugins and whether they are enabled."),
        ("devices", "List video devices available for capture."),
        ("config", "Print the configuration for the current repository."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        _add_debug_option(sub, suppress_default=True)

    configure_parser = subparsers.add_parser(
        "configure",
        help="Configure a plugin (prompts for the name when omitted).",
    )
    _add_debug_option(configure_parser, suppress_default=True)
    configure_parser.add_argument("plugin", nargs="?", default="", help="Plugin name.")

    timelapse_parser = subparsers.add_parser(
        "timelapse",
        help="Build an animated timelapse from captured lolcommits.",
    )
    _add_debug_option(timelapse_parser, suppress_default=True)
    timelapse_parser.add_argument(
        "--period",
        choices=PERIODS,
        default="today",
        help="Which captures to include (default: today).",
    )

    return parser


def _capture_options(args: argparse.Namespace) -> CaptureOptions:
    return CaptureOptions(
        device=args.device,
        delay=args.delay,
        animate=args.animate,
        stealth=args.stealth,
        fork=args.fork,
        test=bool(getattr(args, "test", False)),
        sha=getattr(args, "sha", None),
        message=getattr(args, "message", None),
    )


def _hook_arguments(args: argparse.Namespace) -> List[str]:
    arguments: List[str] = []
    for flag, value in (("--device", args.device), ("--animate", args.animate), ("--delay", args.delay)):
        if value:
            arguments.extend([flag, str(value)])
    if args.stealth:
        arguments.append("--stealth")
    if args.fork:
        arguments.append("--fork")
    return arguments


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for lolcommits commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.debug) or env_flag(os.environ, DEBUG_ENV))

    orchestrator = Orchestrator()
    outcome: RunOutcome | None = None

    try:
        if args.command == "capture":
            outcome = orchestrator.run_capture(_capture_options(args))
        elif args.command == "enable":
            outcome = orchestrator.run_enable(_hook_arguments(args))
        elif args.command == "disable":
            outcome = orchestrator.run_disable()
        elif args.command == "last":
            outcome = orchestrator.run_last()
        elif args.command == "browse":
            outcome = orchestrator.run_browse()
        elif args.command == "configure":
            outcome = orchestrator.run_configure(args.plugin)
        elif args.command == "timelapse":
            outcome = orchestrator.run_timelapse(args.period)
        elif args.command == "plugins":
            print(orchestrator.describe_plugins())
        elif args.command == "devices":
            devices = orchestrator.list_devices()
            if devices:
                print("Available video devices:\n * " + "\n * ".join(devices))
            else:
                print("No video devices found (device listing may be unsupported on this platform).")
        elif args.command == "config":
            print(orchestrator.show_config(), end="")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except LolcommitsError as exc:
        parser.exit(exc.exit_code, f"{exc}\n")
    except KeyboardInterrupt:
        parser.exit(130, "\nInterrupted\n")

    if outcome is not None and not outcome.ok:
        parser.exit(1, f"{outcome.message}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
