from __future__ import annotations

import argparse
import logging
import os
import re
import sys
import textwrap
from pathlib import Path
from typing import Callable

from ._version import __version__
from .client import HelpMeAIError, RegistryClient
from .config import DEFAULT_REGISTRY_URL, RunOptions, load_config, merge_config
from .manifests import default_parser_registry
from .selection import FlowState, InstallFlow, Step
from .targets import target_display_name

SUPPORTED_MANIFESTS = "package.json (npm/yarn/pnpm/bun)"
MAX_LISTED_FILES = 10
SELECTION_PROMPT = "Toggle numbers (e.g. 1 3), a = all, n = none, Enter = install, q = cancel: "

NEXT_STEP_HINT = textwrap.dedent(
    """\
    Next step - customize your skills
    Some skills contain placeholders that need to be replaced with your actual codebase paths.
    Prompt your coding agent with this exact message:

      Replace all placeholder comments marked with "TO-EDIT" in the installed
      skill files with the actual paths and imports from my codebase.
      Analyze my project structure to find the correct testing utilities,
      setup files, and configuration paths."""
)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="help-me-ai",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Discover and install AI coding assistant skills based on your project dependencies.",
        epilog=textwrap.dedent(
            """\
            Environment variables:
              HELPMEAI_REGISTRY_URL, HELPMEAI_TIMEOUT_S, HELPMEAI_CONFIG_PATH
            """
        ),
    )
    p.add_argument("-d", "--directory", help="Project directory to analyze (default: current directory)")
    p.add_argument(
        "-r",
        "--registry",
        dest="registry_url",
        help=f"Skills registry base URL or local directory (default: {DEFAULT_REGISTRY_URL})",
    )
    p.add_argument("--all", dest="install_all", action="store_true", help="Install all matching skills without prompting")
    p.add_argument("--list", dest="list_only", action="store_true", help="List matching skills without installing")
    p.add_argument("--timeout-s", type=float, help="HTTP timeout in seconds")
    p.add_argument("--config", help="Config file path")
    p.add_argument("-v", "--verbose", action="store_true", help="Print debug logging to stderr")
    p.add_argument("--version", action="version", version=f"help-me-ai {__version__}")
    return p


def _format_table(rows: list[list[str]]) -> list[str]:
    if not rows:
        return []
    widths = [0] * len(rows[0])
    for r in rows:
        for i, c in enumerate(r):
            widths[i] = max(widths[i], len(c))
    return ["  ".join(c.ljust(widths[i]) for i, c in enumerate(r)).rstrip() for r in rows]


def _render_done(state: FlowState) -> list[str]:
    lines = [f"Done! {state.installed_count} skill(s) installed successfully."]
    if state.results:
        lines.append("")
        lines.extend(
            _format_table(
                [
                    ["RESULT", "COUNT"],
                    ["installed", str(state.installed_count)],
                    ["failed", str(sum(1 for r in state.results if not r.succeeded))],
                    ["files", str(len(state.written_paths))],
                ]
            )
        )
    if state.written_paths:
        lines.append("")
        lines.append("Installed files:")
        for path in state.written_paths[:MAX_LISTED_FILES]:
            lines.append(f"  {path}")
        hidden = len(state.written_paths) - MAX_LISTED_FILES
        if hidden > 0:
            lines.append(f"  ... and {hidden} more")
    for result in state.failures:
        if result.error:
            lines.append(f"failed: {result.skill_id}: {result.error}")
        for write_error in result.write_errors:
            lines.append(f"failed: {result.skill_id}: {write_error}")
    if state.installed_count:
        lines.append("")
        lines.extend(NEXT_STEP_HINT.splitlines())
    return lines


def render_state(state: FlowState) -> list[str]:
    """Text for a flow state. Pure; printing is the caller's job."""
    step = state.step
    if step is Step.SCANNING:
        return [
            "Searching for AI skills adapted to your project...",
            "Analyzing project dependencies...",
        ]
    if step is Step.FETCHING:
        return [
            f"Found {state.manifest_file} ({state.package_manager}), {state.dependency_count} dependencies",
            "Fetching skills registry...",
        ]
    if step is Step.NO_DEPENDENCY_PARSER:
        return ["No supported package manager found in this directory.", f"Supported: {SUPPORTED_MANIFESTS}"]
    if step is Step.NO_MATCHES:
        return ["No matching skills found for your dependencies."]
    if step is Step.LIST_ONLY:
        lines = [f"Found {len(state.matches)} matching skill(s):", ""]
        for match in state.matches:
            lines.append(f"  {match.skill.name}")
            lines.append(f"    {match.skill.description}")
            lines.append(f"    Library: {match.dependency.name}@{match.dependency.version}")
            if match.skill.author:
                lines.append(f"    Author: {match.skill.author}")
            lines.append("")
        return lines
    if step is Step.SELECTING:
        lines = [f"Found {len(state.matches)} matching skill(s)"]
        for i, (match, on) in enumerate(zip(state.matches, state.selected), start=1):
            mark = "x" if on else " "
            lines.append(f"  [{mark}] {i}. {match.label}")
        destinations = " and ".join(target_display_name(t) for t in state.targets)
        lines.append(f"Skills will be installed to {destinations}")
        return lines
    if step is Step.INSTALLING:
        return [f"Downloading and installing {len(state.selected_matches)} skill(s)..."]
    if step is Step.DONE:
        return _render_done(state)
    if step is Step.CANCELLED:
        return ["Operation cancelled."]
    if step is Step.ERROR:
        return [f"error: {state.message}"]
    raise AssertionError("unreachable")


def _emit(state: FlowState) -> None:
    stream = sys.stderr if state.step is Step.ERROR else sys.stdout
    for line in render_state(state):
        print(line, file=stream)


def _parse_positions(answer: str, count: int) -> list[int] | None:
    tokens = [t for t in re.split(r"[\s,]+", answer) if t]
    positions: list[int] = []
    for token in tokens:
        if not token.isdigit():
            return None
        n = int(token)
        if not 1 <= n <= count:
            return None
        positions.append(n - 1)
    return positions


def prompt_selection(flow: InstallFlow, *, input_fn: Callable[[str], str] | None = None) -> FlowState:
    read = input_fn or input
    while flow.state.step is Step.SELECTING:
        _emit(flow.state)
        try:
            answer = read(SELECTION_PROMPT).strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            return flow.cancel()

        if answer == "":
            return flow.confirm()
        if answer in ("q", "quit"):
            return flow.cancel()
        if answer in ("a", "all"):
            flow.select_all()
            continue
        if answer in ("n", "none"):
            flow.select_none()
            continue

        positions = _parse_positions(answer, len(flow.state.matches))
        if positions is None:
            print(f"warning: expected numbers between 1 and {len(flow.state.matches)}", file=sys.stderr)
            continue
        for position in positions:
            flow.toggle(position)
    return flow.state


def run_flow(flow: InstallFlow, *, input_fn: Callable[[str], str] | None = None) -> FlowState:
    _emit(flow.state)
    while not flow.state.is_terminal:
        if flow.state.step is Step.SELECTING:
            prompt_selection(flow, input_fn=input_fn)
        else:
            flow.proceed()
        if flow.state.step is not Step.SELECTING:
            _emit(flow.state)
    return flow.state


def exit_code(state: FlowState) -> int:
    if state.step is Step.ERROR:
        return 1
    if state.step is Step.DONE and state.failures:
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        cfg = merge_config(load_config(args.config), registry_url=args.registry_url, timeout_s=args.timeout_s)
    except (OSError, ValueError) as e:
        print(f"error: Could not load config: {e}", file=sys.stderr)
        return 1

    options = RunOptions(
        directory=Path(args.directory or os.getcwd()).expanduser(),
        registry_url=cfg.registry_url,
        timeout_s=cfg.timeout_s,
        install_all=args.install_all,
        list_only=args.list_only,
    )
    try:
        with RegistryClient(registry_url=options.registry_url, timeout_s=options.timeout_s) as registry:
            flow = InstallFlow(options, parsers=default_parser_registry(), registry=registry)
            state = run_flow(flow)
    except HelpMeAIError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return exit_code(state)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
