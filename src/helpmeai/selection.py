from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from .client import HelpMeAIError
from .config import RunOptions
from .installer import ContentSource, SkillInstaller
from .manifests import ParserRegistry
from .matcher import match_skills
from .models import Dependency, InstallationResult, MatchedSkill, SkillIndex, Target
from .targets import detect_targets

logger = logging.getLogger(__name__)


class Step(Enum):
    SCANNING = "scanning"
    FETCHING = "fetching"
    NO_DEPENDENCY_PARSER = "no-dependency-parser"
    NO_MATCHES = "no-matches"
    LIST_ONLY = "list-only"
    SELECTING = "selecting"
    INSTALLING = "installing"
    DONE = "done"
    CANCELLED = "cancelled"
    ERROR = "error"


TERMINAL_STEPS = frozenset(
    {Step.NO_DEPENDENCY_PARSER, Step.NO_MATCHES, Step.LIST_ONLY, Step.DONE, Step.CANCELLED, Step.ERROR}
)
AUTOMATIC_STEPS = frozenset({Step.SCANNING, Step.FETCHING, Step.INSTALLING})


class InvalidTransitionError(HelpMeAIError):
    pass


class Registry(ContentSource, Protocol):
    registry_url: str

    def fetch_index(self) -> SkillIndex:
        ...


@dataclass(frozen=True)
class FlowState:
    step: Step
    matches: tuple[MatchedSkill, ...] = ()
    targets: tuple[Target, ...] = ()
    selected: tuple[bool, ...] = ()
    results: tuple[InstallationResult, ...] = ()
    installed_count: int = 0
    written_paths: tuple[Path, ...] = ()
    message: str | None = None
    package_manager: str | None = None
    manifest_file: str | None = None
    dependency_count: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.step in TERMINAL_STEPS

    @property
    def selected_matches(self) -> tuple[MatchedSkill, ...]:
        return tuple(m for m, on in zip(self.matches, self.selected) if on)

    @property
    def failures(self) -> tuple[InstallationResult, ...]:
        return tuple(r for r in self.results if not r.complete)


class InstallFlow:
    """
    Scanning -> Fetching -> {NoDependencyParser | NoMatches | ListOnly | Selecting} -> Installing -> Done

    Error is reachable from every non-terminal step; Cancelled only from
    Selecting. Each method performs exactly one transition and returns the
    new state. Nothing here touches the terminal.
    """

    def __init__(
        self,
        options: RunOptions,
        *,
        parsers: ParserRegistry,
        registry: Registry,
        installer: SkillInstaller | None = None,
    ) -> None:
        self.options = options
        self.parsers = parsers
        self.registry = registry
        self.installer = installer or SkillInstaller(registry)
        self.state = FlowState(step=Step.SCANNING)
        self._dependencies: tuple[Dependency, ...] = ()

    def _transition(self, allowed: tuple[Step, ...], action: Callable[[FlowState], FlowState]) -> FlowState:
        current = self.state
        if current.step not in allowed:
            names = ", ".join(s.value for s in allowed)
            raise InvalidTransitionError(f"Cannot leave {current.step.value!r} this way (expected one of: {names}).")
        try:
            new_state = action(current)
        except (HelpMeAIError, OSError) as e:
            new_state = FlowState(step=Step.ERROR, message=str(e))
        logger.debug("%s -> %s", current.step.value, new_state.step.value)
        self.state = new_state
        return new_state

    def scan(self) -> FlowState:
        def _scan(state: FlowState) -> FlowState:
            parser = self.parsers.find_parser(self.options.directory)
            if parser is None:
                return replace(state, step=Step.NO_DEPENDENCY_PARSER)
            result = parser.parse(self.options.directory)
            self._dependencies = result.dependencies
            return replace(
                state,
                step=Step.FETCHING,
                package_manager=result.package_manager,
                manifest_file=parser.config_file,
                dependency_count=len(result.dependencies),
            )

        return self._transition((Step.SCANNING,), _scan)

    def fetch(self) -> FlowState:
        def _fetch(state: FlowState) -> FlowState:
            try:
                index = self.registry.fetch_index()
            except HelpMeAIError as e:
                return FlowState(
                    step=Step.ERROR,
                    message=(
                        f"Could not fetch skills registry from {self.registry.registry_url}. "
                        f"Make sure the registry URL is correct and accessible. ({e})"
                    ),
                )

            matches = tuple(match_skills(list(self._dependencies), index))
            if not matches:
                return replace(state, step=Step.NO_MATCHES)
            if self.options.list_only:
                return replace(state, step=Step.LIST_ONLY, matches=matches)

            targets = tuple(detect_targets(self.options.directory))
            step = Step.INSTALLING if self.options.install_all else Step.SELECTING
            return replace(state, step=step, matches=matches, targets=targets, selected=(True,) * len(matches))

        return self._transition((Step.FETCHING,), _fetch)

    def toggle(self, position: int) -> FlowState:
        def _toggle(state: FlowState) -> FlowState:
            if not 0 <= position < len(state.matches):
                raise IndexError(f"No skill at position {position}.")
            flags = list(state.selected)
            flags[position] = not flags[position]
            return replace(state, selected=tuple(flags))

        return self._transition((Step.SELECTING,), _toggle)

    def select_all(self) -> FlowState:
        return self._transition((Step.SELECTING,), lambda s: replace(s, selected=(True,) * len(s.matches)))

    def select_none(self) -> FlowState:
        return self._transition((Step.SELECTING,), lambda s: replace(s, selected=(False,) * len(s.matches)))

    def confirm(self) -> FlowState:
        def _confirm(state: FlowState) -> FlowState:
            if not state.selected_matches:
                return replace(state, step=Step.DONE, installed_count=0, written_paths=(), results=())
            return replace(state, step=Step.INSTALLING)

        return self._transition((Step.SELECTING,), _confirm)

    def cancel(self) -> FlowState:
        return self._transition((Step.SELECTING,), lambda s: replace(s, step=Step.CANCELLED))

    def install(self) -> FlowState:
        def _install(state: FlowState) -> FlowState:
            results = self.installer.install(list(state.selected_matches), list(state.targets))
            written = tuple(p for r in results for p in r.written_paths)
            return replace(
                state,
                step=Step.DONE,
                results=tuple(results),
                installed_count=sum(1 for r in results if r.succeeded),
                written_paths=written,
            )

        return self._transition((Step.INSTALLING,), _install)

    def proceed(self) -> FlowState:
        """Perform the next automatic transition."""
        automatic = {
            Step.SCANNING: self.scan,
            Step.FETCHING: self.fetch,
            Step.INSTALLING: self.install,
        }
        action = automatic.get(self.state.step)
        if action is None:
            raise InvalidTransitionError(f"{self.state.step.value!r} does not advance on its own.")
        return action()

    def advance(self) -> FlowState:
        """Run automatic transitions until operator input is needed or the flow ends."""
        while self.state.step in AUTOMATIC_STEPS:
            self.proceed()
        return self.state
