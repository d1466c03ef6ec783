from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .client import HelpMeAIError
from .models import Dependency
from .versions import coerce

_RANGE_PREFIX_RE = re.compile(r"^[\^~>=<]+")


class ManifestError(HelpMeAIError):
    pass


@dataclass(frozen=True)
class ParseResult:
    dependencies: tuple[Dependency, ...]
    package_manager: str


class PackageParser(ABC):
    name: str
    config_file: str

    def manifest_path(self, directory: Path) -> Path:
        return Path(directory) / self.config_file

    def can_parse(self, directory: Path) -> bool:
        return self.manifest_path(directory).is_file()

    @abstractmethod
    def parse(self, directory: Path) -> ParseResult:
        ...


class ParserRegistry:
    def __init__(self) -> None:
        self._parsers: list[PackageParser] = []

    def register(self, parser: PackageParser) -> None:
        self._parsers.append(parser)

    def find_parser(self, directory: Path) -> PackageParser | None:
        for parser in self._parsers:
            if parser.can_parse(directory):
                return parser
        return None


def normalize_version(version: str) -> str:
    """Strip range operators and coerce; keep the stripped text when coercion fails."""
    cleaned = _RANGE_PREFIX_RE.sub("", version).strip()
    coerced = coerce(cleaned)
    if coerced is not None:
        return str(coerced)
    return cleaned


class NpmParser(PackageParser):
    """package.json, as used by npm, yarn, pnpm and bun."""

    name = "npm"
    config_file = "package.json"

    def _load(self, path: Path) -> dict[str, Any]:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ManifestError(f"Could not read {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise ManifestError(f"{path} is not valid UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise ManifestError(f"{path} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ManifestError(f"{path} must contain a JSON object.")
        return raw

    def parse(self, directory: Path) -> ParseResult:
        raw = self._load(self.manifest_path(directory))
        deps: list[Dependency] = []
        for section, is_dev in (("dependencies", False), ("devDependencies", True)):
            entries = raw.get(section)
            if not isinstance(entries, dict):
                continue
            for name, version in entries.items():
                if not isinstance(name, str) or not isinstance(version, str):
                    continue
                deps.append(Dependency(name=name, version=normalize_version(version), is_dev=is_dev))
        return ParseResult(dependencies=tuple(deps), package_manager=self.name)


def default_parser_registry() -> ParserRegistry:
    registry = ParserRegistry()
    registry.register(NpmParser())
    return registry
