from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from .config import DEFAULT_REGISTRY_URL, DEFAULT_TIMEOUT_S
from .models import Skill, SkillIndex, SkillRequirement

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.json"
SUPPORTED_INDEX_MAJOR_VERSIONS = {"1"}

_REQUIRED_SKILL_FIELDS = ("id", "name", "description", "library", "versionRange", "path")


class HelpMeAIError(RuntimeError):
    pass


class RegistryError(HelpMeAIError):
    pass


@dataclass(frozen=True)
class RegistryHTTPError(RegistryError):
    status_code: int
    body: str
    url: str = ""

    def __str__(self) -> str:
        reason = f"HTTP {self.status_code}"
        detail = self.body.strip()
        if detail and len(detail) <= 200:
            reason = f"{reason}: {detail}"
        if self.url:
            return f"{reason} ({self.url})"
        return reason


def _is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def _local_path(location: str) -> Path:
    if location.startswith("file://"):
        return Path(location.removeprefix("file://"))
    return Path(location).expanduser()


def _parse_skill_obj(obj: Any, *, position: int) -> Skill:
    if not isinstance(obj, dict):
        raise RegistryError(f"Invalid skill record at position {position}: expected an object.")
    for key in _REQUIRED_SKILL_FIELDS:
        value = obj.get(key)
        if not isinstance(value, str) or not value.strip():
            raise RegistryError(f"Invalid skill record at position {position}: missing {key!r}.")

    skill_id = obj["id"].strip()
    # Ids become install filenames and must stay inside the target directory.
    if skill_id in (".", "..") or any(c in skill_id for c in "/\\\0") or Path(skill_id).name != skill_id:
        raise RegistryError(f"Invalid skill record at position {position}: id {skill_id!r} is not a plain file name.")

    author = obj.get("author")
    return Skill(
        id=skill_id,
        name=obj["name"].strip(),
        description=obj["description"].strip(),
        requirement=SkillRequirement(library_name=obj["library"].strip(), version_range=obj["versionRange"].strip()),
        content_locator=obj["path"].strip(),
        author=author.strip() if isinstance(author, str) and author.strip() else None,
    )


def parse_index(raw: Any) -> SkillIndex:
    if not isinstance(raw, dict):
        raise RegistryError("Registry index must be a JSON object.")

    version = raw.get("version")
    if not isinstance(version, str) or not version.strip():
        raise RegistryError("Registry index has no version.")
    version = version.strip()
    major = version.lstrip("v").split(".", 1)[0]
    if major not in SUPPORTED_INDEX_MAJOR_VERSIONS:
        supported = ", ".join(sorted(SUPPORTED_INDEX_MAJOR_VERSIONS))
        raise RegistryError(f"Unsupported registry index version {version!r} (supported major versions: {supported}).")

    items = raw.get("skills")
    if not isinstance(items, list):
        raise RegistryError("Registry index has no skills list.")

    skills: list[Skill] = []
    seen: set[str] = set()
    for position, item in enumerate(items):
        skill = _parse_skill_obj(item, position=position)
        # Ids double as install filenames, so a duplicate would silently overwrite another skill.
        if skill.id in seen:
            raise RegistryError(f"Registry index is corrupt: duplicate skill id {skill.id!r}.")
        seen.add(skill.id)
        skills.append(skill)
    return SkillIndex(version=version, skills=tuple(skills))


class RegistryClient:
    """
    Reads the registry index and skill documents from an HTTP(S) base URL,
    a ``file://`` URL, or a local directory.
    """

    def __init__(self, *, registry_url: str = DEFAULT_REGISTRY_URL, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.timeout_s = timeout_s
        self._http = httpx.Client(timeout=timeout_s, follow_redirects=True)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "RegistryClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def index_url(self) -> str:
        return self.resolve(INDEX_FILENAME)

    def resolve(self, locator: str) -> str:
        if "://" in locator:
            return locator
        return f"{self.registry_url}/{locator.lstrip('/')}"

    def read_bytes(self, location: str) -> bytes:
        if not _is_remote(location):
            path = _local_path(location)
            logger.debug("Reading %s", path)
            try:
                return path.read_bytes()
            except OSError as e:
                raise RegistryError(f"Could not read {path}: {e}") from e

        logger.debug("GET %s", location)
        try:
            resp = self._http.get(location)
        except httpx.HTTPError as e:
            raise RegistryError(f"Request failed for {location}: {e}") from e
        if resp.status_code >= 400:
            raise RegistryHTTPError(resp.status_code, resp.text, location)
        return resp.content

    def read_text(self, location: str) -> str:
        data = self.read_bytes(location)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RegistryError(f"{location} is not valid UTF-8: {e}") from e

    def fetch_index(self) -> SkillIndex:
        url = self.index_url
        text = self.read_text(url)
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise RegistryError(f"Registry index at {url} is not valid JSON: {e}") from e
        index = parse_index(raw)
        logger.debug("Loaded %d skill(s) from %s (index version %s)", len(index.skills), url, index.version)
        return index

    def fetch_skill_content(self, skill: Skill) -> bytes:
        return self.read_bytes(self.resolve(skill.content_locator))
