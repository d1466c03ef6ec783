from __future__ import annotations

from pathlib import Path

from .models import Target, TargetKind

# kind -> (assistant directory, skills directory inside it)
TARGET_LAYOUT: dict[TargetKind, tuple[str, str]] = {
    TargetKind.PRIMARY_ASSISTANT: (".cursor", "skills"),
    TargetKind.SECONDARY_ASSISTANT: (".claude", "skills"),
}


def detect_targets(project_dir: Path) -> list[Target]:
    """
    Every known target is returned, whether or not its directory exists yet.
    Only existence is checked here; directories are created at install time.
    """
    root = Path(project_dir).expanduser()
    targets: list[Target] = []
    for kind, (assistant_dir, skills_dir) in TARGET_LAYOUT.items():
        base = root / assistant_dir
        targets.append(Target(kind=kind, path=base / skills_dir, preexisting=base.is_dir()))
    return targets


def target_display_name(target: Target) -> str:
    assistant_dir, skills_dir = TARGET_LAYOUT[target.kind]
    return f"{assistant_dir}/{skills_dir}/"
