"""Rewrite ``package.json`` with the new project's name."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from create_astro.errors import ManifestError
from create_astro.utils import print_failure, print_success, spinner

MANIFEST_NAME = "package.json"


def dump_manifest(data: dict[str, Any]) -> str:
    """Serialise like ``JSON.stringify(data, null, 2)`` plus a newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def rewrite_manifest(project_dir: Path, project_name: str) -> Path:
    """Set the ``name`` field of *project_dir*/package.json.

    Key order and every other field are preserved.  The file is written as
    UTF-8 without a byte-order mark.

    Raises:
        ManifestError: If the file is missing, unreadable, or not a JSON object.
    """
    path = project_dir / MANIFEST_NAME
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        raise ManifestError(f"{MANIFEST_NAME} not found in {project_dir}") from None
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Cannot read {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"{MANIFEST_NAME} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{MANIFEST_NAME} must contain a JSON object")

    data["name"] = project_name
    try:
        path.write_text(dump_manifest(data), encoding="utf-8", newline="\n")
    except OSError as exc:
        raise ManifestError(f"Cannot write {path}: {exc}") from exc
    return path


async def update_manifest(project_dir: Path, project_name: str) -> Path:
    with spinner(f"Updating {MANIFEST_NAME}..."):
        try:
            path = await asyncio.to_thread(rewrite_manifest, project_dir, project_name)
        except ManifestError:
            print_failure(f"Failed to update {MANIFEST_NAME}")
            raise
    print_success(f"{MANIFEST_NAME} updated")
    return path
