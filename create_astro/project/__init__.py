"""Project materialisation -- sanitising, cleanup and manifest rewriting.

These stages run on an already-extracted template directory, in order:

    await sanitize_project(project_dir)
    report = await CleanupEngine(mode).clean(project_dir, keep_api=True)
    await update_manifest(project_dir, "my-astro-app")
"""

from create_astro.project.cleanup import CleanupEngine
from create_astro.project.ignore_patterns import BuiltinPatterns, IgnorePatternSet, RemotePatterns
from create_astro.project.manifest import rewrite_manifest, update_manifest
from create_astro.project.sanitizer import sanitize_files, sanitize_project

__all__ = [
    "BuiltinPatterns",
    "CleanupEngine",
    "IgnorePatternSet",
    "RemotePatterns",
    "rewrite_manifest",
    "sanitize_files",
    "sanitize_project",
    "update_manifest",
]
