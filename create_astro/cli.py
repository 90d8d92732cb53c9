"""Command-line entry point for ``create-astro-app``.

Usage::

    create-astro-app my-site
    create-astro-app my-site --ref v0.2.0 --no-api --pm pnpm -y
    python -m create_astro my-site --framework vue --no-install
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Sequence

from create_astro import __version__
from create_astro.config import SUPPORTED_FRAMEWORKS, ScaffoldConfig
from create_astro.errors import ValidationError
from create_astro.models import CleanupMode, PackageManager
from create_astro.pipeline import Scaffolder
from create_astro.utils import console, print_error, print_header


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-astro-app",
        description="Create a new Astro project with React and TypeScript",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Environment variables (used when the matching flag is absent):\n"
            "  CREATE_ASTRO_API=1|0        include / exclude API routes\n"
            "  CREATE_ASTRO_FRAMEWORK=...  framework subtree to use\n"
            "  CREATE_ASTRO_PM=npm|yarn|pnpm\n"
            "  CREATE_ASTRO_YES=1          accept defaults without prompting\n"
        ),
    )
    parser.add_argument("project_name", nargs="?", default=None, help="Name of the project")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--ref", default=None, help="Git reference (tag, branch, or commit) to use")
    parser.add_argument(
        "--framework",
        choices=SUPPORTED_FRAMEWORKS,
        default=None,
        help="Framework subtree of a multi-template archive",
    )
    parser.add_argument(
        "--pm",
        dest="package_manager",
        choices=[pm.value for pm in PackageManager],
        default=None,
        help="Package manager to use (detected when omitted)",
    )
    parser.add_argument("--api", action="store_true", help="Include API routes")
    parser.add_argument("--no-api", dest="no_api", action="store_true", help="Exclude API routes")
    parser.add_argument(
        "--yes", "-y", action="store_true", help="Auto accept defaults (non-interactive mode)"
    )
    parser.add_argument("--no-install", action="store_true", help="Skip dependency installation")
    parser.add_argument(
        "--no-cleanup",
        action="store_true",
        help="Skip cleanup of development files (for debugging)",
    )
    parser.add_argument(
        "--cleanup-mode",
        choices=[mode.value for mode in CleanupMode],
        default=None,
        help="Exact-name or glob-pattern cleanup (default depends on --framework)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``create-astro-app`` and ``python -m create_astro``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.api and args.no_api:
        parser.error("Cannot use both --api and --no-api flags")

    try:
        config = ScaffoldConfig.resolve(
            vars(args),
            env=os.environ,
            stdout_is_tty=sys.stdout.isatty(),
        )
    except ValidationError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    print_header(f"create-astro-app v{__version__}")
    try:
        result = asyncio.run(Scaffolder(config).run())
    except KeyboardInterrupt:
        console.print("[bold red]Operation cancelled[/bold red]")
        sys.exit(130)

    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
