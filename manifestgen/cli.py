"""CLI entrypoints for manifestgen commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Sequence

from .config import ConfigError, ManifestGenConfig, load_config
from .gateway import GatewayError
from .logging import configure_logging
from .manifest import CatalogUnavailable, FileWriteError, ManifestDocument
from .orchestrator import Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project directory holding .manifestgen.yml (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manifestgen",
        description="Inventory org metadata and build package manifests.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        help="Also write a DEBUG-level run log to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Generate a package.xml covering every component in the org.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_path_argument(build_parser)
    build_parser.add_argument(
        "-x",
        "--excludemanaged",
        action="store_true",
        default=None,
        help="Leave out components that belong to installed managed packages.",
    )
    build_parser.add_argument(
        "-a",
        "--apiversion",
        help="Metadata API version (defaults to the newest version the org supports).",
    )
    build_parser.add_argument(
        "-q",
        "--quickfilter",
        help="Comma separated metadata types to include (defaults to all types).",
    )
    build_parser.add_argument(
        "-f",
        "--outputfile",
        help="Where to write the manifest (defaults to package.xml).",
    )

    fields_parser = subparsers.add_parser(
        "fields",
        help="Check whether fields exist in the org.",
    )
    _add_verbose_option(fields_parser, suppress_default=True)
    # Field names are positional, so the project directory is an option here.
    fields_parser.add_argument(
        "-p",
        "--path",
        default=".",
        help="Project directory holding .manifestgen.yml (defaults to current directory).",
    )
    fields_parser.add_argument(
        "names",
        nargs="+",
        help="Fields to check, written as Object.Field.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for manifestgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(
            verbose=bool(args.verbose),
            log_file=Path(args.log_file) if args.log_file else None,
        )
    except OSError as exc:
        parser.exit(1, f"Unable to open log file {args.log_file}: {exc}\n")

    try:
        config = load_config(Path(args.path))
        orchestrator = Orchestrator.from_config(config)
    except (ConfigError, GatewayError) as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "build":
        try:
            document = asyncio.run(_run_build(orchestrator, _build_flags(args), config))
        except (CatalogUnavailable, FileWriteError) as exc:
            parser.exit(1, f"manifestgen build failed: {exc}\nRun with --verbose for more details.\n")
        except Exception as exc:  # pragma: no cover
            parser.exit(1, f"manifestgen build failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Manifest with {len(document.types)} types written to {_relativize(document.path)}")
    elif args.command == "fields":
        try:
            results = asyncio.run(_run_fields(orchestrator, args.names))
        except GatewayError as exc:
            parser.exit(1, f"manifestgen fields failed: {exc}\n")
        for name, exists in results.items():
            print(f"{name}: {'found' if exists else 'missing'}")
        if not all(results.values()):
            parser.exit(2)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _build_flags(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "excludemanaged": args.excludemanaged,
        "apiversion": args.apiversion,
        "quickfilter": args.quickfilter,
        "outputfile": args.outputfile,
    }


async def _run_build(
    orchestrator: Orchestrator, flags: Dict[str, Any], config: ManifestGenConfig
) -> ManifestDocument:
    async with orchestrator:
        return await orchestrator.build_manifest(flags, config.manifest)


async def _run_fields(orchestrator: Orchestrator, names: Sequence[str]) -> Dict[str, bool]:
    async with orchestrator:
        return await orchestrator.check_fields(names)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
