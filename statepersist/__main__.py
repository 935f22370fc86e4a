"""CLI for inspecting and repairing persisted state files.

Usage:
    python -m statepersist inspect data/state.json
    python -m statepersist stamp data/state.json --version 3
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.pretty import Pretty

from statepersist.codec import VersionedCodec
from statepersist.config import PersistSettings
from statepersist.errors import PersistError
from statepersist.storage import FileStorage

logger = logging.getLogger(__name__)


def _storage(path: str | None, settings: PersistSettings) -> FileStorage:
    if path is None:
        return FileStorage.from_settings(settings)
    return FileStorage(path, encoding=settings.encoding, atomic=settings.atomic_writes)


async def _inspect(storage: FileStorage, console: Console) -> int:
    raw = await storage.load()
    if not raw:
        console.print(f"[yellow]Nothing persisted at {storage.path}[/yellow]")
        return 0

    envelope = VersionedCodec().decode(raw)
    console.print(f"[bold]File:[/bold] {storage.path}")
    console.print(f"[bold]Version:[/bold] {envelope.version}")
    console.print("[bold]State:[/bold]")
    console.print(Pretty(envelope.state))
    return 0


async def _stamp(storage: FileStorage, version: int, settings: PersistSettings, console: Console) -> int:
    raw = await storage.load()
    if not raw:
        console.print(f"[red]Nothing persisted at {storage.path}[/red]")
        return 1

    envelope = VersionedCodec().decode(raw)
    # State is already plain JSON data, re-encode it untouched
    content = VersionedCodec(encoder=lambda s: s, indent=settings.indent).encode(envelope.state, version)
    await storage.save(content)
    logger.info(f"Re-stamped {storage.path}: {envelope.version} -> {version}")
    console.print(f"[green]Version {envelope.version} -> {version}[/green]")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="statepersist",
        description="Inspect and repair persisted state envelopes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    inspect_parser = subparsers.add_parser("inspect", help="Show version and state of a file")
    inspect_parser.add_argument(
        "path", nargs="?", help="State file (default: STATEPERSIST_STORAGE_PATH)"
    )

    stamp_parser = subparsers.add_parser("stamp", help="Rewrite the version tag of a file")
    stamp_parser.add_argument(
        "path", nargs="?", help="State file (default: STATEPERSIST_STORAGE_PATH)"
    )
    stamp_parser.add_argument("--version", type=int, required=True, help="New version tag")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    console = Console()
    settings = PersistSettings()
    storage = _storage(args.path, settings)

    try:
        if args.command == "inspect":
            return asyncio.run(_inspect(storage, console))
        return asyncio.run(_stamp(storage, args.version, settings, console))
    except PersistError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1
    except OSError as e:
        console.print(f"[red]Error reading {storage.path}:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
