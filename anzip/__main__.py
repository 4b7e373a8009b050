"""
Copyright 2025 DNAi inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

from __future__ import annotations

"""
Command-line interface for ANZIP (``anzip``).

Supported commands (via ``python -m anzip``):

- ``create``  : Create a stored (uncompressed) archive from files and directories
- ``list``    : List entries in an archive
- ``inspect`` : Dump the record layout of an archive
- ``verify``  : Check headers and CRC-32 of every entry

Example usages:

    python -m anzip create archive.zip data notes.txt
    python -m anzip list archive.zip
    python -m anzip verify archive.zip
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from . import AnZip, __version__
from .debug import dump_zip_structure, read_central_directory, verify_zip_structure
from .errors import ZipError
from .utils import format_size

logger = logging.getLogger(__name__)


def _print_error(message: str, exit_code: int = 1, suggestion: Optional[str] = None) -> None:
    """Print an error message to stderr and exit with the given code.

    Args:
        message: Error message to display.
        exit_code: Exit code to use.
        suggestion: Optional suggestion to help the user resolve the error.
    """
    sys.stderr.write(f"anzip: {message}\n")
    if suggestion:
        sys.stderr.write(f"anzip: Suggestion: {suggestion}\n")
    sys.exit(exit_code)


def _iter_paths_for_create(sources: Iterable[Path], include_dirs: bool = True) -> List[tuple[str, Optional[Path]]]:
    """
    Collect (name_in_zip, source_path) pairs for everything under *sources*.

    - Directories are walked recursively.
    - Paths are relative to the common parent of all sources.
    - With *include_dirs*, directories are listed too (source_path None),
      so empty directories survive.
    """
    normalized: List[Path] = [p.resolve() for p in sources]
    if not normalized:
        return []

    base = normalized[0].parent
    for p in normalized[1:]:
        base = Path(os.path.commonpath([base, p.parent]))

    results: List[tuple[str, Optional[Path]]] = []

    for src in normalized:
        if src.is_dir():
            for root, dirs, files in os.walk(src):
                dirs.sort()
                root_path = Path(root)
                if include_dirs:
                    rel = root_path.relative_to(base)
                    results.append((str(rel).replace(os.sep, "/") + "/", None))
                for filename in sorted(files):
                    file_path = root_path / filename
                    rel = file_path.relative_to(base)
                    results.append((str(rel).replace(os.sep, "/"), file_path))
        else:
            rel = src.relative_to(base)
            results.append((str(rel).replace(os.sep, "/"), src))

    return results


def _cmd_create(archive: Path, sources: List[Path], include_dirs: bool = True, quiet: bool = False) -> None:
    """Create *archive* from the given list of source paths."""
    if archive.exists():
        _print_error(f"Refusing to overwrite existing archive: {archive}", exit_code=2)

    missing = [str(p) for p in sources if not p.exists()]
    if missing:
        _print_error(f"Source not found: {', '.join(missing)}", exit_code=2)

    items = _iter_paths_for_create(sources, include_dirs=include_dirs)
    if not items:
        _print_error("No files found to add to archive", exit_code=2)

    builder = AnZip()
    for name_in_zip, src_path in items:
        if src_path is None:
            builder.add(name_in_zip)
        else:
            builder.add_file(name_in_zip, src_path)
        logger.debug("Added %s", name_in_zip)

    data = builder.zip_sync(close=True)
    archive.write_bytes(data)

    if not quiet:
        print(
            f"Created {archive}: {builder.count()} files, {builder.count(all=True)} entries, "
            f"{format_size(len(data))}"
        )


def _cmd_list(archive: Path) -> None:
    """List all entries in an archive, one per line."""
    for header in read_central_directory(archive):
        print(header.name)


def _cmd_inspect(archive: Path) -> None:
    """Print the record layout of an archive."""
    print(dump_zip_structure(archive))


def _cmd_verify(archive: Path) -> None:
    """Verify an archive and exit non-zero when it is broken."""
    ok, errors = verify_zip_structure(archive)
    for error in errors:
        print(error)
    if not ok:
        _print_error(f"{archive} failed verification ({len(errors)} problems)", exit_code=1)
    print(f"{archive}: OK")


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="anzip",
        description="ANZIP - incremental builder for uncompressed ZIP archives.",
    )
    parser.add_argument("--version", action="version", version=f"anzip {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # create
    p_create = subparsers.add_parser("create", help="Create a stored archive from files and directories")
    p_create.add_argument("archive", type=Path, help="Path of the archive to write")
    p_create.add_argument("sources", type=Path, nargs="+", help="Files and directories to add")
    p_create.add_argument(
        "--no-dirs",
        action="store_true",
        help="Do not add explicit directory entries (empty directories are skipped)",
    )
    p_create.add_argument("-q", "--quiet", action="store_true", help="Suppress the summary line")

    # list
    p_list = subparsers.add_parser("list", help="List entries in an archive")
    p_list.add_argument("archive", type=Path, help="Path to the ZIP archive")

    # inspect
    p_inspect = subparsers.add_parser("inspect", help="Dump the record layout of an archive")
    p_inspect.add_argument("archive", type=Path, help="Path to the ZIP archive")

    # verify
    p_verify = subparsers.add_parser("verify", help="Check headers and CRC-32 of every entry")
    p_verify.add_argument("archive", type=Path, help="Path to the ZIP archive")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the ANZIP CLI.

    This function is invoked when running:

        python -m anzip ...

    or, through the console script, via:

        anzip ...
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "create":
            _cmd_create(args.archive, args.sources, include_dirs=not args.no_dirs, quiet=args.quiet)
        elif args.command == "list":
            _cmd_list(args.archive)
        elif args.command == "inspect":
            _cmd_inspect(args.archive)
        elif args.command == "verify":
            _cmd_verify(args.archive)
    except FileNotFoundError as e:
        suggestion = "Check that the file exists and the path is correct."
        _print_error(f"File not found: {e.filename or e}", exit_code=2, suggestion=suggestion)
    except PermissionError as e:
        _print_error(f"Permission denied: {e.filename or e}", exit_code=2)
    except ZipError as e:
        _print_error(str(e), exit_code=1)
    except KeyboardInterrupt:
        _print_error("Interrupted by user", exit_code=130)


if __name__ == "__main__":
    main()
