import argparse
import functools
import logging
import sys
from collections.abc import Iterable
from pathlib import Path

import anyio
from anyio import to_thread
from rich.console import Console
from rich.markup import escape

from interfacegen._config import Config, find_config
from interfacegen._converter import converter
from interfacegen.exceptions import ConfigurationError
from interfacegen.generator import GenerationReport, InterfaceGenerator
from interfacegen.log import configure_logging

console = Console(stderr=True)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def main(argv: list[str] | None = None):
    sys.exit(run(argv))


def run(argv: list[str] | None = None) -> int:
    parser = _make_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, console=console)
    return args.handler(args)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="interfacegen",
        description="Generate typed accessor interfaces for managed-object classes.",
    )
    subparsers = parser.add_subparsers(required=True)

    generate = subparsers.add_parser(
        "generate",
        help="generate the interface files of the classes in PATH",
    )
    generate.add_argument(
        "paths",
        metavar="PATH",
        nargs="+",
        type=Path,
        help="source file, or directory searched for .py files",
    )
    generate.add_argument(
        "--config",
        type=Path,
        help="TOML file with the options (default: closest pyproject.toml)",
    )
    generate.add_argument(
        "--root",
        dest="roots",
        action="append",
        type=Path,
        default=[],
        help="directory where imported modules are looked up (repeatable)",
    )
    output = generate.add_mutually_exclusive_group()
    output.add_argument(
        "--stdout",
        action="store_true",
        help="print the interfaces instead of writing them",
    )
    output.add_argument(
        "--json",
        action="store_true",
        help="print a JSON report instead of writing the interfaces",
    )
    generate.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="number of files processed concurrently",
    )
    generate.add_argument("-v", "--verbose", action="store_true")
    generate.set_defaults(handler=generate_command)
    return parser


def generate_command(args: argparse.Namespace) -> int:
    try:
        config = Config.from_file(args.config) if args.config else find_config(Path.cwd())
    except ConfigurationError as e:
        console.print(f"[red]error:[/red] {escape(str(e))}")
        return EXIT_USAGE

    try:
        files = list(collect_sources(args.paths))
    except FileNotFoundError as e:
        console.print(f"[red]error:[/red] {escape(str(e))}")
        return EXIT_USAGE
    if args.jobs < 1:
        console.print("[red]error:[/red] --jobs must be at least 1")
        return EXIT_USAGE

    config.search_paths = search_paths_for(files, [*config.search_paths, *args.roots])

    sink = None
    if args.stdout or args.json:
        sink = _discard
    generator = InterfaceGenerator(config=config, sink=sink)

    reports = anyio.run(functools.partial(generate_all, generator, files, jobs=args.jobs))

    if args.json:
        sys.stdout.write(
            converter.dumps(reports, unstructure_as=list[GenerationReport], indent=2)
        )
        sys.stdout.write("\n")
    elif args.stdout:
        for report in reports:
            for outcome in report.generated:
                sys.stdout.write(outcome.text or "")

    _print_summary(reports, written=not (args.stdout or args.json))
    return EXIT_FAILED if any(r.failed for r in reports) else EXIT_OK


async def generate_all(
    generator: InterfaceGenerator,
    files: list[Path],
    *,
    jobs: int = 1,
) -> list[GenerationReport]:
    """Generate the interfaces of several files on worker threads.

    Reports are returned in the order of ``files``.
    """
    reports: list[GenerationReport | None] = [None] * len(files)
    limiter = anyio.CapacityLimiter(jobs)

    async def _generate(i: int, path: Path):
        reports[i] = await to_thread.run_sync(
            generator.generate_file, path, limiter=limiter
        )

    async with anyio.create_task_group() as tg:
        for i, path in enumerate(files):
            tg.start_soon(_generate, i, path)

    return [r for r in reports if r is not None]


def collect_sources(paths: Iterable[Path]) -> Iterable[Path]:
    """Expand directories into the Python files they contain."""
    for path in paths:
        if path.is_dir():
            yield from sorted(p for p in path.rglob("*.py") if p.is_file())
        elif path.is_file():
            yield path
        else:
            msg = f"No such file or directory: {path}"
            raise FileNotFoundError(msg)


def search_paths_for(files: Iterable[Path], roots: Iterable[Path]) -> list[Path]:
    """Add the directory of every file that isn't under one of the roots."""
    search_paths = [p.resolve() for p in roots]
    for path in files:
        path = path.resolve()
        if not any(path.is_relative_to(root) for root in search_paths):
            search_paths.append(path.parent)
    return search_paths


def _discard(source: Path, class_name: str, text: str) -> None:
    pass


def _print_summary(reports: list[GenerationReport], *, written: bool):
    # Errors and warnings have been logged already.
    generated = sum(len(r.generated) for r in reports)
    failed = sum(1 for r in reports if r.failed)
    verb = "Generated" if written else "Rendered"
    summary = f"{verb} {generated} interface(s) from {len(reports)} file(s)"
    if failed:
        console.print(f"[red]{summary}, {failed} file(s) with errors[/red]")
    else:
        console.print(f"[green]{summary}[/green]")
