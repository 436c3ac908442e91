"""Command line entry point: ``kcd-bilingual``."""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DEFAULT_MAX_WORKERS, DEFAULT_PAIRS_FILE, GeneratorSettings
from .errors import BilingualGeneratorError, GenerationFailed
from .generator import generate_bilingual_resources
from .pathfinder import find_game_path, validate_game_path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(message)s"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="kcd-bilingual",
        description="Build bilingual localization paks for Kingdom Come: Deliverance II.",
    )
    parser.add_argument(
        "--game-path",
        type=Path,
        help="Game installation directory. Detected from Steam/GOG when omitted.",
    )
    parser.add_argument(
        "--working-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory that receives bilingual_xml/ (default: current directory).",
    )
    parser.add_argument(
        "--pairs-file",
        type=Path,
        help=f"Bilingual set file, one Primary+Secondary per line (default: <working-dir>/{DEFAULT_PAIRS_FILE.as_posix()}).",
    )
    parser.add_argument("--max-workers", type=int, default=DEFAULT_MAX_WORKERS)
    parser.add_argument(
        "--no-progress",
        action="store_false",
        dest="show_progress",
        help="Hide the progress bars.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more (-v info, -vv debug).",
    )
    parser.add_argument("--log-file", type=Path, help="Also write the log to this file.")
    args = parser.parse_args(argv)
    if args.max_workers < 1:
        parser.error("--max-workers must be at least 1")
    return args


def setup_logging(verbosity: int, log_file: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def build_settings(args: argparse.Namespace) -> GeneratorSettings:
    game_path = args.game_path if args.game_path else find_game_path()
    return GeneratorSettings(
        game_path=validate_game_path(game_path),
        working_dir=args.working_dir,
        max_workers=args.max_workers,
        show_progress=args.show_progress,
        pairs_file=args.pairs_file,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    start = time.perf_counter()
    try:
        settings = build_settings(args)
        print(f"Game location: {settings.game_path}")
        messages = generate_bilingual_resources(settings)
    except GenerationFailed as exc:
        for message in exc.completed:
            print(message)
        print(f"\n❌ Error: {exc}")
        if len(exc.errors) > 1:
            print(f"   ({len(exc.errors) - 1} more error(s) in the log)")
        return 1
    except BilingualGeneratorError as exc:
        print(f"\n❌ Error: {exc}")
        return 1

    for message in messages:
        print(message)
    print(f"\n✅ Completed in {time.perf_counter() - start:.2f} seconds")
    return 0
