"""lexmerge CLI - keep Hunspell word lists counted and sorted.

Usage:
    python -m lexmerge.main add --dic pt_BR.dic --aff pt_BR.aff borogodó
    python -m lexmerge.main merge --dic words.dic --locale pt_BR.UTF-8 mango kiwi
    python -m lexmerge.main merge --dic words.dic --dedup
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from . import config as cfg
from .errors import LexmergeError
from .schema import UpdateStats
from .session import SpellSession
from .updater import update_dictionary


def build_parser() -> argparse.ArgumentParser:
    defaults = cfg.load().get("defaults", cfg.FALLBACK_DEFAULTS)

    parser = argparse.ArgumentParser(
        description="lexmerge - keep Hunspell word lists counted and sorted"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--json", action="store_true", help="Print update statistics as JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--dic", type=Path, required=True, help="Dictionary (.dic) file")
    common.add_argument(
        "--encoding",
        "-e",
        default=defaults.get("encoding", "utf-8"),
        help=f"Dictionary encoding (default: {defaults.get('encoding', 'utf-8')})",
    )
    common.add_argument(
        "--locale",
        "-l",
        default=defaults.get("locale"),
        help="Collation locale, e.g. pt_BR.UTF-8 (default: code point order)",
    )
    common.add_argument(
        "--max-tmp-files",
        type=int,
        default=defaults.get("max_tmp_files", 1024),
        help="Upper bound on temporary sort batch files",
    )
    common.add_argument("--tmp-dir", default=defaults.get("tmp_dir"), help="Directory for sort batches")
    common.add_argument("words", nargs="*", help="Words to add")

    add = sub.add_parser("add", parents=[common], help="Add words through a spell engine")
    add.add_argument("--aff", type=Path, required=True, help="Affix (.aff) file")
    add.add_argument(
        "--engine",
        default=defaults.get("engine", "hunspell"),
        help=f"Spell engine (default: {defaults.get('engine', 'hunspell')})",
    )

    merge = sub.add_parser("merge", parents=[common], help="Add words to the file directly")
    merge.add_argument(
        "--dedup",
        action="store_true",
        default=defaults.get("dedup", False),
        help="Drop entries that collate equal",
    )
    return parser


def run_add(args: argparse.Namespace) -> UpdateStats:
    """Open a session, add the words it does not know yet, persist them."""
    with SpellSession(
        args.dic,
        args.aff,
        encoding=args.encoding,
        locale_name=args.locale,
        engine=args.engine,
        max_tmp_files=args.max_tmp_files,
        tmp_dir=args.tmp_dir,
    ) as session:
        for word in args.words:
            if session.spell(word):
                status = "already known"
            else:
                session.add(word)
                status = "added"
            if not args.json:
                print(f"  {word}: {status}")
        return session.update_dictionary()


def run_merge(args: argparse.Namespace) -> UpdateStats:
    return update_dictionary(
        args.dic,
        args.words,
        encoding=args.encoding,
        locale_name=args.locale,
        dedup=args.dedup,
        max_tmp_files=args.max_tmp_files,
        tmp_dir=args.tmp_dir,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.json:
        print(f"Dictionary: {args.dic}")

    try:
        if args.command == "add":
            stats = run_add(args)
        else:
            stats = run_merge(args)
    except LexmergeError as e:
        print(f"ERROR - {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(stats.to_dict(), indent=2))
    else:
        print(f"  Entries: {stats.previous_count:,} -> {stats.final_count:,}")
        print(f"  Added: {stats.added:,}")
        if stats.duplicates_dropped:
            print(f"  Duplicates dropped: {stats.duplicates_dropped:,}")
        print(f"  Sort batches: {stats.batches}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
