"""Command-line interface for the SFX categorizer.

Each subcommand delegates to :class:`sfx_categorizer.engine.CategorizerEngine`
or one of its collaborators and prints JSON (or plain text for ``tree``).
Run ``python -m sfx_categorizer --help`` for usage.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .category_tree import build_category_tree, render_tree
from .config_service import ConfigService
from .engine import CategorizerEngine
from .overrides_service import OverridesStore
from .rule_classifier import RuleBasedClassifier


def _parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sfx-categorizer",
        description="Categorize a sound-effects library by filename and folder conventions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_portable(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--portable",
            "-p",
            action="store_true",
            help="Force portable mode (ignored if portable.flag is present)",
        )

    # scan
    sp = subparsers.add_parser("scan", help="Classify every audio file under a library root")
    sp.add_argument("root", help="Path to the library root")
    sp.add_argument("--workers", "-w", type=int, default=None, help="Worker threads for the rule pass")
    sp.add_argument("--no-similarity", action="store_true", help="Skip the similarity pass")
    sp.add_argument("--output", "-o", default=None, help="Write the JSON report to this file instead of stdout")
    sp.add_argument("--verbose", action="store_true", help="Print progress lines while scanning")
    add_portable(sp)
    # infer
    sp = subparsers.add_parser("infer", help="Classify a single path with the rule pass")
    sp.add_argument("path", help="File path (the file does not need to exist)")
    sp.add_argument("--explain", action="store_true", help="Include every rule that fired")
    # tree
    sp = subparsers.add_parser("tree", help="Print the category tree of a library")
    sp.add_argument("root", help="Path to the library root")
    sp.add_argument("--no-similarity", action="store_true", help="Skip the similarity pass")
    add_portable(sp)
    # override
    sp = subparsers.add_parser("override", help="Set or clear a manual category for one file")
    sp.add_argument("root", help="Path to the library root")
    sp.add_argument("key", help="Root-relative file path, '/' separated")
    sp.add_argument("category", nargs="?", default=None, help="Manual category; omit to clear")
    return parser.parse_args(argv)


def _construct_engine(root: Path, portable: bool) -> CategorizerEngine:
    config_service = ConfigService(app_dir=root)
    config = config_service.load_config(cli_portable=portable)
    return CategorizerEngine(library_root=root, config=config)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_arguments(argv)
    command = args.command

    if command == "infer":
        classifier = RuleBasedClassifier()
        if args.explain:
            result = classifier.explain(args.path)
        else:
            classification = classifier.infer(args.path)
            result = {
                "path": args.path,
                "tier1": classification.tier1,
                "tier2": classification.tier2,
                "category": classification.category,
                "confidence": classification.confidence,
            }
        print(json.dumps(result, indent=2))
        return 0

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        print(f"Error: library root does not exist: {root}")
        return 1

    if command == "override":
        store = OverridesStore(root)
        store.set_manual(args.key, args.category)
        print(json.dumps({"key": args.key, "manual_category": store.get_manual(args.key)}, indent=2))
        return 0

    engine = _construct_engine(root, bool(args.portable))
    if command == "scan":
        report = engine.run(
            workers=args.workers,
            similarity_enabled=False if args.no_similarity else None,
            log_to_console=bool(args.verbose),
        )
        text = json.dumps(report, indent=2)
        if args.output:
            out_path = Path(args.output).expanduser()
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(text, encoding="utf-8")
            print(f"Report written to {out_path}")
        else:
            print(text)
        return 0

    if command == "tree":
        report = engine.run(similarity_enabled=False if args.no_similarity else None, log_to_console=False)
        tree = build_category_tree(entry["category"] for entry in report["items"])
        for line in render_tree(tree):
            print(line)
        return 0

    print(f"Error: unrecognized command {command}")
    return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
