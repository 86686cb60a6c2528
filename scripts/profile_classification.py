from __future__ import annotations

import argparse
import cProfile
import pstats
import sys
import time
from pathlib import Path


def _build_engine(library_root: Path, min_corpus_size: int):
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root / "src"))

    from sfx_categorizer.engine import CategorizerEngine

    return CategorizerEngine(library_root=library_root, config={}, min_corpus_size=min_corpus_size)


def main() -> int:
    parser = argparse.ArgumentParser(description="Profile both classification passes on a library folder.")
    parser.add_argument("--root", type=Path, required=True, help="Library root to scan recursively")
    parser.add_argument("--limit", type=int, default=0, help="Max audio files to classify (0 = all)")
    parser.add_argument("--workers", type=int, default=1, help="Worker threads")
    parser.add_argument("--min-corpus-size", type=int, default=200, help="Minimum training corpus for the similarity pass")
    parser.add_argument("--profile", action="store_true", help="Enable cProfile and print top cumulative functions")
    parser.add_argument("--stats", type=int, default=30, help="Number of cProfile rows to print")
    parser.add_argument("--sort", default="cumulative", help="cProfile sort key (default: cumulative)")
    args = parser.parse_args()

    library_root = args.root.resolve()
    if not library_root.exists():
        print(f"error: library root not found: {library_root}", file=sys.stderr)
        return 2

    engine = _build_engine(library_root, args.min_corpus_size)
    paths = engine._collect_audio_files()
    if args.limit and args.limit > 0:
        paths = paths[: args.limit]
    if not paths:
        print("error: no audio files found", file=sys.stderr)
        return 3

    print(f"library_root={library_root}")
    print(f"audio_files={len(paths)}")
    print(f"workers={args.workers}")
    print(f"profile={args.profile}")

    prof = cProfile.Profile() if args.profile else None
    if prof is not None:
        prof.enable()

    start = time.perf_counter()
    items = engine.classify_paths(paths, workers=args.workers)
    rules_elapsed = time.perf_counter() - start

    start = time.perf_counter()
    stats = engine.run_similarity_pass(items, workers=args.workers)
    similarity_elapsed = time.perf_counter() - start

    if prof is not None:
        prof.disable()

    print(f"rules_seconds={rules_elapsed:.3f}")
    print(f"rules_ms_per_file={(rules_elapsed * 1000.0) / len(paths):.3f}")
    print(f"similarity_seconds={similarity_elapsed:.3f}")
    print(f"similarity_corpus={stats.get('corpus_size', 0)} targets={stats.get('targets', 0)} updated={stats.get('updated', 0)}")
    if stats.get("skipped"):
        print(f"similarity_skipped={stats.get('skip_reason', '')}")

    if prof is not None:
        profile_stats = pstats.Stats(prof)
        profile_stats.sort_stats(args.sort).print_stats(args.stats)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
