"""Build the SQLite corpus (data/database.db) from seed files.

Usage:
    python scripts/build_corpus.py
    python scripts/build_corpus.py --seed-dir data/seed --out data/database.db
"""
import argparse
import json
import logging
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from lexcorpus import config  # noqa: E402
from lexcorpus.store.builder import build_corpus  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("build_corpus")


def main():
    parser = argparse.ArgumentParser(description="Build the statute corpus database from seeds")
    parser.add_argument("--seed-dir", default=config.SEED_DIR, help="Directory of <id>.json seed files")
    parser.add_argument("--out", default=config.CORPUS_DB_PATH, help="Output database path")
    args = parser.parse_args()

    stats = build_corpus(args.seed_dir, args.out)
    print(json.dumps(stats.to_dict(), indent=2))


if __name__ == "__main__":
    main()
