"""Fetch and parse statutes into seed JSON files (data/seed/<id>.json).

Acts come from data/census.json (entries classified ``ingestable``); without a
census the built-in list of key acts is used.

Usage:
    python scripts/ingest.py                 # fetch + parse everything
    python scripts/ingest.py --limit 5       # first 5 acts only
    python scripts/ingest.py --skip-fetch    # reuse cached HTML and seeds
    python scripts/ingest.py --resume        # skip acts that already have a seed

Ctrl-C stops after the current document; seeds written so far are kept.
"""
import argparse
import logging
import os
import signal
import sys
import threading

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from lexcorpus import config  # noqa: E402
from lexcorpus.ingest.census import load_act_list  # noqa: E402
from lexcorpus.ingest.pipeline import IngestOptions, run_ingest  # noqa: E402

os.makedirs(config.LOG_DIR, exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(os.path.join(config.LOG_DIR, "ingest.log"), encoding="utf-8"),
    ]
)
logger = logging.getLogger("ingest")


def main():
    parser = argparse.ArgumentParser(description="Ingest statutes into seed files")
    parser.add_argument("--limit", type=int, default=None, help="Process at most N acts")
    parser.add_argument("--skip-fetch", action="store_true", help="Reuse cached HTML in data/source and cached seeds")
    parser.add_argument("--resume", action="store_true", help="Skip acts that already have a seed file")
    parser.add_argument("--census", default=config.CENSUS_PATH, help="Census JSON path")
    parser.add_argument("--seed-dir", default=config.SEED_DIR)
    parser.add_argument("--source-dir", default=config.SOURCE_DIR)
    args = parser.parse_args()

    stop_event = threading.Event()

    def _on_sigint(signum, frame):
        if stop_event.is_set():
            raise KeyboardInterrupt
        logger.warning("Interrupt received; finishing current document (Ctrl-C again to abort)")
        stop_event.set()

    signal.signal(signal.SIGINT, _on_sigint)

    acts = load_act_list(args.census)
    opts = IngestOptions(
        limit=args.limit,
        skip_fetch=args.skip_fetch,
        resume=args.resume,
        source_dir=args.source_dir,
        seed_dir=args.seed_dir,
        census_path=args.census,
    )
    stats = run_ingest(acts, opts, stop_event=stop_event)
    logger.info(
        f"Done: {stats.processed} processed, {stats.resumed} resumed, {stats.cached} cached, "
        f"{stats.failed} failed; {stats.total_provisions} provisions, {stats.total_definitions} definitions"
    )
    if stats.interrupted:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
