"""Report whether the corpus database needs a rebuild.

Exit codes: 0 fresh, 1 updates detected, 2 check failed.
"""
import argparse
import logging
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from lexcorpus import config  # noqa: E402
from lexcorpus.store.freshness import EXIT_FAILED, check_freshness  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("check_updates")


def main() -> int:
    parser = argparse.ArgumentParser(description="Check corpus freshness")
    parser.add_argument("--db", default=config.CORPUS_DB_PATH)
    parser.add_argument("--census", default=config.CENSUS_PATH)
    parser.add_argument("--max-age-days", type=int, default=config.MAX_DB_AGE_DAYS)
    parser.add_argument("--no-portal", action="store_true", help="Skip the source portal reachability check")
    args = parser.parse_args()

    try:
        report = check_freshness(
            db_path=args.db,
            census_path=args.census,
            portal_url=None if args.no_portal else config.SOURCE_PORTAL_URL,
            max_age_days=args.max_age_days,
        )
    except Exception as e:
        logger.error(f"Freshness check failed: {e}")
        return EXIT_FAILED

    for line in report.messages:
        print(line)
    print(f"Documents: {report.documents}, provisions: {report.provisions}")
    if report.exit_code == EXIT_FAILED:
        print("Check failed.")
    elif report.updates_needed:
        print("Updates detected.")
    else:
        print("Corpus is current.")
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
