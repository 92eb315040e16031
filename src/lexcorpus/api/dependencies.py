import logging
import os
import time
from typing import Optional

from flask import jsonify, request

from lexcorpus import config
from lexcorpus.api import state
from lexcorpus.store.corpus import open_corpus
from lexcorpus.tools.sources import AboutContext

logger = logging.getLogger("api")


def load_corpus(db_path: Optional[str] = None) -> bool:
    """Open the corpus database and publish it in ``state``.

    A missing or unreadable database leaves ``state.corpus`` as None so the
    app can still start; tool calls then answer 503.
    """
    path = db_path or config.CORPUS_DB_PATH
    unload_corpus()
    state.corpus_path = path
    if not os.path.exists(path):
        state.load_error = f"corpus database not found at {path}"
        logger.warning(f"[api] Corpus database not found at {path}; run scripts/build_corpus.py")
        return False
    try:
        state.corpus = open_corpus(path)
        state.about_context = AboutContext.for_corpus(state.corpus, config.APP_VERSION)
        state.load_error = None
        logger.info(f"[api] Loaded corpus from {path} (fingerprint {state.about_context.fingerprint})")
        return True
    except Exception as e:
        state.corpus = None
        state.about_context = None
        state.load_error = str(e)
        logger.error(f"Failed to load corpus: {e}")
        return False


def unload_corpus() -> None:
    if state.corpus is not None:
        state.corpus.close()
    state.corpus = None
    state.about_context = None


def require_api_key():
    if config.API_KEY:
        key = request.headers.get("X-API-Key", "")
        if key != config.API_KEY:
            return jsonify({"error": "Unauthorized"}), 401
    return None


def record_tool_call(name: str, is_error: bool) -> None:
    state.tool_stats['total_calls'] = int(state.tool_stats.get('total_calls') or 0) + 1
    state.tool_stats['last_call_time'] = time.time()
    if is_error:
        state.tool_stats['errors'] = int(state.tool_stats.get('errors') or 0) + 1
    try:
        if state.TOOL_CALLS:
            state.TOOL_CALLS.labels(name, 'error' if is_error else 'ok').inc()
    except Exception as e:
        logger.debug(f"tool metric update failed: {e}")
