import os
import platform
from flask import Blueprint, jsonify, Response

from lexcorpus import config
from lexcorpus.api import state
from lexcorpus.store.corpus import detect_capabilities, read_metadata
from lexcorpus.tools.sources import statistics

monitoring_bp = Blueprint('monitoring', __name__)


@monitoring_bp.route("/metrics", methods=["GET"])
def metrics():
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)


@monitoring_bp.route("/version", methods=["GET"])
def version():
    corpus_meta = None
    if state.corpus is not None:
        meta = read_metadata(state.corpus)
        corpus_meta = {
            "fingerprint": state.about_context.fingerprint if state.about_context else None,
            "built_at": meta.get('built_at'),
            "schema_version": meta.get('schema_version'),
            "tier": meta.get('tier'),
        }
    return jsonify({
        "version": config.APP_VERSION,
        "env": config.APP_ENV,
        "commit": os.getenv("GIT_COMMIT"),
        "python": platform.python_version(),
        "corpus": corpus_meta,
    })


@monitoring_bp.route("/api/version", methods=["GET"])
def api_version():
    return version()


@monitoring_bp.route("/api/health", methods=["GET"])
def health():
    if state.corpus is None:
        return jsonify({"status": "degraded", "corpus_loaded": False, "detail": state.load_error}), 200
    try:
        stats = statistics(state.corpus)
        return jsonify({
            "status": "ok",
            "corpus_loaded": True,
            "capabilities": sorted(detect_capabilities(state.corpus)),
            "statistics": stats,
        }), 200
    except Exception as e:
        return jsonify({"status": "error", "corpus_loaded": True, "detail": str(e)}), 500


@monitoring_bp.route("/api/health/ready", methods=["GET"])
def health_ready():
    """Readiness probe - the corpus is open and has documents."""
    checks = {
        'corpus_loaded': state.corpus is not None,
        'has_documents': state.corpus is not None and statistics(state.corpus)['documents'] > 0,
    }
    all_ready = all(checks.values())
    return jsonify({
        "ready": all_ready,
        "checks": checks
    }), 200 if all_ready else 503


@monitoring_bp.route("/api/health/live", methods=["GET"])
def health_live():
    """Liveness probe - minimal check that service is running."""
    return jsonify({"alive": True}), 200


@monitoring_bp.route("/api/stats/tools", methods=["GET"])
def tool_stats():
    return jsonify(dict(state.tool_stats))
