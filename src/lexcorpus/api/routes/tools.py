from flask import Blueprint, request, jsonify
from flasgger import swag_from
from werkzeug.exceptions import BadRequest
from pydantic import ValidationError

from lexcorpus.api import state, dependencies, models
from lexcorpus.api.extensions import limiter
from lexcorpus.tools import registry

tools_bp = Blueprint('tools', __name__)


@tools_bp.route("/api/tools", methods=["GET"])
@swag_from({
    'tags': ['tools'],
    'responses': {200: {'description': 'Tool descriptors with JSON input schemas'}}
})
def list_tools():
    tools = registry.list_tools(state.corpus, state.about_context)
    return jsonify({"tools": tools, "count": len(tools)})


@tools_bp.route("/api/tools/<name>", methods=["POST"])
@limiter.limit("60/minute")
@swag_from({
    'tags': ['tools'],
    'consumes': ['application/json'],
    'parameters': [
        {'name': 'name', 'in': 'path', 'type': 'string', 'required': True},
        {
            'name': 'body', 'in': 'body', 'required': False,
            'schema': {'type': 'object', 'properties': {'arguments': {'type': 'object'}}}
        },
    ],
    'responses': {
        200: {'description': 'Tool envelope ({content, isError})'},
        404: {'description': 'Unknown tool'},
        503: {'description': 'No corpus loaded'},
    }
})
def call_tool(name):
    auth = dependencies.require_api_key()
    if auth:
        return auth
    spec = registry.get_tool(name)
    if spec is None:
        return jsonify({"error": "unknown_tool", "tool": name}), 404
    if spec.needs_corpus and state.corpus is None:
        return jsonify({"error": "corpus_unavailable", "detail": state.load_error}), 503

    raw = request.get_json(silent=True)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise BadRequest("Body must be a JSON object")
    try:
        parsed = models.ToolCallRequest.from_body(raw)
    except ValidationError as ve:
        return jsonify({"error": "validation_failed", "details": ve.errors()}), 400

    result = registry.call_tool(state.corpus, name, parsed.arguments, state.about_context)
    dependencies.record_tool_call(name, result['isError'])
    return jsonify(result)
