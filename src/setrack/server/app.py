"""setrack.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: payloads are shaped by
``setrack.server.payloads`` and all storage logic lives in
``ProjectRepository``. Repository errors map to status codes here:

    ValidationError -> 400, NotFoundError -> 404, ConflictError -> 409,
    anything else   -> 500

Error bodies are ``{"detail": "<message>"}``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from flask import Flask, Response, jsonify, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from setrack.config import DEFAULT_CONFIG, merge_configs, resolve_config_path
from setrack.errors import ConflictError, NotFoundError, ValidationError
from setrack.server.payloads import (
    normalize_project_create,
    normalize_project_update,
    normalize_requirement,
)
from setrack.storage.changelog import utc_timestamp
from setrack.storage.repository import ProjectRepository

logger = logging.getLogger(__name__)


def _json_body() -> Any:
    body = request.get_json(silent=True)
    if body is None:
        raise ValidationError("Request body must be a JSON object")
    return body


def create_app(
    repository: ProjectRepository,
    config: dict[str, Any] | None = None,
) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        repository: Repository every route delegates to.
        config: setrack configuration dict (defaults when None).

    Returns:
        Configured Flask application.
    """
    config = merge_configs(DEFAULT_CONFIG, config or {})
    server_config = config["server"]

    app = Flask(__name__, static_folder=None)
    app.config["MAX_CONTENT_LENGTH"] = server_config["max_content_length"]
    app.json.sort_keys = False

    CORS(
        app,
        origins=[re.compile(server_config["cors_origins"])],
        supports_credentials=False,
    )

    _state: dict[str, Any] = {
        "repository": repository,
        "config": config,
    }

    # Dashboards poll; never serve them a cached project list
    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    # ─────────────────────────────────────────────────────────────────
    # Error mapping
    # ─────────────────────────────────────────────────────────────────

    @app.errorhandler(ValidationError)
    def _validation_error(error: ValidationError):
        return jsonify({"detail": str(error)}), 400

    @app.errorhandler(NotFoundError)
    def _not_found(error: NotFoundError):
        return jsonify({"detail": str(error)}), 404

    @app.errorhandler(ConflictError)
    def _conflict(error: ConflictError):
        return jsonify({"detail": str(error)}), 409

    @app.errorhandler(HTTPException)
    def _http_error(error: HTTPException):
        return jsonify({"detail": error.description}), error.code

    @app.errorhandler(Exception)
    def _unhandled(error: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"detail": "Internal server error"}), 500

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/health")
    def health():
        """GET /health - Liveness probe."""
        return jsonify({"status": "ok", "timestamp": utc_timestamp()})

    @app.route("/projects")
    def list_projects():
        """GET /projects - Every project document."""
        return jsonify(_state["repository"].list_projects())

    @app.route("/projects/<project_id>")
    def get_project(project_id: str):
        """GET /projects/<id> - One project document."""
        project = _state["repository"].get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return jsonify(project)

    @app.route("/projects/<project_id>/log")
    def get_project_log(project_id: str):
        """GET /projects/<id>/log - The project's change log as plain text."""
        repo = _state["repository"]
        if repo.get_project(project_id) is None:
            raise NotFoundError("Project not found")
        return Response(repo.read_log(project_id), mimetype="text/plain")

    # ─────────────────────────────────────────────────────────────────
    # Project mutations
    # ─────────────────────────────────────────────────────────────────

    @app.route("/projects", methods=["POST"])
    def create_project():
        """POST /projects - Create a project."""
        payload = normalize_project_create(_json_body())
        return jsonify(_state["repository"].create_project(payload)), 201

    @app.route("/projects/<project_id>", methods=["PUT"])
    def replace_project(project_id: str):
        """PUT /projects/<id> - Replace every field but the id."""
        payload = normalize_project_create(_json_body(), require_id=False)
        return jsonify(_state["repository"].replace_project(project_id, payload))

    @app.route("/projects/<project_id>", methods=["PATCH"])
    def update_project(project_id: str):
        """PATCH /projects/<id> - Merge the given fields."""
        updates = normalize_project_update(_json_body())
        return jsonify(_state["repository"].update_project(project_id, updates))

    @app.route("/projects/<project_id>", methods=["DELETE"])
    def delete_project(project_id: str):
        """DELETE /projects/<id> - Delete a project and its change log."""
        _state["repository"].delete_project(project_id)
        return "", 204

    # ─────────────────────────────────────────────────────────────────
    # Requirement mutations
    # ─────────────────────────────────────────────────────────────────

    @app.route("/projects/<project_id>/requirements", methods=["POST"])
    def add_requirement(project_id: str):
        """POST /projects/<id>/requirements - Add a requirement."""
        payload = normalize_requirement(_json_body())
        return jsonify(_state["repository"].add_requirement(project_id, payload)), 201

    @app.route("/projects/<project_id>/requirements/<requirement_id>", methods=["PUT"])
    def update_requirement(project_id: str, requirement_id: str):
        """PUT /projects/<id>/requirements/<req_id> - Merge requirement fields."""
        updates = normalize_requirement(_json_body(), allow_partial=True)
        requirement = _state["repository"].update_requirement(project_id, requirement_id, updates)
        return jsonify(requirement)

    @app.route("/projects/<project_id>/requirements/<requirement_id>", methods=["DELETE"])
    def delete_requirement(project_id: str, requirement_id: str):
        """DELETE /projects/<id>/requirements/<req_id> - Remove a requirement."""
        _state["repository"].delete_requirement(project_id, requirement_id)
        return "", 204

    # ─────────────────────────────────────────────────────────────────
    # Frontend bundle (only when built)
    # ─────────────────────────────────────────────────────────────────

    frontend_dist = resolve_config_path(config, "server", "frontend_dist")
    if (frontend_dist / "index.html").is_file():
        _register_frontend(app, frontend_dist)

    return app


def _register_frontend(app: Flask, dist_dir: Path) -> None:
    """Serve the built dashboard, falling back to index.html for client routes."""
    dist_root = dist_dir.resolve()

    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def frontend(path: str):
        candidate = (dist_root / path).resolve()
        if path and candidate.is_file() and candidate.is_relative_to(dist_root):
            return send_from_directory(dist_root, path)
        return send_from_directory(dist_root, "index.html")
