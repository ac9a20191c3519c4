from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_actor, login_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/users/<user_id>/face", methods=["POST"], endpoint="api_face_enroll")
    @login_required
    def api_face_enroll(user_id: str):
        """Users can register their own face, admins can register any user's."""
        data = request.get_json(silent=True) or {}
        if "embeddings" not in data:
            raise ValidationError("embeddings is required")

        embedding = container.enrollment_service.enroll(current_actor(), user_id, data["embeddings"])
        return jsonify({
            "success": True,
            "user_id": embedding.user_id,
            "updated_at": embedding.updated_at.isoformat(),
        }), 200

    @app.route("/api/users/<user_id>/face", methods=["GET"], endpoint="api_face_get")
    @login_required
    def api_face_get(user_id: str):
        embedding = container.enrollment_service.get_enrollment(current_actor(), user_id)
        return jsonify({
            "user_id": embedding.user_id,
            "embeddings": list(embedding.vector),
            "updated_at": embedding.updated_at.isoformat(),
        }), 200

    @app.route("/api/face/identify", methods=["POST"], endpoint="api_face_identify")
    @login_required
    def api_face_identify():
        data = request.get_json(silent=True) or {}
        if "embedding" not in data:
            raise ValidationError("embedding is required")

        match = container.enrollment_service.identify(current_actor(), data["embedding"])
        if match is None:
            return jsonify({"match": None}), 200
        return jsonify({"match": {"user_id": match.user_id, "similarity": round(match.similarity, 6)}}), 200

    @app.route("/api/health", methods=["GET"], endpoint="api_health")
    def api_health():
        return jsonify({
            "status": "ok",
            "extractor_ready": container.extractor.is_ready,
            "embedding_dimension": container.enrollment_service.dimension,
            "match_threshold": container.matcher.threshold,
        }), 200
