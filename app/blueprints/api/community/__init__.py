"""
Community API Blueprint
=======================

Endpoints:
- GET /api/v1/community/posts - Posts newest first (?category=, ?location=, ?q=)
- POST /api/v1/community/posts - Create a post
- GET /api/v1/community/posts/<id> - Get a post
- POST /api/v1/community/posts/<id>/like - Like a post
- POST /api/v1/community/posts/<id>/comments - Comment on a post
"""

from __future__ import annotations

from flask import Blueprint, Response, request
from pydantic import ValidationError

from app.blueprints.api._common import fail, get_community_service, get_json, success
from app.schemas import CreateCommentRequest, CreatePostRequest
from app.utils.http import safe_route, validation_error_response

community_api = Blueprint("community_api", __name__)


@community_api.route("/posts", methods=["GET"])
@safe_route("Failed to list posts")
def list_posts() -> Response:
    service = get_community_service()
    query = request.args.get("q")
    if query:
        return success(service.search_posts(query))
    return success(service.get_all_posts(request.args.get("category"), request.args.get("location")))


@community_api.route("/posts", methods=["POST"])
@safe_route("Failed to create post")
def create_post() -> Response:
    try:
        body = CreatePostRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    return success(get_community_service().create_post(**body.model_dump(mode="json")), 201)


@community_api.route("/posts/<post_id>", methods=["GET"])
@safe_route("Failed to get post")
def get_post(post_id: str) -> Response:
    post = get_community_service().get_post(post_id)
    if post is None:
        return fail("Post not found", 404)
    return success(post)


@community_api.route("/posts/<post_id>/like", methods=["POST"])
@safe_route("Failed to like post")
def like_post(post_id: str) -> Response:
    post = get_community_service().like_post(post_id)
    return success({"id": post_id, "likes": post["likes"]})


@community_api.route("/posts/<post_id>/comments", methods=["POST"])
@safe_route("Failed to add comment")
def add_comment(post_id: str) -> Response:
    try:
        body = CreateCommentRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    return success(get_community_service().add_comment(post_id, **body.model_dump()), 201)
