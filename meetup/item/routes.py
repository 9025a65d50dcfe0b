"""Routes for the item blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify, request, url_for

from meetup.auth.decorators import identity_required
from meetup.extensions import messaging

from . import bp
from .models import AttendanceUpdate, ItemSubmission
from .services import ItemService


@bp.route("", methods=["POST"])
@identity_required
def create_item():
    """Create an item owned by the caller."""
    submission = ItemSubmission.from_json(request.get_json(silent=True))
    item = ItemService.create_item(
        firestore.client(), submission, g.identity, messaging.group_client
    )
    response = jsonify(item.to_json())
    response.status_code = 201
    response.headers["Location"] = url_for("item.get_item", item_id=item.id)
    return response


@bp.route("", methods=["GET"])
def list_items():
    """List items, or search them when query parameters are given."""
    db = firestore.client()
    if request.args:
        items = ItemService.search_items(db, request.args.to_dict())
    else:
        items = ItemService.list_items(db)
    return jsonify([item.to_json() for item in items])


@bp.route("/<string:item_id>", methods=["GET"])
def get_item(item_id):
    """Return a single item."""
    item = ItemService.get_item(firestore.client(), item_id)
    return jsonify(item.to_json())


@bp.route("/<string:item_id>", methods=["PUT"])
@identity_required
def update_attendance(item_id):
    """Join, attend, leave or close an item."""
    update = AttendanceUpdate.from_json(request.get_json(silent=True))
    result = ItemService.apply_attendance(
        firestore.client(),
        item_id,
        g.identity,
        update,
        group_client=messaging.group_client,
        notifier=messaging.notifier,
        directory=g.directory,
        max_attempts=current_app.config["STORE_MAX_ATTEMPTS"],
    )
    item = None if result.closes_item else result.item.to_json()
    return jsonify(
        {"outcome": result.outcome.value, "itemFull": result.item_full, "item": item}
    )


@bp.route("/<string:item_id>", methods=["DELETE"])
@identity_required
def delete_item(item_id):
    """Delete an item on its owner's request."""
    ItemService.delete_item(
        firestore.client(),
        item_id,
        g.identity,
        group_client=messaging.group_client,
        directory=g.directory,
    )
    return "", 204
