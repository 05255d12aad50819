import logging
from typing import Optional
from uuid import uuid4

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import BadRequest
from werkzeug.routing import BaseConverter

from models import DecodeError, parse_receipt
from scoring import calculate_points
from store import ReceiptNotFoundError, ScoreStore

logger = logging.getLogger(__name__)

HOST = "0.0.0.0"
PORT = 8090
SCORE_STORE_EXTENSION = "score_store"
PAGE_NOT_FOUND = "404 page not found\n"


class ReceiptIdConverter(BaseConverter):
    """ Matches receipt ids made of ASCII letters, digits and dashes """
    regex = r"[a-zA-Z0-9-]+"


def get_store() -> ScoreStore:
    return current_app.extensions[SCORE_STORE_EXTENSION]


def read_receipt_body():
    """ Decodes the request body as JSON whatever its content type """
    try:
        return request.get_json(force=True)
    except BadRequest:
        raise DecodeError("Error: receipt body is not valid JSON")


def process_receipt():
    """
    Router for receipt processing requests. The body is decoded into a Receipt
    and scored; only once scoring succeeds is a unique id generated and the
    (receipt id -> reward points) pair saved in the application's store.

    Returns:
        400 Error if the body cannot be decoded or scored
        200 OK and generated receipt id otherwise
    """
    try:
        receipt = parse_receipt(read_receipt_body())
        points = calculate_points(receipt)
    except ValueError as e:
        logger.warning("Rejected receipt: %s", e)
        return jsonify({"error": str(e)}), 400
    receipt_id = str(uuid4())
    get_store().put(receipt_id, points)
    logger.info("Processed receipt %s for %d points", receipt_id, points)
    return jsonify({"id": receipt_id})


def get_points(receipt_id: str):
    """
    Router for receipt points lookups.

    Returns:
        404 Error if the receipt id is not found
        200 OK and the calculated points for the receipt otherwise
    """
    try:
        points = get_store().get(receipt_id)
    except ReceiptNotFoundError as e:
        logger.warning("Lookup for unknown receipt id %s", receipt_id)
        return jsonify({"error": str(e)}), 404
    return jsonify({"points": points})


def page_not_found(error):
    return PAGE_NOT_FOUND, 404, {"Content-Type": "text/plain; charset=utf-8"}


ROUTES = [
    ("POST", "/receipts/process", process_receipt),
    ("GET", "/receipts/<receipt_id:receipt_id>/points", get_points),
]


def create_app(store: Optional[ScoreStore] = None) -> Flask:
    """ Builds the Flask app around its own score store and registers the route table """
    app = Flask(__name__)
    app.extensions[SCORE_STORE_EXTENSION] = store if store is not None else ScoreStore()
    app.url_map.converters["receipt_id"] = ReceiptIdConverter
    for method, rule, view in ROUTES:
        app.add_url_rule(rule, endpoint=view.__name__, view_func=view, methods=[method],
                         provide_automatic_options=False)
    # unknown paths and wrong methods both answer 404
    app.register_error_handler(404, page_not_found)
    app.register_error_handler(405, page_not_found)
    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(host=HOST, port=PORT, threaded=True)
    # threaded=True lets Flask handle requests concurrently; the store serializes access
