"""
API Routes Blueprint

JSON endpoints used by the upload UI:
- /api/preview: governed destination for an upload (with Card validation)
- /api/rethink: ranked alternates when the operator disagrees
- /api/override: PIN-gated selection of one alternate
"""

from flask import Blueprint, request, jsonify, current_app
import logging

from ..exceptions import CardValidationError, MalformedRequestError, OverrideRefusedError
from ..utils.helpers import create_error_response, log_route_access

bp = Blueprint('api', __name__, url_prefix='/api')
logger = logging.getLogger(__name__)


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MalformedRequestError("Request body must be a JSON object")
    return data


@bp.route('/preview', methods=['POST'])
def preview_api():
    """Body: {target, filename, brand?, content?, preferFiling?}"""
    try:
        data = _json_body()
        log_route_access('preview', {'target': data.get('target'), 'filename': data.get('filename')})
        return jsonify(current_app.routing_service.preview(data))
    except CardValidationError as e:
        return jsonify({
            'error': e.message,
            'errors': e.result.errors,
            'explains': e.result.explains_payload(),
        }), 400
    except MalformedRequestError as e:
        return jsonify(create_error_response(e.message, 400)), 400
    except Exception as e:
        logger.error(f"preview_api error: {e}")
        return jsonify(create_error_response("Preview failed")), 500


@bp.route('/rethink', methods=['POST'])
def rethink_api():
    """Body: {filename, brand?, pin?}"""
    try:
        data = _json_body()
        log_route_access('rethink', {'filename': data.get('filename')})
        return jsonify(current_app.routing_service.rethink(data))
    except MalformedRequestError as e:
        return jsonify(create_error_response(e.message, 400)), 400
    except Exception as e:
        logger.error(f"rethink_api error: {e}")
        return jsonify(create_error_response("Rethink failed")), 500


@bp.route('/override', methods=['POST'])
def override_api():
    """Body: {filename, brand?, pin, selectedIndex}"""
    try:
        data = _json_body()
        log_route_access('override', {'filename': data.get('filename'), 'selectedIndex': data.get('selectedIndex')})
        return jsonify(current_app.routing_service.override(data))
    except OverrideRefusedError as e:
        return jsonify(create_error_response(e.message, 403)), 403
    except MalformedRequestError as e:
        return jsonify(create_error_response(e.message, 400)), 400
    except Exception as e:
        logger.error(f"override_api error: {e}")
        return jsonify(create_error_response("Override failed")), 500
