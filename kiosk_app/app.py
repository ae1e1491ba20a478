import logging
import sys
from typing import Optional

from dash import Dash
from flask import Flask, Response, jsonify, request
from pydantic import ValidationError

from kiosk_app import layouts
from kiosk_app.callbacks import register_callbacks
from kiosk_app.lib.config import Config
from kiosk_app.lib.constants import ErrorMessage, HTTPStatusCode, SUPPORTED_LANGUAGES
from kiosk_app.lib.database import configure_database, init_db
from kiosk_app.lib.models.dto import CheckInDTO, VisitFilterDTO
from kiosk_app.lib.services.auth_service import (
    clear_staff_authentication,
    is_staff_authenticated,
    mark_staff_authenticated,
    verify_passcode,
)
from kiosk_app.lib.services.export_service import export_filename, export_visits_csv
from kiosk_app.lib.services.stats_service import (
    category_split,
    compute_counter_stats,
    filter_visits,
    location_distribution,
)
from kiosk_app.lib.services.storage_service import StorageError, StorageService

logger = logging.getLogger(__name__)


def _validation_details(e: ValidationError):
    return e.errors(include_url=False, include_context=False)


def register_routes(server: Flask, config: Config, storage: StorageService):
    """JSON API used by the kiosk front-end and staff tooling"""
    kiosk = config.kiosk
    tz = kiosk.get_tz()

    @server.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "kiosk": kiosk.name})

    @server.route("/api/checkin", methods=["POST"])
    def checkin():
        """Record a check-in and return the visit with its ticket numbers"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": ErrorMessage.INVALID_CONTENT_TYPE}), HTTPStatusCode.BAD_REQUEST

        try:
            checkin_dto = CheckInDTO.model_validate(data)
            visit = storage.save_visit(
                checkin_dto.category,
                checkin_dto.location,
                group_info=checkin_dto.group_info,
                group_size=checkin_dto.group_size
            )
            return jsonify(visit.model_dump(mode='json')), HTTPStatusCode.CREATED
        except ValidationError as e:
            return jsonify({
                "error": ErrorMessage.INVALID_CHECKIN,
                "details": _validation_details(e)
            }), HTTPStatusCode.BAD_REQUEST
        except StorageError as e:
            logger.error(f"Error saving visit: {e}")
            return jsonify({"error": ErrorMessage.STORE_UNAVAILABLE}), HTTPStatusCode.SERVICE_UNAVAILABLE
        except Exception as e:
            logger.error(f"Error processing check-in: {e}")
            return jsonify({"error": str(e)}), HTTPStatusCode.INTERNAL_SERVER_ERROR

    @server.route("/api/visits", methods=["GET"])
    def get_visits():
        """Visit log, newest first, with optional location/category/date filters"""
        try:
            visit_filter = VisitFilterDTO.model_validate(request.args.to_dict())
            visits = filter_visits(storage.get_visits(), visit_filter, tz)
            return jsonify([v.model_dump(mode='json') for v in visits])
        except ValidationError as e:
            return jsonify({
                "error": ErrorMessage.INVALID_FILTER,
                "details": _validation_details(e)
            }), HTTPStatusCode.BAD_REQUEST
        except StorageError as e:
            logger.error(f"Error reading visits: {e}")
            return jsonify({"error": ErrorMessage.STORE_UNAVAILABLE}), HTTPStatusCode.SERVICE_UNAVAILABLE

    @server.route("/api/stats", methods=["GET"])
    def get_stats():
        """Dashboard numbers: stat cards and chart data"""
        try:
            visit_filter = VisitFilterDTO(location=request.args.get('location'))
            visits = storage.get_visits()
            filtered = filter_visits(visits, visit_filter, tz)
            return jsonify({
                "stats": compute_counter_stats(filtered, storage.now()).model_dump(),
                "locations": location_distribution(visits),
                "categories": category_split(filtered)
            })
        except ValidationError as e:
            return jsonify({
                "error": ErrorMessage.INVALID_FILTER,
                "details": _validation_details(e)
            }), HTTPStatusCode.BAD_REQUEST
        except StorageError as e:
            logger.error(f"Error computing stats: {e}")
            return jsonify({"error": ErrorMessage.STORE_UNAVAILABLE}), HTTPStatusCode.SERVICE_UNAVAILABLE

    @server.route("/api/staff/login", methods=["POST"])
    def staff_login():
        data = request.get_json(silent=True) or {}
        if not verify_passcode(data.get('passcode'), kiosk.staff_passcode):
            logger.warning("Rejected staff passcode")
            return jsonify({"error": ErrorMessage.INVALID_PASSCODE}), HTTPStatusCode.UNAUTHORIZED
        mark_staff_authenticated()
        return jsonify({"status": "ok"})

    @server.route("/api/staff/logout", methods=["POST"])
    def staff_logout():
        clear_staff_authentication()
        return jsonify({"status": "ok"})

    @server.route("/api/export.csv", methods=["GET"])
    def export_csv():
        """CSV of the filtered visit log, staff only"""
        if not is_staff_authenticated():
            return jsonify({"error": ErrorMessage.STAFF_ONLY}), HTTPStatusCode.UNAUTHORIZED

        language = request.args.get('lang', kiosk.default_language)
        if language not in SUPPORTED_LANGUAGES:
            language = kiosk.default_language

        try:
            visit_filter = VisitFilterDTO.model_validate(request.args.to_dict())
            visits = filter_visits(storage.get_visits(), visit_filter, tz)
        except ValidationError as e:
            return jsonify({
                "error": ErrorMessage.INVALID_FILTER,
                "details": _validation_details(e)
            }), HTTPStatusCode.BAD_REQUEST
        except StorageError as e:
            logger.error(f"Error exporting visits: {e}")
            return jsonify({"error": ErrorMessage.STORE_UNAVAILABLE}), HTTPStatusCode.SERVICE_UNAVAILABLE

        filename = export_filename(storage.now().date(), kiosk.name)
        logger.info(f"Exporting {len(visits)} visits to {filename}")
        return Response(
            export_visits_csv(visits, language, tz),
            mimetype='text/csv',
            headers={'Content-Disposition': f'attachment; filename={filename}'}
        )


def create_app(config: Optional[Config] = None, storage: Optional[StorageService] = None) -> Flask:
    """Build the Flask server with the kiosk's Dash pages mounted at the root."""
    config = config or Config()

    configure_database(config.database.url)
    init_db()

    storage = storage or StorageService(tz=config.kiosk.get_tz())

    # Initialize Flask app with configuration
    server = Flask(__name__)
    server.config['DEBUG'] = config.debug
    server.config['SECRET_KEY'] = config.server.secret_key

    register_routes(server, config, storage)

    # Initialize Dash app
    dash_app = Dash(
        __name__,
        server=server,
        url_base_pathname='/',
        suppress_callback_exceptions=True,
        title=config.kiosk.name
    )
    dash_app.layout = layouts.serve_layout(config.kiosk.default_language)
    register_callbacks(dash_app, config, storage)

    logger.info(f"{config.kiosk.name} kiosk ready")
    return server


if __name__ == '__main__':
    try:
        config = Config()
        config.setup_logging()
        server = create_app(config)

        server.run(
            host=config.server.host,
            port=config.server.port,
            debug=config.debug
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)
