"""
flask rest api for the blood pressure tracker.

provides endpoints for:
- listing, creating, updating and deleting readings
- categorized reading history
- week/month/year trend series with summary statistics
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from flask import Flask, request, jsonify
from sqlalchemy.orm import Session

from bp_tracker.config import Config, SessionLocal, configure_logging, init_db
from bp_tracker.models.trends import TimeRange
from bp_tracker.repositories.readings_repository import ReadingsRepository
from bp_tracker.services.aggregator import aggregate, build_history, latest_category
from bp_tracker.services.categorizer import categorize_reading
from bp_tracker.services.errors import (
    InvalidRangeError,
    InvalidReadingError,
    ReadingNotFoundError,
)
from bp_tracker.services.reading_validation import (
    parse_timestamp,
    validate_reading_payload,
)

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int, details: Optional[dict] = None) -> tuple:
    """
    create standardized error response.

    args:
        message: error message
        status_code: http status code
        details: optional per-field error messages

    returns:
        tuple of (json_response, status_code)
    """
    body = {
        "success": False,
        "error": message,
        "status_code": status_code
    }
    if details:
        body["details"] = details
    return jsonify(body), status_code


def int_query_arg(name: str, default: int) -> int:
    """
    read an integer query parameter.

    args:
        name: query parameter name
        default: value when the parameter is absent

    returns:
        parsed integer

    raises:
        ValueError: if the parameter is present but not an integer
    """
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer")


def reading_with_category(reading) -> dict:
    """serialize a reading together with its category label."""
    data = reading.to_dict()
    data["category"] = categorize_reading(reading).label
    return data


def create_app(session_factory: Optional[Callable[[], Session]] = None) -> Flask:
    """
    build the flask application.

    args:
        session_factory: callable returning a new sqlalchemy session
            (defaults to the configured SessionLocal)

    returns:
        configured flask app
    """
    app = Flask(__name__)
    make_session = session_factory or SessionLocal

    @app.route('/health', methods=['GET'])
    def health():
        """health check endpoint."""
        return jsonify({
            "status": "healthy",
            "service": "bp-tracker",
            "timestamp": datetime.utcnow().isoformat() + "Z"
        })

    @app.route('/readings', methods=['GET'])
    def list_readings():
        """
        retrieve one page of readings, newest first.

        query parameters:
            page: 1-based page number (default: 1)
            limit: page size (default: 20)
        """
        try:
            page = int_query_arg('page', 1)
            limit = int_query_arg('limit', Config.DEFAULT_PAGE_SIZE)
        except ValueError as e:
            return error_response(str(e), 400)

        if page < 1:
            return error_response("page must be at least 1", 400)
        if limit < 1 or limit > Config.MAX_PAGE_SIZE:
            return error_response(f"limit must be between 1 and {Config.MAX_PAGE_SIZE}", 400)

        session = make_session()
        try:
            repo = ReadingsRepository(session)
            readings = repo.list_readings(page=page, limit=limit)
            total = repo.count_readings()

            return jsonify({
                "success": True,
                "page": page,
                "limit": limit,
                "total": total,
                "readings": [reading_with_category(r) for r in readings]
            }), 200
        except Exception as e:
            logger.exception("failed to list readings")
            return error_response(f"internal error: {str(e)}", 500)
        finally:
            session.close()

    @app.route('/readings', methods=['POST'])
    def create_reading():
        """
        create a reading.

        request body:
            {
                "systolic": 120,
                "diastolic": 80,
                "pulse": 72,              // optional
                "notes": "after walk",    // optional
                "measured_at": "2024-03-05T08:30:00Z"
            }
        """
        try:
            fields = validate_reading_payload(request.get_json(silent=True))
        except InvalidReadingError as e:
            return error_response(str(e), 400, e.errors)

        session = make_session()
        try:
            reading = ReadingsRepository(session).create_reading(**fields)
            return jsonify({
                "success": True,
                "reading": reading_with_category(reading)
            }), 201
        except Exception as e:
            logger.exception("failed to create reading")
            return error_response(f"internal error: {str(e)}", 500)
        finally:
            session.close()

    @app.route('/readings/<int:reading_id>', methods=['PUT'])
    def update_reading(reading_id: int):
        """update the supplied fields of a reading."""
        try:
            fields = validate_reading_payload(request.get_json(silent=True), partial=True)
        except InvalidReadingError as e:
            return error_response(str(e), 400, e.errors)

        session = make_session()
        try:
            reading = ReadingsRepository(session).update_reading(reading_id, **fields)
            return jsonify({
                "success": True,
                "reading": reading_with_category(reading)
            }), 200
        except ReadingNotFoundError as e:
            return error_response(str(e), 404)
        except Exception as e:
            logger.exception("failed to update reading %s", reading_id)
            return error_response(f"internal error: {str(e)}", 500)
        finally:
            session.close()

    @app.route('/readings/<int:reading_id>', methods=['DELETE'])
    def delete_reading(reading_id: int):
        """delete a reading."""
        session = make_session()
        try:
            ReadingsRepository(session).delete_reading(reading_id)
            return jsonify({"success": True, "deleted_id": reading_id}), 200
        except ReadingNotFoundError as e:
            return error_response(str(e), 404)
        except Exception as e:
            logger.exception("failed to delete reading %s", reading_id)
            return error_response(f"internal error: {str(e)}", 500)
        finally:
            session.close()

    @app.route('/readings/history', methods=['GET'])
    def reading_history():
        """all readings newest first, each with its category."""
        session = make_session()
        try:
            readings = ReadingsRepository(session).get_all_readings()
            history = build_history(readings)
            latest = latest_category(readings)

            entries = []
            for reading, category in history:
                data = reading.to_dict()
                data["category"] = category.label
                data["severity"] = category.severity
                entries.append(data)

            return jsonify({
                "success": True,
                "count": len(entries),
                "latest_category": latest.label if latest else None,
                "readings": entries
            }), 200
        except Exception as e:
            logger.exception("failed to build reading history")
            return error_response(f"internal error: {str(e)}", 500)
        finally:
            session.close()

    @app.route('/readings/trends', methods=['GET'])
    def reading_trends():
        """
        trend series and statistics for a time range.

        query parameters:
            range: week, month or year (default: week)
            now: optional iso-8601 reference time (default: current utc time)
        """
        try:
            time_range = TimeRange.parse(request.args.get('range', 'week'))
        except InvalidRangeError as e:
            return error_response(str(e), 400)

        now_param = request.args.get('now')
        if now_param:
            try:
                now = parse_timestamp(now_param)
            except ValueError:
                return error_response("now must be an iso-8601 timestamp", 400)
        else:
            now = datetime.utcnow()

        session = make_session()
        try:
            readings = ReadingsRepository(session).get_all_readings()
            view = aggregate(readings, time_range, now, with_categories=True)

            response = {"success": True, "now": now.isoformat() + "Z"}
            response.update(view.to_dict())
            return jsonify(response), 200
        except Exception as e:
            logger.exception("failed to aggregate readings")
            return error_response(f"internal error: {str(e)}", 500)
        finally:
            session.close()

    return app


app = create_app()


# development server
if __name__ == '__main__':
    configure_logging()
    init_db()

    app.run(debug=Config.FLASK_DEBUG, port=Config.FLASK_PORT, host='0.0.0.0')
