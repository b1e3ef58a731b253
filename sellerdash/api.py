"""REST endpoints over the series repository.

Every response uses the storefront envelope: `{"success": bool, "data": ...}`
plus `message` on writes and `error` on failures.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from flask import Blueprint, abort, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from .auth import require_role
from .data import get_repository
from .series import (
    Granularity,
    SeriesRequest,
    TimeBucket,
    axis_ticks,
    compute_y_axis_config,
    generate_series,
    label_map,
    series_maxima,
    summarize,
)
from .utils import parse_date

logger = logging.getLogger(__name__)

bp = Blueprint("sales_api", __name__, url_prefix="/api/sales")


# ---- Helpers ----
def _validation_message(err: ValidationError) -> str:
    return "; ".join(e.get("msg", "invalid value") for e in err.errors())


def _granularity(value: Optional[str], default: Granularity = Granularity.MONTH) -> Granularity:
    if not value:
        return default
    try:
        return Granularity(value.strip().lower())
    except ValueError:
        abort(400, description=f"Unknown granularity {value!r}")


def _query_date(name: str):
    try:
        return parse_date(request.args.get(name))
    except ValueError:
        abort(400, description=f"Invalid {name}, expected YYYY-MM-DD")


def _query_float(name: str) -> float:
    raw = request.args.get(name, "0")
    try:
        return float(raw)
    except ValueError:
        abort(400, description=f"Invalid {name}, expected a number")


def _records(buckets: Sequence[TimeBucket]) -> List[Dict[str, Any]]:
    return [b.model_dump(by_alias=True, exclude_none=True) for b in buckets]


def _chart_payload(buckets: Sequence[TimeBucket], granularity: Granularity) -> Dict[str, Any]:
    max_units, max_sales = series_maxima(buckets)
    axis = compute_y_axis_config(max_units, max_sales, granularity)
    return {
        "success": True,
        "data": _records(buckets),
        "summary": summarize(buckets),
        "ticks": axis_ticks(buckets),
        "labels": {str(i): label for i, label in label_map(buckets).items() if label},
        "yAxisConfig": {k: v.model_dump() for k, v in axis.items()},
    }


# ---- Error rendering ----
@bp.errorhandler(HTTPException)
def _http_error(err: HTTPException):
    return jsonify({"success": False, "error": err.description}), err.code


@bp.errorhandler(requests.RequestException)
def _upstream_error(err: requests.RequestException):
    logger.warning("Upstream totals request failed: %s", err)
    return jsonify({"success": False, "error": "Upstream sales snapshot unavailable"}), 502


@bp.errorhandler(Exception)
def _unexpected_error(err: Exception):
    logger.exception("Unhandled error in sales API")
    return jsonify({"success": False, "error": "Internal server error"}), 500


# ---- Routes ----
@bp.get("/chart-data/<store_id>")
def chart_data(store_id: str):
    granularity = _granularity(request.args.get("granularity"))
    start, end = _query_date("startDate"), _query_date("endDate")
    if (start is None) != (end is None):
        abort(400, description="startDate and endDate must be given together")
    try:
        stored = get_repository().get_series(store_id, granularity, start, end)
    except ValidationError as e:
        abort(400, description=_validation_message(e))
    except ValueError as e:
        abort(400, description=str(e))

    payload = _chart_payload(stored.buckets, granularity)
    payload["range"] = {
        "startDate": stored.request.range_start.isoformat(),
        "endDate": stored.request.range_end.isoformat(),
        "granularity": granularity.value,
    }
    payload["generatedAt"] = stored.generated_at
    return jsonify(payload)


@bp.get("/compare/<store_id>")
def compare(store_id: str):
    dimension = (request.args.get("dimension") or "today").strip().lower()
    hour_raw = request.args.get("currentHour")
    try:
        current_hour = int(hour_raw) if hour_raw not in (None, "") else None
        view = get_repository().compare_view(store_id, dimension, current_hour)
    except ValueError as e:
        abort(400, description=str(e))
    body = view.model_dump(by_alias=True, exclude_none=True)
    return jsonify({"success": True, "data": body["data"], "compare": {"columns": body["columns"], "series": body["series"]}})


@bp.post("/generate")
def generate():
    """Stateless generation from an explicit SeriesRequest body."""
    try:
        req = SeriesRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        abort(400, description=_validation_message(e))
    max_days = get_repository().settings.max_range_days
    if req.span_days > max_days:
        abort(400, description=f"range of {req.span_days} days exceeds the {max_days}-day limit")
    return jsonify(_chart_payload(generate_series(req), req.granularity))


@bp.get("/y-axis")
def y_axis():
    granularity = _granularity(request.args.get("granularity"), Granularity.DAY)
    axis = compute_y_axis_config(_query_float("maxUnits"), _query_float("maxSales"), granularity)
    return jsonify({"success": True, "data": {k: v.model_dump() for k, v in axis.items()}})


@bp.post("/admin/time-series/generate/<store_id>")
@require_role("Admin")
def regenerate(store_id: str):
    try:
        stored = get_repository().regenerate(store_id)
    except ValueError as e:
        abort(400, description=str(e))
    return jsonify({
        "success": True,
        "message": "Sales time series regenerated successfully",
        "data": {s.granularity.value: summarize(s.buckets) for s in stored},
    })


@bp.get("/admin/time-series/<store_id>")
@require_role("Admin")
def stored_series(store_id: str):
    granularity = _granularity(request.args.get("granularity"))
    stored = get_repository().get_stored(store_id, granularity)
    if stored is None:
        abort(404, description=f"No {granularity.value} series stored for store {store_id}")
    return jsonify({
        "success": True,
        "data": {
            "request": stored.request.model_dump(mode="json", by_alias=True),
            "buckets": _records(stored.buckets),
            "generatedAt": stored.generated_at,
        },
    })


@bp.delete("/admin/time-series/<store_id>")
@require_role("Admin")
def delete_series(store_id: str):
    removed = get_repository().forget(store_id)
    return jsonify({"success": True, "message": f"Removed {removed} stored series"})
