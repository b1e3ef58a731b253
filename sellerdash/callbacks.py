import datetime as dt
import logging
from typing import List, Dict, Any, Optional

import pandas as pd
from dash import Input, Output, State, html, no_update
from pydantic import BaseModel, field_validator, model_validator, ValidationError

from .data import get_compare_view, get_repository, get_series
from .series import Granularity, TimeBucket, compute_y_axis_config
from .series.compare import CompareView
from .utils import buckets_to_frame, fmt_money, fmt_tick, parse_date

logger = logging.getLogger(__name__)

EMPTY_FIG = {"data": [], "layout": {"paper_bgcolor": "white", "plot_bgcolor": "white"}}


class Filters(BaseModel):
    store_id: str = "store"
    granularity: Granularity = Granularity.MONTH
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    @field_validator("store_id", mode="before")
    @classmethod
    def normalize_store(cls, v):
        s = str(v).strip() if v is not None else ""
        return s or "store"

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        if isinstance(v, dt.date):
            return v
        return parse_date(v)

    @model_validator(mode="after")
    def both_or_neither(self):
        # A half-open picker selection falls back to the default window
        if (self.start_date is None) != (self.end_date is None):
            self.start_date = self.end_date = None
        return self


def _x_ticks(records: List[Dict[str, Any]]) -> Dict[str, list]:
    labelled = [r for r in records if r.get("label")]
    return {"tickvals": [r["index"] for r in labelled], "ticktext": [r["label"] for r in labelled]}


def series_figure(records: List[Dict[str, Any]], metric: str, granularity: Granularity, show_last_year: bool) -> dict:
    """Line chart of one metric with the nice-interval Y axis."""
    if not records:
        return EMPTY_FIG
    ly_key = "lastYearUnits" if metric == "units" else "lastYearSales"
    title = "Units ordered" if metric == "units" else "Ordered product sales"

    x = [r["index"] for r in records]
    traces = [{"type": "scatter", "mode": "lines", "x": x, "y": [r[metric] for r in records], "name": "Selected range"}]
    peak = max(r[metric] for r in records)
    if show_last_year:
        traces.append({"type": "scatter", "mode": "lines", "x": x, "y": [r[ly_key] for r in records],
                       "name": "Same range last year", "line": {"dash": "dot"}})
        peak = max(peak, max(r[ly_key] for r in records))

    axis_cfg = compute_y_axis_config(peak if metric == "units" else 0, peak if metric == "sales" else 0, granularity)
    axis = axis_cfg["unitsConfig" if metric == "units" else "salesConfig"]
    prefix = "$" if metric == "sales" else ""

    return {
        "data": traces,
        "layout": {
            "title": title,
            "xaxis": {"tickmode": "array", **_x_ticks(records)},
            "yaxis": {
                "range": list(axis.domain),
                "tickmode": "array",
                "tickvals": axis.ticks,
                "ticktext": [prefix + fmt_tick(t) for t in axis.ticks],
            },
            "paper_bgcolor": "white",
            "plot_bgcolor": "white",
        },
    }


def compare_figure(view: CompareView) -> dict:
    if not view.series:
        return EMPTY_FIG
    first = view.series[0].data
    traces = [
        {"type": "scatter", "mode": "lines", "x": [b.index for b in s.data], "y": [b.units for b in s.data], "name": s.label}
        for s in view.series
    ]
    return {
        "data": traces,
        "layout": {
            "title": "Units ordered",
            "xaxis": {"tickmode": "array", "tickvals": [b.index for b in first if b.label],
                      "ticktext": [b.label for b in first if b.label]},
            "paper_bgcolor": "white",
            "plot_bgcolor": "white",
        },
    }


def compare_columns(view: CompareView) -> list:
    return [
        html.Div([html.Div(c.label, className="kpi-label")] + [html.Div(line) for line in c.lines],
                 className="compare-column", id=f"compare-{c.key}")
        for c in view.columns
    ]


def register_callbacks(app):

    @app.callback(
        Output("series-store", "data"),
        Output("debug-msg", "children"),
        Input("apply-btn", "n_clicks"),
        State("store-input", "value"),
        State("granularity-dd", "value"),
        State("date-range", "start_date"),
        State("date-range", "end_date"),
        prevent_initial_call=False
    )
    def load_series(n_clicks, store_id, granularity, start_date, end_date):
        """
        Load the series on first page load and whenever 'Apply' is clicked.
        Stored series are reused until the store totals or the range change.
        """
        try:
            flt = Filters(store_id=store_id, granularity=granularity, start_date=start_date, end_date=end_date)
            stored = get_series(flt.store_id, flt.granularity, flt.start_date, flt.end_date)
        except (ValidationError, ValueError) as e:
            return None, f"Invalid selection: {e}"

        data = {
            "granularity": flt.granularity.value,
            "buckets": [b.model_dump(by_alias=True) for b in stored.buckets],
        }
        req = stored.request
        msg = (f"Store: {req.store_id} | {req.range_start.isoformat()}..{req.range_end.isoformat()} | "
               f"Buckets: {len(stored.buckets)} | Generated: {stored.generated_at}")
        return data, msg

    @app.callback(
        Output("kpi-units", "children"),
        Output("kpi-sales", "children"),
        Output("kpi-ly-units", "children"),
        Output("kpi-ly-sales", "children"),
        Output("units-graph", "figure"),
        Output("sales-graph", "figure"),
        Output("series-table", "data"),
        Input("series-store", "data"),
        Input("compare-toggle", "value"),
        prevent_initial_call=True
    )
    def update_viz(data, compare_values):
        if not data or not data.get("buckets"):
            return "-", "-", "-", "-", EMPTY_FIG, EMPTY_FIG, []

        records = data["buckets"]
        granularity = Granularity(data.get("granularity", Granularity.MONTH.value))
        show_last_year = "last_year" in (compare_values or [])

        df = pd.DataFrame.from_records(records)
        kpi_units = f"{int(df['units'].sum()):,}"
        kpi_sales = f"${fmt_money(float(df['sales'].sum()))}"
        kpi_ly_units = f"{int(df['lastYearUnits'].sum()):,}"
        kpi_ly_sales = f"${fmt_money(float(df['lastYearSales'].sum()))}"

        fig_units = series_figure(records, "units", granularity, show_last_year)
        fig_sales = series_figure(records, "sales", granularity, show_last_year)
        return kpi_units, kpi_sales, kpi_ly_units, kpi_ly_sales, fig_units, fig_sales, records

    @app.callback(
        Output("compare-graph", "figure"),
        Output("compare-columns", "children"),
        Input("compare-dimension", "value"),
        Input("apply-btn", "n_clicks"),
        State("store-input", "value"),
        prevent_initial_call=False
    )
    def update_compare(dimension, n_clicks, store_id):
        try:
            flt = Filters(store_id=store_id)
            view = get_compare_view(flt.store_id, dimension or "today", dt.datetime.now().hour)
        except (ValidationError, ValueError) as e:
            logger.warning("Compare view failed: %s", e)
            return EMPTY_FIG, []
        return compare_figure(view), compare_columns(view)

    @app.callback(
        Output("admin-msg", "children"),
        Input("regenerate-btn", "n_clicks"),
        State("store-input", "value"),
        State("claims-store", "data"),
        prevent_initial_call=True
    )
    def regenerate(n_clicks, store_id, claims):
        if not n_clicks:
            return no_update
        if (claims or {}).get("role") != "Admin":
            return "Admin role required to regenerate series"
        flt = Filters(store_id=store_id)
        try:
            stored = get_repository().regenerate(flt.store_id)
        except ValueError as e:
            return f"Regeneration failed: {e}"
        return f"Regenerated {len(stored)} series for store {flt.store_id}"

    @app.callback(
        Output("download-data", "data"),
        Input("export-btn", "n_clicks"),
        State("series-store", "data"),
        prevent_initial_call=True
    )
    def export_csv(n_clicks, data):
        if not n_clicks:
            return no_update
        records = (data or {}).get("buckets") or []
        df = buckets_to_frame([TimeBucket.model_validate(r) for r in records])
        csv = df.to_csv(index=False)
        return dict(content=csv, filename=f"sales_series_{dt.date.today().isoformat()}.csv")
