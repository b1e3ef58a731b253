import datetime as dt
from typing import Optional
from dash import dcc, html, dash_table

from .config import get_settings
from .auth import current_claims
from .series import Granularity
from .series.compare import DIMENSIONS
from .utils import BUCKET_COLUMNS

GRANULARITY_OPTIONS = [
    {"label": "Hourly", "value": Granularity.HOUR.value},
    {"label": "Daily", "value": Granularity.DAY.value},
    {"label": "Weekly", "value": Granularity.WEEK.value},
    {"label": "Monthly", "value": Granularity.MONTH.value},
]

DIMENSION_LABELS = {"today": "Today", "yesterday": "Yesterday", "week": "This week", "month": "This month"}


class UIBuilder:
    """Class that encapsulates the Business Reports layout."""

    def __init__(self, title: Optional[str] = None) -> None:
        self.title = title or get_settings().app_title

    @staticmethod
    def kpi_card(label, value, id_suffix):
        return html.Div(
            className="kpi-card",
            children=[
                html.Div(label, className="kpi-label"),
                html.Div(value, className="kpi-value", id=f"kpi-{id_suffix}")
            ],
            style={
                "border": "1px solid #e0e0e0",
                "borderRadius": "8px",
                "padding": "12px 16px",
                "minWidth": "160px",
                "boxShadow": "0 1px 2px rgba(0,0,0,0.04)",
                "background": "white",
            }
        )

    def build_layout(self):
        claims = current_claims()
        role = claims.get("role", "Seller")
        user_name = claims.get("name", claims.get("sub", "User"))
        store_id = claims.get("store_id") or "store"
        is_admin = role == "Admin"

        today = dt.date.today()
        settings = get_settings()

        return html.Div([
            dcc.Store(id="claims-store", data=claims),
            dcc.Store(id="series-store"),  # filled by a callback on load/apply
            dcc.Download(id="download-data"),

            html.Div([
                html.H2(self.title, style={"margin": "0"}),
                html.Div(f"Welcome, {user_name} | Role: {role}", style={"color": "#666"}),
            ], style={"display": "flex", "flexDirection": "column", "gap": "4px", "marginBottom": "12px"}),

            # ==== Compare summary ====
            html.Div([
                dcc.RadioItems(
                    id="compare-dimension",
                    options=[{"label": DIMENSION_LABELS[d], "value": d} for d in DIMENSIONS],
                    value="today", inline=True,
                ),
                html.Div(id="compare-columns", style={"display": "flex", "gap": "12px", "flexWrap": "wrap"}),
                dcc.Graph(id="compare-graph"),
            ], style={"marginBottom": "12px"}),

            html.Hr(),

            # ==== Controls ====
            html.Div([
                dcc.Input(id="store-input", value=store_id, placeholder="Store id", type="text",
                          disabled=not is_admin and bool(claims.get("store_id"))),
                dcc.Dropdown(GRANULARITY_OPTIONS, Granularity.MONTH.value, id="granularity-dd",
                             clearable=False, style={"minWidth": "180px"}),
                dcc.DatePickerRange(
                    id="date-range",
                    min_date_allowed=(today - dt.timedelta(days=settings.max_range_days)),
                    max_date_allowed=today,
                    start_date=None,
                    end_date=None,
                    display_format="YYYY-MM-DD",
                    clearable=True,
                ),
                dcc.Checklist(
                    id="compare-toggle",
                    options=[{"label": "Compare with last year", "value": "last_year"}],
                    value=["last_year"], inline=True,
                ),
                html.Button("Apply", id="apply-btn", n_clicks=0),
                html.Button("Export CSV", id="export-btn", n_clicks=0),
                html.Button("Regenerate", id="regenerate-btn", n_clicks=0,
                            style={"display": "inline-block" if is_admin else "none"}),
            ], style={"display": "grid", "gridTemplateColumns": "repeat(4, minmax(200px, 1fr))", "gap": "10px", "alignItems": "center"}),

            html.Hr(),

            # ==== KPI Cards ====
            html.Div(
                id="kpi-row",
                children=[
                    UIBuilder.kpi_card("Units ordered", "-", "units"),
                    UIBuilder.kpi_card("Ordered product sales", "-", "sales"),
                    UIBuilder.kpi_card("Units (last year)", "-", "ly-units"),
                    UIBuilder.kpi_card("Sales (last year)", "-", "ly-sales"),
                ],
                style={"display": "flex", "gap": "12px", "flexWrap": "wrap", "marginBottom": "8px"}
            ),

            # ==== Graph / table views ====
            dcc.Tabs(id="tabs", value="graph", children=[
                dcc.Tab(label="Graph view", value="graph", children=[
                    dcc.Graph(id="units-graph"),
                    dcc.Graph(id="sales-graph"),
                ]),
                dcc.Tab(label="Table view", value="table", children=[
                    dash_table.DataTable(
                        id="series-table",
                        columns=[{"name": c, "id": c} for c in BUCKET_COLUMNS],
                        page_size=31,
                        sort_action="native",
                        style_table={"overflowX": "auto"},
                        style_cell={"minWidth": 80, "maxWidth": 200, "whiteSpace": "nowrap", "textOverflow": "ellipsis"}
                    )
                ]),
            ]),

            html.Div(id="admin-msg", style={"fontSize": "12px", "color": "#666", "marginTop": "6px"}),
            html.Div(id="debug-msg", style={"fontSize": "12px", "color": "#999", "marginTop": "6px"}),

        ])


def serve_layout():
    return UIBuilder().build_layout()
