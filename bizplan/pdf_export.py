"""PDF report builders for business plans and ROI simulations."""

from __future__ import annotations

import html
from datetime import date, datetime, timezone
from io import BytesIO
from typing import Any, Callable

import pandas as pd
import plotly.graph_objects as go
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from bizplan import charts
from bizplan.formatting import format_currency, format_percent, slugify
from bizplan.metrics import BusinessAnalysis
from bizplan.roi import ROIResults, cost_breakdown, recommendations
from bizplan.runtime_logging import append_runtime_event
from bizplan.schema import BusinessPlan, ROIConfig


FOOTER_TEXT = "Generated by Business Planning App"
PRODUCT_TYPE_LABELS = {"subscription": "Subscription", "one-time": "One-time", "service": "Service"}
SCENARIO_LABELS = {"optimis": "Optimistic", "realistis": "Realistic", "pesimis": "Pessimistic"}


def plan_report_filename(plan: BusinessPlan, ext: str = "pdf", today: date | None = None) -> str:
    today = today or date.today()
    return f"business-plan-{slugify(plan.name)}-{today.isoformat()}.{ext}"


def roi_report_filename(code: str | None = None, ext: str = "pdf", now: datetime | None = None) -> str:
    if code:
        return f"roi-simulation-{code}.{ext}"
    now = now or datetime.now(timezone.utc)
    return f"roi-simulation-{int(now.timestamp() * 1000)}.{ext}"


def _log_event(level: str, event: str, message: str, context: dict | None = None, exc: BaseException | None = None) -> None:
    append_runtime_event(level=level, event=event, message=message, context=context or {}, exc=exc)


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------


def render_plotly_figure_png(fig: go.Figure, width_px: int = 1200, height_px: int = 650) -> bytes:
    """Render a Plotly figure into PNG bytes using Kaleido."""
    if fig is None:
        raise ValueError("Figure is required.")
    fig.update_layout(template="plotly_white", width=width_px, height=height_px, margin=dict(l=50, r=40, t=70, b=50))
    try:
        image = fig.to_image(format="png", width=width_px, height=height_px, scale=1)
    except Exception as exc:
        raise RuntimeError("Chart image render failed.") from exc
    return bytes(image)


def _chart_placeholder(chart_id: str, title: str, reason: str) -> dict[str, Any]:
    return {"id": chart_id, "title": title, "image_bytes": None, "placeholder_text": reason}


def capture_charts(builders: list[tuple[str, str, Callable[[], go.Figure | None]]]) -> list[dict[str, Any]]:
    """Render each figure or fall back to a placeholder entry."""
    out: list[dict[str, Any]] = []
    for chart_id, title, builder in builders:
        try:
            fig = builder()
            if fig is None:
                out.append(_chart_placeholder(chart_id, title, "No data available for this chart."))
                continue
            out.append(
                {"id": chart_id, "title": title, "image_bytes": render_plotly_figure_png(fig), "placeholder_text": ""}
            )
        except Exception as exc:
            _log_event("WARNING", "pdf_chart_render_failed", f"Chart render failed for {chart_id}.", {"chart_id": chart_id}, exc)
            out.append(_chart_placeholder(chart_id, title, "Chart engine unavailable; chart omitted."))
    return out


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def build_plan_report_sections(
    plan: BusinessPlan,
    analysis: BusinessAnalysis,
    df: pd.DataFrame,
    chart_images: list[dict] | None = None,
    today: date | None = None,
) -> list[dict[str, Any]]:
    today = today or date.today()
    t = plan.business_target
    summary = pd.DataFrame(
        [
            ("Target Revenue", format_currency(t.target_revenue)),
            ("Projection Period", f"{t.projection_period} months"),
            ("Projected Total Profit", format_currency(analysis.total_profit_12_months)),
            ("Break-even Point", f"Month {analysis.break_even_month}" if analysis.break_even_month else "Not reached"),
            ("ROI", format_percent(analysis.roi, 1)),
            ("Average Revenue / Month", format_currency(analysis.average_monthly_revenue)),
            ("Average Costs / Month", format_currency(analysis.average_monthly_costs)),
        ],
        columns=["Metric", "Value"],
    )
    sections: list[dict[str, Any]] = [
        {
            "title": "Business Analysis Report",
            "paragraphs": [f"Plan: {plan.name}", f"Date: {today.isoformat()}"],
            "tables": [{"title": "Executive Summary", "dataframe": summary}],
            "charts": [],
        }
    ]
    if plan.products:
        products = pd.DataFrame(
            [
                {
                    "Product": p.name,
                    "Price": format_currency(p.price),
                    "Type": PRODUCT_TYPE_LABELS.get(p.type, p.type),
                    "Sales / Month": f"{p.estimated_sales_per_month:g} units",
                    "Growth %": f"{p.target_growth_percent:g}%",
                }
                for p in plan.products
            ]
        )
        sections[0]["tables"].append({"title": "Products", "dataframe": products})

    head = df.head(12)
    projections = pd.DataFrame(
        {
            "Month": head["Month"].astype(int),
            "Revenue": head["Revenue"].map(format_currency),
            "Total Costs": head["Total Costs"].map(format_currency),
            "Net Profit": head["Net Profit"].map(format_currency),
            "Cumulative Profit": head["Cumulative Profit"].map(format_currency),
        }
    )
    sections.append(
        {
            "title": "Financial Projections (first 12 months)",
            "paragraphs": [],
            "tables": [{"title": "Monthly Projections", "dataframe": projections}],
            "charts": chart_images or [],
        }
    )
    return sections


def build_roi_report_sections(
    name: str,
    config: ROIConfig,
    results: ROIResults,
    chart_images: list[dict] | None = None,
    today: date | None = None,
) -> list[dict[str, Any]]:
    today = today or date.today()
    revenue_label = "Monthly Revenue (outlets)" if config.use_outlet_mode else "Monthly Revenue"
    inputs = pd.DataFrame(
        [
            ("Initial Investment", format_currency(config.initial_investment)),
            (revenue_label, format_currency(results.monthly_revenue)),
            ("Operational Costs", format_currency(results.monthly_costs)),
            ("Net Profit Margin", f"{config.net_profit_margin:g}%" if config.net_profit_margin > 0 else "Auto"),
            ("Ownership", f"{config.ownership_percentage:g}%"),
            ("Tax", f"{config.tax_rate:g}%"),
            ("Inflation", f"{config.inflation_rate:g}%"),
            ("Price Increase", f"{config.price_increase_rate:g}%"),
            ("Project Duration", f"{config.project_duration} years"),
            ("Scenario", SCENARIO_LABELS.get(config.scenario, config.scenario)),
        ],
        columns=["Input", "Value"],
    )
    key_results = pd.DataFrame(
        [
            ("Monthly Owner Profit", format_currency(results.monthly_owner_profit)),
            ("Monthly ROI", format_percent(results.monthly_roi)),
            ("Yearly ROI", format_percent(results.yearly_roi)),
            ("Break-even", f"{results.break_even_months} months" if results.break_even_months else "Not profitable"),
            ("Total Return", format_currency(results.total_return)),
        ],
        columns=["Metric", "Value"],
    )
    yearly = pd.DataFrame(
        {
            "Year": results.yearly["Year"],
            "Monthly Revenue": results.yearly["Monthly Revenue"].map(format_currency),
            "Monthly Profit": results.yearly["Monthly Profit"].map(format_currency),
            "Yearly Profit": results.yearly["Yearly Profit"].map(format_currency),
            "Cumulative": results.yearly["Cumulative Profit"].map(format_currency),
        }
    )
    return [
        {
            "title": "ROI & Profitability Simulation Report",
            "paragraphs": [name, f"Generated: {today.isoformat()}"],
            "tables": [
                {"title": "Input Data", "dataframe": inputs},
                {"title": "Simulation Results", "dataframe": key_results},
            ],
            "charts": [],
        },
        {
            "title": "Multi-Year Projection",
            "paragraphs": [],
            "tables": [{"title": "Yearly Projection", "dataframe": yearly}],
            "charts": chart_images or [],
        },
        {
            "title": "Recommendations",
            "paragraphs": recommendations(config, results),
            "tables": [],
            "charts": [],
        },
    ]


# ---------------------------------------------------------------------------
# ReportLab rendering
# ---------------------------------------------------------------------------


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="TableHeader", parent=styles["BodyText"], fontName="Helvetica-Bold", fontSize=8, leading=10))
    styles.add(ParagraphStyle(name="TableCell", parent=styles["BodyText"], fontName="Helvetica", fontSize=8, leading=10))
    return styles


def _append_dataframe_table(story: list[Any], table_spec: dict, styles) -> None:
    df = table_spec.get("dataframe")
    story.append(Paragraph(html.escape(str(table_spec.get("title", "Table"))), styles["Heading3"]))
    if not isinstance(df, pd.DataFrame) or df.empty:
        story.append(Paragraph("No data available.", styles["BodyText"]))
        story.append(Spacer(1, 8))
        return
    header = [Paragraph(html.escape(str(c)), styles["TableHeader"]) for c in df.columns]
    rows = [[Paragraph(html.escape(str(v)), styles["TableCell"]) for v in row] for row in df.itertuples(index=False)]
    t = Table([header] + rows, repeatRows=1)
    t.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#3f51b5")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("GRID", (0, 0), (-1, -1), 0.3, colors.HexColor("#bcccdc")),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f7fafc")]),
            ]
        )
    )
    story.append(t)
    story.append(Spacer(1, 10))


def _draw_footer(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    width = doc.pagesize[0]
    canvas.drawCentredString(width / 2, 0.45 * inch, f"Page {doc.page}")
    canvas.drawCentredString(width / 2, 0.3 * inch, FOOTER_TEXT)
    canvas.restoreState()


def render_sections_pdf(title: str, sections: list[dict]) -> bytes:
    styles = _styles()
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=0.6 * inch,
        rightMargin=0.6 * inch,
        topMargin=0.6 * inch,
        bottomMargin=0.8 * inch,
        title=title,
    )
    story: list[Any] = []
    for idx, section in enumerate(sections):
        story.append(Paragraph(html.escape(str(section.get("title", "Section"))), styles["Heading1"]))
        for para in section.get("paragraphs", []):
            story.append(Paragraph(html.escape(str(para)), styles["BodyText"]))
        if section.get("paragraphs"):
            story.append(Spacer(1, 8))
        for table_spec in section.get("tables", []):
            _append_dataframe_table(story, table_spec, styles)
        for chart in section.get("charts", []):
            story.append(Paragraph(html.escape(str(chart.get("title", "Chart"))), styles["Heading3"]))
            if chart.get("image_bytes"):
                img = Image(BytesIO(chart["image_bytes"]))
                img.drawWidth = 6.8 * inch
                img.drawHeight = 3.7 * inch
                story.append(img)
            else:
                story.append(Paragraph(html.escape(str(chart.get("placeholder_text") or "Chart unavailable.")), styles["BodyText"]))
            story.append(Spacer(1, 10))
        if idx < len(sections) - 1 and section.get("charts"):
            story.append(PageBreak())
    doc.build(story, onFirstPage=_draw_footer, onLaterPages=_draw_footer)
    return buf.getvalue()


def build_plan_pdf_bytes(
    plan: BusinessPlan, analysis: BusinessAnalysis, df: pd.DataFrame, include_charts: bool = True
) -> bytes:
    chart_images = None
    if include_charts:
        chart_images = capture_charts(
            [
                ("revenue_vs_costs", "Revenue vs Costs", lambda: charts.revenue_vs_costs(df)),
                ("cumulative_profit", "Cumulative Profit", lambda: charts.cumulative_profit(df, analysis.break_even_month)),
            ]
        )
    sections = build_plan_report_sections(plan, analysis, df, chart_images)
    try:
        pdf = render_sections_pdf(f"Business Plan - {plan.name}", sections)
    except Exception as exc:
        _log_event("ERROR", "pdf_export_failed", "Plan PDF build failed.", {"plan": plan.name}, exc)
        raise
    _log_event("INFO", "pdf_export_done", "Plan PDF built.", {"plan": plan.name, "bytes": len(pdf)})
    return pdf


def build_roi_pdf_bytes(name: str, config: ROIConfig, results: ROIResults, include_charts: bool = True) -> bytes:
    chart_images = None
    if include_charts:
        chart_images = capture_charts(
            [
                ("yearly_profit", "Yearly Owner Profit", lambda: charts.roi_yearly_profit(results.yearly)),
                ("cost_breakdown", "Monthly Cost Breakdown", lambda: charts.roi_cost_breakdown(cost_breakdown(config, results))),
            ]
        )
    sections = build_roi_report_sections(name, config, results, chart_images)
    try:
        pdf = render_sections_pdf(f"ROI Simulation - {name}", sections)
    except Exception as exc:
        _log_event("ERROR", "pdf_export_failed", "ROI PDF build failed.", {"name": name}, exc)
        raise
    _log_event("INFO", "pdf_export_done", "ROI PDF built.", {"name": name, "bytes": len(pdf)})
    return pdf
