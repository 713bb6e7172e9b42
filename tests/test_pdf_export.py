from __future__ import annotations

from datetime import date, datetime, timezone

from bizplan import pdf_export
from bizplan.metrics import analyze
from bizplan.model import run_projection
from bizplan.pdf_export import (
    build_plan_pdf_bytes,
    build_plan_report_sections,
    build_roi_pdf_bytes,
    build_roi_report_sections,
    capture_charts,
    plan_report_filename,
    roi_report_filename,
)
from bizplan.roi import simulate_roi


def _plan_inputs(plan):
    df = run_projection(plan)
    return df, analyze(df)


def test_report_filenames(full_plan):
    assert plan_report_filename(full_plan, today=date(2026, 3, 14)) == "business-plan-software-studio-2026-03-14.pdf"
    assert plan_report_filename(full_plan, ext="xlsx", today=date(2026, 3, 14)).endswith(".xlsx")
    assert roi_report_filename("AB12CD34") == "roi-simulation-AB12CD34.pdf"
    stamp = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert roi_report_filename(None, now=stamp) == f"roi-simulation-{int(stamp.timestamp() * 1000)}.pdf"


def test_plan_sections_structure(full_plan):
    df, analysis = _plan_inputs(full_plan)
    sections = build_plan_report_sections(full_plan, analysis, df, today=date(2026, 3, 14))
    assert [s["title"] for s in sections] == ["Business Analysis Report", "Financial Projections (first 12 months)"]
    summary = sections[0]["tables"][0]["dataframe"]
    assert summary.iloc[0]["Value"] == "Rp 100.000.000"
    assert sections[0]["tables"][1]["title"] == "Products"
    assert len(sections[1]["tables"][0]["dataframe"]) == 12


def test_plan_sections_without_products(three_month_plan):
    three_month_plan.products = []
    df, analysis = _plan_inputs(three_month_plan)
    sections = build_plan_report_sections(three_month_plan, analysis, df)
    assert [t["title"] for t in sections[0]["tables"]] == ["Executive Summary"]
    assert sections[0]["tables"][0]["dataframe"].iloc[3]["Value"] == "Not reached"


def test_roi_sections_include_recommendations(roi_config):
    results = simulate_roi(roi_config)
    sections = build_roi_report_sections("Kopi Franchise", roi_config, results)
    assert sections[-1]["title"] == "Recommendations"
    assert sections[-1]["paragraphs"][0] == "Business is profitable and viable to run"
    inputs = sections[0]["tables"][0]["dataframe"].set_index("Input")
    assert inputs.loc["Scenario", "Value"] == "Realistic"
    assert inputs.loc["Net Profit Margin", "Value"] == "Auto"


def test_plan_pdf_bytes_without_charts(full_plan):
    df, analysis = _plan_inputs(full_plan)
    pdf = build_plan_pdf_bytes(full_plan, analysis, df, include_charts=False)
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_roi_pdf_falls_back_to_placeholders(monkeypatch, roi_config):
    def fail_render(fig, width_px=1200, height_px=650):
        raise RuntimeError("kaleido missing")

    monkeypatch.setattr(pdf_export, "render_plotly_figure_png", fail_render)
    pdf = build_roi_pdf_bytes("Kopi Franchise", roi_config, simulate_roi(roi_config))
    assert pdf.startswith(b"%PDF")


def test_capture_charts_placeholders(monkeypatch):
    monkeypatch.setattr(pdf_export, "render_plotly_figure_png", lambda fig: b"png")
    images = capture_charts([("empty", "Empty", lambda: None), ("ok", "Ok", lambda: object())])
    assert images[0]["image_bytes"] is None
    assert images[0]["placeholder_text"] == "No data available for this chart."
    assert images[1]["image_bytes"] == b"png"
