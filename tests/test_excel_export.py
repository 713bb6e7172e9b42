from __future__ import annotations

from io import BytesIO

import pandas as pd
import pytest

from bizplan.excel_export import plan_workbook_sheets, roi_workbook_sheets, workbook_bytes
from bizplan.metrics import analyze
from bizplan.model import run_projection
from bizplan.roi import simulate_roi


def test_plan_workbook_sheets(full_plan):
    df = run_projection(full_plan)
    sheets = plan_workbook_sheets(full_plan, analyze(df), df)
    assert list(sheets) == ["Summary", "Products", "Employees", "Fixed Costs", "Variable Costs", "Projections"]
    employees = sheets["Employees"]
    assert employees.loc[0, "Salary"] == 8_000_000.0
    assert employees.loc[1, "Salary"] == "-"
    assert employees.loc[1, "Commission Value"] == 10.0


def test_plan_workbook_skips_empty_sections(three_month_plan):
    df = run_projection(three_month_plan)
    sheets = plan_workbook_sheets(three_month_plan, analyze(df), df)
    assert list(sheets) == ["Summary", "Products", "Fixed Costs", "Projections"]


def test_roi_workbook_reads_back(roi_config):
    results = simulate_roi(roi_config)
    data = workbook_bytes(roi_workbook_sheets("Kopi Franchise", roi_config, results))
    book = pd.read_excel(BytesIO(data), sheet_name=None, engine="openpyxl")
    assert list(book) == ["Inputs", "Results", "Yearly Projection", "Monthly Projection"]
    assert len(book["Yearly Projection"]) == roi_config.project_duration
    assert len(book["Monthly Projection"]) == 12
    owner = book["Results"].set_index("Metric").loc["Monthly Owner Profit", "Value"]
    assert float(owner) == pytest.approx(178_000_000.0)
