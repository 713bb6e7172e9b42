"""Excel workbook exports (pandas + openpyxl)."""

from __future__ import annotations

from datetime import date
from io import BytesIO

import pandas as pd

from bizplan.metrics import BusinessAnalysis
from bizplan.roi import ROIResults
from bizplan.runtime_logging import append_runtime_event
from bizplan.schema import BusinessPlan, CommissionedEmployee, ROIConfig, SalariedEmployee


def plan_workbook_sheets(
    plan: BusinessPlan, analysis: BusinessAnalysis, df: pd.DataFrame, today: date | None = None
) -> dict[str, pd.DataFrame]:
    today = today or date.today()
    t = plan.business_target
    sheets: dict[str, pd.DataFrame] = {
        "Summary": pd.DataFrame(
            [
                ("Plan Name", plan.name),
                ("Export Date", today.isoformat()),
                ("Target Revenue", t.target_revenue),
                ("Projection Period (months)", t.projection_period),
                ("Projected Total Profit", analysis.total_profit_12_months),
                ("Break-even Point", analysis.break_even_month or "Not reached"),
                ("ROI (%)", analysis.roi),
                ("Average Revenue / Month", analysis.average_monthly_revenue),
                ("Average Costs / Month", analysis.average_monthly_costs),
            ],
            columns=["Metric", "Value"],
        )
    }
    if plan.products:
        sheets["Products"] = pd.DataFrame(
            [
                {
                    "Product": p.name,
                    "Price": p.price,
                    "Type": p.type,
                    "Sales per Month": p.estimated_sales_per_month,
                    "Target Growth (%)": p.target_growth_percent,
                    "Commission Type": p.sales_commission.type,
                    "Commission Value": p.sales_commission.value,
                }
                for p in plan.products
            ]
        )
    if plan.employees:
        rows = []
        for e in plan.employees:
            commission = e.commission if isinstance(e, CommissionedEmployee) else None
            rows.append(
                {
                    "Name": e.name,
                    "Role": e.role,
                    "Payment Mode": e.payment_mode,
                    "Salary": e.salary if isinstance(e, SalariedEmployee) and e.salary else "-",
                    "Commission Type": commission.type if commission else "-",
                    "Commission Value": commission.value if commission else "-",
                    "Contribution": e.estimated_contribution or "-",
                }
            )
        sheets["Employees"] = pd.DataFrame(rows)
    if plan.fixed_costs:
        sheets["Fixed Costs"] = pd.DataFrame(
            [{"Cost": c.name, "Category": c.category, "Amount per Month": c.amount} for c in plan.fixed_costs]
        )
    if plan.variable_costs:
        sheets["Variable Costs"] = pd.DataFrame(
            [{"Cost": c.name, "Category": c.category, "Type": c.type, "Value": c.value} for c in plan.variable_costs]
        )
    sheets["Projections"] = df[
        ["Month", "Revenue", "Fixed Costs", "Variable Costs", "Total Costs", "Gross Profit", "Net Profit", "Cumulative Profit"]
    ].copy()
    return sheets


def roi_workbook_sheets(name: str, config: ROIConfig, results: ROIResults) -> dict[str, pd.DataFrame]:
    inputs = pd.DataFrame(
        [
            ("Simulation", name),
            ("Initial Investment", config.initial_investment),
            ("Monthly Revenue", results.monthly_revenue),
            ("Monthly Operational Costs", results.monthly_costs),
            ("Net Profit Margin (%)", config.net_profit_margin),
            ("Project Duration (years)", config.project_duration),
            ("Ownership (%)", config.ownership_percentage),
            ("Tax Rate (%)", config.tax_rate),
            ("Inflation Rate (%)", config.inflation_rate),
            ("Price Increase Rate (%)", config.price_increase_rate),
            ("Scenario", config.scenario),
            ("Outlet Mode", "Yes" if config.use_outlet_mode else "No"),
        ],
        columns=["Input", "Value"],
    )
    key_results = pd.DataFrame(
        [
            ("Monthly Gross Profit", results.monthly_gross_profit),
            ("Monthly Net Profit", results.monthly_net_profit),
            ("Monthly After-tax Profit", results.monthly_after_tax_profit),
            ("Monthly Owner Profit", results.monthly_owner_profit),
            ("Monthly ROI (%)", results.monthly_roi),
            ("Yearly ROI (%)", results.yearly_roi),
            ("Break-even (months)", results.break_even_months if results.break_even_months else "Not profitable"),
            ("Total Return", results.total_return),
            ("Inflation-adjusted Total Return", results.total_real_return),
            ("Average Annual ROI after Inflation (%)", results.average_roi_with_inflation),
        ],
        columns=["Metric", "Value"],
    )
    return {
        "Inputs": inputs,
        "Results": key_results,
        "Yearly Projection": results.yearly.copy(),
        "Monthly Projection": results.monthly.copy(),
    }


def workbook_bytes(sheets: dict[str, pd.DataFrame]) -> bytes:
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for sheet_name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=sheet_name[:31], index=False)
    data = buf.getvalue()
    append_runtime_event("INFO", "excel_export_done", "Workbook built.", {"sheets": list(sheets.keys()), "bytes": len(data)})
    return data
