import json
import uuid
from copy import deepcopy

import pandas as pd
import plotly.express as px
import streamlit as st

from bizplan import charts
from bizplan.access_log import access_stats, paginate, read_access_logs, record_access
from bizplan.admin_auth import AdminConfigError, login, verify_token
from bizplan.defaults import DEFAULT_OUTLET, DEFAULT_ROI_CONFIG, EMPLOYEE_ROLE_OPTIONS, MAX_PROJECT_DURATION_YEARS, MAX_PROJECTION_MONTHS
from bizplan.excel_export import plan_workbook_sheets, roi_workbook_sheets, workbook_bytes
from bizplan.formatting import (
    format_currency,
    format_currency_display,
    format_currency_short,
    format_number,
    parse_formatted_number,
)
from bizplan.input_metadata import help_with_guidance, plan_advisory_warnings, roi_advisory_warnings
from bizplan.integrity_checks import run_integrity_checks, run_roi_integrity_checks
from bizplan.metrics import summary_totals
from bizplan.model import run_projection
from bizplan.pdf_export import build_plan_pdf_bytes, build_roi_pdf_bytes, plan_report_filename, roi_report_filename
from bizplan.persistence import (
    SimulationStoreError,
    delete_plan,
    get_simulation_repository,
    list_saved_plans,
    load_plan,
    parse_import_json,
    results_payload,
    save_plan,
)
from bizplan.plan_store import PlanStore, edited_cells
from bizplan.roi import compare_simulations, break_even_note, cost_breakdown, recommendations, simulate_roi
from bizplan.runtime_logging import (
    analytics_summary,
    append_runtime_event,
    install_global_exception_logging,
    plan_context,
    read_runtime_events,
    simulation_context,
    track,
)
from bizplan.scenarios import ScenarioDelta, apply_delta, describe_delta, run_scenario
from bizplan.schema import (
    COMMISSION_TYPES,
    FIXED_COST_CATEGORIES,
    PLAN_TYPE,
    PRODUCT_TYPES,
    ROI_SCENARIOS,
    VARIABLE_COST_CATEGORIES,
    VARIABLE_COST_TYPES,
    BusinessTarget,
    Commission,
    CommissionedEmployee,
    FixedCost,
    Outlet,
    Product,
    ROIConfig,
    SalariedEmployee,
    VariableCost,
    build_plan_bundle,
    generate_id,
    roi_config_from_dict,
    validate_plan,
    validate_roi_config,
)
from bizplan.value_modes import VALUE_MODES, apply_value_mode, value_mode_label


st.set_page_config(page_title="Business Planner & ROI Simulator", layout="wide")
install_global_exception_logging()


VIEWS = ["Business Plan", "ROI Simulator", "Admin Logs"]
MONEY_FIELDS = ("initial_investment", "monthly_revenue", "monthly_operational_costs")

UI_DEFAULTS = {
    "view": VIEWS[0],
    "session_id": None,
    "logged_views": [],
    "new_plan_name": "",
    "value_mode": "nominal",
    "scenario_result": None,
    "scenario_delta": None,
    "plan_pdf_bytes": None,
    "plan_pdf_filename": "",
    "roi_name": "",
    "roi_code": "",
    "roi_load_code": "",
    "roi_compare_code": "",
    "roi_compare_config": None,
    "roi_pdf_bytes": None,
    "roi_pdf_filename": "",
    "admin_token": None,
    "admin_page": 1,
    "admin_days": 30,
}


def _init_state() -> None:
    for key, value in UI_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = deepcopy(value)
    if st.session_state["session_id"] is None:
        st.session_state["session_id"] = str(uuid.uuid4())
    if "plan_store" not in st.session_state:
        st.session_state["plan_store"] = PlanStore()
    if "roi_outlets" not in st.session_state:
        st.session_state["roi_outlets"] = []
    for key, value in DEFAULT_ROI_CONFIG.items():
        if key == "outlets":
            continue
        state_key = f"roi_{key}"
        if state_key in st.session_state:
            continue
        st.session_state[state_key] = format_number(value) if key in MONEY_FIELDS else value


def _request_headers():
    try:
        headers = st.context.headers
    except (AttributeError, RuntimeError):
        return {}
    return headers or {}


def _client_ip() -> str:
    headers = _request_headers()
    forwarded = headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return headers.get("X-Real-Ip", "") or "localhost"


def _client_user_agent() -> str:
    return _request_headers().get("User-Agent", "")


def _log_view_once(view: str) -> None:
    if view in st.session_state["logged_views"]:
        return
    st.session_state["logged_views"].append(view)
    record_access(_client_ip(), _client_user_agent(), view, st.session_state["session_id"])
    track("page_view", page=view, session_id=st.session_state["session_id"])


def _store() -> PlanStore:
    return st.session_state["plan_store"]


def _reset_plan_outputs() -> None:
    st.session_state["scenario_result"] = None
    st.session_state["scenario_delta"] = None
    st.session_state["plan_pdf_bytes"] = None


# ---------------------------------------------------------------------------
# Business Plan view
# ---------------------------------------------------------------------------


def _render_plan_picker() -> None:
    st.subheader("Start a Business Plan")
    c1, c2 = st.columns(2)
    with c1:
        st.text_input("Plan Name", key="new_plan_name", placeholder="e.g., Coffee Shop 2026", help="Name of the new plan.")
        if st.button("Create Plan", disabled=not st.session_state["new_plan_name"].strip(), help="Create an empty plan with default targets."):
            plan = _store().create_plan(st.session_state["new_plan_name"])
            track("plan_created", **plan_context(plan))
            _reset_plan_outputs()
            st.rerun()
    with c2:
        saved = list_saved_plans()
        labels = {row["id"]: f"{row['name']} ({row['products']} products)" for row in saved}
        selected = st.selectbox(
            "Saved Plans",
            options=[""] + list(labels.keys()),
            format_func=lambda pid: labels.get(pid, ""),
            help="Plans saved in local storage.",
        )
        b1, b2 = st.columns(2)
        if b1.button("Load Plan", disabled=not selected, help="Open the selected plan."):
            plan = load_plan(selected)
            if plan is None:
                st.error("Plan not found.")
            else:
                _store().load_plan(plan)
                _reset_plan_outputs()
                st.rerun()
        if b2.button("Delete Plan", disabled=not selected, help="Remove the selected plan from local storage."):
            if delete_plan(selected):
                st.success("Plan deleted.")
        uploaded = st.file_uploader("Import Plan JSON", type=["json"], help="Import a plan exported from this app.")
        if uploaded is not None:
            kind, obj, warnings, unknown = parse_import_json(uploaded.getvalue())
            if kind != PLAN_TYPE:
                st.error("File is not a business plan export.")
            else:
                for w in warnings:
                    st.warning(w)
                if unknown:
                    st.caption(f"Ignored keys: {', '.join(unknown)}")
                if st.button("Open Imported Plan", help="Replace the current plan with the imported one."):
                    _store().load_plan(obj)
                    track("plan_imported", **plan_context(obj))
                    _reset_plan_outputs()
                    st.rerun()


def _sync_edits(original: pd.DataFrame, edited: pd.DataFrame, update_fn, fields: list[str]) -> int:
    """Apply changed editor cells through the store's update method."""
    changes = edited_cells(original, edited, fields)
    for item_id, updates in changes:
        update_fn(item_id, **updates)
    return len(changes)


def _render_products() -> None:
    store = _store()
    plan = store.current
    with st.form("product_form", clear_on_submit=True):
        st.markdown("**Add Product**")
        c1, c2, c3 = st.columns(3)
        name = c1.text_input("Product Name", help="Name of the product or service.")
        price = c2.number_input("Price (Rp)", min_value=0.0, step=1000.0, help="Price per unit sold.")
        ptype = c3.selectbox("Product Type", PRODUCT_TYPES, help="Subscription, one-time sale or service.")
        c4, c5, c6, c7 = st.columns(4)
        sales = c4.number_input("Sales per Month", min_value=0.0, step=1.0, help="Estimated units sold in month 1.")
        growth = c5.number_input("Target Growth (%)", min_value=0.0, step=1.0, help="Recorded for reference; plan growth uses the business target.")
        ctype = c6.selectbox("Sales Commission Type", COMMISSION_TYPES, help="How sales commission is paid for this product.")
        cvalue = c7.number_input("Sales Commission Value", min_value=0.0, step=1.0, help="Percent of price or a fixed amount.")
        if st.form_submit_button("Add Product"):
            if not name.strip():
                st.error("Product name is required.")
            else:
                store.add_product(
                    Product(
                        id="",
                        name=name.strip(),
                        price=price,
                        type=ptype,
                        estimated_sales_per_month=sales,
                        target_growth_percent=growth,
                        sales_commission=Commission(type=ctype, value=cvalue),
                    )
                )
                st.rerun()

    if not plan.products:
        st.caption("No products yet.")
        return
    fields = ["name", "price", "estimated_sales_per_month", "target_growth_percent"]
    original = pd.DataFrame([{"id": p.id, **{f: getattr(p, f) for f in fields}} for p in plan.products])
    edited = st.data_editor(original, key="products_editor", disabled=["id"], hide_index=True, width="stretch")
    c1, c2 = st.columns(2)
    if c1.button("Save Product Edits", help="Apply edited cells to the plan."):
        if _sync_edits(original, edited, store.update_product, fields):
            st.rerun()
    remove_id = c2.selectbox(
        "Remove Product",
        [""] + [p.id for p in plan.products],
        format_func=lambda pid: next((p.name for p in plan.products if p.id == pid), ""),
        help="Select a product to remove.",
    )
    if remove_id and c2.button("Remove Selected Product", help="Delete the selected product."):
        store.remove_product(remove_id)
        st.rerun()


def _render_employees() -> None:
    store = _store()
    plan = store.current
    with st.form("employee_form", clear_on_submit=True):
        st.markdown("**Add Employee**")
        c1, c2, c3 = st.columns(3)
        name = c1.text_input("Employee Name", help="Full name of the employee.")
        role = c2.selectbox("Role", EMPLOYEE_ROLE_OPTIONS, help="Position in the team.")
        mode = c3.selectbox("Payment Mode", ["fixed", "commission"], help="Fixed salary or commission on revenue.")
        c4, c5, c6 = st.columns(3)
        salary = c4.number_input("Monthly Salary (Rp)", min_value=0.0, step=100000.0, help="Used for fixed-salary employees.")
        ctype = c5.selectbox("Commission Type", COMMISSION_TYPES, help="Used for commission-based employees.")
        cvalue = c6.number_input("Commission Value", min_value=0.0, step=1.0, help="Percent of revenue or a fixed monthly amount.")
        contribution = st.text_input("Estimated Contribution", help="Optional note on the employee's expected impact.")
        if st.form_submit_button("Add Employee"):
            if not name.strip():
                st.error("Employee name is required.")
            elif mode == "fixed":
                store.add_employee(SalariedEmployee(id="", name=name.strip(), role=role, salary=salary, estimated_contribution=contribution))
                st.rerun()
            else:
                store.add_employee(
                    CommissionedEmployee(
                        id="", name=name.strip(), role=role, commission=Commission(type=ctype, value=cvalue), estimated_contribution=contribution
                    )
                )
                st.rerun()

    if not plan.employees:
        st.caption("No employees yet.")
        return
    rows = []
    for e in plan.employees:
        if isinstance(e, SalariedEmployee):
            pay = format_currency(e.salary)
        elif e.commission is not None:
            pay = f"{e.commission.value:g}%" if e.commission.type == "percentage" else format_currency(e.commission.value)
        else:
            pay = "-"
        rows.append({"Name": e.name, "Role": e.role, "Mode": e.payment_mode, "Pay": pay})
    st.dataframe(pd.DataFrame(rows), hide_index=True, width="stretch")
    remove_id = st.selectbox(
        "Remove Employee",
        [""] + [e.id for e in plan.employees],
        format_func=lambda eid: next((e.name for e in plan.employees if e.id == eid), ""),
        help="Select an employee to remove.",
    )
    if remove_id and st.button("Remove Selected Employee", help="Delete the selected employee."):
        store.remove_employee(remove_id)
        st.rerun()


def _render_costs() -> None:
    store = _store()
    plan = store.current
    c_fixed, c_var = st.columns(2)
    with c_fixed:
        with st.form("fixed_cost_form", clear_on_submit=True):
            st.markdown("**Add Fixed Cost**")
            name = st.text_input("Fixed Cost Name", help="e.g., rent, software subscription.")
            amount = st.number_input("Amount per Month (Rp)", min_value=0.0, step=100000.0, help="Grows with the cost growth rate.")
            category = st.selectbox("Fixed Cost Category", FIXED_COST_CATEGORIES, help="Grouping for reports.")
            if st.form_submit_button("Add Fixed Cost"):
                if not name.strip():
                    st.error("Cost name is required.")
                else:
                    store.add_fixed_cost(FixedCost(id="", name=name.strip(), amount=amount, category=category))
                    st.rerun()
        if plan.fixed_costs:
            original = pd.DataFrame([{"id": c.id, "name": c.name, "amount": c.amount, "category": c.category} for c in plan.fixed_costs])
            edited = st.data_editor(original, key="fixed_costs_editor", disabled=["id", "category"], hide_index=True, width="stretch")
            if st.button("Save Fixed Cost Edits", help="Apply edited cells to the plan."):
                if _sync_edits(original, edited, store.update_fixed_cost, ["name", "amount"]):
                    st.rerun()
            remove_id = st.selectbox(
                "Remove Fixed Cost",
                [""] + [c.id for c in plan.fixed_costs],
                format_func=lambda cid: next((c.name for c in plan.fixed_costs if c.id == cid), ""),
                help="Select a fixed cost to remove.",
            )
            if remove_id and st.button("Remove Selected Fixed Cost", help="Delete the selected fixed cost."):
                store.remove_fixed_cost(remove_id)
                st.rerun()
    with c_var:
        with st.form("variable_cost_form", clear_on_submit=True):
            st.markdown("**Add Variable Cost**")
            name = st.text_input("Variable Cost Name", help="e.g., payment gateway fee, packaging.")
            vtype = st.selectbox("Variable Cost Type", VARIABLE_COST_TYPES, help="Percentage of revenue, flat monthly, or per unit.")
            value = st.number_input("Value", min_value=0.0, step=1.0, help="Percent for percentage type, rupiah otherwise.")
            category = st.selectbox("Variable Cost Category", VARIABLE_COST_CATEGORIES, help="Grouping for reports.")
            if st.form_submit_button("Add Variable Cost"):
                if not name.strip():
                    st.error("Cost name is required.")
                else:
                    store.add_variable_cost(VariableCost(id="", name=name.strip(), type=vtype, value=value, category=category))
                    st.rerun()
        if plan.variable_costs:
            original = pd.DataFrame(
                [{"id": c.id, "name": c.name, "type": c.type, "value": c.value} for c in plan.variable_costs]
            )
            edited = st.data_editor(original, key="variable_costs_editor", disabled=["id", "type"], hide_index=True, width="stretch")
            if st.button("Save Variable Cost Edits", help="Apply edited cells to the plan."):
                if _sync_edits(original, edited, store.update_variable_cost, ["name", "value"]):
                    st.rerun()
            remove_id = st.selectbox(
                "Remove Variable Cost",
                [""] + [c.id for c in plan.variable_costs],
                format_func=lambda cid: next((c.name for c in plan.variable_costs if c.id == cid), ""),
                help="Select a variable cost to remove.",
            )
            if remove_id and st.button("Remove Selected Variable Cost", help="Delete the selected variable cost."):
                store.remove_variable_cost(remove_id)
                st.rerun()


def _render_target() -> None:
    store = _store()
    t = store.current.business_target
    with st.form("target_form"):
        c1, c2, c3 = st.columns(3)
        target_revenue = c1.number_input("Target Revenue (Rp)", min_value=1.0, value=float(t.target_revenue), step=1_000_000.0, help="Revenue goal for the plan.")
        period = c2.number_input(
            "Projection Period (months)",
            min_value=1,
            max_value=MAX_PROJECTION_MONTHS,
            value=int(t.projection_period),
            help=help_with_guidance("projection_period", "Number of months to project."),
        )
        closing = c3.number_input(
            "Sales Closing Rate (%)",
            min_value=0.0,
            max_value=100.0,
            value=float(t.sales_closing_rate),
            help=help_with_guidance("sales_closing_rate", "Share of leads converted."),
        )
        c4, c5, c6 = st.columns(3)
        rev_growth = c4.number_input(
            "Revenue Growth (%/month)", min_value=0.0, value=float(t.revenue_growth_percent),
            help=help_with_guidance("revenue_growth_percent", "Monthly compounding of unit sales."),
        )
        cost_growth = c5.number_input(
            "Cost Growth (%/month)", min_value=0.0, value=float(t.cost_growth_percent),
            help=help_with_guidance("cost_growth_percent", "Monthly compounding of salaries and fixed costs."),
        )
        inflation = c6.number_input(
            "Cost Inflation (%/year)", min_value=0.0, value=float(t.cost_inflation_rate),
            help=help_with_guidance("cost_inflation_rate", "Used by the inflation-adjusted view."),
        )
        if st.form_submit_button("Save Target"):
            candidate = BusinessTarget(
                target_revenue=target_revenue,
                projection_period=int(period),
                revenue_growth_percent=rev_growth,
                cost_growth_percent=cost_growth,
                sales_closing_rate=closing,
                cost_inflation_rate=inflation,
            )
            store.update_business_target(**candidate.to_dict())
            _reset_plan_outputs()
            st.rerun()
    for w in plan_advisory_warnings(t.to_dict()):
        st.caption(f"Advisory: {w}")


def _render_analysis() -> None:
    store = _store()
    plan = store.current
    analysis = store.analysis()
    df = store.projection_frame()
    if analysis is None or df.empty:
        st.info("Add products, employees, costs and targets to see the analysis.")
        return

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Total Profit", format_currency_short(analysis.total_profit_12_months))
    m2.metric("Break-even", f"Month {analysis.break_even_month}" if analysis.break_even_month else "Not reached")
    m3.metric("ROI", f"{analysis.roi:.1f}%")
    m4.metric("Avg Revenue / Month", format_currency_display(analysis.average_monthly_revenue) or "Rp 0")

    totals = summary_totals(df)
    target = plan.business_target.target_revenue
    st.caption(
        f"Total revenue {format_currency(totals['total_revenue'])} vs monthly target {format_currency(target)}; "
        f"net margin {totals['net_margin'] * 100:.1f}%."
    )

    st.radio(
        "Value Mode",
        VALUE_MODES,
        key="value_mode",
        format_func=value_mode_label,
        horizontal=True,
        help="Show nominal figures or deflate by annual cost inflation.",
    )
    view_df = apply_value_mode(df, plan.business_target.cost_inflation_rate, st.session_state["value_mode"], periods_per_year=12)

    c1, c2 = st.columns(2)
    fig = charts.revenue_vs_costs(view_df)
    if fig is not None:
        c1.plotly_chart(fig, width="stretch")
    fig = charts.cumulative_profit(view_df, analysis.break_even_month)
    if fig is not None:
        c2.plotly_chart(fig, width="stretch")
    fig = charts.cost_composition(view_df)
    if fig is not None:
        st.plotly_chart(fig, width="stretch")

    st.dataframe(view_df, hide_index=True, width="stretch")

    findings = run_integrity_checks(df, plan.business_target.projection_period)
    with st.expander(f"Integrity Checks ({len(findings)} findings)", expanded=bool(findings)):
        if findings:
            st.dataframe(pd.DataFrame(findings), hide_index=True, width="stretch")
        else:
            st.success("All accounting identities hold.")


def _render_what_if() -> None:
    store = _store()
    if store.analysis() is None:
        st.info("Complete the plan before running scenarios.")
        return
    with st.form("scenario_form"):
        c1, c2 = st.columns(2)
        price = c1.number_input("Raise Product Prices (%)", step=0.1, value=0.0, help="10 means prices go up 10%.")
        commission = c1.number_input("Raise Sales Commission (%)", step=0.1, value=0.0, help="Added to percentage commissions.")
        cost = c2.number_input("Cut Operating Costs (%)", step=0.1, max_value=50.0, value=0.0, help="Applied to fixed and variable costs.")
        hire = c2.number_input("Add Employee (salary Rp/month)", min_value=0.0, step=100000.0, value=0.0, help="0 means no new hire.")
        run = st.form_submit_button("Run Simulation")
        reset = st.form_submit_button("Reset Scenario")
    if reset:
        _reset_plan_outputs()
    if run:
        delta = ScenarioDelta(
            price_increase_percent=price,
            cost_reduction_percent=cost,
            new_employee_salary=hire,
            commission_change_percent=commission,
        )
        st.session_state["scenario_delta"] = delta
        st.session_state["scenario_result"] = run_scenario(store.current, delta)
        track("scenario_run", plan_id=store.current.id, **delta.__dict__)

    delta = st.session_state["scenario_delta"]
    result = st.session_state["scenario_result"]
    if delta is None or result is None:
        return
    lines = describe_delta(delta)
    if lines:
        st.markdown("**Scenario Summary**")
        for line in lines:
            st.write(f"- {line}")

    period = store.current.business_target.projection_period
    c1, c2, c3 = st.columns(3)
    c1.metric(
        f"Total Profit ({period} months)",
        format_currency_short(result.scenario.total_profit_12_months),
        f"{result.total_profit.percentage:.1f}%",
    )
    c2.metric(
        "Break-even",
        f"Month {result.scenario.break_even_month}" if result.scenario.break_even_month else "Not reached",
        result.break_even.message,
        delta_color="off",
    )
    c3.metric("ROI", f"{result.scenario.roi:.1f}%", f"{result.roi.diff:+.1f}%")

    fig = charts.scenario_comparison(run_projection(store.current), run_projection(apply_delta(store.current, delta)))
    if fig is not None:
        st.plotly_chart(fig, width="stretch")
    if result.insights:
        st.markdown("**Quick Insights**")
        for insight in result.insights:
            st.write(f"- {insight}")


def _render_plan_export() -> None:
    store = _store()
    plan = store.current
    analysis = store.analysis()
    c1, c2, c3 = st.columns(3)
    if c1.button("Save Plan", help="Save the current plan to local storage."):
        try:
            validate_plan(plan)
        except ValueError as exc:
            st.error(str(exc))
        else:
            ok, msg = save_plan(plan)
            if ok:
                track("plan_saved", **plan_context(plan))
                st.success(msg)
            else:
                append_runtime_event("WARNING", "save_plan_failed", msg, {"plan": plan.name})
                st.warning(msg)
    c2.download_button(
        "Download Plan JSON",
        data=json.dumps(build_plan_bundle(plan), indent=2),
        file_name=plan_report_filename(plan, ext="json"),
        mime="application/json",
        help="Export the plan for import elsewhere.",
    )
    if c3.button("Close Plan", help="Close the current plan without deleting it."):
        store.clear()
        _reset_plan_outputs()
        st.rerun()

    if analysis is None:
        st.info("Reports need a non-empty projection.")
        return
    df = store.projection_frame()
    if st.button("Generate PDF Report", help="Build the PDF report with charts when the image engine is available."):
        try:
            st.session_state["plan_pdf_bytes"] = build_plan_pdf_bytes(plan, analysis, df)
            st.session_state["plan_pdf_filename"] = plan_report_filename(plan)
            track("export_done", format="pdf", kind="plan", plan_id=plan.id)
        except Exception as exc:
            st.error(f"PDF generation failed: {exc}")
    if st.session_state["plan_pdf_bytes"]:
        st.download_button(
            "Download PDF",
            data=st.session_state["plan_pdf_bytes"],
            file_name=st.session_state["plan_pdf_filename"],
            mime="application/pdf",
            help="Download the generated PDF report.",
        )
    st.download_button(
        "Download Excel",
        data=workbook_bytes(plan_workbook_sheets(plan, analysis, df)),
        file_name=plan_report_filename(plan, ext="xlsx"),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        help="Workbook with summary, inputs and projections.",
    )


def render_plan_view() -> None:
    st.title("Business Plan")
    store = _store()
    if store.current is None:
        _render_plan_picker()
        return
    st.caption(f"Plan: **{store.current.name}** | last updated {store.current.updated_at[:19]}")
    setup, analysis, what_if, export = st.tabs(["Setup", "Analysis", "What-if", "Export"])
    with setup:
        with st.expander("Products", expanded=True):
            _render_products()
        with st.expander("Employees", expanded=False):
            _render_employees()
        with st.expander("Costs", expanded=False):
            _render_costs()
        with st.expander("Business Target", expanded=False):
            _render_target()
    with analysis:
        _render_analysis()
    with what_if:
        _render_what_if()
    with export:
        _render_plan_export()


# ---------------------------------------------------------------------------
# ROI Simulator view
# ---------------------------------------------------------------------------


def _roi_config_from_state() -> ROIConfig:
    raw = {}
    for key in DEFAULT_ROI_CONFIG:
        if key == "outlets":
            continue
        value = st.session_state[f"roi_{key}"]
        raw[key] = parse_formatted_number(value) if key in MONEY_FIELDS else value
    raw["outlets"] = deepcopy(st.session_state["roi_outlets"])
    config, _ = roi_config_from_dict(raw)
    return config


def _apply_config_to_state(config: ROIConfig) -> None:
    for key, value in config.to_dict().items():
        if key == "outlets":
            st.session_state["roi_outlets"] = value
        elif key in MONEY_FIELDS:
            st.session_state[f"roi_{key}"] = format_number(value)
        else:
            st.session_state[f"roi_{key}"] = value


def _reformat_money(state_key: str) -> None:
    st.session_state[state_key] = format_number(parse_formatted_number(st.session_state[state_key]))


def _money_input(label: str, key: str, help_text: str, disabled: bool = False) -> None:
    state_key = f"roi_{key}"
    st.text_input(label, key=state_key, on_change=_reformat_money, args=(state_key,), help=help_text, disabled=disabled)
    display = format_currency_display(parse_formatted_number(st.session_state[state_key]))
    if display:
        st.caption(display)


def _render_roi_inputs() -> None:
    c1, c2, c3 = st.columns(3)
    with c1:
        _money_input("Initial Investment (Rp)", "initial_investment", "Total capital invested up front.")
        st.toggle("Outlet Mode", key="roi_use_outlet_mode", help="Derive revenue and costs from individual outlets.")
        outlet_mode = st.session_state["roi_use_outlet_mode"]
        _money_input("Monthly Revenue (Rp)", "monthly_revenue", "Expected revenue per month; outlets override it.", disabled=outlet_mode)
        _money_input("Monthly Operational Costs (Rp)", "monthly_operational_costs", "All operating costs per month; outlets override it.", disabled=outlet_mode)
    with c2:
        st.number_input("Net Profit Margin (%)", min_value=0.0, max_value=100.0, key="roi_net_profit_margin",
                        help=help_with_guidance("net_profit_margin", "Overrides revenue minus costs when above 0."))
        st.number_input("Project Duration (years)", min_value=1, max_value=MAX_PROJECT_DURATION_YEARS, key="roi_project_duration",
                        help=help_with_guidance("project_duration", "Years in the yearly projection."))
        st.number_input("Ownership (%)", min_value=0.0, max_value=100.0, key="roi_ownership_percentage",
                        help=help_with_guidance("ownership_percentage", "Your share of profit."))
        st.number_input("Tax Rate (%)", min_value=0.0, max_value=100.0, key="roi_tax_rate",
                        help=help_with_guidance("tax_rate", "Tax applied to net profit."))
    with c3:
        st.number_input("Inflation (%/year)", min_value=0.0, max_value=100.0, key="roi_inflation_rate",
                        help=help_with_guidance("inflation_rate", "Applied to costs each year."))
        st.number_input("Price Increase (%/year)", min_value=0.0, max_value=100.0, key="roi_price_increase_rate",
                        help=help_with_guidance("price_increase_rate", "Applied to revenue each year."))
        st.selectbox("Scenario", ROI_SCENARIOS, key="roi_scenario",
                     help="Optimistic: revenue x1.2, costs x0.9. Pessimistic: revenue x0.8, costs x1.1.")

    if st.session_state["roi_use_outlet_mode"]:
        st.markdown("**Outlets**")
        columns = ["name", "daily_revenue", "operating_days_per_month", "monthly_operational_costs"]
        outlets_df = pd.DataFrame(st.session_state["roi_outlets"], columns=["id"] + columns)
        edited = st.data_editor(
            outlets_df[columns],
            key="roi_outlets_editor",
            num_rows="dynamic",
            hide_index=True,
            width="stretch",
            column_config={
                "operating_days_per_month": st.column_config.NumberColumn("Operating Days", min_value=1, max_value=31),
            },
        )
        if st.button("Save Outlets", help="Apply the outlet table to the simulation."):
            outlets = []
            for idx, row in enumerate(edited.fillna(0).to_dict(orient="records")):
                outlet_id = outlets_df.iloc[idx]["id"] if idx < len(outlets_df) else generate_id()
                outlets.append(
                    Outlet(
                        id=str(outlet_id or generate_id()),
                        name=str(row.get("name") or f"Outlet {idx + 1}"),
                        daily_revenue=float(row.get("daily_revenue") or DEFAULT_OUTLET["daily_revenue"]),
                        operating_days_per_month=int(row.get("operating_days_per_month") or DEFAULT_OUTLET["operating_days_per_month"]),
                        monthly_operational_costs=float(row.get("monthly_operational_costs") or DEFAULT_OUTLET["monthly_operational_costs"]),
                    ).to_dict()
                )
            st.session_state["roi_outlets"] = outlets
            st.rerun()


def _render_roi_results(config: ROIConfig):
    results = simulate_roi(config)
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Monthly Owner Profit", format_currency_display(results.monthly_owner_profit) or format_currency(results.monthly_owner_profit))
    m2.metric("Monthly ROI", f"{results.monthly_roi:.2f}%")
    m3.metric("Yearly ROI", f"{results.yearly_roi:.1f}%")
    m4.metric("Break-even", f"{results.break_even_months} months" if results.break_even_months else "N/A")

    breakdown = pd.DataFrame(
        [
            ("Revenue", results.monthly_revenue),
            ("Operational Costs", results.monthly_costs),
            ("Gross Profit", results.monthly_gross_profit),
            ("Net Profit", results.monthly_net_profit),
            ("After-tax Profit", results.monthly_after_tax_profit),
            ("Owner Profit", results.monthly_owner_profit),
        ],
        columns=["Monthly Item", "Rp"],
    )
    breakdown["Rp"] = breakdown["Rp"].map(format_currency)
    c1, c2 = st.columns(2)
    c1.dataframe(breakdown, hide_index=True, width="stretch")
    fig = charts.roi_cost_breakdown(cost_breakdown(config, results))
    if fig is not None:
        c2.plotly_chart(fig, width="stretch")

    yearly_tab, monthly_tab = st.tabs(["Yearly Projection", "12-Month Detail"])
    with yearly_tab:
        st.radio("Yearly Values", ["nominal", "real_inflation"], key="roi_value_mode", format_func=value_mode_label,
                 horizontal=True, help="Deflate yearly figures by the inflation rate.")
        yearly_view = apply_value_mode(results.yearly, config.inflation_rate, st.session_state["roi_value_mode"], periods_per_year=1)
        fig = charts.roi_yearly_profit(yearly_view)
        if fig is not None:
            st.plotly_chart(fig, width="stretch")
        st.dataframe(yearly_view, hide_index=True, width="stretch")
        st.caption(
            f"Total return {format_currency(results.total_return)}; inflation-adjusted {format_currency(results.total_real_return)}; "
            f"average annual ROI after inflation {results.average_roi_with_inflation:.1f}%."
        )
    with monthly_tab:
        fig = charts.roi_monthly_cumulative(results.monthly, config.initial_investment)
        if fig is not None:
            st.plotly_chart(fig, width="stretch")
        st.dataframe(results.monthly, hide_index=True, width="stretch")

    st.markdown("**Analysis & Recommendations**")
    for line in recommendations(config, results):
        st.write(f"- {line}")
    st.write(f"- {break_even_note(results)}")
    for w in roi_advisory_warnings(config.to_dict()):
        st.caption(f"Advisory: {w}")
    findings = run_roi_integrity_checks(results.yearly)
    if findings:
        st.warning(f"{len(findings)} integrity findings in the yearly projection.")
        st.dataframe(pd.DataFrame(findings), hide_index=True, width="stretch")
    return results


def _render_roi_share(config: ROIConfig, results) -> None:
    repo = get_simulation_repository()
    c1, c2, c3 = st.columns(3)
    with c1:
        st.markdown("**Save Simulation**")
        st.text_input("Simulation Name", key="roi_name", help="Name shown when others load the code.")
        if st.button("Save Simulation", disabled=not st.session_state["roi_name"].strip(), help="Save and get a shareable code."):
            try:
                validate_roi_config(config)
                code = repo.save(st.session_state["roi_name"], config, results_payload(results))
            except (ValueError, SimulationStoreError) as exc:
                append_runtime_event("ERROR", "simulation_save_failed", str(exc), {"name": st.session_state["roi_name"]}, exc=exc)
                st.error(f"Failed to save simulation: {exc}")
            else:
                st.session_state["roi_code"] = code
                track("simulation_saved", **simulation_context(config, code))
                st.success(f"Saved. Code: {code}")
        if st.session_state["roi_code"]:
            st.code(st.session_state["roi_code"])
    with c2:
        st.markdown("**Load Simulation**")
        st.text_input("Simulation Code", key="roi_load_code", help="8-character code from a saved simulation.")
        if st.button("Load Simulation", help="Replace inputs with the saved simulation."):
            record = repo.load(st.session_state["roi_load_code"].strip().upper())
            if record is None:
                st.error("Simulation code not found!")
            else:
                # Widget-backed keys can only be set before the widgets render.
                st.session_state["roi_pending_record"] = record
                st.rerun()
    with c3:
        st.markdown("**Compare**")
        st.text_input("Compare Code", key="roi_compare_code", help="Code of a simulation to compare against.")
        if st.button("Load Comparison", help="Load another simulation for side-by-side comparison."):
            code = st.session_state["roi_compare_code"].strip().upper()
            if not code:
                st.warning("Enter a simulation code to compare.")
            else:
                record = repo.load(code)
                if record is None:
                    st.error("Simulation code not found!")
                    st.session_state["roi_compare_config"] = None
                else:
                    st.session_state["roi_compare_config"] = record["data"]
                    track("simulation_compared", code=st.session_state["roi_code"] or None, other_code=record["code"])
                    st.success(f"Simulation \"{record['name']}\" loaded for comparison.")
    if st.session_state["roi_compare_config"]:
        other, _ = roi_config_from_dict(st.session_state["roi_compare_config"])
        st.dataframe(compare_simulations(config, other), hide_index=True, width="stretch")


def _render_roi_export(config: ROIConfig, results) -> None:
    name = st.session_state["roi_name"].strip() or "ROI Simulation"
    code = st.session_state["roi_code"] or None
    c1, c2 = st.columns(2)
    if c1.button("Generate ROI PDF", help="Build the PDF report for this simulation."):
        try:
            st.session_state["roi_pdf_bytes"] = build_roi_pdf_bytes(name, config, results)
            st.session_state["roi_pdf_filename"] = roi_report_filename(code)
            track("export_done", format="pdf", kind="roi", **simulation_context(config, code))
        except Exception as exc:
            st.error(f"Failed to create PDF: {exc}")
    if st.session_state["roi_pdf_bytes"]:
        c1.download_button(
            "Download ROI PDF",
            data=st.session_state["roi_pdf_bytes"],
            file_name=st.session_state["roi_pdf_filename"],
            mime="application/pdf",
            help="Download the generated PDF report.",
        )
    c2.download_button(
        "Download ROI Excel",
        data=workbook_bytes(roi_workbook_sheets(name, config, results)),
        file_name=roi_report_filename(code, ext="xlsx"),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        help="Workbook with inputs, results and projections.",
    )


def render_roi_view() -> None:
    st.title("ROI Simulator")
    if "roi_value_mode" not in st.session_state:
        st.session_state["roi_value_mode"] = "nominal"
    pending = st.session_state.pop("roi_pending_record", None)
    if pending is not None:
        loaded, warnings = roi_config_from_dict(pending["data"])
        for w in warnings:
            st.warning(w)
        _apply_config_to_state(loaded)
        st.session_state["roi_code"] = pending["code"]
        st.session_state["roi_name"] = pending["name"]
        track("simulation_loaded", **simulation_context(loaded, pending["code"]))
    _render_roi_inputs()
    config = _roi_config_from_state()
    try:
        validate_roi_config(config)
    except ValueError as exc:
        st.error(str(exc))
        return
    st.divider()
    results = _render_roi_results(config)
    st.divider()
    _render_roi_share(config, results)
    st.divider()
    _render_roi_export(config, results)


# ---------------------------------------------------------------------------
# Admin view
# ---------------------------------------------------------------------------


def render_admin_view() -> None:
    st.title("Admin Logs")
    if not verify_token(st.session_state["admin_token"]):
        st.session_state["admin_token"] = None
        with st.form("admin_login"):
            username = st.text_input("Username", help="Admin username.")
            password = st.text_input("Password", type="password", help="Admin password.")
            submitted = st.form_submit_button("Login")
        if submitted:
            try:
                token = login(username, password)
            except AdminConfigError as exc:
                append_runtime_event("ERROR", "admin_not_configured", str(exc))
                st.error(str(exc))
                return
            if token is None:
                append_runtime_event("WARNING", "admin_login_failed", "Invalid credentials.", {"username": username})
                st.error("Invalid credentials.")
            else:
                st.session_state["admin_token"] = token
                st.rerun()
        return

    if st.button("Logout", help="End the admin session."):
        st.session_state["admin_token"] = None
        st.rerun()

    st.number_input("Days", min_value=1, max_value=365, key="admin_days", help="How many daily log files to read.")
    logs = read_access_logs(int(st.session_state["admin_days"]))
    stats = access_stats(logs)
    m1, m2 = st.columns(2)
    m1.metric("Total Visits", stats["total_visits"])
    m2.metric("Unique IPs", stats["unique_ips"])

    c1, c2 = st.columns(2)
    if stats["country_stats"]:
        countries = pd.DataFrame(stats["country_stats"], columns=["Country", "Visits"])
        c1.plotly_chart(px.bar(countries, x="Country", y="Visits", title="Top Countries"), width="stretch")
    if stats["hour_stats"]:
        hours = pd.DataFrame(list(stats["hour_stats"].items()), columns=["Hour", "Visits"])
        c2.plotly_chart(px.bar(hours, x="Hour", y="Visits", title="Visits by Hour"), width="stretch")
    if stats["page_stats"]:
        st.dataframe(pd.DataFrame(stats["page_stats"], columns=["Page", "Visits"]), hide_index=True, width="stretch")

    st.number_input("Page", min_value=1, key="admin_page", help="Page of the access log table.")
    page = paginate(logs, int(st.session_state["admin_page"]), 50)
    meta = page["pagination"]
    st.caption(f"Page {meta['page']} of {max(1, meta['pages'])} ({meta['total']} entries)")
    if page["logs"]:
        st.dataframe(pd.DataFrame(page["logs"]), hide_index=True, width="stretch")

    with st.expander("Runtime Events", expanded=False):
        events = read_runtime_events(200)
        usage = analytics_summary(events)
        if usage:
            st.dataframe(
                pd.DataFrame(list(usage.items()), columns=["Event", "Count"]), hide_index=True, width="stretch"
            )
        if events:
            frame = pd.DataFrame(events).reindex(columns=["timestamp_utc", "level", "event", "message"])
            st.dataframe(frame, hide_index=True, width="stretch")
        else:
            st.caption("No runtime events recorded.")


_init_state()

with st.sidebar:
    st.header("Business Planner")
    st.radio("View", VIEWS, key="view", help="Switch between the plan builder, ROI simulator and admin logs.")
    store = _store()
    if store.current is not None:
        st.caption(f"Current plan: {store.current.name}")
    if st.session_state["roi_code"]:
        st.caption(f"Simulation code: {st.session_state['roi_code']}")

_log_view_once(st.session_state["view"])

if st.session_state["view"] == "Business Plan":
    render_plan_view()
elif st.session_state["view"] == "ROI Simulator":
    render_roi_view()
else:
    render_admin_view()
