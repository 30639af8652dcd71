import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date, datetime

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px

from tracker.config import AppSettings
from tracker.domain import CategoryRef, InsightBundle
from tracker.events import (
    event_bus,
    EXPENSE_ADDED,
    EXPENSE_UPDATED,
    EXPENSE_DELETED,
    CATEGORY_ADDED,
    CATEGORY_UPDATED,
    CATEGORY_DELETED,
    PROFILE_UPDATED,
    OPERATION_FAILED,
    should_toast,
)
from tracker.exceptions import ConfigError, TrackerError
from tracker.fetch import DashboardData, load_dashboard_sync
from tracker.filters import all_of, by_category, by_payment_method, by_search_term, iter_expenses, recent_expenses
from tracker.functional import parse_amount, parse_day
from tracker.insights import compute_insights
from tracker.logger import configure_logging, get_logger, set_user_context
from tracker.store import ExpenseStore, Session
from tracker.transforms import expenses_to_frame, total_amount

st.set_page_config(page_title="Expense Insights", layout="wide")

try:
    settings = AppSettings.load()
except ConfigError as e:
    st.error(f"⚠️ {e}")
    st.stop()

configure_logging(settings.log_level)
logger = get_logger("app")

PAYMENT_LABELS = {
    "card": "Credit/Debit Card",
    "cash": "Cash",
    "bank_transfer": "Bank Transfer",
    "mobile_payment": "Mobile Payment",
}
CATEGORY_ICONS = ['💰', '🍔', '🚗', '🛍️', '🎬', '⚕️', '💡', '📚', '💅', '✈️', '🏠', '🎮', '☕', '🎵', '📱']


@st.cache_resource
def get_store(seed_path: str) -> ExpenseStore:
    return ExpenseStore.from_seed(seed_path, payment_methods=settings.payment_methods)


store = get_store(settings.seed_path)


def notify(results):
    """Show handler results from the event bus as toasts."""
    prefs = {}
    current = st.session_state.get("session")
    if current is not None:
        prefs = store.get_profile(current.user_id).notification_preferences
    for r in results:
        if not should_toast(r, prefs):
            continue
        icon = "⚠️" if r.get("variant") == "destructive" else "✅"
        st.toast(f"**{r['title']}**: {r['description']}", icon=icon)


def fail(message: str, title: str = "Error"):
    notify(event_bus.publish(OPERATION_FAILED, {"title": title, "message": message}))


def refresh(session: Session) -> DashboardData:
    """Reload data for the session; on failure keep what is already on screen."""
    try:
        st.session_state.data = load_dashboard_sync(store, session.user_id, limit=None)
    except TrackerError as e:
        fail(str(e))
    return st.session_state.get("data") or DashboardData(expenses=(), categories=())


def money(amount, currency: str = "USD") -> str:
    return f"{float(amount):,.2f} {currency}"


# ---------------------------------------------------------------- session

if "session" not in st.session_state:
    st.session_state.session = None
if "theme" not in st.session_state:
    st.session_state.theme = "dark"

session = st.session_state.session

if session is None:
    st.title("💸 Expense Insights")
    st.caption("Track, analyze and master your money.")
    with st.form("sign_in"):
        email = st.text_input("Email", placeholder="you@example.com")
        if st.form_submit_button("Sign in"):
            try:
                st.session_state.session = store.sign_in(email)
                st.session_state.pop("data", None)
                st.rerun()
            except TrackerError as e:
                fail(str(e), title="Sign in failed")
    st.stop()

set_user_context(session.user_id)
profile = store.get_profile(session.user_id)
currency = profile.currency
template = settings.template_for(st.session_state.theme)
fallback = CategoryRef(name=settings.uncategorized_label, color=settings.uncategorized_color)

st.sidebar.markdown("### 👤 Profile")
st.sidebar.caption(f"Signed in as **{profile.full_name or session.email}**")
if st.sidebar.button("Sign out"):
    logger.info("Signed out")
    st.session_state.session = None
    st.session_state.pop("data", None)
    set_user_context(None)
    st.rerun()

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "🧾 Transactions", "🗂 Categories", "⚙️ Settings"]
)

data = refresh(session)


# ---------------------------------------------------------------- pages

def render_dashboard(bundle: InsightBundle, data: DashboardData, template: str, currency: str):
    st.title("🏠 Dashboard")
    st.caption("Track, analyze and master your money.")

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        if bundle.percent_change is None:
            st.metric("This Month", money(bundle.monthly_total, currency))
            st.caption("No spending recorded last month")
        else:
            st.metric(
                "This Month",
                money(bundle.monthly_total, currency),
                delta=f"{bundle.percent_change}% from last month",
                delta_color="inverse",
            )
    with k2:
        st.metric("Transactions", bundle.transaction_count, help="This month")
    with k3:
        top = bundle.top_category
        st.metric("Top Category", top.name if top else "None",
                  delta=money(top.total, currency) if top else None, delta_color="off")
    with k4:
        st.metric("Avg per Day", money(bundle.average_per_day, currency), help="This month")

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("📈 7-Day Spending Trend")
        fig_trend = go.Figure()
        fig_trend.add_trace(go.Scatter(
            x=[p.label for p in bundle.daily_trend],
            y=[float(p.total) for p in bundle.daily_trend],
            customdata=[p.day.isoformat() for p in bundle.daily_trend],
            hovertemplate="%{customdata}: %{y:,.2f}<extra></extra>",
            mode="lines+markers",
            fill="tozeroy",
            name="Spent",
        ))
        fig_trend.update_layout(template=template, margin=dict(t=30, b=10, l=10, r=10), height=320)
        st.plotly_chart(fig_trend, use_container_width=True)
    with c2:
        st.subheader("🍩 Category Breakdown")
        if bundle.category_breakdown:
            df_cat = pd.DataFrame([
                {"Category": s.name, "Total": float(s.total), "Color": s.color}
                for s in bundle.category_breakdown
            ])
            fig_cat = px.pie(
                df_cat,
                values="Total",
                names="Category",
                hole=0.5,
                color="Category",
                color_discrete_map=dict(zip(df_cat["Category"], df_cat["Color"])),
                template=template,
            )
            fig_cat.update_traces(sort=False, textinfo="label+percent")
            fig_cat.update_layout(margin=dict(t=30, b=10, l=10, r=10), height=320)
            st.plotly_chart(fig_cat, use_container_width=True)
        else:
            st.info("No expenses yet. Start tracking to see insights!")

    st.subheader("🕒 Recent Transactions")
    recent = recent_expenses(data.expenses, settings.recent_count)
    if recent:
        for e in recent:
            icon = e.category.icon if e.category and e.category.icon else "💰"
            name = e.category.name if e.category else settings.uncategorized_label
            day = parse_day(e.date).map(lambda d: d.strftime("%b %d, %Y")).get_or_else("-")
            amount = parse_amount(e.amount).get_or_else(0)
            left, right = st.columns([4, 1])
            left.markdown(f"{icon} **{e.merchant or 'Expense'}**  \n{name} • {day}")
            right.markdown(f"**{money(amount, e.currency)}**")
    else:
        st.info("No transactions yet. Add your first expense on the Transactions page!")


def expense_form(key: str, categories, initial=None) -> dict | None:
    """Render an add/edit form; returns the submitted values or None."""
    initial = initial or {}
    cat_ids = [""] + [c.id for c in categories]
    cat_names = {c.id: f"{c.icon} {c.name}" for c in categories}
    methods = list(settings.payment_methods)
    with st.form(key, clear_on_submit=initial == {}):
        col1, col2 = st.columns(2)
        with col1:
            day = st.date_input("Date *", value=parse_day(initial.get("date")).get_or_else(date.today()))
            amount = st.number_input(
                f"Amount ({currency}) *",
                min_value=0.0,
                step=0.01,
                format="%.2f",
                value=float(parse_amount(initial.get("amount")).get_or_else(0)),
            )
            category_id = st.selectbox(
                "Category",
                cat_ids,
                index=cat_ids.index(initial.get("category_id") or "") if (initial.get("category_id") or "") in cat_ids else 0,
                format_func=lambda cid: cat_names.get(cid, "(none)"),
            )
        with col2:
            merchant = st.text_input("Merchant", value=initial.get("merchant") or "")
            method = st.selectbox(
                "Payment method",
                methods,
                index=methods.index(initial.get("payment_method")) if initial.get("payment_method") in methods else 0,
                format_func=lambda m: PAYMENT_LABELS.get(m, m),
            )
        notes = st.text_area("Notes", value=initial.get("notes") or "")
        if st.form_submit_button("Save" if initial else "Add Expense"):
            return {
                "date": day,
                "amount": amount,
                "category_id": category_id,
                "merchant": merchant,
                "payment_method": method,
                "notes": notes,
            }
    return None


def render_transactions(session: Session, data: DashboardData):
    st.title("🧾 Transactions")
    st.caption("Manage your expense transactions")

    col_search, col_cat, col_method = st.columns([2, 1, 1])
    with col_search:
        term = st.text_input("🔎 Search", placeholder="Merchant, category or notes")
    with col_cat:
        cat_filter = st.selectbox(
            "Category", ["all"] + [c.id for c in data.categories],
            format_func=lambda cid: "All" if cid == "all" else next(c.name for c in data.categories if c.id == cid),
        )
    with col_method:
        method_filter = st.selectbox(
            "Payment", ["all"] + list(settings.payment_methods),
            format_func=lambda m: "All" if m == "all" else PAYMENT_LABELS.get(m, m),
        )

    preds = [by_search_term(term)]
    if cat_filter != "all":
        preds.append(by_category(cat_filter))
    if method_filter != "all":
        preds.append(by_payment_method(method_filter))
    shown = tuple(iter_expenses(data.expenses, all_of(*preds)))

    df = expenses_to_frame(shown, settings.uncategorized_label)
    if not df.empty:
        disp = df.drop(columns=["id"]).assign(
            date=lambda x: x["date"].apply(lambda d: d.strftime("%Y-%m-%d") if pd.notna(d) else "N/A"),
            payment_method=lambda x: x["payment_method"].map(lambda m: PAYMENT_LABELS.get(m, m)),
        )
        st.dataframe(disp, use_container_width=True, hide_index=True)
        st.caption(f"{len(shown)} transactions • {money(total_amount(shown, currency), currency)} in {currency}")
        st.download_button(
            "⬇️ Download CSV",
            df.to_csv(index=False),
            file_name="transactions.csv",
            mime="text/csv",
        )
    else:
        st.info("No transactions match the current filters")

    st.divider()
    st.subheader("➕ Add Expense")
    submitted = expense_form("add_expense", data.categories)
    if submitted is not None:
        try:
            store.create_expense(session.user_id, submitted)
            notify(event_bus.publish(EXPENSE_ADDED, submitted))
            st.rerun()
        except TrackerError as e:
            fail(str(e))

    if not data.expenses:
        return

    st.divider()
    st.subheader("✏️ Edit or Delete")
    labels = {
        e.id: f"{e.date} • {e.merchant or 'Expense'} • {money(parse_amount(e.amount).get_or_else(0), e.currency)}"
        for e in data.expenses
    }
    selected_id = st.selectbox("Expense", list(labels), format_func=labels.get)
    selected = next(e for e in data.expenses if e.id == selected_id)
    edited = expense_form(f"edit_{selected_id}", data.categories, initial={
        "date": selected.date,
        "amount": selected.amount,
        "category_id": selected.category_id,
        "merchant": selected.merchant,
        "payment_method": selected.payment_method,
        "notes": selected.notes,
    })
    if edited is not None:
        try:
            store.update_expense(session.user_id, selected_id, edited)
            notify(event_bus.publish(EXPENSE_UPDATED, edited))
            st.rerun()
        except TrackerError as e:
            fail(str(e))

    confirm = st.checkbox("Yes, delete this expense", key=f"confirm_{selected_id}")
    if st.button("🗑 Delete", disabled=not confirm):
        try:
            store.delete_expense(session.user_id, selected_id)
            notify(event_bus.publish(EXPENSE_DELETED, {"id": selected_id}))
            st.rerun()
        except TrackerError as e:
            fail(str(e))


def category_form(key: str, initial=None) -> dict | None:
    initial = initial or {}
    with st.form(key, clear_on_submit=initial == {}):
        name = st.text_input("Name *", value=initial.get("name", ""))
        col1, col2 = st.columns(2)
        with col1:
            color = st.color_picker("Color", value=initial.get("color", "#14b8a6"))
        with col2:
            icon = st.selectbox(
                "Icon", CATEGORY_ICONS,
                index=CATEGORY_ICONS.index(initial["icon"]) if initial.get("icon") in CATEGORY_ICONS else 0,
            )
        if st.form_submit_button("Save" if initial else "Add Category"):
            return {"name": name, "color": color, "icon": icon}
    return None


def render_categories(session: Session, data: DashboardData):
    st.title("🗂 Categories")
    st.caption("Organize your expenses with custom categories")

    own = [c for c in data.categories if not c.is_default]
    defaults = [c for c in data.categories if c.is_default]

    col_own, col_default = st.columns(2)
    with col_own:
        st.subheader("Your Categories")
        if own:
            for c in own:
                st.markdown(f"{c.icon} <span style='color:{c.color}'>■</span> {c.name}", unsafe_allow_html=True)
        else:
            st.info("No custom categories yet")
    with col_default:
        st.subheader("Default Categories")
        for c in defaults:
            st.markdown(f"{c.icon} <span style='color:{c.color}'>■</span> {c.name}", unsafe_allow_html=True)
        st.caption("Default categories are shared and cannot be edited or deleted")

    st.divider()
    st.subheader("➕ Add Category")
    submitted = category_form("add_category")
    if submitted is not None:
        try:
            store.create_category(session.user_id, submitted)
            notify(event_bus.publish(CATEGORY_ADDED, submitted))
            st.rerun()
        except TrackerError as e:
            fail(str(e))

    if not own:
        return

    st.divider()
    st.subheader("✏️ Edit or Delete")
    selected_id = st.selectbox("Category", [c.id for c in own],
                               format_func=lambda cid: next(c.name for c in own if c.id == cid))
    selected = next(c for c in own if c.id == selected_id)
    edited = category_form(f"edit_{selected_id}", {"name": selected.name, "color": selected.color, "icon": selected.icon})
    if edited is not None:
        try:
            store.update_category(session.user_id, selected_id, edited)
            notify(event_bus.publish(CATEGORY_UPDATED, edited))
            st.rerun()
        except TrackerError as e:
            fail(str(e))

    confirm = st.checkbox(f'Yes, delete "{selected.name}"', key=f"confirm_cat_{selected_id}")
    if st.button("🗑 Delete category", disabled=not confirm):
        try:
            store.delete_category(session.user_id, selected_id)
            notify(event_bus.publish(CATEGORY_DELETED, {"id": selected_id}))
            st.rerun()
        except TrackerError as e:
            fail(str(e))


def render_settings(session: Session):
    st.title("⚙️ Settings")
    st.caption("Manage your preferences and account settings")

    st.subheader("🎨 Appearance")
    dark = st.toggle("Dark mode", value=st.session_state.theme == "dark")
    new_theme = "dark" if dark else "light"
    if new_theme != st.session_state.theme:
        st.session_state.theme = new_theme
        notify(event_bus.publish(PROFILE_UPDATED, {"theme": new_theme}))
        st.rerun()

    st.subheader("💱 Currency")
    current = store.get_profile(session.user_id)
    options = list(settings.currencies)
    chosen = st.selectbox(
        "Default currency", options,
        index=options.index(current.currency) if current.currency in options else 0,
    )
    if chosen != current.currency:
        try:
            store.update_profile(session.user_id, currency=chosen)
            notify(event_bus.publish(PROFILE_UPDATED, {"currency": chosen}))
        except TrackerError as e:
            fail(str(e))

    st.subheader("🔔 Notifications")
    prefs = dict(current.notification_preferences)
    email_on = st.checkbox("Email notifications", value=prefs.get("email", True))
    in_app_on = st.checkbox("In-app notifications", value=prefs.get("in_app", True))
    new_prefs = {"email": email_on, "in_app": in_app_on}
    if new_prefs != prefs:
        try:
            store.update_profile(session.user_id, notification_preferences=new_prefs)
            notify(event_bus.publish(PROFILE_UPDATED, {"notification_preferences": new_prefs}))
        except TrackerError as e:
            fail(str(e))

    st.subheader("👤 Account")
    st.text_input("Email", value=session.email, disabled=True)


if menu == "🏠 Dashboard":
    dashboard_rows = tuple(data.expenses[:settings.dashboard_limit])
    render_dashboard(compute_insights(dashboard_rows, datetime.now(), fallback), data, template, currency)
elif menu == "🧾 Transactions":
    render_transactions(session, data)
elif menu == "🗂 Categories":
    render_categories(session, data)
elif menu == "⚙️ Settings":
    render_settings(session)
