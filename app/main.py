"""
Streamlit Frontend for Expense Tracker

The screens people use every day: sign in, record expenses, watch the
monthly budget, and browse reports. Admins get an extra page.

DESIGN PRINCIPLES:
1. Every number shown comes from the API, never from local copies
2. Clear error messages taken straight from the server
3. Nothing is deleted without an explicit confirmation

The session's AppState is created once per browser session and passed
into every render function.
"""

import base64
from datetime import date
from decimal import Decimal

import streamlit as st

from expense_tracker.client import ApiDataSource, ApiError, AppState
from expense_tracker.models.expense import Currency, ExpenseCategory, Theme
from expense_tracker.reports.formatter import format_amount
from expense_tracker.reports.lookups import get_category_info, get_currency_symbol


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)

DATE_FORMATS = {
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
}


def get_state() -> AppState:
    """This session's AppState, created on first use."""
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState(ApiDataSource())
    return st.session_state.app_state


def category_label(key: str) -> str:
    info = get_category_info(key)
    return f"{info.icon} {info.name}"


def show_api_error(e: ApiError):
    st.error(str(e))
    for issue in e.issues:
        if issue.get("severity") == "error" and issue.get("message") != str(e):
            st.caption(f"• {issue['message']}")


def display_date(value: str, date_format: str) -> str:
    parsed = date.fromisoformat(value[:10])
    return parsed.strftime(DATE_FORMATS.get(date_format, "%m/%d/%Y"))


def main():
    """Main application entry point."""
    state = get_state()

    # Google sign-in comes back as ?token=... or ?error=...
    params = st.query_params
    if "token" in params:
        token = params["token"]
        st.query_params.clear()
        if state.restore(token):
            state.flash = "Signed in with Google"
        else:
            st.error("Google sign-in failed. Please try again.")
    elif "error" in params:
        error = params["error"]
        st.query_params.clear()
        st.error(f"Google sign-in failed ({error}). Please try again.")

    if not state.is_authenticated:
        render_auth_page(state)
        return

    st.sidebar.title("💰 Expense Tracker")
    st.sidebar.markdown(f"Signed in as **{state.display_name}**")
    st.sidebar.markdown("---")

    pages = ["📊 Dashboard", "🧾 Expenses", "📈 Reports", "⚙️ Settings"]
    if state.is_admin:
        pages.append("🛡️ Admin")

    page = st.sidebar.radio("Navigate to:", pages, index=0)

    st.sidebar.markdown("---")
    if st.sidebar.button("Sign out"):
        state.sign_out()
        st.rerun()

    message = state.show_once()
    if message:
        st.success(message)

    try:
        if page == "📊 Dashboard":
            render_dashboard_page(state)
        elif page == "🧾 Expenses":
            render_expenses_page(state)
        elif page == "📈 Reports":
            render_reports_page(state)
        elif page == "⚙️ Settings":
            render_settings_page(state)
        elif page == "🛡️ Admin":
            render_admin_page(state)
    except ApiError as e:
        if e.is_auth_error:
            state.sign_out()
            st.warning("Your session has expired. Please sign in again.")
            st.rerun()
        show_api_error(e)


# =============================================================================
# SIGN IN / SIGN UP
# =============================================================================

def render_auth_page(state: AppState):
    st.title("💰 Expense Tracker")

    login_tab, signup_tab = st.tabs(["Sign in", "Create account"])

    with login_tab:
        with st.form("login"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            try:
                result = state.data_source.login(email, password)
                state.sign_in(result["token"], result["user"])
                st.rerun()
            except ApiError as e:
                show_api_error(e)

    with signup_tab:
        with st.form("signup"):
            name = st.text_input("Name")
            email = st.text_input("Email", key="signup_email")
            password = st.text_input(
                "Password", type="password", key="signup_password",
                help="At least 6 characters",
            )
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            try:
                result = state.data_source.signup(name, email, password)
                state.sign_in(result["token"], result["user"])
                state.flash = "Account created successfully"
                st.rerun()
            except ApiError as e:
                show_api_error(e)

    st.markdown("---")
    try:
        auth_url = state.data_source.google_auth_url()
        st.link_button("Continue with Google", auth_url)
    except ApiError:
        st.caption("Google sign-in is not available.")


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(state: AppState):
    st.title("📊 Dashboard")
    report = state.data_source.dashboard()
    symbol = report["currency_symbol"]
    status = report["budget"]

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("This month", format_amount(report["monthly_spending"], symbol))
    col2.metric("Monthly budget", format_amount(status["monthly_budget"], symbol))
    col3.metric("Remaining", format_amount(status["remaining"], symbol))
    col4.metric("Average per day", format_amount(report["average_daily"], symbol))

    st.progress(float(status["display_percentage"]) / 100)
    if status["over_budget"]:
        st.markdown(f"""
        <div class="error-box">
            <h4>Over budget</h4>
            <p>You are {format_amount(status['overage_amount'], symbol)} over your
            monthly budget ({Decimal(status['percentage']):.1f}% used).</p>
        </div>
        """, unsafe_allow_html=True)
    elif status["near_limit"]:
        st.markdown(f"""
        <div class="warning-box">
            <h4>Approaching your limit</h4>
            <p>{Decimal(status['percentage']):.1f}% of this month's budget is used.</p>
        </div>
        """, unsafe_allow_html=True)

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.subheader("This month by category")
        if report["category_breakdown"]:
            for entry in report["category_breakdown"]:
                st.markdown(
                    f"{entry['icon']} **{entry['name']}**: {entry['formatted_amount']} "
                    f"({Decimal(entry['percentage']):.1f}%)"
                )
        else:
            st.info("No expenses recorded this month yet.")

    with right:
        st.subheader("Recent expenses")
        if report["recent_expenses"]:
            for expense in report["recent_expenses"]:
                st.markdown(
                    f"{category_label(expense['category'])}: {expense['description']} "
                    f"**{format_amount(expense['amount'], symbol)}** ({expense['date']})"
                )
        else:
            st.info("Add your first expense on the Expenses page.")

    st.subheader("Monthly trend")
    st.bar_chart(
        {"Spending": {t["label"]: float(t["total"]) for t in report["trend"]}},
        sort=False,
    )

    col1, col2, col3 = st.columns(3)
    col1.metric("All-time spending", format_amount(report["total_spending"], symbol))
    col2.metric("Expenses recorded", report["expense_count"])
    col3.metric(
        "Average per expense",
        format_amount(report["average_per_transaction"], symbol),
    )


# =============================================================================
# EXPENSES
# =============================================================================

def render_expenses_page(state: AppState):
    st.title("🧾 Expenses")

    settings = state.data_source.get_settings()
    date_format = settings["date_format"]
    symbol = get_currency_symbol(settings["currency"])

    with st.expander("➕ Add expense", expanded=True):
        with st.form("add_expense", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
                category = st.selectbox(
                    "Category *",
                    options=[c.value for c in ExpenseCategory],
                    format_func=category_label,
                )
            with col2:
                description = st.text_input("Description *", max_chars=200)
                expense_date = st.date_input("Date *", value=date.today())
            submitted = st.form_submit_button("Save expense", type="primary")
        if submitted:
            try:
                result = state.data_source.create_expense({
                    "amount": str(Decimal(str(amount))),
                    "description": description,
                    "category": category,
                    "date": expense_date.isoformat(),
                })
                for warning in result.get("warnings", []):
                    st.warning(warning)
                st.success(result["message"])
            except ApiError as e:
                show_api_error(e)

    st.markdown("---")

    col1, col2, col3 = st.columns(3)
    with col1:
        category_filter = st.selectbox(
            "Filter by Category",
            options=[None] + [c.value for c in ExpenseCategory],
            format_func=lambda x: "All Categories" if x is None else category_label(x),
        )
    with col2:
        start = st.date_input("From", value=None)
    with col3:
        end = st.date_input("To", value=None)

    expenses = state.data_source.list_expenses(category_filter, start, end)
    if not expenses:
        st.info("No expenses match these filters.")
        return

    total = sum(Decimal(e["amount"]) for e in expenses)
    st.markdown(f"**{len(expenses)} expenses, {format_amount(total, symbol)} in total**")

    for expense in expenses:
        render_expense_row(state, expense, symbol, date_format)


def render_expense_row(state: AppState, expense: dict, symbol: str, date_format: str):
    expense_id = expense["id"]
    col1, col2, col3, col4 = st.columns([2, 4, 2, 1])
    col1.markdown(display_date(expense["date"], date_format))
    col2.markdown(f"{category_label(expense['category'])}: {expense['description']}")
    col3.markdown(f"**{format_amount(expense['amount'], symbol)}**")

    with col4:
        with st.popover("⋯"):
            with st.form(f"edit_{expense_id}"):
                amount = st.number_input(
                    "Amount", value=float(expense["amount"]),
                    min_value=0.0, step=0.01, format="%.2f",
                )
                description = st.text_input("Description", value=expense["description"])
                keys = [c.value for c in ExpenseCategory]
                category = st.selectbox(
                    "Category", options=keys,
                    index=keys.index(expense["category"]) if expense["category"] in keys else len(keys) - 1,
                    format_func=category_label,
                )
                expense_date = st.date_input("Date", value=date.fromisoformat(expense["date"]))
                saved = st.form_submit_button("Update")
            if saved:
                try:
                    state.data_source.update_expense(expense_id, {
                        "amount": str(Decimal(str(amount))),
                        "description": description,
                        "category": category,
                        "date": expense_date.isoformat(),
                    })
                    state.flash = "Expense updated successfully"
                    st.rerun()
                except ApiError as e:
                    show_api_error(e)

            confirm = st.checkbox("Yes, delete this expense", key=f"confirm_{expense_id}")
            if st.button("Delete", key=f"delete_{expense_id}", disabled=not confirm):
                state.data_source.delete_expense(expense_id)
                state.flash = "Expense deleted successfully"
                st.rerun()


# =============================================================================
# REPORTS
# =============================================================================

def render_reports_page(state: AppState):
    st.title("📈 Reports")

    col1, col2 = st.columns(2)
    months = col1.slider("Months of history", min_value=3, max_value=12, value=6)
    top = col2.slider("Top categories", min_value=3, max_value=8, value=5)

    summary = state.data_source.summary(months=months, top=top)
    symbol = summary["currency_symbol"]

    col1, col2, col3 = st.columns(3)
    col1.metric("Total spending", format_amount(summary["total_spending"], symbol))
    col2.metric("Expenses", summary["expense_count"])
    col3.metric("Average per expense", format_amount(summary["average_per_transaction"], symbol))

    st.subheader("Spending by category")
    if summary["category_breakdown"]:
        # Keyed by category: unknown keys and "other" share a display name
        st.bar_chart(
            {"Amount": {e["category"]: float(e["amount"]) for e in summary["category_breakdown"]}},
            sort=False,
        )
        st.dataframe(
            [
                {
                    "Category": f"{e['icon']} {e['name']}",
                    "Amount": e["formatted_amount"],
                    "Share": f"{Decimal(e['percentage']):.1f}%",
                }
                for e in summary["top_categories"]
            ],
            hide_index=True,
        )
    else:
        st.info("No expenses recorded yet.")

    st.subheader("Month over month")
    arrows = {"up": "🔺", "down": "🔻", "flat": "➖"}
    st.dataframe(
        [
            {
                "Month": t["label"],
                "Total": format_amount(t["total"], symbol),
                "Change": (
                    "" if t["delta"] is None
                    else f"{arrows[t['direction']]} {format_amount(t['delta'], symbol)}"
                ),
            }
            for t in summary["trend"]
        ],
        hide_index=True,
    )


# =============================================================================
# SETTINGS AND PROFILE
# =============================================================================

def render_settings_page(state: AppState):
    st.title("⚙️ Settings")

    st.markdown("### Profile")
    user = state.user
    if user.get("profile_picture"):
        st.image(user["profile_picture"], width=96)
    with st.form("profile"):
        name = st.text_input("Display name", value=user["name"])
        picture = st.file_uploader("Profile picture", type=["png", "jpg", "jpeg", "gif", "webp"])
        submitted = st.form_submit_button("Save profile")
    if submitted:
        data = {"name": name}
        if picture is not None:
            encoded = base64.b64encode(picture.getvalue()).decode("ascii")
            data["profile_picture"] = f"data:{picture.type};base64,{encoded}"
        try:
            state.user = state.data_source.update_profile(data)
            st.success("Profile updated successfully")
        except ApiError as e:
            show_api_error(e)

    st.markdown("### Monthly budget")
    budget = state.data_source.get_budget()
    with st.form("budget"):
        monthly_budget = st.number_input(
            "Monthly budget", value=float(budget["monthly_budget"]),
            min_value=0.0, step=50.0, format="%.2f",
        )
        submitted = st.form_submit_button("Save budget")
    if submitted:
        try:
            state.data_source.update_budget(str(Decimal(str(monthly_budget))))
            st.success("Budget updated successfully")
        except ApiError as e:
            show_api_error(e)

    st.markdown("### Preferences")
    settings = state.data_source.get_settings()
    themes = [t.value for t in Theme]
    currencies = [c.value for c in Currency]
    formats = list(DATE_FORMATS)
    with st.form("preferences"):
        theme = st.selectbox("Theme", themes, index=themes.index(settings["theme"]))
        currency = st.selectbox("Currency", currencies, index=currencies.index(settings["currency"]))
        date_format = st.selectbox(
            "Date format", formats,
            index=formats.index(settings["date_format"]) if settings["date_format"] in formats else 0,
        )
        notifications = st.checkbox("Budget notifications", value=settings["notifications"])
        submitted = st.form_submit_button("Save preferences")
    if submitted:
        try:
            state.data_source.update_settings({
                "theme": theme,
                "currency": currency,
                "date_format": date_format,
                "notifications": notifications,
            })
            st.success("Settings updated successfully")
        except ApiError as e:
            show_api_error(e)


# =============================================================================
# ADMIN
# =============================================================================

def render_admin_page(state: AppState):
    st.title("🛡️ Admin")

    stats = state.data_source.admin_stats()
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Users", stats["total_users"])
    col2.metric("Admins", stats["admin_users"])
    col3.metric("Expenses", stats["total_expenses"])
    col4.metric("Total spending", format_amount(stats["total_spending"]))

    st.markdown("---")
    users = state.data_source.admin_users()
    names = {u["id"]: f"{u['name']} <{u['email']}>" for u in users}
    selected = st.selectbox("User", options=list(names), format_func=names.get)
    if not selected:
        return

    result = state.data_source.admin_user_detail(selected)
    detail = result["detail"]
    col1, col2 = st.columns(2)
    col1.metric("Expenses", detail["expense_count"])
    col2.metric("Total spending", format_amount(detail["total_spending"]))

    st.dataframe(
        [
            {"Category": c["name"], "Count": c["count"], "Total": format_amount(c["total"])}
            for c in detail["by_category"]
        ],
        hide_index=True,
    )
    st.bar_chart(
        {"Spending": {m["label"]: float(m["total"]) for m in detail["monthly_spending"]}},
        sort=False,
    )

    st.subheader("Expenses")
    for expense in result["expenses"]:
        col1, col2, col3 = st.columns([5, 2, 1])
        col1.markdown(f"{expense['date']}: {category_label(expense['category'])} {expense['description']}")
        col2.markdown(format_amount(expense["amount"]))
        if col3.button("🗑️", key=f"admin_delete_{expense['id']}"):
            state.data_source.admin_delete_expense(expense["id"])
            state.flash = "Expense deleted successfully"
            st.rerun()

    if not detail["user"]["is_admin"]:
        st.markdown("---")
        confirm = st.checkbox(f"Permanently delete {names[selected]} and all their data")
        if st.button("Delete user", type="primary", disabled=not confirm):
            outcome = state.data_source.admin_delete_user(selected)
            state.flash = f"{outcome['message']} ({outcome['expenses_deleted']} expenses removed)"
            st.rerun()


if __name__ == "__main__":
    main()
