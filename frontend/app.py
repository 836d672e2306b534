import streamlit as st
import uuid
from datetime import date

import api_client

CATEGORIES = ["Food", "Transport", "Utilities", "Entertainment", "Health", "Other"]

st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="centered",
)

# ── Session state init ─────────────────────────────────────────────────────────
# One key per form session; rotated only after a successful save, so a retry
# after an error reuses it.
if "idempotency_key" not in st.session_state:
    st.session_state.idempotency_key = str(uuid.uuid4())

if "submit_result" not in st.session_state:
    st.session_state.submit_result = None  # (success: bool, message: str)

if "form_version" not in st.session_state:
    st.session_state.form_version = 0

# ── Page ───────────────────────────────────────────────────────────────────────
st.title("💸 Expense Tracker")

st.divider()

# ── Section 1: Add Expense ─────────────────────────────────────────────────────
with st.expander("➕ Add New Expense", expanded=True):
    # Bumping form_version gives fresh widget keys, which clears the form
    version = st.session_state.form_version
    with st.form(f"add_expense_form_{version}", clear_on_submit=False):
        col1, col2 = st.columns(2)

        with col1:
            amount_str = st.text_input(
                "Amount *",
                placeholder="0.00",
                help="Must be a positive number.",
                key=f"amount_{version}",
            )

        with col2:
            category = st.selectbox("Category *", options=CATEGORIES, key=f"category_{version}")

        description = st.text_input(
            "Description *",
            placeholder="What was this expense for?",
            max_chars=1000,
            key=f"description_{version}",
        )

        expense_date = st.date_input("Date *", value=date.today(), key=f"date_{version}")

        submitted = st.form_submit_button("Add Expense", type="primary", use_container_width=True)

        if submitted:
            amount_val = api_client.parse_amount(amount_str)
            errors = []
            if amount_val is None:
                errors.append("Amount must be a positive number (e.g. 250 or 99.99).")
            if not description.strip():
                errors.append("Description is required.")

            if errors:
                for err in errors:
                    st.error(err)
            else:
                payload = {
                    "amount": float(amount_val),
                    "category": category,
                    "description": description.strip(),
                    "date": expense_date.isoformat(),
                }
                with st.spinner("Saving..."):
                    success, message, _ = api_client.create_expense(
                        payload, st.session_state.idempotency_key
                    )

                st.session_state.submit_result = (success, message)
                if success:
                    # Rotate key so next submission is a fresh expense
                    st.session_state.idempotency_key = str(uuid.uuid4())
                    st.session_state.form_version += 1
                    st.rerun()

    # Show result outside the form so it persists after rerun
    if st.session_state.submit_result is not None:
        ok, msg = st.session_state.submit_result
        if ok:
            st.success(msg)
        else:
            st.error(msg)
        st.session_state.submit_result = None

st.divider()

# ── Section 2: Filters ─────────────────────────────────────────────────────────
st.subheader("📋 Expenses")

col_f1, col_f2 = st.columns([2, 1])

with col_f1:
    known = api_client.fetch_categories()
    options = ["All"] + sorted(set(CATEGORIES) | set(known))
    selected_category = st.selectbox("Filter by Category", options=options)

with col_f2:
    sort_order = st.selectbox("Sort by Date", options=["Newest First", "Oldest First"])

sort = "desc" if sort_order == "Newest First" else "asc"

# ── Section 3: Expense List ────────────────────────────────────────────────────
with st.spinner("Loading expenses..."):
    ok, err_msg, expenses = api_client.fetch_expenses(
        category="" if selected_category == "All" else selected_category,
        sort=sort,
    )

if not ok:
    st.error(f"⚠️ {err_msg}")
else:
    # Total of what is loaded, so it follows the filter
    st.metric(label="Total Expenses", value=api_client.format_money(api_client.total_cents(expenses)))

    if not expenses:
        st.info("No expenses found.")

    for exp in expenses:
        with st.container(border=True):
            c1, c2, c3 = st.columns([2, 1, 1])
            with c1:
                st.markdown(f"**{exp['description']}**")
                st.caption(exp["category"])
            with c2:
                st.markdown(f"**{api_client.format_money(exp['amountCents'])}**")
            with c3:
                st.caption(f"📅 {exp['date']}")
