"""
Streamlit Frontend for Grandma Points

This is the screen a caregiver uses day to day.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything destructive
3. Clear messages in simple language
4. Every change is saved immediately

The UI only forwards intents to the flows:
- Kids page: add kid, open kid, delete kid (with confirmation)
- Kid page: add item, delete item, delete a whole day (with confirmation)
"""

import logging

import streamlit as st

from grandma_points.aggregation import format_amount, format_date_header, format_picker_date
from grandma_points.audit import AuditLogger, create_correlation_id
from grandma_points.config import get_settings, validate_all_settings
from grandma_points.orchestrator import CalculationFlow, RosterFlow, create_app_components
from grandma_points.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Grandma Points",
    page_icon="⭐",
    layout="centered",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .total-box {
        padding: 16px;
        background-color: #e8f4fd;
        border-radius: 12px;
        text-align: center;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .empty-box {
        padding: 30px;
        text-align: center;
        color: #888888;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to open saved data: {e}")
        return create_app_components(use_storage=False)


def currency_symbol() -> str:
    return get_settings().app.currency_symbol


def main():
    """Main application entry point."""
    logging.basicConfig(level=get_settings().app.log_level)

    roster_flow, audit_logger, _ = get_components()

    # Sidebar navigation
    st.sidebar.title("⭐ Grandma Points")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["👧 Kids", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Add a child
        2. Tap the child to open their points
        3. Add items as they are earned
        """
    )

    if page == "👧 Kids":
        selected = roster_flow.view_state.selected_kid
        if selected:
            render_kid_page(roster_flow, get_calculation_flow(roster_flow, selected))
        else:
            render_roster_page(roster_flow)
    elif page == "⚙️ Settings":
        render_settings_page(roster_flow, audit_logger)


def get_calculation_flow(roster_flow: RosterFlow, kid_name: str) -> CalculationFlow:
    """Keep one loaded flow per session for the kid being viewed."""
    flow = st.session_state.get("calculation_flow")
    if flow is None or flow.kid_name != kid_name:
        flow = roster_flow.open_kid(kid_name)
        st.session_state.calculation_flow = flow
    return flow


def render_roster_page(roster_flow: RosterFlow):
    """Render the kids list page."""
    st.title("Kids' Expense Tracker")

    with st.form("add_kid", clear_on_submit=True):
        col1, col2 = st.columns([4, 1])
        with col1:
            new_name = st.text_input(
                "Enter kid's name",
                label_visibility="collapsed",
                placeholder="Enter kid's name",
            )
        with col2:
            submitted = st.form_submit_button("➕ Add")

    if submitted:
        try:
            if roster_flow.add_kid(new_name, correlation_id=create_correlation_id()):
                st.rerun()
            elif new_name.strip():
                st.warning(f"{new_name.strip()} is already on the list.")
        except StorageError as e:
            st.error(f"Failed to save: {e}")

    if not roster_flow.kids:
        st.markdown(
            '<div class="empty-box"><h1>👨‍👩‍👧‍👦</h1>'
            "<h4>Add a child to get started</h4></div>",
            unsafe_allow_html=True,
        )
        return

    delete_mode = roster_flow.view_state.delete_mode
    columns = st.columns(2)
    for index, kid in enumerate(roster_flow.kids):
        with columns[index % 2]:
            if delete_mode:
                if st.button(f"🗑️ Delete {kid}", key=f"delete_kid_{index}"):
                    roster_flow.request_delete(kid)
                    st.rerun()
            else:
                if st.button(f"{kid[:1].upper()} · {kid}", key=f"open_kid_{index}"):
                    roster_flow.view_state.selected_kid = kid
                    st.rerun()

    kid_to_delete = roster_flow.view_state.kid_to_delete
    if kid_to_delete:
        st.markdown(f"""
        <div class="warning-box">
            <h4>Confirm Deletion</h4>
            <p>Are you sure you want to delete {kid_to_delete}?</p>
        </div>
        """, unsafe_allow_html=True)
        col1, col2 = st.columns(2)
        with col1:
            if st.button("🗑️ Delete", type="primary", key="confirm_delete_kid"):
                try:
                    roster_flow.confirm_delete(correlation_id=create_correlation_id())
                except StorageError as e:
                    st.error(f"Failed to save: {e}")
                else:
                    st.rerun()
        with col2:
            if st.button("Cancel", key="cancel_delete_kid"):
                roster_flow.cancel_delete()
                st.rerun()

    st.markdown("---")
    if st.button("❌ Cancel" if delete_mode else "🗑️ Delete Child"):
        roster_flow.toggle_delete_mode()
        st.rerun()


def render_kid_page(roster_flow: RosterFlow, flow: CalculationFlow):
    """Render one kid's items, grouped by day."""
    symbol = currency_symbol()

    if st.button("‹ Back"):
        roster_flow.close_kid()
        st.session_state.calculation_flow = None
        st.rerun()

    st.title(flow.kid_name)
    st.markdown(f"""
    <div class="total-box">
        Total<br><span class="big-number">{format_amount(flow.total_points, symbol)}</span>
    </div>
    """, unsafe_allow_html=True)

    if st.button("❌ Cancel" if flow.view_state.is_adding else "➕ Add New Item"):
        flow.toggle_add_form()
        st.rerun()

    if flow.view_state.is_adding:
        render_add_form(flow)
    elif flow.last_validation and flow.last_validation.warnings:
        for warning in flow.last_validation.warnings:
            st.warning(f"Last item added with a warning: {warning}")

    render_day_delete_confirmation(flow)

    summary = flow.summary()
    if summary.is_empty:
        st.markdown(
            '<div class="empty-box"><h1>💲</h1><h4>No items yet</h4>'
            "<p>Add an item to get started</p></div>",
            unsafe_allow_html=True,
        )
        return

    for day in summary.days:
        expanded = flow.view_state.is_expanded(day.date)
        col1, col2, col3 = st.columns([6, 3, 1])
        with col1:
            arrow = "▲" if expanded else "▼"
            if st.button(f"{arrow} {day.header}", key=f"toggle_{day.date}"):
                flow.toggle_section_expansion(day.date)
                st.rerun()
        with col2:
            st.markdown(f"**{format_amount(day.total, symbol)}**")
        with col3:
            if st.button("🗑️", key=f"delete_day_{day.date}"):
                flow.request_day_delete(day.date)
                st.rerun()

        if expanded:
            for record in day.records:
                item_col, total_col, delete_col = st.columns([6, 3, 1])
                with item_col:
                    st.markdown(
                        f"**{record.label}**  \n"
                        f"Qty: {record.quantity} × {format_amount(record.price, symbol)}"
                    )
                with total_col:
                    st.markdown(f"**{format_amount(record.total, symbol)}**")
                with delete_col:
                    if st.button("✖", key=f"delete_record_{record.id}"):
                        try:
                            flow.delete_calculation(
                                record.id, correlation_id=create_correlation_id()
                            )
                        except StorageError as e:
                            st.error(f"Failed to save: {e}")
                        else:
                            st.rerun()
        st.markdown("---")


def render_add_form(flow: CalculationFlow):
    """Render the add-item form bound to the flow's draft."""
    draft = flow.draft

    draft.label = st.text_input(
        "Label (e.g. 3-pointer, chores)",
        value=draft.label,
    )
    col1, col2 = st.columns([3, 1])
    with col1:
        draft.price = st.text_input("Price", value=draft.price)
    with col2:
        draft.quantity = st.text_input("Qty", value=draft.quantity)

    if st.button(f"📅 {format_picker_date(draft.selected_date)}"):
        flow.toggle_date_picker()
        st.rerun()
    if flow.view_state.show_date_picker:
        draft.selected_date = st.date_input(
            "Date",
            value=draft.selected_date,
            label_visibility="collapsed",
        )

    if st.button(
        "Add Item",
        type="primary",
        disabled=not draft.label or not draft.price,
    ):
        try:
            record, result = flow.add_calculation(correlation_id=create_correlation_id())
        except StorageError as e:
            st.error(f"Failed to save: {e}")
            return
        if record is None:
            st.error(flow.describe_validation(result))
        else:
            st.rerun()


def render_day_delete_confirmation(flow: CalculationFlow):
    if not flow.view_state.is_confirming_day_delete:
        return

    day = flow.view_state.day_to_delete or ""
    st.markdown(f"""
    <div class="warning-box">
        <h4>Delete Entire Day</h4>
        <p>Are you sure you want to delete all items for {format_date_header(day)}?</p>
    </div>
    """, unsafe_allow_html=True)
    col1, col2 = st.columns(2)
    with col1:
        if st.button("🗑️ Delete", type="primary", key="confirm_delete_day"):
            try:
                flow.confirm_day_delete(correlation_id=create_correlation_id())
            except StorageError as e:
                st.error(f"Failed to save: {e}")
            else:
                st.rerun()
    with col2:
        if st.button("Cancel", key="cancel_delete_day"):
            flow.cancel_day_delete()
            st.rerun()


def render_settings_page(roster_flow: RosterFlow, audit_logger: AuditLogger):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()
    for name, key in [("Storage", "storage"), ("App", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    storage = get_settings().storage
    if storage.backend == "json":
        st.markdown(f"Data file: `{storage.data_file}`")
    else:
        st.info("Data is kept in memory only and is lost when the app stops.")

    st.markdown("---")
    st.markdown("### Records Without a Kid")
    st.markdown(
        "Removing a kid keeps their items. Adding the same name again brings them back."
    )
    orphaned = roster_flow.orphaned_kids()
    if not orphaned:
        st.markdown("*Nothing to clean up.*")
    for index, name in enumerate(orphaned):
        col1, col2 = st.columns([3, 1])
        with col1:
            st.markdown(f"**{name}**")
        with col2:
            if st.button("Delete items", key=f"purge_{index}"):
                try:
                    roster_flow.purge_orphaned(name, correlation_id=create_correlation_id())
                except StorageError as e:
                    st.error(f"Failed to save: {e}")
                else:
                    st.rerun()

    st.markdown("---")
    st.markdown("### Recent Activity")
    events = audit_logger.recent_events(limit=20)
    if not events:
        st.markdown("*No activity yet.*")
    for event in events:
        icon = {"warning": "⚠️", "error": "❌"}.get(event.severity.value, "•")
        st.markdown(
            f"{icon} {event.timestamp.strftime('%d %b %Y %H:%M')} - {event.description}"
        )

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Settings are read from environment variables or a `.env` file. "
        "See `.env.example` for the available options."
    )


if __name__ == "__main__":
    main()
