"""
Streamlit entry point — ATL Dashboard UI.

Four pages over the spreadsheet-backed record API:
  1. Projects      — list, add/edit (with components used), delete
  2. Components    — stock stats, search, quantity adjust, add/edit,
                     and bulk import from an uploaded spreadsheet
  3. Competitions  — status stats, status filter, add/edit, result update, delete
  4. Orders        — list, add/edit (component picker), delete

Contains NO business logic — only calls processing/utils modules and
displays results.
"""

import logging
from datetime import date

import pandas as pd
import streamlit as st

from config.column_mapping import (
    CANONICAL_FIELDS,
    FIELD_LABELS,
    PREVIEW_DESCRIPTION_LENGTH,
    PREVIEW_ROW_LIMIT,
    SUPPORTED_EXTENSIONS,
    UNMAPPED,
)
from config.schema import (
    COMPETITION_FILTERS,
    COMPETITION_STATUS_OPTIONS,
    DEFAULT_COMPETITION_STATUS,
    DEFAULT_ORDER_STATUS,
    ORDER_STATUS_OPTIONS,
)
from processing.column_mapper import (
    ImportFlowError,
    build_preview,
    commit,
    open_upload,
    submit_batch,
)
from processing.records import (
    adjust_quantity,
    cell_to_text,
    competition_payload,
    competition_stats,
    component_payload,
    component_stats,
    filter_competitions,
    format_date,
    order_payload,
    parse_quantity,
    position_tier,
    project_payload,
    result_payload,
    search_components,
    split_components_used,
    stock_level,
    truncate,
)
from utils.api_client import ApiError, SheetApiClient

logger = logging.getLogger(__name__)

_NEW_RECORD = "➕ New"
_POSITION_ICONS = {"gold": "🥇", "silver": "🥈", "bronze": "🥉", "other": "🏅"}
_STOCK_ICONS = {"ok": "🟢", "low": "🟠", "zero": "🔴"}


# ═══════════════════════════════════════════════════════════════════════════
# Page configuration
# ═══════════════════════════════════════════════════════════════════════════

st.set_page_config(
    page_title="ATL Dashboard",
    page_icon="🛠️",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ═══════════════════════════════════════════════════════════════════════════
# Session state initialisation
# ═══════════════════════════════════════════════════════════════════════════

def _init_session_state() -> None:
    """Ensure all required session state keys exist with sensible defaults."""
    defaults: dict = {
        "flash_message": None,
        "import_session": None,
        "import_errors": [],
        "import_upload_key": None,
        "import_uploader_nonce": 0,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


_init_session_state()


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

@st.cache_resource
def _get_client(api_url: str) -> SheetApiClient:
    return SheetApiClient(api_url)


def _flash(message: str) -> None:
    """Queue a success message shown after the next rerun."""
    st.session_state["flash_message"] = message


def _show_flash() -> None:
    message = st.session_state.get("flash_message")
    if message:
        st.success(message)
        st.session_state["flash_message"] = None


def _load(loader, label: str) -> list[dict]:
    """Run a list loader, showing an error and returning [] on failure."""
    try:
        with st.spinner(f"Loading {label}..."):
            return loader()
    except ApiError as exc:
        st.error(f"Error loading {label}: {exc.message}")
        return []


def _record_picker(records: list[dict], id_key: str, name_key: str, key: str) -> dict | None:
    """Selectbox of existing records plus "New"; returns the chosen record."""
    options = [_NEW_RECORD] + [str(record.get(id_key, "")) for record in records]
    names = {str(record.get(id_key, "")): record.get(name_key, "") for record in records}
    choice = st.selectbox(
        "Record",
        options=options,
        format_func=lambda value: value if value == _NEW_RECORD else f"{value} — {names.get(value, '')}",
        key=key,
    )
    if choice == _NEW_RECORD:
        return None
    return next(
        (record for record in records if str(record.get(id_key, "")) == choice),
        None,
    )


def _text(record: dict, key: str) -> str:
    return cell_to_text(record.get(key))


def _option_index(options: list[str], value: object, default: str) -> int:
    text = str(value) if value else default
    return options.index(text) if text in options else 0


def _save(action, success_message: str) -> None:
    """Run a write action, flashing success and rerunning, or showing the error."""
    try:
        with st.spinner("Saving..."):
            action()
    except ApiError as exc:
        st.error(f"Error: {exc.message}")
        return
    _flash(success_message)
    st.rerun()


def _delete_controls(record_id: str, noun: str, delete_fn, key: str) -> None:
    confirm = st.checkbox(
        f"Yes, delete this {noun}", key=f"{key}_confirm_{record_id}"
    )
    if st.button(f"🗑️ Delete {noun}", key=f"{key}_delete_{record_id}", disabled=not confirm):
        _save(lambda: delete_fn(record_id), f"{noun.capitalize()} deleted successfully!")


# ═══════════════════════════════════════════════════════════════════════════
# Projects
# ═══════════════════════════════════════════════════════════════════════════

def _render_projects(client: SheetApiClient) -> None:
    st.header("📁 Projects")

    projects = _load(client.get_projects, "projects")
    components = _load(client.get_components, "components")

    if projects:
        table = pd.DataFrame([
            {
                "ID": project.get("ProjectID", ""),
                "Project": project.get("ProjectName", ""),
                "Overview": truncate(project.get("Overview"), 50) or "-",
                "Components Used": project.get("ComponentsUsed") or "-",
                "Last Updated": format_date(project.get("LastUpdated")),
            }
            for project in projects
        ])
        st.dataframe(table, use_container_width=True, hide_index=True)
    else:
        st.info("No projects found")

    st.divider()
    selected = _record_picker(projects, "ProjectID", "ProjectName", "project_pick")
    st.subheader("Edit Project" if selected else "Add New Project")

    current = selected or {}
    component_options = [str(c.get("ComponentID", "")) for c in components]
    component_labels = {
        str(c.get("ComponentID", "")): (
            f"{c.get('ComponentID', '')} - {c.get('ComponentName', '')} "
            f"(Qty: {parse_quantity(c.get('Quantity'))})"
        )
        for c in components
    }
    form_key = f"project_form_{current.get('ProjectID', 'new')}"

    with st.form(form_key):
        name = st.text_input("Project Name *", value=_text(current, "ProjectName"))
        overview = st.text_area("Overview", value=_text(current, "Overview"))
        code = st.text_area("Code", value=_text(current, "Code"))
        used = st.multiselect(
            "Components Used",
            options=component_options,
            default=[
                cid for cid in split_components_used(current.get("ComponentsUsed"))
                if cid in component_options
            ],
            format_func=lambda cid: component_labels.get(cid, cid),
        )
        submitted = st.form_submit_button("💾 Save Project", type="primary")

    if submitted:
        if not name.strip():
            st.error("Project Name is required.")
        else:
            data = project_payload(
                {"ProjectName": name, "Overview": overview, "Code": code}, used
            )
            if selected:
                _save(
                    lambda: client.update_project(selected["ProjectID"], data),
                    "Project updated successfully!",
                )
            else:
                _save(lambda: client.add_project(data), "Project added successfully!")

    if selected:
        _delete_controls(str(selected["ProjectID"]), "project", client.delete_project, "project")


# ═══════════════════════════════════════════════════════════════════════════
# Components
# ═══════════════════════════════════════════════════════════════════════════

def _render_components(client: SheetApiClient) -> None:
    st.header("🔩 Components")

    components = _load(client.get_components, "components")
    stats = component_stats(components)

    metric_cols = st.columns(4)
    metric_cols[0].metric("Total Components", stats.total)
    metric_cols[1].metric("In Stock", stats.in_stock)
    metric_cols[2].metric("Low Stock", stats.low_stock)
    metric_cols[3].metric("Out of Stock", stats.out_of_stock)

    query = st.text_input("🔍 Search components", key="component_search")
    visible = search_components(components, query)

    if visible:
        table = pd.DataFrame([
            {
                "ID": component.get("ComponentID", ""),
                "Component": component.get("ComponentName", ""),
                "Type": component.get("Type") or "-",
                "Description": truncate(component.get("Description"), 40) or "-",
                "Quantity": (
                    f"{_STOCK_ICONS[stock_level(parse_quantity(component.get('Quantity')))]} "
                    f"{parse_quantity(component.get('Quantity'))}"
                ),
            }
            for component in visible
        ])
        st.dataframe(table, use_container_width=True, hide_index=True)
    else:
        st.info("No components found")

    if components:
        _render_quantity_editor(client, components)

    st.divider()
    selected = _record_picker(components, "ComponentID", "ComponentName", "component_pick")
    st.subheader("Edit Component" if selected else "Add New Component")
    current = selected or {}

    with st.form(f"component_form_{current.get('ComponentID', 'new')}"):
        name = st.text_input("Component Name *", value=_text(current, "ComponentName"))
        component_type = st.text_input("Type", value=_text(current, "Type"))
        description = st.text_area("Description", value=_text(current, "Description"))
        quantity = st.number_input(
            "Quantity",
            min_value=0,
            step=1,
            value=parse_quantity(current.get("Quantity")),
        )
        submitted = st.form_submit_button("💾 Save Component", type="primary")

    if submitted:
        if not name.strip():
            st.error("Component Name is required.")
        else:
            data = component_payload({
                "ComponentName": name,
                "Type": component_type,
                "Description": description,
                "Quantity": quantity,
            })
            if selected:
                _save(
                    lambda: client.update_component(selected["ComponentID"], data),
                    "Component updated successfully!",
                )
            else:
                _save(lambda: client.add_component(data), "Component added successfully!")

    st.divider()
    _render_import(client)


def _render_quantity_editor(client: SheetApiClient, components: list[dict]) -> None:
    with st.expander("✏️ Adjust Quantity"):
        picked = _record_picker(components, "ComponentID", "ComponentName", "qty_pick")
        if picked is None:
            st.caption("Pick a component to adjust its stock.")
            return

        component_id = str(picked["ComponentID"])
        state_key = f"qty_value_{component_id}"
        if state_key not in st.session_state:
            st.session_state[state_key] = parse_quantity(picked.get("Quantity"))

        step_cols = st.columns(4)
        for col, delta in zip(step_cols, (-10, -1, 1, 10)):
            if col.button(f"{delta:+d}", key=f"qty_{component_id}_{delta}"):
                st.session_state[state_key] = adjust_quantity(
                    st.session_state[state_key], delta
                )

        new_quantity = st.number_input(
            "Quantity", min_value=0, step=1, key=state_key
        )
        if st.button("💾 Save Quantity", key=f"qty_save_{component_id}"):
            _save(
                lambda: client.update_component_quantity(component_id, int(new_quantity)),
                "Quantity updated successfully!",
            )


def _render_import(client: SheetApiClient) -> None:
    """Upload → column mapping → preview → import."""
    st.subheader("📤 Import from Excel")

    uploaded = st.file_uploader(
        "Spreadsheet with one component per row",
        type=[ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS],
        key=f"import_file_{st.session_state['import_uploader_nonce']}",
    )

    if uploaded is None:
        st.session_state["import_session"] = None
        st.session_state["import_upload_key"] = None
        st.session_state["import_errors"] = []
        return

    # A new upload replaces any session in progress
    upload_key = f"{uploaded.name}:{uploaded.size}"
    if upload_key != st.session_state["import_upload_key"]:
        st.session_state["import_upload_key"] = upload_key
        session, errors = open_upload(uploaded.name, uploaded.getvalue())
        st.session_state["import_session"] = session
        st.session_state["import_errors"] = errors

    # Errors stay visible for as long as the failed upload is selected
    for error in st.session_state["import_errors"]:
        st.error(error)

    session = st.session_state["import_session"]
    if session is None:
        return

    # ── Column mapping ───────────────────────────────────────────
    st.caption(f"{len(session.rows)} rows · check the detected columns below")
    column_options = [UNMAPPED] + list(range(len(session.headers)))
    mapping_cols = st.columns(len(CANONICAL_FIELDS))

    for col, field_name in zip(mapping_cols, CANONICAL_FIELDS):
        current = session.mapping.get(field_name, UNMAPPED)
        choice = col.selectbox(
            FIELD_LABELS[field_name],
            options=column_options,
            index=column_options.index(current) if current in column_options else 0,
            format_func=lambda i: "-- Skip --" if i == UNMAPPED else session.column_label(i),
            key=f"map_{field_name}_{upload_key}",
        )
        if choice != current:
            session.set_field(field_name, choice)

    # ── Preview ──────────────────────────────────────────────────
    records = session.records()
    visible, remaining = build_preview(records, PREVIEW_ROW_LIMIT)

    preview_df = pd.DataFrame([
        {
            "#": index + 1,
            "Component Name": record.name,
            "Type": record.type or "-",
            "Description": truncate(record.description, PREVIEW_DESCRIPTION_LENGTH) or "-",
            "Quantity": record.quantity,
        }
        for index, record in enumerate(visible)
    ])

    if not preview_df.empty:
        invalid_rows = {index for index, record in enumerate(visible) if not record.is_valid}

        def _highlight_missing_name(row: pd.Series) -> list[str]:
            """Return CSS styles for a row — amber for rows without a name."""
            style = "background-color: #FFF3CD" if row.name in invalid_rows else ""
            return [style] * len(row)

        st.dataframe(
            preview_df.style.apply(_highlight_missing_name, axis=1),
            use_container_width=True,
            hide_index=True,
        )
    if remaining > 0:
        st.caption(f"... and {remaining} more rows")

    # ── Commit ───────────────────────────────────────────────────
    batch = commit(records)
    if batch.rejected_count:
        st.warning(f"{batch.rejected_count} row(s) have no component name and will be skipped.")

    import_cols = st.columns(2)
    if import_cols[1].button("Cancel", use_container_width=True):
        _reset_import()
        st.rerun()

    if import_cols[0].button(
        f"Import {batch.accepted_count} components",
        type="primary",
        use_container_width=True,
    ):
        try:
            with st.spinner("Importing components..."):
                added_count = submit_batch(batch, client)
        except ImportFlowError as exc:
            st.error(str(exc))
            return
        except ApiError as exc:
            st.error(f"Error importing: {exc.message}")
            return
        except Exception as exc:
            logger.error(f"Import of '{session.filename}' failed: {exc}", exc_info=True)
            st.error(f"Error importing: {exc}")
            return

        _reset_import()
        _flash(f"Successfully imported {added_count} components!")
        st.rerun()


def _reset_import() -> None:
    st.session_state["import_session"] = None
    st.session_state["import_errors"] = []
    st.session_state["import_upload_key"] = None
    st.session_state["import_uploader_nonce"] += 1


# ═══════════════════════════════════════════════════════════════════════════
# Competitions
# ═══════════════════════════════════════════════════════════════════════════

def _render_competitions(client: SheetApiClient) -> None:
    st.header("🏆 Competitions")

    competitions = _load(client.get_competitions, "competitions")
    stats = competition_stats(competitions, today=date.today())

    metric_cols = st.columns(4)
    metric_cols[0].metric("Upcoming", stats.upcoming)
    metric_cols[1].metric("Ongoing", stats.ongoing)
    metric_cols[2].metric("Completed", stats.completed)
    metric_cols[3].metric("Wins", stats.wins)

    status_filter = st.radio(
        "Show",
        options=COMPETITION_FILTERS,
        format_func=str.capitalize,
        horizontal=True,
        key="competition_filter",
    )
    visible = filter_competitions(competitions, status_filter)

    if visible:
        rows = []
        for competition in visible:
            dates = format_date(competition.get("Date"))
            if competition.get("EndDate"):
                dates += f" - {format_date(competition.get('EndDate'))}"
            tier = position_tier(competition.get("Position"))
            result_text = (
                f"{_POSITION_ICONS[tier]} {competition.get('Position')}"
                if tier
                else truncate(competition.get("Result"), 20) or "-"
            )
            rows.append({
                "ID": competition.get("EventID", ""),
                "Event": competition.get("EventName", ""),
                "Dates": dates,
                "Location": competition.get("Location") or "-",
                "Status": competition.get("Status") or DEFAULT_COMPETITION_STATUS,
                "Result": result_text,
            })
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    else:
        st.info("No competitions found")

    st.divider()
    selected = _record_picker(competitions, "EventID", "EventName", "competition_pick")
    current = selected or {}

    if selected:
        _render_result_form(client, selected)

    st.subheader("Edit Competition" if selected else "Add New Competition")
    with st.form(f"competition_form_{current.get('EventID', 'new')}"):
        event_name = st.text_input("Event Name *", value=_text(current, "EventName"))
        date_cols = st.columns(2)
        start = date_cols[0].text_input("Date (YYYY-MM-DD) *", value=_text(current, "Date"))
        end = date_cols[1].text_input("End Date (YYYY-MM-DD)", value=_text(current, "EndDate"))
        location = st.text_input("Location", value=_text(current, "Location"))
        details = st.text_area("Details", value=_text(current, "Details"))
        status = st.selectbox(
            "Status",
            options=COMPETITION_STATUS_OPTIONS,
            index=_option_index(
                COMPETITION_STATUS_OPTIONS, current.get("Status"), DEFAULT_COMPETITION_STATUS
            ),
        )
        result = st.text_area("Result", value=_text(current, "Result"))
        position = st.text_input("Position", value=_text(current, "Position"))
        participants = st.text_input("Participants", value=_text(current, "Participants"))
        notes = st.text_area("Notes", value=_text(current, "Notes"))
        submitted = st.form_submit_button("💾 Save Competition", type="primary")

    if submitted:
        if not event_name.strip() or not start.strip():
            st.error("Event Name and Date are required.")
        else:
            data = competition_payload({
                "EventName": event_name,
                "Date": start,
                "EndDate": end,
                "Location": location,
                "Details": details,
                "Status": status,
                "Result": result,
                "Position": position,
                "Participants": participants,
                "Notes": notes,
            })
            if selected:
                _save(
                    lambda: client.update_competition(selected["EventID"], data),
                    "Competition updated successfully!",
                )
            else:
                _save(lambda: client.add_competition(data), "Competition added successfully!")

    if selected:
        _delete_controls(str(selected["EventID"]), "competition", client.delete_competition, "competition")


def _render_result_form(client: SheetApiClient, competition: dict) -> None:
    event_id = str(competition["EventID"])
    with st.expander(f"🏆 Update Result — {competition.get('EventName', '')}"):
        with st.form(f"result_form_{event_id}"):
            status = st.selectbox(
                "Status",
                options=COMPETITION_STATUS_OPTIONS,
                index=_option_index(
                    COMPETITION_STATUS_OPTIONS, competition.get("Status"), DEFAULT_COMPETITION_STATUS
                ),
            )
            position = st.text_input("Position", value=_text(competition, "Position"))
            result = st.text_area("Result Details", value=_text(competition, "Result"))
            notes = st.text_area("Notes", value=_text(competition, "Notes"))
            submitted = st.form_submit_button("💾 Save Result")

        if submitted:
            data = result_payload({
                "Status": status, "Position": position, "Result": result, "Notes": notes,
            })
            _save(
                lambda: client.update_competition_result(event_id, data),
                "Result updated successfully!",
            )


# ═══════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════

def _render_orders(client: SheetApiClient) -> None:
    st.header("📦 Orders")

    orders = _load(client.get_orders, "orders")
    components = _load(client.get_components, "components")

    if orders:
        table = pd.DataFrame([
            {
                "Order": order.get("OrderID", ""),
                "Component ID": order.get("ComponentID", ""),
                "Component": order.get("ComponentName", ""),
                "Quantity": parse_quantity(order.get("Quantity")),
                "Vendor": order.get("Vendor") or "-",
                "Ordered": format_date(order.get("OrderDate")),
                "Expected": format_date(order.get("ExpectedDelivery")),
                "Status": order.get("Status") or DEFAULT_ORDER_STATUS,
            }
            for order in orders
        ])
        st.dataframe(table, use_container_width=True, hide_index=True)
    else:
        st.info("No orders found")

    st.divider()
    selected = _record_picker(orders, "OrderID", "ComponentName", "order_pick")
    st.subheader("Edit Order" if selected else "Add New Order")
    current = selected or {}

    component_names = {
        str(c.get("ComponentID", "")): c.get("ComponentName", "") for c in components
    }
    component_options = [""] + list(component_names)
    component_labels = {
        str(c.get("ComponentID", "")): (
            f"{c.get('ComponentID', '')} - {c.get('ComponentName', '')} "
            f"(Stock: {parse_quantity(c.get('Quantity'))})"
        )
        for c in components
    }

    with st.form(f"order_form_{current.get('OrderID', 'new')}"):
        component_id = st.selectbox(
            "Component *",
            options=component_options,
            index=_option_index(component_options, current.get("ComponentID"), ""),
            format_func=lambda cid: component_labels.get(cid, "-- Select Component --"),
        )
        quantity = st.number_input(
            "Quantity", min_value=0, step=1, value=parse_quantity(current.get("Quantity"))
        )
        vendor = st.text_input("Vendor", value=_text(current, "Vendor"))
        date_cols = st.columns(2)
        order_date = date_cols[0].text_input(
            "Order Date (YYYY-MM-DD)",
            value=_text(current, "OrderDate") or date.today().isoformat(),
        )
        expected = date_cols[1].text_input(
            "Expected Delivery (YYYY-MM-DD)", value=_text(current, "ExpectedDelivery")
        )
        status = st.selectbox(
            "Status",
            options=ORDER_STATUS_OPTIONS,
            index=_option_index(ORDER_STATUS_OPTIONS, current.get("Status"), DEFAULT_ORDER_STATUS),
        )
        notes = st.text_area("Notes", value=_text(current, "Notes"))
        submitted = st.form_submit_button("💾 Save Order", type="primary")

    if submitted:
        if not component_id:
            st.error("Please select a component.")
        else:
            data = order_payload({
                "ComponentID": component_id,
                "ComponentName": component_names.get(component_id, ""),
                "Quantity": quantity,
                "Vendor": vendor,
                "OrderDate": order_date,
                "ExpectedDelivery": expected,
                "Status": status,
                "Notes": notes,
            })
            if selected:
                _save(
                    lambda: client.update_order(selected["OrderID"], data),
                    "Order updated successfully!",
                )
            else:
                _save(lambda: client.add_order(data), "Order added successfully!")

    if selected:
        _delete_controls(str(selected["OrderID"]), "order", client.delete_order, "order")


# ═══════════════════════════════════════════════════════════════════════════
# Sidebar — navigation + endpoint
# ═══════════════════════════════════════════════════════════════════════════

st.sidebar.title("🛠️ ATL Dashboard")

_PAGES = {
    "Projects": _render_projects,
    "Components": _render_components,
    "Competitions": _render_competitions,
    "Orders": _render_orders,
}
page = st.sidebar.radio("Page", options=list(_PAGES), key="page")

# Endpoint from Streamlit secrets (not from a UI input field)
api_url = st.secrets.get("API_URL", None)

if not api_url:
    st.sidebar.info(
        "No API endpoint configured. "
        "Set API_URL in .streamlit/secrets.toml to connect to the record store."
    )
    st.stop()


# ═══════════════════════════════════════════════════════════════════════════
# Main area
# ═══════════════════════════════════════════════════════════════════════════

_show_flash()
_PAGES[page](_get_client(api_url))
