"""Streamlit operator UI for certweb."""

import asyncio
from concurrent.futures import Future, ThreadPoolExecutor

import httpx
import streamlit as st

from certweb.errors import DecodeError
from certweb.gateway import SubmissionGateway, SubmissionResult
from certweb.models import ConfigurationDocument
from certweb.models import DeploymentScenario, RequirementLevel
from certweb.session import ConfigSession
from config.settings import settings

# Page config
st.set_page_config(
    page_title="certweb - CNF Certification Suite",
    layout="wide",
)

SCENARIO_LABELS = {
    DeploymentScenario.ALL: "All tests",
    DeploymentScenario.NONE: "No tests",
    DeploymentScenario.TELCO: "Telco",
    DeploymentScenario.NON_TELCO: "Non-Telco",
    DeploymentScenario.FAR_EDGE: "Far Edge",
    DeploymentScenario.EXTENDED: "Extended",
}

# Initialize session state
if "config_session" not in st.session_state:
    st.session_state.config_session = ConfigSession()
if "widget_generation" not in st.session_state:
    st.session_state.widget_generation = 0
if "submission_result" not in st.session_state:
    st.session_state.submission_result = None
if "gateway" not in st.session_state:
    st.session_state.gateway = None
if "submit_executor" not in st.session_state:
    st.session_state.submit_executor = ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="certweb-submit"
    )
if "submission_future" not in st.session_state:
    st.session_state.submission_future = None
if "pending_toast" not in st.session_state:
    st.session_state.pending_toast = None
if "log_lines" not in st.session_state:
    st.session_state.log_lines = []
if "log_offset" not in st.session_state:
    st.session_state.log_offset = 0
if "api_url" not in st.session_state:
    st.session_state.api_url = settings.api_url


def session() -> ConfigSession:
    return st.session_state.config_session


def refresh_widgets() -> None:
    """Force widgets to pick up values changed outside of them."""
    st.session_state.widget_generation += 1


def widget_key(*parts) -> str:
    return "-".join(str(p) for p in (st.session_state.widget_generation, *parts))


# ============ Callbacks ============

def on_scenario_change():
    scenario = st.session_state.scenario_choice
    level = st.session_state.auto_check_choice
    session().selection.apply_scenario(scenario, level)
    refresh_widgets()


def on_toggle_test(test_id: str):
    session().selection.toggle(test_id)


def on_group_selection(prefix: str, included: bool):
    session().selection.set_group(prefix, included)
    refresh_widgets()


def on_group_value(group_name: str, index: int, sub_field: str, key: str):
    session().groups.set_sub_value(group_name, index, sub_field, st.session_state[key])


def on_scalar_value(name: str, key: str):
    session().scalars[name] = st.session_state[key]


def on_add_instance(group_name: str):
    spec = session().layout.group(group_name)
    session().groups.add(group_name, paired=spec.paired, sub_fields=spec.sub_fields)


def on_remove_instance(group_name: str):
    session().groups.remove(group_name)
    refresh_widgets()


# ============ API ============

def get_gateway() -> SubmissionGateway:
    """The session's gateway, rebuilt only when the API URL changed while idle."""
    gateway = st.session_state.gateway
    url = st.session_state.api_url.rstrip("/")
    if gateway is None or (gateway.base_url != url and not gateway.busy):
        gateway = SubmissionGateway(url, timeout=settings.submit_timeout_seconds)
        st.session_state.gateway = gateway
    return gateway


def submission_in_flight() -> bool:
    future = st.session_state.submission_future
    gateway = st.session_state.gateway
    return (future is not None and not future.done()) or (gateway is not None and gateway.busy)


def run_submission(
    gateway: SubmissionGateway,
    document: ConfigurationDocument,
    kubeconfig: bytes | None,
    kubeconfig_name: str,
) -> SubmissionResult:
    """Run the submission synchronously on the calling thread."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(gateway.submit(document, kubeconfig, kubeconfig_name))
    finally:
        loop.close()


def on_submit():
    """Start a submission in the background; ignored while one is in flight."""
    if submission_in_flight():
        return
    kubeconfig = st.session_state.get("kubeconfig")
    st.session_state.submission_result = None
    st.session_state.submission_future = st.session_state.submit_executor.submit(
        run_submission,
        get_gateway(),
        session().serialize(),
        kubeconfig.getvalue() if kubeconfig else None,
        kubeconfig.name if kubeconfig else "kubeconfig",
    )


def collect_submission() -> bool:
    """Store the result of a finished submission. Returns True if one finished."""
    future: Future | None = st.session_state.submission_future
    if future is None or not future.done():
        return False
    st.session_state.submission_future = None
    try:
        result = future.result()
    except Exception as e:
        result = SubmissionResult.failure(str(e) or type(e).__name__)
    st.session_state.submission_result = result
    st.session_state.pending_toast = f"{result.heading}: {result.message}"
    return True


def poll_logs() -> None:
    """Fetch log lines appended since the last poll."""
    try:
        with httpx.Client(timeout=2.0) as client:
            resp = client.get(
                f"{st.session_state.api_url}/api/logs",
                params={"offset": st.session_state.log_offset},
            )
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPError:
        return
    st.session_state.log_lines.extend(data.get("lines", []))
    st.session_state.log_offset = data.get("next_offset", st.session_state.log_offset)


# ============ Sections ============

def render_sidebar():
    with st.sidebar:
        st.header("Settings")

        st.session_state.api_url = st.text_input("API URL", value=st.session_state.api_url)
        try:
            with httpx.Client(timeout=2.0) as client:
                resp = client.get(f"{st.session_state.api_url}/")
                if resp.status_code == 200:
                    st.success("API Connected")
                else:
                    st.warning("API returned error")
        except httpx.HTTPError:
            st.error("API not available")
            st.caption("Start server: `python -m api.main`")

        st.divider()

        st.header("Scenario")
        scenarios = list(SCENARIO_LABELS)
        st.selectbox(
            "Deployment scenario",
            scenarios,
            index=scenarios.index(session().selection.scenario),
            format_func=SCENARIO_LABELS.get,
            key="scenario_choice",
            on_change=on_scenario_change,
        )
        levels = list(RequirementLevel)
        st.radio(
            "Auto-check",
            levels,
            index=levels.index(session().selection.auto_check),
            format_func=lambda level: level.value,
            key="auto_check_choice",
            on_change=on_scenario_change,
            horizontal=True,
        )
        st.metric("Selected tests", session().selection.count_all_selected())

        st.divider()

        st.header("Import")
        uploaded = st.file_uploader("Certsuite configuration", type=["yml", "yaml", "json"])
        if uploaded is not None and st.button("Import configuration", use_container_width=True):
            try:
                report = session().import_text(uploaded.getvalue())
            except DecodeError as e:
                st.error(str(e))
            else:
                refresh_widgets()
                st.success(
                    f"Imported {report.total_instances} values and {len(report.scalars)} fields"
                )
                if report.skipped:
                    st.warning(f"Skipped: {', '.join(report.skipped)}")


def render_field_groups():
    st.header("Configuration")
    groups = session().groups

    for spec in session().layout.groups:
        with st.expander(f"{spec.label} ({groups.current_count(spec.name)})"):
            group = groups.group(spec.name)
            for index in groups.indices(spec.name):
                cols = st.columns(len(spec.sub_fields))
                for col, sub_field in zip(cols, spec.sub_fields):
                    key = widget_key(group.field_id(index, sub_field))
                    col.text_input(
                        f"{sub_field} {index}",
                        value=groups.get_value(spec.name, index, sub_field),
                        key=key,
                        on_change=on_group_value,
                        args=(spec.name, index, sub_field, key),
                    )

            add_col, remove_col = st.columns(2)
            add_col.button(
                "Add",
                key=f"add-{spec.name}",
                on_click=on_add_instance,
                args=(spec.name,),
            )
            if groups.is_removable(spec.name):
                remove_col.button(
                    "Remove",
                    key=f"remove-{spec.name}",
                    on_click=on_remove_instance,
                    args=(spec.name,),
                )

    for scalar in session().layout.scalars:
        key = widget_key("scalar", scalar.name)
        st.text_input(
            scalar.label,
            value=session().scalars.get(scalar.name, ""),
            type="password" if scalar.secret else "default",
            key=key,
            on_change=on_scalar_value,
            args=(scalar.name, key),
        )


def render_test_selection():
    st.header("Tests")
    selection = session().selection
    table = session().table

    for prefix in selection.groups():
        size = selection.group_size(prefix)
        if size == 0:
            continue
        with st.expander(f"{prefix} ({selection.count_selected(prefix)}/{size})"):
            all_col, none_col = st.columns(2)
            all_col.button(
                "Select all",
                key=f"all-{prefix}",
                on_click=on_group_selection,
                args=(prefix, True),
            )
            none_col.button(
                "Select none",
                key=f"none-{prefix}",
                on_click=on_group_selection,
                args=(prefix, False),
            )
            for entry in table.filter_by_group(prefix):
                st.checkbox(
                    entry.id,
                    value=selection.is_selected(entry.id),
                    help=entry.description,
                    key=widget_key("test", entry.id),
                    on_change=on_toggle_test,
                    args=(entry.id,),
                )


def render_submit():
    st.header("Run")
    st.file_uploader("Kubeconfig", key="kubeconfig")

    if st.session_state.pending_toast:
        st.toast(st.session_state.pending_toast)
        st.session_state.pending_toast = None

    # Disabled state is evaluated after on_submit ran, so a click locks the button
    st.button(
        "Run certification",
        type="primary",
        disabled=submission_in_flight(),
        on_click=on_submit,
        use_container_width=True,
    )

    result = st.session_state.submission_result
    if result is not None:
        if result.ok:
            st.success(f"**{result.heading}**: {result.message}")
        else:
            st.error(f"**{result.heading}**: {result.message}")


@st.fragment(run_every=settings.log_poll_interval)
def render_logs():
    st.header("Logs")
    if collect_submission():
        # Full rerun re-enables the submit button and shows the result
        st.rerun()
    if submission_in_flight():
        st.info("Running certsuite...")
    poll_logs()
    st.code("\n".join(st.session_state.log_lines[-500:]) or "No output yet", language="text")


def main():
    st.title("certweb")
    st.subheader("CNF Certification Suite configuration")

    st.divider()

    render_sidebar()

    col1, col2 = st.columns([1, 1])
    with col1:
        render_field_groups()
    with col2:
        render_test_selection()

    st.divider()
    render_submit()
    render_logs()

    # Footer
    st.divider()
    st.caption("certweb v0.1.0")


if __name__ == "__main__":
    main()
