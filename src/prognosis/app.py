"""
Stroke Prognosis - Streamlit Application
========================================
Interactive teaching tool. Collects inputs, calls the engine, renders results.

Run with:
    streamlit run src/prognosis/app.py
"""

import streamlit as st
import plotly.graph_objects as go
import plotly.express as px
import pandas as pd

from prognosis.config import (
    load_model_config, HemiparesisSide, ExplorationPreset, SlopePreset,
    DecisionThresholds, DecisionBucket
)
from prognosis.models import (
    MeasurementPair, Covariates, ExplorationWeights, PatientState,
    items_to_frame, scenarios_to_frame
)
from prognosis.engine import PrognosisEngine, DISCLAIMER
from prognosis.recovery_curve import trajectory
from prognosis.validation import validate_inputs, run_self_checks, get_summary, ValidationSeverity
from prognosis.formatting import format_number, format_percent, format_days


# ============================================================
# PAGE CONFIG
# ============================================================

st.set_page_config(
    page_title="Stroke Prognosis",
    page_icon="🧠",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Session state
if 'engine' not in st.session_state:
    st.session_state.engine = PrognosisEngine(load_model_config())
if 'weights' not in st.session_state:
    st.session_state.weights = ExplorationWeights()
if 'include_age' not in st.session_state:
    st.session_state.include_age = False

BUCKET_COLOURS = {
    DecisionBucket.HOME: "🟢",
    DecisionBucket.UNCERTAIN: "🟡",
    DecisionBucket.NONHOME: "🔴",
    DecisionBucket.UNKNOWN: "⚪",
}


# ============================================================
# SIDEBAR - SETTINGS
# ============================================================

def render_sidebar():
    """Model settings sidebar"""

    st.sidebar.title("⚙️ Settings")

    with st.sidebar.expander("📈 Item curve slope (k)", expanded=False):
        preset = st.radio(
            "Preset",
            list(SlopePreset),
            index=1,
            format_func=lambda p: f"{p.name.title()} (k={p.value})",
            key="slope_preset"
        )
        k = st.number_input("k", 0.01, 1.0, float(preset.value), 0.01, key="k_item")

    with st.sidebar.expander("🎯 High-confidence thresholds", expanded=False):
        high = st.number_input("Home if P ≥", 0.01, 0.99, 0.90, 0.01)
        low = st.number_input("Non-home if P ≤", 0.01, 0.99, 0.10, 0.01)
        thresholds = DecisionThresholds(low=low, high=high)
        for issue in thresholds.issues():
            st.warning(issue)

    with st.sidebar.expander("🧪 Exploratory deficit weights", expanded=False):
        st.caption("Not empirically validated. Negative = toward non-home.")
        col1, col2, col3 = st.columns(3)
        for col, preset in zip((col1, col2, col3), ExplorationPreset):
            with col:
                if st.button(preset.value.title(), key=f"preset_{preset.value}"):
                    st.session_state.weights = ExplorationWeights.from_preset(
                        preset, st.session_state.engine.config)
        w = st.session_state.weights
        w_neg = st.slider("wNeg (neglect)", -1.0, 1.0, float(w.neglect), 0.05)
        w_aph = st.slider("wAph (aphasia)", -1.0, 1.0, float(w.aphasia), 0.05)
        w_apx = st.slider("wApx (apraxia)", -1.0, 1.0, float(w.apraxia), 0.05)
        st.session_state.weights = ExplorationWeights(w_neg, w_aph, w_apx)

    st.session_state.include_age = st.sidebar.checkbox(
        "Show non-modifiable scenarios (age)", value=st.session_state.include_age)

    return k, thresholds


# ============================================================
# INPUTS
# ============================================================

def render_inputs(k: float, thresholds: DecisionThresholds) -> PatientState:
    """Measurement and covariate inputs"""

    st.subheader("Measurements (two-point method)")
    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        day_a = st.number_input("Day A", 1, 365, 7)
    with col2:
        score_a = st.number_input("FIM-m A", 0, 91, 30)
    with col3:
        day_b = st.number_input("Day B", 1, 365, 14)
    with col4:
        score_b = st.number_input("FIM-m B", 0, 91, 45)
    with col5:
        target_day = st.number_input("Target day X", 1, 365, 21)

    st.subheader("Patient factors")
    col1, col2, col3 = st.columns(3)
    with col1:
        age = st.number_input("Age", 18, 120, 70)
        household = st.number_input("Household size", 1, 20, 2)
        lives_alone = st.checkbox("Lives alone", value=household <= 1)
        stairs = st.checkbox("Stairs/steps at home", value=True)
    with col2:
        side = st.selectbox(
            "Hemiparesis side",
            list(HemiparesisSide),
            format_func=lambda s: s.value.title()
        )
        aphasia = st.checkbox("Aphasia")
        neglect = st.checkbox("Unilateral spatial neglect")
        apraxia = st.checkbox("Ideomotor/ideational apraxia")
    with col3:
        nihss_unknown = st.checkbox("NIHSS unknown")
        nihss = st.number_input("Admission NIHSS (0-42)", 0, 42, 10, disabled=nihss_unknown)
        mrs = st.number_input("Pre-morbid mRS (0-6)", 0, 6, 0)

    return PatientState(
        measurement=MeasurementPair(day_a, score_a, day_b, score_b),
        target_day=target_day,
        covariates=Covariates(
            age=age,
            household_size=household,
            lives_alone=lives_alone,
            stairs=stairs,
            hemiparesis=side,
            aphasia=aphasia,
            neglect=neglect,
            apraxia=apraxia,
            nihss=None if nihss_unknown else nihss,
            premorbid_mrs=mrs
        ),
        weights=st.session_state.weights,
        thresholds=thresholds,
        item_slope=k
    )


# ============================================================
# RESULTS
# ============================================================

def render_results(state: PatientState):
    """Prediction results"""

    engine = st.session_state.engine
    result = engine.predict(state, include_age=st.session_state.include_age)

    for check in validate_inputs(state, engine.config):
        if check.severity == ValidationSeverity.FAIL:
            st.error(f"{check.name}: {check.message}")
        elif check.severity == ValidationSeverity.WARNING:
            st.warning(f"{check.name}: {check.message}")

    if not result.computable:
        st.error("Cannot compute - check the measurement days.")
        return

    st.subheader("📊 Results")
    col_a, col_b, col_c, col_d = st.columns(4)
    with col_a:
        st.metric("Recovery rate β", format_number(result.rate, 2))
    with col_b:
        st.metric(f"FIM-m at day {state.target_day}", format_number(result.projected_score, 1))
    with col_c:
        ci = result.interval
        st.metric(
            "P(home)",
            format_percent(result.discharge_probability),
            help=f"90% interval {format_percent(ci.low)}–{format_percent(ci.high)}" if ci else None
        )
    with col_d:
        bucket = result.sensitivity.bucket
        st.metric("Decision", f"{BUCKET_COLOURS[bucket]} {bucket.value.title()}")

    # Trajectory
    series = trajectory(state.measurement, result.rate, state.target_day)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=series['day'],
        y=series['score'],
        mode='lines',
        name='Projected FIM-m',
        line=dict(color='#2E86AB', width=3)
    ))
    m = state.measurement
    fig.add_trace(go.Scatter(
        x=[m.day_a, m.day_b],
        y=[m.score_a, m.score_b],
        mode='markers',
        name='Measured',
        marker=dict(size=10, color='black')
    ))
    fig.add_vline(x=state.target_day, line_dash="dash", line_color="orange",
                  annotation_text="Target")
    fig.update_layout(
        title="FIM-m Trajectory (log-linear)",
        xaxis_title="Days since onset",
        yaxis_title="FIM-m",
        yaxis_range=[0, 91],
        height=350
    )
    st.plotly_chart(fig, use_container_width=True)

    # Milestones
    st.subheader("🎯 Item Attainment (least likely first)")
    items_df = items_to_frame(result.items)
    fig_bar = px.bar(
        items_df,
        x="probability",
        y="label",
        orientation='h',
        color="probability",
        color_continuous_scale=["red", "orange", "green"],
        range_color=[0, 1]
    )
    fig_bar.add_vline(x=0.5, line_dash="dash", line_color="black")
    fig_bar.update_layout(height=420, yaxis=dict(autorange="reversed"))
    st.plotly_chart(fig_bar, use_container_width=True)

    render_sensitivity(result)

    with st.expander("📝 Report text"):
        st.text(engine.explain_prediction(result, state))


def render_sensitivity(result):
    """Robustness, minimum delta and scenario ranking"""

    sens = result.sensitivity
    st.subheader("🔍 Sensitivity")

    col1, col2, col3 = st.columns(3)
    with col1:
        if sens.nih_robust is None:
            st.markdown("**NIHSS range:** known")
        else:
            st.markdown(f"**NIHSS range:** {'✅ robust' if sens.nih_robust else '⚠️ not robust'}")
        if sens.measurement_robust is not None:
            st.markdown(f"**±2 FIM-m:** {'✅ robust' if sens.measurement_robust else '⚠️ not robust'}")
    with col2:
        md = sens.minimum_delta
        st.markdown(f"**Gain needed:** {format_number(md.needed, 1)} FIM-m")
        st.markdown(f"**Time at current rate:** {format_days(md.days)}")
        if md.note:
            st.caption(md.note)
    with col3:
        lever = sens.most_effective_lever
        if lever is not None:
            st.markdown(f"**Most effective lever:** {lever.label}")
            st.markdown(f"Δ {lever.delta * 100:+.1f} points")

    scen_df = scenarios_to_frame(sens.scenarios)
    if not scen_df.empty:
        scen_df['Effect'] = ["Raises" if d > 0 else "Lowers" if d < 0 else "None"
                             for d in scen_df['delta']]
        fig = px.bar(
            scen_df,
            x="delta",
            y="label",
            orientation='h',
            color="Effect",
            color_discrete_map={"Raises": "#2ecc71", "Lowers": "#e74c3c", "None": "#95a5a6"}
        )
        fig.add_vline(x=0.0, line_dash="dash", line_color="black")
        fig.update_layout(height=300, yaxis=dict(autorange="reversed"),
                          xaxis_title="Change in P(home)")
        st.plotly_chart(fig, use_container_width=True)


# ============================================================
# SELF-CHECK TAB
# ============================================================

def render_checks_tab(state: PatientState):
    """Model self-checks"""

    st.header("🧪 Self-checks")
    if st.button("Run checks"):
        results = run_self_checks(st.session_state.engine.config, state)
        summary = get_summary(results)
        st.markdown(f"{summary['passed']}/{summary['total']} passed, "
                    f"{summary['warnings']} warnings, {summary['failed']} failed")
        st.dataframe(pd.DataFrame([
            {"Check": r.name, "Result": r.severity.value, "Detail": r.message}
            for r in results
        ]), use_container_width=True)


# ============================================================
# MAIN APP
# ============================================================

def main():
    """Main application"""

    k, thresholds = render_sidebar()

    st.title("🧠 Post-Stroke Recovery & Discharge Estimator")
    st.error(DISCLAIMER)

    tab1, tab2 = st.tabs(["🧑‍⚕️ Prediction", "🧪 Self-checks"])

    with tab1:
        state = render_inputs(k, thresholds)
        render_results(state)

    with tab2:
        render_checks_tab(state)

    st.markdown("---")
    st.caption(f"Model config v{st.session_state.engine.config.version} | "
               "Inputs are session-based and not stored")


if __name__ == "__main__":
    main()
