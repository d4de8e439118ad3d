"""Gate occupancy Gantt Streamlit app.

Thin host adapter: reads the uploaded schedule, turns the sidebar widgets
into FilterCriteria and DisplaySettings, runs one layout pass and offers the
chart as a PDF.
"""

from __future__ import annotations

import hashlib
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Mapping, Optional

import streamlit as st

from colors import COLOR_DIMENSIONS
from csv_parser import build_parsed_data, read_flight_rows_from_csv_bytes, rows_to_dataframe
from datatypes import FilterCriteria, ParsedData
from filters import apply_filters
from gantt_builder import build_gantt_layout
from gates import load_widebody_overrides
from pdf_writer import draw_gantt_pdf_bytes
from settings import PX_PER_HOUR_RANGE, ROW_HEIGHT_RANGE, DisplaySettings, load_display_settings
from shape_arena import ShapeArena

# Paths
APP_DIR = Path(__file__).parent
WIDEBODY_JSON = APP_DIR / "widebody_gates.json"

DIMENSION_LABELS = {
    "actualColor": "Color real",
    "airline": "Aerolínea",
    "domesticIntl": "Nacional/Internacional",
    "aircraftModel": "Modelo de avión",
    "terminal": "Terminal",
    "status": "Estado",
}

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


# -------- Helper functions for Streamlit UI --------

def _secrets_section(name: str) -> Optional[Mapping[str, Any]]:
    """Read an optional secrets table; missing secrets are not an error."""
    try:
        return st.secrets.get(name, None)
    except Exception:
        return None


def _sidebar_criteria() -> FilterCriteria:
    st.sidebar.header("Filtros")
    start_date = st.sidebar.date_input("Desde", value=None, key="f_start")
    end_date = st.sidebar.date_input("Hasta", value=None, key="f_end")
    time_min, time_max = st.sidebar.slider("Horas visibles", 0, 24, (0, 24), key="f_hours")
    return FilterCriteria(
        start_date=start_date,
        end_date=end_date,
        time_min=time_min,
        time_max=time_max,
        terminal=st.sidebar.text_input("Terminal", key="f_terminal"),
        gate=st.sidebar.text_input("Puerta", key="f_gate"),
        airline=st.sidebar.text_input("Aerolínea", key="f_airline"),
        flight_number=st.sidebar.text_input("Vuelo", key="f_flight"),
        tail=st.sidebar.text_input("Matrícula", key="f_tail"),
    )


def _sidebar_settings(defaults: DisplaySettings) -> DisplaySettings:
    st.sidebar.header("Visualización")
    dimension = st.sidebar.selectbox(
        "Colorear por",
        options=COLOR_DIMENSIONS,
        index=COLOR_DIMENSIONS.index(defaults.color_dimension),
        format_func=lambda d: DIMENSION_LABELS.get(d, d),
    )
    row_height = st.sidebar.slider("Alto de fila", *ROW_HEIGHT_RANGE, value=defaults.row_height)
    px_per_hour = st.sidebar.slider("Píxeles por hora", *PX_PER_HOUR_RANGE, value=defaults.px_per_hour)
    min_label_width = st.sidebar.number_input(
        "Ancho mínimo para etiquetas (px)", min_value=0.0, value=float(defaults.min_label_width), step=5.0,
    )
    return DisplaySettings(
        row_height=row_height,
        px_per_hour=px_per_hour,
        color_dimension=dimension,
        min_label_width=min_label_width,
    )


def _load_baseline(data: bytes) -> Optional[ParsedData]:
    """Parse an upload once and keep it as the session baseline."""
    digest = hashlib.sha1(data).hexdigest()
    if st.session_state.get("baseline_digest") == digest:
        return st.session_state.get("baseline")

    overrides = load_widebody_overrides(WIDEBODY_JSON)
    rows = read_flight_rows_from_csv_bytes(data, overrides)
    baseline = build_parsed_data(rows)
    st.session_state["baseline"] = baseline
    st.session_state["baseline_digest"] = digest
    st.session_state["arena"] = ShapeArena()
    logger.info("Loaded baseline: %d rows", len(rows))
    return baseline


# -------- Main Streamlit app --------

def main() -> None:
    st.set_page_config(page_title="Ocupación de puertas", layout="wide")
    st.title("Ocupación de puertas")
    st.caption("Sube la programación de puertas (CSV) para ver el diagrama de Gantt.")

    criteria = _sidebar_criteria()
    settings = _sidebar_settings(load_display_settings(_secrets_section("display")))

    uploaded = st.file_uploader("Selecciona el CSV de puertas", type=["csv"], accept_multiple_files=False)
    if uploaded is None:
        st.info("Sin datos todavía.")
        return

    try:
        baseline = _load_baseline(uploaded.getvalue())
    except RuntimeError as e:
        st.error(str(e))
        return
    if baseline is None:
        st.warning("El CSV no contiene filas con puerta y horas; no hay nada que dibujar.")
        return

    layout = build_gantt_layout(baseline, criteria, settings, viewport=(1200, 600))
    if layout is None:
        st.info("Ningún vuelo cumple los filtros.")
        return

    arena: ShapeArena = st.session_state.setdefault("arena", ShapeArena())
    ops = arena.sync(shape for _name, shapes in layout.layers() for shape in shapes)
    counts = Counter(op.op for op in ops)

    rows = apply_filters(baseline.rows, criteria)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Vuelos", f"{len({r.identity for r in rows})}")
    c2.metric("Puertas", f"{len(layout.gates)}")
    c3.metric("Barras reales", f"{len(layout.actual_bars)}")
    c4.metric("Remolques estimados", f"{len(layout.tow_clips)}")
    st.caption(
        f"Ventana {layout.window[0]:%d/%m/%Y %H:%M} - {layout.window[1]:%d/%m/%Y %H:%M} · "
        f"{counts.get('create', 0)} nuevos, {counts.get('update', 0)} cambiados, "
        f"{counts.get('remove', 0)} retirados"
    )

    title = f"Ocupación de puertas {layout.window[0]:%d/%m/%Y}"
    pdf_bytes = draw_gantt_pdf_bytes(layout, title=title)
    st.download_button(
        label="Descargar PDF",
        data=pdf_bytes,
        file_name=f"gantt_{layout.window[0]:%Y%m%d_%H%M}.pdf",
        mime="application/pdf",
        use_container_width=True,
    )

    st.subheader("Vuelos filtrados")
    st.dataframe(rows_to_dataframe(rows), use_container_width=True)

    st.markdown("---")
    st.caption("Tus archivos no se almacenan; el PDF se genera bajo demanda y se descarga.")


if __name__ == "__main__":
    main()
