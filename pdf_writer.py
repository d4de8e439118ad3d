"""PDF rendering of a Gantt layout using ReportLab."""

from __future__ import annotations

import io
from typing import Dict, List, Tuple

from reportlab.lib import colors
from reportlab.pdfgen import canvas

from datatypes import LineShape, PolygonShape, RectShape, TextLabel
from gantt_builder import GanttLayout
from geometry import BAR_RADIUS

TITLE_H = 28

DEFAULT_BAR_COLOR = "#5B9BD5"
SCHEDULED_FILL = "#D9D9D9"
SCHEDULED_STROKE = "#9E9E9E"
GROUND_COLORS = {"ground-landed": "#FF9800", "ground-operation": "#4CAF50"}
NOW_COLOR = "#E74C3C"

FONT_SIZES = {
    "actual": 9,
    "actual-time": 7,
    "scheduled-time": 7,
    "axis-x": 8,
    "axis-y": 9,
    "now": 9,
}


def draw_gantt_pdf_bytes(layout: GanttLayout, title: str = "") -> bytes:
    """Generate a one-page PDF with the whole Gantt canvas.

    Layers are drawn in ``layout.layers()`` order. Bars with an estimated tow
    edge are clipped by their jagged polygon.
    """
    buf = io.BytesIO()
    page_w, page_h = layout.width, layout.height + TITLE_H
    c = canvas.Canvas(buf, pagesize=(page_w, page_h))
    m = layout.margin

    def px(x: float) -> float:
        return m.left + x

    def py(y: float) -> float:
        # plot y grows downward, PDF y grows upward
        return layout.height - (m.top + y)

    if title:
        c.setFont("Helvetica-Bold", 14)
        c.setFillColor(colors.black)
        c.drawString(m.left, page_h - 20, title)

    clips: Dict[str, List[Tuple[float, float]]] = {}

    def draw_line(s: LineShape) -> None:
        c.saveState()
        if s.kind == "grid":
            c.setStrokeColor(colors.lightgrey)
            c.setLineWidth(0.5)
        elif s.kind == "ground":
            c.setStrokeColor(colors.HexColor("#555555"))
            c.setLineWidth(2)
        elif s.kind == "now":
            c.setStrokeColor(colors.HexColor(NOW_COLOR))
            c.setLineWidth(2)
            c.setDash(5, 5)
        else:
            c.setStrokeColor(colors.black)
            c.setLineWidth(0.5)
        c.line(px(s.x1), py(s.y1), px(s.x2), py(s.y2))
        c.restoreState()

    def draw_rect(s: RectShape) -> None:
        c.saveState()
        if s.clip_id and s.clip_id in clips:
            path = c.beginPath()
            pts = clips[s.clip_id]
            path.moveTo(px(pts[0][0]), py(pts[0][1]))
            for x, y in pts[1:]:
                path.lineTo(px(x), py(y))
            path.close()
            c.clipPath(path, stroke=0, fill=0)

        if s.kind == "actual":
            c.setFillColor(colors.HexColor(s.fill or DEFAULT_BAR_COLOR))
            stroke = 0
        elif s.kind == "scheduled":
            c.setFillColor(colors.HexColor(SCHEDULED_FILL))
            c.setStrokeColor(colors.HexColor(SCHEDULED_STROKE))
            stroke = 1
        else:
            c.setFillColor(colors.HexColor(GROUND_COLORS.get(s.kind, "#4CAF50")))
            c.setFillAlpha(0.7)
            stroke = 0

        bottom = py(s.y + s.height)
        if s.kind in ("actual", "scheduled"):
            radius = min(BAR_RADIUS, s.height / 2, s.width / 2)
            c.roundRect(px(s.x), bottom, s.width, s.height, radius, stroke=stroke, fill=1)
        else:
            c.rect(px(s.x), bottom, s.width, s.height, stroke=0, fill=1)
        c.restoreState()

    def draw_text(s: TextLabel) -> None:
        size = FONT_SIZES.get(s.kind, 8)
        c.saveState()
        if s.kind == "now":
            c.setFont("Helvetica-Bold", size)
            c.setFillColor(colors.HexColor(NOW_COLOR))
        elif s.kind == "actual":
            c.setFont("Helvetica-Bold", size)
            c.setFillColor(colors.white)
        else:
            c.setFont("Helvetica", size)
            c.setFillColor(colors.black)
        # vertically centered on the anchor point
        x, y = px(s.x), py(s.y) - size * 0.35
        if s.anchor == "start":
            c.drawString(x, y, s.text)
        elif s.anchor == "end":
            c.drawRightString(x, y, s.text)
        else:
            c.drawCentredString(x, y, s.text)
        c.restoreState()

    for _name, shapes in layout.layers():
        for shape in shapes:
            if isinstance(shape, PolygonShape):
                clips[shape.clip_id] = shape.points
            elif isinstance(shape, RectShape):
                draw_rect(shape)
            elif isinstance(shape, LineShape):
                draw_line(shape)
            elif isinstance(shape, TextLabel):
                draw_text(shape)

    footer_text = "Hora local"
    c.setFont("Helvetica", 8)
    c.setFillColor(colors.lightgrey)
    footer_w = c.stringWidth(footer_text, "Helvetica", 8)
    c.drawString((page_w - footer_w) / 2, 6, footer_text)

    c.showPage()
    c.save()

    buf.seek(0)
    return buf.getvalue()
