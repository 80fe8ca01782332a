from __future__ import annotations

import json
from datetime import datetime, timezone
from io import BytesIO
from typing import Any

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, Preformatted, SimpleDocTemplate, Spacer, Table, TableStyle

_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f2a44")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.3, colors.HexColor("#999999")),
        ("BACKGROUND", (0, 1), (-1, -1), colors.whitesmoke),
    ]
)


def headline_numbers(output_payload: dict[str, Any]) -> list[tuple[str, str]]:
    """Top-level scalar outputs (price, npv, implied_vol, ...) formatted for a table."""

    rows: list[tuple[str, str]] = []
    for key, value in output_payload.items():
        if key in ("run_id", "run_type") or isinstance(value, (dict, list)):
            continue
        if isinstance(value, float):
            rows.append((key, f"{value:.6f}"))
        elif value is not None:
            rows.append((key, str(value)))
    return rows


def build_run_report_pdf(
    *,
    title: str,
    run_meta: dict[str, Any],
    input_payload: dict[str, Any],
    output_payload: dict[str, Any],
) -> bytes:
    """Render a stored calculation as a one-document PDF: metadata, key numbers, raw JSON."""

    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, title=title, author="quantkit")
    styles = getSampleStyleSheet()

    story: list[Any] = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%SZ')}", styles["Normal"]),
        Spacer(1, 10),
    ]

    meta_rows = [[k, str(v)] for k, v in run_meta.items()]
    if meta_rows:
        t = Table([["Field", "Value"], *meta_rows], colWidths=[120, 380])
        t.setStyle(_TABLE_STYLE)
        story += [Paragraph("Run", styles["Heading2"]), t, Spacer(1, 10)]

    key_rows = [list(r) for r in headline_numbers(output_payload)]
    if key_rows:
        t = Table([["Result", "Value"], *key_rows], colWidths=[180, 320])
        t.setStyle(_TABLE_STYLE)
        story += [Paragraph("Key results", styles["Heading2"]), t, Spacer(1, 10)]

    story += [
        Paragraph("Inputs", styles["Heading2"]),
        Preformatted(json.dumps(input_payload, indent=2, ensure_ascii=False), styles["Code"]),
        Spacer(1, 10),
        Paragraph("Full output", styles["Heading2"]),
        Preformatted(json.dumps(output_payload, indent=2, ensure_ascii=False), styles["Code"]),
    ]

    doc.build(story)
    return buf.getvalue()
