from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Any, List

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
from reportlab.lib import colors  # noqa: E402
from reportlab.lib.pagesizes import A4  # noqa: E402
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet  # noqa: E402
from reportlab.lib.units import mm  # noqa: E402
from reportlab.platypus import (  # noqa: E402
    Image,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from .sizing import (  # noqa: E402
    UNBOUNDED_SERIES_COUNT,
    InverterSpecs,
    ModuleSpecs,
    SiteConditions,
    SizingResult,
)
from .string_layout import build_string_table, suggest_string_length  # noqa: E402

logger = logging.getLogger(__name__)

REPORT_TITLE = "Solar String Sizing - Technical Report"

PALETTE = {
    "PRIMARY": colors.HexColor("#0B2E4A"),
    "BORDER": colors.HexColor("#D7DCE3"),
    "SOFT": colors.HexColor("#F5F7FA"),
    "OK": colors.HexColor("#1B7F3A"),
    "BAD": colors.HexColor("#C62828"),
}


def slugify(value: str) -> str:
    return "".join(c if c.isalnum() or c in ("-", "_") else "_" for c in value.strip()).strip("_")


def _fmt(value: float, unit: str, digits: int = 1) -> str:
    return f"{value:.{digits}f} {unit}"


def _fmt_count(count: int) -> str:
    return "unbounded" if count == UNBOUNDED_SERIES_COUNT else str(count)


def _styles() -> dict[str, ParagraphStyle]:
    sheet = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            name="ReportTitle",
            parent=sheet["Title"],
            textColor=PALETTE["OK"],
            fontSize=18,
        ),
        "section": ParagraphStyle(
            name="Section",
            parent=sheet["Heading2"],
            textColor=PALETTE["PRIMARY"],
            spaceBefore=8,
        ),
        "body": sheet["BodyText"],
        "ok": ParagraphStyle(name="StatusOk", parent=sheet["Heading3"], textColor=PALETTE["OK"]),
        "bad": ParagraphStyle(name="StatusBad", parent=sheet["Heading3"], textColor=PALETTE["BAD"]),
    }


def _key_value_table(rows: List[List[str]], width: float) -> Table:
    table = Table(rows, colWidths=[width * 0.55, width * 0.45])
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("GRID", (0, 0), (-1, -1), 0.6, PALETTE["BORDER"]),
                ("BACKGROUND", (0, 0), (-1, -1), PALETTE["SOFT"]),
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    return table


def _string_table(table: pd.DataFrame, width: float) -> Table:
    header = ["Modules", "Voc cold [V]", "Vmp hot [V]", "Power [kW]", "Feasible"]
    rows: List[List[Any]] = [header]
    for row in table.itertuples(index=False):
        rows.append(
            [
                str(int(row.modules)),
                f"{row.voc_cold_v:.1f}",
                f"{row.vmp_hot_v:.1f}",
                f"{row.power_kw:.2f}",
                "yes" if row.feasible else "no",
            ]
        )
    out = Table(rows, colWidths=[width / len(header)] * len(header), repeatRows=1)
    out.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), PALETTE["PRIMARY"]),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.6, PALETTE["BORDER"]),
                ("ALIGN", (0, 1), (-1, -1), "RIGHT"),
            ]
        )
    )
    return out


def _plot_string_voltage_window(table: pd.DataFrame, inverter: InverterSpecs) -> BytesIO:
    """
    Plot worst-case string voltages against the inverter limits.

    Returns:
        PNG image in memory.
    """
    fig, ax = plt.subplots(figsize=(7, 3.6))
    ax.plot(table["modules"], table["voc_cold_v"], marker="o", label="Voc at min. temperature")
    ax.plot(table["modules"], table["vmp_hot_v"], marker="s", label="Vmp at max. temperature")
    ax.axhline(inverter.max_input_voltage, color="#C62828", linestyle="--", label="Max. input voltage")
    ax.axhspan(
        inverter.min_mppt_voltage,
        inverter.max_mppt_voltage,
        color="#1B7F3A",
        alpha=0.12,
        label="MPPT window",
    )
    feasible = table[table["feasible"].astype(bool)]
    if not feasible.empty:
        ax.axvspan(
            feasible["modules"].min() - 0.5,
            feasible["modules"].max() + 0.5,
            color="#F9A825",
            alpha=0.15,
            label="Feasible string lengths",
        )
    ax.set_xlabel("Modules per string")
    ax.set_ylabel("String voltage [V]")
    ax.set_title("String voltage window")
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=7, loc="upper left")
    fig.tight_layout()

    buffer = BytesIO()
    fig.savefig(buffer, format="png", dpi=150)
    plt.close(fig)
    buffer.seek(0)
    return buffer


def render_report(
    result: SizingResult,
    module: ModuleSpecs,
    inverter: InverterSpecs,
    site: SiteConditions,
    display_name: str = "Custom Module",
) -> bytes:
    """
    Render the sizing report as a PDF document.

    Args:
        result: Output of calculate_string_sizing for the given inputs.
        module: Module specs used for the calculation.
        inverter: Inverter limits used for the calculation.
        site: Site temperatures used for the calculation.
        display_name: Module model name shown in the report.

    Returns:
        PDF document bytes.
    """
    styles = _styles()
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
        title=REPORT_TITLE,
    )
    width = doc.width

    story: List[Any] = [Paragraph(REPORT_TITLE, styles["title"]), Spacer(1, 4 * mm)]

    story.append(Paragraph("Module specifications", styles["section"]))
    story.append(
        _key_value_table(
            [
                ["Model", display_name],
                ["Power", _fmt(module.power, "W", 0)],
                ["Voc (STC)", _fmt(module.voc, "V", 2)],
                ["Vmp (STC)", _fmt(module.vmp, "V", 2)],
                ["Isc (STC)", _fmt(module.isc, "A", 2)],
                ["Imp (STC)", _fmt(module.imp, "A", 2)],
                ["Temp. coeff. Voc", _fmt(module.temp_coeff_voc, "%/°C", 3)],
                ["Temp. coeff. Vmp", _fmt(module.temp_coeff_vmp, "%/°C", 3)],
            ],
            width,
        )
    )

    story.append(Paragraph("Inverter specifications", styles["section"]))
    story.append(
        _key_value_table(
            [
                ["Model", inverter.name or "-"],
                ["Max. input voltage", _fmt(inverter.max_input_voltage, "V", 0)],
                [
                    "MPPT range",
                    f"{inverter.min_mppt_voltage:g} V - {inverter.max_mppt_voltage:g} V",
                ],
                ["Max. input current", _fmt(inverter.max_input_current, "A", 1)],
            ],
            width,
        )
    )

    story.append(Paragraph("Site conditions", styles["section"]))
    story.append(
        _key_value_table(
            [
                ["Min. temperature", _fmt(site.min_temp, "°C")],
                ["Max. temperature", _fmt(site.max_temp, "°C")],
            ],
            width,
        )
    )

    story.append(Paragraph("Sizing results", styles["section"]))
    story.append(
        _key_value_table(
            [
                ["Minimum modules per string", _fmt_count(result.min_modules)],
                ["Maximum modules per string", _fmt_count(result.max_modules)],
                [f"Voc max (@ {site.min_temp:g}°C)", _fmt(result.voc_max, "V")],
                [f"Vmp min (@ {site.max_temp:g}°C)", _fmt(result.vmp_min, "V")],
            ],
            width,
        )
    )
    story.append(Spacer(1, 4 * mm))

    if result.is_compatible:
        story.append(Paragraph("STATUS: COMPATIBLE", styles["ok"]))
    else:
        story.append(Paragraph("STATUS: INCOMPATIBLE", styles["bad"]))
    for message in result.warnings:
        story.append(Paragraph(f"- {message}", styles["body"]))

    table = build_string_table(module, inverter, site, result)
    if not table.empty:
        suggested = suggest_string_length(table)
        story.append(Paragraph("String layout", styles["section"]))
        if suggested is not None:
            story.append(Paragraph(f"Suggested string length: {suggested} modules", styles["body"]))
        story.append(Image(_plot_string_voltage_window(table, inverter), width=width, height=width * 0.51))
        story.append(Spacer(1, 3 * mm))
        story.append(_string_table(table, width))

    doc.build(story)
    logger.debug("Rendered report for '%s' (%d warnings)", display_name, len(result.warnings))
    return buffer.getvalue()


def generate_report(
    result: SizingResult,
    module: ModuleSpecs,
    inverter: InverterSpecs,
    site: SiteConditions,
    *,
    output_root: Path,
    display_name: str = "Custom Module",
) -> Path:
    """
    Write the PDF report to a timestamped file under ``output_root``.

    Returns:
        Path of the written PDF.
    """
    output_root = Path(output_root)
    output_root.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%y%m%d_%H%M%S")
    slug = slugify(display_name) or "string_sizing"
    path = output_root / f"{timestamp}_{slug}.pdf"
    path.write_bytes(
        render_report(result, module, inverter, site, display_name=display_name)
    )
    logger.info("Report written to %s", path)
    return path
