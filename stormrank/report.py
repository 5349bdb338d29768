from __future__ import annotations

"""
stormrank report generator
--------------------------
Bar charts of the top event classes and a DOCX report around them.

Design goals:
- Keep the core usable without report dependencies (lazy imports).
- Charts show only the ranked top-N; empty rankings get a "no data" note
  instead of an empty axis.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple
import os
import tempfile
import structlog

from .normalizer import NormalizationStats

log = structlog.get_logger(__name__)

Ranking = Sequence[Tuple[str, float]]

METRIC_LABELS = {
    "casualties": ("Casualties (fatalities + injuries)", "People"),
    "damage": ("Economic damage (property + crop)", "US$ (billions)"),
}


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str = "Storm Data"
    institutional_author: str = "U.S. National Oceanic and Atmospheric Administration (NOAA)"
    website: str = "https://www.ncdc.noaa.gov/stormevents/"
    file_name: Optional[str] = None


@dataclass
class ReportConfig:
    title: str = "Severe Weather Impact Report"
    subtitle: str = "Event classes most harmful to health and economy"
    citation: DatasetCitation = field(default_factory=DatasetCitation)
    top_n: int = 5


# -----------------------------
# Charts
# -----------------------------

def _import_pyplot():
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install it with: python -m pip install matplotlib"
        ) from e
    return plt


def bar_chart(ranking: Ranking, metric: str, out_path: str, top_n: int = 5) -> str:
    """Save a bar chart of one ranking as PNG and return its path."""
    plt = _import_pyplot()
    title, ylabel = METRIC_LABELS[metric]
    labels = [k for k, _ in ranking]
    values = [float(v) for _, v in ranking]
    if metric == "damage":
        values = [v / 1e9 for v in values]

    plt.figure()
    if labels:
        plt.bar(labels, values, color="C0" if metric == "casualties" else "C1")
        plt.xticks(rotation=30, ha="right")
    else:
        plt.text(0.5, 0.5, "No data", ha="center", va="center")
        plt.xticks([])
    plt.title(f"Top {top_n} event classes: {title}")
    plt.ylabel(ylabel)
    plt.tight_layout()
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    plt.savefig(out_path, dpi=150)
    plt.close()
    log.info("wrote chart", metric=metric, path=out_path)
    return out_path


def save_charts(rankings: Dict[str, Ranking], out_dir: str, top_n: int = 5) -> Dict[str, str]:
    """One PNG per metric in `out_dir`; returns metric -> path."""
    return {
        metric: bar_chart(ranking, metric, os.path.join(out_dir, f"top_{metric}.png"), top_n=top_n)
        for metric, ranking in rankings.items()
    }


def format_value(metric: str, value: float) -> str:
    if metric == "damage":
        return f"${value:,.0f}"
    return f"{int(value):,}"


# -----------------------------
# DOCX report
# -----------------------------

def generate_docx_report(
    rankings: Dict[str, Ranking],
    out_path: str,
    *,
    stats: Optional[NormalizationStats] = None,
    config: Optional[ReportConfig] = None,
) -> str:
    """Write a DOCX report with both ranked tables and their charts."""
    config = config or ReportConfig()

    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    with tempfile.TemporaryDirectory(prefix="stormrank_report_") as tmpdir:
        charts = save_charts(rankings, tmpdir, top_n=config.top_n)

        doc = Document()
        style = doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)

        def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
            p = doc.add_paragraph()
            r = p.add_run(text)
            r.bold = bold
            r.italic = italic
            r.font.size = Pt(size)
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER

        def _kv(key: str, value: str) -> None:
            p = doc.add_paragraph()
            r = p.add_run(f"{key}: ")
            r.bold = True
            p.add_run(value)

        _center_title(config.title, 22, bold=True)
        _center_title(config.subtitle, 12, italic=True)

        cit = config.citation
        doc.add_paragraph("")
        _kv("Dataset", f"{cit.database_name}, {cit.institutional_author} ({cit.website})")
        if cit.file_name:
            _kv("Data file", cit.file_name)

        if stats is not None:
            doc.add_heading("Data processing", level=1)
            doc.add_paragraph(
                "Rows with no casualties and no damage were dropped, as were rows whose damage "
                "scale code marks the magnitude as unknown (+, - or ?). Free-text event types were "
                "mapped onto the 48 NWS event classes; unmatched labels are grouped as \"Other\"."
            )
            t = doc.add_table(rows=1, cols=2)
            t.rows[0].cells[0].text = "Step"
            t.rows[0].cells[1].text = "Rows"
            for k, v in [
                ("Rows read", stats.seen),
                ("Dropped: no impact", stats.dropped_zero),
                ("Dropped: unknown magnitude", stats.dropped_sentinel),
                ("Rows aggregated", stats.kept),
            ]:
                row = t.add_row().cells
                row[0].text = k
                row[1].text = f"{v:,}"

        for metric, ranking in rankings.items():
            title, _ = METRIC_LABELS[metric]
            doc.add_paragraph("")
            doc.add_heading(title, level=1)
            if not ranking:
                doc.add_paragraph("No records contributed to this ranking.")
                continue
            t = doc.add_table(rows=1, cols=3)
            h = t.rows[0].cells
            h[0].text = "Rank"
            h[1].text = "Event class"
            h[2].text = title
            for i, (event_class, value) in enumerate(ranking, start=1):
                r = t.add_row().cells
                r[0].text = str(i)
                r[1].text = event_class
                r[2].text = format_value(metric, value)
            doc.add_paragraph("")
            doc.add_picture(charts[metric], width=Inches(6.0))
            leader, value = ranking[0]
            doc.add_paragraph(
                f"{leader} ranks first with {format_value(metric, value)}."
            )

        # -----------------------------
        # Reproducibility footer
        # -----------------------------
        doc.add_paragraph("")
        doc.add_heading("Reproducibility footer", level=1)
        from . import __version__ as stormrank_version
        from datetime import datetime as _dt
        doc.add_paragraph(f"stormrank version: {stormrank_version}")
        doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")

        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        doc.save(out_path)
    log.info("wrote report", path=out_path)
    return out_path
