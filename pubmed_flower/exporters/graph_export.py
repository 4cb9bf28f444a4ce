"""Citation graph exports: JSON for the flower view, CSV for the neighbor table."""

import csv
import logging
from pathlib import Path

from pubmed_flower.core.citation import Citation

logger = logging.getLogger(__name__)

CSV_HEADERS = ["rank", "pmid", "score", "normalized_score", "pub_date", "title"]


# ── JSON Export ──────────────────────────────────────────────────────


def export_graph_json(citation: Citation, output_path: str | Path) -> None:
    """Write the node/link graph of a citation as UTF-8 JSON."""
    graph = citation.to_json()
    Path(output_path).write_text(graph, encoding="utf-8")
    logger.info("Graph JSON exported to %s", output_path)


# ── CSV Export ───────────────────────────────────────────────────────


def _build_related_rows(citation: Citation) -> list[list]:
    """One row per related citation, in graph (link target) order."""
    rows = []
    for rank, related in enumerate(citation.normalize(), start=1):
        rows.append([
            rank,
            related.pmid,
            related.score,
            round(related.normalized_score, 6),
            related.pub_date or "",
            related.title or "",
        ])
    return rows


def export_related_csv(citation: Citation, output_path: str | Path) -> None:
    """Export the related citations of a citation as CSV."""
    rows = _build_related_rows(citation)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADERS)
        writer.writerows(rows)

    logger.info("Related citations CSV exported to %s (%d rows)", output_path, len(rows))
