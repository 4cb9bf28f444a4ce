"""Export convenience function."""

import logging
from pathlib import Path

from pubmed_flower.core.citation import Citation
from pubmed_flower.exporters.graph_export import export_graph_json, export_related_csv

logger = logging.getLogger(__name__)

DATA_ROOT = Path("data")


def export_all(citation: Citation, output_dir: str | Path | None = None) -> dict:
    """Run all exports for one query citation and return dict of file paths created."""
    if output_dir is None:
        output_dir = DATA_ROOT / (citation.pmid or "not_found") / "exports"

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    # to_json() clears pmid when NCBI has no record; fix the stem first.
    stem = citation.pmid or "not_found"
    paths = {}

    graph_path = str(out / f"{stem}_graph.json")
    export_graph_json(citation, graph_path)
    paths["graph_json"] = graph_path

    related_path = str(out / f"{stem}_related.csv")
    export_related_csv(citation, related_path)
    paths["related_csv"] = related_path

    logger.info("All exports written to %s", out)
    return paths
