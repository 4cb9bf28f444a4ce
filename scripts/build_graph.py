#!/usr/bin/env python3
"""Build the PubMed Flower graph for one PMID."""

import argparse
import logging
import sys
import time
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from pubmed_flower.core.citation import Citation, UpstreamContractError
from pubmed_flower.core.settings import configure_entrez, load_settings
from pubmed_flower.exporters import export_all

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("flower")

DEFAULT_CONFIG = PROJECT_ROOT / "config" / "entrez.yaml"


# ── Graph Build ──────────────────────────────────────────────────────


def build_graph(
    pmid: str,
    config_path: str | Path = DEFAULT_CONFIG,
    output_dir: str | None = None,
    to_stdout: bool = False,
) -> int:
    """Fetch, normalize and export the graph. Returns a process exit code."""
    t_start = time.time()

    settings = load_settings(config_path)
    configure_entrez(settings)
    logger.info("Entrez configured for %s (%.2fs between requests)",
                settings.email, settings.rate_limit_delay)

    try:
        citation = Citation(pmid)
    except (TypeError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    query_pmid = citation.pmid
    try:
        if to_stdout:
            print(citation.to_json())
        else:
            paths = export_all(citation, output_dir)
            for name, path in paths.items():
                logger.info("  %s: %s", name, path)
    except UpstreamContractError as exc:
        logger.error("Unexpected E-utilities response: %s", exc, exc_info=True)
        return 1

    if citation.pmid is None:
        logger.warning("PMID %s has no PubMed record; graph has no query metadata",
                       query_pmid)

    elapsed = time.time() - t_start
    logger.info("Graph for PMID %s built in %.1fs (%d related citations)",
                query_pmid, elapsed, len(citation.related_citations()))
    return 0


# ── CLI ──────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(description="Build a PubMed Flower citation graph")
    parser.add_argument("--pmid", required=True, help="PubMed ID of the query citation")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG),
        help="Path to Entrez settings YAML file",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for exports (default: data/<pmid>/exports)",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the graph JSON instead of writing export files",
    )
    args = parser.parse_args()

    sys.exit(build_graph(args.pmid, args.config, args.output_dir, args.stdout))


if __name__ == "__main__":
    main()
