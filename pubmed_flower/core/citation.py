"""Citation: one PubMed record and its one-hop related-citation graph."""

import json
import logging
import re
from typing import Optional

from pubmed_flower.search import eutils
from pubmed_flower.search.models import LinkSet

logger = logging.getLogger(__name__)

RELATED_LINK_NAME = "pubmed_pubmed"

_PMID_RE = re.compile(r"^[0-9]+$")


class UpstreamContractError(RuntimeError):
    """NCBI returned data in a shape the graph cannot be built from."""


class Citation:
    """A PubMed citation that lazily discovers its related citations.

    Call ``get_info`` only for the citation the user asked about; related
    citations are populated in bulk by ``related_citations``.
    """

    def __init__(self, pmid: str):
        if not isinstance(pmid, str):
            raise TypeError("Citation requires a String")

        pmid = pmid.strip()
        if not _PMID_RE.match(pmid):
            raise ValueError(f"{pmid} is not a proper PMID")

        self.pmid: Optional[str] = pmid
        self.score: Optional[int] = 0
        self.normalized_score: float = 0
        self.title: Optional[str] = None
        self.abstract: Optional[str] = None
        self.pub_date: Optional[str] = None
        self.references: Optional[list[str]] = None
        self._related_citations: Optional[list["Citation"]] = None

    def __repr__(self) -> str:
        return f"Citation(pmid={self.pmid!r}, score={self.score!r})"

    # ── Metadata ─────────────────────────────────────────────────

    def get_info(self) -> None:
        """Fetch title, abstract, pub_date and references (one EFetch).

        A PMID unknown to NCBI leaves the citation with every field None.
        """
        if self.pmid is None:
            return

        try:
            articles = eutils.efetch(self.pmid)
        except eutils.RecordNotFoundError as exc:
            logger.warning("PMID %s not found in PubMed: %s", self.pmid, exc)
            self._mark_not_found()
            return

        self.title = articles.titles[0]
        self.abstract = articles.abstracts[0]
        self.pub_date = articles.pub_dates[0]
        self.references = articles.references[0]

    def _mark_not_found(self) -> None:
        self.pmid = None
        self.score = None
        self.title = None
        self.abstract = None
        self.pub_date = None
        self.references = None

    # ── Related Citations ────────────────────────────────────────

    def related_citations(self) -> list["Citation"]:
        """Related citations, fetched on first call and cached after.

        Every call returns the same list object.
        """
        if self._related_citations is None:
            self._related_citations = self._fetch_related_citations()
        return self._related_citations

    def _fetch_related_citations(self) -> list["Citation"]:
        # pmid is None once get_info found no matching record
        if self.pmid is None:
            return []

        linkset = eutils.elink(self.pmid)
        if linkset is None:
            return []

        if linkset.link_name != RELATED_LINK_NAME:
            raise UpstreamContractError(
                f"Got link name {linkset.link_name!r} for PMID {self.pmid}, "
                f"expected {RELATED_LINK_NAME!r}"
            )

        citations = _linked_citations(linkset)
        if len(citations) != len(linkset.scores):
            raise UpstreamContractError(
                f"ELink for PMID {self.pmid} returned {len(citations)} PMIDs "
                f"but {len(linkset.scores)} scores"
            )
        if not citations:
            return []

        return _populate(citations, linkset.scores)

    # ── Scores ───────────────────────────────────────────────────

    def normalize(self) -> list["Citation"]:
        """Rescale related-citation scores to (0, 1] by the maximum score.

        Mutates the cached related citations in place and returns them. A
        related citation whose record went missing (score None) counts as 0.
        """
        citations = self.related_citations()
        if not citations:
            return citations

        max_score = max(citation.score or 0 for citation in citations)
        if max_score == 0:
            logger.warning("All related scores for PMID %s are 0", self.pmid)
            for citation in citations:
                citation.normalized_score = 0.0
            return citations

        for citation in citations:
            citation.normalized_score = (citation.score or 0) / float(max_score)
        return citations

    # ── Export ───────────────────────────────────────────────────

    def to_json(self) -> str:
        """Serialize the query node and its related citations as a graph.

        The query node is nodes[0]; each link joins it to one related node.
        """
        citations = self.related_citations()
        self.normalize()

        if self.abstract is None:
            self.get_info()

        nodes = [{"PMID": self.pmid, "abstract": self.abstract, "title": self.title}]
        links = []
        for i, citation in enumerate(citations):
            nodes.append({"PMID": citation.pmid})
            links.append({"source": 0, "target": i + 1, "value": citation.normalized_score})

        return json.dumps(
            {"nodes": nodes, "links": links},
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )


# ── Helpers ──────────────────────────────────────────────────────────


def _linked_citations(linkset: LinkSet) -> list[Citation]:
    return [Citation(pmid) for pmid in linkset.ids]


def _populate(citations: list[Citation], scores: list[int]) -> list[Citation]:
    """Attach scores and one bulk EFetch worth of metadata, by position."""
    articles = eutils.efetch(*[citation.pmid for citation in citations])
    logger.info("Populating %d related citations", len(citations))

    for citation, score, title, abstract, pub_date in zip(
        citations, scores, articles.titles, articles.abstracts, articles.pub_dates
    ):
        citation.score = score
        citation.title = title
        citation.abstract = abstract
        citation.pub_date = pub_date
    return citations
