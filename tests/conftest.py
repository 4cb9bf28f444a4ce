"""Shared fixtures: an in-memory stand-in for NCBI E-utilities."""

from unittest.mock import MagicMock, patch

import pytest

from pubmed_flower.search import eutils
from pubmed_flower.search.models import ArticleSet, LinkSet

QUERY_PMID = "17284678"

PMIDS = [QUERY_PMID, "9997", "10230393", "17002604", "18307536"]
SCORES = [91473426, 41305463, 38977544, 37051126, 35688713]
TITLES = [
    "Tomato yellow leaf curl virus infection in tomato.",
    "Begomovirus movement in the phloem.",
    "Whitefly transmission of geminiviruses.",
    "Resistance genes against TYLCV.",
    "Host range of tomato begomoviruses.",
]
ABSTRACTS = [
    "We describe infection dynamics of TYLCV.",
    "Movement proteins were tracked in phloem cells.",
    "Bemisia tabaci transmits begomoviruses persistently.",
    "Ty-1 and Ty-3 confer tolerance to TYLCV.",
    "Twelve solanaceous hosts were surveyed.",
]
PUB_DATES = ["2007 Feb", "1997 Dec 12", "1999 Jun", "2006 Oct", "2008 Mar"]
REFERENCES = [["9997", "10230393", "12345"], [], [], ["9997"], []]


class FakeEutils:
    """Catalog-backed elink/efetch with call recording."""

    def __init__(self):
        self.catalog = {
            pmid: (title, abstract, pub_date, refs)
            for pmid, title, abstract, pub_date, refs in zip(
                PMIDS, TITLES, ABSTRACTS, PUB_DATES, REFERENCES
            )
        }
        self.linksets: dict[str, LinkSet] = {
            QUERY_PMID: LinkSet(link_name="pubmed_pubmed", ids=list(PMIDS), scores=list(SCORES)),
        }
        self.elink = MagicMock(side_effect=self._elink)
        self.efetch = MagicMock(side_effect=self._efetch)

    def add_neighbors(self, pmid: str, neighbors: list[str], scores: list[int]) -> None:
        """Register a linkset and give every neighbor a catalog entry."""
        self.linksets[pmid] = LinkSet(link_name="pubmed_pubmed", ids=neighbors, scores=scores)
        for n in neighbors:
            self.catalog.setdefault(n, (f"Title {n}", f"Abstract {n}", "2010", []))

    def _elink(self, pmid):
        return self.linksets.get(pmid)

    def _efetch(self, *pmids):
        known = [p for p in pmids if p in self.catalog]
        if not known:
            raise eutils.RecordNotFoundError(f"No PubMed record for {', '.join(pmids)}")
        articles = ArticleSet()
        for pmid in pmids:
            title, abstract, pub_date, refs = self.catalog.get(pmid, (None, None, None, []))
            articles.pmids.append(pmid)
            articles.titles.append(title)
            articles.abstracts.append(abstract)
            articles.pub_dates.append(pub_date)
            articles.references.append(list(refs))
        return articles


@pytest.fixture()
def fake_eutils():
    """Patch the E-utilities client used by Citation."""
    fake = FakeEutils()
    with patch.object(eutils, "elink", fake.elink), patch.object(eutils, "efetch", fake.efetch):
        yield fake
