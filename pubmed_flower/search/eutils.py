"""NCBI E-utilities client (ELink, EFetch) using Biopython's Entrez module."""

import logging
import time
from urllib.error import HTTPError

from Bio import Entrez

from pubmed_flower.search.models import ArticleSet, LinkSet

logger = logging.getLogger(__name__)

Entrez.email = "pubmed.flower@example.org"
Entrez.tool = "pubmed_flower"

_rate_limit_delay = 0.34  # seconds between requests (NCBI < 3 req/s)
_max_retries = 3


class RecordNotFoundError(LookupError):
    """EFetch found no PubMed record for the requested PMID(s)."""


def set_request_policy(delay: float, max_retries: int) -> None:
    """Change the per-request delay and retry budget."""
    global _rate_limit_delay, _max_retries
    _rate_limit_delay = delay
    _max_retries = max_retries


# ── Public API ───────────────────────────────────────────────────────


def elink(pmid: str) -> LinkSet | None:
    """Return the scored pubmed_pubmed neighbors of a PMID.

    Returns None when NCBI reports no LinkSetDb at all, which happens both
    for unknown PMIDs and for records without related citations.
    """
    logger.info("ELink neighbor_score for PMID %s", pmid)
    try:
        handle = _entrez_call(
            Entrez.elink,
            dbfrom="pubmed",
            db="pubmed",
            id=pmid,
            cmd="neighbor_score",
        )
    except HTTPError as exc:
        if 400 <= exc.code < 500:
            logger.warning("ELink rejected PMID %s (HTTP %d)", pmid, exc.code)
            return None
        raise
    record = Entrez.read(handle)
    handle.close()

    if not record:
        return None
    linkset_dbs = record[0].get("LinkSetDb") or []
    if not linkset_dbs:
        logger.info("No related citations for PMID %s", pmid)
        return None

    linkset = parse_linkset(linkset_dbs[0])
    logger.info("ELink returned %d related PMIDs for %s", len(linkset.ids), pmid)
    return linkset


def efetch(*pmids: str) -> ArticleSet:
    """Fetch PubMed XML records and return their fields in request order.

    Raises RecordNotFoundError if NCBI rejects the request or returns no
    articles.
    """
    if not pmids:
        raise RecordNotFoundError("efetch requires at least one PMID")

    try:
        handle = _entrez_call(
            Entrez.efetch,
            db="pubmed",
            id=",".join(pmids),
            retmode="xml",
        )
    except HTTPError as exc:
        if 400 <= exc.code < 500:
            raise RecordNotFoundError(
                f"No PubMed record for {', '.join(pmids)} (HTTP {exc.code})"
            ) from exc
        raise
    records = Entrez.read(handle)
    handle.close()

    articles = parse_articles(records)
    if len(articles) == 0:
        raise RecordNotFoundError(f"No PubMed record for {', '.join(pmids)}")

    logger.info("EFetch returned %d/%d records", len(articles), len(pmids))
    return align_articles(articles, list(pmids))


# ── Entrez Wrapper with Retry ────────────────────────────────────────


def _entrez_call(func, **kwargs):
    """Call an Entrez function with retries and rate limiting.

    Client errors (HTTP 4xx) are raised immediately.
    """
    for attempt in range(1, _max_retries + 1):
        try:
            time.sleep(_rate_limit_delay)
            return func(**kwargs)
        except HTTPError as exc:
            if 400 <= exc.code < 500 or attempt == _max_retries:
                raise
            _log_retry(attempt, exc)
        except OSError as exc:
            if attempt == _max_retries:
                raise
            _log_retry(attempt, exc)


def _log_retry(attempt: int, exc: Exception) -> None:
    wait = 2**attempt
    logger.warning(
        "Entrez call failed (attempt %d/%d): %s, retrying in %ds",
        attempt,
        _max_retries,
        exc,
        wait,
    )
    time.sleep(wait)


# ── Record Parsers ───────────────────────────────────────────────────


def parse_linkset(linkset_db: dict) -> LinkSet:
    """Convert one parsed LinkSetDb element into a LinkSet."""
    links = linkset_db.get("Link", [])
    return LinkSet(
        link_name=str(linkset_db.get("LinkName", "")),
        ids=[str(link["Id"]) for link in links],
        scores=[int(link["Score"]) for link in links if "Score" in link],
    )


def parse_articles(records: dict) -> ArticleSet:
    """Convert a parsed PubmedArticleSet into parallel field lists."""
    articles = ArticleSet()
    for rec in records.get("PubmedArticle", []):
        medline = rec.get("MedlineCitation", {})
        article = medline.get("Article", {})
        pmid = medline.get("PMID")
        articles.pmids.append(str(pmid) if pmid is not None else None)
        articles.titles.append(_text_or_none(article.get("ArticleTitle")))
        articles.abstracts.append(_abstract(article.get("Abstract")))
        journal_issue = article.get("Journal", {}).get("JournalIssue", {})
        articles.pub_dates.append(_pub_date(journal_issue.get("PubDate")))
        articles.references.append(_references(rec.get("PubmedData", {})))

    # Book chapters (NCBI Bookshelf) carry the same fields at the top level.
    for rec in records.get("PubmedBookArticle", []):
        book_doc = rec.get("BookDocument", {})
        pmid = book_doc.get("PMID")
        title = book_doc.get("ArticleTitle") or book_doc.get("Book", {}).get("BookTitle")
        articles.pmids.append(str(pmid) if pmid is not None else None)
        articles.titles.append(_text_or_none(title))
        articles.abstracts.append(_abstract(book_doc.get("Abstract")))
        articles.pub_dates.append(_pub_date(book_doc.get("Book", {}).get("PubDate")))
        articles.references.append(_references(rec.get("PubmedBookData", {})))

    return articles


def align_articles(articles: ArticleSet, pmids: list[str]) -> ArticleSet:
    """Reorder an ArticleSet to match the requested PMIDs.

    EFetch does not promise to answer in request order, and it splits
    journal articles and book chapters into separate lists. PMIDs with no
    record get None fields and an empty reference list.
    """
    by_pmid = {pmid: i for i, pmid in enumerate(articles.pmids) if pmid is not None}
    missing = [pmid for pmid in pmids if pmid not in by_pmid]
    if missing:
        logger.warning("EFetch returned no record for %d PMIDs: %s",
                       len(missing), ", ".join(missing))

    aligned = ArticleSet()
    for pmid in pmids:
        i = by_pmid.get(pmid)
        aligned.pmids.append(pmid)
        aligned.titles.append(articles.titles[i] if i is not None else None)
        aligned.abstracts.append(articles.abstracts[i] if i is not None else None)
        aligned.pub_dates.append(articles.pub_dates[i] if i is not None else None)
        aligned.references.append(articles.references[i] if i is not None else [])
    return aligned


# ── Field Helpers ────────────────────────────────────────────────────


def _text_or_none(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _abstract(abstract: dict | None) -> str | None:
    """Join AbstractText sections; labelled sections keep their label."""
    if not abstract:
        return None
    parts = []
    for section in abstract.get("AbstractText", []):
        text = str(section).strip()
        if not text:
            continue
        label = getattr(section, "attributes", {}).get("Label")
        parts.append(f"{label}: {text}" if label else text)
    return " ".join(parts) or None


def _pub_date(pub_date: dict | None) -> str | None:
    """Format a PubDate as 'YYYY Mon DD', or fall back to MedlineDate."""
    if not pub_date:
        return None
    if "MedlineDate" in pub_date:
        return _text_or_none(pub_date["MedlineDate"])
    parts = [str(pub_date[key]) for key in ("Year", "Month", "Day") if key in pub_date]
    return " ".join(parts) or None


def _references(pubmed_data: dict) -> list[str]:
    """PMIDs cited by a record, from its ReferenceList."""
    pmids: list[str] = []
    for ref_list in pubmed_data.get("ReferenceList", []):
        for ref in ref_list.get("Reference", []):
            for article_id in ref.get("ArticleIdList", []):
                id_type = getattr(article_id, "attributes", {}).get("IdType")
                if id_type == "pubmed":
                    pmids.append(str(article_id).strip())
    return pmids
