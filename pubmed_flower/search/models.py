"""Shared data models for E-utilities responses."""

from typing import Optional

from pydantic import BaseModel, Field


class LinkSet(BaseModel):
    """First LinkSetDb of an ELink neighbor_score response, as received.

    ``ids`` and ``scores`` are kept as separate lists so that callers can
    check that NCBI returned one score per linked PMID.
    """

    link_name: str
    ids: list[str] = Field(default_factory=list)
    scores: list[int] = Field(default_factory=list)


class ArticleSet(BaseModel):
    """Parallel per-article fields from one EFetch call, in response order."""

    pmids: list[Optional[str]] = Field(default_factory=list)
    titles: list[Optional[str]] = Field(default_factory=list)
    abstracts: list[Optional[str]] = Field(default_factory=list)
    pub_dates: list[Optional[str]] = Field(default_factory=list)
    references: list[list[str]] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.pmids)
