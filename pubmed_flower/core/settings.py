"""Entrez settings: YAML loader and Pydantic model."""

from pathlib import Path
from typing import Optional

import yaml
from Bio import Entrez
from pydantic import BaseModel, Field, field_validator, model_validator

from pubmed_flower.search import eutils

_DEFAULT_DELAY = 0.34  # seconds between requests (NCBI < 3 req/s)
_API_KEY_DELAY = 0.1  # NCBI allows 10 req/s with an API key


# ── Settings Model ───────────────────────────────────────────────────


class EntrezSettings(BaseModel):
    """Identity and throttling parameters for NCBI E-utilities."""

    email: str
    api_key: Optional[str] = None
    tool: str = "pubmed_flower"
    rate_limit_delay: Optional[float] = Field(
        default=None, gt=0, description="Seconds to sleep before each request"
    )
    max_retries: int = Field(default=3, ge=1, le=10)

    @field_validator("email")
    @classmethod
    def looks_like_email(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError(f"{v!r} is not an email address")
        return v

    @model_validator(mode="after")
    def default_delay(self) -> "EntrezSettings":
        if self.rate_limit_delay is None:
            self.rate_limit_delay = _API_KEY_DELAY if self.api_key else _DEFAULT_DELAY
        return self


# ── Loading ──────────────────────────────────────────────────────────


def load_settings(path: str | Path) -> EntrezSettings:
    """Load Entrez settings from a YAML file and return a validated model."""
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return EntrezSettings.model_validate(raw.get("entrez", raw))


def configure_entrez(settings: EntrezSettings) -> None:
    """Apply settings to Bio.Entrez and the E-utilities request loop."""
    Entrez.email = settings.email
    Entrez.tool = settings.tool
    if settings.api_key:
        Entrez.api_key = settings.api_key
    eutils.set_request_policy(
        delay=settings.rate_limit_delay, max_retries=settings.max_retries
    )
