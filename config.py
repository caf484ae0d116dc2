"""
config.py - Runtime configuration for the grants query engine.

Values come from the process environment (optionally seeded from a `.env`
file) and can be overridden by CLI flags:

    GRANTS_DATA_DIR        directory holding the grant activity CSV exports
    GRANTEE_METADATA_FILE  JSON lookup table keyed "name|ein"
    LOG_LEVEL              DEBUG / INFO / WARNING / ERROR
    LOG_JSON               1/true/yes/on for JSON-like log lines

The keyword lists used by the international-grantee heuristic also live here,
as data, so they can be tuned without touching classification code.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from logging_config import get_logger

logger = get_logger(__name__)

try:
    load_dotenv()
except UnicodeDecodeError:
    load_dotenv(encoding="cp1252")

TRUTHY = {"1", "true", "yes", "on"}


class ClassifierKeywords(BaseModel):
    """Keyword lists for the fallback international-grantee heuristic.

    Matching is lowercase substring containment. The lists are a best-effort
    default and are expected to both over- and under-classify; the metadata
    table stays authoritative whenever it says `international: true`.
    """

    international_orgs: list[str] = Field(
        default_factory=lambda: [
            # Most grantmaking is for programs outside the US.
            "young life",
            "zinduka arise afrika mission",
            "volunteers for ukraine",
            "m3 romania",
            "united in crisis",
            "africa new life ministries international",
            "cure international",
            # Works in Zambia.
            "he touched me ministries",
            # Conduit for Canada.
            "friends of independent schools and better education (frisbe)",
            # School in Canada.
            "trinity college school fund",
            "latin american fellowship",
        ],
        description="Organization name fragments known to fund non-US work.",
    )
    non_us_address_keywords: list[str] = Field(
        default_factory=lambda: [
            "canada",
            "ontario",
            "toronto",
            "vancouver",
            "montreal",
            "mexico",
            "baja california",
            "los cabos",
            "uk",
            "united kingdom",
            "england",
            "london",
        ],
        description="Country, province and city names that mark a non-US address.",
    )
    purpose_keywords: list[str] = Field(
        default_factory=lambda: [
            "international",
            "africa",
            "kenya",
            "nairobi",
            "rwanda",
            "nigeria",
            "south africa",
            "ukraine",
            "romania",
            "eastern europe",
            "balkans",
            "latin america",
            "caribbean",
            "haiti",
            "dominican republic",
            "mexico",
            "zambia",
            "canada",
            "los cabos",
            "baja california",
            "europe",
            "asia",
            "middle east",
        ],
        description="Region/country names searched in Grant Purpose and Special Note.",
    )


DEFAULT_KEYWORDS = ClassifierKeywords()


class AppConfig(BaseModel):
    """Resolved runtime settings."""

    data_dir: str = "data"
    metadata_file: str = "grantees.json"
    log_level: str = "INFO"
    log_json: bool = False


def load_config() -> AppConfig:
    """Build an AppConfig from environment variables."""
    config = AppConfig(
        data_dir=os.getenv("GRANTS_DATA_DIR", "").strip() or "data",
        metadata_file=os.getenv("GRANTEE_METADATA_FILE", "").strip() or "grantees.json",
        log_level=os.getenv("LOG_LEVEL", "").strip().upper() or "INFO",
        log_json=os.getenv("LOG_JSON", "").strip().lower() in TRUTHY,
    )
    logger.debug(
        "config_loaded | data_dir=%s | metadata_file=%s | log_level=%s | log_json=%s",
        config.data_dir,
        config.metadata_file,
        config.log_level,
        config.log_json,
    )
    return config
