"""Enumeration types for the tip jar backend."""

from enum import Enum


class AnalyticsSource(str, Enum):
    """Provenance of an analytics report."""

    DATABASE = "database"
    ONCHAIN = "onchain"
    HYBRID = "hybrid"


class VerificationOutcome(str, Enum):
    """What happened when a submitted transaction was checked on-chain."""

    VERIFIED = "verified"
    FAILED = "failed"
    NOT_FOUND = "not_found"  # Indexer lag right after broadcast
    UNAVAILABLE = "unavailable"
    SKIPPED = "skipped"
