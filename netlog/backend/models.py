"""
backend/models.py

The record type shared by the parser, the ingestion loop and the store.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True, slots=True)
class FlowRecord:
    """One observed packet transfer, as extracted from a capture line."""

    source_address: str
    """Dotted four-part address, e.g. '10.0.0.1'."""

    source_port: int
    """Source port. Parsed as a non-negative integer, range not enforced."""

    destination_address: str
    """Dotted four-part address, e.g. '10.0.0.2'."""

    destination_port: int
    """Destination port."""

    byte_length: int
    """Length reported by the capture line. Always > 0."""

    observed_at: float
    """Unix epoch seconds (UTC) at which the line was ingested."""

    def to_dict(self) -> dict:
        return asdict(self)
