"""Cosmic reading models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReadingKind(str, Enum):
    ASTROLOGY = "Astrology"
    NUMEROLOGY = "Numerology"


@dataclass
class CosmicReading:
    """Narrative text plus an optional companion artwork as a data URI."""
    text: str
    image_url: Optional[str] = None
