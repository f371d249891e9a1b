"""Domain entities."""

from src.domain.entities.candidate import Candidate
from src.domain.entities.session import Session


__all__ = ["Candidate", "Session"]
