"""Domain models for user credentials."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class UserCredential:
    """Stored name/password pair, established on first use."""

    name: str
    password: str


class Verdict(Enum):
    """Outcome of a credential check."""

    MATCH = "match"
    MISMATCH = "mismatch"
    REGISTERED = "registered"
    REJECTED = "rejected"
