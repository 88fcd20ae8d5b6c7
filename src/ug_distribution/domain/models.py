"""Domain models for ug_distribution — pure dataclasses, no SQLAlchemy dependency.

``releases.distribution`` is stored as the literal "standard" or a sorted,
deduplicated, comma-joined list of purchased product types. Inside the
service it is only ever handled as a token set (``Distribution``); the comma
string exists at the storage boundary.
"""

from collections.abc import Iterable
from dataclasses import dataclass

STANDARD = "standard"


@dataclass(frozen=True)
class Distribution:
    tokens: frozenset[str] = frozenset()

    @classmethod
    def parse(cls, raw: str | None) -> "Distribution":
        """'standard' / None / '' -> empty; 'yahoo, enhanced,yahoo' -> {enhanced, yahoo}."""
        if not raw:
            return cls()
        tokens = {part.strip() for part in raw.split(",")}
        tokens.discard("")
        tokens.discard(STANDARD)
        return cls(frozenset(tokens))

    def serialize(self) -> str:
        if not self.tokens:
            return STANDARD
        return ",".join(sorted(self.tokens))

    def merge(self, product_types: Iterable[str]) -> "Distribution":
        return Distribution(self.tokens | frozenset(product_types))

    def __contains__(self, product_type: object) -> bool:
        return product_type in self.tokens

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def is_standard(self) -> bool:
        return not self.tokens


@dataclass
class Release:
    id: int
    uuid: str
    user_id: int
    company_id: int | None
    title: str | None = None
    distribution_raw: str | None = None  # column value as stored, None = never chosen

    @property
    def distribution(self) -> Distribution:
        return Distribution.parse(self.distribution_raw)

    @property
    def has_distribution(self) -> bool:
        """False until the user buys an upgrade or explicitly skips."""
        return bool(self.distribution_raw)
