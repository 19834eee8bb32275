# slot_engine/domain/machine/entities/symbol.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ValueTier(Enum):
    """Payout class of a symbol, used to pick winning symbols per outcome tier."""
    HIGH = "high"
    MID = "mid"
    LOW = "low"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["ValueTier"]:
        if name is None:
            return None
        return cls(str(name).strip().lower())


@dataclass(frozen=True)
class Symbol:
    """
    A reel symbol.

    Symbols compare and hash by ``id`` only; two Symbol objects with the same
    id are the same symbol everywhere. Which other symbols a symbol accepts
    (wildcards) is not stored here but in the registry's equivalence map.
    """
    id: str
    weight: int = field(compare=False)
    value_tier: Optional[ValueTier] = field(default=None, compare=False)
    name: Optional[str] = field(default=None, compare=False)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def __repr__(self) -> str:
        return f"Symbol(id={self.id}, weight={self.weight})"
