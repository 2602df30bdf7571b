import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Blocks per epoch, keyed by the chain id reported by the node's status call
EPOCH_LENGTHS = {
    "betanet": 10000,
    "testnet": 43200,
    "mainnet": 43200,
}


def epoch_length_for(chain_id: str) -> Optional[int]:
    """Return the epoch length for a chain id, or None if the chain is unknown."""
    return EPOCH_LENGTHS.get(chain_id)


def production_ratio(produced: int, expected: int) -> float:
    """Blocks produced as a percentage of blocks expected.

    With no blocks expected yet (start of an epoch) the ratio is NaN, or +Inf
    if blocks were produced anyway.
    """
    if expected == 0:
        return float("inf") if produced > 0 else float("nan")
    return float(produced) / float(expected) * 100


@dataclass(frozen=True)
class Observation:
    """Result of one poll cycle.

    A success snapshot has every field populated and ``error`` set to None.
    A failure snapshot only carries ``error``; build it with ``failure()``.
    """

    latest_block_height: Optional[int] = None
    epoch_start_height: Optional[int] = None
    epoch_length: Optional[int] = None
    current_stake: Optional[int] = None
    next_stake: Optional[int] = None
    kicked_out: Optional[bool] = None
    error: Optional[Exception] = None

    @classmethod
    def failure(cls, error: Exception) -> "Observation":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def blocks_left(self) -> Optional[int]:
        """Blocks remaining until the next epoch starts."""
        if not self.ok or self.epoch_length is None:
            return None
        return self.epoch_start_height + self.epoch_length - self.latest_block_height
