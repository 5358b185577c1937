"""
Deterministic draw source for world generation and discovery rolls.

Every random value in the engine comes from a single ``DrawSource``: a seed
plus a monotonically increasing counter.  Each draw reads the first output
of numpy's counter-based Philox generator keyed by the seed and positioned at
the current counter, then advances the counter by exactly one.  The same
seed and the same call order therefore always reproduce the same values,
and two sources never share state.

Labels do not influence the value; they are carried into the roll log so
that luck analysis can attribute every draw.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np


@dataclass
class RngRoll:
    """Audit record for a single probability roll."""

    label: str
    probability: float
    result: bool
    rng_counter: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "probability": self.probability,
            "result": self.result,
            "rng_counter": self.rng_counter,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RngRoll:
        return cls(
            label=d["label"],
            probability=d["probability"],
            result=d["result"],
            rng_counter=d["rng_counter"],
        )


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (towards +inf)."""
    return int(math.floor(value + 0.5))


def seed_to_key(seed: int | str) -> int:
    """Map an int or string seed onto a 64-bit Philox key."""
    digest = hashlib.blake2b(str(seed).encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "little")


class DrawSource:
    """Seeded, counter-addressed source of floats in [0, 1).

    Attributes:
        seed: The seed this source was created with.
        counter: Index of the next draw.  Advanced once per draw.
    """

    def __init__(self, seed: int | str, counter: int = 0) -> None:
        if counter < 0:
            raise ValueError(f"Draw counter must be non-negative, got {counter}")
        self.seed = seed
        self.counter = counter
        self._key = seed_to_key(seed)

    def value_at(self, counter: int) -> float:
        """Return the value stored at *counter* without advancing."""
        bit_generator = np.random.Philox(key=self._key, counter=counter)
        return float(np.random.Generator(bit_generator).random())

    # ---- Draws (each advances the counter by one) ----

    def draw(self, label: str = "") -> float:
        """Return the next float in [0, 1)."""
        value = self.value_at(self.counter)
        self.counter += 1
        return value

    def uniform(self, low: float, high: float, label: str = "") -> float:
        """Return the next float scaled into [low, high)."""
        return low + self.draw(label) * (high - low)

    def index(self, n: int, label: str = "") -> int:
        """Return a uniform integer in [0, n)."""
        if n <= 0:
            raise ValueError(f"Cannot pick an index from {n} candidates")
        return min(n - 1, int(math.floor(self.uniform(0, n, label))))

    def weighted(self, weights: Sequence[float], label: str = "") -> int:
        """Pick an index from a discrete distribution by cumulative threshold.

        The last bucket absorbs any floating-point shortfall in the weights.
        """
        value = self.draw(label)
        cumulative = 0.0
        for i, weight in enumerate(weights[:-1]):
            cumulative += weight
            if value < cumulative:
                return i
        return len(weights) - 1

    def roll(
        self,
        probability: float,
        label: str,
        rolls: list[RngRoll] | None = None,
    ) -> bool:
        """Succeed with *probability*; append an audit record to *rolls*."""
        counter_before = self.counter
        result = self.draw(label) < probability
        if rolls is not None:
            rolls.append(RngRoll(
                label=label,
                probability=probability,
                result=result,
                rng_counter=counter_before,
            ))
        return result

    def shuffled(self, items: Sequence[Any], label: str) -> list[Any]:
        """Fisher-Yates shuffle; one draw per swap position."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.index(i + 1, f"{label}_{i}")
            result[i], result[j] = result[j], result[i]
        return result

    # ---- Serialization ----

    def to_dict(self) -> dict[str, Any]:
        return {"seed": self.seed, "counter": self.counter}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DrawSource:
        return cls(seed=d["seed"], counter=d.get("counter", 0))
