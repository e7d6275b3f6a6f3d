"""
Adaptive operator selection with the UCB1 bandit.
"""

import logging
import math
from typing import Dict, Hashable, List, Sequence

from .solvers.operators import ALL_OPERATORS


logger = logging.getLogger(__name__)


class UCB1Selector:
    """
    Picks the operator maximising ``mean_reward + c * sqrt(ln t / n_i)``.

    Untried operators score infinity so each one is pulled once before scores
    are compared. ``select`` only advances the global counter ``t``; the
    operator's own pull count moves in ``update``.
    """

    def __init__(self, operators: Sequence[Hashable] = None, exploration_constant: float = 2.0):
        self.operators: List[Hashable] = list(operators) if operators is not None else list(ALL_OPERATORS)
        if not self.operators:
            raise ValueError("UCB1Selector needs at least one operator")
        self.exploration_constant = exploration_constant
        self._index = {}
        for i, op in enumerate(self.operators):
            # Enum members hash by name, so their string values need their own keys.
            self._index.setdefault(getattr(op, "value", op), i)
            self._index[op] = i
        self.pulls: List[int] = [0] * len(self.operators)
        self.reward_sums: List[float] = [0.0] * len(self.operators)
        self.total_selections = 0

    @property
    def num_operators(self) -> int:
        return len(self.operators)

    def scores(self) -> List[float]:
        t = max(self.total_selections, 1)
        out = []
        for n_i, s_i in zip(self.pulls, self.reward_sums):
            if n_i == 0:
                out.append(math.inf)
            else:
                out.append(s_i / n_i + self.exploration_constant * math.sqrt(math.log(t) / n_i))
        return out

    def select(self) -> Hashable:
        self.total_selections += 1
        scores = self.scores()
        best_idx = 0
        for i in range(1, len(scores)):
            if scores[i] > scores[best_idx]:
                best_idx = i
        return self.operators[best_idx]

    def update(self, op: Hashable, reward: float) -> None:
        try:
            idx = self._index.get(op)
        except TypeError:
            idx = None
        if idx is None:
            logger.warning("Ignoring stats update for unknown operator: %r", op)
            return
        self.pulls[idx] += 1
        self.reward_sums[idx] += max(0.0, float(reward))

    def stats(self) -> Dict[str, Dict[str, float]]:
        out = {}
        for op, n_i, s_i in zip(self.operators, self.pulls, self.reward_sums):
            key = getattr(op, "value", str(op))
            out[key] = {"pulls": n_i, "reward_sum": s_i, "mean_reward": s_i / n_i if n_i else 0.0}
        return out
