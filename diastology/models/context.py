"""
Session context handed to evaluator functions.

Evaluators see the whole accumulated answer set, including answers that
were recorded in other sub-flows, through this explicit read-only object.
The engine applies remaps before constructing it, so evaluators never
write to the session themselves.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

UNAVAILABLE = "unavailable"
DEFAULT_POSITIVE = frozenset({"positive"})
DEFAULT_NEGATIVE = frozenset({"negative"})


@dataclass(frozen=True)
class ParameterTally:
    """
    Positive/negative/unavailable counts over a fixed parameter pool.

    An unavailable answer is excluded from both the positive and the
    negative tallies but still shrinks the pool, so a four-parameter vote
    with one unavailable answer is decided as a three-parameter vote.
    Parameters that were never answered are reported as ``missing`` and
    do not shrink the pool.
    """
    expected: int
    positive: int
    negative: int
    unavailable: int
    missing: int

    @property
    def available(self) -> int:
        """Pool size after removing unavailable answers."""
        return self.expected - self.unavailable

    @property
    def answered_available(self) -> int:
        """Answered parameters that were not unavailable."""
        return self.expected - self.unavailable - self.missing


def tally_values(
    values: Mapping[str, str | None],
    positive: Iterable[str] = DEFAULT_POSITIVE,
    negative: Iterable[str] = DEFAULT_NEGATIVE,
) -> ParameterTally:
    """Count answers in ``values``; ``None`` marks an unanswered parameter."""
    positive = frozenset(positive)
    negative = frozenset(negative)
    counts = {"positive": 0, "negative": 0, "unavailable": 0, "missing": 0}

    for answer in values.values():
        if answer is None:
            counts["missing"] += 1
        elif answer in positive:
            counts["positive"] += 1
        elif answer in negative:
            counts["negative"] += 1
        elif answer == UNAVAILABLE:
            counts["unavailable"] += 1

    return ParameterTally(expected=len(values), **counts)


class SessionContext(Mapping[str, str]):
    """Read-only view of one session's answer set."""

    __slots__ = ("algorithm_id", "_answers")

    def __init__(self, algorithm_id: str, answers: Mapping[str, str]):
        self.algorithm_id = algorithm_id
        self._answers = MappingProxyType(dict(answers))

    def __getitem__(self, node_id: str) -> str:
        return self._answers[node_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    def __repr__(self) -> str:
        return f"SessionContext(algorithm_id={self.algorithm_id!r}, answers={dict(self._answers)!r})"

    def tally(
        self,
        parameters: Iterable[str],
        positive: Iterable[str] = DEFAULT_POSITIVE,
        negative: Iterable[str] = DEFAULT_NEGATIVE,
    ) -> ParameterTally:
        """Tally the answers recorded for ``parameters``."""
        return tally_values(
            {node_id: self._answers.get(node_id) for node_id in parameters},
            positive=positive,
            negative=negative,
        )
