"""
Edge resolution primitives shared by the navigator and the validator.
"""

from collections.abc import Iterable, MutableMapping

from diastology.config.logging_config import get_logger
from diastology.models.node_models import WILDCARD, AnswerRemap, DecisionNode

logger = get_logger(__name__)


def resolve_next(node: DecisionNode, value: str) -> str | None:
    """
    Successor of a decision node for an answer value.

    A specific entry wins over the wildcard. Returns None when neither
    matches.
    """
    if value in node.next_nodes:
        return node.next_nodes[value]
    return node.next_nodes.get(WILDCARD)


def apply_remaps(
    remaps: Iterable[AnswerRemap],
    answers: MutableMapping[str, str],
) -> dict[str, str | None]:
    """
    Apply a remap table to ``answers`` in place.

    Rows whose source is unanswered, or whose value is missing from the
    row's translation table, are skipped.

    Returns:
        The previous value of every slot that was written, ``None`` for
        slots that did not exist. Only the first write to a slot is
        recorded so the mapping restores the pre-remap answer set.
    """
    overwritten: dict[str, str | None] = {}

    for remap in remaps:
        value = answers.get(remap.source)
        if value is None:
            continue
        if remap.values is not None:
            value = remap.values.get(value)
            if value is None:
                continue

        if remap.target not in overwritten:
            overwritten[remap.target] = answers.get(remap.target)
        answers[remap.target] = value
        logger.debug("Answer remapped", source=remap.source, target=remap.target, value=value)

    return overwritten


def restore_answers(answers: MutableMapping[str, str], overwritten: dict[str, str | None]) -> None:
    """Undo writes recorded by ``apply_remaps`` or a decision step."""
    for slot, previous in overwritten.items():
        if previous is None:
            answers.pop(slot, None)
        else:
            answers[slot] = previous
