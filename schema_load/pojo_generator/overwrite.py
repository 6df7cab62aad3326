"""Overwrite confirmation for files that already exist."""

from __future__ import annotations

import enum
import logging
from typing import Callable, Final

from ..shared import OverwriteAborted, SchemaError

logger = logging.getLogger(__name__)


class OverwriteAnswer(enum.Enum):
    """Answer to an overwrite prompt."""

    YES = "yes"
    NO = "no"
    YES_TO_ALL = "yes-to-all"
    NO_TO_ALL = "no-to-all"
    CANCEL = "cancel"


class OverwriteState(enum.Enum):
    """Overwrite handling state for one generation run."""

    ASK_EACH = "ask-each"
    FORCE_YES = "force-yes"
    FORCE_NO = "force-no"
    ABORTED = "aborted"


OverwritePolicy = Callable[[str], OverwriteAnswer]

# (next state, write the file) for every answer given in ASK_EACH
_TRANSITIONS: Final[dict[OverwriteAnswer, tuple[OverwriteState, bool]]] = {
    OverwriteAnswer.YES: (OverwriteState.ASK_EACH, True),
    OverwriteAnswer.NO: (OverwriteState.ASK_EACH, False),
    OverwriteAnswer.YES_TO_ALL: (OverwriteState.FORCE_YES, True),
    OverwriteAnswer.NO_TO_ALL: (OverwriteState.FORCE_NO, False),
    OverwriteAnswer.CANCEL: (OverwriteState.ABORTED, False),
}

_CONSOLE_ANSWERS: Final[dict[str, OverwriteAnswer]] = {
    "y": OverwriteAnswer.YES,
    "yes": OverwriteAnswer.YES,
    "n": OverwriteAnswer.NO,
    "no": OverwriteAnswer.NO,
    "a": OverwriteAnswer.YES_TO_ALL,
    "all": OverwriteAnswer.YES_TO_ALL,
    "s": OverwriteAnswer.NO_TO_ALL,
    "skip-all": OverwriteAnswer.NO_TO_ALL,
    "c": OverwriteAnswer.CANCEL,
    "cancel": OverwriteAnswer.CANCEL,
}


def overwrite_prompt(path: str) -> str:
    """Build the human-readable prompt for an existing file."""
    return f"File '{path}' already exists. Overwrite?"


def decide(
    state: OverwriteState,
    path: str,
    policy: OverwritePolicy,
) -> tuple[OverwriteState, bool]:
    """Decide whether an existing file gets overwritten.

    Args:
        state: Current run state.
        path: The existing file.
        policy: Callback consulted only in ``ASK_EACH``.

    Returns:
        The next state and whether to write the file.

    Raises:
        OverwriteAborted: If the run is (or becomes) aborted.
    """
    if state is OverwriteState.ABORTED:
        raise OverwriteAborted(path)
    if state is OverwriteState.FORCE_YES:
        return state, True
    if state is OverwriteState.FORCE_NO:
        return state, False

    answer = policy(overwrite_prompt(path))
    next_state, write = _TRANSITIONS[OverwriteAnswer(answer)]
    logger.debug("Overwrite %s: %s", path, answer)
    if next_state is OverwriteState.ABORTED:
        raise OverwriteAborted(path)
    return next_state, write


def always_yes(prompt: str) -> OverwriteAnswer:
    """Non-interactive policy: overwrite everything."""
    return OverwriteAnswer.YES_TO_ALL


def always_no(prompt: str) -> OverwriteAnswer:
    """Non-interactive policy: keep every existing file."""
    return OverwriteAnswer.NO_TO_ALL


def ask_console(prompt: str) -> OverwriteAnswer:
    """Ask on the terminal until a recognizable answer is given."""
    while True:
        try:
            raw = input(f"{prompt} [y]es/[n]o/[a]ll/[s]kip-all/[c]ancel: ")
        except EOFError as e:
            raise SchemaError(f"No answer on standard input for: {prompt}") from e
        answer = _CONSOLE_ANSWERS.get(raw.strip().lower())
        if answer is not None:
            return answer
        print(f"Unrecognized answer: {raw!r}")


POLICIES: Final[dict[str, OverwritePolicy]] = {
    "ask": ask_console,
    "yes": always_yes,
    "no": always_no,
}
