"""Survivor selection policies for duplicate sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TextIO

from muxic.display import display_path
from muxic.resolve.grouping import DuplicateSet

SKIP_TOKEN = "s"
KEEP_ALL_TOKEN = "a"
PROMPT = "Enter number to keep (or 's' to skip, 'a' to keep all): "
INVALID_INPUT_MESSAGE = "Invalid input."


@dataclass(slots=True, frozen=True)
class ResolutionOutcome:
    """Decision for one duplicate set; keep_index None means delete nothing."""

    kind: str
    keep_index: int | None = None

    @property
    def deletes(self) -> bool:
        return self.keep_index is not None


KEEP_ALL = ResolutionOutcome(kind="keep_all")
SKIP = ResolutionOutcome(kind="skip")
INPUT_CLOSED = ResolutionOutcome(kind="input_closed")


class ResolutionPolicy(Protocol):
    """Chooses which path of a duplicate set survives."""

    def choose(self, duplicate_set: DuplicateSet) -> ResolutionOutcome: ...


def parse_choice(raw: str, candidate_count: int) -> ResolutionOutcome | None:
    """Map one line of operator input to an outcome, or None when invalid."""
    text = raw.strip()
    if text == SKIP_TOKEN:
        return SKIP
    if text == KEEP_ALL_TOKEN:
        return KEEP_ALL
    if not (text.isascii() and text.isdigit()):
        return None
    index = int(text)
    if index < 1 or index > candidate_count:
        return None
    return ResolutionOutcome(kind="keep", keep_index=index - 1)


def write_candidates(duplicate_set: DuplicateSet, out_stream: TextIO) -> None:
    """Write the numbered candidate list, one path per line."""
    for number, path in enumerate(duplicate_set.paths, start=1):
        out_stream.write(f"{number}) {display_path(path)}\n")


class AutomaticPolicy:
    """Scorched earth: always keeps the first path of the ordered set."""

    def __init__(self, out_stream: TextIO) -> None:
        self._out = out_stream

    def choose(self, duplicate_set: DuplicateSet) -> ResolutionOutcome:
        write_candidates(duplicate_set, self._out)
        self._out.write(f"Scorched Earth: keeping {display_path(duplicate_set.paths[0])}\n")
        return ResolutionOutcome(kind="keep", keep_index=0)


class InteractivePolicy:
    """Prompts on a text stream pair until a valid choice is read.

    Once the input stream is exhausted every remaining set is skipped without
    prompting again.
    """

    def __init__(self, in_stream: TextIO, out_stream: TextIO) -> None:
        self._in = in_stream
        self._out = out_stream
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def choose(self, duplicate_set: DuplicateSet) -> ResolutionOutcome:
        write_candidates(duplicate_set, self._out)
        if self._closed:
            return INPUT_CLOSED
        while True:
            self._out.write(PROMPT)
            self._out.flush()
            raw = self._in.readline()
            if raw == "":
                self._closed = True
                self._out.write("\nInput closed; skipping.\n")
                return INPUT_CLOSED
            outcome = parse_choice(raw, len(duplicate_set.paths))
            if outcome is not None:
                return outcome
            self._out.write(f"{INVALID_INPUT_MESSAGE}\n")
