from __future__ import annotations

import io

from muxic.resolve import AutomaticPolicy, DuplicateSet, InteractivePolicy, parse_choice

DUPLICATES = DuplicateSet(signature="abcdef0123", paths=("a/b.mp3", "a/bb.mp3", "a/bbb.mp3"))


def test_parse_choice_accepts_indices_and_tokens() -> None:
    assert parse_choice("1\n", 3).keep_index == 0
    assert parse_choice("  3 ", 3).keep_index == 2
    assert parse_choice("s", 3).kind == "skip"
    assert parse_choice("a", 3).kind == "keep_all"
    assert parse_choice("s", 3).keep_index is None
    assert parse_choice("a", 3).keep_index is None


def test_parse_choice_rejects_invalid_input() -> None:
    for raw in ("0", "4", "-1", "S", "A", "skip", "", "1.5", "x"):
        assert parse_choice(raw, 3) is None, raw


def test_automatic_policy_keeps_first_path() -> None:
    out = io.StringIO()

    outcome = AutomaticPolicy(out).choose(DUPLICATES)

    assert outcome.keep_index == 0
    assert out.getvalue() == (
        "1) a/b.mp3\n2) a/bb.mp3\n3) a/bbb.mp3\nScorched Earth: keeping a/b.mp3\n"
    )


def test_interactive_policy_reprompts_until_valid() -> None:
    in_stream = io.StringIO("9\nnope\n2\n")
    out = io.StringIO()

    outcome = InteractivePolicy(in_stream, out).choose(DUPLICATES)

    assert outcome.keep_index == 1
    text = out.getvalue()
    assert text.startswith("1) a/b.mp3\n2) a/bb.mp3\n3) a/bbb.mp3\n")
    assert text.count("Enter number to keep (or 's' to skip, 'a' to keep all): ") == 3
    assert text.count("Invalid input.") == 2


def test_interactive_skip_and_keep_all_delete_nothing() -> None:
    policy = InteractivePolicy(io.StringIO("s\na\n"), io.StringIO())

    assert policy.choose(DUPLICATES).deletes is False
    assert policy.choose(DUPLICATES).deletes is False


def test_closed_input_skips_current_and_remaining_sets() -> None:
    out = io.StringIO()
    policy = InteractivePolicy(io.StringIO(""), out)

    first = policy.choose(DUPLICATES)
    second = policy.choose(DUPLICATES)

    assert first.kind == "input_closed"
    assert second.kind == "input_closed"
    assert policy.closed is True
    assert out.getvalue().count("Enter number to keep") == 1
