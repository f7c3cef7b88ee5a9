from __future__ import annotations

import pytest

from remote_browser_session.errors import InvalidInstructionError
from remote_browser_session.instructions import coerce_method, parse_command, parse_instruction
from remote_browser_session.models import (
    ActionMethod,
    ClickInstruction,
    ExtractInstruction,
    NavigateInstruction,
    ObserveInstruction,
    TypeInstruction,
    WaitInstruction,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("GOTO", ActionMethod.NAVIGATE),
        ("navigate", ActionMethod.NAVIGATE),
        ("NAVBACK", ActionMethod.NAVIGATE_BACK),
        ("navigate-back", ActionMethod.NAVIGATE_BACK),
        ("extract", ActionMethod.EXTRACT),
        (ActionMethod.CLOSE, ActionMethod.CLOSE),
    ],
)
def test_coerce_method_accepts_keywords_and_names(value, expected) -> None:
    assert coerce_method(value) is expected


def test_coerce_method_rejects_unknown_method() -> None:
    with pytest.raises(InvalidInstructionError) as exc_info:
        coerce_method("SCROLL")
    assert exc_info.value.method == "SCROLL"


def test_requires_instruction_flags() -> None:
    assert ActionMethod.NAVIGATE.requires_instruction
    assert ActionMethod.WAIT.requires_instruction
    assert not ActionMethod.SCREENSHOT.requires_instruction
    assert not ActionMethod.NAVIGATE_BACK.requires_instruction
    assert not ActionMethod.CLOSE.requires_instruction


def test_parse_navigate() -> None:
    payload = parse_instruction(ActionMethod.NAVIGATE, "https://example.com/path?q=1")
    assert payload == NavigateInstruction(url="https://example.com/path?q=1")


def test_parse_navigate_accepts_keyword_prefix() -> None:
    payload = parse_instruction("GOTO", "GOTO https://example.com")
    assert payload == NavigateInstruction(url="https://example.com")


def test_parse_navigate_accepts_hostless_schemes() -> None:
    assert parse_instruction(ActionMethod.NAVIGATE, "about:blank") == NavigateInstruction(
        url="about:blank"
    )


@pytest.mark.parametrize("url", ["example.com", "/relative/path", "mailto"])
def test_parse_navigate_rejects_relative_urls(url: str) -> None:
    with pytest.raises(InvalidInstructionError):
        parse_instruction(ActionMethod.NAVIGATE, url)


def test_parse_act_click_keeps_selector_spaces() -> None:
    payload = parse_instruction(ActionMethod.ACT, "click button.primary > span")
    assert payload == ClickInstruction(selector="button.primary > span")


def test_parse_act_type_joins_remaining_text() -> None:
    payload = parse_instruction(ActionMethod.ACT, "type #search hello  wide world")
    assert payload == TypeInstruction(selector="#search", text="hello  wide world")


def test_parse_act_type_keeps_trailing_whitespace() -> None:
    payload = parse_instruction(ActionMethod.ACT, "ACT type #q hello ")
    assert payload == TypeInstruction(selector="#q", text="hello ")


def test_parse_act_type_without_text_clears_field() -> None:
    payload = parse_instruction(ActionMethod.ACT, "ACT type #search")
    assert payload == TypeInstruction(selector="#search", text="")


@pytest.mark.parametrize("instruction", ["hover #menu", "click", "type", "click   "])
def test_parse_act_rejects_unknown_or_incomplete_verbs(instruction: str) -> None:
    with pytest.raises(InvalidInstructionError) as exc_info:
        parse_instruction(ActionMethod.ACT, instruction)
    assert exc_info.value.method == "ACT"


def test_parse_extract_and_observe_use_whole_instruction() -> None:
    assert parse_instruction(ActionMethod.EXTRACT, "div.title h1") == ExtractInstruction(
        selector="div.title h1"
    )
    assert parse_instruction(ActionMethod.OBSERVE, " #results ") == ObserveInstruction(
        selector="#results"
    )


def test_extract_and_observe_keep_selectors_named_like_the_method() -> None:
    assert parse_instruction(ActionMethod.EXTRACT, "extract > span") == ExtractInstruction(
        selector="extract > span"
    )
    assert parse_instruction(ActionMethod.OBSERVE, "OBSERVE") == ObserveInstruction(
        selector="OBSERVE"
    )


def test_parse_wait_accepts_keyword_prefix() -> None:
    assert parse_instruction(ActionMethod.WAIT, "WAIT 250") == WaitInstruction(milliseconds=250)


def test_parse_wait() -> None:
    assert parse_instruction(ActionMethod.WAIT, "500") == WaitInstruction(milliseconds=500)
    assert parse_instruction(ActionMethod.WAIT, "0") == WaitInstruction(milliseconds=0)


@pytest.mark.parametrize("value", ["-5", "1.5", "soon", "²"])
def test_parse_wait_rejects_non_integers(value: str) -> None:
    with pytest.raises(InvalidInstructionError):
        parse_instruction(ActionMethod.WAIT, value)


def test_parse_wait_enforces_limit() -> None:
    with pytest.raises(InvalidInstructionError):
        parse_instruction(ActionMethod.WAIT, "5000", max_wait_ms=1000)


@pytest.mark.parametrize(
    "method",
    [
        ActionMethod.NAVIGATE,
        ActionMethod.ACT,
        ActionMethod.EXTRACT,
        ActionMethod.OBSERVE,
        ActionMethod.WAIT,
    ],
)
@pytest.mark.parametrize("instruction", [None, "", "   "])
def test_missing_instruction_is_rejected(method: ActionMethod, instruction) -> None:
    with pytest.raises(InvalidInstructionError):
        parse_instruction(method, instruction)


def test_methods_without_payload_ignore_instruction() -> None:
    assert parse_instruction(ActionMethod.SCREENSHOT, "ignored") is None
    assert parse_instruction(ActionMethod.NAVIGATE_BACK, None) is None
    assert parse_instruction(ActionMethod.CLOSE, "now") is None


def test_parse_command_splits_method_and_instruction() -> None:
    assert parse_command("GOTO https://example.com") == (
        ActionMethod.NAVIGATE,
        "https://example.com",
    )
    assert parse_command("  ACT type #q hello world ") == (
        ActionMethod.ACT,
        "type #q hello world",
    )
    assert parse_command("SCREENSHOT") == (ActionMethod.SCREENSHOT, None)


def test_parse_command_rejects_blank_and_unknown() -> None:
    with pytest.raises(InvalidInstructionError):
        parse_command("   ")
    with pytest.raises(InvalidInstructionError):
        parse_command("SCROLL 100")
