import pytest

from console_bridge.payload import (
    NoArgs,
    RawArgs,
    StructuredArgs,
    arguments_for,
    classify_payload,
    extract_arguments,
)


@pytest.mark.parametrize(
    "payload",
    [
        {"cli": "--dry-run"},
        {"cli": "migrate --force", "other": 1},
        {"cli": ""},
        {"cli": "say 'hello world'"},
    ],
)
def test_mapping_with_string_cli_field_returns_it(payload: dict) -> None:
    assert extract_arguments(payload) == payload["cli"]


@pytest.mark.parametrize("payload", ["--bad", "", "a b  c", "{\"cli\": \"x\"}"])
def test_plain_string_is_passed_through(payload: str) -> None:
    assert extract_arguments(payload) == payload


@pytest.mark.parametrize(
    "payload",
    [
        None,
        42,
        3.5,
        True,
        False,
        ["--dry-run"],
        {},
        {"args": "--dry-run"},
        {"cli": 7},
        {"cli": ["--dry-run"]},
        {"cli": None},
        {"nested": {"cli": "--dry-run"}},
    ],
)
def test_other_shapes_degrade_to_no_arguments(payload: object) -> None:
    assert extract_arguments(payload) == ""


def test_classify_payload_tags_each_shape() -> None:
    assert classify_payload({"cli": "x"}) == StructuredArgs(fields={"cli": "x"})
    assert classify_payload("x") == RawArgs(text="x")
    assert classify_payload(None) == NoArgs()
    assert classify_payload(1) == NoArgs()


def test_arguments_for_is_total_over_variants() -> None:
    assert arguments_for(StructuredArgs(fields={"cli": "--a"})) == "--a"
    assert arguments_for(StructuredArgs(fields={})) == ""
    assert arguments_for(RawArgs(text="--b")) == "--b"
    assert arguments_for(NoArgs()) == ""


def test_extraction_is_idempotent_and_leaves_payload_untouched() -> None:
    payload = {"cli": "--dry-run", "extra": [1, 2]}
    snapshot = {"cli": "--dry-run", "extra": [1, 2]}

    first = extract_arguments(payload)
    second = extract_arguments(payload)

    assert first == second == "--dry-run"
    assert payload == snapshot
