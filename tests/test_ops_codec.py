"""Tool argument coercion for the MCP surface."""

from __future__ import annotations

import inspect

import pytest

from pgmisc.lib.ops.codec import coerce_input_payload, signature_from_dataclass, unwrap_optional
from pgmisc.lib.ops.signal import SignalBatchInput, SignalSendInput
from pgmisc.lib.ops.timeline import TimelineInput


def test_coerce_signal_send_arguments() -> None:
    payload = coerce_input_payload(SignalSendInput, {"pid": "4242", "signum": 15})

    assert payload == SignalSendInput(pid=4242, signum=15, data_dir=None)


def test_coerce_batch_pids_to_tuple() -> None:
    payload = coerce_input_payload(SignalBatchInput, {"signum": 1, "pids": [1, "2", 3]})

    assert payload.pids == (1, 2, 3)


def test_missing_optional_fields_use_defaults() -> None:
    assert coerce_input_payload(TimelineInput, None) == TimelineInput()
    assert coerce_input_payload(SignalBatchInput, {"signum": 1}).pids == ()


def test_missing_required_field_is_rejected() -> None:
    with pytest.raises(TypeError, match="Missing required field 'signum'"):
        coerce_input_payload(SignalSendInput, {"pid": 1})


def test_boolean_is_not_an_integer() -> None:
    with pytest.raises(TypeError, match="boolean"):
        coerce_input_payload(SignalSendInput, {"pid": True, "signum": 15})


def test_non_mapping_input_is_rejected() -> None:
    with pytest.raises(TypeError, match="must be an object"):
        coerce_input_payload(SignalSendInput, [4242, 15])


def test_unwrap_optional() -> None:
    assert unwrap_optional(int | None) is int
    assert unwrap_optional(str) is str
    assert unwrap_optional(int | str) == int | str


def test_signature_mirrors_payload_fields() -> None:
    signature = signature_from_dataclass(SignalSendInput)

    assert list(signature.parameters) == ["pid", "signum", "data_dir"]
    assert signature.parameters["pid"].default is inspect.Parameter.empty
    assert signature.parameters["data_dir"].default is None
    assert all(
        parameter.kind is inspect.Parameter.KEYWORD_ONLY
        for parameter in signature.parameters.values()
    )
