import json

import pytest
from pydantic import ValidationError

from praxis.core.errors import EngineBusyError, PraxisError
from praxis.core.protocol import PROTOCOL_VERSION, Diagnostic, Event, Fact, State, StepResult


def test_fact_requires_non_empty_tag() -> None:
    with pytest.raises(ValidationError):
        Fact(tag="")
    with pytest.raises(ValidationError):
        Event.model_validate({"payload": {"x": 1}})


def test_state_serialises_to_camel_case_and_back() -> None:
    state = State(context={"count": 1}, facts=[Fact(tag="Counted", payload={"n": 1})], meta={"step": 3})
    payload = state.to_payload()

    assert payload["protocolVersion"] == PROTOCOL_VERSION
    assert payload["facts"] == [{"tag": "Counted", "payload": {"n": 1}}]
    assert State.model_validate(json.loads(json.dumps(payload))) == state


def test_models_accept_snake_case_and_reject_unknown_fields() -> None:
    diagnostic = Diagnostic.model_validate({"kind": "rule-error", "message": "boom", "rule_id": "r1"})
    assert diagnostic.rule_id == "r1"
    assert diagnostic.to_payload()["ruleId"] == "r1"

    with pytest.raises(ValidationError):
        Fact.model_validate({"tag": "A", "unexpected": True})


def test_state_digest_is_stable_for_equal_states() -> None:
    first = State(context={"b": 2, "a": 1})
    second = State(context={"a": 1, "b": 2})
    assert first.digest() == second.digest()
    assert first.digest() != State(context={"a": 1}).digest()


def test_diagnostic_factories_set_kind_and_source() -> None:
    rule_error = Diagnostic.rule_error("r1", "exploded", error="RuntimeError")
    assert rule_error.kind == "rule-error"
    assert rule_error.severity == "error"
    assert rule_error.source_id == "r1"
    assert rule_error.data == {"error": "RuntimeError"}

    crashed = Diagnostic.constraint_error("c1", "raised")
    assert crashed.kind == "rule-error"
    assert crashed.constraint_id == "c1"

    violation = Diagnostic.constraint_violation("c2", "too big", "warning")
    assert violation.kind == "constraint-violation"
    assert violation.severity == "warning"
    assert violation.data is None


def test_step_result_splits_errors_and_warnings() -> None:
    result = StepResult(
        state=State(),
        diagnostics=[
            Diagnostic.constraint_violation("c1", "soft", "warning"),
            Diagnostic.rule_error("r1", "hard"),
        ],
    )
    assert [d.source_id for d in result.errors()] == ["r1"]
    assert [d.source_id for d in result.warnings()] == ["c1"]
    assert result.ok is False
    assert StepResult(state=State()).ok is True


def test_errors_carry_structured_details() -> None:
    error = EngineBusyError("step")
    assert isinstance(error, PraxisError)
    assert isinstance(error, RuntimeError)
    assert error.code == "ERR_ENGINE_BUSY"
    assert "step" in error.details.message
