"""Facts and events that bring contract gaps into the engine's own model.

Validation results become ``ContractMissing`` / ``ContractValidated``
facts, and an ``ACKNOWLEDGE_CONTRACT_GAP`` event lets a team accept a gap
for a while without it being reported as outstanding.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Union

from pydantic import Field

from ..core.protocol import Event, Fact, ProtocolModel
from ..dsl import define_event, define_fact, define_module, define_rule
from ..rules.descriptors import PraxisModule
from .contracts import ContractGap, GapSeverity, MissingArtifact
from .validation import Clock, ValidationReport, utc_now

ACKNOWLEDGEMENT_RULE_ID = "decision-ledger.acknowledge-gap"


class ContractMissingPayload(ProtocolModel):
    rule_id: str
    missing: List[MissingArtifact]
    severity: GapSeverity
    message: Optional[str] = None


class ContractValidatedPayload(ProtocolModel):
    rule_id: str
    version: str
    timestamp: str


class ContractGapAcknowledgedPayload(ProtocolModel):
    rule_id: str
    missing: List[MissingArtifact]
    justification: str
    acknowledged_at: str
    expires_at: Optional[str] = None


class AcknowledgeContractGapPayload(ProtocolModel):
    rule_id: str
    missing: List[MissingArtifact] = Field(..., min_length=1)
    justification: str = Field(..., min_length=1)
    expires_at: Optional[str] = None


class ValidateContractsPayload(ProtocolModel):
    strict: Optional[bool] = None


class ContractAddedPayload(ProtocolModel):
    rule_id: str
    version: str


class ContractUpdatedPayload(ProtocolModel):
    rule_id: str
    previous_version: str
    new_version: str


ContractMissing = define_fact("ContractMissing", ContractMissingPayload)
ContractValidated = define_fact("ContractValidated", ContractValidatedPayload)
ContractGapAcknowledged = define_fact("ContractGapAcknowledged", ContractGapAcknowledgedPayload)

AcknowledgeContractGap = define_event("ACKNOWLEDGE_CONTRACT_GAP", AcknowledgeContractGapPayload)
ValidateContracts = define_event("VALIDATE_CONTRACTS", ValidateContractsPayload)
ContractAdded = define_event("CONTRACT_ADDED", ContractAddedPayload)
ContractUpdated = define_event("CONTRACT_UPDATED", ContractUpdatedPayload)


def gaps_to_facts(source: Union[ValidationReport, Iterable[ContractGap]]) -> List[Fact]:
    """One ``ContractMissing`` fact per incomplete rule or constraint."""

    gaps = source.incomplete if isinstance(source, ValidationReport) else source
    return [
        ContractMissing.create(
            rule_id=gap.rule_id,
            missing=list(gap.missing),
            severity=gap.severity,
            message=gap.message,
        )
        for gap in gaps
    ]


def validated_facts(report: ValidationReport) -> List[Fact]:
    return [
        ContractValidated.create(
            rule_id=entry.rule_id,
            version=entry.contract.version or "1.0.0",
            timestamp=report.timestamp,
        )
        for entry in report.complete
    ]


def acknowledgement_module(clock: Clock = utc_now) -> PraxisModule:
    """Module whose rule records every gap acknowledgement as a fact."""

    def acknowledge(state, events: Sequence[Event]) -> List[Fact]:
        facts = []
        for event in events:
            if not AcknowledgeContractGap.is_(event):
                continue
            request = AcknowledgeContractGap.parse(event)
            facts.append(
                ContractGapAcknowledged.create(
                    rule_id=request.rule_id,
                    missing=request.missing,
                    justification=request.justification,
                    acknowledged_at=clock().isoformat(),
                    expires_at=request.expires_at,
                )
            )
        return facts

    return define_module(
        rules=[
            define_rule(
                ACKNOWLEDGEMENT_RULE_ID,
                "Record acknowledged contract gaps",
                acknowledge,
                meta={"triggers": [ContractGapAcknowledged.tag]},
            )
        ],
        meta={"name": "decision-ledger"},
    )


def outstanding_gaps(
    gaps: Iterable[ContractGap],
    facts: Iterable[Fact],
    now: Optional[datetime] = None,
) -> List[ContractGap]:
    """Return the gaps not covered by an unexpired acknowledgement.

    An acknowledgement covers a gap when it names the same rule and every
    missing field of the gap.
    """

    now = _as_utc(now or utc_now())
    acknowledgements = [ContractGapAcknowledged.parse(fact) for fact in facts if ContractGapAcknowledged.is_(fact)]
    live = [ack for ack in acknowledgements if ack.expires_at is None or _parse_time(ack.expires_at) > now]
    return [
        gap
        for gap in gaps
        if not any(ack.rule_id == gap.rule_id and set(gap.missing) <= set(ack.missing) for ack in live)
    ]


def _parse_time(value: str) -> datetime:
    return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def _as_utc(moment: datetime) -> datetime:
    # Naive datetimes are taken to be UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


__all__ = [
    "ACKNOWLEDGEMENT_RULE_ID",
    "AcknowledgeContractGap",
    "ContractAdded",
    "ContractGapAcknowledged",
    "ContractMissing",
    "ContractUpdated",
    "ContractValidated",
    "ValidateContracts",
    "acknowledgement_module",
    "gaps_to_facts",
    "outstanding_gaps",
    "validated_facts",
]
