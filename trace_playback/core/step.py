"""Trace records.

A trace is the ordered, finite list of :class:`Step` records produced by a
single builder invocation.  Steps are immutable once created and carry a
JSON-serializable payload, so a trace can be handed to any renderer or
logger without further conversion.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

import pandas as pd

# Terminal kinds shared by every builder.
COMPLETE = "complete"
NO_SOLUTION = "no-solution"
STEP_LIMIT = "step-limit"
TERMINAL_KINDS = frozenset({COMPLETE, NO_SOLUTION, STEP_LIMIT})


@dataclass(frozen=True)
class Step:
    """One recorded event in a trace.

    ``source_line_ref`` points at the pseudocode line a renderer should
    highlight.  On the wire it is spelled ``sourceLineRef``.

    The payload is copied on construction and exposed as a read-only
    mapping; :meth:`to_dict` hands out a fresh copy, so editing the wire
    form never reaches the recorded step.  Steps compare by value and are
    unhashable.
    """

    kind: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    source_line_ref: int = 0
    description: str = ""

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        frozen = MappingProxyType(copy.deepcopy(dict(self.payload)))
        object.__setattr__(self, "payload", frozen)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "payload": copy.deepcopy(dict(self.payload)),
            "sourceLineRef": self.source_line_ref,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Step:
        return cls(
            kind=str(data["kind"]),
            payload=data.get("payload") or {},
            source_line_ref=int(data.get("sourceLineRef", 0)),
            description=str(data.get("description", "")),
        )


Trace = tuple[Step, ...]


def is_terminal(step: Step) -> bool:
    return step.kind in TERMINAL_KINDS


def kinds(trace: Iterable[Step]) -> list[str]:
    """Return the ``kind`` sequence of *trace*."""
    return [s.kind for s in trace]


def trace_to_json(trace: Sequence[Step], *, indent: int | None = None) -> str:
    return json.dumps([s.to_dict() for s in trace], indent=indent)


def trace_from_json(text: str) -> Trace:
    return tuple(Step.from_dict(d) for d in json.loads(text))


def trace_to_frame(trace: Sequence[Step]) -> pd.DataFrame:
    """Tabular view of a trace (one row per step, payload omitted)."""
    return pd.DataFrame(
        [
            {
                "index": i,
                "kind": s.kind,
                "sourceLineRef": s.source_line_ref,
                "description": s.description,
            }
            for i, s in enumerate(trace)
        ],
        columns=["index", "kind", "sourceLineRef", "description"],
    )
