"""Named runners: one entry point per algorithm.

A runner bundles a builder's input type, its default input, its validator
and its trace generator, so a caller (the Dash player, a demo, a test)
can go from a plain mapping of parameters to a trace by name.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from ..core.step import Trace
from ..core.validation import ValidationError, ValidationResult, invalid
from . import fibonacci, queens

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Runner:
    name: str
    input_type: type
    default_input: Callable[[], Any]
    validate_input: Callable[[Any], ValidationResult]
    generate_trace: Callable[[Any], Trace]

    def make_input(self, params: Mapping[str, Any]) -> Any:
        """Build the typed input from *params*, ignoring unknown keys."""
        names = {f.name for f in dataclasses.fields(self.input_type)}
        return self.input_type(**{k: v for k, v in params.items() if k in names})


RUNNERS: dict[str, Runner] = {
    "fibonacci": Runner(
        name="fibonacci",
        input_type=fibonacci.FibonacciInput,
        default_input=lambda: fibonacci.FibonacciInput(
            n=20, strategy="tabulated", detail_level=50, mode="full"),
        validate_input=fibonacci.validate_input,
        generate_trace=fibonacci.generate_trace,
    ),
    "n-queens": Runner(
        name="n-queens",
        input_type=queens.NQueensInput,
        default_input=lambda: queens.NQueensInput(
            n=8, max_solutions=1, mode="full", use_bitmask=False),
        validate_input=queens.validate_input,
        generate_trace=queens.generate_trace,
    ),
}


def validate(name: str, params: Mapping[str, Any]) -> ValidationResult:
    runner = RUNNERS[name]
    try:
        inp = runner.make_input(params)
    except TypeError as exc:
        return invalid(str(exc))
    return runner.validate_input(inp)


def build_trace(name: str, params: Mapping[str, Any]) -> Trace:
    """Validate *params* for runner *name* and generate its trace.

    Raises ``KeyError`` for an unknown runner and :class:`ValidationError`
    when the parameters are rejected; no trace is produced in that case.
    """
    runner = RUNNERS[name]
    try:
        inp = runner.make_input(params)
    except TypeError as exc:
        raise ValidationError(invalid(str(exc))) from exc
    result = runner.validate_input(inp)
    if not result.valid:
        logger.info("%s input rejected: %s", name, result.error)
        raise ValidationError(result)
    return runner.generate_trace(inp)
