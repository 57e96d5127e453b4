"""
Query Refinement
================

The validation-and-refinement loop, and the pipeline that runs it once per
repairable category.

One refinement call moves through these states::

    CHECKING -> PASS                                   -> success
             -> NEEDS_REPAIR -> REPAIRING -> CHECKING  -> ...
             -> NEEDS_REPAIR (budget spent)            -> fallback

It always returns a concrete query: the validated one or the fallback.
"""

import inspect
from typing import AsyncIterator, Optional

import structlog

from sql_assistant.errors import RepairInvocationError
from sql_assistant.fallback import DEFAULT_FALLBACK_LIMIT, fallback_query
from sql_assistant.models import (
    PipelineResult,
    RefinementAttempt,
    RefinementResult,
    ValidationOutcome,
)
from sql_assistant.normalizer import DEFAULT_ROW_LIMIT, normalize_query
from sql_assistant.repair import QueryRepairer
from sql_assistant.validators.base import Validator
from sql_assistant.validators.policy import ReadOnlyValidator
from sql_assistant.validators.prechecks import default_prechecks

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


async def run_validator(
    validator: Validator, query: str, schema: Optional[str] = None
) -> ValidationOutcome:
    """Run a validator, awaiting it when it is engine-backed."""
    outcome = validator.validate(query, schema)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome


class QueryRefiner:
    """
    Runs one refinement call: pre-checks, then a single validator, repairing
    on failure until the query passes or the attempt budget is spent.

    The budget is shared between the pre-checks and the validator within a
    call; every call starts with a fresh one.
    """

    def __init__(
        self,
        repairer: QueryRepairer,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        prechecks: Optional[list[Validator]] = None,
        row_limit: int = DEFAULT_ROW_LIMIT,
        fallback_limit: int = DEFAULT_FALLBACK_LIMIT,
    ) -> None:
        """
        Initialize the refiner.

        Args:
            repairer: Wraps the language model used for corrections
            max_attempts: Maximum repair calls per refinement call
            prechecks: Text checks run before the validator (defaults to
                       table-name quoting and null handling)
            row_limit: Row ceiling appended by the normalizer
            fallback_limit: LIMIT used by the fallback query
        """
        if max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        self.repairer = repairer
        self.max_attempts = max_attempts
        self.prechecks = default_prechecks() if prechecks is None else prechecks
        self.row_limit = row_limit
        self.fallback_limit = fallback_limit

    def normalize(self, query: str) -> str:
        return normalize_query(query, self.row_limit)

    async def _repair(self, query: str, diagnostic: str, schema: Optional[str], log) -> str:
        """Request a repair; a failed call leaves the query unchanged."""
        try:
            repaired = await self.repairer.repair(query, diagnostic, schema)
        except RepairInvocationError as e:
            log.warning("repair_failed", error=str(e))
            return query
        return self.normalize(repaired)

    async def _failing_precheck(
        self, query: str, schema: Optional[str]
    ) -> Optional[tuple[Validator, ValidationOutcome]]:
        for check in self.prechecks:
            outcome = await run_validator(check, query, schema)
            if not outcome.valid:
                return check, outcome
        return None

    async def refine(
        self,
        query: str,
        validator: Validator,
        table_name: str,
        schema: Optional[str] = None,
        max_attempts: Optional[int] = None,
    ) -> RefinementResult:
        """
        Validate the query, repairing it until it passes or the budget runs out.

        Args:
            query: Candidate query
            validator: The check this call is responsible for
            table_name: Target table, used for the fallback query
            schema: Schema description passed to the validator and the repairer
            max_attempts: Overrides the refiner's budget for this call

        Returns:
            RefinementResult holding the validated query, or the fallback
            query with ``used_fallback`` set and the last failing outcome
        """
        budget = self.max_attempts if max_attempts is None else max_attempts
        log = logger.bind(category=validator.category.value, table=table_name)
        attempts: list[RefinementAttempt] = []
        repair_calls = 0

        current = self.normalize(query)

        # Pre-checks share the budget. Once it is spent the validator decides.
        while repair_calls < budget:
            failed = await self._failing_precheck(current, schema)
            if failed is None:
                break
            check, outcome = failed
            attempts.append(RefinementAttempt(current, outcome, len(attempts), check.category))
            log.info("precheck_failed", check=check.name, diagnostic=outcome.diagnostic)
            current = await self._repair(current, outcome.diagnostic, schema, log)
            repair_calls += 1

        while True:
            outcome = await run_validator(validator, current, schema)
            attempts.append(
                RefinementAttempt(current, outcome, len(attempts), validator.category)
            )

            if outcome.valid:
                if outcome.is_warning:
                    log.info("validation_warning", diagnostic=outcome.diagnostic)
                return RefinementResult(
                    final_query=current,
                    outcome=outcome,
                    used_fallback=False,
                    category=validator.category,
                    repair_calls=repair_calls,
                    attempts=attempts,
                )

            log.info("validation_failed", attempt=repair_calls, diagnostic=outcome.diagnostic)

            if repair_calls >= budget:
                substitute = fallback_query(table_name, self.fallback_limit)
                log.warning("fallback_substituted", repair_calls=repair_calls, query=substitute)
                return RefinementResult(
                    final_query=substitute,
                    outcome=outcome,
                    used_fallback=True,
                    category=validator.category,
                    repair_calls=repair_calls,
                    attempts=attempts,
                )

            current = await self._repair(current, outcome.diagnostic, schema, log)
            repair_calls += 1


class RefinementPipeline:
    """
    Read-only gate followed by one refinement call per repairable category.

    Each category gets a fresh budget and starts from the query the previous
    category produced. A read-only violation is never repaired: the fallback
    query is substituted and no further category runs.
    """

    def __init__(
        self,
        refiner: QueryRefiner,
        validators: list[Validator],
        policy: Optional[Validator] = None,
    ) -> None:
        """
        Args:
            refiner: Runs each refinement call
            validators: Repairable validators in evaluation order
            policy: Read-only gate (defaults to ReadOnlyValidator)
        """
        self.refiner = refiner
        self.validators = validators
        self.policy = policy or ReadOnlyValidator()

    def _policy_fallback(
        self, query: str, outcome: ValidationOutcome, table_name: str
    ) -> RefinementResult:
        return RefinementResult(
            final_query=fallback_query(table_name, self.refiner.fallback_limit),
            outcome=outcome,
            used_fallback=True,
            category=self.policy.category,
            attempts=[RefinementAttempt(query, outcome, 0, self.policy.category)],
        )

    async def iter_steps(
        self, query: str, table_name: str, schema: Optional[str] = None
    ) -> AsyncIterator[RefinementResult]:
        """Yield the result of each step as soon as it completes."""
        current = self.refiner.normalize(query)

        outcome = await run_validator(self.policy, current, schema)
        if not outcome.valid:
            logger.warning("policy_violation", table=table_name, diagnostic=outcome.diagnostic)
            yield self._policy_fallback(current, outcome, table_name)
            return

        for validator in self.validators:
            result = await self.refiner.refine(current, validator, table_name, schema)
            current = result.final_query
            yield result

        # Repaired queries pass the read-only gate again
        outcome = await run_validator(self.policy, current, schema)
        if not outcome.valid:
            logger.warning("policy_violation_after_repair", table=table_name,
                           diagnostic=outcome.diagnostic)
            yield self._policy_fallback(current, outcome, table_name)

    async def run(
        self, query: str, table_name: str, schema: Optional[str] = None
    ) -> PipelineResult:
        result = PipelineResult(initial_query=query, final_query=query)
        async for step in self.iter_steps(query, table_name, schema):
            result.record(step)
        return result
