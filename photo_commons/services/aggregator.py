"""
Step outcome aggregation into a WorkflowReport
"""
from typing import Mapping, Sequence
from ..contracts import (
    ExecutionHandle, ExecutionResult, Step, StepOutcome, WorkflowReport, WorkflowStatus
)


DIRECT_STRATEGY = 'direct'
MANAGED_STRATEGY = 'managed'


class ResultAggregator:
    """
    Derives the overall status of a workflow from its step outcomes

    SUCCEEDED: every required (non best-effort) step succeeded.
    FAILED: a required chain head did not succeed, or no required step succeeded.
    PARTIAL_FAILURE: anything else.

    A chain head is a required step with no dependencies that at least one
    other required step depends on.
    """

    @staticmethod
    def derive_status(steps: Sequence[Step], outcomes: Mapping[str, StepOutcome]) -> WorkflowStatus:
        required = [step for step in steps if not step.best_effort]

        def succeeded(step: Step) -> bool:
            outcome = outcomes.get(step.name)
            return outcome is not None and outcome.is_success

        if all(succeeded(step) for step in required):
            return WorkflowStatus.SUCCEEDED

        chain_heads = [
            step for step in required
            if not step.depends_on and any(step.name in other.depends_on for other in required)
        ]
        if any(not succeeded(step) for step in chain_heads):
            return WorkflowStatus.FAILED
        if not any(succeeded(step) for step in required):
            return WorkflowStatus.FAILED

        return WorkflowStatus.PARTIAL_FAILURE

    def aggregate(self, workflow: str, key: str, steps: Sequence[Step],
                  outcomes: Mapping[str, StepOutcome], strategy: str = DIRECT_STRATEGY) -> WorkflowReport:
        # Declaration order, not completion order
        ordered = {step.name: outcomes[step.name] for step in steps if step.name in outcomes}
        return WorkflowReport(
            workflow=workflow,
            key=key,
            strategy=strategy,
            status=self.derive_status(steps, outcomes),
            steps=ordered
        )

    def from_execution(self, workflow: str, key: str, handle: ExecutionHandle,
                       result: ExecutionResult) -> WorkflowReport:
        """Report for a managed execution that reached SUCCEEDED"""
        return WorkflowReport(
            workflow=workflow,
            key=key,
            strategy=MANAGED_STRATEGY,
            status=WorkflowStatus.SUCCEEDED,
            execution_arn=handle.id,
            output=result.output
        )
