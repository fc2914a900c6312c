"""
Upload/delete workflow orchestration

One ActionRequest moves through
Authenticating -> Authorizing -> Dispatching -> (managed | direct) -> Aggregating
and ends as an OrchestrationResult. Validation and auth failures end early
(Rejected) without touching any worker.
"""
from concurrent.futures import ThreadPoolExecutor, FIRST_COMPLETED, wait
from typing import Dict, List, Mapping, Optional
from ..config import config
from ..constants import ErrorMessages, ExecutionStatus, HTTPConstants
from ..contracts import (
    ActionKind, ActionRequest, Identity, OrchestrationResult, Step, StepOutcome, WorkflowReport
)
from ..exceptions import ManagedExecutionError
from ..logger import orchestrator_logger as logger
from .aggregator import ResultAggregator, DIRECT_STRATEGY
from .workflows import build_envelope, build_steps, default_worker_functions


OWNERSHIP_CONFLICT = 'OWNERSHIP_CONFLICT'


class WorkflowOrchestrator:
    """
    Runs one user action against the worker functions

    Args:
        authenticator: TokenAuthenticator
        ownership_verifier: OwnershipVerifier, consulted before any per-key work
        invoker: WorkerInvoker used by the direct path
        poller: ExecutionPoller used by the managed path
        aggregator: ResultAggregator
        state_machine_arns: ActionKind -> state machine ARN; a missing or empty
            entry means the action always runs direct
        worker_functions: step name -> worker function name
        max_concurrent_steps: Worker pool size for the direct path
    """

    def __init__(self, authenticator, ownership_verifier, invoker, poller,
                 aggregator: ResultAggregator = None,
                 state_machine_arns: Optional[Mapping[ActionKind, str]] = None,
                 worker_functions: Optional[Dict[str, str]] = None,
                 max_concurrent_steps: int = None):
        self.authenticator = authenticator
        self.ownership_verifier = ownership_verifier
        self.invoker = invoker
        self.poller = poller
        self.aggregator = aggregator or ResultAggregator()
        if state_machine_arns is None:
            state_machine_arns = {
                ActionKind.UPLOAD: config.upload_state_machine_arn,
                ActionKind.DELETE: config.delete_state_machine_arn,
            }
        self.state_machine_arns = dict(state_machine_arns)
        self.worker_functions = worker_functions or default_worker_functions()
        self.max_concurrent_steps = max(1, max_concurrent_steps or config.max_concurrent_steps)

    def handle(self, request: ActionRequest) -> OrchestrationResult:
        """Never raises; internal faults become a 500 result"""
        try:
            return self._handle(request)
        except Exception as e:
            logger.error("Orchestration failed", error=e, workflow=request.kind.value, s3_key=request.key)
            return OrchestrationResult.rejected(HTTPConstants.INTERNAL_SERVER_ERROR, ErrorMessages.INTERNAL_ERROR)

    def _handle(self, request: ActionRequest) -> OrchestrationResult:
        workflow = request.kind.value

        if not request.key:
            return self._reject(request, HTTPConstants.BAD_REQUEST, ErrorMessages.MISSING_KEY)
        if request.kind is ActionKind.UPLOAD and not request.payload:
            return self._reject(request, HTTPConstants.BAD_REQUEST, ErrorMessages.MISSING_CONTENT)

        # Authenticating
        if not self.authenticator.verify(request.identity_claim, request.credential):
            return self._reject(request, HTTPConstants.FORBIDDEN, ErrorMessages.ACCESS_DENIED, reason='authentication')
        identity = Identity(request.identity_claim.email)

        # Authorizing; a delete needs an owned key, an upload a key that is new or already theirs
        if request.kind is ActionKind.DELETE:
            authorized = self.ownership_verifier.owns(request.key, identity)
        else:
            authorized = self.ownership_verifier.may_write(request.key, identity)
        if not authorized:
            return self._reject(request, HTTPConstants.FORBIDDEN, ErrorMessages.ACCESS_DENIED, reason='ownership')

        # Dispatching
        body = request.worker_body(identity)

        state_machine_arn = self.state_machine_arns.get(request.kind)
        if state_machine_arn:
            report = self._run_managed(workflow, request.key, state_machine_arn, body)
            if report is not None:
                return OrchestrationResult.completed(report)

        steps = build_steps(request.kind, self.invoker, self.worker_functions, body)
        outcomes = self._run_direct(steps)

        # Another user claimed the key between the check above and the record write
        if any(outcome.code == OWNERSHIP_CONFLICT for outcome in outcomes.values()):
            return self._reject(request, HTTPConstants.FORBIDDEN, ErrorMessages.ACCESS_DENIED,
                                reason='ownership_conflict')

        # Aggregating
        report = self.aggregator.aggregate(workflow, request.key, steps, outcomes, DIRECT_STRATEGY)
        logger.info("Workflow finished",
                    workflow=workflow,
                    s3_key=request.key,
                    strategy=report.strategy,
                    status=report.status.value)
        return OrchestrationResult.completed(report)

    def _reject(self, request: ActionRequest, status_code: int, message: str, **kwargs) -> OrchestrationResult:
        logger.warning("Request rejected",
                       workflow=request.kind.value,
                       s3_key=request.key or None,
                       status_code=status_code,
                       **kwargs)
        return OrchestrationResult.rejected(status_code, message)

    def _run_managed(self, workflow: str, key: str, state_machine_arn: str, body: dict) -> Optional[WorkflowReport]:
        """
        Run the workflow on the managed engine

        Returns None when the direct path should take over: the start failed
        or the execution ended in anything other than SUCCEEDED.
        """
        try:
            handle = self.poller.start(state_machine_arn, build_envelope(body))
        except ManagedExecutionError as e:
            logger.warning("Managed execution unavailable, running direct",
                           workflow=workflow, s3_key=key, error_message=e.message)
            return None

        result = self.poller.await_terminal(handle)
        if result.status != ExecutionStatus.SUCCEEDED:
            logger.warning("Managed execution did not succeed, running direct",
                           workflow=workflow,
                           s3_key=key,
                           execution_arn=handle.id,
                           status=result.status,
                           error_message=result.error)
            return None

        return self.aggregator.from_execution(workflow, key, handle, result)

    def _run_direct(self, steps: List[Step]) -> Dict[str, StepOutcome]:
        """
        Execute the step graph on a bounded pool

        A step is dispatched once all of its dependencies succeeded and is
        skipped as soon as any of them did not. Every dispatched step is
        joined before returning.
        """
        outcomes: Dict[str, StepOutcome] = {}
        pending = list(steps)
        running = {}

        with ThreadPoolExecutor(max_workers=self.max_concurrent_steps) as executor:
            while pending or running:
                progressed = False
                waiting = []
                for step in pending:
                    unmet = [name for name in step.depends_on if name not in outcomes]
                    failed = sorted(name for name in step.depends_on
                                    if name in outcomes and not outcomes[name].is_success)
                    if failed:
                        outcome = StepOutcome.skipped(f"{', '.join(failed)} did not succeed")
                        self._record(outcomes, step, outcome)
                        progressed = True
                    elif not unmet:
                        running[executor.submit(self._invoke_step, step)] = step
                        progressed = True
                    else:
                        waiting.append(step)
                pending = waiting

                if running:
                    done, _ = wait(running, return_when=FIRST_COMPLETED)
                    for future in done:
                        step = running.pop(future)
                        self._record(outcomes, step, future.result())
                elif not progressed:
                    # Only reachable for graphs that skipped validation
                    for step in pending:
                        self._record(outcomes, step, StepOutcome.skipped('Unresolvable dependencies'))
                    pending = []

        return outcomes

    @staticmethod
    def _invoke_step(step: Step) -> StepOutcome:
        try:
            return step.invoke()
        except Exception as e:
            return StepOutcome.failure(f'{type(e).__name__}: {e}')

    @staticmethod
    def _record(outcomes: Dict[str, StepOutcome], step: Step, outcome: StepOutcome):
        outcomes[step.name] = outcome
        logger.log_step_outcome(step.name, outcome.kind.value, step.best_effort,
                                reason=outcome.reason)
