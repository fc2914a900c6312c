"""
Managed workflow execution (Step Functions) start and wait
"""
import json
import time
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from botocore.exceptions import ClientError, BotoCoreError
from ..config import config
from ..constants import ExecutionStatus
from ..contracts import ExecutionHandle, ExecutionResult
from ..error_handler import error_handler
from ..exceptions import ManagedExecutionError
from ..logger import orchestrator_logger as logger


class ExecutionPoller:
    """
    Starts state machine executions and polls them to a terminal status

    Polling is best effort: a describe error ends the wait with UNKNOWN and
    a timeout ends it with TIMED_OUT. Neither stops the execution itself.

    Args:
        sfn_client: boto3 Step Functions client
        poll_interval: Seconds between describe_execution calls
        timeout: Default wall-clock limit for one wait, in seconds
        clock: Monotonic clock, injectable for tests
    """

    def __init__(self, sfn_client, poll_interval: float = None, timeout: float = None,
                 clock: Callable[[], float] = time.monotonic):
        self.sfn_client = sfn_client
        self.poll_interval = config.poll_interval_seconds if poll_interval is None else poll_interval
        self.timeout = config.execution_timeout_seconds if timeout is None else timeout
        self.clock = clock

    def start(self, state_machine_arn: str, execution_input: dict) -> ExecutionHandle:
        """
        Start an execution

        Raises:
            ManagedExecutionError: If the engine rejects or cannot be reached
        """
        try:
            response = self.sfn_client.start_execution(
                stateMachineArn=state_machine_arn,
                input=json.dumps(execution_input)
            )
        except (ClientError, BotoCoreError) as e:
            error_response = error_handler.handle_stepfunctions_error(e, 'start_execution')
            raise ManagedExecutionError(error_response['error_message'])

        handle = ExecutionHandle(
            id=response['executionArn'],
            started_at=response.get('startDate') or datetime.now(timezone.utc)
        )
        logger.log_execution_status(handle.id, ExecutionStatus.RUNNING, state_machine_arn=state_machine_arn)
        return handle

    def await_terminal(self, handle: ExecutionHandle, timeout: float = None,
                       cancel_event: Optional[threading.Event] = None) -> ExecutionResult:
        """
        Poll until the execution is terminal, the timeout elapses or the wait is cancelled

        Args:
            handle: Execution to watch
            timeout: Overrides the default timeout for this wait
            cancel_event: Setting this event ends the wait with UNKNOWN

        Returns:
            ExecutionResult; never raises for engine errors
        """
        timeout = self.timeout if timeout is None else timeout
        cancel_event = cancel_event or threading.Event()
        deadline = self.clock() + timeout

        while True:
            if cancel_event.is_set():
                return self._finish(handle, ExecutionResult(ExecutionStatus.UNKNOWN, error='Wait cancelled'))

            try:
                response = self.sfn_client.describe_execution(executionArn=handle.id)
            except (ClientError, BotoCoreError) as e:
                error_response = error_handler.handle_stepfunctions_error(e, 'describe_execution', handle.id)
                return self._finish(handle, ExecutionResult(ExecutionStatus.UNKNOWN, error=error_response['error_message']))

            status = response.get('status', ExecutionStatus.UNKNOWN)
            if status in ExecutionStatus.TERMINAL:
                return self._finish(handle, ExecutionResult(
                    status=status,
                    output=self._parse_output(response.get('output')),
                    error=response.get('error') or response.get('cause')
                ))

            remaining = deadline - self.clock()
            if remaining <= 0:
                return self._finish(handle, ExecutionResult(
                    ExecutionStatus.TIMED_OUT,
                    error=f'Execution still {status} after {timeout}s'
                ))

            cancel_event.wait(min(self.poll_interval, remaining))

    @staticmethod
    def _parse_output(output: Any) -> Any:
        if not isinstance(output, str):
            return output
        try:
            return json.loads(output)
        except ValueError:
            return output

    @staticmethod
    def _finish(handle: ExecutionHandle, result: ExecutionResult) -> ExecutionResult:
        elapsed = (datetime.now(timezone.utc) - handle.started_at).total_seconds() if handle.started_at.tzinfo else None
        logger.log_execution_status(handle.id, result.status, error=result.error, elapsed_seconds=elapsed)
        return result
