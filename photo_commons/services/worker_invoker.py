"""
Synchronous worker Lambda invocation

Worker replies come in three shapes: the structured envelope
({success, data | error}), an API Gateway proxy response
({statusCode, body}) or, from older workers, free text. Every reply is
classified into a StepOutcome; nothing raised by lambda:Invoke escapes.
"""
import json
import time
from typing import Any, Optional, Tuple
from botocore.exceptions import ClientError, BotoCoreError
from ..config import config
from ..contracts import StepOutcome
from ..error_handler import error_handler
from ..logger import worker_logger as logger


LEGACY_FAILURE_MARKERS = ('Error', 'Failed')
_REASON_PREVIEW = 200


def _preview(text: Any) -> str:
    text = text if isinstance(text, str) else json.dumps(text, default=str)
    return text[:_REASON_PREVIEW]


def _is_2xx(status: Any) -> bool:
    try:
        return 200 <= int(status) < 300
    except (TypeError, ValueError):
        return False


class WorkerInvoker:
    """
    Calls worker functions with InvocationType=RequestResponse

    Args:
        lambda_client: boto3 Lambda client
        legacy_failure_markers: Treat free-text replies containing 'Error' or
            'Failed' as failures and other free text as success. Off by default,
            in which case a non-JSON reply is a malformed-reply failure.
    """

    def __init__(self, lambda_client, legacy_failure_markers: Optional[bool] = None):
        self.lambda_client = lambda_client
        if legacy_failure_markers is None:
            legacy_failure_markers = config.legacy_failure_markers
        self.legacy_failure_markers = legacy_failure_markers

    def call(self, worker_name: str, request: dict) -> StepOutcome:
        start_time = time.time()

        try:
            response = self.lambda_client.invoke(
                FunctionName=worker_name,
                InvocationType='RequestResponse',
                Payload=json.dumps(request).encode('utf-8')
            )
            raw_payload = response['Payload'].read() if response.get('Payload') is not None else b''
        except (ClientError, BotoCoreError) as e:
            error_response = error_handler.handle_lambda_error(e, worker_name)
            outcome = StepOutcome.failure(error_response['error_message'])
        else:
            outcome = self.classify(response, raw_payload)

        duration_ms = (time.time() - start_time) * 1000
        logger.log_worker_invocation(
            worker_name,
            outcome.is_success,
            duration_ms,
            reason=outcome.reason
        )
        return outcome

    def classify(self, response: dict, raw_payload: bytes) -> StepOutcome:
        """
        Classify one invocation response

        Checks run in order and the first one to decide wins.
        """
        text = raw_payload.decode('utf-8', errors='replace') if isinstance(raw_payload, bytes) else str(raw_payload)

        for check in (self._check_function_error, self._check_invocation_status):
            outcome = check(response, text)
            if outcome is not None:
                return outcome

        parsed, ok = self._parse_json(text)
        if not ok:
            return self._classify_free_text(text)
        return self._classify_payload(parsed)

    @staticmethod
    def _check_function_error(response: dict, text: str) -> Optional[StepOutcome]:
        function_error = response.get('FunctionError')
        if not function_error:
            return None

        reason = f'Worker raised {function_error}'
        parsed, ok = WorkerInvoker._parse_json(text)
        if ok and isinstance(parsed, dict) and parsed.get('errorMessage'):
            reason = f"{reason}: {parsed['errorMessage']}"
        return StepOutcome.failure(reason)

    @staticmethod
    def _check_invocation_status(response: dict, text: str) -> Optional[StepOutcome]:
        status = response.get('StatusCode', 200)
        if _is_2xx(status):
            return None
        return StepOutcome.failure(f'Invocation returned status {status}')

    @staticmethod
    def _parse_json(text: str) -> Tuple[Any, bool]:
        if not text.strip():
            return None, False
        try:
            return json.loads(text), True
        except ValueError:
            return None, False

    def _classify_free_text(self, text: str) -> StepOutcome:
        if not self.legacy_failure_markers:
            return StepOutcome.failure(f'Malformed worker reply: {_preview(text)}')
        if any(marker in text for marker in LEGACY_FAILURE_MARKERS):
            return StepOutcome.failure(_preview(text))
        return StepOutcome.success(text)

    def _classify_payload(self, payload: Any) -> StepOutcome:
        if isinstance(payload, dict) and 'statusCode' in payload:
            if not _is_2xx(payload.get('statusCode')):
                return StepOutcome.failure(
                    f"Worker responded {payload.get('statusCode')}: {_preview(payload.get('body', ''))}"
                )
            body = payload.get('body')
            if isinstance(body, str):
                inner, ok = self._parse_json(body)
                if not ok:
                    if self.legacy_failure_markers:
                        return self._classify_free_text(body)
                    return StepOutcome.success(body)
                payload = inner
            else:
                payload = body

        if isinstance(payload, dict) and payload.get('success') is False:
            error, code = payload.get('error'), None
            if isinstance(error, dict):
                code = error.get('code')
                error = error.get('message') or code
            return StepOutcome.failure(str(error or 'Worker reported failure'), code=code)

        if isinstance(payload, str) and self.legacy_failure_markers:
            return self._classify_free_text(payload)

        if isinstance(payload, dict) and payload.get('success') is True and 'data' in payload:
            return StepOutcome.success(payload['data'])
        return StepOutcome.success(payload)
