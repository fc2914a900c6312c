"""
Workflow Contracts
Request, step and report types shared by the upload and delete orchestrators
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional

from ..constants import HTTPConstants
from ..utils import create_response, create_error_response
from ..validation_utils import optional_string


class ActionKind(str, Enum):
    UPLOAD = 'upload'
    DELETE = 'delete'


@dataclass(frozen=True)
class Identity:
    """An email that has been (or is claimed to be) authenticated for one request"""
    email: str


@dataclass(frozen=True)
class Credential:
    token: str = field(repr=False)


@dataclass(frozen=True)
class ActionRequest:
    """
    One inbound user action

    identity_claim is what the caller says it is; it is only trusted after
    TokenAuthenticator has verified the credential against it.
    """
    kind: ActionKind
    key: str
    identity_claim: Identity
    credential: Credential
    payload: Optional[str] = field(default=None, repr=False)
    description: Optional[str] = None

    @classmethod
    def from_body(cls, kind: ActionKind, body: Dict[str, Any]) -> 'ActionRequest':
        return cls(
            kind=kind,
            key=optional_string(body, 'key') or '',
            identity_claim=Identity(optional_string(body, 'email') or ''),
            credential=Credential(optional_string(body, 'token') or ''),
            payload=body.get('content') or None,
            description=optional_string(body, 'description'),
        )

    def worker_body(self, identity: Identity) -> Dict[str, Any]:
        """Body forwarded to worker functions, carrying the verified identity"""
        body = {
            'key': self.key,
            'email': identity.email,
            'token': self.credential.token,
        }
        if self.payload is not None:
            body['content'] = self.payload
        if self.description is not None:
            body['description'] = self.description
        return body


class OutcomeKind(str, Enum):
    SUCCESS = 'SUCCESS'
    FAILURE = 'FAILURE'
    SKIPPED = 'SKIPPED'


@dataclass(frozen=True)
class StepOutcome:
    kind: OutcomeKind
    body: Any = None
    reason: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def success(cls, body: Any = None) -> 'StepOutcome':
        return cls(OutcomeKind.SUCCESS, body=body)

    @classmethod
    def failure(cls, reason: str, code: Optional[str] = None) -> 'StepOutcome':
        return cls(OutcomeKind.FAILURE, reason=reason, code=code)

    @classmethod
    def skipped(cls, cause: str) -> 'StepOutcome':
        return cls(OutcomeKind.SKIPPED, reason=cause)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        result = {'outcome': self.kind.value}
        if self.kind is OutcomeKind.SUCCESS:
            result['body'] = self.body
        elif self.kind is OutcomeKind.FAILURE:
            result['reason'] = self.reason
            if self.code:
                result['code'] = self.code
        else:
            result['cause'] = self.reason
        return result


@dataclass(frozen=True)
class Step:
    """One unit of work delegated to a worker"""
    name: str
    invoke: Callable[[], StepOutcome] = field(repr=False, compare=False)
    depends_on: FrozenSet[str] = frozenset()
    best_effort: bool = False


@dataclass(frozen=True)
class ExecutionHandle:
    id: str
    started_at: datetime


@dataclass(frozen=True)
class ExecutionResult:
    status: str
    output: Any = None
    error: Optional[str] = None


class WorkflowStatus(str, Enum):
    SUCCEEDED = 'SUCCEEDED'
    PARTIAL_FAILURE = 'PARTIAL_FAILURE'
    FAILED = 'FAILED'

    @property
    def status_code(self) -> int:
        if self is WorkflowStatus.FAILED:
            return HTTPConstants.INTERNAL_SERVER_ERROR
        return HTTPConstants.OK


@dataclass(frozen=True)
class WorkflowReport:
    workflow: str
    key: str
    strategy: str
    status: WorkflowStatus
    steps: Mapping[str, StepOutcome] = field(default_factory=dict)
    execution_arn: Optional[str] = None
    output: Any = None

    def __post_init__(self):
        # Freeze the step mapping; insertion order is preserved
        object.__setattr__(self, 'steps', MappingProxyType(dict(self.steps)))

    @property
    def status_code(self) -> int:
        return self.status.status_code

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'workflow': self.workflow,
            'key': self.key,
            'strategy': self.strategy,
            'status': self.status.value,
        }
        if self.steps:
            result['steps'] = {name: outcome.to_dict() for name, outcome in self.steps.items()}
        if self.execution_arn:
            result['execution_arn'] = self.execution_arn
        if self.output is not None:
            result['output'] = self.output
        return result


@dataclass(frozen=True)
class OrchestrationResult:
    """Terminal result of one orchestrated action"""
    status_code: int
    report: Optional[WorkflowReport] = None
    error: Optional[str] = None

    @classmethod
    def rejected(cls, status_code: int, message: str) -> 'OrchestrationResult':
        return cls(status_code=status_code, error=message)

    @classmethod
    def completed(cls, report: WorkflowReport) -> 'OrchestrationResult':
        return cls(status_code=report.status_code, report=report)

    def to_lambda_response(self) -> Dict[str, Any]:
        if self.report is None:
            return create_error_response(self.status_code, self.error or 'Request rejected')
        body = self.report.to_dict()
        body['success'] = self.status_code == HTTPConstants.OK
        return create_response(self.status_code, json.dumps(body, indent=4, default=str))
