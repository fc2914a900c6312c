from .workflow_contracts import (
    ActionKind,
    ActionRequest,
    Credential,
    ExecutionHandle,
    ExecutionResult,
    Identity,
    OrchestrationResult,
    OutcomeKind,
    Step,
    StepOutcome,
    WorkflowReport,
    WorkflowStatus,
)

__all__ = [
    'ActionKind',
    'ActionRequest',
    'Credential',
    'ExecutionHandle',
    'ExecutionResult',
    'Identity',
    'OrchestrationResult',
    'OutcomeKind',
    'Step',
    'StepOutcome',
    'WorkflowReport',
    'WorkflowStatus',
]
