"""
Step graphs for the upload and delete workflows

Upload:  insert-record -> upload-original -> create-thumbnail (best effort)
Delete:  delete-storage-objects, delete-record, delete-thumbnail (best effort),
         all independent
"""
import json
from typing import Callable, Dict, List, Sequence
from ..config import config
from ..constants import StepNames
from ..contracts import ActionKind, Step, StepOutcome
from ..exceptions import ConfigurationError, WorkflowDefinitionError


def default_worker_functions() -> Dict[str, str]:
    """Worker function name for each step, from configuration"""
    return {
        StepNames.INSERT_RECORD: config.add_photo_record_function,
        StepNames.UPLOAD_ORIGINAL: config.upload_original_function,
        StepNames.CREATE_THUMBNAIL: config.create_thumbnail_function,
        StepNames.DELETE_STORAGE_OBJECTS: config.delete_original_function,
        StepNames.DELETE_RECORD: config.delete_record_function,
        StepNames.DELETE_THUMBNAIL: config.delete_thumbnail_function,
    }


def build_envelope(body: dict) -> dict:
    """Wrap a worker body the way API Gateway would deliver it"""
    return {
        'httpMethod': 'POST',
        'body': json.dumps(body),
        'headers': {'Content-Type': 'application/json'}
    }


def _invoke(invoker, functions: Dict[str, str], step_name: str, envelope: dict) -> Callable[[], StepOutcome]:
    function_name = functions.get(step_name)
    if not function_name:
        raise ConfigurationError(f'No worker function configured for step {step_name}', config_key=step_name)
    return lambda: invoker.call(function_name, envelope)


def upload_steps(invoker, functions: Dict[str, str], body: dict) -> List[Step]:
    envelope = build_envelope(body)
    return [
        Step(StepNames.INSERT_RECORD,
             _invoke(invoker, functions, StepNames.INSERT_RECORD, envelope)),
        Step(StepNames.UPLOAD_ORIGINAL,
             _invoke(invoker, functions, StepNames.UPLOAD_ORIGINAL, envelope),
             depends_on=frozenset([StepNames.INSERT_RECORD])),
        Step(StepNames.CREATE_THUMBNAIL,
             _invoke(invoker, functions, StepNames.CREATE_THUMBNAIL, envelope),
             depends_on=frozenset([StepNames.UPLOAD_ORIGINAL]),
             best_effort=True),
    ]


def delete_steps(invoker, functions: Dict[str, str], body: dict) -> List[Step]:
    # Workers only need the key and the verified identity
    body = {k: v for k, v in body.items() if k != 'content'}
    envelope = build_envelope(body)
    return [
        Step(StepNames.DELETE_STORAGE_OBJECTS,
             _invoke(invoker, functions, StepNames.DELETE_STORAGE_OBJECTS, envelope)),
        Step(StepNames.DELETE_RECORD,
             _invoke(invoker, functions, StepNames.DELETE_RECORD, envelope)),
        Step(StepNames.DELETE_THUMBNAIL,
             _invoke(invoker, functions, StepNames.DELETE_THUMBNAIL, envelope),
             best_effort=True),
    ]


WORKFLOW_BUILDERS = {
    ActionKind.UPLOAD: upload_steps,
    ActionKind.DELETE: delete_steps,
}


def build_steps(kind: ActionKind, invoker, functions: Dict[str, str], body: dict) -> List[Step]:
    steps = WORKFLOW_BUILDERS[kind](invoker, functions, body)
    validate_graph(steps)
    return steps


def validate_graph(steps: Sequence[Step]):
    """
    Check that step names are unique and dependencies form a DAG over known steps

    Raises:
        WorkflowDefinitionError: On a duplicate name, unknown dependency or cycle
    """
    by_name = {}
    for step in steps:
        if step.name in by_name:
            raise WorkflowDefinitionError(f'Duplicate step name: {step.name}', step=step.name)
        by_name[step.name] = step

    for step in steps:
        unknown = step.depends_on - by_name.keys()
        if unknown:
            raise WorkflowDefinitionError(
                f"Step {step.name} depends on unknown step(s): {', '.join(sorted(unknown))}",
                step=step.name
            )

    visiting, done = set(), set()

    def visit(name: str):
        if name in done:
            return
        if name in visiting:
            raise WorkflowDefinitionError(f'Dependency cycle through step {name}', step=name)
        visiting.add(name)
        for dependency in by_name[name].depends_on:
            visit(dependency)
        visiting.discard(name)
        done.add(name)

    for step in steps:
        visit(step.name)
