"""Architech blueprint module.

Models, template resolution, condition evaluation and execution of
blueprints against a project context.

Key classes:
    Blueprint          - ordered list of declarative actions
    ProjectContext     - read-only data templates and conditions see
    TemplateResolver   - ``{{...}}`` placeholder and ``{{#if}}`` expansion
    VirtualFileSystem  - staged writes, flushed only on success
    BlueprintExecutor  - condition check, dispatch and commit
"""

from .conditions import evaluate_condition, normalize_condition
from .executor import BlueprintExecutor, parse_package_spec
from .models import (
    ACTION_TYPES,
    Action,
    ActionOutcome,
    ActionState,
    AdapterSchema,
    AddEnvVar,
    AddScript,
    Blueprint,
    CreateOrMergeFile,
    ExecutionResult,
    InstallPackages,
    IntegrationInfo,
    MergeConfig,
    ModuleInfo,
    ParameterDefinition,
    PathHandler,
    ProjectContext,
    ProjectInfo,
    RunCommand,
    WrapConfig,
)
from .resolver import TemplateResolver, format_parameter
from .vfs import VirtualFileSystem

__all__ = [
    # Models
    "Action",
    "ACTION_TYPES",
    "Blueprint",
    "CreateOrMergeFile",
    "InstallPackages",
    "AddScript",
    "AddEnvVar",
    "RunCommand",
    "WrapConfig",
    "MergeConfig",
    "ProjectContext",
    "ProjectInfo",
    "ModuleInfo",
    "IntegrationInfo",
    "ParameterDefinition",
    "AdapterSchema",
    "PathHandler",
    "ExecutionResult",
    "ActionOutcome",
    "ActionState",
    # Resolution
    "TemplateResolver",
    "format_parameter",
    "evaluate_condition",
    "normalize_condition",
    # Execution
    "BlueprintExecutor",
    "VirtualFileSystem",
    "parse_package_spec",
]
