"""Pydantic v2 models for blueprints, project contexts, and execution results.

Blueprints are authored by external plugins, usually as JSON or YAML with
camelCase keys, so every blueprint-facing model accepts both the camelCase
alias and the snake_case field name.  Actions form a discriminated union on
their ``type`` tag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from architech.errors import PathKeyMissing


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class CreateOrMergeFile(_FrozenModel):
    """Create a file, or merge the content into it when it already exists."""
    type: Literal["CREATE_FILE"] = "CREATE_FILE"
    path: str = Field(..., description="Target path, relative to the project root")
    content: str = Field(default="", description="Template text for the file body")
    condition: Optional[str] = Field(default=None, description="Guard expression")
    merge_strategy: Optional[str] = Field(
        default=None, description="Explicit merge strategy; inferred from the path when omitted"
    )


class InstallPackages(_FrozenModel):
    """Record packages as project dependencies."""
    type: Literal["INSTALL_PACKAGES"] = "INSTALL_PACKAGES"
    packages: list[str] = Field(..., min_length=1, description="Package specs, e.g. 'stripe@14'")
    dev: bool = Field(
        default=False,
        validation_alias=AliasChoices("dev", "isDev", "is_dev"),
        description="Install as a development dependency",
    )
    condition: Optional[str] = Field(default=None)


class AddScript(_FrozenModel):
    """Add a named script to the package manifest."""
    type: Literal["ADD_SCRIPT"] = "ADD_SCRIPT"
    name: str = Field(..., min_length=1)
    command: str = Field(..., min_length=1)
    condition: Optional[str] = Field(default=None)


class AddEnvVar(_FrozenModel):
    """Declare an environment variable in the project's env files."""
    type: Literal["ADD_ENV_VAR"] = "ADD_ENV_VAR"
    key: str = Field(..., min_length=1)
    value: str = Field(default="")
    description: Optional[str] = Field(default=None)
    condition: Optional[str] = Field(default=None)


class RunCommand(_FrozenModel):
    """Run an external command in the project directory."""
    type: Literal["RUN_COMMAND"] = "RUN_COMMAND"
    command: str = Field(..., min_length=1)
    condition: Optional[str] = Field(default=None)
    working_dir: Optional[str] = Field(
        default=None, description="Directory relative to the project root"
    )


class WrapConfig(_FrozenModel):
    """Wrap a config file's exported object with a wrapper function call."""
    type: Literal["WRAP_CONFIG"] = "WRAP_CONFIG"
    path: str = Field(...)
    wrapper_name: str = Field(..., validation_alias=AliasChoices("wrapperName", "wrapper_name", "wrapper"))
    options: dict[str, Any] = Field(default_factory=dict)
    condition: Optional[str] = Field(default=None)
    import_from: Optional[str] = Field(
        default=None, description="Module that provides the wrapper function"
    )


class MergeConfig(_FrozenModel):
    """Merge a structured payload into a JSON config file."""
    type: Literal["MERGE_CONFIG"] = "MERGE_CONFIG"
    path: str = Field(...)
    config: dict[str, Any] = Field(...)
    strategy: str = Field(default="deep")
    condition: Optional[str] = Field(default=None)


Action = Annotated[
    Union[
        CreateOrMergeFile,
        InstallPackages,
        AddScript,
        AddEnvVar,
        RunCommand,
        WrapConfig,
        MergeConfig,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES: tuple[type[BaseModel], ...] = (
    CreateOrMergeFile,
    InstallPackages,
    AddScript,
    AddEnvVar,
    RunCommand,
    WrapConfig,
    MergeConfig,
)


class Blueprint(_FrozenModel):
    """An ordered, declarative list of actions for one technology integration."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = Field(default=None)
    version: Optional[str] = Field(default=None)
    actions: tuple[Action, ...] = Field(default=())


# ---------------------------------------------------------------------------
# Project context
# ---------------------------------------------------------------------------

class ProjectInfo(_FrozenModel):
    name: str = Field(..., description="Project name")
    path: str = Field(..., description="Project root directory")
    framework: str = Field(default="")
    description: Optional[str] = Field(default=None)
    version: Optional[str] = Field(default=None)
    license: Optional[str] = Field(default=None)
    author: Optional[str] = Field(default=None)


class ModuleInfo(_FrozenModel):
    id: str = Field(...)
    category: str = Field(default="")
    version: str = Field(default="")
    parameters: dict[str, Any] = Field(default_factory=dict)


class IntegrationInfo(_FrozenModel):
    features: dict[str, bool] = Field(default_factory=dict)


class ParameterDefinition(_FrozenModel):
    """Declared parameter of an adapter, used for defaults."""
    type: Literal["string", "boolean", "number", "select", "array", "object"] = "string"
    required: bool = False
    default: Any = None
    choices: Optional[list[str]] = None
    description: str = ""


class AdapterSchema(_FrozenModel):
    parameters: dict[str, ParameterDefinition] = Field(default_factory=dict)

    def defaults(self) -> dict[str, Any]:
        """Return ``{name: default}`` for every parameter that declares one."""
        return {
            name: definition.default
            for name, definition in self.parameters.items()
            if definition.default is not None
        }


class PathHandler(_FrozenModel):
    """Maps symbolic path keys (``payment_config``) to project-relative paths.

    Accepts either ``{"paths": {...}}`` or the bare mapping.
    """

    paths: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_mapping(cls, data: Any) -> Any:
        if isinstance(data, dict) and "paths" not in data:
            return {"paths": data}
        return data

    def has(self, key: str) -> bool:
        return key in self.paths

    def resolve(self, key: str) -> str:
        """Return the concrete path for *key*.

        Raises:
            PathKeyMissing: If the key is not declared.
        """
        try:
            return self.paths[key]
        except KeyError:
            raise PathKeyMissing(key) from None


class ProjectContext(_FrozenModel):
    """Read-only data available to templates and conditions during one run."""

    project: ProjectInfo
    module: Optional[ModuleInfo] = None
    integration: Optional[IntegrationInfo] = None
    path_handler: PathHandler = Field(default_factory=PathHandler)
    adapter_schema: AdapterSchema = Field(default_factory=AdapterSchema)

    @property
    def framework(self) -> str:
        return self.project.framework

    def resolved_parameters(self) -> dict[str, Any]:
        """Adapter defaults overlaid with the caller's parameters (caller wins)."""
        supplied = self.module.parameters if self.module else {}
        return {**self.adapter_schema.defaults(), **supplied}


# ---------------------------------------------------------------------------
# Execution results
# ---------------------------------------------------------------------------

class ActionState(str, Enum):
    PENDING = "pending"
    CONDITION_CHECKED = "condition_checked"
    SKIPPED = "skipped"
    DISPATCHED = "dispatched"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ActionOutcome:
    """What happened to one action during a run."""

    index: int
    action_type: str
    state: ActionState = ActionState.PENDING
    files: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class ExecutionResult:
    """Aggregated report for one blueprint run."""

    success: bool
    files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    outcomes: list[ActionOutcome] = field(default_factory=list)
    committed: bool = False

    def count(self, state: ActionState) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state == state)

    def summary(self) -> str:
        """Return a human-readable summary of the result."""
        status = "[green]SUCCESS[/green]" if self.success else "[red]FAILED[/red]"
        lines = [
            f"Status: {status}",
            f"Actions succeeded: {self.count(ActionState.SUCCEEDED)}",
            f"Actions skipped: {self.count(ActionState.SKIPPED)}",
            f"Actions failed: {self.count(ActionState.FAILED)}",
            f"Files: {len(self.files)}",
        ]
        if self.warnings:
            lines.append(f"Warnings: {len(self.warnings)}")
        if self.errors:
            lines.append(f"Errors: {len(self.errors)}")
            for err in self.errors[:5]:
                lines.append(f"  - {err[:200]}")
        return "\n".join(lines)
