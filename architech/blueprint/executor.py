"""Blueprint execution: condition checks, dispatch, and deferred commit.

``BlueprintExecutor.execute`` walks a blueprint's actions in order.  Each
action's guard is evaluated first; admitted actions are handed to the handler
registered for their class.  Content-producing handlers only ever write into a
``VirtualFileSystem``, which is flushed to the project directory once the run
has finished without a single error.  Commands are the exception: they run
immediately, against whatever is on disk at that point.

A failing action never stops the run.  Its error is recorded as
``"Action N (TYPE) failed: message"`` and the next action is processed, so one
result reports every problem in the blueprint at once.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from architech.config import EngineConfig
from architech.errors import InvalidAction, ParseError, TargetFileMissing, UnknownMergeStrategy
from architech.merge import apply_strategy, select_strategy, wrap_config
from architech.merge.env import merge_env
from architech.merge.structured import STRUCTURED_STRATEGIES, parse_object
from architech.runner.command_runner import CommandRunner
from architech.utils import (
    console,
    dump_json,
    format_duration,
    print_error,
    print_header,
    print_success,
    print_summary_table,
    print_warning,
)

from .conditions import evaluate_condition
from .models import (
    ACTION_TYPES,
    ActionOutcome,
    ActionState,
    AddEnvVar,
    AddScript,
    Blueprint,
    CreateOrMergeFile,
    ExecutionResult,
    InstallPackages,
    MergeConfig,
    ProjectContext,
    RunCommand,
    WrapConfig,
)
from .resolver import TemplateResolver
from .vfs import VirtualFileSystem

DEFAULT_PACKAGE_VERSION = "latest"


def unchanged_warning(path: str) -> str:
    return f"{path} already contained this configuration, leaving untouched"


def parse_package_spec(spec: str) -> tuple[str, str]:
    """Split ``name@version`` into its parts.

    Scoped names keep their leading ``@``; the version defaults to ``latest``.

    Examples::

        parse_package_spec("stripe@14.5.0")        -> ("stripe", "14.5.0")
        parse_package_spec("@stripe/stripe-js")    -> ("@stripe/stripe-js", "latest")
        parse_package_spec("@prisma/client@^5")    -> ("@prisma/client", "^5")
    """
    text = spec.strip()
    if not text:
        raise InvalidAction("Empty package specification")
    separator = text.rfind("@")
    if separator > 0:
        return text[:separator], text[separator + 1:] or DEFAULT_PACKAGE_VERSION
    return text, DEFAULT_PACKAGE_VERSION


def _manifest_section(manifest: dict[str, Any], key: str, path: str) -> dict[str, Any]:
    """Return the object stored under *key*, creating it when absent or null."""
    value = manifest.get(key)
    if value is None:
        value = manifest[key] = {}
    elif not isinstance(value, dict):
        raise ParseError(path, f"'{key}' must be an object, found {type(value).__name__}")
    return value


@dataclass
class _Run:
    """Mutable state of one ``execute`` call."""

    context: ProjectContext
    vfs: VirtualFileSystem
    warnings: list[str] = field(default_factory=list)


Handler = Callable[[Any, _Run], Awaitable[list[str]]]


class BlueprintExecutor:
    """Runs blueprints against project contexts.

    An executor keeps no state between runs, so one instance may serve any
    number of sequential or concurrent ``execute`` calls.

    Args:
        config: Engine settings.  Defaults to ``EngineConfig()``.
        runner: Command runner for ``RUN_COMMAND`` actions.  Built from
            *config* when omitted.
        resolver: Template resolver.  Defaults to ``TemplateResolver()``.

    Raises:
        TypeError: If an action class has no registered handler.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        runner: Optional[CommandRunner] = None,
        resolver: Optional[TemplateResolver] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.runner = runner or CommandRunner(
            capture_output=self.config.capture_command_output,
            timeout=self.config.command_timeout,
            quiet=self.config.quiet,
        )
        self.resolver = resolver or TemplateResolver()
        self._handlers: dict[type, Handler] = {
            CreateOrMergeFile: self._create_or_merge_file,
            InstallPackages: self._install_packages,
            AddScript: self._add_script,
            AddEnvVar: self._add_env_var,
            RunCommand: self._run_command,
            WrapConfig: self._wrap_config,
            MergeConfig: self._merge_config,
        }
        missing = [action_type.__name__ for action_type in ACTION_TYPES if action_type not in self._handlers]
        if missing:
            raise TypeError(f"No handler registered for action type(s): {', '.join(missing)}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def execute(
        self,
        blueprint: Union[Blueprint, Mapping[str, Any]],
        context: Union[ProjectContext, Mapping[str, Any]],
        commit: Optional[bool] = None,
    ) -> ExecutionResult:
        """Execute every action of *blueprint* against *context*.

        Args:
            blueprint: The blueprint, or a mapping that validates as one.
            context: The project context, or a mapping that validates as one.
            commit: Write staged files to disk when the run succeeds.
                Defaults to ``config.commit_on_success``.

        Returns:
            The aggregated result.  Never raises for action-level failures.
        """
        if not isinstance(blueprint, Blueprint):
            blueprint = Blueprint.model_validate(blueprint)
        if not isinstance(context, ProjectContext):
            context = ProjectContext.model_validate(context)
        if commit is None:
            commit = self.config.commit_on_success

        run = _Run(context=context, vfs=VirtualFileSystem(context.project.path))
        result = ExecutionResult(success=False)
        total = len(blueprint.actions)
        start_time = time.monotonic()

        if not self.config.quiet:
            print_header(
                f"Blueprint: {blueprint.name}",
                f"{total} action(s) for project '{context.project.name}' at {context.project.path}",
            )

        for index, action in enumerate(blueprint.actions, start=1):
            outcome = ActionOutcome(index=index, action_type=action.type)
            result.outcomes.append(outcome)
            await self._run_action(action, outcome, total, run, result)

        result.warnings.extend(run.warnings)

        if result.errors:
            run.vfs.clear()
        elif commit:
            try:
                run.vfs.flush()
                result.committed = True
            except OSError as exc:
                result.errors.append(f"Failed to write staged files to {context.project.path}: {exc}")

        result.success = not result.errors
        if not self.config.quiet:
            self._display_result(result, time.monotonic() - start_time)
        return result

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _run_action(
        self,
        action: Any,
        outcome: ActionOutcome,
        total: int,
        run: _Run,
        result: ExecutionResult,
    ) -> None:
        admitted = evaluate_condition(action.condition, run.context)
        outcome.state = ActionState.CONDITION_CHECKED
        if not admitted:
            outcome.state = ActionState.SKIPPED
            if not self.config.quiet:
                console.print(f"[dim][{outcome.index}/{total}] {action.type} skipped ({action.condition})[/dim]")
            return

        outcome.state = ActionState.DISPATCHED
        if not self.config.quiet:
            console.print(f"[cyan][{outcome.index}/{total}][/cyan] {action.type}")

        handler = self._handlers[type(action)]
        try:
            files = await handler(action, run)
        except Exception as exc:
            message = f"Action {outcome.index} ({action.type}) failed: {exc}"
            outcome.state = ActionState.FAILED
            outcome.error = message
            result.errors.append(message)
            if not self.config.quiet:
                print_error(f"  {message}")
            return

        outcome.state = ActionState.SUCCEEDED
        outcome.files = files
        for path in files:
            if path not in result.files:
                result.files.append(path)

    def _store(self, run: _Run, path: str, existing: str | None, merged: str) -> list[str]:
        """Buffer *merged* for *path* unless it leaves the file byte-identical."""
        if existing is not None and merged == existing:
            run.warnings.append(unchanged_warning(path))
            return []
        run.vfs.write(path, merged)
        return [path]

    def _target(self, raw_path: str, run: _Run) -> str:
        return run.vfs.normalize(self.resolver.resolve(raw_path, run.context))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _create_or_merge_file(self, action: CreateOrMergeFile, run: _Run) -> list[str]:
        path = self._target(action.path, run)
        content = self.resolver.resolve(action.content, run.context, target_path=path)
        strategy = select_strategy(path, action.merge_strategy)
        existing = run.vfs.read(path)
        merged = apply_strategy(strategy, existing, content, path=path)
        return self._store(run, path, existing, merged)

    def _load_manifest(self, run: _Run) -> tuple[str, str | None, dict[str, Any]]:
        path = run.vfs.normalize(self.config.manifest_file)
        existing = run.vfs.read(path)
        if existing is None or not existing.strip():
            project = run.context.project
            manifest: dict[str, Any] = {
                "name": project.name,
                "version": project.version or "0.1.0",
                "private": True,
            }
        else:
            manifest = parse_object(existing, path)
        return path, existing, manifest

    def _store_manifest(
        self,
        run: _Run,
        path: str,
        existing: str | None,
        manifest: dict[str, Any],
        changed: bool,
    ) -> list[str]:
        merged = dump_json(manifest) if changed or existing is None else existing
        return self._store(run, path, existing, merged)

    async def _install_packages(self, action: InstallPackages, run: _Run) -> list[str]:
        path, existing, manifest = self._load_manifest(run)
        section = "devDependencies" if action.dev else "dependencies"

        specs: list[str] = []
        for package in action.packages:
            specs.extend(self.resolver.resolve(package, run.context).split())

        changed = False
        for spec in specs:
            name, version = parse_package_spec(spec)
            listed = any(
                isinstance(manifest.get(key), dict) and name in manifest[key]
                for key in ("dependencies", "devDependencies")
            )
            if listed:
                continue
            _manifest_section(manifest, section, path)[name] = version
            changed = True

        return self._store_manifest(run, path, existing, manifest, changed)

    async def _add_script(self, action: AddScript, run: _Run) -> list[str]:
        path, existing, manifest = self._load_manifest(run)
        name = self.resolver.resolve(action.name, run.context)
        command = self.resolver.resolve(action.command, run.context)

        scripts = _manifest_section(manifest, "scripts", path)
        if name in scripts:
            if scripts[name] != command:
                run.warnings.append(
                    f"Script '{name}' already exists in {path} ({scripts[name]!r}), keeping it"
                )
                return []
            return self._store_manifest(run, path, existing, manifest, changed=False)

        scripts[name] = command
        return self._store_manifest(run, path, existing, manifest, changed=True)

    async def _add_env_var(self, action: AddEnvVar, run: _Run) -> list[str]:
        key = self.resolver.resolve(action.key, run.context)
        value = self.resolver.resolve(action.value, run.context)
        block = f"{key}={value}\n"
        if action.description:
            block = f"# {self.resolver.resolve(action.description, run.context)}\n" + block

        touched: list[str] = []
        example_path = run.vfs.normalize(self.config.env_example_file)
        existing = run.vfs.read(example_path)
        touched.extend(self._store(run, example_path, existing, merge_env(existing, block)))

        env_path = run.vfs.normalize(self.config.env_file)
        env_existing = run.vfs.read(env_path)
        if env_existing is not None:
            touched.extend(self._store(run, env_path, env_existing, merge_env(env_existing, block)))
        return touched

    async def _run_command(self, action: RunCommand, run: _Run) -> list[str]:
        command = self.resolver.resolve(action.command, run.context)
        cwd = Path(run.context.project.path)
        if action.working_dir:
            cwd = run.vfs.absolute(self.resolver.resolve(action.working_dir, run.context))
        await self.runner.run(command, cwd=cwd)
        return []

    async def _wrap_config(self, action: WrapConfig, run: _Run) -> list[str]:
        path = self._target(action.path, run)
        existing = run.vfs.read(path)
        if existing is None:
            raise TargetFileMissing(path)
        options = self.resolver.resolve_value(action.options, run.context, target_path=path)
        import_from = self.resolver.resolve(action.import_from, run.context) if action.import_from else None
        merged = wrap_config(
            existing,
            self.resolver.resolve(action.wrapper_name, run.context),
            options,
            import_from=import_from,
            path=path,
        )
        return self._store(run, path, existing, merged)

    async def _merge_config(self, action: MergeConfig, run: _Run) -> list[str]:
        path = self._target(action.path, run)
        if action.strategy not in STRUCTURED_STRATEGIES:
            raise UnknownMergeStrategy(action.strategy)
        strategy = select_strategy(path, action.strategy)
        payload = self.resolver.resolve_value(action.config, run.context, target_path=path)
        existing = run.vfs.read(path)
        merged = apply_strategy(strategy, existing, dump_json(payload), path=path)
        return self._store(run, path, existing, merged)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _display_result(self, result: ExecutionResult, elapsed: float) -> None:
        for warning in result.warnings:
            print_warning(f"  {warning}")

        print_summary_table(
            {
                "Succeeded": str(result.count(ActionState.SUCCEEDED)),
                "Skipped": str(result.count(ActionState.SKIPPED)),
                "Failed": str(result.count(ActionState.FAILED)),
                "Files": str(len(result.files)),
                "Warnings": str(len(result.warnings)),
                "Committed": "yes" if result.committed else "no",
                "Duration": format_duration(elapsed),
            },
            title="Blueprint Result",
        )
        if result.success:
            print_success("Blueprint executed successfully")
        else:
            print_error(f"Blueprint failed with {len(result.errors)} error(s); nothing was written")
