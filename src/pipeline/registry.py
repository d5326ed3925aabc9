# src/pipeline/registry.py — v2
"""Step registry — the declared set of deployment steps.

Steps are registered programmatically or loaded from a JSON plan file.
The registry keeps declaration order (used as the tie-break in the DAG),
validates that dependencies resolve, and selects steps by tag together
with their transitive dependencies.
"""

from __future__ import annotations

import importlib
import inspect
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, Field, ValidationError, field_validator

from hubdeploy.core.errors import PlanFileError, UnknownDependency
from hubdeploy.core.semver import Version
from hubdeploy.pipeline.step import DeployAction, Step, deploy_contract

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when a step lookup or registration fails."""


class StepSpec(BaseModel):
    """One step as declared in a plan file."""

    model_config = {"extra": "forbid"}

    name: str
    contract: str = ""
    target: str = ""
    version: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    constructor_args: list[Any] = Field(default_factory=list)
    carry_parameters: list[str] = Field(default_factory=list)
    upgrade: bool = False
    action: str | None = None

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str | None) -> str | None:  # noqa: N805
        if v is not None:
            Version.from_string(v)
        return v

    def to_step(self) -> Step:
        action = _import_action(self.action) if self.action else deploy_contract
        return Step(
            name=self.name,
            target=self.target,
            contract=self.contract,
            version=self.version,
            dependencies=tuple(self.dependencies),
            tags=frozenset(self.tags) or frozenset({self.name}),
            constructor_args=tuple(self.constructor_args),
            carry_parameters=tuple(self.carry_parameters),
            upgrade=self.upgrade,
            action=action,
        )


class PlanFile(BaseModel):
    """Top-level plan file document."""

    model_config = {"extra": "forbid"}

    steps: list[StepSpec] = Field(default_factory=list)


class StepRegistry:
    """Registry of all declared deployment steps, in declaration order."""

    def __init__(self, steps: Iterable[Step] | None = None) -> None:
        self._steps: dict[str, Step] = {}
        for step in steps or ():
            self.register(step)

    @property
    def steps(self) -> list[Step]:
        """Return steps in declaration order."""
        return list(self._steps.values())

    @property
    def step_names(self) -> list[str]:
        return list(self._steps.keys())

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def register(self, step: Step) -> None:
        """Register a step; names must be unique."""
        if step.name in self._steps:
            raise RegistryError(f"Step '{step.name}' is already registered")
        self._steps[step.name] = step
        logger.debug("Registered step: %s -> %s", step.name, step.target)

    def get(self, name: str) -> Step | None:
        return self._steps.get(name)

    @property
    def all_tags(self) -> set[str]:
        return {tag for step in self._steps.values() for tag in step.tags}

    def select(self, tags: Iterable[str] | None = None) -> list[Step]:
        """Steps carrying any of tags, plus their transitive dependencies.

        Dependencies are pulled in regardless of their own tags. An empty or
        None selection returns every step. Result keeps declaration order.

        Raises:
            UnknownDependency: A selected step (or one of its dependencies)
                names an unregistered dependency.
        """
        wanted = set(tags or ())
        if not wanted:
            return self.steps

        unknown = wanted - self.all_tags
        if unknown:
            logger.warning("No steps carry tags: %s", sorted(unknown))

        selected: set[str] = set()
        stack = [name for name, step in self._steps.items() if step.tags & wanted]
        while stack:
            name = stack.pop()
            if name in selected:
                continue
            selected.add(name)
            for dep in self._steps[name].dependencies:
                if dep not in self._steps:
                    raise UnknownDependency(name, dep)
                stack.append(dep)

        return [step for name, step in self._steps.items() if name in selected]

    @classmethod
    def from_plan_file(cls, path: Path) -> StepRegistry:
        """Load a registry from a JSON plan file.

        Raises:
            PlanFileError: Missing file, invalid JSON, schema violation,
                duplicate step names or unimportable actions.
        """
        path = Path(path).expanduser()
        if not path.is_file():
            raise PlanFileError(f"Plan file not found: {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            plan = PlanFile(**data)
        except json.JSONDecodeError as exc:
            raise PlanFileError(f"Plan file {path} is not valid JSON: {exc}") from exc
        except (ValidationError, TypeError) as exc:
            raise PlanFileError(f"Plan file {path} is invalid: {exc}") from exc

        registry = cls()
        for step_spec in plan.steps:
            try:
                registry.register(step_spec.to_step())
            except (RegistryError, ValueError) as exc:
                raise PlanFileError(str(exc)) from exc

        logger.info("Loaded %d steps from %s", len(registry), path)
        return registry


def _import_action(dotted_path: str) -> DeployAction:
    """Import a custom deploy action from a dotted path.

    Args:
        dotted_path: e.g. 'mypkg.deploy_actions.deploy_proxy'

    Returns:
        The async callable (deployer, step) -> address.
    """
    parts = dotted_path.rsplit(".", 1)
    if len(parts) != 2:
        raise PlanFileError(f"Invalid action path: {dotted_path}")
    module_path, attr_name = parts

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise PlanFileError(f"Cannot import module {module_path}: {exc}") from exc

    action = getattr(module, attr_name, None)
    if action is None:
        raise PlanFileError(f"Action {attr_name} not found in {module_path}")

    if not inspect.iscoroutinefunction(action):
        raise PlanFileError(f"{dotted_path} is not an async function")

    return action
