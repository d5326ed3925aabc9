# src/pipeline/dag_builder.py — v2
"""DAG builder — resolve deployment steps into an execution order.

Produces a topologically sorted execution plan. Validates that every
dependency names a known step and rejects cycles, reporting the cycle
members. Steps with no ordering constraint keep their declaration order,
so reruns over the same step set always produce the same plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

import networkx as nx

from hubdeploy.core.errors import ConfigurationError, CyclicDependency, UnknownDependency
from hubdeploy.pipeline.step import Step

logger = logging.getLogger(__name__)


@dataclass
class ExecutionPlan:
    """Ordered execution plan for deployment steps.

    stages is a list of "levels": steps within a level have no mutual
    dependencies. Levels execute sequentially, and so do the steps inside
    a level (single control flow).
    """

    stages: list[list[Step]] = field(default_factory=list)

    @property
    def flat_order(self) -> list[Step]:
        """Return a flat topological ordering."""
        return [step for stage in self.stages for step in stage]

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.flat_order]

    @property
    def total_steps(self) -> int:
        return sum(len(stage) for stage in self.stages)


def build_plan(steps: Iterable[Step]) -> ExecutionPlan:
    """Build a staged execution plan from step declarations.

    Uses Kahn's algorithm with level detection. Within a level, steps are
    ordered by their position in the input.

    Raises:
        ConfigurationError: Duplicate step names.
        UnknownDependency: A dependency is not in the step set.
        CyclicDependency: The dependency relation has a cycle.
    """
    ordered = list(steps)
    if not ordered:
        return ExecutionPlan()

    position: dict[str, int] = {}
    by_name: dict[str, Step] = {}
    for idx, step in enumerate(ordered):
        if step.name in by_name:
            raise ConfigurationError(f"Duplicate step name: '{step.name}'")
        position[step.name] = idx
        by_name[step.name] = step

    for step in ordered:
        for dep in step.dependencies:
            if dep not in by_name:
                raise UnknownDependency(step.name, dep)

    in_degree: dict[str, int] = {name: 0 for name in by_name}
    dependents: dict[str, list[str]] = {name: [] for name in by_name}
    for step in ordered:
        # Repeated dependency names count once
        for dep in dict.fromkeys(step.dependencies):
            dependents[dep].append(step.name)
            in_degree[step.name] += 1

    stages: list[list[Step]] = []
    queue = [name for name in by_name if in_degree[name] == 0]
    processed = 0

    while queue:
        queue.sort(key=position.__getitem__)
        stages.append([by_name[name] for name in queue])
        next_queue: list[str] = []
        for name in queue:
            processed += 1
            for dependent in dependents[name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    next_queue.append(dependent)
        queue = next_queue

    if processed != len(by_name):
        remaining = [name for name in by_name if in_degree[name] > 0]
        raise CyclicDependency(_find_cycle(ordered, remaining))

    plan = ExecutionPlan(stages=stages)
    logger.info(
        "DAG built: %d steps in %d stages → %s",
        plan.total_steps,
        len(plan.stages),
        plan.step_names,
    )
    return plan


def resolve(steps: Iterable[Step]) -> list[Step]:
    """Order steps so every step follows all of its transitive dependencies."""
    return build_plan(steps).flat_order


def _find_cycle(steps: list[Step], remaining: list[str]) -> list[str]:
    """Extract one concrete cycle among the unprocessed steps."""
    graph = nx.DiGraph()
    for step in steps:
        if step.name not in remaining:
            continue
        for dep in step.dependencies:
            if dep in remaining:
                graph.add_edge(step.name, dep)
    try:
        edges = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return remaining
    cycle = [u for u, _ in edges]
    cycle.append(cycle[0])
    return cycle
