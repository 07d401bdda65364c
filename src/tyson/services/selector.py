"""Random target selection."""

import random
import re
from typing import Optional, Sequence, Union

from tyson.errors import ConfigError, NoMatchError
from tyson.errors_catalog import actionable_error
from tyson.models import InstanceRecord


class TargetSelector:
    """Picks one matching virtual machine uniformly at random."""

    def __init__(self, logger):
        self.logger = logger

    def select(
        self,
        population: Sequence[InstanceRecord],
        name_pattern: Union[str, re.Pattern],
        group_scope: Optional[str],
        rng: random.Random,
    ) -> InstanceRecord:
        pattern = compile_pattern(name_pattern)

        if group_scope:
            scope = group_scope.lower()
            candidates = [m for m in population if m.resource_group.lower() == scope]
        else:
            candidates = list(population)

        # Fisher-Yates: every permutation is equally likely, so the first
        # match is uniform over all matches.
        for i in range(len(candidates) - 1, 0, -1):
            j = rng.randint(0, i)
            candidates[i], candidates[j] = candidates[j], candidates[i]

        for machine in candidates:
            if pattern.search(machine.name):
                self.logger.info("Found target %s.", machine.name)
                return machine

        scope_label = f"group '{group_scope}'" if group_scope else "all resource groups"
        raise NoMatchError(
            actionable_error("no_match", pattern=pattern.pattern, scope=scope_label)
        )


def compile_pattern(name_pattern: Union[str, re.Pattern]) -> re.Pattern:
    """Compile a name pattern, raising ConfigError when it is not a valid regex."""
    if not isinstance(name_pattern, str):
        return name_pattern
    try:
        return re.compile(name_pattern)
    except re.error as exc:
        raise ConfigError(
            actionable_error("invalid_regex", pattern=name_pattern, detail=str(exc))
        ) from exc
