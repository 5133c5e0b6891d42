"""Closed registry binding check names to check implementations.

Checks register themselves with the :func:`check` decorator when
``oaslint.validation.checks`` is imported; the default registry is then
closed so no name can be bound at call time.
"""

import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from oaslint.models.rule import RuleDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredCheck:
    """A check implementation bound to its name.

    ``external`` checks depend on a comparison collaborator; they are
    coroutine functions called with a ``comparison`` keyword argument.
    """
    name: str
    func: Callable
    external: bool = False

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.func)


class CheckRegistry:
    """Mapping of check names to implementations."""

    def __init__(self):
        self._checks: dict[str, RegisteredCheck] = {}
        self._closed = False

    def register(self, name: str, func: Callable, external: bool = False) -> RegisteredCheck:
        if self._closed:
            raise RuntimeError(f"Registry is closed, cannot register check: {name}")
        if name in self._checks:
            raise ValueError(f"Check already registered: {name}")
        if external and not inspect.iscoroutinefunction(func):
            raise ValueError(f"External check must be a coroutine function: {name}")
        entry = RegisteredCheck(name, func, external)
        self._checks[name] = entry
        return entry

    def check(self, name: str, external: bool = False) -> Callable[[Callable], Callable]:
        """Decorator registering a check function under ``name``."""
        def decorator(func: Callable) -> Callable:
            self.register(name, func, external=external)
            return func
        return decorator

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, name: str) -> RegisteredCheck | None:
        return self._checks.get(name)

    def names(self) -> list[str]:
        return sorted(self._checks)

    def __contains__(self, name: object) -> bool:
        return name in self._checks

    def __len__(self) -> int:
        return len(self._checks)

    def partition(self, rules: Iterable[RuleDefinition]) -> tuple[list[tuple[RuleDefinition, RegisteredCheck]], list[RuleDefinition]]:
        """Split rules into runnable ``(rule, check)`` pairs and skipped rules.

        Catalog order is kept. Rules naming an unregistered check are skipped.
        """
        runnable: list[tuple[RuleDefinition, RegisteredCheck]] = []
        skipped: list[RuleDefinition] = []
        for rule in rules:
            entry = self._checks.get(rule.check_name)
            if entry is None:
                logger.debug(f"Skipping rule {rule.id}: no check named {rule.check_name}")
                skipped.append(rule)
            else:
                runnable.append((rule, entry))
        return runnable, skipped


_default_registry = CheckRegistry()

check = _default_registry.check


def get_default_registry() -> CheckRegistry:
    """The registry holding every bundled check, closed after loading."""
    if not _default_registry.closed:
        from oaslint.validation import checks  # noqa: F401  registers the bundled checks

        _default_registry.close()
    return _default_registry
