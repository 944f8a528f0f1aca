import random
from typing import Any, Mapping

from app.logging.logger import Log
from app.replacement.base import BaseGenerator
from app.replacement.generators import BUILTIN_GENERATORS

UNKNOWN_FUNCTION = "Unknown Function"
FUNCTION_ERROR = "Function Error"


class ReplacementRegistry:
    """Closed registry of named synthetic-value generators.

    Lookups never raise: a bad name or a failing generator is logged and a
    sentinel string is returned so one broken config entry cannot abort a
    processing pass. Configuration validation uses :meth:`builtin_names`
    to reject unknown names before the engine ever runs.
    """

    def __init__(
        self,
        pools: Mapping[str, Mapping[str, Any]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._generators: dict[str, BaseGenerator] = {
            cls.name: cls() for cls in BUILTIN_GENERATORS
        }
        self._pools = dict(pools or {})
        self._rng = rng or random.Random()

    @classmethod
    def builtin_names(cls) -> frozenset[str]:
        return frozenset(gen.name for gen in BUILTIN_GENERATORS)

    def names(self) -> list[str]:
        return sorted(self._generators)

    def has(self, name: str) -> bool:
        return name in self._generators

    def invoke(self, name: str, args: Mapping[str, Any] | None = None) -> str:
        """Run generator *name* with pool overrides merged under *args*."""
        generator = self._generators.get(name)
        if generator is None:
            Log.error(f"Unknown replacement function: {name}")
            return UNKNOWN_FUNCTION

        merged: dict[str, Any] = dict(self._pools.get(name, {}))
        merged.update(args or {})
        try:
            result = generator.generate(merged, self._rng)
        except Exception as exc:
            Log.error(f"Error executing function {name}: {exc}")
            return FUNCTION_ERROR
        Log.debug(f"Executed function {name}: {result}")
        return result
