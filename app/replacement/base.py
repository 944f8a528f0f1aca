import random
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping


class BaseGenerator(ABC):
    """Contract for all synthetic-value generators."""

    name: ClassVar[str]

    @abstractmethod
    def generate(self, args: Mapping[str, Any], rng: random.Random) -> str:
        """Produce one synthetic value.

        Args:
            args: Generator arguments (candidate pools, formats). Missing
                  keys fall back to the generator's built-in pools.
            rng: Random source shared with the rest of the engine.

        Returns:
            The generated replacement string.
        """
