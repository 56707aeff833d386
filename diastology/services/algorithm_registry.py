"""
Algorithm registry.

Holds the validated algorithm definitions, keyed by id, in registration
order. Definitions are validated once when registered and are shared
read-only by every session afterwards.
"""

from collections.abc import Iterable

from diastology.config.logging_config import get_logger
from diastology.exceptions import AlgorithmNotFoundError
from diastology.models.algorithm_models import Algorithm, AlgorithmMetadata
from diastology.services.graph_validator import validate_algorithm
from diastology.services.result_catalog import StaticResultCatalog

logger = get_logger(__name__)


class AlgorithmRegistry:
    """Lookup of algorithm definitions by id."""

    def __init__(
        self,
        algorithms: Iterable[Algorithm] | None = None,
        catalog: StaticResultCatalog | None = None,
    ):
        """
        Initialize the registry.

        Args:
            algorithms: Definitions to register. If None, loads the built-in set.
            catalog: Result catalog used to check result keys.
        """
        self._catalog = catalog
        self._algorithms: dict[str, Algorithm] = {}

        if algorithms is None:
            from diastology.algorithms import DEFAULT_ALGORITHMS
            algorithms = DEFAULT_ALGORITHMS

        for algorithm in algorithms:
            self.register(algorithm)

        logger.info("Algorithm registry initialized", algorithm_ids=self.ids())

    def register(self, algorithm: Algorithm) -> None:
        """
        Validate and register a definition, replacing any with the same id.

        Raises:
            GraphValidationError: If the definition is structurally invalid.
        """
        validate_algorithm(algorithm, self._catalog)
        self._algorithms[algorithm.id] = algorithm

    def __contains__(self, algorithm_id: object) -> bool:
        return algorithm_id in self._algorithms

    def find(self, algorithm_id: str) -> Algorithm | None:
        return self._algorithms.get(algorithm_id)

    def get(self, algorithm_id: str) -> Algorithm:
        """
        Get a definition by id.

        Raises:
            AlgorithmNotFoundError: If no definition is registered under the id.
        """
        algorithm = self._algorithms.get(algorithm_id)
        if algorithm is None:
            raise AlgorithmNotFoundError(algorithm_id)
        return algorithm

    def ids(self) -> list[str]:
        return list(self._algorithms)

    def list_metadata(self) -> list[AlgorithmMetadata]:
        return [algorithm.metadata() for algorithm in self._algorithms.values()]


# Singleton instance for dependency injection
_algorithm_registry: AlgorithmRegistry | None = None


def get_algorithm_registry() -> AlgorithmRegistry:
    """
    Get the algorithm registry singleton.

    Returns:
        The shared AlgorithmRegistry instance.
    """
    global _algorithm_registry
    if _algorithm_registry is None:
        _algorithm_registry = AlgorithmRegistry()
    return _algorithm_registry
