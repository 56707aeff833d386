"""
Result catalog.

Resolves result keys to the user-facing descriptor (message, severity
class, description). The engine only looks keys up; display text lives
here so it can be replaced without touching any algorithm.
"""

from collections.abc import Mapping

from diastology.config.logging_config import get_logger
from diastology.models.node_models import ResultKey
from diastology.models.result_models import ResultDescriptor

logger = get_logger(__name__)


RESULTS: dict[ResultKey, ResultDescriptor] = {
    ResultKey.NORMAL: ResultDescriptor(
        message="Normal Diastolic Function",
        css_class="result-normal",
    ),
    ResultKey.AF_NORMAL: ResultDescriptor(
        message="Normal Filling Pressures",
        css_class="result-normal",
        description="Despite atrial fibrillation, filling pressures appear normal.",
    ),
    ResultKey.GRADE_1: ResultDescriptor(
        message="Grade I Diastolic Dysfunction",
        css_class="result-impaired",
        description="Impaired relaxation with NORMAL Filling Pressures.",
    ),
    ResultKey.IMPAIRED_NORMAL: ResultDescriptor(
        message="Impaired Relaxation, Normal Filling Pressures",
        css_class="result-impaired",
        description="Impaired relaxation with NORMAL Filling Pressures.",
    ),
    ResultKey.IMPAIRED_ELEVATED: ResultDescriptor(
        message="Impaired Diastolic Function with ELEVATED Filling Pressures",
        css_class="result-elevated",
        description="Impaired relaxation with ELEVATED Filling Pressures.",
    ),
    ResultKey.GRADE_2: ResultDescriptor(
        message="Grade II Diastolic Dysfunction",
        css_class="result-elevated",
        description="Pseudo-Normal Filling with ELEVATED Filling Pressures.",
    ),
    ResultKey.GRADE_3: ResultDescriptor(
        message="Grade III Diastolic Dysfunction",
        css_class="result-elevated",
        description="Restrictive Filling with ELEVATED Filling Pressures.",
    ),
    ResultKey.INDETERMINATE: ResultDescriptor(
        message="Indeterminate Diastolic Function",
        css_class="result-impaired",
        description="The diastolic function of the heart cannot be determined.",
    ),
    ResultKey.INSUFFICIENT_INFO: ResultDescriptor(
        message="Insufficient Information",
        css_class="result-impaired",
        description="There is insufficient information to determine diastolic function.",
    ),
    ResultKey.EXCLUDE: ResultDescriptor(
        message="Exclude Diastolic Function",
        css_class="result-impaired",
        description="Diastolic function should be excluded from the interpretation.",
    ),
}


class StaticResultCatalog:
    """In-memory result catalog."""

    def __init__(self, results: Mapping[ResultKey, ResultDescriptor] | None = None):
        self._results = dict(RESULTS if results is None else results)

    def __contains__(self, key: object) -> bool:
        return key in self._results

    def resolve(self, key: ResultKey | str) -> ResultDescriptor | None:
        """Descriptor for ``key``, or None when the catalog has no entry."""
        try:
            key = ResultKey(key)
        except ValueError:
            logger.warning("Unknown result key", result_key=str(key))
            return None
        return self._results.get(key)

    def keys(self) -> list[ResultKey]:
        return list(self._results)


# Singleton instance for dependency injection
_result_catalog: StaticResultCatalog | None = None


def get_result_catalog() -> StaticResultCatalog:
    """
    Get the result catalog singleton.

    Returns:
        The shared StaticResultCatalog instance.
    """
    global _result_catalog
    if _result_catalog is None:
        _result_catalog = StaticResultCatalog()
    return _result_catalog
