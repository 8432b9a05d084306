# --- Shared helpers for the translator bot ---

from typing import Any, Callable, Iterable, Tuple

from logging_config import get_logger

# Get logger for this module
logger = get_logger(__name__)

Strategy = Tuple[str, Callable[[], Any]]


class AllStrategiesFailed(Exception):
    """Every candidate in an ordered fallback list failed."""

    def __init__(self, what: str, errors):
        self.errors = errors
        super().__init__(f"{what}: all {len(errors)} attempts failed")


def first_success(what: str, strategies: Iterable[Strategy], accept: Callable[[Any], bool] = bool) -> Any:
    """
    Run (label, callable) candidates in order and return the first accepted result.

    A candidate fails by raising or by returning a value `accept` rejects
    (falsy by default). Raises AllStrategiesFailed when none succeeds.
    """
    errors = []
    for label, attempt in strategies:
        try:
            result = attempt()
        except Exception as e:
            logger.warning(f"{what}: {label} failed ({e})")
            errors.append((label, e))
            continue
        if accept(result):
            if errors:
                logger.info(f"{what}: succeeded with {label} after {len(errors)} failure(s)")
            return result
        logger.warning(f"{what}: {label} returned nothing usable")
        errors.append((label, None))
    raise AllStrategiesFailed(what, errors)


def shorten(text: str, limit: int = 80) -> str:
    """Single-line preview for log messages."""
    flat = " ".join((text or "").split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."
