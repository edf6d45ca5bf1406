"""
Tracker configuration (pluggable module-level defaults).

Applications set the defaults once at startup:

    from changetracking import TrackerConfig, set_default_config
    set_default_config(TrackerConfig(store_container_instance=False))

A ChangeTracker captures the default when it is constructed; pass ``config=``
to override it for one tracker.
"""
from dataclasses import dataclass
import logging
from typing import Optional

from changetracking.comparers import ValueComparer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackerConfig:
    """Defaults applied when a property descriptor leaves a choice open.

    Attributes:
        store_container_instance: Used for collection properties whose
            descriptor has ``store_container_instance=None``.
        default_comparer: Used for properties with no explicit comparer.
            For collection properties it compares elements.
    """
    store_container_instance: bool = True
    default_comparer: Optional[ValueComparer] = None


_DEFAULT_CONFIG = TrackerConfig()
_default_config: TrackerConfig = _DEFAULT_CONFIG


def set_default_config(config: TrackerConfig) -> None:
    """Set the config new trackers use when none is passed."""
    global _default_config
    _default_config = config
    logger.debug(f"Default tracker config set to {config}")


def get_default_config() -> TrackerConfig:
    return _default_config


def reset_default_config() -> None:
    """Restore the built-in defaults. Mostly useful in tests."""
    set_default_config(_DEFAULT_CONFIG)
