from __future__ import annotations

from typing import Dict, List, Optional

from kalkulator.core.logging_config import logger

from .loader import load_definitions
from .models import FormConfig

_REGISTRY: Dict[str, FormConfig] = {}


def register(config: FormConfig) -> None:
    sid = config.id
    if not sid:
        raise ValueError("service id required")
    if sid in _REGISTRY:
        raise ValueError(f"Service type already registered: {sid}")
    _REGISTRY[sid] = config


def get(service_type: str) -> FormConfig:
    try:
        return _REGISTRY[service_type]
    except KeyError:
        raise KeyError(f"Unknown service type: {service_type}. Available: {list(_REGISTRY.keys())}")


def find(service_type: Optional[str]) -> Optional[FormConfig]:
    if not service_type:
        return None
    return _REGISTRY.get(service_type)


def all_configs() -> List[FormConfig]:
    return list(_REGISTRY.values())


def clear() -> None:
    _REGISTRY.clear()


def register_definitions(directory: Optional[str] = None) -> None:
    """Load every YAML definition once; already registered ids are left alone."""
    for config in load_definitions(directory):
        if config.id not in _REGISTRY:
            register(config)
    logger.info("forms_registered", services=sorted(_REGISTRY))
