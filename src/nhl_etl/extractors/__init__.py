from importlib import import_module
from typing import Dict

from .base import EndpointSpec, build_extractor

ENDPOINT_MODULES = [
    "schedule",
    "draft_picks",
]


def build_registry(config_endpoints: Dict) -> Dict[str, EndpointSpec]:
    registry = {}
    for mod_name in ENDPOINT_MODULES:
        mod = import_module(f"nhl_etl.extractors.{mod_name}")
        spec = mod.get_spec(config_endpoints)
        registry[spec.name] = spec
    return registry


__all__ = ["EndpointSpec", "build_extractor", "build_registry"]
