from .config import RuntimeConfig, load_runtime_config
from .controller import LocSimController
from .engine import SpoofingEngine
from .extractor import ExtractedCoordinate, extract_coordinate, parse_coordinate_text
from .reconcile import ReconciliationPolicy
from .runtime import LocSimRuntime, build_runtime
from .settings import LocSimSettings

__all__ = [
    "ExtractedCoordinate",
    "LocSimController",
    "LocSimRuntime",
    "LocSimSettings",
    "ReconciliationPolicy",
    "RuntimeConfig",
    "SpoofingEngine",
    "build_runtime",
    "extract_coordinate",
    "load_runtime_config",
    "parse_coordinate_text",
]
