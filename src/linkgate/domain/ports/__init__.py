from .cache import CachePort
from .execution_context import ExecutionContextPort
from .media import MediaResolverPort, MediaServerPort
from .verification import ScriptUrlRegistryPort, ScriptVerificationStorePort

__all__ = [
    "CachePort",
    "ExecutionContextPort",
    "MediaResolverPort",
    "MediaServerPort",
    "ScriptUrlRegistryPort",
    "ScriptVerificationStorePort",
]
