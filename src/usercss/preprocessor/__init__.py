from usercss.preprocessor.backends import (
    BackendMessage,
    CompileOutput,
    CompilerBackend,
    LessBackend,
    StylusBackend,
)
from usercss.preprocessor.cache import LRUCache
from usercss.preprocessor.detector import (
    PreprocessorDetection,
    detect_preprocessor,
    display_name,
    from_directive,
)
from usercss.preprocessor.engine import PreprocessorEngine, PreprocessResult

__all__ = [
    "PreprocessorDetection",
    "detect_preprocessor",
    "from_directive",
    "display_name",
    "LRUCache",
    "BackendMessage",
    "CompileOutput",
    "CompilerBackend",
    "LessBackend",
    "StylusBackend",
    "PreprocessorEngine",
    "PreprocessResult",
]
