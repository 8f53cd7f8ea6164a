from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UserCSSOptions:
    enable_preprocessors: bool = True
    max_file_size: int = 1024 * 1024  # characters
    cache_size: int = 100
    extract_domains: bool = True
    extract_variables: bool = True
    extract_assets: bool = True
    heuristic_threshold: float = 0.5
    stylus_executable: str = "stylus"
    stylus_timeout: float = 10.0  # seconds
