"""
Verifier configuration.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import dotenv

from .matcher import DEFAULT_DEPOSIT_PATTERN, compile_deposit_pattern

dotenv.load_dotenv()

STRATEGY_DIRECT = "direct"
STRATEGY_STRUCTURED = "structured"
STRATEGY_STRUCTURED_WITH_FALLBACK = "structured-with-fallback"
STRATEGIES = (STRATEGY_DIRECT, STRATEGY_STRUCTURED, STRATEGY_STRUCTURED_WITH_FALLBACK)

# Shipped inside the package as package data
DEFAULT_PROMPTS_FILE = str(Path(__file__).parent / "prompts.yaml")


@dataclass(frozen=True)
class VerifierConfig:
    """Settings for one TenancyVerifier"""
    strategy: str = STRATEGY_STRUCTURED_WITH_FALLBACK
    extraction_timeout_ms: int = 30000
    deposit_pattern: str = DEFAULT_DEPOSIT_PATTERN
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    fuzzy_threshold: Optional[int] = None
    prompts_file: str = DEFAULT_PROMPTS_FILE
    api_key: Optional[str] = None

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown strategy '{self.strategy}'. Expected one of: {', '.join(STRATEGIES)}"
            )
        if self.extraction_timeout_ms <= 0:
            raise ValueError("extraction_timeout_ms must be positive")
        if self.fuzzy_threshold is not None and not 0 <= self.fuzzy_threshold <= 100:
            raise ValueError("fuzzy_threshold must be between 0 and 100")
        compile_deposit_pattern(self.deposit_pattern)

    @property
    def extraction_timeout(self) -> float:
        """Backend timeout in seconds."""
        return self.extraction_timeout_ms / 1000.0

    @property
    def uses_backend(self) -> bool:
        return self.strategy != STRATEGY_DIRECT

    @classmethod
    def from_env(cls, **overrides) -> "VerifierConfig":
        """
        Build a config from environment variables (a .env file is honoured).

        Keyword overrides win over the environment.
        """
        fuzzy = os.getenv("TENANCY_FUZZY_THRESHOLD")
        values = {
            "strategy": os.getenv("TENANCY_STRATEGY", STRATEGY_STRUCTURED_WITH_FALLBACK),
            "extraction_timeout_ms": int(os.getenv("TENANCY_EXTRACTION_TIMEOUT_MS", "30000")),
            "deposit_pattern": os.getenv("TENANCY_DEPOSIT_PATTERN", DEFAULT_DEPOSIT_PATTERN),
            "model": os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            "fuzzy_threshold": int(fuzzy) if fuzzy else None,
            "prompts_file": os.getenv("TENANCY_PROMPTS_FILE", DEFAULT_PROMPTS_FILE),
            "api_key": os.getenv("OPENAI_API_KEY"),
        }
        values.update(overrides)
        return cls(**values)
