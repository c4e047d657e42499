from dataclasses import dataclass
from decouple import config


@dataclass(frozen=True)
class EngineConfig:
    reading_threshold_percent: float = 10.0
    reading_fallback_seconds: float = 3.0
    advance_delay_seconds: float = 1.5

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        return cls(
            reading_threshold_percent=config('LEGAL_READING_THRESHOLD_PERCENT', default=10, cast=float),
            reading_fallback_seconds=config('LEGAL_READING_FALLBACK_SECONDS', default=3, cast=float),
            advance_delay_seconds=config('LEGAL_ADVANCE_DELAY_SECONDS', default=1.5, cast=float),
        )
