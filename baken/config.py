import os
import logging
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from baken.constants import BOX_MAX_SELECTIONS, MAX_STAKE, MIN_STAKE_UNIT

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    min_unit: int = MIN_STAKE_UNIT
    max_stake: int = MAX_STAKE
    box_max_2: int = BOX_MAX_SELECTIONS[2]
    box_max_3: int = BOX_MAX_SELECTIONS[3]

    def box_max(self, required_picks: int) -> int:
        if required_picks == 2:
            return self.box_max_2
        if required_picks == 3:
            return self.box_max_3
        return BOX_MAX_SELECTIONS[required_picks]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def load_settings() -> EngineSettings:
    settings = EngineSettings(
        min_unit=_int_env("BAKEN_MIN_UNIT", MIN_STAKE_UNIT),
        max_stake=_int_env("BAKEN_MAX_STAKE", MAX_STAKE),
        box_max_2=_int_env("BAKEN_BOX_MAX_2", BOX_MAX_SELECTIONS[2]),
        box_max_3=_int_env("BAKEN_BOX_MAX_3", BOX_MAX_SELECTIONS[3]),
    )
    if settings.max_stake < settings.min_unit:
        raise ValueError("BAKEN_MAX_STAKE must be >= BAKEN_MIN_UNIT")
    logger.debug("Loaded engine settings %s", settings)
    return settings


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    return load_settings()
