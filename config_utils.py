"""
Configuration utilities for the retirement optimization engine.
Engine-wide assumptions and run settings, with JSON load/save.
"""
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from errors import InvalidInputError
from models import whole_number

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'engine_config.json'


@dataclass
class EngineConfig:
    """Assumptions and run settings shared by the optimizers"""
    # Monte Carlo
    num_simulations: int = 10_000
    comprehensive_simulations: int = 5_000
    random_seed: Optional[int] = None
    max_workers: int = 1
    shard_size: int = 1_000

    # Return model
    withdrawal_rate: float = 0.04
    default_return: float = 0.07
    default_volatility: float = 0.15
    risk_free_rate: float = 0.02
    timeline_return: float = 0.07

    # Orchestration
    default_risk_tolerance: str = "moderate"
    review_interval_days: int = 90

    def __post_init__(self):
        for name in ('num_simulations', 'comprehensive_simulations', 'max_workers', 'shard_size',
                     'review_interval_days'):
            setattr(self, name, whole_number(getattr(self, name), name))
        if self.random_seed is not None:
            self.random_seed = whole_number(self.random_seed, 'random_seed')
        for name in ('num_simulations', 'comprehensive_simulations', 'max_workers', 'shard_size'):
            if getattr(self, name) <= 0:
                raise InvalidInputError(f"{name} must be positive, got {getattr(self, name)}")
        if not 0 < self.withdrawal_rate <= 1:
            raise InvalidInputError(f"withdrawal_rate must be in (0, 1], got {self.withdrawal_rate}")
        if self.review_interval_days < 0:
            raise InvalidInputError("review_interval_days cannot be negative")


def config_from_dict(config_dict: Dict[str, Any]) -> EngineConfig:
    """Build an EngineConfig, dropping keys it does not define"""
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(config_dict) - known)
    if unknown:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))
    return EngineConfig(**{k: v for k, v in config_dict.items() if k in known})


def load_engine_config(path: str = DEFAULT_CONFIG_PATH) -> EngineConfig:
    """Load engine configuration, falling back to defaults when the file is absent"""
    if not os.path.exists(path):
        logger.debug("No config at %s, using defaults", path)
        return EngineConfig()
    with open(path, 'r') as f:
        config_dict = json.load(f)
    logger.debug("Loaded %d config keys from %s", len(config_dict), path)
    return config_from_dict(config_dict)


def save_engine_config(config: EngineConfig, path: str = DEFAULT_CONFIG_PATH) -> None:
    with open(path, 'w') as f:
        json.dump(asdict(config), f, indent=2)
