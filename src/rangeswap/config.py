import tomllib
from pathlib import Path

import tomlkit
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rangeswap.constants import PIPS_DENOMINATOR
from rangeswap.logging import logger

CONFIG_DIR = Path.home() / ".config" / "rangeswap"
CONFIG_FILE = CONFIG_DIR / "config.toml"


class Settings(BaseSettings):
    """
    Defaults applied to newly created pools. Values may be overridden by environment variables with
    the `RANGESWAP_` prefix, e.g. `RANGESWAP_STRICT_LIQUIDITY=1`.
    """

    model_config = SettingsConfigDict(env_prefix="RANGESWAP_", validate_assignment=True)

    # Share of each swap or flash fee retained by the protocol, in pips
    protocol_fee_share: int = Field(default=100_000, ge=0, lt=PIPS_DENOMINATOR)

    # Raise LiquidityInsufficient instead of returning a partial fill when a swap runs out of
    # liquidity before its demand is served
    strict_liquidity: bool = False

    # Upper bound accepted for a pool's swap fee, in pips
    max_swap_fee: int = Field(default=100_000, gt=0, lt=PIPS_DENOMINATOR)

    # Size of the LRU caches wrapping the tick and sqrt price math
    math_cache_size: int = Field(default=512, ge=0)


def load_config_from_file(config_path: Path = CONFIG_FILE) -> Settings:
    return Settings.model_validate(
        tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings, config_path: Path = CONFIG_FILE) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        tomlkit.dumps(
            config.model_dump(),
        ),
    )
    logger.info(f"Saved configuration to {config_path}.")


settings = load_config_from_file(CONFIG_FILE) if CONFIG_FILE.exists() else Settings()
