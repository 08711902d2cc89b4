"""Declarative chain configuration (YAML + Pydantic)."""

from guardchain.config.loader import builder_from_config, load_chain_config, parse_chain_config
from guardchain.config.schema import ChainConfig

__all__ = ["ChainConfig", "builder_from_config", "load_chain_config", "parse_chain_config"]
