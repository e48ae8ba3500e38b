"""Memory service configuration read from a ``KEY=VALUE`` file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Union

CONFIG_FILE = "memoria.config"
TRACE = 5

logging.addLevelName(TRACE, "TRACE")

_LOG_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class ConfigError(Exception):
    """Raised when the configuration is missing, incomplete or invalid."""


@dataclass(frozen=True)
class MemoryConfig:
    """Settings of the memory service."""

    port: str
    log_level: int
    memory_size: int
    page_size: int
    entries_per_table: int
    levels: int
    memory_delay: int
    swapfile_path: str
    instructions_path: str
    swap_delay: int
    dump_path: str


def parse_log_level(name: str) -> int:
    """Map a level name (TRACE, DEBUG, INFO, WARNING, ERROR) to a logging level."""
    try:
        return _LOG_LEVELS[name.strip().upper()]
    except KeyError:
        raise ConfigError(f"unknown log level {name!r}") from None


def _read_properties(path: Union[str, os.PathLike]) -> dict[str, str]:
    try:
        with open(path, encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    except OSError as exc:
        raise ConfigError(f"cannot read configuration file {os.fspath(path)!r}") from exc
    properties = {}
    for line in lines:
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        properties[key.strip()] = value.strip()
    return properties


def load_config(path: Union[str, os.PathLike] = CONFIG_FILE) -> MemoryConfig:
    """Read and validate the configuration file."""
    properties = _read_properties(path)

    def text(key: str) -> str:
        try:
            return properties[key]
        except KeyError:
            raise ConfigError(f"missing configuration key {key}") from None

    def number(key: str) -> int:
        value = text(key)
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"{key} must be an integer, got {value!r}") from None

    config = MemoryConfig(
        port=text("PUERTO_ESCUCHA"),
        log_level=parse_log_level(text("LOG_LEVEL")),
        memory_size=number("TAM_MEMORIA"),
        page_size=number("TAM_PAGINA"),
        entries_per_table=number("ENTRADAS_POR_TABLA"),
        levels=number("CANTIDAD_NIVELES"),
        memory_delay=number("RETARDO_MEMORIA"),
        swapfile_path=text("PATH_SWAPFILE"),
        instructions_path=text("PATH_INSTRUCCIONES"),
        swap_delay=number("RETARDO_SWAP"),
        dump_path=text("DUMP_PATH"),
    )
    if config.page_size <= 0:
        raise ConfigError("TAM_PAGINA must be positive")
    if config.memory_size < 0:
        raise ConfigError("TAM_MEMORIA must not be negative")
    return config