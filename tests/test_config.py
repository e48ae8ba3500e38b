import logging

import pytest

from pagemem.config import TRACE, ConfigError, load_config, parse_log_level

SAMPLE = """# memoria
PUERTO_ESCUCHA=8002
LOG_LEVEL=DEBUG
TAM_MEMORIA=4096
TAM_PAGINA=64
ENTRADAS_POR_TABLA=4
CANTIDAD_NIVELES=3
RETARDO_MEMORIA=1500
PATH_SWAPFILE=/tmp/swapfile.bin
PATH_INSTRUCCIONES=/home/utnso/scripts/
RETARDO_SWAP=15000
DUMP_PATH=/home/utnso/dump_files/
"""


def write(tmp_path, content):
    path = tmp_path / "memoria.config"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_full_config(tmp_path):
    config = load_config(write(tmp_path, SAMPLE))
    assert config.port == "8002"
    assert config.log_level == logging.DEBUG
    assert config.memory_size == 4096
    assert config.page_size == 64
    assert config.entries_per_table == 4
    assert config.levels == 3
    assert config.memory_delay == 1500
    assert config.swapfile_path == "/tmp/swapfile.bin"
    assert config.instructions_path == "/home/utnso/scripts/"
    assert config.swap_delay == 15000
    assert config.dump_path == "/home/utnso/dump_files/"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.config")


def test_missing_key(tmp_path):
    content = "\n".join(l for l in SAMPLE.splitlines() if not l.startswith("DUMP_PATH"))
    with pytest.raises(ConfigError, match="DUMP_PATH"):
        load_config(write(tmp_path, content))


def test_non_integer_value(tmp_path):
    with pytest.raises(ConfigError, match="TAM_PAGINA"):
        load_config(write(tmp_path, SAMPLE.replace("TAM_PAGINA=64", "TAM_PAGINA=abc")))


def test_zero_page_size(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write(tmp_path, SAMPLE.replace("TAM_PAGINA=64", "TAM_PAGINA=0")))


def test_comments_are_ignored(tmp_path):
    content = SAMPLE.replace("LOG_LEVEL=DEBUG", "#LOG_LEVEL=ERROR\nLOG_LEVEL=DEBUG")
    assert load_config(write(tmp_path, content)).log_level == logging.DEBUG


@pytest.mark.parametrize(
    "name, level",
    [
        ("TRACE", TRACE),
        ("DEBUG", logging.DEBUG),
        ("INFO", logging.INFO),
        ("WARNING", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("info", logging.INFO),
    ],
)
def test_parse_log_level(name, level):
    assert parse_log_level(name) == level


def test_parse_unknown_log_level():
    with pytest.raises(ConfigError):
        parse_log_level("VERBOSE")