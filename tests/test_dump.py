import os

import pytest

from pagemem.dump import dump_file_name, write_dump


def test_dump_file_name_format():
    assert dump_file_name("/tmp/dumps/", 7, 1700000000) == "/tmp/dumps/7-1700000000.dmp"


def test_write_dump_contents(tmp_path):
    directory = str(tmp_path) + os.sep
    pages = [b"abcd", b"efgh"]
    path = write_dump(directory, 3, pages)
    with open(path, "rb") as handle:
        assert handle.read() == b"".join(pages)


def test_write_dump_name(tmp_path):
    directory = str(tmp_path) + os.sep
    path = write_dump(directory, 12, [b"x"])
    name = os.path.basename(path)
    assert os.path.dirname(path) == str(tmp_path)
    assert name.startswith("12-")
    assert name.endswith(".dmp")
    assert name[len("12-") : -len(".dmp")].isdigit()


def test_write_dump_without_pages_is_empty(tmp_path):
    path = write_dump(str(tmp_path) + os.sep, 4, None)
    assert os.path.getsize(path) == 0


def test_write_dump_missing_directory_raises(tmp_path):
    with pytest.raises(OSError):
        write_dump(str(tmp_path / "missing") + os.sep, 1, [b"abcd"])