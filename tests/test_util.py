import os
import threading
import time

import pytest

from netfiber import util


def test_current_ms_and_us_track_wall_clock():
    before = int(time.time() * 1000)
    ms = util.get_current_ms()
    us = util.get_current_us()
    after = int(time.time() * 1000) + 1
    assert before - 1 <= ms <= after
    assert ms * 1000 - 1000 <= us <= after * 1000 + 1000


def test_elapsed_ms_does_not_go_back():
    first = util.get_elapsed_ms()
    second = util.get_elapsed_ms()
    assert second >= first


def test_thread_id_is_native_id():
    assert util.get_thread_id() == threading.get_native_id()


def test_thread_name_truncated_to_fifteen():
    original = util.get_thread_name()
    try:
        util.set_thread_name("brand_new_thread")
        renamed = util.get_thread_name()
    finally:
        util.set_thread_name(original)
    assert renamed == "brand_new_threa"
    assert util.get_thread_name() == original


def test_to_upper_and_lower():
    assert util.to_upper("hello") == "HELLO"
    assert util.to_lower("HELLO") == "hello"
    assert util.to_upper("ab1é") == "AB1é"


def test_time_round_trip():
    text = "2021-06-12 08:30:15"
    assert util.time_to_str(util.str_to_time(text)) == text


def test_str_to_time_epoch_is_timezone_offset():
    assert util.str_to_time("1970-01-01 00:00:00") == time.timezone


def test_str_to_time_rejects_bad_text():
    with pytest.raises(ValueError):
        util.str_to_time("not a date")


def test_time_to_str_custom_format():
    ts = util.str_to_time("2020-02-03 04:05:06")
    assert util.time_to_str(ts, "%Y/%m/%d") == "2020/02/03"


def test_list_all_files_filters_suffix(tmp_path):
    (tmp_path / "a.cpp").write_text("x")
    (tmp_path / "b.h").write_text("x")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "c.cpp").write_text("x")
    base = str(tmp_path)
    assert util.list_all_files(base, ".cpp") == [f"{base}/a.cpp", f"{base}/sub/c.cpp"]
    assert sorted(util.list_all_files(base, "")) == sorted(
        [f"{base}/a.cpp", f"{base}/b.h", f"{base}/sub/c.cpp"]
    )


def test_list_all_files_missing_path(tmp_path):
    assert util.list_all_files(str(tmp_path / "nope"), ".cpp") == []


def test_backtrace_starts_at_caller():
    def inner():
        return util.backtrace_to_string(prefix="    ")

    lines = inner().splitlines()
    assert lines[0].startswith("    ")
    assert lines[0].endswith(" inner")


def test_backtrace_skip_zero_includes_itself():
    frames = util.backtrace(64, 0)
    assert frames[0].endswith(" backtrace")
    assert frames[1].endswith(" test_backtrace_skip_zero_includes_itself")


def test_backtrace_size_limits_frames():
    assert len(util.backtrace(3, 1)) == 2


def test_mkdir_nested(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    util.mkdir(str(target))
    assert target.is_dir()
    util.mkdir(str(target))
    assert target.is_dir()


def test_rm_tree_and_missing(tmp_path):
    root = tmp_path / "tree"
    (root / "x").mkdir(parents=True)
    (root / "x" / "f.txt").write_text("data")
    util.rm(str(root))
    assert not root.exists()
    util.rm(str(root))
    assert not root.exists()


def test_mv_replaces_destination(tmp_path):
    src = tmp_path / "src.txt"
    dst = tmp_path / "dst"
    src.write_text("new")
    dst.mkdir()
    util.mv(str(src), str(dst))
    assert dst.read_text() == "new"
    assert not src.exists()


def test_symlink_and_realpath(tmp_path):
    target = tmp_path / "target.txt"
    target.write_text("t")
    link = tmp_path / "link"
    link.write_text("old")
    util.symlink(str(target), str(link))
    assert os.readlink(link) == str(target)
    assert util.realpath(str(link)) == os.path.realpath(str(target))


def test_realpath_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        util.realpath(str(tmp_path / "missing"))


def test_unlink(tmp_path):
    path = tmp_path / "f"
    path.write_text("x")
    util.unlink(str(path))
    assert not path.exists()
    util.unlink(str(path))
    assert not path.exists()
    with pytest.raises(FileNotFoundError):
        util.unlink(str(path), True)


def test_open_for_write_creates_directory(tmp_path):
    path = tmp_path / "deep" / "dir" / "out.txt"
    with util.open_for_write(str(path), "w") as fh:
        fh.write("hello")
    with util.open_for_read(str(path), "r") as fh:
        assert fh.read() == "hello"


def test_open_for_read_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        util.open_for_read(str(tmp_path / "none.txt"), "r")


def test_is_running_pidfile(tmp_path):
    pidfile = tmp_path / "app.pid"
    assert util.is_running_pidfile(str(pidfile)) is False
    pidfile.write_text(f"{os.getpid()}\n")
    assert util.is_running_pidfile(str(pidfile)) is True
    pidfile.write_text("1\n")
    assert util.is_running_pidfile(str(pidfile)) is False
    pidfile.write_text("")
    assert util.is_running_pidfile(str(pidfile)) is False


@pytest.mark.parametrize(
    "path, expected",
    [("", "."), ("/a", "/"), ("a", "."), ("a/b/c", "a/b"), ("/usr/lib/", "/usr/lib")],
)
def test_dirname(path, expected):
    assert util.dirname(path) == expected


@pytest.mark.parametrize(
    "path, expected",
    [("", ""), ("a", "a"), ("a/b/c", "c"), ("a/", ""), ("/x.txt", "x.txt")],
)
def test_basename(path, expected):
    assert util.basename(path) == expected


def test_to_char():
    assert util.to_char("A") == 65
    assert util.to_char("") == 0
    assert util.to_char(None) == 0
    assert util.to_char("é") == -61


@pytest.mark.parametrize(
    "text, expected",
    [
        ("42", 42),
        ("  42abc", 42),
        ("-5", -5),
        ("+7", 7),
        ("", 0),
        (None, 0),
        ("abc", 0),
        ("99999999999999999999", -1),
        ("18446744073709551615", -1),
    ],
)
def test_atoi(text, expected):
    assert util.atoi(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("3.5", 3.5),
        ("3.5e2x", 350.0),
        ("  -0.25", -0.25),
        (".5", 0.5),
        ("1e", 1.0),
        ("0x1p3", 8.0),
        ("0xz", 0.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
    ],
)
def test_atof(text, expected):
    assert util.atof(text) == expected


def test_atof_infinity():
    assert util.atof("inf") == float("inf")


def test_url_encode():
    assert util.url_encode("a b") == "a+b"
    assert util.url_encode("a b", False) == "a%20b"
    assert util.url_encode("a=b&c") == "a=b%26c"
    assert util.url_encode("-._~Az09") == "-._~Az09"
    assert util.url_encode("中文") == "%E4%B8%AD%E6%96%87"
    assert util.url_encode("/?") == "%2F%3F"


def test_url_decode():
    assert util.url_decode("a+b%26c") == "a b&c"
    assert util.url_decode("a+b", False) == "a+b"
    assert util.url_decode("%E4%B8%AD%E6%96%87") == "中文"
    assert util.url_decode("100%") == "100%"
    assert util.url_decode("%4") == "%4"
    assert util.url_decode("%zz") == "%zz"


def test_url_round_trip():
    text = "title=test&sub[1]=1 two/ü"
    assert util.url_decode(util.url_encode(text)) == text
    assert util.url_decode(util.url_encode(text, False), False) == text


def test_trim():
    assert util.trim(" \tab c \r\n") == "ab c"
    assert util.trim("   ") == ""
    assert util.trim("xxabxx", "x") == "ab"


def test_trim_left():
    assert util.trim_left("  ab  ") == "ab  "
    assert util.trim_left("\n\n") == ""


def test_trim_right():
    assert util.trim_right("abc  ") == "ab"
    assert util.trim_right("   ") == ""
    assert util.trim_right("xyzzz", "z") == "x"