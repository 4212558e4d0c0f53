"""Process, time, filesystem, string and number helpers."""

import os
import re
import shutil
import stat
import threading
import time
import traceback

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_TRIM_CHARS = " \t\r\n"
_THREAD_NAME_MAX = 15
_DIR_MODE = 0o775
_HEX_DIGITS = "0123456789ABCDEF"
_UINT64_MAX = (1 << 64) - 1

_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~="
)
_HEX_CHARS = frozenset(b"0123456789abcdefABCDEF")
_ASCII_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)

_C_SPACE = "[ \t\n\v\f\r]*"
_INT_PREFIX = re.compile(_C_SPACE + r"([+-]?)([0-9]*)")
_HEX_FLOAT = r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?[0-9]+)?"
_DEC_FLOAT = (
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|[+-]?(?:inf(?:inity)?|nan)"
)
_HEX_PREFIX = re.compile(_C_SPACE + "(" + _HEX_FLOAT + ")")
_DEC_PREFIX = re.compile(_C_SPACE + "(" + _DEC_FLOAT + ")", re.IGNORECASE)


# --- threads and clocks ---------------------------------------------------

def get_thread_id():
    """Return the operating-system id of the calling thread."""
    return threading.get_native_id()


def get_elapsed_ms():
    """Milliseconds on a monotonic clock."""
    return time.monotonic_ns() // 1_000_000


def get_current_ms():
    """Wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def get_current_us():
    """Wall-clock time in microseconds since the epoch."""
    return time.time_ns() // 1_000


def get_thread_name():
    """Name of the calling thread, at most 15 characters."""
    return threading.current_thread().name[:_THREAD_NAME_MAX]


def set_thread_name(name):
    """Rename the calling thread, keeping at most 15 characters."""
    threading.current_thread().name = name[:_THREAD_NAME_MAX]


# --- call stack -----------------------------------------------------------

def backtrace(size=64, skip=1):
    """Return the call stack innermost first, ``size`` frames at most, minus ``skip``."""
    frames = list(reversed(traceback.extract_stack()))[:size]
    return [f"{f.filename}:{f.lineno} {f.name}" for f in frames[skip:]]


def backtrace_to_string(size=64, skip=2, prefix=""):
    """Return the call stack as text, one frame per line, each line led by ``prefix``."""
    return "".join(f"{prefix}{line}\n" for line in backtrace(size, skip))


# --- case and time conversion ---------------------------------------------

def to_upper(name):
    """Upper-case the ASCII letters of ``name``."""
    return name.translate(_ASCII_UPPER)


def to_lower(name):
    """Lower-case the ASCII letters of ``name``."""
    return name.translate(_ASCII_LOWER)


def time_to_str(ts=None, fmt=DEFAULT_TIME_FORMAT):
    """Format epoch seconds (now if None) as local time."""
    return time.strftime(fmt, time.localtime(ts))


def str_to_time(text, fmt=DEFAULT_TIME_FORMAT):
    """Parse local time text into epoch seconds; raise ValueError if it does not match."""
    parsed = time.strptime(text, fmt)
    return int(time.mktime(time.struct_time(tuple(parsed)[:8] + (0,))))


# --- filesystem -----------------------------------------------------------

def list_all_files(path, suffix=""):
    """Recursively list regular files under ``path`` whose names end with ``suffix``."""
    files = []
    try:
        entries = sorted(os.scandir(path), key=lambda e: e.name)
    except OSError:
        return files
    for entry in entries:
        full = f"{path}/{entry.name}"
        if entry.is_dir(follow_symlinks=False):
            files.extend(list_all_files(full, suffix))
        elif entry.is_file(follow_symlinks=False):
            if entry.name.endswith(suffix):
                files.append(full)
    return files


def mkdir(dirname):
    """Create ``dirname`` and its parents; nothing happens if it already exists."""
    try:
        os.lstat(dirname)
        return
    except FileNotFoundError:
        pass
    os.makedirs(dirname, mode=_DIR_MODE, exist_ok=True)


def is_running_pidfile(pidfile):
    """Tell whether the process whose id is on the first line of ``pidfile`` is alive."""
    try:
        os.lstat(pidfile)
        with open(pidfile, encoding="utf-8", errors="replace") as fh:
            line = fh.readline().rstrip("\n")
    except OSError:
        return False
    if not line:
        return False
    pid = atoi(line)
    if pid <= 1:
        return False
    try:
        os.kill(pid, 0)
    except (OSError, OverflowError):
        return False
    return True


def rm(path):
    """Remove a file, link or directory tree; a missing path is not an error."""
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        return
    if stat.S_ISDIR(st.st_mode):
        shutil.rmtree(path)
    else:
        os.unlink(path)


def mv(src, dst):
    """Remove ``dst`` and rename ``src`` to it."""
    rm(dst)
    os.rename(src, dst)


def realpath(path):
    """Return the absolute path of an existing ``path`` with links resolved."""
    os.lstat(path)
    return os.path.realpath(path, strict=True)


def symlink(src, dst):
    """Remove ``dst`` and make it a symbolic link to ``src``."""
    rm(dst)
    os.symlink(src, dst)


def unlink(filename, exist=False):
    """Delete ``filename``; unless ``exist`` is true a missing file is ignored."""
    if not exist:
        try:
            os.lstat(filename)
        except FileNotFoundError:
            return
    os.unlink(filename)


def dirname(filename):
    """Part of the path before the last '/', '.' if there is none."""
    if not filename:
        return "."
    pos = filename.rfind("/")
    if pos == 0:
        return "/"
    if pos < 0:
        return "."
    return filename[:pos]


def basename(filename):
    """Part of the path after the last '/'."""
    return filename[filename.rfind("/") + 1:]


def open_for_read(filename, mode="r"):
    """Open ``filename`` for reading."""
    return open(filename, mode)


def open_for_write(filename, mode="w"):
    """Open ``filename`` for writing, creating its directory if needed."""
    try:
        return open(filename, mode)
    except FileNotFoundError:
        mkdir(dirname(filename))
        return open(filename, mode)


# --- number conversion ----------------------------------------------------

def to_char(text):
    """First byte of ``text`` as a signed 8-bit value, 0 when empty or None."""
    if not text:
        return 0
    raw = text.encode("utf-8", "surrogateescape") if isinstance(text, str) else bytes(text)
    first = raw[0]
    return first - 256 if first > 127 else first


def atoi(text):
    """Leading decimal integer of ``text`` as a signed 64-bit value, 0 if none."""
    if not text:
        return 0
    match = _INT_PREFIX.match(text)
    sign, digits = match.group(1), match.group(2)
    if not digits:
        return 0
    value = int(digits)
    if value > _UINT64_MAX:
        value = _UINT64_MAX
    elif sign == "-":
        value = -value & _UINT64_MAX
    return value - (1 << 64) if value >= (1 << 63) else value


def atof(text):
    """Leading floating-point number of ``text``, 0.0 if none."""
    if not text:
        return 0.0
    match = _HEX_PREFIX.match(text)
    if match:
        return float.fromhex(match.group(1))
    match = _DEC_PREFIX.match(text)
    if match:
        return float(match.group(1))
    return 0.0


# --- strings --------------------------------------------------------------

def url_encode(text, space_as_plus=True):
    """Percent-encode every byte outside A-Z a-z 0-9 - . _ ~ =."""
    out = []
    for byte in text.encode("utf-8", "surrogateescape"):
        if byte in _UNRESERVED:
            out.append(chr(byte))
        elif byte == 0x20 and space_as_plus:
            out.append("+")
        else:
            out.append("%" + _HEX_DIGITS[byte >> 4] + _HEX_DIGITS[byte & 0xF])
    return "".join(out)


def url_decode(text, space_as_plus=True):
    """Decode %XX escapes and, if asked, '+' as space."""
    raw = text.encode("utf-8", "surrogateescape")
    out = bytearray()
    i, end = 0, len(raw)
    while i < end:
        byte = raw[i]
        if byte == 0x2B and space_as_plus:
            out.append(0x20)
        elif (
            byte == 0x25
            and i + 2 < end
            and raw[i + 1] in _HEX_CHARS
            and raw[i + 2] in _HEX_CHARS
        ):
            out.append(int(raw[i + 1:i + 3], 16))
            i += 2
        else:
            out.append(byte)
        i += 1
    return out.decode("utf-8", "surrogateescape")


def trim(text, delimit=_TRIM_CHARS):
    """Strip characters in ``delimit`` from both ends."""
    return text.strip(delimit)


def trim_left(text, delimit=_TRIM_CHARS):
    """Strip characters in ``delimit`` from the start."""
    return text.lstrip(delimit)


def trim_right(text, delimit=_TRIM_CHARS):
    """Cut the string before its last character that is not in ``delimit``."""
    end = len(text.rstrip(delimit)) - 1
    if end < 0:
        return ""
    return text[:end]