"""File and directory helpers; failures raise OSError or ValueError."""

import errno
import os
import random
import shutil
import string

DIR_PERM = 0o775
FILE_PERM = 0o664
_CHUNK = 1024
_SAMPLE_CHUNK = 65536


def generate_sample_file(path, size):
    """Write ``size`` random upper-case letters to ``path``, replacing it."""
    with open(path, "w", encoding="ascii") as handle:
        remaining = size
        while remaining > 0:
            count = min(remaining, _SAMPLE_CHUNK)
            handle.write("".join(random.choices(string.ascii_uppercase, k=count)))
            remaining -= count


def file_size(path):
    """Size of the file in bytes."""
    return os.stat(path).st_size


def is_equal_file(first, second):
    """Tell whether two files hold the same bytes, printing the first difference."""
    with open(first, "rb") as one, open(second, "rb") as two:
        offset = 0
        while True:
            chunk_one = one.read(_CHUNK)
            chunk_two = two.read(_CHUNK)
            if not chunk_one and not chunk_two:
                return True
            for index, (byte_one, byte_two) in enumerate(zip(chunk_one, chunk_two)):
                if byte_one != byte_two:
                    at = offset + index
                    print(
                        f"Diff (content): cone={chr(byte_one)} (at:{at}) "
                        f"ctwo={chr(byte_two)} (at:{at})"
                    )
                    return False
            if len(chunk_one) != len(chunk_two):
                longer_one = int(len(chunk_one) > len(chunk_two))
                print(f"Diff (size): rdone={longer_one} rdtwo={1 - longer_one}")
                return False
            offset += len(chunk_one)


def explore_directory(path):
    """Sorted entry names of a directory, including ``.`` and ``..``.

    Directories are marked with a trailing slash.
    """
    names = sorted([".", "..", *os.listdir(path)])
    return [name + "/" if is_directory(f"{path}/{name}") else name for name in names]


def is_file(path):
    """Tell whether ``path`` is a regular file; a missing path is not."""
    try:
        info = os.stat(path)
    except FileNotFoundError:
        return False
    return os.path.stat.S_ISREG(info.st_mode)


def rm_file(path):
    """Remove a file."""
    os.unlink(path)


def cp_file(src, dst):
    """Copy a file to a destination that must not exist yet."""
    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_TRUNC | getattr(os, "O_BINARY", 0)
    with open(src, "rb") as source:
        descriptor = os.open(dst, flags, FILE_PERM)
        with open(descriptor, "wb") as target:
            shutil.copyfileobj(source, target, _CHUNK)


def mv_file(src, dst):
    """Move a file by copying it and removing the source."""
    cp_file(src, dst)
    rm_file(src)


def filename(path):
    """Last component of ``path``.

    Raises ValueError when the path names no file.
    """
    if not path or path.endswith("/") or path in (".", ".."):
        raise ValueError(f"Path has no file name: {path!r}.")
    return path.rpartition("/")[2]


def is_directory(path):
    """Tell whether ``path`` is a directory; a missing path is not."""
    try:
        info = os.stat(path)
    except FileNotFoundError:
        return False
    return os.path.stat.S_ISDIR(info.st_mode)


def mk_directory(path):
    """Create a directory."""
    os.mkdir(path, DIR_PERM)


def rm_directory(path):
    """Remove a directory and everything below it."""
    for name in sorted(os.listdir(path)):
        child = f"{path}/{name}"
        if is_directory(child):
            rm_directory(child)
        elif is_file(child):
            rm_file(child)
    os.rmdir(path)


def cp_directory(src, dst):
    """Copy a directory tree to a destination that must not exist yet."""
    os.mkdir(dst, DIR_PERM)
    for name in sorted(os.listdir(src)):
        src_child = f"{src}/{name}"
        dst_child = f"{dst}/{name}"
        if is_directory(src_child):
            cp_directory(src_child, dst_child)
        elif is_file(src_child):
            cp_file(src_child, dst_child)


def mv_directory(src, dst):
    """Move a directory tree by copying it and removing the source."""
    cp_directory(src, dst)
    rm_directory(src)


def change_dir(path, change):
    """Return the working path after applying ``change`` to ``path``.

    ``..`` drops the last component, a relative name descends into an
    existing directory. Absolute changes raise ValueError; a missing
    directory raises NotADirectoryError.
    """
    if not change or change == "." or (path in ("/", ".") and change == ".."):
        return path
    if change == "..":
        cut = path.rfind("/")
        return path[:cut] if cut > 0 else ""
    if change.startswith("/"):
        raise ValueError(f"Cannot change to absolute directory: {change}.")
    candidate = f"{path}/{change}"
    if not is_directory(candidate):
        raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), candidate)
    return candidate