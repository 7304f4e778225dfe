"""Generate a file of random upper-case letters of a given size."""

import re
import sys

from ..fileutil import file_size, generate_sample_file

_INT = re.compile(r"\s*([+-]?\d+)")


def _atol(text):
    match = _INT.match(text)
    return int(match.group(1)) if match else 0


def main(argv=None):
    """Create the file named by the first argument with the size given by the second."""
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 2:
        raise SystemExit("usage: samplegen [filename] [size]")
    path, size = argv[0], _atol(argv[1])
    print(f"# Generating random file of {size} bytes: {path}...", end="", flush=True)
    generate_sample_file(path, size)
    actual = file_size(path)
    if actual != size:
        raise RuntimeError(f"Generated file has {actual} bytes instead of {size}.")
    print("OK")
    return 0