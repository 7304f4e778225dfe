"""Terminal progress indicators."""

import sys

_WIDTH = 20


def progress_bar(done, total):
    """Redraw a progress bar at every 5% step; return the text drawn, or None."""
    if total <= 0:
        raise ValueError("Total must be positive.")
    ratio = done * 100 // total
    if ratio % 5 != 0:
        return None
    sys.stdout.write("\r")
    sys.stdout.flush()
    filled = max(0, min(ratio // 5, _WIDTH))
    bar = f"{ratio:3d}% [{'=' * filled}{' ' * (_WIDTH - filled)}]"
    sys.stdout.write(bar)
    sys.stdout.flush()
    return bar


def progress_counter(count):
    """Redraw a bracketed counter; return the text drawn."""
    sys.stdout.write("\r")
    sys.stdout.flush()
    text = f"[{count}]"
    sys.stdout.write(text)
    sys.stdout.flush()
    return text