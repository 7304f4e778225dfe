import threading

from rusp.seqn import MAX_SEQN, next_seqn
from rusp.window import Window


def test_initial_positions():
    wnd = Window(0, 4000)
    assert (wnd.base, wnd.end, wnd.next) == (0, 4000, 0)
    assert wnd.space == 4000


def test_slide_next_reduces_space():
    wnd = Window(0, 4000)
    wnd.slide_next(1000)
    assert wnd.next == 1000
    assert wnd.space == wnd.end - wnd.next
    assert wnd.base == 0


def test_slide_moves_base_and_end():
    wnd = Window(0, 4000)
    wnd.slide(500)
    assert wnd.base == next_seqn(0, 500)
    assert wnd.end == next_seqn(4000, 500)
    assert wnd.next == 0


def test_match():
    wnd = Window(100, 200)
    assert wnd.match(150) == 0
    assert wnd.match(50) == -1
    assert wnd.match(200) == 1


def test_slide_wraps():
    wnd = Window(MAX_SEQN - 1, 10)
    wnd.slide(1)
    assert wnd.base == 0
    assert wnd.match(5) == 0


def test_wait_space_returns_when_available():
    wnd = Window(0, 1000)
    wnd.wait_space(1000)
    assert wnd.space == 1000


def test_wait_space_unblocks_after_slide():
    wnd = Window(0, 1000)
    wnd.slide_next(1000)
    done = threading.Event()

    def waiter():
        wnd.wait_space(500)
        done.set()

    thread = threading.Thread(target=waiter, daemon=True)
    thread.start()
    assert not done.wait(0.1)
    wnd.slide(500)
    assert done.wait(2)
    thread.join(2)
    assert wnd.space >= 500