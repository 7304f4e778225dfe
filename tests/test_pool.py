import threading

from rusp.pool import IdList


def test_ids_start_at_zero_and_increase():
    pool = IdList()
    assert [pool.add(name) for name in ("a", "b", "c")] == [0, 1, 2]
    assert len(pool) == 3


def test_get_returns_stored_value():
    pool = IdList()
    ident = pool.add("value")
    assert pool.get(ident) == "value"
    assert pool.get(ident + 1) is None


def test_remove_and_ids_not_reused():
    pool = IdList()
    first = pool.add("a")
    pool.remove(first)
    assert pool.get(first) is None
    assert len(pool) == 0
    assert pool.add("b") == first + 1


def test_remove_unknown_is_ignored():
    pool = IdList()
    pool.add("a")
    pool.remove(42)
    assert list(pool) == ["a"]


def test_iteration_follows_insertion_order():
    pool = IdList()
    for name in ("x", "y", "z"):
        pool.add(name)
    pool.remove(1)
    assert list(pool) == ["x", "z"]


def test_concurrent_adds_get_unique_ids():
    pool = IdList()
    ids = []
    lock = threading.Lock()

    def worker():
        for _ in range(100):
            ident = pool.add(object())
            with lock:
                ids.append(ident)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(set(ids)) == len(ids) == 800
    assert len(pool) == 800