from rusp.mathutil import ULONG_MAX, md5_number, random_bit, random_ul


def test_random_ul_in_range():
    values = [random_ul() for _ in range(50)]
    assert all(0 <= value < ULONG_MAX for value in values)


def test_random_bit_extremes():
    assert not any(random_bit(0.0) for _ in range(200))
    assert all(random_bit(1.0) for _ in range(200))


def test_random_bit_is_bool():
    assert random_bit(0.5) in (True, False)


def test_md5_number_of_empty_string():
    # MD5("") = d41d8cd98f00b204e9800998ecf8427e; the first decimal digit
    # of each of the sixteen digest bytes forms the number.
    assert md5_number("") == 2212101421912261


def test_md5_number_is_deterministic():
    values = {md5_number("127.0.0.1:55000") for _ in range(5)}
    assert len(values) == 1


def test_md5_number_has_at_most_sixteen_digits():
    for text in ("", "a", "hello world", "10.0.0.1:1"):
        assert 0 <= md5_number(text) < 10**16


def test_md5_number_differs_between_inputs():
    assert md5_number("a") != md5_number("b")