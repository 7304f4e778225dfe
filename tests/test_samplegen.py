import pytest

from rusp.apps.samplegen import main


def test_generates_file_of_requested_size(tmp_path):
    path = tmp_path / "sample.txt"
    assert main([str(path), "1234"]) == 0
    data = path.read_bytes()
    assert len(data) == 1234
    assert all(ord("A") <= byte <= ord("Z") for byte in data)


def test_zero_size(tmp_path):
    path = tmp_path / "zero.txt"
    assert main([str(path), "0"]) == 0
    assert path.read_bytes() == b""


def test_reports_progress(tmp_path, capsys):
    path = tmp_path / "out.txt"
    main([str(path), "10"])
    out = capsys.readouterr().out
    assert out.startswith("# Generating random file of 10 bytes: ")
    assert out.endswith("OK\n")


def test_replaces_existing_file(tmp_path):
    path = tmp_path / "again.txt"
    path.write_bytes(b"x" * 500)
    main([str(path), "20"])
    assert len(path.read_bytes()) == 20


def test_usage_error():
    with pytest.raises(SystemExit) as info:
        main(["only-name"])
    assert "usage" in str(info.value.code)


def test_negative_size_fails(tmp_path):
    with pytest.raises(RuntimeError):
        main([str(tmp_path / "neg.txt"), "-5"])