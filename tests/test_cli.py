import pytest

from anzip.__main__ import main


@pytest.fixture
def source_tree(tmp_path):
    root = tmp_path / "data"
    (root / "sub").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "a.txt").write_text("alpha")
    (root / "sub" / "b.txt").write_bytes(b"\x00\x01\x02")
    return root


def test_create_list_and_verify(tmp_path, source_tree, capsys):
    out = tmp_path / "out.zip"
    main(["create", str(out), str(source_tree)])
    assert "Created" in capsys.readouterr().out
    assert out.exists()

    main(["list", str(out)])
    assert capsys.readouterr().out.splitlines() == [
        "data/",
        "data/a.txt",
        "data/empty/",
        "data/sub/",
        "data/sub/b.txt",
    ]

    main(["verify", str(out)])
    assert capsys.readouterr().out.strip().endswith(": OK")


def test_create_without_dirs(tmp_path, source_tree, capsys):
    out = tmp_path / "out.zip"
    main(["create", "-q", "--no-dirs", str(out), str(source_tree)])
    assert capsys.readouterr().out == ""

    main(["list", str(out)])
    # parents of files are still implied
    assert capsys.readouterr().out.splitlines() == ["data/", "data/a.txt", "data/sub/", "data/sub/b.txt"]


def test_create_refuses_to_overwrite(tmp_path, source_tree):
    out = tmp_path / "out.zip"
    out.write_bytes(b"")
    with pytest.raises(SystemExit) as excinfo:
        main(["create", str(out), str(source_tree)])
    assert excinfo.value.code == 2


def test_missing_archive(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["list", str(tmp_path / "nope.zip")])
    assert excinfo.value.code == 2
    assert "File not found" in capsys.readouterr().err


def test_inspect(tmp_path, source_tree, capsys):
    out = tmp_path / "out.zip"
    main(["create", "-q", str(out), str(source_tree)])
    main(["inspect", str(out)])
    assert "data/sub/b.txt" in capsys.readouterr().out
