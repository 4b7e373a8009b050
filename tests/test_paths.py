import pytest

from anzip.errors import DuplicatePathError, InvalidPathError
from anzip.paths import Entry, PathTree, iter_prefixes, normalize_path, validate_path


def test_normalize_converts_backslashes_and_one_leading_slash():
    assert normalize_path("dir\\sub\\file.txt") == "dir/sub/file.txt"
    assert normalize_path("/a/b") == "a/b"
    assert normalize_path("//a") == "/a"


@pytest.mark.parametrize(
    "path",
    ["", "/", "C:/windows/file.txt", "c:file", "a//b.txt", "//a/b", "\\\\server\\share", "a\x00b"],
)
def test_invalid_paths(path):
    with pytest.raises(InvalidPathError):
        validate_path(path, is_file=True)


def test_file_needs_a_name():
    with pytest.raises(InvalidPathError):
        validate_path("dir/", is_file=True)
    assert validate_path("dir/", is_file=False) == "dir/"


def test_prefixes_for_file_and_directory():
    assert iter_prefixes("a/b/c.txt", True) == [("a/", False), ("a/b/", False), ("a/b/c.txt", True)]
    assert iter_prefixes("a/b/", False) == [("a/", False), ("a/b/", False)]
    assert iter_prefixes("top", False) == [("top/", False)]


def _insert(tree, path, is_file, size=0):
    entry = Entry(path=path, is_file=is_file, size=size, offset=0, path_length=len(path.encode()))
    tree.insert(entry)
    return entry


def test_plan_skips_existing_prefixes():
    tree = PathTree()
    _insert(tree, "a/", False)
    assert tree.plan("a/b.txt", True) == [("a/b.txt", True)]
    assert tree.plan("a/", False) == []


def test_plan_rejects_duplicates_and_kind_clashes():
    tree = PathTree()
    _insert(tree, "a/", False)
    _insert(tree, "a/b.txt", True, 3)
    with pytest.raises(DuplicatePathError):
        tree.plan("a/b.txt", True)
    with pytest.raises(DuplicatePathError):
        tree.plan("a", True)
    with pytest.raises(DuplicatePathError):
        tree.plan("a/b.txt/c.txt", True)


def test_has_and_find_file():
    tree = PathTree()
    _insert(tree, "a/", False)
    f = _insert(tree, "a/b.txt", True, 3)
    assert tree.has("a") and tree.has("a/") and tree.has("/a/b.txt")
    assert not tree.has("b")
    assert tree.find_file(0) is f
    assert tree.find_file("a/b.txt") is f
    assert tree.find_file("a/") is None
    assert tree.find_file(1) is None
    assert tree.find_file(True) is None


def test_discard_keeps_order():
    tree = PathTree()
    a = _insert(tree, "a/", False)
    b = _insert(tree, "a/b.txt", True)
    c = _insert(tree, "a/c.txt", True)
    tree.discard(b)
    assert tree.entries == [a, c]
    assert tree.files == [c]
    assert tree.index_of(c) == 1
