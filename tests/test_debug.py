from anzip import AnZip
from anzip.debug import dump_zip_structure, hex_dump, read_central_directory, verify_zip_structure


def _archive():
    archive = AnZip()
    archive.add("docs/readme.txt", "hello")
    archive.add("docs/empty/")
    archive.add("top.bin", bytes([0, 1, 2]))
    return archive.zip_sync()


def test_verify_accepts_built_archive():
    ok, errors = verify_zip_structure(_archive())
    assert ok, errors
    assert errors == []


def test_verify_reports_corrupted_payload():
    data = bytearray(_archive())
    # first payload byte of docs/readme.txt
    offset = 30 + len("docs/") + 30 + len("docs/readme.txt")
    assert data[offset : offset + 5] == b"hello"
    data[offset] ^= 0xFF

    ok, errors = verify_zip_structure(bytes(data))
    assert not ok
    assert errors == ["docs/readme.txt: CRC-32 mismatch"]


def test_verify_rejects_garbage():
    ok, errors = verify_zip_structure(b"not a zip file")
    assert not ok
    assert errors[0].startswith("Error opening ZIP file")


def test_central_directory_and_dump():
    data = _archive()
    headers = read_central_directory(data)
    assert [h.name for h in headers] == ["docs/", "docs/readme.txt", "docs/empty/", "top.bin"]
    assert [h.is_dir for h in headers] == [True, False, True, False]

    dump = dump_zip_structure(data)
    assert "Local File Headers: 4" in dump
    assert "Central Directory Headers: 4" in dump
    assert "docs/readme.txt (5 bytes)" in dump
    assert "End of Central Directory" in dump


def test_hex_dump_format():
    dump = hex_dump(b"PK\x03\x04abcdefghijklmnop", offset=0x10)
    lines = dump.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("00000010  50 4B 03 04 61")
    assert lines[0].endswith("PK..abcdefghijkl")
    assert lines[1].startswith("00000020  6D 6E 6F 70")
    assert hex_dump(b"abcdef", length=2).endswith("ab")
