"""Unit tests for file pools and file helpers."""

from pathlib import Path

import pytest

from abuild.files import FilePool, install, output_path, prefixed, temp_dir, temp_file, walk_files


def touch(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestFilePool:
    """Membership, ordering and derived pools."""

    def test_deduplicates_by_path_identity(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Relative, absolute and un-normalised spellings are one member."""
        monkeypatch.chdir(tmp_path)
        f = touch(tmp_path / "src" / "a.c")
        pool = FilePool([f, Path("src/a.c"), tmp_path / "src" / ".." / "src" / "a.c"])
        assert len(pool) == 1
        assert Path("src/a.c") in pool

    def test_union_has_no_duplicates(self, tmp_path: Path):
        a = FilePool([tmp_path / "a", tmp_path / "b"])
        b = FilePool([tmp_path / "b", tmp_path / "c"])
        union = a | b
        assert isinstance(union, FilePool)
        assert sorted(union) == [tmp_path / "a", tmp_path / "b", tmp_path / "c"]

    def test_iteration_is_lexicographic(self, tmp_path: Path):
        pool = FilePool([tmp_path / "z.o", tmp_path / "a.o", tmp_path / "m.o"])
        assert list(pool) == [tmp_path / "a.o", tmp_path / "m.o", tmp_path / "z.o"]

    def test_members_are_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        pool = FilePool([Path("x.c")])
        assert pool.first() == tmp_path / "x.c"

    def test_new_allocates_scratch_member(self, scratch_dir: Path):
        pool = FilePool()
        created = pool.new()
        assert created.exists()
        assert created.parent == scratch_dir
        assert created.name.startswith("abuild_pool_")
        assert created in pool

    def test_parents(self, tmp_path: Path):
        pool = FilePool([tmp_path / "inc" / "a.h", tmp_path / "inc" / "b.h", tmp_path / "sys" / "c.h"])
        assert list(pool.parents) == [tmp_path / "inc", tmp_path / "sys"]

    def test_expand_replaces_directories(self, tmp_path: Path):
        lib = tmp_path / "lib"
        touch(lib / "x.a")
        touch(lib / "nested" / "y.a")
        single = touch(tmp_path / "z.a")
        expanded = FilePool([lib, single]).expand()
        assert list(expanded) == [lib / "nested" / "y.a", lib / "x.a", single]

    def test_first_on_empty_pool_raises(self):
        with pytest.raises(LookupError, match="empty"):
            FilePool().first()

    def test_discard(self, tmp_path: Path):
        pool = FilePool([tmp_path / "a"])
        pool.discard(tmp_path / "a")
        assert len(pool) == 0


class TestPrefixedPool:
    def test_arguments(self, tmp_path: Path):
        pool = FilePool([tmp_path / "b", tmp_path / "a"])
        assert prefixed("-I", pool).arguments() == [f"-I{tmp_path / 'a'}", f"-I{tmp_path / 'b'}"]


class TestHelpers:
    """Scratch allocation, output paths and install."""

    def test_temp_file_and_dir(self, scratch_dir: Path):
        f = temp_file("req")
        d = temp_dir("dep")
        assert f.is_file() and f.name.startswith("abuild_req_") and f.suffix == ".tmp"
        assert d.is_dir() and d.parent == scratch_dir

    def test_output_path_creates_parents(self, tmp_path: Path):
        dest = output_path(tmp_path / "build" / "bin" / "app")
        assert dest.parent.is_dir()
        assert not dest.exists()

    def test_install_replaces_existing_file(self, tmp_path: Path):
        src = touch(tmp_path / "out.tmp", "new")
        dest = touch(tmp_path / "build" / "app", "old")
        install(src, dest)
        assert dest.read_text() == "new"
        assert not src.exists()

    def test_install_into_missing_directory(self, tmp_path: Path):
        src = touch(tmp_path / "out.tmp", "bin")
        dest = install(src, tmp_path / "build" / "bin")
        assert dest.read_text() == "bin"

    def test_install_refuses_directory_destination(self, tmp_path: Path):
        """An existing directory at the destination is never removed."""
        src = touch(tmp_path / "out.tmp", "bin")
        kept = touch(tmp_path / "build" / "keep.txt", "keep")
        with pytest.raises(IsADirectoryError):
            install(src, tmp_path / "build")
        assert kept.read_text() == "keep"
        assert src.exists()

    def test_walk_files_skips_directories(self, tmp_path: Path):
        tree = tmp_path / "tree"
        touch(tree / "b" / "x")
        touch(tree / "a")
        (tree / "empty").mkdir()
        assert list(walk_files(tree)) == [tree / "a", tree / "b" / "x"]
