from pathlib import Path

from autoclose.executable_names import derive_executable_names, name_variants


def _touch(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")


def test_missing_install_directory_returns_empty(tmp_path):
    assert derive_executable_names(None) == []
    assert derive_executable_names("") == []
    assert derive_executable_names(str(tmp_path / "absent")) == []


def test_scans_recursively_and_strips_extension(tmp_path):
    _touch(tmp_path / "FooBar.exe")
    _touch(tmp_path / "bin" / "x64" / "foo-bar_launcher.EXE")
    _touch(tmp_path / "readme.txt")

    names = derive_executable_names(str(tmp_path))

    assert "FooBar" in names
    assert "foo-bar_launcher" in names
    assert "readme" not in names


def test_variants_remove_and_replace_separators(tmp_path):
    _touch(tmp_path / "my-game_x.exe")

    names = derive_executable_names(str(tmp_path))

    assert "mygame_x" in names
    assert "my-gamex" in names
    assert "my game_x" in names
    assert "my-game x" in names


def test_name_variants_cover_space_removal():
    assert "FooBar" in name_variants("Foo Bar")


def test_custom_suffixes(tmp_path):
    _touch(tmp_path / "game.x86_64")
    _touch(tmp_path / "game.exe")

    names = derive_executable_names(str(tmp_path), suffixes=(".x86_64",))

    assert names.count("game") >= 1
    assert all(name.startswith("game") for name in names)


def test_enumeration_error_is_logged_not_raised(tmp_path, monkeypatch, caplog):
    _touch(tmp_path / "game.exe")

    def _boom(self, pattern):
        raise PermissionError("denied")

    monkeypatch.setattr(Path, "rglob", _boom)

    assert derive_executable_names(str(tmp_path)) == []
    assert "Error scanning game directory" in caplog.text
