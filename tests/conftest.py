# tests/conftest.py
import pytest


@pytest.fixture(autouse=True)
def isolated_git_config(tmp_path_factory, monkeypatch):
    """Keeps the developer's global git excludes file out of every walk."""
    config_home = tmp_path_factory.mktemp("xdg_config")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home


@pytest.fixture
def sample_tree(tmp_path):
    """
    A small project:
    1. plain source files (.py, .md)
    2. a hidden directory and a hidden file
    3. VCS metadata (.git/)
    4. a .gitignore excluding logs and build output
    """
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.py").write_text("print('main')\n", encoding="utf-8")
    (src / "utils.py").write_text("def util():\n    pass\n", encoding="utf-8")
    (tmp_path / "README.md").write_text("# Project\n", encoding="utf-8")

    hidden = tmp_path / ".hidden"
    hidden.mkdir()
    (hidden / "b.txt").write_text("hidden text\n", encoding="utf-8")
    (tmp_path / ".env").write_text("SECRET=1\n", encoding="utf-8")

    git_dir = tmp_path / ".git"
    git_dir.mkdir()
    (git_dir / "config").write_text("[core]\n", encoding="utf-8")

    (tmp_path / "app.log").write_text("ERROR: ...\n", encoding="utf-8")
    build = tmp_path / "build"
    build.mkdir()
    (build / "out.txt").write_text("artifact\n", encoding="utf-8")
    (tmp_path / ".gitignore").write_text("*.log\nbuild/\n", encoding="utf-8")

    return tmp_path
