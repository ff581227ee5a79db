import pytest

from safe_edit.config import EditorSettings
from safe_edit.io.file_ops import FileOperations


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def write_file(workspace):
    """Create a file in the workspace and return its path as a string."""

    def _write(name: str, content: str) -> str:
        path = workspace / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8", newline="")
        return str(path)

    return _write


@pytest.fixture
def read_file():
    def _read(path: str) -> str:
        with open(path, encoding="utf-8", newline="") as handle:
            return handle.read()

    return _read


@pytest.fixture
def file_ops():
    return FileOperations()


@pytest.fixture
def history_dir(tmp_path):
    return str(tmp_path / "history")


@pytest.fixture
def settings(history_dir):
    return EditorSettings(history_dir=history_dir)
