from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from tada import storage
from tada.models import TodoStorageError
from tada.todotxt import parse_lines


def _write_config(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_resolve_todo_location_precedence(tmp_path: Path) -> None:
    env = {"HOME": str(tmp_path), "TODO_DIR": "/lists", "TODO_FILE": "/lists/mine.txt"}
    assert storage.resolve_todo_location("explicit.txt", env=env) == "explicit.txt"
    assert storage.resolve_todo_location(env=env) == "/lists/mine.txt"
    del env["TODO_FILE"]
    assert storage.resolve_todo_location(env=env) == str(Path("/lists") / "todo.txt")
    del env["TODO_DIR"]
    assert storage.resolve_todo_location(env=env) == str(tmp_path / "todo.txt")


def test_resolve_done_location_precedence(tmp_path: Path) -> None:
    env = {"HOME": str(tmp_path), "TODO_DIR": "/lists", "DONE_FILE": "/lists/old.txt"}
    assert storage.resolve_done_location(env=env) == "/lists/old.txt"
    del env["DONE_FILE"]
    assert storage.resolve_done_location(env=env) == str(Path("/lists") / "done.txt")
    assert storage.resolve_done_location(env={"HOME": str(tmp_path)}) == str(tmp_path / "done.txt")


def test_local_lookup_uses_working_directory(tmp_path: Path) -> None:
    (tmp_path / "TODO").write_text("thing\n", encoding="utf-8")
    found = storage.resolve_todo_location(local=True, env={}, cwd=tmp_path)
    assert found == str((tmp_path / "TODO").resolve())
    done = storage.resolve_done_location(local=True, env={}, cwd=tmp_path)
    assert done == str(tmp_path.resolve() / "done.txt")


def test_local_lookup_without_list_errors(tmp_path: Path) -> None:
    with pytest.raises(TodoStorageError, match="No todo list found"):
        storage.resolve_todo_location(local=True, env={}, cwd=tmp_path)


def test_local_store_round_trip(tmp_path: Path) -> None:
    store = storage.open_store(str(tmp_path / "todo.txt"))
    assert isinstance(store, storage.LocalFileStore)
    assert store.load() == ""
    storage.save_lines(store, parse_lines("(A) one\n\n# two\n"))
    assert (tmp_path / "todo.txt").read_text(encoding="utf-8") == "(A) one\n\n# two\n"
    storage.append_lines(store, parse_lines("three\n"))
    assert [line.text for line in storage.load_lines(store)] == ["(A) one", "", "# two", "three"]


def test_local_store_save_replaces_the_whole_file(tmp_path: Path) -> None:
    target = tmp_path / "todo.txt"
    target.write_text("old\n", encoding="utf-8")
    store = storage.LocalFileStore(target)
    store.save("new\n")
    assert target.read_text(encoding="utf-8") == "new\n"
    assert [path.name for path in tmp_path.iterdir()] == ["todo.txt"]


def test_local_store_failed_save_keeps_old_list(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    target = tmp_path / "todo.txt"
    target.write_text("keep me\n", encoding="utf-8")

    def _fail(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(storage.os, "replace", _fail)
    with pytest.raises(TodoStorageError, match="Unable to write"):
        storage.LocalFileStore(target).save("half")
    assert target.read_text(encoding="utf-8") == "keep me\n"
    assert [path.name for path in tmp_path.iterdir()] == ["todo.txt"]


def test_local_store_append_adds_missing_newline(tmp_path: Path) -> None:
    target = tmp_path / "done.txt"
    target.write_text("x old", encoding="utf-8")
    storage.LocalFileStore(target).append("x new\n")
    assert target.read_text(encoding="utf-8") == "x old\nx new\n"


def test_local_store_missing_file_can_be_an_error(tmp_path: Path) -> None:
    store = storage.LocalFileStore(tmp_path / "absent.txt", missing_ok=False)
    with pytest.raises(TodoStorageError, match="not found"):
        store.load()


def test_open_store_file_url(tmp_path: Path) -> None:
    store = storage.open_store((tmp_path / "todo.txt").as_uri())
    assert isinstance(store, storage.LocalFileStore)
    assert store.path == tmp_path / "todo.txt"


def test_open_store_rejects_unknown_scheme() -> None:
    with pytest.raises(TodoStorageError, match="Unsupported"):
        storage.open_store("ftp://example.com/todo.txt")


def test_http_store_sends_headers_and_round_trips() -> None:
    seen: list[httpx.Request] = []
    remote = {"text": "(A) remote task\n"}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "PUT":
            remote["text"] = request.content.decode("utf-8")
            return httpx.Response(204)
        return httpx.Response(200, text=remote["text"])

    env = {
        "TADA_HTTP_USER_AGENT": "tada-tests",
        "TADA_HTTP_AUTHORIZATION": "Bearer secret",
        "TADA_HTTP_FROM": "me@example.com",
    }
    store = storage.open_store(
        "https://example.com/todo.txt",
        env=env,
        transport=httpx.MockTransport(handler),
    )
    assert isinstance(store, storage.HttpStore)
    lines = storage.load_lines(store)
    assert lines[0].task is not None and lines[0].task.priority == "A"

    storage.save_lines(store, parse_lines("x done now\n"))
    assert remote["text"] == "x done now\n"

    get, put = seen
    assert get.headers["User-Agent"] == "tada-tests"
    assert get.headers["Authorization"] == "Bearer secret"
    assert get.headers["X-Tada-Authorization"] == "Bearer secret"
    assert get.headers["From"] == "me@example.com"
    assert put.method == "PUT"
    assert put.headers["Content-Type"].startswith("text/plain")


def test_http_store_closes_its_clients() -> None:
    class _CountingTransport(httpx.MockTransport):
        closed = 0

        def close(self) -> None:
            type(self).closed += 1

    transport = _CountingTransport(lambda request: httpx.Response(200, text="thing\n"))
    store = storage.HttpStore("http://example.com/todo.txt", env={}, transport=transport)
    store.load()
    store.save("thing\n")
    assert _CountingTransport.closed == 2


def test_http_store_missing_list_loads_empty() -> None:
    store = storage.HttpStore(
        "http://example.com/todo.txt",
        env={},
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )
    assert store.load() == ""


def test_http_store_errors_become_storage_errors() -> None:
    store = storage.HttpStore(
        "http://example.com/todo.txt",
        env={},
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    with pytest.raises(TodoStorageError, match="Unable to fetch"):
        store.load()


def test_config_path_precedence(tmp_path: Path) -> None:
    assert storage.config_path({"TADA_CONFIG": "/etc/tada.yaml"}) == Path("/etc/tada.yaml")
    assert storage.config_path({"XDG_CONFIG_HOME": "/xdg"}) == Path("/xdg/tada/config.yaml")
    assert storage.config_path({"HOME": str(tmp_path)}) == tmp_path / ".config" / "tada" / "config.yaml"


def test_resolve_settings_defaults_when_missing(tmp_path: Path) -> None:
    warnings: list[str] = []
    settings = storage.resolve_settings(tmp_path / "config.yaml", warn=warnings.append)
    assert settings == storage.Settings()
    assert warnings == []


def test_resolve_settings_reads_valid_values(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "config.yaml",
        (
            "settings:\n"
            "  interactive_enabled: false\n"
            "  size_policy: Medium\n"
            "  default_count: 5\n"
            "  show_lines: true\n"
        ),
    )
    warnings: list[str] = []
    settings = storage.resolve_settings(path, warn=warnings.append)
    assert settings == storage.Settings(
        interactive_enabled=False,
        size_policy="medium",
        default_count=5,
        show_lines=True,
    )
    assert warnings == []


def test_resolve_settings_invalid_values_warn_and_fall_back(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "config.yaml",
        (
            "colours: loud\n"
            "settings:\n"
            "  interactive_enabled: maybe\n"
            "  size_policy: huge\n"
            "  default_count: 0\n"
            "  theme: dark\n"
        ),
    )
    warnings: list[str] = []
    settings = storage.resolve_settings(path, warn=warnings.append)
    assert settings == storage.Settings()
    assert len(warnings) == 5
    assert any("Unsupported config key 'colours'" in warning for warning in warnings)
    assert any("Unsupported settings key 'theme'" in warning for warning in warnings)
    assert any("settings.interactive_enabled" in warning for warning in warnings)
    assert any("settings.size_policy" in warning for warning in warnings)
    assert any("settings.default_count" in warning for warning in warnings)


def test_resolve_settings_unparseable_yaml(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "config.yaml", "settings: [unclosed\n")
    warnings: list[str] = []
    assert storage.resolve_settings(path, warn=warnings.append) == storage.Settings()
    assert warnings and "Unable to parse config" in warnings[0]


def test_resolve_settings_non_mapping(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "config.yaml", "- just\n- a list\n")
    warnings: list[str] = []
    assert storage.resolve_settings(path, warn=warnings.append) == storage.Settings()
    assert warnings and "Invalid config format" in warnings[0]
