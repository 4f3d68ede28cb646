"""List locations, local and HTTP stores, and YAML config for tada."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, Callable, Mapping, Protocol
from urllib.parse import unquote, urlsplit

import httpx
import yaml

from .metrics import DEFAULT_SIZE_POLICY, SIZE_POLICIES
from .models import Line, TodoStorageError
from .todotxt import parse_lines, serialize_lines

log = logging.getLogger(__name__)

TODO_NAMES = ("todo.txt", "TODO", "TODO.TXT", "ToDo", "ToDo.txt", "todo")
DONE_NAMES = ("done.txt", "DONE", "DONE.TXT", "Done", "Done.txt", "done")
HTTP_TIMEOUT = 30.0

DEFAULT_INTERACTIVE_ENABLED = True
DEFAULT_COUNT = 3
DEFAULT_SHOW_LINES = False


def _find_local(names: tuple[str, ...], cwd: Path) -> Path | None:
    for name in names:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def _home(env: Mapping[str, str]) -> Path:
    home = env.get("HOME")
    return Path(home) if home else Path.home()


def resolve_todo_location(
    explicit: str | None = None,
    *,
    local: bool = False,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> str:
    """Pick the todo list: ``--file``, ``--local``, ``TODO_FILE``, ``TODO_DIR``, then ``$HOME``."""
    env = os.environ if env is None else env
    if explicit:
        return explicit
    if local:
        base = (cwd or Path.cwd()).resolve()
        found = _find_local(TODO_NAMES, base)
        if found is None:
            raise TodoStorageError(f"No todo list found in {base}")
        return str(found)
    if env.get("TODO_FILE"):
        return env["TODO_FILE"]
    if env.get("TODO_DIR"):
        return str(Path(env["TODO_DIR"]) / "todo.txt")
    return str(_home(env) / "todo.txt")


def resolve_done_location(
    explicit: str | None = None,
    *,
    local: bool = False,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> str:
    env = os.environ if env is None else env
    if explicit:
        return explicit
    if local:
        base = (cwd or Path.cwd()).resolve()
        found = _find_local(DONE_NAMES, base)
        return str(found if found is not None else base / "done.txt")
    if env.get("DONE_FILE"):
        return env["DONE_FILE"]
    if env.get("TODO_DIR"):
        return str(Path(env["TODO_DIR"]) / "done.txt")
    return str(_home(env) / "done.txt")


class ListStore(Protocol):
    location: str

    def load(self) -> str: ...

    def save(self, text: str) -> None: ...

    def append(self, text: str) -> None: ...


def _atomic_write(target_path: Path, content: str) -> None:
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=target_path.parent, delete=False
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_path, target_path)
    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass


class LocalFileStore:
    def __init__(self, path: Path, missing_ok: bool = True) -> None:
        self.path = path
        self.location = str(path)
        self.missing_ok = missing_ok

    def load(self) -> str:
        if not self.path.exists():
            if self.missing_ok:
                log.debug("No list at %s; starting empty", self.path)
                return ""
            raise TodoStorageError(f"Todo list not found: {self.path}")
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TodoStorageError(f"Unable to read {self.path}: {exc}") from exc
        log.debug("Loaded %d bytes from %s", len(text), self.path)
        return text

    def save(self, text: str) -> None:
        try:
            _atomic_write(self.path, text)
        except OSError as exc:
            raise TodoStorageError(f"Unable to write {self.path}: {exc}") from exc
        log.debug("Saved %d bytes to %s", len(text), self.path)

    def append(self, text: str) -> None:
        existing = self.load() if self.path.exists() else ""
        if existing and not existing.endswith("\n"):
            existing += "\n"
        self.save(existing + text)


def http_headers(env: Mapping[str, str] | None = None) -> dict[str, str]:
    env = os.environ if env is None else env
    headers = {"User-Agent": env.get("TADA_HTTP_USER_AGENT") or "tada"}
    authorization = env.get("TADA_HTTP_AUTHORIZATION")
    if authorization:
        headers["Authorization"] = authorization
        headers["X-Tada-Authorization"] = authorization
    sender = env.get("TADA_HTTP_FROM")
    if sender:
        headers["From"] = sender
    return headers


class HttpStore:
    """A list held at an HTTP(S) URL: GET to load, PUT to save."""

    def __init__(
        self,
        url: str,
        *,
        missing_ok: bool = True,
        env: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self.location = url
        self.missing_ok = missing_ok
        self.headers = http_headers(env)
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(headers=self.headers, timeout=self.timeout, transport=self._transport)

    def load(self) -> str:
        log.debug("GET %s", self.location)
        try:
            with self._client() as client:
                response = client.get(self.location)
            if response.status_code == 404 and self.missing_ok:
                return ""
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TodoStorageError(f"Unable to fetch {self.location}: {exc}") from exc
        return response.text

    def save(self, text: str) -> None:
        log.debug("PUT %s (%d bytes)", self.location, len(text))
        try:
            with self._client() as client:
                response = client.put(
                    self.location,
                    content=text.encode("utf-8"),
                    headers={"Content-Type": "text/plain; charset=utf-8"},
                )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TodoStorageError(f"Unable to upload {self.location}: {exc}") from exc

    def append(self, text: str) -> None:
        self.save(self.load() + text)


def open_store(
    location: str,
    *,
    missing_ok: bool = True,
    env: Mapping[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> LocalFileStore | HttpStore:
    parts = urlsplit(location)
    scheme = parts.scheme.lower()
    if scheme in ("http", "https"):
        return HttpStore(location, missing_ok=missing_ok, env=env, transport=transport)
    if scheme == "file":
        return LocalFileStore(Path(unquote(parts.path)), missing_ok=missing_ok)
    if scheme and len(scheme) > 1:
        raise TodoStorageError(f"Unsupported list location: {location}")
    return LocalFileStore(Path(location).expanduser(), missing_ok=missing_ok)


def load_lines(store: ListStore) -> list[Line]:
    return parse_lines(store.load())


def save_lines(store: ListStore, lines: list[Line]) -> None:
    store.save(serialize_lines(lines))


def append_lines(store: ListStore, lines: list[Line]) -> None:
    if lines:
        store.append(serialize_lines(lines))


def config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    if env.get("TADA_CONFIG"):
        return Path(env["TADA_CONFIG"]).expanduser()
    if env.get("XDG_CONFIG_HOME"):
        return Path(env["XDG_CONFIG_HOME"]) / "tada" / "config.yaml"
    return _home(env) / ".config" / "tada" / "config.yaml"


def read_config(path: Path, warn: Callable[[str], None] | None = None) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        if warn is not None:
            warn(f"Unable to parse config at {path}. Falling back to defaults.")
        return {}
    if not isinstance(payload, dict):
        if warn is not None:
            warn(f"Invalid config format at {path}. Falling back to defaults.")
        return {}
    return payload


@dataclass(slots=True)
class Settings:
    interactive_enabled: bool = DEFAULT_INTERACTIVE_ENABLED
    size_policy: str = DEFAULT_SIZE_POLICY
    default_count: int = DEFAULT_COUNT
    show_lines: bool = DEFAULT_SHOW_LINES


def resolve_settings(
    path: Path | None = None,
    warn: Callable[[str], None] | None = None,
) -> Settings:
    path = config_path() if path is None else path
    data = read_config(path, warn=warn)
    defaults = Settings()

    def complain(message: str) -> None:
        if warn is not None:
            warn(message)

    for key in data.keys():
        if key != "settings":
            complain(f"Unsupported config key '{key}' in {path}. Ignoring.")

    raw = data.get("settings", {})
    if raw is None:
        return defaults
    if not isinstance(raw, dict):
        complain(f"Invalid settings section in {path}. Using defaults.")
        return defaults

    supported = {"interactive_enabled", "size_policy", "default_count", "show_lines"}
    for key in raw.keys():
        if key not in supported:
            complain(f"Unsupported settings key '{key}' in {path}. Ignoring.")

    settings = Settings()

    for key in ("interactive_enabled", "show_lines"):
        value = raw.get(key)
        if value is None:
            continue
        if not isinstance(value, bool):
            complain(f"Invalid settings.{key} in {path}. Using default '{getattr(defaults, key)}'.")
            continue
        setattr(settings, key, value)

    size_policy = raw.get("size_policy")
    if size_policy is not None:
        if isinstance(size_policy, str) and size_policy.lower() in SIZE_POLICIES:
            settings.size_policy = size_policy.lower()
        else:
            complain(f"Invalid settings.size_policy in {path}. Using default '{DEFAULT_SIZE_POLICY}'.")

    count = raw.get("default_count")
    if count is not None:
        if isinstance(count, int) and not isinstance(count, bool) and count > 0:
            settings.default_count = count
        else:
            complain(f"Invalid settings.default_count in {path}. Using default '{DEFAULT_COUNT}'.")

    return settings
