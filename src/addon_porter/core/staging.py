"""
Filesystem Staging Interface.

All pipeline I/O goes through the small `SourceTree` / `OutputTree` protocols
defined here. Paths are POSIX-style and relative to the tree root.

Implementations:
- `DiskTree`: backed by a directory on disk.
- `MemoryTree`: backed by a dictionary, used to exercise the rewriting core
  without touching the filesystem.

`clone_upstream` fetches the upstream addon collection with a shallow git clone.
"""

import posixpath
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from addon_porter.utils.console import log_info


class SourceTree(Protocol):
  """Read-only view over a tree of files."""

  def exists(self, path: str) -> bool: ...

  def is_dir(self, path: str) -> bool: ...

  def list_dir(self, path: str) -> List[str]: ...

  def walk(self, path: str) -> List[str]: ...

  def read_bytes(self, path: str) -> bytes: ...

  def read_text(self, path: str) -> str: ...


class OutputTree(Protocol):
  """Writable destination tree."""

  def write_bytes(self, path: str, data: bytes) -> None: ...

  def write_text(self, path: str, text: str) -> None: ...

  def remove(self, path: str) -> None: ...


def _normalize(path: str) -> str:
  clean = posixpath.normpath(path.replace("\\", "/")) if path else ""
  return "" if clean == "." else clean.lstrip("/")


class DiskTree:
  """
  A tree rooted at a directory on disk.

  Missing files surface as `FileNotFoundError` from the underlying I/O call.
  """

  def __init__(self, root: Union[str, Path]) -> None:
    self.root = Path(root)

  def _resolve(self, path: str) -> Path:
    rel = _normalize(path)
    return self.root / rel if rel else self.root

  def exists(self, path: str) -> bool:
    return self._resolve(path).exists()

  def is_dir(self, path: str) -> bool:
    return self._resolve(path).is_dir()

  def list_dir(self, path: str) -> List[str]:
    target = self._resolve(path)
    if not target.is_dir():
      return []
    return sorted(child.name for child in target.iterdir())

  def walk(self, path: str) -> List[str]:
    """
    Lists every file below `path`, relative to `path`, sorted.
    """
    base = self._resolve(path)
    if not base.is_dir():
      return []
    return sorted(p.relative_to(base).as_posix() for p in base.rglob("*") if p.is_file())

  def read_bytes(self, path: str) -> bytes:
    return self._resolve(path).read_bytes()

  def read_text(self, path: str) -> str:
    with open(self._resolve(path), "rt", encoding="utf-8", newline="") as f:
      return f.read()

  def write_bytes(self, path: str, data: bytes) -> None:
    target = self._resolve(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)

  def write_text(self, path: str, text: str) -> None:
    target = self._resolve(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "wt", encoding="utf-8", newline="") as f:
      f.write(text)

  def remove(self, path: str) -> None:
    """Deletes a file or directory tree. Missing paths are ignored."""
    target = self._resolve(path)
    if target.is_dir():
      shutil.rmtree(target)
    elif target.exists():
      target.unlink()

  def __repr__(self) -> str:
    return f"DiskTree({str(self.root)!r})"


class MemoryTree:
  """
  An in-memory tree. Directories are implied by file paths.

  Text is stored UTF-8 encoded so text and byte reads agree.
  """

  def __init__(self, files: Optional[Dict[str, Union[str, bytes]]] = None) -> None:
    self.files: Dict[str, bytes] = {}
    for path, content in (files or {}).items():
      self.write_bytes(path, content.encode("utf-8") if isinstance(content, str) else content)

  def exists(self, path: str) -> bool:
    return self.is_file(path) or self.is_dir(path)

  def is_file(self, path: str) -> bool:
    return _normalize(path) in self.files

  def is_dir(self, path: str) -> bool:
    prefix = _normalize(path)
    if not prefix:
      return True
    return any(name.startswith(prefix + "/") for name in self.files)

  def list_dir(self, path: str) -> List[str]:
    prefix = _normalize(path)
    prefix = prefix + "/" if prefix else ""
    children = {name[len(prefix) :].split("/", 1)[0] for name in self.files if name.startswith(prefix)}
    return sorted(children)

  def walk(self, path: str) -> List[str]:
    prefix = _normalize(path)
    prefix = prefix + "/" if prefix else ""
    return sorted(name[len(prefix) :] for name in self.files if name.startswith(prefix))

  def read_bytes(self, path: str) -> bytes:
    key = _normalize(path)
    if key not in self.files:
      raise FileNotFoundError(path)
    return self.files[key]

  def read_text(self, path: str) -> str:
    return self.read_bytes(path).decode("utf-8")

  def write_bytes(self, path: str, data: bytes) -> None:
    self.files[_normalize(path)] = data

  def write_text(self, path: str, text: str) -> None:
    self.write_bytes(path, text.encode("utf-8"))

  def remove(self, path: str) -> None:
    prefix = _normalize(path)
    for name in list(self.files):
      if name == prefix or name.startswith(prefix + "/"):
        del self.files[name]

  def __repr__(self) -> str:
    return f"MemoryTree({len(self.files)} files)"


def clone_upstream(url: str, dest: Path, branch: Optional[str] = None) -> Path:
  """
  Performs a shallow clone of the upstream addon collection.

  Any existing directory at `dest` is removed first.

  Args:
      url: Git remote URL.
      dest: Directory to clone into.
      branch: Optional branch name.

  Returns:
      Path: The clone directory.

  Raises:
      subprocess.CalledProcessError: If git exits with a non-zero status.
  """
  if dest.exists():
    shutil.rmtree(dest)
  cmd = ["git", "clone", "--depth=1"]
  if branch:
    cmd += ["-b", branch]
  cmd += [url, str(dest)]
  log_info(f"Cloning [path]{url}[/path] into [path]{dest}[/path]")
  subprocess.run(cmd, check=True, capture_output=True, text=True)
  return dest
