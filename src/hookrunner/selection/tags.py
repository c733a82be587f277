"""File type tags, the vocabulary behind ``types``, ``types_or`` and ``exclude_types``.

A file's tags combine what it is on disk (``file``, ``symlink``,
``executable``), what its bytes look like (``text`` or ``binary``) and what
its name or shebang says about it (``python``, ``json``, ``shell``...).

Adding a file type:
  1. Add the extension to EXTENSIONS (or the exact name to NAMES).
  2. That's it. ALL_TAGS picks it up, so configs may reference it.
"""

from __future__ import annotations

import os
import stat

TYPE_TAGS = frozenset({"file", "directory", "symlink", "socket"})
MODE_TAGS = frozenset({"executable", "non-executable"})
ENCODING_TAGS = frozenset({"binary", "text"})

EXTENSIONS: dict[str, frozenset[str]] = {
    "bash": frozenset({"text", "shell", "bash"}),
    "bat": frozenset({"text", "batch"}),
    "bmp": frozenset({"binary", "image", "bitmap"}),
    "c": frozenset({"text", "c"}),
    "cc": frozenset({"text", "c++"}),
    "cfg": frozenset({"text"}),
    "cpp": frozenset({"text", "c++"}),
    "cs": frozenset({"text", "c#"}),
    "css": frozenset({"text", "css"}),
    "csv": frozenset({"text", "csv"}),
    "cxx": frozenset({"text", "c++"}),
    "dart": frozenset({"text", "dart"}),
    "dockerfile": frozenset({"text", "dockerfile"}),
    "gif": frozenset({"binary", "image", "gif"}),
    "go": frozenset({"text", "go"}),
    "gz": frozenset({"binary", "gzip"}),
    "h": frozenset({"text", "header", "c", "c++"}),
    "hpp": frozenset({"text", "header", "c++"}),
    "htm": frozenset({"text", "html"}),
    "html": frozenset({"text", "html"}),
    "ico": frozenset({"binary", "icon"}),
    "ini": frozenset({"text", "ini"}),
    "ipynb": frozenset({"text", "jupyter", "json"}),
    "jar": frozenset({"binary", "zip", "jar"}),
    "java": frozenset({"text", "java"}),
    "jpeg": frozenset({"binary", "image", "jpeg"}),
    "jpg": frozenset({"binary", "image", "jpeg"}),
    "js": frozenset({"text", "javascript"}),
    "json": frozenset({"text", "json"}),
    "jsonc": frozenset({"text", "jsonc"}),
    "jsx": frozenset({"text", "jsx"}),
    "kt": frozenset({"text", "kotlin"}),
    "lua": frozenset({"text", "lua"}),
    "md": frozenset({"text", "markdown"}),
    "mjs": frozenset({"text", "javascript"}),
    "pdf": frozenset({"binary", "pdf"}),
    "php": frozenset({"text", "php"}),
    "pl": frozenset({"text", "perl"}),
    "png": frozenset({"binary", "image", "png"}),
    "proto": frozenset({"text", "proto"}),
    "py": frozenset({"text", "python"}),
    "pyi": frozenset({"text", "pyi"}),
    "pyx": frozenset({"text", "cython"}),
    "r": frozenset({"text", "r"}),
    "rb": frozenset({"text", "ruby"}),
    "rs": frozenset({"text", "rust"}),
    "rst": frozenset({"text", "rst"}),
    "scss": frozenset({"text", "scss"}),
    "sh": frozenset({"text", "shell", "sh"}),
    "sql": frozenset({"text", "sql"}),
    "svg": frozenset({"text", "image", "svg", "xml"}),
    "swift": frozenset({"text", "swift"}),
    "tar": frozenset({"binary", "tar"}),
    "tf": frozenset({"text", "terraform"}),
    "toml": frozenset({"text", "toml"}),
    "ts": frozenset({"text", "ts"}),
    "tsx": frozenset({"text", "tsx"}),
    "txt": frozenset({"text", "plain-text"}),
    "vue": frozenset({"text", "vue"}),
    "whl": frozenset({"binary", "wheel", "zip"}),
    "xml": frozenset({"text", "xml"}),
    "yaml": frozenset({"text", "yaml"}),
    "yml": frozenset({"text", "yaml"}),
    "zip": frozenset({"binary", "zip"}),
    "zsh": frozenset({"text", "shell", "zsh"}),
}

NAMES: dict[str, frozenset[str]] = {
    ".bashrc": frozenset({"text", "shell", "bash"}),
    ".editorconfig": frozenset({"text", "editorconfig"}),
    ".gitattributes": frozenset({"text", "gitattributes"}),
    ".gitignore": frozenset({"text", "gitignore"}),
    ".gitmodules": frozenset({"text", "gitmodules"}),
    ".pre-commit-config.yaml": frozenset({"text", "yaml"}),
    ".zshrc": frozenset({"text", "shell", "zsh"}),
    "CHANGELOG": frozenset({"text", "plain-text"}),
    "Dockerfile": frozenset({"text", "dockerfile"}),
    "Gemfile": frozenset({"text", "ruby"}),
    "LICENSE": frozenset({"text", "plain-text"}),
    "Makefile": frozenset({"text", "makefile"}),
    "Pipfile": frozenset({"text", "toml"}),
    "README": frozenset({"text", "plain-text"}),
    "makefile": frozenset({"text", "makefile"}),
    "setup.cfg": frozenset({"text", "ini"}),
}

INTERPRETERS: dict[str, frozenset[str]] = {
    "ash": frozenset({"shell", "ash"}),
    "bash": frozenset({"shell", "bash"}),
    "dash": frozenset({"shell", "dash"}),
    "node": frozenset({"javascript"}),
    "perl": frozenset({"perl"}),
    "python": frozenset({"python"}),
    "python2": frozenset({"python", "python2"}),
    "python3": frozenset({"python", "python3"}),
    "ruby": frozenset({"ruby"}),
    "sh": frozenset({"shell", "sh"}),
    "zsh": frozenset({"shell", "zsh"}),
}

ALL_TAGS: frozenset[str] = frozenset().union(
    TYPE_TAGS,
    MODE_TAGS,
    ENCODING_TAGS,
    *EXTENSIONS.values(),
    *NAMES.values(),
    *INTERPRETERS.values(),
)

# Byte values that occur in text files; anything else marks the file binary.
_TEXTCHARS = bytearray({7, 8, 9, 10, 11, 12, 13, 27} | set(range(0x20, 0x100)) - {0x7F})


def tags_from_filename(filename: str) -> frozenset[str]:
    """Tags implied by a file's name alone."""
    base = os.path.basename(filename)
    tags: set[str] = set()
    for part in (base, base.split(".", 1)[0]):
        if part in NAMES:
            tags |= NAMES[part]
            break
    _, dot, ext = base.rpartition(".")
    if dot:
        tags |= EXTENSIONS.get(ext.lower(), frozenset())
    return frozenset(tags)


def tags_from_interpreter(interpreter: str) -> frozenset[str]:
    """Map ``python3.12`` -> ``python3`` -> ``python`` until a known name matches."""
    name = os.path.basename(interpreter)
    while name:
        if name in INTERPRETERS:
            return INTERPRETERS[name]
        if name[-1] not in "0123456789.":
            break
        name = name[:-1]
    return frozenset()


def parse_shebang(path: str) -> tuple[str, ...]:
    """Return the shebang command of an executable, or an empty tuple."""
    with open(path, "rb") as f:
        if f.read(2) != b"#!":
            return ()
        first_line = f.readline(1024)
    try:
        text = first_line.decode("utf-8")
    except UnicodeDecodeError:
        return ()
    parts = tuple(text.split())
    if parts and os.path.basename(parts[0]) == "env":
        parts = parts[1:]
        if parts and parts[0] == "-S":
            parts = parts[1:]
    return parts


def is_text(path: str) -> bool:
    with open(path, "rb") as f:
        chunk = f.read(1024)
    return not bool(chunk.translate(None, _TEXTCHARS))


def tags_from_path(path: str) -> frozenset[str]:
    """Compute every tag for ``path``.

    Raises:
        OSError: if the path does not exist or cannot be read. Callers
            decide whether that is an error; the file selector drops it.
    """
    st = os.lstat(path)
    mode = st.st_mode
    if stat.S_ISDIR(mode):
        return frozenset({"directory"})
    if stat.S_ISLNK(mode):
        return frozenset({"symlink"})
    if stat.S_ISSOCK(mode):
        return frozenset({"socket"})

    tags = {"file"}
    executable = os.access(path, os.X_OK)
    tags.add("executable" if executable else "non-executable")
    by_name = tags_from_filename(path)
    tags |= by_name

    if executable and not by_name:
        shebang = parse_shebang(path)
        if shebang:
            tags |= tags_from_interpreter(shebang[0])

    if not tags & ENCODING_TAGS:
        tags.add("text" if is_text(path) else "binary")

    return frozenset(tags)
