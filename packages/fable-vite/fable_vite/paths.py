"""Path helpers shared by the resolver, project state and hot-update code."""

import posixpath
import re

FSHARP_FILE_REGEX = re.compile(r"\.(fs|fsi)$")
PROJECT_FILE_REGEX = re.compile(r"\.fsproj$")

COMPILED_EXTENSION = ".js"
SOURCE_EXTENSION = ".fs"


def normalize_path(path: str) -> str:
    """Slash-consistent, dot-free form of ``path`` (``C:\\a\\..\\b.fs`` -> ``C:/b.fs``)."""
    if not path:
        return path
    return posixpath.normpath(path.replace("\\", "/"))


def is_fsharp_file(path: str) -> bool:
    return FSHARP_FILE_REGEX.search(path) is not None


def is_project_file(path: str) -> bool:
    return PROJECT_FILE_REGEX.search(path) is not None


def to_module_id(source_path: str) -> str:
    """``/proj/Foo.fs`` -> ``/proj/Foo.js``."""
    return FSHARP_FILE_REGEX.sub(COMPILED_EXTENSION, normalize_path(source_path))


def to_source_path(specifier: str) -> str | None:
    """
    Candidate F# source for a requested ``.js`` specifier.

    Files under fable_modules are emitted as ``Foo.fs.js``; those only lose the
    trailing ``.js``. Everything else swaps ``.js`` for ``.fs``.
    """
    specifier = specifier.strip()
    if not specifier.endswith(COMPILED_EXTENSION):
        return None
    stem = specifier[: -len(COMPILED_EXTENSION)]
    if is_fsharp_file(stem):
        return stem
    return stem + SOURCE_EXTENSION


def resolve_relative(importer: str, specifier: str) -> str:
    """
    Resolve ``specifier`` against the importer's directory.

    A root-relative specifier (``/Library.fs``) is treated as ``./Library.fs``
    because the dev-server serves the project root at ``/``.
    """
    importer_dir = posixpath.dirname(normalize_path(importer))
    relative = f".{specifier}" if specifier.startswith("/") else specifier
    return normalize_path(posixpath.join(importer_dir, relative))
