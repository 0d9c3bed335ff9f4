"""
Virtual module resolver.

F# files never exist as JavaScript on disk. Imports of ``Foo.js`` are mapped
back to the project's ``Foo.fs`` and served from the artifact cache.
"""

from fable_vite.infra.exceptions import ResolutionError
from fable_vite.infra.observability import get_logger
from fable_vite.paths import normalize_path, resolve_relative, to_module_id, to_source_path
from fable_vite.project.state import ProjectState

logger = get_logger(__name__)


class VirtualModuleResolver:
    def __init__(self, state: ProjectState):
        self.state = state

    def resolve(self, specifier: str, importer: str | None = None) -> str | None:
        """Module id (``.js``) for an import of a project file, else None."""
        try:
            return self.resolve_source(specifier, importer)[1]
        except ResolutionError:
            return None

    def resolve_source(self, specifier: str, importer: str | None = None) -> tuple[str, str]:
        """
        Resolve to ``(source_path, module_id)``.

        Raises:
            ResolutionError: the specifier does not name a project source file
        """
        candidate = to_source_path(specifier)
        if candidate is None:
            raise ResolutionError(specifier, importer)

        candidate = normalize_path(candidate)

        # Dev-server requests arrive root-relative or relative to the importer
        if not self.state.is_source_file(candidate) and importer:
            candidate = resolve_relative(importer, candidate)

        if not self.state.is_source_file(candidate):
            raise ResolutionError(specifier, importer)

        module_id = to_module_id(candidate)
        logger.debug("virtual_module_resolved", specifier=specifier, source=candidate, module_id=module_id)
        return candidate, module_id

    def source_for(self, module_id: str) -> str | None:
        """Project source file behind a module id."""
        candidate = to_source_path(normalize_path(module_id))
        if candidate is None:
            return None
        candidate = normalize_path(candidate)
        if candidate in self.state.cache or self.state.is_source_file(candidate):
            return candidate
        return None

    def load(self, module_id: str) -> str | None:
        """Cached JavaScript for a module id; None means "not ours"."""
        source = self.source_for(module_id)
        if source is None:
            return None

        artifact = self.state.artifact(source)
        if artifact is None:
            return None

        if self.state.is_stale(source):
            logger.warning("serving_stale_artifact", source=source)
        return artifact.code

    def transform(self, module_id: str, code: str) -> str | None:
        """
        Pass-through for our modules.

        JSX post-processing of the generated code is left to the host's JSX
        plugin (configured through ``jsx_mode``).
        """
        if self.source_for(module_id) is None:
            return None
        return code
