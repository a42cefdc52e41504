"""OpenAPI document aggregation.

The API documentation is split across YAML files: a root document
(``docs/main.yaml``) with the info, servers and shared components, and one
fragment per API module at ``src/api/<module>/<module>.yaml``. This module
merges them into a single OpenAPI document:

- Fragments are discovered in sorted module order
- A fragment that cannot be read or parsed is skipped with a warning
- ``paths``, ``components.schemas`` and ``components.securitySchemes`` are
  merged; on a name collision the later fragment wins and a warning is logged

``DocsCache`` keeps the merged document between requests in production
only, so documentation edits show up immediately during development.
"""

import copy
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any

import yaml
from loguru import logger

from src.core.config import get_settings
from src.core.types import OpenAPIDocument

YAML_INDENT = 2
YAML_WIDTH = 120

# Component sections merged from module fragments, with their log label
MERGED_COMPONENTS: tuple[tuple[str, str], ...] = (
    ("schemas", "schema"),
    ("securitySchemes", "security scheme"),
)


class OpenAPIDocumentError(Exception):
    """Raised when the root OpenAPI document cannot be loaded."""


@dataclass(frozen=True, slots=True)
class DocumentFragment:
    """A module's partial OpenAPI document."""

    module: str
    document: OpenAPIDocument


def load_yaml(path: Path) -> OpenAPIDocument:
    """Load a YAML file that must contain a mapping.

    Args:
        path: File to load.

    Returns:
        OpenAPIDocument: The parsed mapping.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the document is not a mapping.
    """
    with path.open(encoding="utf-8") as f:
        document = yaml.safe_load(f)

    if not isinstance(document, dict):
        msg = f"{path} does not contain a mapping"
        raise ValueError(msg)  # noqa: TRY004 - parse failure, not a caller type error

    return document


def discover_fragments(modules_dir: Path) -> list[DocumentFragment]:
    """Find and load the OpenAPI fragment of every API module.

    A module ``<name>`` contributes ``<modules_dir>/<name>/<name>.yaml``.
    Modules are visited in name order.

    Args:
        modules_dir: Directory holding one subdirectory per API module.

    Returns:
        list[DocumentFragment]: Loaded fragments, in discovery order.
    """
    if not modules_dir.is_dir():
        logger.warning("OpenAPI modules directory not found: {}", modules_dir)
        return []

    fragments = []
    for module_dir in sorted(p for p in modules_dir.iterdir() if p.is_dir()):
        fragment_path = module_dir / f"{module_dir.name}.yaml"
        if not fragment_path.is_file():
            continue

        try:
            document = load_yaml(fragment_path)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning("Could not load {}.yaml: {}", module_dir.name, e)
            continue

        logger.debug("Loaded OpenAPI document from module: {}", module_dir.name)
        fragments.append(DocumentFragment(module=module_dir.name, document=document))

    return fragments


def _merge_section(
    target: dict[str, Any],
    source: object,
    *,
    label: str,
    module: str,
) -> None:
    if not isinstance(source, dict):
        return

    for name, value in source.items():
        if name in target:
            logger.warning(
                "Duplicate {} detected in OpenAPI: {} (from module: {}). Overwriting...",
                label,
                name,
                module,
            )
        target[name] = value


def merge_openapi_documents(
    root: OpenAPIDocument, fragments: list[DocumentFragment]
) -> OpenAPIDocument:
    """Merge module fragments into the root document.

    The root document is not modified.

    Args:
        root: The root OpenAPI document.
        fragments: Module fragments, in the order they are applied.

    Returns:
        OpenAPIDocument: The combined document.
    """
    combined = copy.deepcopy(root)

    for fragment in fragments:
        paths = fragment.document.get("paths")
        if isinstance(paths, dict):
            if not isinstance(combined.get("paths"), dict):
                combined["paths"] = {}
            _merge_section(
                combined["paths"], paths, label="path", module=fragment.module
            )

        components = fragment.document.get("components")
        if not isinstance(components, dict):
            continue

        for section, label in MERGED_COMPONENTS:
            if not isinstance(components.get(section), dict):
                continue
            if not isinstance(combined.get("components"), dict):
                combined["components"] = {}
            if not isinstance(combined["components"].get(section), dict):
                combined["components"][section] = {}
            _merge_section(
                combined["components"][section],
                components[section],
                label=label,
                module=fragment.module,
            )

    return combined


def build_openapi_document(
    root_document: Path | None = None, modules_dir: Path | None = None
) -> OpenAPIDocument:
    """Build the combined OpenAPI document from the configured files.

    Args:
        root_document: Root document path. Defaults to the configured one.
        modules_dir: Modules directory. Defaults to the configured one.

    Returns:
        OpenAPIDocument: The combined document.

    Raises:
        OpenAPIDocumentError: If the root document cannot be loaded.
    """
    docs_config = get_settings().docs_config
    root_document = root_document or docs_config.root_document
    modules_dir = modules_dir or docs_config.modules_dir

    try:
        root = load_yaml(root_document)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.error("Error combining OpenAPI specs: {}", e)
        raise OpenAPIDocumentError(str(e)) from e

    return merge_openapi_documents(root, discover_fragments(modules_dir))


class _NoAliasDumper(yaml.SafeDumper):
    """YAML dumper that repeats shared values instead of emitting anchors."""

    def ignore_aliases(self, data: Any) -> bool:  # noqa: ANN401, ARG002
        return True


def to_yaml(document: OpenAPIDocument) -> str:
    """Serialize a document as YAML, keeping its key order.

    Args:
        document: The document to serialize.

    Returns:
        str: YAML text.
    """
    return yaml.dump(
        document,
        Dumper=_NoAliasDumper,
        indent=YAML_INDENT,
        width=YAML_WIDTH,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


class DocsCache:
    """Holds the combined document, reusing it only in production.

    Args:
        builder: Builds a fresh combined document.
        environment_provider: Returns the active environment name.
    """

    def __init__(
        self,
        builder: Callable[[], OpenAPIDocument] = build_openapi_document,
        environment_provider: Callable[[], str] | None = None,
    ) -> None:
        self._builder = builder
        self._environment_provider = environment_provider or (
            lambda: get_settings().environment
        )
        self._document: OpenAPIDocument | None = None
        self._lock = Lock()

    def get(self) -> OpenAPIDocument:
        """Return the combined document.

        Returns:
            OpenAPIDocument: The cached document in production, a fresh one otherwise.

        Raises:
            OpenAPIDocumentError: If the document cannot be built.
        """
        if self._environment_provider() != "production":
            return self._builder()

        with self._lock:
            if self._document is None:
                self._document = self._builder()
            return self._document

    def invalidate(self) -> None:
        """Drop the cached document so the next access rebuilds it."""
        with self._lock:
            self._document = None
