# Catalog module: load the plugin repository list
#
# Main functions:
#   - replace_ssh_with_https(): rewrite a GitHub SSH URL to its HTTPS form
#   - load_catalog(): read {"projects": {name: url}} from a JSON file
#   - split_repository_urls(): parse a comma-separated override list
#   - resolve_repositories(): pick override or catalog, dedupe, filter
#
# Catalog format:
#   {
#     "projects": {
#       "alerting": "git@github.com:opensearch-project/alerting.git"
#     }
#   }

import json
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..domain.models import RepositoryEntry
from ..infra.logger import log_info, log_warning
from ..infra.paths import DEFAULT_CATALOG_FILE

SSH_PREFIX = "git@github.com:"
HTTPS_PREFIX = "https://github.com/"


class ConfigError(ValueError):
    """Invalid checker configuration (catalog, overrides, options)."""


def replace_ssh_with_https(url: str) -> str:
    """Rewrite ``git@github.com:owner/repo.git`` to ``https://github.com/owner/repo.git``.

    Any other URL form is returned unchanged, so applying it twice is a no-op.
    """
    if url.startswith(SSH_PREFIX):
        return HTTPS_PREFIX + url[len(SSH_PREFIX):]
    return url


def repository_name_from_url(url: str) -> str:
    """Derive a short name from the last path segment of a repository URL"""
    name = url.rstrip("/").replace(":", "/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name or url


def parse_catalog(content: str, source: str = "<catalog>") -> List[RepositoryEntry]:
    """Parse catalog JSON text into repository entries with HTTPS URLs.

    Raises:
        ConfigError: when the text is not JSON or lacks the ``projects`` mapping.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid catalog JSON in {source}: {exc}") from exc

    projects = data.get("projects") if isinstance(data, dict) else None
    if not isinstance(projects, dict):
        raise ConfigError(f"catalog {source} must contain a \"projects\" object")

    entries = []
    for name, url in projects.items():
        if not isinstance(url, str) or not url:
            raise ConfigError(f"catalog {source}: project {name!r} has no URL")
        entries.append(RepositoryEntry(name=str(name), url=replace_ssh_with_https(url)))
    return entries


def load_catalog(catalog_file: Optional[Path] = None) -> List[RepositoryEntry]:
    """Read the catalog file (the bundled one by default)"""
    path = Path(catalog_file) if catalog_file else DEFAULT_CATALOG_FILE

    if not path.exists():
        raise ConfigError(f"catalog file does not exist: {path}")
    if not path.is_file():
        raise ConfigError(f"catalog path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ConfigError(f"failed to read catalog {path}: {exc}") from exc

    return parse_catalog(content, source=str(path))


def split_repository_urls(value: str) -> List[str]:
    """Split an override list on ``,`` without trimming.

    Trailing empty items are dropped, like the JVM string splitter the
    override format comes from; everything else is kept verbatim.
    """
    urls = value.split(",")
    while urls and urls[-1] == "":
        urls.pop()
    return urls


def select_projects(entries: Sequence[RepositoryEntry], names: Iterable[str]) -> List[RepositoryEntry]:
    """Keep only the catalog entries named in ``names`` (catalog order)"""
    wanted = list(dict.fromkeys(names))
    known = {entry.name for entry in entries}
    unknown = [name for name in wanted if name not in known]
    if unknown:
        raise ConfigError(f"unknown project(s) in catalog: {', '.join(unknown)}")
    return [entry for entry in entries if entry.name in wanted]


def dedupe_repositories(entries: Sequence[RepositoryEntry]) -> List[RepositoryEntry]:
    seen = set()
    unique = []
    for entry in entries:
        if entry.url in seen:
            log_warning(f"duplicate repository URL ignored: {entry.url}")
            continue
        seen.add(entry.url)
        unique.append(entry)
    return unique


def resolve_repositories(
    repository_urls: Optional[str] = None,
    catalog_file: Optional[Path] = None,
    projects: Optional[Sequence[str]] = None,
) -> List[RepositoryEntry]:
    """Resolve the repositories to check.

    An override string replaces the catalog entirely; otherwise the catalog is
    loaded and optionally narrowed to ``projects``.
    """
    if repository_urls is not None:
        if projects:
            raise ConfigError("--project cannot be combined with a repository URL override")
        entries = [
            RepositoryEntry(name=repository_name_from_url(url), url=url)
            for url in split_repository_urls(repository_urls)
        ]
        log_info(f"Using {len(entries)} repository URL(s) from override")
    else:
        entries = load_catalog(catalog_file)
        if projects:
            entries = select_projects(entries, projects)
        log_info(f"Loaded {len(entries)} project(s) from catalog")

    entries = dedupe_repositories(entries)
    if not entries:
        raise ConfigError("no repositories to check")
    return entries
