"""Mapping of repository-relative resource names onto storage object keys."""

from __future__ import annotations

from wagon.domain import PATH_SEPARATOR


def normalize_base_dir(base_dir: str, *, flatten: bool = True) -> str:
    """Reduce a repository base directory to the key prefix.

    With ``flatten`` every separator is removed, so ``/a/b`` becomes ``ab``.
    This collapses nested base paths to a single key segment; existing
    repositories rely on it, which is why it stays the default. Without
    ``flatten`` only leading and trailing separators are stripped and the
    nesting is kept.
    """
    if flatten:
        return base_dir.replace(PATH_SEPARATOR, "")
    return base_dir.strip(PATH_SEPARATOR)


def object_key(base_dir: str, resource_name: str, *, flatten: bool = True) -> str:
    """Build the storage key for ``resource_name`` under ``base_dir``.

    Leading separators of the resource name are dropped so ``/a.jar`` and
    ``a.jar`` address the same object.

    >>> object_key("/repo", "a/b.jar")
    'repo/a/b.jar'
    """
    prefix = normalize_base_dir(base_dir, flatten=flatten)
    return prefix + PATH_SEPARATOR + resource_name.lstrip(PATH_SEPARATOR)
