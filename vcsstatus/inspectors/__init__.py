"""Repository inspectors, one per supported VCS."""

from vcsstatus.inspectors.base import RepositoryInspector
from vcsstatus.inspectors.git import GitInspector
from vcsstatus.inspectors.hg import MercurialInspector

__all__ = [
    "RepositoryInspector",
    "GitInspector",
    "MercurialInspector",
]
