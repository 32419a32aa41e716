"""
Pure folder-tree algorithms.

Both functions work over an explicit ``id -> folder`` index built from the
flat per-user folder list, and both keep a visited set so that a corrupted
parent graph can never make them loop forever.
"""
import unicodedata
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from studio.common.constants import FolderConfig
from studio.schemas.folder import FolderTree


class FolderNode(Protocol):
    id: str
    parent_id: Optional[str]
    name: str
    created_at: datetime
    updated_at: datetime


def index_folders(folders: Iterable[FolderNode]) -> Dict[str, FolderNode]:
    return {folder.id: folder for folder in folders}


def is_descendant(
    folders_by_id: Mapping[str, FolderNode],
    ancestor_id: str,
    candidate_id: Optional[str],
) -> bool:
    """
    Check whether ``candidate_id`` is ``ancestor_id`` itself or lies below it.

    Walks up the parent chain from the candidate. Returns True when the walk
    reaches ``ancestor_id`` (moving the ancestor under the candidate would
    create a cycle). A revisited id ends the walk with False.
    """
    current_id = candidate_id
    visited = set()

    while current_id is not None:
        if current_id == ancestor_id:
            return True
        if current_id in visited:
            return False
        visited.add(current_id)

        current = folders_by_id.get(current_id)
        current_id = current.parent_id if current is not None else None

    return False


def collation_key(name: str) -> str:
    """Accent- and case-insensitive key, so "Éclair" sorts between "apple" and "Zebra"."""
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(char for char in decomposed if not unicodedata.combining(char)).casefold()


def sibling_sort_key(node: FolderTree):
    # Collated name first, then case-folded and exact name and id so ties stay stable
    return (collation_key(node.name), node.name.casefold(), node.name, node.id)


def build_folder_tree(
    folders: Sequence[FolderNode],
    image_counts: Mapping[str, int],
    parent_id: Optional[str] = None,
) -> List[FolderTree]:
    """
    Convert a flat folder list into a nested forest.

    Args:
        folders: All folders of one user, in any order.
        image_counts: Direct image count per folder id; missing ids count as 0.
        parent_id: Id whose children form the top level (None for the root).

    Returns:
        FolderTree nodes for the requested level, siblings sorted by name
        case-insensitively at every depth.
    """
    children_by_parent: Dict[Optional[str], List[FolderNode]] = {}
    for folder in folders:
        children_by_parent.setdefault(folder.parent_id, []).append(folder)

    visited = set()
    if parent_id is not None:
        visited.add(parent_id)

    def build_level(level_parent_id: Optional[str]) -> List[FolderTree]:
        nodes = []
        for folder in children_by_parent.get(level_parent_id, []):
            if folder.id in visited:
                continue
            visited.add(folder.id)
            nodes.append(
                FolderTree(
                    id=folder.id,
                    name=folder.name,
                    parent_id=folder.parent_id,
                    color=getattr(folder, "color", None) or FolderConfig.DEFAULT_COLOR,
                    icon=getattr(folder, "icon", None) or FolderConfig.DEFAULT_ICON,
                    created_at=folder.created_at,
                    updated_at=folder.updated_at,
                    children=build_level(folder.id),
                    image_count=image_counts.get(folder.id, 0),
                )
            )
        nodes.sort(key=sibling_sort_key)
        return nodes

    return build_level(parent_id)
