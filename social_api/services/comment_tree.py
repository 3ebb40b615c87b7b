from typing import Iterable, List, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_comment_tree(comments: Iterable[T]) -> List[T]:
    """Link a flat list of comments into a forest of root comments.

    Every item must expose ``id``, ``parent_id`` and an assignable
    ``children`` list; the lists are reset and refilled in input order, and
    roots keep input order too. A comment whose parent is not in the input
    is left out of the tree, and so is a comment whose parent chain loops
    without reaching a root. Each dropped comment is logged.
    """
    nodes = list(comments)
    by_id = {}
    for node in nodes:
        node.children = []
        by_id[node.id] = node

    roots = []
    for node in nodes:
        if node.parent_id is None:
            roots.append(node)
            continue

        parent = by_id.get(node.parent_id)
        if parent is None or parent is node:
            logger.warning(
                f"Dropping comment {node.id} from tree: parent {node.parent_id} not found"
            )
            continue

        parent.children.append(node)

    reached = set()
    stack = list(roots)
    while stack:
        node = stack.pop()
        reached.add(node.id)
        stack.extend(node.children)

    for node in nodes:
        if node.id not in reached and node.parent_id in by_id and node.parent_id != node.id:
            logger.warning(
                f"Dropping comment {node.id} from tree: parent chain never reaches a root"
            )

    return roots
