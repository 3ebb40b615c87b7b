import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from social_api.schemas.comment_schema import CommentTreeResponse
from social_api.services.comment_tree import build_comment_tree


@dataclass
class Node:
    id: int
    parent_id: Optional[int] = None
    children: List["Node"] = field(default_factory=list)


def ids(nodes):
    return [n.id for n in nodes]


def test_nested_chain_and_unresolvable_parent_is_dropped():
    roots = build_comment_tree([Node(1), Node(2, 1), Node(3, 2), Node(4, 99)])

    assert ids(roots) == [1]
    assert ids(roots[0].children) == [2]
    assert ids(roots[0].children[0].children) == [3]
    assert roots[0].children[0].children[0].children == []


def test_input_order_is_kept_for_roots_and_children():
    # Newest first, as the service queries them
    comments = [Node(6, 1), Node(5), Node(4, 1), Node(3), Node(2, 1), Node(1)]

    roots = build_comment_tree(comments)

    assert ids(roots) == [5, 3, 1]
    assert ids(roots[2].children) == [6, 4, 2]


def test_child_listed_before_its_parent_is_attached():
    roots = build_comment_tree([Node(3, 2), Node(2, 1), Node(1)])

    assert ids(roots) == [1]
    assert ids(roots[0].children[0].children) == [3]


def test_stale_children_are_reset():
    parent = Node(1, children=[Node(99)])

    roots = build_comment_tree([parent, Node(2, 1)])

    assert ids(roots[0].children) == [2]


def test_self_parent_and_cycles_are_left_out():
    roots = build_comment_tree([Node(1), Node(2, 2), Node(3, 4), Node(4, 3)])

    assert ids(roots) == [1]
    assert roots[0].children == []


def test_empty_input():
    assert build_comment_tree([]) == []


def test_works_on_response_models():
    now = datetime.utcnow()

    def comment(comment_id, parent_id=None):
        return CommentTreeResponse(
            id=comment_id,
            post_id=1,
            user_id=1,
            content=f"comment {comment_id}",
            parent_id=parent_id,
            created_at=now,
            updated_at=now,
        )

    roots = build_comment_tree([comment(1), comment(2, 1)])

    dumped = [root.model_dump() for root in roots]
    assert dumped[0]["children"][0]["id"] == 2
    assert dumped[0]["children"][0]["children"] == []


def test_every_dropped_comment_is_logged(caplog):
    caplog.set_level(logging.WARNING, logger="social_api.services.comment_tree")

    roots = build_comment_tree([Node(1), Node(2, 2), Node(3, 4), Node(4, 3), Node(5, 99), Node(6, 5)])

    assert ids(roots) == [1]
    logged = " ".join(record.getMessage() for record in caplog.records)
    for dropped in (2, 3, 4, 5, 6):
        assert f"comment {dropped} " in logged
    assert "comment 1 " not in logged
