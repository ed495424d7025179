from pydantic import BaseModel, Field
from typing import Iterable, Iterator, List, Optional, Tuple
import datetime


class CommentAuthor(BaseModel):
    name: str
    avatar: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)
    parent_id: Optional[str] = None


class Comment(BaseModel):
    id: str
    post_id: str
    parent_id: Optional[str] = None  # None for top-level comments
    author: CommentAuthor
    content: str
    likes: int = 0
    created_at: datetime.datetime = Field(default_factory=lambda: datetime.datetime.now(datetime.timezone.utc))
    children: List["Comment"] = Field(default_factory=list)

    class Config:
        from_attributes = True

    def to_document(self) -> dict:
        # children are computed per request and never stored
        return self.model_dump(exclude={"id", "children"})


class ThreadEntry(BaseModel):
    depth: int
    comment: Comment


def build_comment_tree(comments: Iterable[Comment]) -> List[Comment]:
    """
    Nests a post's comments into reply threads.

    Expects comments in ascending creation order. A comment whose parent_id
    does not match a comment seen earlier in the sequence is returned as a
    root. The input records are left untouched.
    """
    by_id = {}
    roots: List[Comment] = []
    for comment in comments:
        node = comment.model_copy(update={"children": []})
        parent = by_id.get(node.parent_id) if node.parent_id else None
        by_id[node.id] = node
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


def iter_comment_thread(roots: Iterable[Comment]) -> Iterator[Tuple[Comment, int]]:
    """Depth-first, pre-order walk yielding (comment, depth)."""
    stack = [(root, 0) for root in reversed(list(roots))]
    while stack:
        comment, depth = stack.pop()
        yield comment, depth
        for child in reversed(comment.children):
            stack.append((child, depth + 1))
