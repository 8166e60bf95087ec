"""Review comment models shared by the GitHub and tuicr sources."""
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class FormattedComment:
    """A single review comment normalized for the agent prompt.

    line == 0 marks a file-level comment.
    """
    file: str
    line: int = 0
    type: str = "suggestion"
    content: str = ""
    index: int = 0
    is_old_side: bool = False

    @property
    def is_file_level(self) -> bool:
        return self.line == 0

    def location(self) -> str:
        if self.is_file_level:
            return f"`{self.file}`"
        if self.is_old_side:
            return f"`{self.file}:~{self.line}`"
        return f"`{self.file}:{self.line}`"

    def comment_type(self) -> str:
        return f"**[{self.type.upper()}]**"

    def sort_key(self) -> Tuple[bool, str, int, int]:
        # File-level comments first, then by file, ascending line, insertion order
        return (not self.is_file_level, self.file, self.line, self.index)


@dataclass
class FormattedReview:
    """All review comments for one commit."""
    commit_sha: str
    comments: List[FormattedComment] = field(default_factory=list)

    @property
    def short_sha(self) -> str:
        return self.commit_sha[:7]

    def sorted_comments(self) -> List[FormattedComment]:
        return sorted(self.comments, key=FormattedComment.sort_key)

    def __bool__(self) -> bool:
        return bool(self.comments)
