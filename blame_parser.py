# blame_parser.py

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

# Sentinel sha used by git blame for lines that are not committed yet
UNCOMMITTED_SHA = "0" * 40
SHA_LENGTH = 40

# git blame 对未提交内容使用的作者名
UNCOMMITTED_AUTHOR_PLACEHOLDER = "Not Committed Yet"
UNCOMMITTED_LABEL = "uncommitted"

RGB = Tuple[int, int, int]


class ParseError(Exception):
    """porcelain 输出格式不符合预期"""


@dataclass
class Commit:
    """A commit as seen by git blame. One instance per sha per snapshot."""

    sha: str
    author: str = ""
    author_mail: str = ""
    author_time: Optional[datetime] = None
    summary: Optional[str] = None
    color: Optional[RGB] = None  # recency shade
    author_color: Optional[RGB] = None

    @property
    def is_uncommitted(self) -> bool:
        return self.sha == UNCOMMITTED_SHA

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def timestamp(self) -> int:
        if self.author_time is None:
            return 0
        return int(self.author_time.timestamp())


@dataclass(frozen=True)
class BlameSnapshot:
    """Parsed blame of one revision of a file.

    Lines hold the sha key of their commit; ``commits`` is the single owner of
    the Commit objects.
    """

    lines: Tuple[str, ...] = ()
    line_shas: Tuple[str, ...] = ()
    commits: Dict[str, Commit] = field(default_factory=dict)
    sorted_commits: Tuple[Commit, ...] = ()
    revision: Optional[str] = None  # None 表示工作区

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def line_commits(self) -> Dict[int, Commit]:
        return {index: self.commits[sha] for index, sha in enumerate(self.line_shas)}

    def commit_at(self, line_index: int) -> Optional[Commit]:
        if 0 <= line_index < len(self.line_shas):
            return self.commits[self.line_shas[line_index]]
        return None

    @property
    def newest_commit(self) -> Optional[Commit]:
        """最新的已提交 commit，空文件或全部未提交时为 None"""
        if not self.sorted_commits:
            return None
        return self.sorted_commits[0]

    def first_line_of(self, sha: str) -> Optional[int]:
        try:
            return self.line_shas.index(sha)
        except ValueError:
            return None

    def recency_rank(self, sha: str) -> Optional[int]:
        for rank, commit in enumerate(self.sorted_commits):
            if commit.sha == sha:
                return rank
        return None


def _is_commit_header(raw_line: str) -> bool:
    # "<sha> <orig line> <final line> [<group size>]"
    return raw_line.find(" ") == SHA_LENGTH


def parse_porcelain(raw_text: str, revision: Optional[str] = None) -> BlameSnapshot:
    """解析 git blame --porcelain 的输出

    参数：
        raw_text: git blame --porcelain 的原始输出
        revision: 生成该输出时使用的 revision（None 表示工作区）

    返回：
        BlameSnapshot
    """
    lines: List[str] = []
    line_shas: List[str] = []
    commits: Dict[str, Commit] = {}
    current: Optional[Commit] = None

    for line_number, raw_line in enumerate(raw_text.split("\n"), start=1):
        if raw_line.startswith("\t"):
            if current is None:
                raise ParseError(f"line {line_number}: content line before any commit header")
            lines.append(raw_line[1:])
            line_shas.append(current.sha)
            continue

        if _is_commit_header(raw_line):
            sha = raw_line[:SHA_LENGTH]
            # only the first occurrence of a commit carries its metadata
            current = commits.get(sha)
            if current is None:
                current = Commit(sha=sha)
                commits[sha] = current
            continue

        if current is None:
            continue

        key, _, value = raw_line.partition(" ")
        if key == "author":
            current.author = UNCOMMITTED_LABEL if value == UNCOMMITTED_AUTHOR_PLACEHOLDER else value
        elif key == "author-mail":
            current.author_mail = value.strip("<>")
        elif key == "author-time":
            try:
                seconds = int(value)
            except ValueError as e:
                raise ParseError(f"line {line_number}: invalid author-time {value!r}") from e
            current.author_time = datetime.fromtimestamp(seconds, tz=timezone.utc)
        elif key == "summary":
            current.summary = value

    # sorted() is stable, dict order is first-appearance order
    sorted_commits = sorted(
        (commit for commit in commits.values() if not commit.is_uncommitted),
        key=lambda commit: commit.timestamp,
        reverse=True,
    )

    return BlameSnapshot(
        lines=tuple(lines),
        line_shas=tuple(line_shas),
        commits=commits,
        sorted_commits=tuple(sorted_commits),
        revision=revision,
    )
