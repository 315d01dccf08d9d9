import hashlib
from typing import Sequence

from blame_parser import RGB, BlameSnapshot, Commit


def author_color(name: str) -> RGB:
    """根据作者名生成稳定的颜色"""
    digest = hashlib.md5(name.encode("utf-8")).digest()
    return digest[0], digest[1], digest[2]


def interpolate(dark: RGB, light: RGB, factor: float) -> RGB:
    """Linear interpolation per RGB channel, factor 0 -> dark, 1 -> light."""
    return tuple(round(start + (end - start) * factor) for start, end in zip(dark, light))  # type: ignore[return-value]


def recency_shade(rank: int, count: int, dark: RGB, light: RGB) -> RGB:
    """Shade of the commit at ``rank`` (0 = newest) among ``count`` commits."""
    if count <= 1:
        return dark
    return interpolate(dark, light, rank / (count - 1))


def shade_commits(sorted_commits: Sequence[Commit], dark: RGB, light: RGB):
    count = len(sorted_commits)
    for rank, commit in enumerate(sorted_commits):
        commit.color = recency_shade(rank, count, dark, light)


def assign_colors(snapshot: BlameSnapshot, dark: RGB, light: RGB, uncommitted: RGB) -> BlameSnapshot:
    """给 snapshot 中的每个 commit 分配颜色

    未提交的行使用固定颜色，不参与渐变计算。
    """
    shade_commits(snapshot.sorted_commits, dark, light)
    for commit in snapshot.commits.values():
        commit.author_color = author_color(commit.author)
        if commit.is_uncommitted:
            commit.color = uncommitted
    return snapshot
