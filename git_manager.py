import logging
import os
import re
from typing import List, Optional

import git
import git.exc
from git import GitCommandError

PULL_REQUEST_RE = re.compile(r"#(\d+)")
SCP_LIKE_URL_RE = re.compile(r"^(?:[\w.-]+@)?(?P<host>[\w.-]+):(?P<path>[^/].*)$")


class StartupError(Exception):
    """启动阶段的致命错误"""


class ExternalCommandError(Exception):
    """git 命令执行失败"""


def _describe(e: GitCommandError) -> str:
    message = str(e)
    if hasattr(e, "stderr") and e.stderr:
        message += f"\nDetails: {e.stderr.strip()}"
    return message


class GitManager:
    def __init__(self, repo_path: str):
        self.repo_path = repo_path
        self.repo: Optional[git.Repo] = None

    def initialize(self) -> bool:
        """初始化 Git 仓库"""
        try:
            self.repo = git.Repo(self.repo_path, search_parent_directories=True)
            self.repo_path = self.repo.working_dir
            return True
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            return False

    def _require_repo(self) -> git.Repo:
        if not self.repo:
            raise ExternalCommandError("Repository not initialized.")
        return self.repo

    def relative_path(self, file_path: str) -> str:
        """把文件路径转换为相对于仓库根目录、使用正斜杠的路径"""
        rel_path = os.path.relpath(os.path.abspath(file_path), self.repo_path)
        return rel_path.replace(os.sep, "/")

    def get_blame_porcelain(self, file_path: str, revision: Optional[str] = None) -> str:
        """获取文件的 blame 信息 (porcelain 格式)

        参数：
            file_path: 文件路径
            revision: 上界 revision，None 表示包含工作区的修改
        """
        repo = self._require_repo()
        args = ["--porcelain", "-M", "-C"]
        if revision:
            args.append(revision)
        args += ["--", self.relative_path(file_path)]
        logging.debug("git blame %s", " ".join(args))
        try:
            return repo.git.blame(*args)
        except GitCommandError as e:
            raise ExternalCommandError(f"Blame failed: {_describe(e)}") from e

    def get_file_revisions(self, file_path: str) -> List[str]:
        """获取修改过该文件的所有 revision，最新的在前"""
        repo = self._require_repo()
        relative_path = self.relative_path(file_path)
        try:
            output = repo.git.log("--follow", "--format=%H", "--", relative_path)
        except GitCommandError as e:
            raise ExternalCommandError(f"Log failed: {_describe(e)}") from e
        revisions = [line.strip() for line in output.split("\n") if line.strip()]
        logging.info("found %d revisions for %s", len(revisions), relative_path)
        return revisions

    def get_parent_revision(self, sha: str) -> Optional[str]:
        """返回第一个父提交，根提交返回 None"""
        repo = self._require_repo()
        try:
            commit = repo.commit(sha)
        except (git.exc.BadName, git.exc.BadObject, ValueError) as e:
            raise ExternalCommandError(f"Unknown revision {sha}: {e!s}") from e
        if not commit.parents:
            return None
        return commit.parents[0].hexsha

    def get_origin_url(self) -> Optional[str]:
        """获取 origin 的 url，没有 origin 时返回 None"""
        if not self.repo:
            return None
        try:
            return self.repo.remotes.origin.url
        except AttributeError:
            logging.info("no origin remote configured")
            return None


def web_base_url(remote_url: Optional[str]) -> Optional[str]:
    """Turn a remote url into the https url of the repository's web page.

    ``git@github.com:owner/repo.git``, ``ssh://git@github.com/owner/repo`` and
    ``https://github.com/owner/repo.git`` all give ``https://github.com/owner/repo``.
    """
    if not remote_url:
        return None
    url = remote_url.strip()
    if url.endswith(".git"):
        url = url[: -len(".git")]
    url = url.rstrip("/")

    if "://" in url:
        scheme, rest = url.split("://", 1)
        if scheme not in ("http", "https", "ssh", "git"):
            return None
        host_and_path = rest.split("@", 1)[-1]
        host, _, path = host_and_path.partition("/")
        host = host.split(":", 1)[0]  # drop the port
    else:
        match = SCP_LIKE_URL_RE.match(url)
        if not match:
            return None
        host, path = match.group("host"), match.group("path")

    if not host or not path:
        return None
    return f"https://{host}/{path}"


def find_pull_request_number(summary: Optional[str]) -> Optional[str]:
    """只有在 summary 中恰好出现一个 #<number> 时才返回它"""
    if not summary:
        return None
    numbers = PULL_REQUEST_RE.findall(summary)
    if len(numbers) != 1:
        return None
    return numbers[0]


def pull_request_url(base_url: Optional[str], summary: Optional[str]) -> Optional[str]:
    number = find_pull_request_number(summary)
    if not base_url or number is None:
        return None
    return f"{base_url}/pull/{number}"
