"""Parse git remote URLs into host, owner and repo.

Recognized forms, tried in order (first match wins):

- https://<host>/<owner>/<repo>(.git)   (http and user info accepted)
- ssh://git@<host>/<owner>/<repo>(.git)
- git@<host>:<owner>/<repo>(.git)       (SCP-like shorthand)
"""

import re
from typing import NamedTuple

GITHUB_HOST = "github.com"

_HTTPS_RE = re.compile(r"^https?://(?:[^@/\s]+@)?(?P<host>[^/\s]+)/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$")
_SSH_RE = re.compile(r"^ssh://git@(?P<host>[^/\s]+)/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$")
_SCP_RE = re.compile(r"^git@(?P<host>[^:/\s]+):(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?$")

_PATTERNS = (_HTTPS_RE, _SSH_RE, _SCP_RE)


class RemoteDescriptor(NamedTuple):
    host: str
    owner: str
    repo: str

    @property
    def is_github(self) -> bool:
        return self.host.lower() == GITHUB_HOST

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_remote_url(url: str | None) -> RemoteDescriptor | None:
    """Parse a remote URL; return None for any unsupported shape.

    Non-GitHub hosts are parsed as well; callers decide how to flag them.
    """
    if not url:
        return None
    text = url.strip()
    for pattern in _PATTERNS:
        m = pattern.match(text)
        if m:
            repo = m.group("repo")
            if not repo or repo == ".git":
                return None
            return RemoteDescriptor(m.group("host"), m.group("owner"), repo)
    return None
