"""Pure text parsers: remote URLs and git status porcelain output."""

from gitpm.parsers.remote_url import GITHUB_HOST, RemoteDescriptor, parse_remote_url
from gitpm.parsers.status import parse_status, parse_status_line

__all__ = ["GITHUB_HOST", "RemoteDescriptor", "parse_remote_url", "parse_status", "parse_status_line"]
