"""Process-wide bootstrap-hash -> launcher URL mapping."""

from __future__ import annotations


class ScriptUrlRegistry:
    """Remembers the verified launcher URL for each bootstrap path hash.

    Lives for the process lifetime; entries are only added after the URL
    passed verification, so a failed attempt is retried on the next call.
    """

    def __init__(self) -> None:
        self._urls: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._urls)

    def get(self, bootstrap_hash: str) -> str | None:
        return self._urls.get(bootstrap_hash)

    def put(self, bootstrap_hash: str, url: str) -> None:
        self._urls[bootstrap_hash] = url
