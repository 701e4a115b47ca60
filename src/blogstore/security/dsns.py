"""DSN parsing and redaction utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit


@dataclass
class DSNConfig:
    scheme: str
    username: Optional[str]
    password: Optional[str]
    host: Optional[str]
    port: Optional[int]
    path: str
    query: dict[str, str] = field(default_factory=dict)

    @property
    def database(self) -> Optional[str]:
        return self.path.lstrip("/") or None

    def redacted(self) -> str:
        """
        Return the DSN with the password masked and everything else intact.
        """

        netloc = ""
        if self.username:
            netloc = self.username
            if self.password:
                netloc += ":***"
            netloc += "@"
        netloc += self.host or ""
        if self.port:
            netloc += f":{self.port}"

        # Assembled by hand so sqlite:/// style DSNs keep their empty netloc.
        result = f"{self.scheme}://{netloc}{self.path}"
        if self.query:
            result += f"?{urlencode(self.query)}"
        return result


def parse_dsn(dsn: str) -> DSNConfig:
    parsed = urlsplit(dsn)
    if not parsed.scheme:
        raise ValueError(f"DSN is missing a scheme: {dsn!r}")
    return DSNConfig(
        scheme=parsed.scheme,
        username=parsed.username,
        password=parsed.password,
        host=parsed.hostname,
        port=parsed.port,
        path=parsed.path or "",
        query=dict(parse_qsl(parsed.query)),
    )
