"""\
Ludmila's Utilities
===================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Small helpers used throughout the project: the JSON provider, content
type and content disposition builders, URL joining for schema prefixes,
and the ``Rule``/``Map`` pair backing the router.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import re
import typing as t
from collections.abc import Mapping
from urllib.parse import quote

if t.TYPE_CHECKING:
    from collections.abc import Iterable

Handler: t.TypeAlias = t.Callable[..., t.Any]

_charset_mimetypes: set[str] = {
    "application/javascript",
    "application/xml",
}
_express_param = re.compile(r"(?<=/):([A-Za-z_][A-Za-z0-9_]*)")
_rule_param = re.compile(
    r"<(?:(?P<type>[a-zA-Z_][a-zA-Z0-9_]*)?:)?"
    r"(?P<name>[a-zA-Z_][a-zA-Z0-9_]*)>"
)


def get_content_type(mimetype: str, charset: str) -> str:
    """Return a content type string with charset when appropriate.

    :param mimetype: Base mimetype value such as ``text/html``.
    :param charset: Charset label appended for textual types.
    :return: Content type.
    """
    if mimetype.startswith("text/") or mimetype in _charset_mimetypes:
        mimetype += f"; charset={charset}"
    return mimetype


def encode_uri_component(value: str) -> str:
    """Percent-encode ``value`` leaving the same characters untouched
    as JavaScript's ``encodeURIComponent``.
    """
    return quote(str(value), safe="!~*'()")


def content_disposition(
    type_: str | None = "attachment", name: str = ""
) -> str:
    """Build a ``Content-Disposition`` value carrying both a plain and
    an RFC 5987 encoded filename.

    :param type_: Disposition type, falls back to ``attachment`` when
        empty, defaults to ``attachment``.
    :param name: Filename to advertise, defaults to an empty string.
    """
    encoded = encode_uri_component(name or "")
    return (
        f"{type_ or 'attachment'}; filename=\"{encoded}\"; "
        f"filename*=UTF-8''{encoded}"
    )


def get_field(obj: t.Any, name: str, default: t.Any = None) -> t.Any:
    """Read ``name`` from a mapping key or an object attribute."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def run_sync(value: t.Any) -> t.Any:
    """Wait for ``value`` if it is awaitable, return it otherwise.

    Handlers run on the server's worker threads, so coroutine handlers
    get an event loop of their own for the duration of the call.
    """
    if not inspect.isawaitable(value):
        return value

    async def _wait() -> t.Any:
        return await value

    return asyncio.run(_wait())


def trim(value: t.Any, char: str = "/") -> str:
    """Strip leading and trailing ``char`` from ``value``."""
    return str(value if value is not None else "").strip(char)


def join_url(*segments: str | None) -> str:
    """Join URL segments with exactly one slash between them.

    Empty segments are skipped so an empty prefix or schema URL never
    produces doubled slashes.
    """
    parts = [trim(segment) for segment in segments]
    return "/" + "/".join(part for part in parts if part)


def normalise_rule(rule: str) -> str:
    """Rewrite Express-style ``:name`` segments as ``<name>``."""
    return _express_param.sub(r"<\1>", rule)


class DefaultJSONProvider:
    """Base class which provides JSON serialisation."""

    mimetype: t.ClassVar[str] = "application/json"

    def __init__(self, compact: bool = False) -> None:
        """Initialise the provider.

        :param compact: Emit separators without whitespace, defaults to
            ``False``.
        """
        self.compact = compact

    def loads(self, s: str | bytes, **kwargs: t.Any) -> t.Any:
        """Deserialise a JSON document."""
        return json.loads(s, **kwargs)

    def dumps(self, obj: t.Any, **kwargs: t.Any) -> str:
        """Serialise a Python object to a JSON string.

        Objects the encoder doesn't know are rendered through ``str`` so
        identifiers, dates and decimals survive a round to the client.
        """
        kwargs.setdefault("ensure_ascii", False)
        kwargs.setdefault("default", str)
        if self.compact:
            kwargs.setdefault("separators", (",", ":"))
        return json.dumps(obj, **kwargs)


def get_current_url(
    scheme: str,
    host: str,
    root_path: str | None = None,
    path: str | None = None,
    query_string: str | None = None,
) -> str:
    """Recreate the URL for a request.

    :param scheme: Protocol of the request used.
    :param host: The host the request was made to.
    :param root_path: Prefix that the application is mounted under,
        defaults to ``None``.
    :param path: The path part of the URL after ``root_path``, defaults
        to ``None``.
    :param query_string: The portion of the URL after the ``?``,
        defaults to ``None``.
    """
    url = [scheme, "://", host, (root_path or "").rstrip("/")]
    url.append("/" + (path or "").lstrip("/"))
    if query_string:
        url.extend(["?", query_string])
    return "".join(url)


class Rule:
    """Represent a single URL mapping and its handler chain.

    Static rules are compared verbatim, dynamic ones are compiled into
    a regular expression whose named groups are converted into typed
    values before they land in ``request.params``.

    :param string: URL rule, ``<name>``, ``<int:name>`` and ``:name``
        placeholders are supported.
    :param methods: HTTP methods this rule answers to, defaults to
        ``None``.
    :param endpoint: Endpoint name, defaults to the rule itself.
    :param handlers: Framework handlers ``(request, response, next)``
        executed in order, defaults to ``None``.
    """

    def __init__(
        self,
        string: str,
        methods: Iterable[str] | None = None,
        endpoint: str | None = None,
        handlers: Iterable[Handler] | None = None,
    ) -> None:
        """Initialise a rule with URL string."""
        if not string.startswith("/"):
            raise ValueError(f"URL rule {string!r} must start with a slash")
        self.rule = normalise_rule(string)
        self.endpoint = endpoint or self.rule
        self.methods = {method.upper() for method in methods or ()}
        self.handlers: list[Handler] = list(handlers or ())
        self.converters: dict[str, t.Callable[[str], t.Any]] = {}
        self.pattern: re.Pattern[str] | None = None
        if "<" in self.rule and ">" in self.rule:
            self.pattern = self._compile()

    def __repr__(self) -> str:
        """Human-readable representation of the rule object."""
        methods = ", ".join(sorted(self.methods))
        return f"<Rule {self.rule!r} ({methods}) -> {self.endpoint}>"

    def _compile(self) -> re.Pattern[str]:
        """Compile placeholders into a regular expression."""

        def _replace(match: re.Match[str]) -> str:
            type_name = match.group("type")
            name = match.group("name")
            if type_name == "int":
                self.converters[name] = int
                return f"(?P<{name}>\\d+)"
            self.converters[name] = str
            return f"(?P<{name}>[^/]+)"

        escaped = "".join(
            part if index % 2 else re.escape(part)
            for index, part in enumerate(re.split(r"(<[^>]+>)", self.rule))
        )
        return re.compile("^" + _rule_param.sub(_replace, escaped) + "$")

    def match(self, path: str) -> dict[str, t.Any] | None:
        """Return converted path values, or ``None`` on mismatch."""
        if self.pattern is None:
            return {} if path == self.rule else None
        found = self.pattern.match(path)
        if found is None:
            return None
        try:
            return {
                key: self.converters.get(key, str)(value)
                for key, value in found.groupdict().items()
            }
        except ValueError:
            return None


class Map:
    """Container class for storing all the URL rules.

    The map maintains insertion order and hands out static rules before
    dynamic ones so ``/users/me`` wins over ``/users/<id>``.

    :param rules: Initial URL rules, defaults to ``None``.
    """

    def __init__(self, rules: Iterable[Rule] | None = None) -> None:
        """Initialise mapping with some rules."""
        self._rules: list[Rule] = list(rules or ())

    def __repr__(self) -> str:
        """Human-readable representation of mapping object."""
        return f"<Map {len(self._rules)} rules>"

    def __iter__(self) -> t.Iterator[Rule]:
        """Iterate over static rules first, then dynamic ones."""
        yield from (rule for rule in self._rules if rule.pattern is None)
        yield from (rule for rule in self._rules if rule.pattern is not None)

    def __len__(self) -> int:
        """Return count of rules."""
        return len(self._rules)

    def add(self, rule: Rule) -> None:
        """Add new rule to the map."""
        self._rules.append(rule)

    def bind(self, path: str, method: str) -> tuple[Rule, dict[str, t.Any]]:
        """Find the rule answering ``method`` on ``path``.

        :raises LookupError: With ``404`` when no rule matches the path
            and ``405`` when the path matches under another method.
        """
        path_matched = False
        for rule in self:
            params = rule.match(path)
            if params is None:
                continue
            path_matched = True
            if method.upper() in rule.methods:
                return rule, params
        raise LookupError(405 if path_matched else 404)
