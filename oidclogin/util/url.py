"""URL helpers."""

from collections.abc import Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def with_query_params(url: str, params: Mapping[str, str]) -> str:
    """Return `url` with `params` merged into its query string.

    Existing parameters keep their order; a key present in both is replaced
    in place by the new value. Scheme, host, port, path and fragment are kept.

    Example:
        >>> with_query_params("https://idp.example/auth?prompt=login", {"state": "s"})
        'https://idp.example/auth?prompt=login&state=s'
    """
    parts = urlsplit(url)
    query: dict[str, str] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        query[key] = value
    query.update(params)
    return urlunsplit(parts._replace(query=urlencode(query)))
