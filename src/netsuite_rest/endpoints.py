"""
Endpoint URL resolution

Merges the configured base address template, a relative path template and
named path parameters into an absolute URL. Placeholders use ``str.format``
field syntax (``{name}``) and must all resolve to non-empty values.
"""

import posixpath
import string
from typing import Any, Dict, List, Mapping, Protocol, Tuple, Union, runtime_checkable
from urllib.parse import quote, urlsplit, urlunsplit, parse_qsl, urlencode

from .exceptions import TemplateError

_formatter = string.Formatter()


@runtime_checkable
class PathParams(Protocol):
    """Anything that can render itself as placeholder values"""

    def params(self) -> Mapping[str, Any]:
        ...


ParamsLike = Union[PathParams, Mapping[str, Any], None]


def params_to_mapping(params: ParamsLike) -> Dict[str, Any]:
    """
    Turn a ``PathParams`` object, a mapping or ``None`` into a dict.

    Raises:
        TemplateError: If ``params`` is none of those
    """
    if params is None:
        return {}
    if isinstance(params, Mapping):
        return dict(params)
    if isinstance(params, PathParams):
        rendered = params.params()
        if rendered is None:
            return {}
        return dict(rendered)
    raise TemplateError(
        f"Path parameters must be a mapping or provide params(), got {type(params).__name__}",
        details={'params_type': type(params).__name__},
    )


def expand_template(template: str, values: Mapping[str, Any], encode: bool = False) -> str:
    """
    Substitute ``{name}`` placeholders in ``template``.

    Args:
        template: Template text
        values: Placeholder values
        encode: Percent-encode substituted values as a single path segment

    Returns:
        str: Expanded text

    Raises:
        TemplateError: On malformed templates and missing or empty values
    """
    try:
        parsed = list(_formatter.parse(template))
    except ValueError as e:
        raise TemplateError(f"Malformed template '{template}': {e}", details={'template': template}) from e

    parts: List[str] = []
    for literal, name, format_spec, conversion in parsed:
        parts.append(literal)
        if name is None:
            continue

        if not name.isidentifier() or format_spec or conversion:
            raise TemplateError(
                f"Unsupported placeholder '{{{name}}}' in template '{template}'",
                details={'template': template, 'placeholder': name},
            )

        value = values.get(name)
        if value is None or str(value) == "":
            raise TemplateError(
                f"Unresolved placeholder '{{{name}}}' in template '{template}'",
                details={'template': template, 'placeholder': name},
            )

        value = str(value)
        parts.append(quote(value, safe='') if encode else value)

    return ''.join(parts)


def join_path(*parts: str) -> str:
    """
    Join path segments, collapsing duplicate separators and dot segments.

    Empty parts are ignored; an absolute second part is appended rather than
    replacing the first.
    """
    joined = '/'.join(p for p in parts if p)
    if not joined:
        return ''

    cleaned = posixpath.normpath(joined)
    # normpath keeps a leading '//' as-is
    if cleaned.startswith('//'):
        cleaned = '/' + cleaned.lstrip('/')
    return cleaned


def merge_query(*queries: str) -> str:
    """
    Union of query strings; repeated keys accumulate in source order.

    Keys are emitted sorted so the result is deterministic.
    """
    merged: Dict[str, List[str]] = {}
    for query in queries:
        for key, value in parse_qsl(query, keep_blank_values=True):
            merged.setdefault(key, []).append(value)

    pairs: List[Tuple[str, str]] = [
        (key, value) for key in sorted(merged) for value in merged[key]
    ]
    return urlencode(pairs)


def resolve_base_url(base_pattern: str, account_id: str) -> str:
    """Expand the base address template with the account id."""
    return expand_template(base_pattern, {'account_id': account_id})


def resolve_endpoint(
    base_pattern: str,
    path_pattern: str,
    params: ParamsLike = None,
    account_id: str = "",
) -> str:
    """
    Resolve a path template against the base address template.

    Args:
        base_pattern: Base address template, e.g.
            ``https://{account_id}.suitetalk.api.netsuite.com/services/rest``
        path_pattern: Relative path template, optionally with a query string,
            e.g. ``record/v1/customer/{id}?expandSubResources=true``
        params: Path placeholder values
        account_id: Value for ``{account_id}`` in the base template

    Returns:
        str: Absolute URL

    Raises:
        TemplateError: If a template is malformed or a placeholder unresolved
    """
    base = resolve_base_url(base_pattern, account_id)

    try:
        base_parts = urlsplit(base)
    except ValueError as e:
        raise TemplateError(f"Invalid base URL: {e}", details={'base': base}) from e

    if not base_parts.scheme or not base_parts.netloc:
        raise TemplateError(f"Base URL is not absolute: {base}", details={'base': base})

    # split by hand: a leading '//' in a relative path is not a host
    relative = path_pattern.split('#', 1)[0]
    relative_path, _, relative_query = relative.partition('?')

    query = merge_query(base_parts.query, relative_query)
    path = join_path(base_parts.path, relative_path)
    path = expand_template(path, params_to_mapping(params), encode=True)

    return urlunsplit((base_parts.scheme, base_parts.netloc, path, query, ''))
