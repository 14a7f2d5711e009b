PLACEHOLDER = "NAME"
TEMPLATE_SUFFIX = "template"


def _has_markers(path: str) -> bool:
    return PLACEHOLDER in path or path.endswith(TEMPLATE_SUFFIX)


def template_path_to_actual(stored_path: str, service_name: str) -> str:
    """Return the output-relative path of the template stored at ``stored_path``.

    The first segment of a stored path is its template version (``v1``,
    ``v0.3.0``, a commit hash) and is dropped as is. ``v1/NAME-service/README.mdtemplate``
    becomes ``README.md`` and ``v1/NAME/handlers.pytemplate`` becomes
    ``<service_name>/handlers.py``. Paths without a ``NAME`` placeholder or a
    ``template`` suffix are already mapped and pass through unchanged.
    """
    if not _has_markers(stored_path):
        return stored_path
    rv = stored_path.replace(PLACEHOLDER, service_name)
    rv = rv.removesuffix(TEMPLATE_SUFFIX)
    _, sep, rest = rv.partition("/")
    if sep:
        rv = rest
    rv = rv.removeprefix(f"{service_name}-service/")
    return rv
