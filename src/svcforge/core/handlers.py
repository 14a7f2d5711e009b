"""Update of the user-editable handlers module on re-generation.

The handlers file is rendered once from ``NAME/handlers.pytemplate``. When it
already exists it is patched instead: public methods of the service's
``<Service>Handlers`` class that no longer match an rpc are removed, methods
for new rpcs are rendered from ``METHODS_PARTIAL`` and appended to the class,
and everything else in the file is left as the user wrote it.
"""

from __future__ import annotations

import ast
import logging
import textwrap

from jinja2 import Environment

from svcforge.core.naming import camel_case, snake_case
from svcforge.models import MethodNode, ServiceNode

logger = logging.getLogger(__name__)

HANDLERS_ASSET = "NAME/handlers.pytemplate"

METHODS_PARTIAL = '''\
{% for method in methods %}

    def {{ method.name | snake }}(self, request: pb.{{ method.request_type }}) -> pb.{{ method.response_type }}:
{% if method.description %}
        """{{ method.description }}"""
{% endif %}
        return pb.{{ method.response_type }}()
{% endfor %}
'''


def is_handlers_asset(stored_path: str) -> bool:
    """Whether ``stored_path`` (version segment included) is the handlers template."""
    return stored_path.partition("/")[2] == HANDLERS_ASSET


def handlers_class_name(service: ServiceNode) -> str:
    return f"{camel_case(service.name)}Handlers"


def _first_line(node: ast.stmt) -> int:
    decorators = getattr(node, "decorator_list", [])
    return min([node.lineno] + [d.lineno for d in decorators])


def _render_methods(env: Environment, methods: list[MethodNode], indent: str) -> str:
    text = env.from_string(METHODS_PARTIAL).render(methods=methods)
    return textwrap.indent(textwrap.dedent(text), indent)


def update_handlers(env: Environment, previous: str, service: ServiceNode) -> str:
    """Return ``previous`` with its handler methods matched to ``service``'s rpcs.

    Raises ``SyntaxError`` if ``previous`` is not valid Python. A file without
    the handlers class is returned unchanged.
    """
    tree = ast.parse(previous)
    class_name = handlers_class_name(service)
    cls = next((n for n in tree.body if isinstance(n, ast.ClassDef) and n.name == class_name), None)
    if cls is None:
        logger.warning("Handlers file declares no class %s, leaving it unchanged", class_name)
        return previous

    wanted = {snake_case(m.name): m for m in service.methods}
    present: set[str] = set()
    stale: list[ast.FunctionDef | ast.AsyncFunctionDef] = []
    for node in cls.body:
        if not isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef) or node.name.startswith("_"):
            continue
        if node.name in wanted:
            present.add(node.name)
        else:
            stale.append(node)
    missing = [m for name, m in wanted.items() if name not in present]
    if not stale and not missing:
        return previous

    lines = previous.splitlines(keepends=True)
    end = cls.end_lineno or len(lines)
    if not lines[end - 1].endswith("\n"):
        lines[end - 1] += "\n"
    indent = " " * cls.body[0].col_offset

    if missing:
        logger.info("Adding handler(s) %s to %s", ", ".join(m.name for m in missing), class_name)
        insertion = _render_methods(env, missing, indent)
    elif len(stale) == len(cls.body):
        insertion = f"{indent}pass\n"
    else:
        insertion = ""
    lines[end:end] = [insertion]

    # Insertion sits after the class body, so earlier line numbers still hold.
    for node in sorted(stale, key=_first_line, reverse=True):
        logger.info("Removing handler %s, %s no longer declares it", node.name, service.name)
        del lines[_first_line(node) - 1 : node.end_lineno]
    return "".join(lines)
