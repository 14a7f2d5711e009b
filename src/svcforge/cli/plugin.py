import logging

import typer

from svcforge.config import parse_parameter
from svcforge.core.diagnostics import Diagnostics
from svcforge.core.pipeline import run_generation
from svcforge.core.schema import build_response, load_request
from svcforge.errors import SvcforgeError

logger = logging.getLogger(__name__)


def plugin() -> None:
    """Run as a protoc plugin: read a CodeGeneratorRequest on stdin, answer on stdout.

    Use it through a ``protoc-gen-svcforge`` wrapper or
    ``protoc --plugin=protoc-gen-svcforge=... --svcforge_out=OUT``.
    """
    data = typer.get_binary_stream("stdin").read()
    try:
        request = load_request(data)
        config = parse_parameter(request.parameter)
        result = run_generation(request, config, Diagnostics(), with_docs=True)
    except SvcforgeError as exc:
        logger.error("Generation failed: %s", exc)
        response = build_response(error=str(exc))
    else:
        response = build_response(result.files)

    stdout = typer.get_binary_stream("stdout")
    stdout.write(response.SerializeToString())
    stdout.flush()
