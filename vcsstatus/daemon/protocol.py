"""JSON-based protocol for daemon IPC.

One exchange per connection: the client writes one request document, the
daemon writes one response document and closes the connection. Each
document is a single JSON object followed by a newline.

Request format:
    {
        "directory": str,                          # Directory to inspect
        "force_color": bool,                       # Keep color escapes
        "output_format": "full" | "prompt" | "statusline",
        "vcs": "detect" | "git" | "hg",
        "status_check": bool                       # Liveness probe only
    }

Missing keys take the Request defaults.

Response format:
    {
        "exit_code": int,   # Exit code the client process adopts
        "content": str      # Rendered output
    }
"""

import json
from typing import Any, Dict

from vcsstatus.core.errors import ProtocolError
from vcsstatus.core.models import OutputFormat, Request, Response, VcsPreference

# Upper bound for one request line
MAX_REQUEST_BYTES = 64 * 1024


def serialize_request(request: Request) -> bytes:
    """
    Serialize request to bytes for socket transmission.

    Returns:
        UTF-8 encoded JSON bytes, newline terminated
    """
    payload = {
        "directory": request.directory,
        "force_color": request.force_color,
        "output_format": request.output_format.value,
        "vcs": request.vcs.value,
        "status_check": request.status_check,
    }
    return json.dumps(payload).encode("utf-8") + b"\n"


def deserialize_request(data: bytes) -> Request:
    """
    Deserialize request from bytes.

    Raises:
        ProtocolError: If data is not a valid request document
    """
    payload = _load_object(data)
    defaults = Request()

    directory = payload.get("directory", defaults.directory)
    force_color = payload.get("force_color", defaults.force_color)
    status_check = payload.get("status_check", defaults.status_check)

    if not isinstance(directory, str):
        raise ProtocolError("'directory' must be a string")
    for key, value in (("force_color", force_color), ("status_check", status_check)):
        if not isinstance(value, bool):
            raise ProtocolError(f"'{key}' must be a boolean")

    try:
        output_format = OutputFormat(payload.get("output_format", defaults.output_format.value))
    except ValueError as e:
        raise ProtocolError(f"invalid 'output_format': {e}") from e
    try:
        vcs = VcsPreference(payload.get("vcs", defaults.vcs.value))
    except ValueError as e:
        raise ProtocolError(f"invalid 'vcs': {e}") from e

    return Request(
        directory=directory,
        force_color=force_color,
        output_format=output_format,
        vcs=vcs,
        status_check=status_check,
    )


def serialize_response(response: Response) -> bytes:
    """
    Serialize response to bytes for socket transmission.

    Returns:
        UTF-8 encoded JSON bytes, newline terminated
    """
    payload = {
        "exit_code": response.exit_code,
        "content": response.content,
    }
    return json.dumps(payload).encode("utf-8") + b"\n"


def deserialize_response(data: bytes) -> Response:
    """
    Deserialize response from bytes.

    Raises:
        ProtocolError: If data is not a valid response document
    """
    payload = _load_object(data)

    exit_code = payload.get("exit_code")
    content = payload.get("content", "")
    # bool is an int subclass, so rule it out explicitly
    if not isinstance(exit_code, int) or isinstance(exit_code, bool):
        raise ProtocolError("'exit_code' must be an integer")
    if not isinstance(content, str):
        raise ProtocolError("'content' must be a string")

    return Response(exit_code=exit_code, content=content)


def _load_object(data: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ProtocolError(f"invalid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise ProtocolError(f"invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ProtocolError(f"expected a JSON object, got {type(payload).__name__}")
    return payload
