import json
import inspect
import logging
from typing import Any, Callable
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)


@dataclass
class JSONRPCRequest:
    """
    Represents a JSON-RPC request.

    Attributes:
        method (str): The name of the method to be called.
        params (Any): The parameters to be passed to the method.
        id (int | str | None, optional): The request ID. Defaults to None.
        jsonrpc (str, optional): The JSON-RPC version. Defaults to "2.0".
    """

    method: str
    params: Any = None
    id: int | str | None = None
    jsonrpc: str = "2.0"


@dataclass
class JSONRPCResponse:
    """
    Represents a JSON-RPC response object.

    Attributes:
        result (Any): The result of the JSON-RPC method call.
        id (int | str): The unique identifier of the JSON-RPC request.
        jsonrpc (str): The version of the JSON-RPC protocol (default: "2.0").
    """

    result: Any
    id: int | str
    jsonrpc: str = "2.0"

    def as_dict(self):
        return asdict(self)

    def json(self):
        return json.dumps(self.as_dict())


@dataclass
class JSONRPCNotification:
    """A server to client message without an id. No response is expected."""

    method: str
    params: Any = None
    jsonrpc: str = "2.0"

    def json(self):
        return json.dumps(asdict(self))


@dataclass
class JSONRPCError:
    """
    Represents a JSON-RPC error object.

    Attributes:
        id (int | str | None): The unique identifier of the JSON-RPC request.
        code (int): The error code.
        message (str): The error message.
        jsonrpc (str): The version of the JSON-RPC protocol (default: "2.0").
    """

    id: int | str | None
    code: int
    message: str
    jsonrpc: str = "2.0"

    def as_dict(self):
        return {
            "jsonrpc": self.jsonrpc,
            "error": {"code": self.code, "message": self.message},
            "id": self.id,
        }

    def json(self):
        return json.dumps(self.as_dict())


class JSONRPCInvalidRequest(JSONRPCError):
    def __init__(self, id: int | str | None):
        super().__init__(id, -32600, message="Invalid Request", jsonrpc="2.0")


class JSONRPCMethodNotFound(JSONRPCError):
    def __init__(self, id: int | str | None):
        super().__init__(id, -32601, message="Method not found", jsonrpc="2.0")


class JSONRPCParseError(JSONRPCError):
    def __init__(self):
        super().__init__(None, -32700, message="Parse error", jsonrpc="2.0")


class JSONRPCInvalidParams(JSONRPCError):
    def __init__(self, id: int | str | None):
        super().__init__(id, -32602, message="Invalid params", jsonrpc="2.0")


class JSONRPCRuntimeError(Exception):
    """Raised by a method to answer with an application error."""

    code = -32000


async def invoke(
    callables: list[Callable], input: str | dict | list, prefix: str = "rpc_"
) -> JSONRPCResponse | JSONRPCError | list | None:
    """
    Invokes the appropriate callable function based on the JSON-RPC request.

    Args:
        callables (list[Callable]): The callable functions to be invoked.
        input (str | dict | list): The JSON-RPC request input.
        prefix (str, optional): The prefix to be added to the method name when matching callable functions. Defaults to "rpc_".

    Returns:
        JSONRPCResponse | JSONRPCError | list | None: The JSON-RPC response or error, or None if the request has no id.
    """
    data = {}
    try:
        if isinstance(input, str):
            data = json.loads(input)
        else:
            data = input

        if isinstance(data, list):
            if not data:
                return JSONRPCInvalidRequest(None)
            responses = [await invoke(callables, item, prefix) for item in data]
            return [response for response in responses if response is not None]

        if (
            not isinstance(data, dict)
            or "jsonrpc" not in data
            or "method" not in data
            or data["jsonrpc"] != "2.0"
        ):
            id = data.get("id", None) if isinstance(data, dict) else None
            return JSONRPCInvalidRequest(id)

        request = JSONRPCRequest(**data)
        method = request.method.strip()
        for callable in callables:
            if method == callable.__name__ or prefix + method == callable.__name__:
                if isinstance(request.params, dict):
                    result = callable(**request.params)
                elif request.params is None:
                    result = callable()
                else:
                    result = callable(*request.params)
                if inspect.isawaitable(result):
                    result = await result

                if request.id is None:
                    return
                return JSONRPCResponse(result, request.id)

        return JSONRPCMethodNotFound(request.id)

    except json.JSONDecodeError:
        logger.error("JSON decode error", exc_info=True)
        return JSONRPCParseError()
    except TypeError:
        logger.error("Invalid params", exc_info=True)
        return JSONRPCInvalidParams(data.get("id", None))
    except JSONRPCRuntimeError as e:
        logger.warning(f"Runtime error: {e}")
        return JSONRPCError(data.get("id", None), JSONRPCRuntimeError.code, str(e))
    except Exception as e:
        logger.error(f"Internal error: {str(e)}", exc_info=True)
        return JSONRPCError(data.get("id", None), -32603, "Internal error")
