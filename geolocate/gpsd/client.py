import asyncio
import json
import logging

from geolocate.exceptions import ProtocolError
from geolocate.gpsd.schemas import TPV, Device, Devices, Error, Sky, Version, Watch

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2947

WATCH = "?WATCH={}\r\n"

logger = logging.getLogger(__name__)


class Client:
    """
    Client for the gpsd JSON protocol.

    Args:
        reader (asyncio.StreamReader): The stream reader connected to gpsd.
        writer (asyncio.StreamWriter): The stream writer connected to gpsd.
        watch_config (Watch, optional): The watch settings sent by `watch`.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        watch_config: Watch | None = None,
    ):
        self.__reader = reader
        self.__writer = writer

        self.watch_config = watch_config or Watch()

    async def __read(self) -> tuple[str, dict]:
        line = await self.__reader.readline()
        if not line:
            raise ConnectionError("Connection closed by server")

        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid report: {e}") from e

        if not isinstance(data, dict) or "class" not in data:
            raise ProtocolError("Report without class")

        return data["class"].upper(), data

    async def close(self):
        await self.__writer.drain()
        self.__writer.close()
        await self.__writer.wait_closed()

    @staticmethod
    def __class_factory(class_type: str, data: dict) -> object:
        match class_type:
            case "TPV":
                return TPV.from_json(data)
            case "VERSION":
                return Version.from_json(data)
            case "DEVICES":
                return Devices.from_json(data)
            case "DEVICE":
                return Device.from_json(data)
            case "WATCH":
                return Watch.from_json(data)
            case "SKY":
                return Sky.from_json(data)
            case "ERROR":
                error = Error.from_json(data)
                raise ProtocolError(f"Error: {error.message}")
            case _:
                logger.debug(f"Skipping {class_type} report")
                return None

    async def recv(self):
        """
        Receive the next report from gpsd.

        Returns:
            The next decoded report. Report classes without a schema are skipped.

        Raises:
            ConnectionError: If gpsd closed the connection.
            ProtocolError: If the report is malformed or an error report.
        """
        while True:
            class_type, data = await self.__read()
            result = self.__class_factory(class_type, data)
            if result is not None:
                return result

    async def watch(self):
        self.__writer.write(WATCH.format(json.dumps(self.watch_config.to_dict())).encode())
        await self.__writer.drain()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def __aiter__(self):
        return self

    async def __anext__(self):
        return await self.recv()


async def open(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> Client:
    reader, writer = await asyncio.open_connection(host, port)
    client = Client(reader, writer)
    try:
        await client.watch()
    except Exception:
        writer.close()
        raise
    logger.debug(f"Watching gpsd at {host}:{port}")
    return client
