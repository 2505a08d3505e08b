import json
import asyncio
import logging
import contextlib

import websockets
from aiochannel import Channel, ChannelClosed

import geolocate.jsonrpc as jsonrpc
from geolocate.continuous import ContinuousUpdateLoop
from geolocate.models import PermissionKind
from geolocate.permission import PermissionCoordinator
from geolocate.permissions import RemotePermissionService

logger = logging.getLogger(__name__)

STATUS_NOTIFICATION = "continuous_update_status"


class LocationRPC:
    """
    JSON-RPC methods of a single websocket connection.

    Continuous update status changes are queued on `channel` and pushed to
    the connection as notifications.
    """

    def __init__(
        self,
        coordinator: PermissionCoordinator,
        updater: ContinuousUpdateLoop,
        channel: Channel,
        permissions=None,
    ):
        self._coordinator = coordinator
        self._updater = updater
        self._channel = channel
        self._permissions = permissions

    def callables(self) -> list:
        methods = [
            self.rpc_request_permission,
            self.rpc_permission_status,
            self.rpc_start_continuous_update,
            self.rpc_stop_continuous_update,
            self.rpc_continuous_location_info,
        ]
        if isinstance(self._permissions, RemotePermissionService):
            methods += [self.rpc_permission_respond, self.rpc_permission_pending]
        return methods

    async def rpc_request_permission(self) -> dict:
        outcome = await self._coordinator.request_permission()
        return outcome.as_dict()

    def rpc_permission_status(self) -> bool:
        return self._coordinator.get_permission_status()

    def rpc_start_continuous_update(self):
        self._updater.start(self._on_status_changed)

    def rpc_stop_continuous_update(self):
        self._updater.stop()

    def rpc_continuous_location_info(self) -> list[float]:
        return list(self._updater.snapshot().as_tuple())

    def rpc_permission_respond(
        self, granted: bool, kind: str = PermissionKind.FINE_LOCATION.value
    ) -> bool:
        try:
            permission_kind = PermissionKind(kind)
        except ValueError:
            raise jsonrpc.JSONRPCRuntimeError(f"Unknown permission: {kind}")

        self._permissions.respond(permission_kind, bool(granted))
        return True

    def rpc_permission_pending(self) -> list[str]:
        return [str(kind) for kind in self._permissions.pending]

    def _on_status_changed(self, started: bool):
        try:
            self._channel.put_nowait(started)
        except ChannelClosed:
            logger.debug("Connection gone, dropping status change")


def encode(response) -> str:
    if isinstance(response, list):
        return json.dumps([item.as_dict() for item in response])
    return response.json()


class LocationServer:
    """
    Websocket server exposing location permission and continuous updates
    over JSON-RPC.

    Args:
        coordinator (PermissionCoordinator): The permission coordinator.
        updater (ContinuousUpdateLoop): The continuous update loop.
        permissions (PermissionService | None, optional): The permission service, for remote answers.
    """

    def __init__(
        self,
        coordinator: PermissionCoordinator,
        updater: ContinuousUpdateLoop,
        permissions=None,
    ):
        self._coordinator = coordinator
        self._updater = updater
        self._permissions = permissions

    async def handler(self, websocket):
        channel = Channel()
        rpc = LocationRPC(self._coordinator, self._updater, channel, self._permissions)
        forwarder = asyncio.create_task(self._forward(websocket, channel))

        logger.info("RPC client connected")

        try:
            async for message in websocket:
                response = await jsonrpc.invoke(rpc.callables(), message)
                if response:
                    await websocket.send(encode(response))

        except websockets.ConnectionClosed:
            logger.info("RPC connection closed")
        finally:
            channel.close()
            forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await forwarder
            logger.info("RPC client disconnected")

    @staticmethod
    async def _forward(websocket, channel: Channel):
        async for started in channel:
            notification = jsonrpc.JSONRPCNotification(
                STATUS_NOTIFICATION, {"started": started}
            )
            try:
                await websocket.send(notification.json())
            except websockets.ConnectionClosed:
                return

    async def serve(self, host: str = "127.0.0.1", port: int = 8765):
        async with websockets.serve(self.handler, host, port):
            logger.info(f"Listening for RPC clients on ws://{host}:{port}")
            await asyncio.Future()
