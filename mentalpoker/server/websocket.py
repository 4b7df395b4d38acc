"""
Table management and real-time state push.

This module provides:
- TableManager: Holds the tables, serializes operations per table and
  broadcasts state after every accepted operation
- WebSocket endpoint: Lets clients subscribe to a table's state
"""

from __future__ import annotations
from typing import Callable, Dict, Optional, Any, TypeVar
from dataclasses import dataclass, field
import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from mentalpoker.core.errors import CorruptedCard, PokerError
from mentalpoker.core.game import PokerTable
from mentalpoker.core.rules import TableConfig


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class TableRoom:
    """A table with its lock and subscribed connections."""
    table_id: str
    table: PokerTable
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    connections: Dict[str, WebSocket] = field(default_factory=dict)

    async def broadcast(self, message: Dict[str, Any], exclude: Optional[str] = None):
        """Broadcast a message to all subscribers."""
        dead = []
        for player_id, ws in list(self.connections.items()):
            if player_id == exclude:
                continue
            try:
                await ws.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.error(f"Error sending to {player_id}: {e}")
                dead.append(player_id)
        for player_id in dead:
            self.connections.pop(player_id, None)


class TableManager:
    """
    Manages tables and their subscribers.

    Usage:
        manager = TableManager(TableConfig())
        table_id = manager.create_table()
        result = await manager.run(table_id, lambda t: t.join_table("alice", 0, 100))
    """

    def __init__(self, default_config: Optional[TableConfig] = None):
        self.default_config = default_config or TableConfig()
        self.rooms: Dict[str, TableRoom] = {}
        self._table_counter = 0

    def create_table(self, config: Optional[TableConfig] = None) -> str:
        """Create a new table."""
        self._table_counter += 1
        table_id = f"table-{self._table_counter}"
        table = PokerTable(config or self.default_config)
        self.rooms[table_id] = TableRoom(table_id=table_id, table=table)
        logger.info(f"Created {table_id}")
        return table_id

    def get_room(self, table_id: str) -> Optional[TableRoom]:
        return self.rooms.get(table_id)

    async def run(self, table_id: str, operation: Callable[[PokerTable], T]) -> T:
        """
        Apply one operation to a table under its lock.

        Subscribers get a snapshot of the new state, sent after the lock is
        released, if the operation is accepted; a rejected operation
        re-raises without a broadcast, except a discarded board deal.

        Raises:
            KeyError: Unknown table.
            PokerError: The table rejected the operation.
        """
        room = self.rooms[table_id]
        error: Optional[PokerError] = None
        async with room.lock:
            try:
                result = operation(room.table)
            except PokerError as e:
                logger.warning(f"{table_id}: rejected {type(e).__name__}: {e}")
                if not isinstance(e, CorruptedCard):
                    raise
                # the bad board deal was discarded
                error = e
            state = room.table.get_state()
        await room.broadcast({"type": "state", "table_id": table_id, "state": state})
        if error is not None:
            raise error
        return result

    async def subscribe(self, table_id: str, player_id: str, websocket: WebSocket) -> bool:
        """
        Subscribe an accepted websocket to a table.

        Returns:
            True if subscribed
        """
        room = self.get_room(table_id)
        if room is None:
            logger.warning(f"Table {table_id} not found")
            return False

        room.connections[player_id] = websocket
        logger.info(f"{player_id} subscribed to {table_id}")
        await websocket.send_json({
            "type": "state",
            "table_id": table_id,
            "state": room.table.get_state(),
        })
        await room.broadcast({"type": "subscribed", "player_id": player_id}, exclude=player_id)
        return True

    async def unsubscribe(self, table_id: str, player_id: str):
        room = self.get_room(table_id)
        if room and player_id in room.connections:
            del room.connections[player_id]
            logger.info(f"{player_id} unsubscribed from {table_id}")


async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for table state.

    Protocol:
    1. Client connects and sends: {"type": "subscribe", "table_id": "...", "player_id": "..."}
    2. Server sends the table state, and again after every accepted operation
    3. Client may send {"type": "get_state"} at any time
    """
    manager: TableManager = websocket.app.state.manager
    table_id: Optional[str] = None
    player_id: Optional[str] = None

    try:
        await websocket.accept()
        message = await websocket.receive_json()

        if message.get("type") != "subscribe":
            await websocket.send_json({"type": "error", "message": "First message must be subscribe"})
            await websocket.close()
            return

        table_id = message.get("table_id")
        player_id = message.get("player_id")
        if not table_id or not player_id:
            await websocket.send_json({"type": "error", "message": "table_id and player_id required"})
            await websocket.close()
            return

        if not await manager.subscribe(table_id, player_id, websocket):
            await websocket.send_json({"type": "error", "message": f"Table {table_id} not found"})
            await websocket.close()
            return

        while True:
            message = await websocket.receive_json()
            if message.get("type") == "get_state":
                room = manager.get_room(table_id)
                await websocket.send_json({
                    "type": "state",
                    "table_id": table_id,
                    "state": room.table.get_state(),
                })
            else:
                await websocket.send_json({
                    "type": "error",
                    "message": f"Unknown message type: {message.get('type')}",
                })

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {player_id}")
    finally:
        if table_id and player_id:
            await manager.unsubscribe(table_id, player_id)
