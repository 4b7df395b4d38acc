"""
HTTP API Routes for mentalpoker.

Every table operation takes the caller's public identity from the
X-Player-Id header. Operations on a table are serialized by the
TableManager; state is pushed to WebSocket subscribers after each one.
"""

from typing import Dict, Any
from fastapi import APIRouter, Header, HTTPException, Request

from mentalpoker.core.group import as_element
from mentalpoker.core.lookup import VARIANTS, FLUSH, reference_tables
from mentalpoker.core.rules import ActionType, TableConfig
from mentalpoker.server.schemas import (
    CreateTableRequest, JoinRequest, ActionRequest, HoleCardsRequest,
    BoardRequest, RevealRequest, ShowdownClaimSchema,
    TableCreatedSchema, ActionResultSchema, LeaveResultSchema,
    ShowResultSchema, SettleResultSchema, LookupEntrySchema,
)
from mentalpoker.server.websocket import TableManager

router = APIRouter()


def get_manager(request: Request) -> TableManager:
    return request.app.state.manager


def _require_table(manager: TableManager, table_id: str) -> None:
    if manager.get_room(table_id) is None:
        raise HTTPException(status_code=404, detail=f"Table {table_id} not found")


@router.post("/tables")
async def create_table(req: CreateTableRequest, request: Request) -> TableCreatedSchema:
    """Create a new table; the lookup roots come from the server's configuration."""
    manager = get_manager(request)
    base = manager.default_config
    config = TableConfig(
        small_blind=req.small_blind,
        big_blind=req.big_blind,
        min_bet=req.min_bet,
        min_buy_in=req.min_buy_in,
        max_buy_in=req.max_buy_in,
        basic_root=base.basic_root,
        flush_root=base.flush_root,
    )
    table_id = manager.create_table(config)
    roots = manager.get_room(table_id).table.verifier.roots
    return TableCreatedSchema(table_id=table_id, roots=roots)


@router.get("/tables/{table_id}")
async def get_table_state(table_id: str, request: Request) -> Dict[str, Any]:
    """Get the public table state."""
    manager = get_manager(request)
    _require_table(manager, table_id)
    return manager.get_room(table_id).table.get_state()


@router.get("/tables/{table_id}/legal_actions")
async def get_legal_actions(
    table_id: str, request: Request, x_player_id: str = Header(...),
) -> Dict[str, Any]:
    manager = get_manager(request)
    _require_table(manager, table_id)
    return {"actions": manager.get_room(table_id).table.get_legal_actions(x_player_id)}


@router.post("/tables/{table_id}/join")
async def join_table(
    table_id: str, req: JoinRequest, request: Request, x_player_id: str = Header(...),
) -> Dict[str, Any]:
    manager = get_manager(request)
    _require_table(manager, table_id)
    seat = await manager.run(table_id, lambda t: t.join_table(x_player_id, req.seat, req.deposit))
    return {"success": True, "seat": seat.seat, "stack": seat.stack}


@router.post("/tables/{table_id}/leave")
async def leave_table(
    table_id: str, request: Request, x_player_id: str = Header(...),
) -> LeaveResultSchema:
    manager = get_manager(request)
    _require_table(manager, table_id)
    amount = await manager.run(table_id, lambda t: t.leave_table(x_player_id))
    return LeaveResultSchema(success=True, withdrawn=amount)


@router.post("/tables/{table_id}/action")
async def take_action(
    table_id: str, req: ActionRequest, request: Request, x_player_id: str = Header(...),
) -> ActionResultSchema:
    """Take a blind or betting action."""
    manager = get_manager(request)
    _require_table(manager, table_id)
    try:
        action_type = ActionType(req.action_type.upper())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid action type: {req.action_type}")

    result = await manager.run(
        table_id, lambda t: t.take_action(x_player_id, action_type, req.amount or 0),
    )
    return ActionResultSchema(
        success=result.success,
        message=result.message,
        action_type=result.action_type.value if result.action_type else None,
        amount=result.amount,
        stage=manager.get_room(table_id).table.stage.name,
    )


@router.post("/tables/{table_id}/hole_cards")
async def commit_hole_cards(
    table_id: str, req: HoleCardsRequest, request: Request, x_player_id: str = Header(...),
) -> Dict[str, Any]:
    """Commit the opponent's masked hole cards."""
    manager = get_manager(request)
    _require_table(manager, table_id)
    cards = [c.to_core() for c in req.cards]
    mask_key = as_element(req.mask_key)
    await manager.run(table_id, lambda t: t.commit_opponent_hole_cards(x_player_id, cards, mask_key))
    return {"success": True, "stage": manager.get_room(table_id).table.stage.name}


@router.post("/tables/{table_id}/board")
async def commit_board(
    table_id: str, req: BoardRequest, request: Request, x_player_id: str = Header(...),
) -> Dict[str, Any]:
    manager = get_manager(request)
    _require_table(manager, table_id)
    cards = [c.to_core() for c in req.cards]
    await manager.run(table_id, lambda t: t.commit_board_cards(x_player_id, cards))
    return {"success": True, "stage": manager.get_room(table_id).table.stage.name}


@router.post("/tables/{table_id}/board/reveal")
async def reveal_board(
    table_id: str, req: RevealRequest, request: Request, x_player_id: str = Header(...),
) -> Dict[str, Any]:
    manager = get_manager(request)
    _require_table(manager, table_id)
    shares = [s.to_core() for s in req.shares]
    await manager.run(table_id, lambda t: t.reveal_board_cards(x_player_id, shares))
    table = manager.get_room(table_id).table
    return {
        "success": True,
        "stage": table.stage.name,
        "board": [c.to_dict() for c in table.board_cards],
    }


@router.post("/tables/{table_id}/show")
async def show_cards(
    table_id: str, req: ShowdownClaimSchema, request: Request, x_player_id: str = Header(...),
) -> ShowResultSchema:
    """Submit a showdown claim."""
    manager = get_manager(request)
    _require_table(manager, table_id)
    claim = req.to_core()
    value = await manager.run(table_id, lambda t: t.show_cards(x_player_id, claim))
    return ShowResultSchema(success=True, value=value, stage=manager.get_room(table_id).table.stage.name)


@router.post("/tables/{table_id}/settle")
async def settle(table_id: str, request: Request) -> SettleResultSchema:
    manager = get_manager(request)
    _require_table(manager, table_id)
    payout = await manager.run(table_id, lambda t: t.settle())
    return SettleResultSchema(
        success=True,
        amounts=list(payout.amounts),
        winner=payout.winner,
        reason=payout.reason,
        hand_number=manager.get_room(table_id).table.hand_number,
    )


@router.post("/tables/{table_id}/next_hand")
async def next_hand(table_id: str, request: Request) -> Dict[str, Any]:
    manager = get_manager(request)
    _require_table(manager, table_id)
    await manager.run(table_id, lambda t: t.next_hand())
    return {"success": True, "hand_number": manager.get_room(table_id).table.hand_number}


# ============= Lookup Tables =============

@router.get("/lookup/roots")
async def lookup_roots() -> Dict[str, str]:
    """Merkle roots of the reference hand-rank tables."""
    return reference_tables().roots


@router.get("/lookup/{variant}/{key}")
async def lookup_entry(variant: str, key: int) -> LookupEntrySchema:
    """A reference table entry with its membership proof."""
    if variant not in VARIANTS:
        raise HTTPException(status_code=404, detail=f"Unknown table variant: {variant}")
    try:
        value, proof = reference_tables().prove(key, variant == FLUSH)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Key {key} not in {variant} table")
    return LookupEntrySchema.build(variant, key, value, proof)
