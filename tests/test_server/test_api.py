"""
Tests for the HTTP and WebSocket API.
"""

import pytest
from fastapi.testclient import TestClient

from mentalpoker.agents.party import Party, joint_shuffle
from mentalpoker.core.card import parse_cards
from mentalpoker.core.lookup import MembershipProof, reference_tables, verify_membership
from mentalpoker.server.app import create_app


DECK = parse_cards("As Ks Qs Js Ts 9h 8d 3c 2h")


def as_player(identity):
    return {"X-Player-Id": identity}


@pytest.fixture
def client():
    with TestClient(create_app()) as client:
        yield client


@pytest.fixture
def table_id(client):
    response = client.post("/tables", json={})
    assert response.status_code == 200
    return response.json()["table_id"]


@pytest.fixture
def seated(client, table_id):
    for seat, identity in enumerate(["alice", "bob"]):
        response = client.post(
            f"/tables/{table_id}/join", json={"seat": seat, "deposit": 100}, headers=as_player(identity),
        )
        assert response.status_code == 200
    return table_id


def act(client, table_id, identity, action, amount=0):
    return client.post(
        f"/tables/{table_id}/action",
        json={"action_type": action, "amount": amount},
        headers=as_player(identity),
    )


class TestTables:
    """Tests for table creation and seating."""

    def test_create_table(self, client):
        response = client.post("/tables", json={"small_blind": 5, "big_blind": 10})
        data = response.json()
        assert data["table_id"].startswith("table-")
        assert data["roots"] == reference_tables().roots

    def test_state_carries_stakes(self, client):
        table_id = client.post("/tables", json={"small_blind": 5, "big_blind": 10, "min_bet": 10}).json()["table_id"]
        state = client.get(f"/tables/{table_id}").json()
        assert (state["small_blind"], state["big_blind"], state["min_bet"]) == (5, 10, 10)

    def test_invalid_config(self, client):
        response = client.post("/tables", json={"small_blind": 10, "big_blind": 5})
        assert response.status_code == 400
        assert response.json()["error"] == "ValueError"

    def test_unknown_table(self, client):
        assert client.get("/tables/table-99").status_code == 404
        assert act(client, "table-99", "alice", "POST_SB", 1).status_code == 404

    def test_join(self, client, seated):
        state = client.get(f"/tables/{seated}").json()
        assert state["stage"] == "SB_POST"
        assert [s["stack"] for s in state["seats"]] == [100, 100]
        assert all(s["occupied"] for s in state["seats"])
        assert "alice" not in str(state)

    def test_join_bad_deposit(self, client, table_id):
        response = client.post(
            f"/tables/{table_id}/join", json={"seat": 0, "deposit": 500}, headers=as_player("alice"),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidAmount"

    def test_missing_identity(self, client, table_id):
        response = client.post(f"/tables/{table_id}/join", json={"seat": 0, "deposit": 100})
        assert response.status_code == 422

    def test_leave(self, client, seated):
        response = client.post(f"/tables/{seated}/leave", headers=as_player("bob"))
        assert response.json() == {"success": True, "withdrawn": 100}


class TestActions:
    """Tests for the action endpoint."""

    def test_blinds(self, client, seated):
        response = act(client, seated, "alice", "post_sb", 1)
        assert response.status_code == 200
        assert response.json()["stage"] == "BB_POST"

        response = act(client, seated, "bob", "POST_BB", 2)
        assert response.json()["amount"] == 2
        assert response.json()["stage"] == "DEAL_HOLE_A"

    def test_wrong_turn(self, client, seated):
        response = act(client, seated, "bob", "POST_SB", 1)
        assert response.status_code == 400
        assert response.json()["error"] == "IllegalAction"

    def test_unknown_action_type(self, client, seated):
        assert act(client, seated, "alice", "ALL_IN", 1).status_code == 400

    def test_legal_actions(self, client, seated):
        response = client.get(f"/tables/{seated}/legal_actions", headers=as_player("alice"))
        assert response.json() == {"actions": ["POST_SB"]}
        response = client.get(f"/tables/{seated}/legal_actions", headers=as_player("bob"))
        assert response.json() == {"actions": []}


class TestFullHand:
    """A whole hand through the API."""

    def test_hand_to_settlement(self, client, seated):
        parties = [Party("alice"), Party("bob")]
        act(client, seated, "alice", "POST_SB", 1)
        act(client, seated, "bob", "POST_BB", 2)

        deck = joint_shuffle(parties, DECK)
        for party in parties:
            dealt = [deck.pop(), deck.pop()]
            response = client.post(
                f"/tables/{seated}/hole_cards",
                json={
                    "cards": [c.to_dict() for c in party.hole_cards_for_opponent(dealt)],
                    "mask_key": party.mask_key.to_hex(),
                },
                headers=as_player(party.identity),
            )
            assert response.status_code == 200
        assert response.json()["stage"] == "PREFLOP_BETTING"

        table = client.app.state.manager.get_room(seated).table
        for seat, party in enumerate(parties):
            party.read_hole_cards(table.hole_cards[seat])

        act(client, seated, "alice", "PREFLOP_CALL")
        act(client, seated, "bob", "CHECK")
        for count in (3, 1, 1):
            cards = [deck.pop() for _ in range(count)]
            response = client.post(
                f"/tables/{seated}/board",
                json={"cards": [c.to_dict() for c in cards]},
                headers=as_player("alice"),
            )
            assert response.status_code == 200
            for party in parties:
                response = client.post(
                    f"/tables/{seated}/board/reveal",
                    json={"shares": [s.to_dict() for s in party.decryption_shares(cards)]},
                    headers=as_player(party.identity),
                )
                assert response.status_code == 200
            assert None not in response.json()["board"]
            act(client, seated, "alice", "CHECK")
            act(client, seated, "bob", "CHECK")

        board = list(table.board_cards)
        assert len(board) == 5
        for party in parties:
            response = client.post(
                f"/tables/{seated}/show", json=party.claim(board).to_dict(), headers=as_player(party.identity),
            )
            assert response.status_code == 200
        assert response.json()["stage"] == "SETTLE"

        response = client.post(f"/tables/{seated}/settle")
        data = response.json()
        assert sum(data["amounts"]) == 4
        assert data["hand_number"] == 2

        state = client.get(f"/tables/{seated}").json()
        assert sum(s["stack"] for s in state["seats"]) == 200
        assert state["button"] == 1

    def test_bad_share_rejected(self, client, seated):
        parties = [Party("alice"), Party("bob")]
        act(client, seated, "alice", "POST_SB", 1)
        act(client, seated, "bob", "POST_BB", 2)
        deck = joint_shuffle(parties, DECK)
        for party in parties:
            dealt = [deck.pop(), deck.pop()]
            client.post(
                f"/tables/{seated}/hole_cards",
                json={
                    "cards": [c.to_dict() for c in party.hole_cards_for_opponent(dealt)],
                    "mask_key": party.mask_key.to_hex(),
                },
                headers=as_player(party.identity),
            )
        act(client, seated, "alice", "PREFLOP_CALL")
        act(client, seated, "bob", "CHECK")

        cards = [deck.pop() for _ in range(3)]
        client.post(f"/tables/{seated}/board", json={"cards": [c.to_dict() for c in cards]}, headers=as_player("bob"))
        # Bob's shares submitted as Alice's
        response = client.post(
            f"/tables/{seated}/board/reveal",
            json={"shares": [s.to_dict() for s in parties[1].decryption_shares(cards)]},
            headers=as_player("alice"),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "IllegalAction"


class TestLookup:
    """Tests for the lookup endpoints."""

    def test_roots(self, client):
        assert client.get("/lookup/roots").json() == reference_tables().roots

    def test_entry_with_proof(self, client):
        tables = reference_tables()
        key = 41 * 37 * 31 * 29 * 23
        data = client.get(f"/lookup/flush/{key}").json()
        assert data["value"] == 1
        proof = MembershipProof.from_dict(data["proof"])
        assert verify_membership(tables.roots["flush"], key, 1, proof)

    def test_missing_key(self, client):
        assert client.get("/lookup/basic/4").status_code == 404

    def test_unknown_variant(self, client):
        assert client.get("/lookup/straight/4").status_code == 404


class TestWebSocket:
    """Tests for the state push."""

    def test_subscribe_and_push(self, client, table_id):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "subscribe", "table_id": table_id, "player_id": "alice"})
            message = ws.receive_json()
            assert message["type"] == "state"
            assert message["state"]["stage"] == "SB_POST"

            client.post(f"/tables/{table_id}/join", json={"seat": 0, "deposit": 50}, headers=as_player("alice"))
            message = ws.receive_json()
            assert message["state"]["seats"][0]["stack"] == 50

            ws.send_json({"type": "get_state"})
            assert ws.receive_json()["type"] == "state"

            ws.send_json({"type": "shout"})
            assert ws.receive_json()["type"] == "error"

    def test_first_message_must_subscribe(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "get_state"})
            assert ws.receive_json()["type"] == "error"

    def test_unknown_table(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "subscribe", "table_id": "table-99", "player_id": "alice"})
            assert "not found" in ws.receive_json()["message"]
