"""
Tests for the HTTP routes in oraclex_relay/controllers/api_controller.py.

Walks the full loop: price feed -> analysis -> dashboard read, and
signal -> approval -> poll -> receipt.
"""

import pytest


class TestServiceRoutes:
    def test_root_and_health(self, client):
        assert client.get("/").json()["status"] == "OK"
        assert client.get("/health").json() == {"ok": True, "status": "healthy"}

    def test_status_counts(self, client, clock):
        client.post("/update-market-state", json={"market_data": [{"symbol": "XAUUSD"}]})
        client.post("/submit-signal", json={"cmd_id": "OX_1", "symbol": "XAUUSD", "action": "BUY"})
        clock.advance(4)

        body = client.get("/status").json()
        assert body["symbols_count"] == 1
        assert body["pending_approvals"] == 1
        assert body["queue_size"] == 0
        assert body["data_age_sec"] == 4
        assert body["uptime_sec"] == 4

    def test_status_before_any_data(self, client):
        body = client.get("/status").json()
        assert body["last_update"] is None
        assert body["data_age_sec"] is None


class TestMarketStateRoutes:
    def test_price_then_analysis_then_read(self, client):
        r = client.post(
            "/update-market-state",
            json={"market_data": [{"symbol": "XAUUSD", "price": 2350.1, "bid": 2350.0, "ask": 2350.2}]},
        )
        assert r.status_code == 200
        assert r.json()["symbols_merged"] == 1
        assert r.json()["dashboard_ready"] is True

        r = client.post(
            "/market-analysis",
            json={"market_data": [{"symbol": "XAUUSD", "bias": "BULLISH", "confidence": 85,
                                   "market_regime": {"trend": "Up", "volatility": "High", "structure": "Trending"}}]},
        )
        assert r.json()["symbols_cached"] == 1

        view = client.get("/get-market-state").json()
        rec = view["market_data"][0]
        assert view["symbols_count"] == 1
        assert rec["price"] == 2350.1
        assert rec["bias"] == "BULLISH"
        assert rec["market_regime"]["trend"] == "Up"

    def test_partial_price_update_keeps_previous_fields(self, client):
        client.post("/update-market-state", json={"market_data": [{"symbol": "XAUUSD", "bid": 1.0, "h1_high": 9.0}]})
        client.post("/update-market-state", json={"market_data": [{"symbol": "XAUUSD", "bid": 2.0}]})

        rec = client.get("/get-market-state").json()["market_data"][0]
        assert rec["bid"] == 2.0
        assert rec["h1_high"] == 9.0

    @pytest.mark.parametrize("path", ["/update-market-state", "/market-analysis", "/data-update"])
    @pytest.mark.parametrize("body", [{}, {"market_data": "XAUUSD"}, {"market_data": {"symbol": "XAUUSD"}}])
    def test_malformed_batch_is_400(self, client, path, body):
        r = client.post(path, json=body)
        assert r.status_code == 400
        assert r.json()["ok"] is False
        assert client.get("/get-market-state").json()["symbols_count"] == 0

    def test_analysis_post_stamps_timestamp_when_prices_never_arrived(self, client):
        client.post("/market-analysis", json={"market_data": [{"symbol": "XAUUSD"}]})
        view = client.get("/get-market-state").json()
        assert view["timestamp"] is not None
        assert view["market_data"] == []

    def test_legacy_data_update_replaces_store(self, client):
        client.post("/update-market-state", json={"market_data": [{"symbol": "XAUUSD"}, {"symbol": "EURUSD"}]})
        r = client.post("/data-update", json={"market_data": [{"symbol": "GBPUSD"}]})
        assert r.json()["ok"] is True

        symbols = [m["symbol"] for m in client.get("/get-market-state").json()["market_data"]]
        assert symbols == ["GBPUSD"]


class TestSignalRoutes:
    def test_full_signal_lifecycle(self, client):
        r = client.post("/submit-signal", json={"symbol": "XAUUSD", "action": "BUY", "sl": 2340.0, "tp": 2370.0})
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "PENDING_APPROVAL"
        assert body["auto_approve_in_sec"] == 30
        cmd_id = body["cmd_id"]
        assert cmd_id.startswith("OX_")

        pending = client.get("/pending-approvals").json()
        assert pending["total"] == 1
        assert pending["items"][0]["status"] == "PENDING"

        r = client.post("/approve-signal", json={"cmd_id": cmd_id, "lot": 0.2})
        assert r.status_code == 200
        assert r.json()["approved"] is True

        cmd = client.get("/last-signal").json()
        assert cmd["cmd_id"] == cmd_id
        assert cmd["lot"] == 0.2
        assert cmd["comment"] == "ORACLEX"
        assert client.get("/last-signal").json() == {"action": "NONE"}

        assert client.get("/pending-approvals").json()["items"][0]["status"] == "APPROVED"

        r = client.post("/execution-receipt", json={"cmd_id": cmd_id, "symbol": "XAUUSD", "action": "BUY",
                                                    "retcode": 10009,
                                                    "dashboard_context": {"market_regime_trend": "Up",
                                                                          "current_session": "London"}})
        assert r.json() == {"ok": True, "receipt_id": cmd_id}
        assert client.get("/pending-approvals").json()["total"] == 0

        receipts = client.get("/receipts").json()
        assert receipts["total"] == 1
        assert receipts["receipts"][0]["retcode"] == 10009

    def test_submit_without_symbol_or_action_is_400(self, client):
        r = client.post("/submit-signal", json={})
        assert r.status_code == 400
        assert r.json()["error"] == "Missing symbol or action"

    def test_resubmit_after_approval_is_409(self, client, state):
        signal = {"cmd_id": "OX_1", "symbol": "XAUUSD", "action": "BUY"}
        client.post("/submit-signal", json=signal)
        client.post("/approve-signal", json={"cmd_id": "OX_1"})

        r = client.post("/submit-signal", json=signal)
        assert r.status_code == 409
        assert r.json()["ok"] is False
        assert state.queue.size == 1

    def test_approve_unknown_is_404(self, client):
        r = client.post("/approve-signal", json={"cmd_id": "OX_1"})
        assert r.status_code == 404
        assert client.get("/last-signal").json() == {"action": "NONE"}

    def test_double_approve_is_409(self, client):
        client.post("/submit-signal", json={"cmd_id": "OX_1", "symbol": "XAUUSD", "action": "BUY"})
        client.post("/approve-signal", json={"cmd_id": "OX_1"})
        assert client.post("/approve-signal", json={"cmd_id": "OX_1"}).status_code == 409

    def test_flush_queue(self, client):
        for i in range(2):
            client.post("/submit-signal", json={"cmd_id": f"OX_{i}", "symbol": "XAUUSD", "action": "BUY"})
            client.post("/approve-signal", json={"cmd_id": f"OX_{i}"})

        r = client.post("/flush-queue")
        assert r.json() == {"status": "FLUSHED", "ok": True, "dropped": 2}
        assert client.get("/last-signal").json() == {"action": "NONE"}
