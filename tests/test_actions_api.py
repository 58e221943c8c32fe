from __future__ import annotations

import pytest


@pytest.mark.parametrize("payload", [{}, {"action": "start"}, {"action": ""}])
def test_validate_action_rejects_unknown(client, payload) -> None:
    res = client.post("/api/validate-action", json=payload)
    assert res.status_code == 400
    assert res.json()["error"] == 'Invalid action. Must be "tool-use" or "stop"'


def test_validate_action_flow(client) -> None:
    assert client.post("/api/validate-action", json={"action": "stop"}).json() == {"allowed": True}

    client.post("/api/voice-input-state", json={"active": True})
    client.post("/api/voice-preferences", json={"voiceResponsesEnabled": True})
    client.post("/api/utterances", json={"text": "run the tests"})

    blocked = client.post("/api/validate-action", json={"action": "tool-use"}).json()
    assert blocked["allowed"] is False
    assert blocked["requiredAction"] == "dequeue_utterances"

    client.post("/api/dequeue-utterances")
    blocked = client.post("/api/validate-action", json={"action": "tool-use"}).json()
    assert blocked["requiredAction"] == "speak"

    client.post("/api/speak", json={"text": "Running them now"})
    assert client.post("/api/validate-action", json={"action": "tool-use"}).json() == {"allowed": True}

    blocked = client.post("/api/validate-action", json={"action": "stop"}).json()
    assert blocked["requiredAction"] == "wait_for_utterance"

    client.delete("/api/utterances")
    assert client.post("/api/validate-action", json={"action": "stop"}).json() == {"allowed": True}


def test_stop_hook_endpoint(client) -> None:
    assert client.post("/api/hooks/stop", json={"stop_hook_active": False}).json() == {"decision": "approve"}
    client.post("/api/utterances", json={"text": "wait"})
    res = client.post("/api/hooks/stop").json()
    assert res["decision"] == "block"
