from __future__ import annotations

import pytest


def test_preferences_default_off(client) -> None:
    assert client.get("/api/voice-preferences").json() == {"voiceInputActive": False, "voiceResponsesEnabled": False}


def test_set_preferences(client, ctx) -> None:
    res = client.post("/api/voice-input-state", json={"active": True})
    assert res.json() == {"success": True, "voiceInputActive": True}

    res = client.post("/api/voice-preferences", json={"voiceResponsesEnabled": True})
    assert res.json()["preferences"] == {"voiceInputActive": True, "voiceResponsesEnabled": True}

    ctx.reset()
    assert client.get("/api/voice-preferences").json() == {"voiceInputActive": False, "voiceResponsesEnabled": False}


def test_legacy_routes(client, ctx) -> None:
    assert client.post("/api/voice-input", json={"active": True}).json() == {"success": True}
    assert client.post("/api/voice-responses", json={"enabled": True}).json() == {"success": True}
    assert ctx.preferences.voice_input_active is True
    assert ctx.preferences.voice_responses_enabled is True


@pytest.mark.parametrize("value", ["true", 1, None, "yes"])
def test_non_boolean_rejected(client, ctx, value) -> None:
    assert client.post("/api/voice-input-state", json={"active": value}).status_code == 400
    assert client.post("/api/voice-preferences", json={"voiceResponsesEnabled": value}).status_code == 400
    assert client.post("/api/voice-responses", json={"enabled": value}).status_code == 400
    assert ctx.preferences.snapshot() == {"voiceInputActive": False, "voiceResponsesEnabled": False}


def test_missing_field_rejected(client) -> None:
    res = client.post("/api/voice-input-state", json={})
    assert res.status_code == 400
    assert res.json()["code"] == "VH_4000"
