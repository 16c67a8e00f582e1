"""Tests for POST /generate."""

import pytest

from clipforge.api.core.dependencies import (
    get_generation_backend,
    get_generation_settings,
)
from clipforge.api.core.messages import MessageCode
from clipforge.modules.generation.backends import BackendLogicalFailure
from clipforge.modules.generation.constants import MAX_SEED
from clipforge.utils.settings.generation import GenerationSettings
from tests.fakes import ARTIFACT_URL, ScriptedImmediateBackend
from tests.utils.assertions import assert_error_response, assert_success_response
from tests.utils.constants import TEST_USER_ID


@pytest.mark.asyncio
async def test_generate_spends_one_credit(
    authorized_client, test_account, generation_backend, read_balance
):
    response = await authorized_client.post(
        "/generate", json={"prompt": "a paper boat in the rain", "seed": 7}
    )

    data = assert_success_response(response)
    assert data == {
        "artifactURL": ARTIFACT_URL,
        "seed": 7,
        "remainingBalance": 2,
        "debitApplied": True,
    }
    assert generation_backend.submit_calls == [("a paper boat in the rain", 7)]
    assert await read_balance(TEST_USER_ID) == 2


@pytest.mark.asyncio
async def test_generate_last_credit(
    authorized_client, db_session, account_factory, read_balance
):
    await account_factory.create_async(db_session, user_id=TEST_USER_ID, credits=1)

    response = await authorized_client.post("/generate", json={"prompt": "cat", "seed": 42})

    data = assert_success_response(response)
    assert data["artifactURL"] == ARTIFACT_URL
    assert data["seed"] == 42
    assert data["remainingBalance"] == 0
    assert "artifact_url" not in data
    assert "remaining_balance" not in data
    assert await read_balance(TEST_USER_ID) == 0


@pytest.mark.asyncio
async def test_generate_without_credits(authorized_client, generation_backend):
    response = await authorized_client.post("/generate", json={"prompt": "a fox"})

    body = assert_error_response(response, MessageCode.INSUFFICIENT_CREDITS, 402)
    assert body["details"]["balance"] == 0
    assert generation_backend.submit_calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"prompt": ""}, {"prompt": "  "}])
async def test_generate_requires_prompt(authorized_client, test_account, payload):
    response = await authorized_client.post("/generate", json=payload)

    body = assert_error_response(response, MessageCode.VALIDATION_ERROR, 400)
    assert body["details"]["field"] == "prompt"


@pytest.mark.asyncio
@pytest.mark.parametrize("seed", [-1, MAX_SEED + 1, "lucky"])
async def test_generate_rejects_bad_seed(authorized_client, test_account, seed):
    response = await authorized_client.post(
        "/generate", json={"prompt": "a fox", "seed": seed}
    )

    assert_error_response(response, MessageCode.INVALID_INPUT, 422)


@pytest.mark.asyncio
async def test_generation_failure_keeps_credits(
    app, authorized_client, test_account, read_balance
):
    failing = ScriptedImmediateBackend(error=BackendLogicalFailure("safety filter"))
    app.dependency_overrides[get_generation_backend] = lambda: failing

    response = await authorized_client.post(
        "/generate", json={"prompt": "a fox", "seed": 11}
    )

    body = assert_error_response(response, MessageCode.GENERATION_FAILED, 500)
    assert body["details"]["seed"] == 11
    assert body["details"]["failure_kind"] == "provider"
    assert body["details"]["description"] == "safety filter"
    assert await read_balance(TEST_USER_ID) == 3


@pytest.mark.asyncio
async def test_unknown_backend_is_configuration_error(
    app, authorized_client, test_account, read_balance
):
    app.dependency_overrides.pop(get_generation_backend)
    app.dependency_overrides[get_generation_settings] = lambda: GenerationSettings(
        GENERATION_BACKEND="nonexistent"
    )

    response = await authorized_client.post("/generate", json={"prompt": "a fox"})

    assert_error_response(response, MessageCode.CONFIGURATION_ERROR, 500)
    assert await read_balance(TEST_USER_ID) == 3


@pytest.mark.asyncio
async def test_generate_requires_authentication(public_client, generation_backend):
    response = await public_client.post("/generate", json={"prompt": "a fox"})

    assert_error_response(response, MessageCode.AUTH_REQUIRED, 401)
    assert response.headers["www-authenticate"] == "Bearer"
    assert generation_backend.submit_calls == []


@pytest.mark.asyncio
async def test_generate_rejects_bad_token(public_client, jwt_token_factory):
    response = await public_client.post(
        "/generate",
        json={"prompt": "a fox"},
        headers={"Authorization": f"Bearer {jwt_token_factory(secret='wrong')}"},
    )

    assert_error_response(response, MessageCode.INVALID_TOKEN, 401)
