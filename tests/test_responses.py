import pytest

from hlx_sdk.errors import ExchangeApiError, InsufficientStakeError
from hlx_sdk.exchange.responses import ExchangeError, ExchangeRejected, ExchangeSuccess, response_from_http


def test_success_exposes_inner_data():
    body = {"status": "ok", "response": {"type": "order", "data": {"statuses": ["filled"]}}}
    resp = response_from_http(200, "", body, parsed=True)
    assert isinstance(resp, ExchangeSuccess) and resp.ok
    assert resp.data == {"statuses": ["filled"]}
    assert response_from_http(200, "", {"status": "ok", "response": {"type": "default"}}, parsed=True).data == {
        "type": "default"
    }


def test_status_err_is_rejection():
    resp = response_from_http(200, "", {"status": "err", "response": "Vault not registered"}, parsed=True)
    assert isinstance(resp, ExchangeRejected)
    assert resp.code == 200 and resp.message == "Vault not registered"
    with pytest.raises(ExchangeApiError) as exc:
        resp.raise_for_error()
    assert exc.value.rejected and not isinstance(exc.value, InsufficientStakeError)


def test_non_string_rejection_message_is_stringified():
    resp = response_from_http(200, "", {"status": "err", "response": {"code": 7}}, parsed=True)
    assert resp.message == "{'code': 7}"


@pytest.mark.parametrize("status", [400, 429, 500])
def test_non_2xx_keeps_raw_text(status):
    resp = response_from_http(status, '{"status":"err"}', {"status": "err"}, parsed=True)
    assert type(resp) is ExchangeError
    assert resp.message == '{"status":"err"}'
    assert resp.details == {"status": "err"}
    assert not resp.rejected


def test_insufficient_stake_is_matched_case_insensitively():
    resp = ExchangeError(code=500, message="INSUFFICIENT STAKED HYPE for action")
    with pytest.raises(InsufficientStakeError):
        resp.raise_for_error()
