import io
from typing import Optional

import httpx
import pytest

from sia_api_cli.cli import main, run


PASSWORD_ENV = {"SIA_API_PASSWORD": "foo"}


def _client_with_capture(
    captured: dict, status: int = 200, content: bytes = b'{"ok":true}', error: Optional[str] = None
) -> httpx.Client:
    def _handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["url"] = str(request.url)
        captured["path"] = request.url.path
        captured["body"] = request.content
        captured["headers"] = dict(request.headers)
        if error:
            raise httpx.ConnectError(error, request=request)
        return httpx.Response(status, content=content)

    return httpx.Client(transport=httpx.MockTransport(_handler))


def _run(argv, captured: dict, env: Optional[dict] = None, **client_kwargs):
    output = io.BytesIO()
    code = run(
        argv,
        environ=PASSWORD_ENV if env is None else env,
        output=output,
        client=_client_with_capture(captured, **client_kwargs),
    )
    return code, output.getvalue()


def test_host_storage_relays_body() -> None:
    captured: dict = {}

    code, body = _run(["host", "storage"], captured, content=b'{"folders":[]}')

    assert code == 0
    assert body == b'{"folders":[]}'
    assert captured["method"] == "GET"
    assert captured["url"] == "http://localhost:9980/host/storage"
    assert captured["headers"]["user-agent"] == "Sia-Agent"
    assert captured["headers"]["authorization"] == "Basic OmZvbw=="


def test_alias_is_rewritten_to_canonical_path() -> None:
    captured: dict = {}

    code, _ = _run(["host", "folders"], captured)

    assert code == 0
    assert captured["path"] == "/host/storage"


def test_named_segment_path_is_sent_verbatim() -> None:
    captured: dict = {}

    code, _ = _run(["hostdb", "hosts", "ed25519:abcd"], captured)

    assert code == 0
    assert captured["path"] == "/hostdb/hosts/ed25519:abcd"


def test_unknown_endpoint_exits_127(capsys) -> None:
    captured: dict = {}

    code, body = _run(["no", "such", "thing"], captured)

    assert code == 127
    assert body == b""
    assert captured == {}
    assert "No matching endpoints" in capsys.readouterr().err


def test_ambiguous_endpoint_exits_127_until_method_given(capsys) -> None:
    captured: dict = {}

    code, _ = _run(["daemon", "settings"], captured)
    assert code == 127
    err = capsys.readouterr().err
    assert "More than one matching endpoint" in err
    assert "POST /daemon/settings" in err

    code, _ = _run(["daemon", "settings", "--method", "POST", "--maxdownloadspeed", "0"], captured)
    assert code == 0
    assert captured["method"] == "POST"
    assert captured["body"] == b"maxdownloadspeed=0"
    assert captured["headers"]["content-type"] == "application/x-www-form-urlencoded"


def test_repeated_flags_are_encoded_in_order() -> None:
    captured: dict = {}

    code, _ = _run(["wallet", "siacoins", "--amount", "1", "--amount", "2"], captured)

    assert code == 0
    assert captured["method"] == "POST"
    assert captured["body"] == b"amount=1&amount=2"


def test_get_params_become_query_string() -> None:
    captured: dict = {}

    code, _ = _run(["renter", "prices", "--funds", "1KS", "--period", "1w"], captured)

    assert code == 0
    assert captured["url"] == "http://localhost:9980/renter/prices?funds=1" + "0" * 27 + "&period=1008"


def test_explicit_method_reaches_unlisted_endpoint() -> None:
    captured: dict = {}

    code, _ = _run(["host", "storage", "--method", "post"], captured)

    assert code == 0
    assert captured["method"] == "POST"
    assert captured["path"] == "/host/storage"


def test_error_status_is_relayed_with_success_exit() -> None:
    captured: dict = {}

    code, body = _run(["wallet"], captured, status=500, content=b'{"message":"wallet is locked"}')

    assert code == 0
    assert body == b'{"message":"wallet is locked"}'


def test_transport_error_exits_1(capsys) -> None:
    captured: dict = {}

    code, body = _run(["consensus"], captured, error="connection refused")

    assert code == 1
    assert body == b""
    assert "HTTP request failed" in capsys.readouterr().err


def test_env_password_beats_password_file(tmp_path) -> None:
    (tmp_path / "apipassword").write_text("from-file\n")
    captured: dict = {}

    code, _ = _run(
        ["consensus"], captured, env={"SIA_API_PASSWORD": "foo", "SIA_DATA_DIR": str(tmp_path)}
    )

    assert code == 0
    assert captured["headers"]["authorization"] == "Basic OmZvbw=="


def test_password_file_used_without_env(tmp_path) -> None:
    (tmp_path / "apipassword").write_text("foo\n")
    captured: dict = {}

    code, _ = _run(["consensus"], captured, env={"SIA_DATA_DIR": str(tmp_path)})

    assert code == 0
    assert captured["headers"]["authorization"] == "Basic OmZvbw=="


def test_missing_password_file_exits_1(tmp_path, capsys) -> None:
    captured: dict = {}

    code, _ = _run(["consensus"], captured, env={"SIA_DATA_DIR": str(tmp_path)})

    assert code == 1
    assert captured == {}
    assert "unable to load API password" in capsys.readouterr().err


def test_undecodable_password_file_exits_1(tmp_path, capsys) -> None:
    (tmp_path / "apipassword").write_bytes(b"p\xe4ss\n")
    captured: dict = {}

    code, _ = _run(["consensus"], captured, env={"SIA_DATA_DIR": str(tmp_path)})

    assert code == 1
    assert captured == {}
    assert "unable to load API password" in capsys.readouterr().err


def test_config_path_that_is_a_directory_exits_1(tmp_path, capsys) -> None:
    captured: dict = {}

    code, _ = _run(
        ["consensus"], captured, env={"SIA_API_PASSWORD": "foo", "SIA_API_CLI_CONFIG": str(tmp_path)}
    )

    assert code == 1
    assert captured == {}
    assert "Invalid config file" in capsys.readouterr().err


def test_password_flag_skips_password_file(tmp_path) -> None:
    captured: dict = {}

    code, _ = _run(
        ["consensus", "--apipassword", "foo"], captured, env={"SIA_DATA_DIR": str(tmp_path)}
    )

    assert code == 0
    assert captured["headers"]["authorization"] == "Basic OmZvbw=="


def test_address_and_user_agent_overrides() -> None:
    captured: dict = {}

    code, _ = _run(["consensus", "--addr", "10.0.0.9:8000", "--useragent", "siac-test"], captured)

    assert code == 0
    assert captured["url"] == "http://10.0.0.9:8000/consensus"
    assert captured["headers"]["user-agent"] == "siac-test"


def test_malformed_address_exits_1(capsys) -> None:
    captured: dict = {}

    code, _ = _run(["consensus", "--addr", "localhost:notaport"], captured)

    assert code == 1
    assert captured == {}
    assert "Invalid request URL" in capsys.readouterr().err


def test_bad_friendly_value_exits_1(capsys) -> None:
    captured: dict = {}

    code, _ = _run(["wallet", "siacoins", "--amount", "lots"], captured)

    assert code == 1
    assert "Could not parse currency" in capsys.readouterr().err


def test_fractional_bare_amount_is_rejected(capsys) -> None:
    captured: dict = {}

    code, _ = _run(["wallet", "siacoins", "--amount", "1.5"], captured)

    assert code == 1
    assert captured == {}
    assert "needs a unit or a whole number" in capsys.readouterr().err


def test_main_exits_with_resolution_code(monkeypatch) -> None:
    monkeypatch.setenv("SIA_API_PASSWORD", "foo")
    monkeypatch.delenv("SIA_API_CLI_CONFIG", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        main(["definitely", "unknown"])

    assert excinfo.value.code == 127
