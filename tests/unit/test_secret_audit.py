from typing import Callable

import pytest
from aws_lambda_powertools.utilities.parameters.exceptions import GetParameterError

from common import constants
from operations import secret_audit

POPULATED = "AKIAEXAMPLE"


def fake_get_secret(values: dict[str, str]) -> Callable[..., str]:
    def get_secret(name: str, **kwargs) -> str:
        return values[name]

    return get_secret


def test_reports_only_placeholder_secrets(monkeypatch: pytest.MonkeyPatch):
    values = {"/app/a": constants.PLACEHOLDER_SECRET_VALUE, "/app/b": POPULATED}
    monkeypatch.setattr(secret_audit.parameters, "get_secret", fake_get_secret(values))

    assert secret_audit.find_placeholder_secrets(["/app/a", "/app/b"]) == ["/app/a"]


def test_read_failure_is_propagated(monkeypatch: pytest.MonkeyPatch):
    def get_secret(name: str, **kwargs) -> str:
        raise GetParameterError("AccessDeniedException")

    monkeypatch.setattr(secret_audit.parameters, "get_secret", get_secret)

    with pytest.raises(GetParameterError):
        secret_audit.find_placeholder_secrets(["/app/a"])


def test_main_fails_while_placeholders_remain(monkeypatch: pytest.MonkeyPatch):
    values = {
        f"/app/MyStack/CodeBuild/prod/{key}": constants.PLACEHOLDER_SECRET_VALUE
        for key in constants.AMPLIFY_SECRET_KEYS
    }
    monkeypatch.setattr(secret_audit.parameters, "get_secret", fake_get_secret(values))

    assert secret_audit.main(["--stack-name", "My-Stack", "--env", "prod"]) == 1


def test_main_succeeds_once_secrets_are_replaced(monkeypatch: pytest.MonkeyPatch):
    values = {
        f"/app/{constants.STACK_NAME}/CodeBuild/dev/{key}": POPULATED
        for key in constants.AMPLIFY_SECRET_KEYS
    }
    monkeypatch.setattr(secret_audit.parameters, "get_secret", fake_get_secret(values))

    assert secret_audit.main([]) == 0
