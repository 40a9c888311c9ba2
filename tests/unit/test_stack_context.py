import re

import pytest
from aws_cdk import App, Stack

from common import constants
from common.stack_context import StackContext, secret_name_for


@pytest.fixture
def context() -> StackContext:
    return StackContext(scope=Stack(App(), "My-Stack"), env="dev")


def test_resource_name_is_prefixed_with_stack_name(context: StackContext):
    assert context.build_resource_name("VPC") == "My-Stack-VPC"
    assert (
        context.build_resource_name("Project", action=constants.ACTION_DEPLOY_AMPLIFY)
        == "My-Stack-DeployAmplifyProject"
    )


def test_secret_name_strips_hyphens_from_stack_name(context: StackContext):
    assert (
        context.build_secret_name(constants.AMPLIFY_ACCESS_KEY_ID)
        == "/app/MyStack/CodeBuild/dev/AMPLIFY_USER_ACCESS_KEY_ID"
    )


@pytest.mark.parametrize("key", constants.AMPLIFY_SECRET_KEYS)
def test_secret_names_match_secrets_manager_pattern(key: str):
    name = secret_name_for(constants.STACK_NAME, constants.DEFAULT_ENV, key)
    assert re.fullmatch(constants.SECRET_NAME_PATTERN, name)


@pytest.mark.parametrize("env", ["dev env", "dev#1", "x" * 512])
def test_malformed_secret_name_is_rejected(env: str):
    with pytest.raises(ValueError, match="not a valid Secrets Manager name"):
        secret_name_for("Stack", env, constants.AMPLIFY_ACCESS_KEY_ID)
