import re
from typing import Optional

from attrs import define, field
from aws_cdk import RemovalPolicy, Stack, aws_logs as logs

import common.constants as constants


def secret_name_for(stack_name: str, env: str, key: str) -> str:
    """Build the Secrets Manager path CodeBuild reads a credential from.

    Example:
        /app/AwsAmplifyCodepipelineDbMigrationsMainStack/CodeBuild/dev/AMPLIFY_USER_ACCESS_KEY_ID
    """
    name = constants.SECRET_NAME_TEMPLATE.format(
        stack=stack_name.replace("-", ""), env=env, key=key
    )
    if not re.fullmatch(constants.SECRET_NAME_PATTERN, name):
        raise ValueError(f"Secret name {name!r} is not a valid Secrets Manager name")
    return name


@define(slots=True, frozen=True)
class StackContext:
    scope: Stack
    env: str = field(
        default=constants.DEFAULT_ENV,
        metadata={"description": "Deployment environment (dev, staging, prod)"},
    )

    @property
    def stack_name(self) -> str:
        return Stack.of(self.scope).stack_name

    # ---------- naming ----------
    def build_resource_name(
        self, resource_type: str, action: Optional[str] = None
    ) -> str:
        """Build a physical resource name prefixed with the stack name.

        Examples:
            - Without action: MyStack-VPC
            - With action: MyStack-DeployAmplifyProject
        """
        if action:
            return f"{self.stack_name}-{action}{resource_type}"
        return f"{self.stack_name}-{resource_type}"

    def build_secret_name(self, key: str) -> str:
        return secret_name_for(self.stack_name, self.env, key)

    # ---------- logging ----------
    def build_log_group(self, project_name: str, action: str) -> logs.LogGroup:
        return logs.LogGroup(
            self.scope,
            f"{action}LogGroup",
            log_group_name=f"/aws/codebuild/{project_name}",
            removal_policy=RemovalPolicy.DESTROY,
            retention=logs.RetentionDays.ONE_YEAR,
        )
