from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from aws_cdk.assertions import Template
from aws_cdk import App, Environment
from amplify_pipeline.amplify_pipeline_stack import AmplifyPipelineStack
from common.config import PipelineConfig
import pytest

STACK_ID = "TestAmplifyPipelineStack"

# Account/region pinned so AZ lookups fall back to the three dummy zones
PINNED_ENV = Environment(account="123456789012", region="us-east-1")


# ------------------- Test Case Data Classes -------------------
@dataclass(frozen=True)
class BuildProjectTestCase:
    id: str
    project_name: str
    in_vpc: bool
    secret_keys: tuple[str, ...]


@dataclass(frozen=True)
class LogGroupTestCase:
    id: str
    log_group_name: str
    retention_days: int


@dataclass(frozen=True)
class UpdateDeletePolicyTestCase:
    id: str
    update_policy: str
    delete_policy: str
    props: Optional[Mapping[str, Any]] = field(default=None)


# ------------------- Helper Functions -------------------


def find_resources_by_type(
    template: Template, resource_type: str, props: Optional[dict] = None
) -> Mapping[str, Any]:

    return template.find_resources(resource_type, props=props)


def get_single_resource_id(
    resources: Mapping[str, Any], resource_type: str = "resource"
) -> str:
    assert resources, f"No {resource_type} found in template"
    return next(iter(resources))


def build_stack(
    stack_id: str = STACK_ID,
    config: Optional[PipelineConfig] = None,
    env: Optional[Environment] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> AmplifyPipelineStack:
    app = App(context=dict(context or {}))
    return AmplifyPipelineStack(app, stack_id, config=config, env=env)


def build_template(
    stack_id: str = STACK_ID,
    config: Optional[PipelineConfig] = None,
    env: Optional[Environment] = None,
) -> Template:
    return Template.from_stack(build_stack(stack_id, config=config, env=env))


def pipeline_stages(json_template: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    pipelines = [
        resource
        for resource in json_template["Resources"].values()
        if resource["Type"] == "AWS::CodePipeline::Pipeline"
    ]
    assert len(pipelines) == 1
    return pipelines[0]["Properties"]["Stages"]


def security_group_id(template: Template, group_name: str) -> str:
    resources = find_resources_by_type(
        template,
        "AWS::EC2::SecurityGroup",
        {"Properties": {"GroupName": f"{STACK_ID}-{group_name}"}},
    )
    return get_single_resource_id(resources, group_name)


# ------------------- Pytest Fixtures -------------------


@pytest.fixture(scope="module")
def template() -> Template:
    return build_template()


@pytest.fixture(scope="module")
def json_template(template: Template) -> Mapping[str, Any]:
    return template.to_json()
