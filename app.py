#!/usr/bin/env python3
"""AWS CDK entrypoint for the Amplify + database migrations pipeline.

Synth-time inputs (VPC CIDR, AZ count, ...) come from cdk.json context and can
be overridden with `cdk synth -c vpcCIDR=10.1.0.0/16`. The account and region
are sourced from the CDK CLI defaults.
"""
import os

import aws_cdk as cdk
from aws_cdk import Environment

from amplify_pipeline.amplify_pipeline_stack import AmplifyPipelineStack
from common import constants

app = cdk.App()

env = Environment(
    account=os.getenv("CDK_DEFAULT_ACCOUNT"),
    region=os.getenv("CDK_DEFAULT_REGION"),
)

AmplifyPipelineStack(
    app,
    constants.STACK_NAME,
    stack_name=constants.STACK_NAME,
    env=env,
)

app.synth()
