import ipaddress
import os
from typing import Any

from attrs import define, field
from attrs.validators import and_, ge, instance_of
from aws_lambda_powertools import Logger
from constructs import Node

import common.constants as constants

logger: Logger = Logger(
    service=constants.SERVICE_NAME, level=os.getenv("LOG_LEVEL", "INFO").upper()
)


def _valid_cidr(instance: Any, attribute: Any, value: str) -> None:
    try:
        ipaddress.IPv4Network(value)
    except ValueError as e:
        raise ValueError(f"{attribute.name} must be an IPv4 network, got {value!r}: {e}")


@define(slots=True, kw_only=True, frozen=True)
class PipelineConfig:
    """Synth-time inputs for the pipeline stack.

    Every field has a default so `cdk synth` works without any context; the
    values in cdk.json override them.
    """

    vpc_cidr: str = field(
        default=constants.VPC_CIDR, validator=and_(instance_of(str), _valid_cidr)
    )
    # Aurora subnet groups span at least two AZs
    max_azs: int = field(default=constants.MAX_AZS, converter=int, validator=ge(2))
    # private subnets route egress through a NAT gateway
    nat_gateways: int = field(
        default=constants.NAT_GATEWAYS, converter=int, validator=ge(1)
    )
    deploy_env: str = field(default=constants.DEFAULT_ENV, validator=instance_of(str))
    source_branch: str = field(
        default=constants.DEFAULT_SOURCE_BRANCH, validator=instance_of(str)
    )
    amplify_region: str = field(
        default=constants.DEFAULT_REGION, validator=instance_of(str)
    )

    def __attrs_post_init__(self) -> None:
        if self.nat_gateways > self.max_azs:
            raise ValueError(
                f"nat_gateways ({self.nat_gateways}) cannot exceed max_azs ({self.max_azs})"
            )
        # one public and one private subnet per AZ
        required = 2 * self.max_azs * 2 ** (32 - constants.CIDR_MASK)
        available = ipaddress.IPv4Network(self.vpc_cidr).num_addresses
        if available < required:
            raise ValueError(
                f"{self.vpc_cidr} cannot hold {2 * self.max_azs} /{constants.CIDR_MASK} subnets"
            )
        if constants.DATABASE_MIN_CAPACITY > constants.DATABASE_MAX_CAPACITY:
            raise ValueError("Database min capacity must not exceed max capacity")

    @classmethod
    def from_context(cls, node: Node) -> "PipelineConfig":
        """Resolve the configuration from CDK context, falling back to defaults."""
        lookups = {
            "vpc_cidr": constants.CONTEXT_VPC_CIDR,
            "max_azs": constants.CONTEXT_MAX_AZS,
            "nat_gateways": constants.CONTEXT_NAT_GATEWAYS,
            "deploy_env": constants.CONTEXT_DEPLOY_ENV,
            "source_branch": constants.CONTEXT_SOURCE_BRANCH,
            "amplify_region": constants.CONTEXT_AMPLIFY_REGION,
        }
        values = {}
        for attribute, key in lookups.items():
            value = node.try_get_context(key)
            if value is not None:
                values[attribute] = value
        config = cls(**values)
        logger.info(
            "Resolved pipeline configuration",
            vpc_cidr=config.vpc_cidr,
            max_azs=config.max_azs,
            nat_gateways=config.nat_gateways,
            deploy_env=config.deploy_env,
            source_branch=config.source_branch,
            amplify_region=config.amplify_region,
        )
        return config
