from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from common import constants
from common.config import PipelineConfig
from common.stack_context import StackContext


class NetworkingConstruct(Construct):
    """VPC plus the two security groups the build tasks and database share.

    The database group admits exactly one source: the CodeBuild group, on the
    database port.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        context: StackContext,
        config: PipelineConfig,
    ) -> None:
        super().__init__(scope, construct_id)
        self.context = context
        self.config = config

        self.vpc = self.create_vpc()
        self.check_availability_zones()
        self.codebuild_sg = self.create_codebuild_sg(self.vpc)
        self.database_sg = self.create_database_sg(self.vpc)
        self.allow_codebuild_to_database()

    def create_vpc(self) -> ec2.Vpc:
        return ec2.Vpc(
            self,
            "VPC",
            vpc_name=self.context.build_resource_name("VPC"),
            ip_addresses=ec2.IpAddresses.cidr(self.config.vpc_cidr),
            max_azs=self.config.max_azs,
            nat_gateways=self.config.nat_gateways,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name="private-",
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    cidr_mask=constants.CIDR_MASK,
                ),
                ec2.SubnetConfiguration(
                    name="public-",
                    subnet_type=ec2.SubnetType.PUBLIC,
                    cidr_mask=constants.CIDR_MASK,
                ),
            ],
        )

    def check_availability_zones(self) -> None:
        # an environment-agnostic stack only ever gets two AZs
        zones = len(self.vpc.availability_zones)
        if zones != self.config.max_azs:
            raise ValueError(
                f"max_azs ({self.config.max_azs}) requested but the VPC spans {zones} "
                "availability zones; set the stack account and region to use more than two"
            )

    def create_codebuild_sg(self, vpc: ec2.IVpc) -> ec2.SecurityGroup:
        return ec2.SecurityGroup(
            self,
            "CodeBuildSecurityGroup",
            vpc=vpc,
            security_group_name=self.context.build_resource_name(
                "CodeBuildSecurityGroup"
            ),
            description="Security group for CodeBuild migrations and the bastion host",
        )

    def create_database_sg(self, vpc: ec2.IVpc) -> ec2.SecurityGroup:
        return ec2.SecurityGroup(
            self,
            "DatabaseSecurityGroup",
            vpc=vpc,
            security_group_name=self.context.build_resource_name(
                "DatabaseSecurityGroup"
            ),
            description="Security group for the Aurora PostgreSQL cluster",
        )

    def allow_codebuild_to_database(self) -> None:
        self.database_sg.add_ingress_rule(
            peer=self.codebuild_sg,
            connection=ec2.Port.tcp(constants.DATABASE_PORT),
            description=f"Allow PostgreSQL (TCP/{constants.DATABASE_PORT}) from CodeBuild",
        )
