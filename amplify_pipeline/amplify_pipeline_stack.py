from aws_cdk import (
    CfnOutput,
    Duration,
    RemovalPolicy,
    SecretValue,
    Stack,
    aws_amplify as amplify,
    aws_codebuild as codebuild,
    aws_codecommit as codecommit,
    aws_codepipeline as codepipeline,
    aws_codepipeline_actions as codepipeline_actions,
    aws_ec2 as ec2,
    aws_rds as rds,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

import common.constants as constants
from common.build_specs import BuildTask, amplify_deploy_task, database_migration_task
from common.config import PipelineConfig
from common.stack_context import StackContext
from networking.networking_construct import NetworkingConstruct


class AmplifyPipelineStack(Stack):
    """React front end on Amplify Hosting plus Alembic migrations on Aurora,
    both deployed by one CodePipeline on every CodeCommit push."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: PipelineConfig | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.config = config or PipelineConfig.from_context(self.node)
        self.context = StackContext(scope=self, env=self.config.deploy_env)

        # VPC and security groups (CodeBuild -> database on 5432)
        self.network = NetworkingConstruct(
            self, "Network", context=self.context, config=self.config
        )
        self.vpc = self.network.vpc

        self.database_cluster = self._build_database_cluster(self.network.database_sg)
        self.bastion_host = self._build_bastion_host(self.network.codebuild_sg)

        self.repository = self._build_code_repository()
        self.amplify_app = self._build_amplify_app()

        # Placeholder credentials, replaced in the console after the first deploy
        self.amplify_access_key_id = self._build_placeholder_secret(
            constants.AMPLIFY_ACCESS_KEY_ID, "AmplifyUserAccessKeyIDSecret"
        )
        self.amplify_secret_access_key = self._build_placeholder_secret(
            constants.AMPLIFY_SECRET_ACCESS_KEY, "AmplifyUserSecretAccessKeySecret"
        )

        self.deploy_amplify_project = self._build_project(
            amplify_deploy_task(
                access_key_secret=self.context.build_secret_name(
                    constants.AMPLIFY_ACCESS_KEY_ID
                ),
                secret_key_secret=self.context.build_secret_name(
                    constants.AMPLIFY_SECRET_ACCESS_KEY
                ),
                env=self.config.deploy_env,
                region=self.config.amplify_region,
            )
        )
        self.deploy_database_project = self._build_project(
            database_migration_task(self.database_cluster.secret.secret_name),
            vpc=self.vpc,
            security_group=self.network.codebuild_sg,
        )

        self.pipeline = self._build_pipeline()

        # Permissions
        self.amplify_access_key_id.grant_read(self.deploy_amplify_project)
        self.amplify_secret_access_key.grant_read(self.deploy_amplify_project)
        self.database_cluster.secret.grant_read(self.deploy_database_project)

        # Outputs
        CfnOutput(
            self,
            "AmplifyAppId",
            value=self.amplify_app.attr_app_id,
            description="The ID of the Amplify Application",
            export_name=constants.AMPLIFY_APP_ID_EXPORT,
        )
        CfnOutput(
            self,
            "CodeCommitHTTPCloneUrl",
            value=self.repository.repository_clone_url_http,
            description="The git HTTP clone URL",
            export_name=constants.CLONE_URL_EXPORT,
        )

    # Resource creation

    def _build_database_cluster(
        self, security_group: ec2.ISecurityGroup
    ) -> rds.DatabaseCluster:
        """Aurora PostgreSQL Serverless v2 that pauses when idle."""
        return rds.DatabaseCluster(
            self,
            "DatabaseCluster",
            cluster_identifier=self.context.build_resource_name("DatabaseCluster"),
            engine=rds.DatabaseClusterEngine.aurora_postgres(
                version=constants.DATABASE_ENGINE_VERSION
            ),
            writer=rds.ClusterInstance.serverless_v2("Writer"),
            serverless_v2_min_capacity=constants.DATABASE_MIN_CAPACITY,
            serverless_v2_max_capacity=constants.DATABASE_MAX_CAPACITY,
            serverless_v2_auto_pause_duration=Duration.minutes(
                constants.DATABASE_AUTO_PAUSE_MINUTES
            ),
            vpc=self.vpc,
            vpc_subnets=ec2.SubnetSelection(
                subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS
            ),
            security_groups=[security_group],
            default_database_name=constants.DATABASE_NAME,
            credentials=rds.Credentials.from_generated_secret(
                constants.DATABASE_USERNAME
            ),
            backup=rds.BackupProps(
                retention=Duration.days(constants.DATABASE_BACKUP_RETENTION_DAYS)
            ),
            parameter_group=rds.ParameterGroup.from_parameter_group_name(
                self, "ParameterGroup", constants.DATABASE_PARAMETER_GROUP
            ),
            removal_policy=RemovalPolicy.DESTROY,
        )

    def _build_bastion_host(
        self, security_group: ec2.ISecurityGroup
    ) -> ec2.BastionHostLinux:
        return ec2.BastionHostLinux(
            self,
            "BastionHost",
            vpc=self.vpc,
            security_group=security_group,
            instance_name=self.context.build_resource_name("BastionHost"),
        )

    def _build_code_repository(self) -> codecommit.Repository:
        return codecommit.Repository(
            self,
            "CodeCommitRepository",
            repository_name=self.context.build_resource_name(
                "CodeCommitRepository"
            ).lower(),
            description=(
                "CodeCommit repository that will be used as the source repository "
                "for the sample react app and the cdk app"
            ),
        )

    def _build_amplify_app(self) -> amplify.CfnApp:
        """Hosting app only; publishing is done by the DeployAmplify build task."""
        return amplify.CfnApp(
            self,
            "AmplifyReactApp",
            name=self.context.build_resource_name(
                "AwsAmplifyCodepipelineDbMigrations"
            ),
        )

    def _build_placeholder_secret(self, key: str, construct_id: str) -> secretsmanager.Secret:
        return secretsmanager.Secret(
            self,
            construct_id,
            secret_name=self.context.build_secret_name(key),
            description=f"{key} for the Amplify CLI, set manually after deployment",
            secret_string_value=SecretValue.unsafe_plain_text(
                constants.PLACEHOLDER_SECRET_VALUE
            ),
            removal_policy=RemovalPolicy.DESTROY,
        )

    def _build_project(
        self,
        task: BuildTask,
        vpc: ec2.IVpc | None = None,
        security_group: ec2.ISecurityGroup | None = None,
    ) -> codebuild.PipelineProject:
        """Create a CodeBuild project for a build task, logging to its own group."""
        project_name = self.context.build_resource_name("Project", action=task.name)
        log_group = self.context.build_log_group(project_name, action=task.name)
        network = {}
        if vpc is not None:
            network = {
                "vpc": vpc,
                "subnet_selection": ec2.SubnetSelection(
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS
                ),
            }
            if security_group is not None:
                network["security_groups"] = [security_group]
        return codebuild.PipelineProject(
            self,
            f"{task.name}Project",
            project_name=project_name,
            environment=codebuild.BuildEnvironment(
                build_image=constants.BUILD_IMAGE,
                compute_type=constants.BUILD_COMPUTE_TYPE,
            ),
            build_spec=task.to_build_spec(),
            logging=codebuild.LoggingOptions(
                cloud_watch=codebuild.CloudWatchLoggingOptions(log_group=log_group)
            ),
            **network,
        )

    def _build_pipeline(self) -> codepipeline.Pipeline:
        """Source -> Deploy; the two Deploy actions run in parallel on one artifact."""
        source_output = codepipeline.Artifact(constants.SOURCE_ARTIFACT_NAME)
        source_stage = codepipeline.StageProps(
            stage_name="Source",
            actions=[
                codepipeline_actions.CodeCommitSourceAction(
                    action_name="Source",
                    repository=self.repository,
                    branch=self.config.source_branch,
                    output=source_output,
                    trigger=codepipeline_actions.CodeCommitTrigger.EVENTS,
                )
            ],
        )
        deploy_stage = codepipeline.StageProps(
            stage_name="Deploy",
            actions=[
                codepipeline_actions.CodeBuildAction(
                    action_name=constants.ACTION_DEPLOY_AMPLIFY,
                    project=self.deploy_amplify_project,
                    input=source_output,
                ),
                codepipeline_actions.CodeBuildAction(
                    action_name=constants.ACTION_DEPLOY_DATABASE,
                    project=self.deploy_database_project,
                    input=source_output,
                ),
            ],
        )
        return codepipeline.Pipeline(
            self,
            "AmplifyAndDBCodePipeline",
            pipeline_name=self.context.build_resource_name("AmplifyAndDBCodePipeline"),
            stages=[source_stage, deploy_stage],
        )
