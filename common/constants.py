from aws_cdk import aws_codebuild as codebuild, aws_rds as rds

STACK_NAME = "AwsAmplifyCodepipelineDbMigrationsMainStack"
SERVICE_NAME = "amplify-pipeline"

DEFAULT_ENV = "dev"
DEFAULT_REGION = "us-east-1"
DEFAULT_SOURCE_BRANCH = "master"

# Context keys read at synth time (cdk.json or `cdk synth -c key=value`)
CONTEXT_VPC_CIDR = "vpcCIDR"
CONTEXT_MAX_AZS = "maxAzs"
CONTEXT_NAT_GATEWAYS = "natGateways"
CONTEXT_DEPLOY_ENV = "deployEnv"
CONTEXT_SOURCE_BRANCH = "sourceBranch"
CONTEXT_AMPLIFY_REGION = "amplifyRegion"

# Networking
VPC_CIDR = "10.0.0.0/16"
CIDR_MASK = 26
MAX_AZS = 2
NAT_GATEWAYS = 1

# Database
DATABASE_PORT = 5432
DATABASE_NAME = "postgres"
DATABASE_USERNAME = "migrationstest"
DATABASE_ENGINE_VERSION = rds.AuroraPostgresEngineVersion.VER_16_4
DATABASE_PARAMETER_GROUP = "default.aurora-postgresql16"
DATABASE_MIN_CAPACITY = 0
DATABASE_MAX_CAPACITY = 2
DATABASE_AUTO_PAUSE_MINUTES = 10
DATABASE_BACKUP_RETENTION_DAYS = 1
DATABASE_SECRET_KEYS = ("engine", "username", "password", "host", "dbname")

# Build tasks
BUILD_IMAGE = codebuild.LinuxBuildImage.AMAZON_LINUX_2_5
BUILD_COMPUTE_TYPE = codebuild.ComputeType.LARGE
BUILD_SPEC_VERSION = "0.2"
BUILD_PHASES = ("install", "pre_build", "build", "post_build")
NODEJS_RUNTIME_VERSION = "20"
PYTHON_RUNTIME_VERSION = "3.12"

# Pipeline action names (used in naming)
ACTION_DEPLOY_AMPLIFY = "DeployAmplify"
ACTION_DEPLOY_DATABASE = "DeployDatabase"
SOURCE_ARTIFACT_NAME = "SourceArtifact"

# Secrets
AMPLIFY_ACCESS_KEY_ID = "AMPLIFY_USER_ACCESS_KEY_ID"
AMPLIFY_SECRET_ACCESS_KEY = "AMPLIFY_USER_SECRET_ACCESS_KEY"
AMPLIFY_SECRET_KEYS = (AMPLIFY_ACCESS_KEY_ID, AMPLIFY_SECRET_ACCESS_KEY)
PLACEHOLDER_SECRET_VALUE = "REPLACE-IN-CONSOLE-WITH-ACTUAL-VALUE"
SECRET_NAME_TEMPLATE = "/app/{stack}/CodeBuild/{env}/{key}"
SECRET_NAME_PATTERN = r"^[A-Za-z0-9/_+=.@-]{1,512}$"

# Outputs
AMPLIFY_APP_ID_EXPORT = "amplifyAppId"
CLONE_URL_EXPORT = "codeCommitHTTPCloneUrl"
