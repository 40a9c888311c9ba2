"""CodeBuild buildspec documents for the two Deploy stage tasks.

A `BuildTask` is a plain record of ordered shell commands plus the secrets the
build runner injects as environment variables before the first command runs.
CodeBuild executes the commands of each phase in order and aborts the task on
the first non-zero exit status.
"""
import json
from typing import Any, Mapping

from attrs import define, field
from attrs.validators import deep_iterable, deep_mapping, instance_of
from aws_cdk import aws_codebuild as codebuild

import common.constants as constants


def _non_empty(instance: Any, attribute: Any, value: Any) -> None:
    if not value:
        raise ValueError(f"{attribute.name} must not be empty")


def _known_phases(instance: Any, attribute: Any, value: Mapping[str, Any]) -> None:
    unknown = set(value) - set(constants.BUILD_PHASES)
    if unknown:
        raise ValueError(
            f"Unknown build phases {sorted(unknown)}, expected one of {constants.BUILD_PHASES}"
        )


@define(slots=True, kw_only=True, frozen=True)
class BuildPhase:
    commands: tuple[str, ...] = field(
        converter=tuple,
        validator=[deep_iterable(instance_of(str)), _non_empty],
    )
    runtime_versions: dict[str, str] = field(factory=dict)

    def to_dict(self) -> dict[str, Any]:
        phase: dict[str, Any] = {}
        if self.runtime_versions:
            phase["runtime-versions"] = dict(self.runtime_versions)
        phase["commands"] = list(self.commands)
        return phase


@define(slots=True, kw_only=True, frozen=True)
class BuildTask:
    name: str = field(validator=instance_of(str))
    phases: dict[str, BuildPhase] = field(
        validator=[
            deep_mapping(instance_of(str), instance_of(BuildPhase)),
            _non_empty,
            _known_phases,
        ]
    )
    # environment variable -> "<secret-id>[:<json-key>]"
    secrets: dict[str, str] = field(factory=dict)

    @property
    def commands(self) -> list[str]:
        """All commands in execution order."""
        return [
            command
            for phase_name in constants.BUILD_PHASES
            if phase_name in self.phases
            for command in self.phases[phase_name].commands
        ]

    def to_build_spec_object(self) -> dict[str, Any]:
        spec: dict[str, Any] = {"version": constants.BUILD_SPEC_VERSION}
        if self.secrets:
            spec["env"] = {"secrets-manager": dict(self.secrets)}
        spec["phases"] = {
            phase_name: self.phases[phase_name].to_dict()
            for phase_name in constants.BUILD_PHASES
            if phase_name in self.phases
        }
        return spec

    def to_build_spec(self) -> codebuild.BuildSpec:
        return codebuild.BuildSpec.from_object(self.to_build_spec_object())


def _shell_json(value: Mapping[str, Any]) -> str:
    """Render JSON as a double-quoted shell word so $VARS inside still expand."""
    encoded = json.dumps(value, separators=(",", ":"))
    return '"' + encoded.replace('"', '\\"') + '"'


def amplify_deploy_task(
    access_key_secret: str,
    secret_key_secret: str,
    env: str = constants.DEFAULT_ENV,
    region: str = constants.DEFAULT_REGION,
) -> BuildTask:
    """Publish the React front end with the Amplify CLI."""
    amplify = _shell_json({"envName": env, "defaultEditor": "code"})
    providers = _shell_json(
        {
            "awscloudformation": {
                "useProfile": False,
                "accessKeyId": f"${constants.AMPLIFY_ACCESS_KEY_ID}",
                "secretAccessKey": f"${constants.AMPLIFY_SECRET_ACCESS_KEY}",
                "region": region,
            }
        }
    )
    frontend = _shell_json(
        {
            "frontend": "javascript",
            "framework": "react",
            "config": {
                "SourceDir": "src",
                "DistributionDir": "build",
                "BuildCommand": "npm run-script build",
                "StartCommand": "npm run-script start",
            },
        }
    )
    return BuildTask(
        name=constants.ACTION_DEPLOY_AMPLIFY,
        secrets={
            constants.AMPLIFY_ACCESS_KEY_ID: access_key_secret,
            constants.AMPLIFY_SECRET_ACCESS_KEY: secret_key_secret,
        },
        phases={
            "install": BuildPhase(
                runtime_versions={
                    "python": constants.PYTHON_RUNTIME_VERSION,
                    "nodejs": constants.NODEJS_RUNTIME_VERSION,
                },
                # pin an Amplify CLI version here if publishes start drifting
                commands=["npm install -g @aws-amplify/cli", "npm install"],
            ),
            "build": BuildPhase(
                commands=[
                    f"npx amplify init --yes --amplify {amplify} --providers {providers}",
                    f"npx amplify configure project --yes --amplify {amplify} "
                    f"--providers {providers} --frontend {frontend}",
                    "npx amplify publish --invalidateCloudFront --yes",
                ]
            ),
        },
    )


def database_migration_task(database_secret_name: str) -> BuildTask:
    """Apply Alembic migrations against the cluster using its generated secret."""
    secrets = {
        f"DATABASE_SECRET_{key.upper()}": f"{database_secret_name}:{key}"
        for key in constants.DATABASE_SECRET_KEYS
    }
    return BuildTask(
        name=constants.ACTION_DEPLOY_DATABASE,
        secrets=secrets,
        phases={
            "install": BuildPhase(
                runtime_versions={"python": constants.PYTHON_RUNTIME_VERSION},
                commands=[
                    "yum install -y python3-devel postgresql-devel",
                    "yum install -y jq",
                ],
            ),
            "pre_build": BuildPhase(
                commands=[
                    "python3 -m venv env",
                    "source env/bin/activate",
                    "pip install psycopg2-binary==2.9.10",
                    "pip install SQLAlchemy==2.0.36",
                    "pip install alembic==1.14.0",
                    "pip install boto3",
                    "pip install pytest",
                    'sed -i "s/sqlalchemy.url = [^\\n]*/sqlalchemy.url = '
                    "postgresql:\\/\\/$DATABASE_SECRET_USERNAME:$DATABASE_SECRET_PASSWORD"
                    '@$DATABASE_SECRET_HOST\\/$DATABASE_SECRET_DBNAME/" alembic.ini',
                ]
            ),
            "build": BuildPhase(commands=["alembic upgrade head"]),
        },
    )
