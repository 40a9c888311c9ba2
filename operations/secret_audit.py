"""Report Amplify CLI secrets that still hold the deploy-time placeholder.

The stack creates the secrets with a dummy value that must be replaced in the
console before the DeployAmplify task can publish. This only reads secrets; it
never writes them.

    python -m operations.secret_audit --stack-name MyStack --env dev
"""
import argparse
import os
from typing import Iterable, Optional, Sequence

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities import parameters
from aws_lambda_powertools.utilities.parameters.exceptions import GetParameterError

import common.constants as constants
from common.stack_context import secret_name_for

logger = Logger(
    service=f"{constants.SERVICE_NAME}-secret-audit",
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
)


def find_placeholder_secrets(secret_names: Iterable[str]) -> list[str]:
    pending = []
    for secret_name in secret_names:
        try:
            value = parameters.get_secret(secret_name, force_fetch=True)
        except GetParameterError:
            logger.exception("Failed to read secret", secret=secret_name)
            raise
        if value == constants.PLACEHOLDER_SECRET_VALUE:
            logger.warning("Secret still holds the placeholder value", secret=secret_name)
            pending.append(secret_name)
        else:
            logger.info("Secret is populated", secret=secret_name)
    return pending


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--stack-name", default=constants.STACK_NAME)
    parser.add_argument("--env", default=constants.DEFAULT_ENV)
    args = parser.parse_args(argv)

    names = [
        secret_name_for(args.stack_name, args.env, key)
        for key in constants.AMPLIFY_SECRET_KEYS
    ]
    pending = find_placeholder_secrets(names)
    if pending:
        logger.error("Secrets must be replaced before the pipeline can deploy", pending=pending)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
