import os
from typing import Mapping, NamedTuple, Optional

import dotenv

from ephemeral_verifier.util.errors import ConfigurationError

DEFAULT_REGION = "us-east-1"

# Environment variables that must be set and non-empty.
REQUIRED_VARIABLES = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_ROLE_ARN",
    "AWS_AMI_ID",
    "AWS_KEY_NAME",
)


class ProviderCredentials(NamedTuple):
    access_key_id: str
    secret_access_key: str
    region: str
    role_arn: str
    ami_id: str
    key_name: str


def resolve(environ: Optional[Mapping[str, str]] = None) -> ProviderCredentials:
    """Read the AWS credentials and the fixed instance configuration from the
    environment.

    Args:
        environ (dict): The environment to read from. Defaults to os.environ, completed
            with the variables of the .env file found from the working directory, if
            any. Variables already set in the process take precedence.

    Returns:
        The resolved credentials as a ProviderCredentials object.

    Raises:
        ConfigurationError: At least one of the required variables is missing or empty.
    """
    if environ is None:
        environ = load_environment()

    if not all(environ.get(name) for name in REQUIRED_VARIABLES):
        raise ConfigurationError(
            "AWS related environment variables are not set. Please check your"
            " env file and try again."
        )

    return ProviderCredentials(
        access_key_id=environ["AWS_ACCESS_KEY_ID"],
        secret_access_key=environ["AWS_SECRET_ACCESS_KEY"],
        region=environ.get("AWS_REGION") or DEFAULT_REGION,
        role_arn=environ["AWS_ROLE_ARN"],
        ami_id=environ["AWS_AMI_ID"],
        key_name=environ["AWS_KEY_NAME"],
    )


def load_environment() -> Mapping[str, str]:
    """Merge the variables of the closest .env file with the process's environment,
    without modifying the latter."""
    env_file = dotenv.find_dotenv(usecwd=True)
    environ = {
        name: value
        for name, value in dotenv.dotenv_values(env_file).items()
        if value is not None
    }
    environ.update(os.environ)
    return environ
