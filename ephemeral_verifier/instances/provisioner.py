import logging
from typing import List

from ephemeral_verifier.instances.compute_client import ComputeClient, InstanceDescriptor
from ephemeral_verifier.scripts.startup import encode_user_data
from ephemeral_verifier.util.credentials import ProviderCredentials
from ephemeral_verifier.util.errors import ProvisioningError

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE_TYPE = "t2.micro"


def provision(
    client: ComputeClient,
    credentials: ProviderCredentials,
    commands: List[str],
    instance_type: str = DEFAULT_INSTANCE_TYPE,
) -> InstanceDescriptor:
    """Create a single instance that runs the provided commands on first boot.

    Args:
        client (ComputeClient): The client to talk to the compute provider with.
        credentials (ProviderCredentials): The resolved credentials, which hold the
            machine image, key pair and IAM role to use.
        commands (list): The startup script, as a list of shell commands.
        instance_type (str): The machine profile of the instance.

    Returns:
        The created instance as an InstanceDescriptor object.

    Raises:
        ProvisioningError: The provider replied with a non-success status code, or
            didn't describe the created instance completely.
    """
    logger.info("Creating %s instance from image %s...", instance_type, credentials.ami_id)

    response = client.run_instance(
        image_id=credentials.ami_id,
        instance_type=instance_type,
        key_name=credentials.key_name,
        role_arn=credentials.role_arn,
        user_data=encode_user_data(commands),
    )

    if not response.ok:
        raise ProvisioningError(
            "Could not create a new instance (status code %s): %s"
            % (response.status_code, response.error or "no error message")
        )

    payload = response.instance
    if payload is None:
        raise ProvisioningError("The provider didn't return the created instance.")

    fields = {
        "instance id": payload.instance_id,
        "image id": payload.image_id,
        "instance type": payload.instance_type,
        "key name": payload.key_name,
        "launch time": payload.launch_time,
    }
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ProvisioningError(
            "The provider's description of the created instance lacks: %s"
            % ", ".join(missing)
        )

    descriptor = InstanceDescriptor(
        instance_id=payload.instance_id,
        image_id=payload.image_id,
        instance_type=payload.instance_type,
        key_name=payload.key_name,
        launch_time=payload.launch_time.isoformat(),
    )

    logger.info("Created instance %s", descriptor.instance_id)

    return descriptor
