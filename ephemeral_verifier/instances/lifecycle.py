"""State transitions and status checks for existing instances.

Each function performs exactly one call to the provider and doesn't retry: waiting for
an instance to reach a given state is up to the caller, which must poll with
poll_status.
"""

import logging

from ephemeral_verifier.instances.compute_client import ComputeClient, ProviderResponse
from ephemeral_verifier.util.errors import QueryError, TransitionError

logger = logging.getLogger(__name__)

RUNNING = "running"


def poll_status(client: ComputeClient, instance_id: str) -> bool:
    """Check whether an instance is running.

    Args:
        client (ComputeClient): The client to talk to the compute provider with.
        instance_id (str): The identifier of the instance to check.

    Returns:
        bool: True if the provider reports the instance as running, False if it's in
        any other state or the provider didn't report a state.

    Raises:
        QueryError: The provider replied with a non-success status code.
    """
    response = client.describe_instance_status(instance_id)

    if not response.ok:
        raise QueryError(
            "Could not get the status of instance %s (status code %s): %s"
            % (instance_id, response.status_code, response.error or "no error message")
        )

    logger.debug("Status of instance %s: %s", instance_id, response.raw)

    return response.state_name == RUNNING


def start(client: ComputeClient, instance_id: str):
    """Ask the provider to start a stopped instance. Doesn't wait for it to run."""
    response = client.start_instance(instance_id)
    check_transition(response, "start", instance_id)


def stop(client: ComputeClient, instance_id: str):
    """Ask the provider to stop an instance. Doesn't wait for it to stop."""
    response = client.stop_instance(instance_id)
    check_transition(response, "stop", instance_id)


def terminate(client: ComputeClient, instance_id: str):
    """Ask the provider to destroy an instance. This can't be undone."""
    response = client.terminate_instance(instance_id)
    check_transition(response, "terminate", instance_id)


def check_transition(response: ProviderResponse, action: str, instance_id: str):
    """Raise a TransitionError if the provider refused a transition request.

    Args:
        response (ProviderResponse): The provider's reply to the request.
        action (str): The requested transition (start, stop or terminate).
        instance_id (str): The identifier of the instance.
    """
    if not response.ok:
        raise TransitionError(
            "Could not %s instance %s (status code %s): %s"
            % (action, instance_id, response.status_code,
               response.error or "no error message")
        )

    logger.info("Requested %s of instance %s", action, instance_id)
