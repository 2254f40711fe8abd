import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ephemeral_verifier.instances.compute_client import (
    ComputeClient,
    InstancePayload,
    ProviderResponse,
)
from ephemeral_verifier.util.credentials import ProviderCredentials

logger = logging.getLogger(__name__)


class AWSComputeClient(ComputeClient):
    def __init__(self, credentials: ProviderCredentials, args=None, ec2=None):
        """Wrap an EC2 client bound to the provided credentials and region.

        Creating the boto3 client doesn't perform any network call, and the resulting
        client can be shared between threads.

        Args:
            credentials (ProviderCredentials): The resolved credentials.
            args (dict): Provider-specific settings from the configuration file.
                Recognised keys: "endpoint_url".
            ec2: An already built EC2 client to use instead of creating one.
        """
        args = args or {}

        if ec2 is None:
            ec2 = boto3.client(
                "ec2",
                aws_access_key_id=credentials.access_key_id,
                aws_secret_access_key=credentials.secret_access_key,
                region_name=credentials.region,
                endpoint_url=args.get("endpoint_url"),
            )

        self.ec2 = ec2
        self.region = credentials.region

    def run_instance(self, image_id, instance_type, key_name, role_arn, user_data):
        response = self._call(
            "run_instances",
            ImageId=image_id,
            InstanceType=instance_type,
            MinCount=1,
            MaxCount=1,
            KeyName=key_name,
            IamInstanceProfile={"Arn": role_arn},
            UserData=user_data,
        )
        if not response.ok:
            return response

        instances = response.raw.get("Instances") or []
        if instances:
            instance = instances[0]
            response.instance = InstancePayload(
                instance_id=instance.get("InstanceId"),
                image_id=instance.get("ImageId"),
                instance_type=instance.get("InstanceType"),
                key_name=instance.get("KeyName"),
                launch_time=instance.get("LaunchTime"),
            )

        return response

    def describe_instance_status(self, instance_id):
        # Without IncludeAllInstances, EC2 only reports instances that are running.
        response = self._call(
            "describe_instance_status",
            InstanceIds=[instance_id],
            IncludeAllInstances=True,
        )
        if not response.ok:
            return response

        statuses = response.raw.get("InstanceStatuses") or []
        if statuses:
            response.state_name = statuses[0].get("InstanceState", {}).get("Name")

        return response

    def start_instance(self, instance_id):
        return self._call("start_instances", InstanceIds=[instance_id], DryRun=False)

    def stop_instance(self, instance_id):
        return self._call("stop_instances", InstanceIds=[instance_id], DryRun=False)

    def terminate_instance(self, instance_id):
        return self._call(
            "terminate_instances", InstanceIds=[instance_id], DryRun=False
        )

    def _call(self, operation, **params) -> ProviderResponse:
        """Perform a single EC2 API call and turn its reply into a ProviderResponse.

        boto3 raises a ClientError when EC2 replies with an error, in which case the
        status code and message are read from the error instead. Errors raised before
        EC2 could reply (e.g. no reachable endpoint, no credentials) are reported with
        status code 0.

        Args:
            operation (str): The name of the boto3 client method to call.
            **params: The parameters of the call.
        """
        logger.debug("Calling EC2 %s in %s", operation, self.region)

        try:
            raw = getattr(self.ec2, operation)(**params)
        except ClientError as e:
            logger.debug("EC2 %s failed: %s", operation, e)
            return ProviderResponse(
                status_code=get_status_code(e.response),
                error=e.response.get("Error", {}).get("Message", str(e)),
                raw=e.response,
            )
        except BotoCoreError as e:
            logger.debug("EC2 %s failed: %s", operation, e)
            return ProviderResponse(status_code=0, error=str(e))

        return ProviderResponse(status_code=get_status_code(raw), raw=raw)


provider_client_class = AWSComputeClient


def get_status_code(raw) -> int:
    """Get the HTTP status code from the metadata boto3 attaches to every reply.

    Returns 0 if the reply doesn't carry any, which is never considered a success.
    """
    return raw.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
