import abc
import datetime
from typing import Optional


class InstanceDescriptor:
    def __init__(
        self,
        instance_id: str,
        image_id: str,
        instance_type: str,
        key_name: str,
        launch_time: str,
    ):
        """A snapshot of an instance, as returned by the provider right after it has
        been created. The provider remains the source of truth for the instance's live
        state.

        Args:
            instance_id (str): The internal identifier of the instance.
            image_id (str): The machine image the instance was created from.
            instance_type (str): The machine profile of the instance (e.g. t2.micro).
            key_name (str): The name of the key pair attached to the instance.
            launch_time (str): The creation time, as an ISO-8601 string.
        """
        self.instance_id = instance_id
        self.image_id = image_id
        self.instance_type = instance_type
        self.key_name = key_name
        self.launch_time = launch_time

    def as_dict(self) -> dict:
        return {
            "InstanceId": self.instance_id,
            "ImageId": self.image_id,
            "InstanceType": self.instance_type,
            "KeyName": self.key_name,
            "LaunchTime": self.launch_time,
        }

    def __eq__(self, other):
        if not isinstance(other, InstanceDescriptor):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self):
        return "InstanceDescriptor(%s)" % ", ".join(
            "%s=%r" % (key, value) for key, value in self.as_dict().items()
        )


class InstancePayload:
    def __init__(
        self,
        instance_id: Optional[str] = None,
        image_id: Optional[str] = None,
        instance_type: Optional[str] = None,
        key_name: Optional[str] = None,
        launch_time: Optional[datetime.datetime] = None,
    ):
        """The instance fields read from a provider's reply. Any of them can be missing
        if the provider didn't send it.
        """
        self.instance_id = instance_id
        self.image_id = image_id
        self.instance_type = instance_type
        self.key_name = key_name
        self.launch_time = launch_time


class ProviderResponse:
    def __init__(
        self,
        status_code: int,
        instance: Optional[InstancePayload] = None,
        state_name: Optional[str] = None,
        error: Optional[str] = None,
        raw=None,
    ):
        """The narrow view of a provider's reply to a single call.

        Args:
            status_code (int): The HTTP status code of the reply.
            instance (InstancePayload): The instance described by the reply, if any.
            state_name (str): The instance state reported by the reply, if any (e.g.
                pending, running, stopped).
            error (str): The error message sent by the provider along with a failure
                status code, if any.
            raw: The unparsed reply, only kept for logging.
        """
        self.status_code = status_code
        self.instance = instance
        self.state_name = state_name
        self.error = error
        self.raw = raw

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class ComputeClient(abc.ABC):
    @abc.abstractmethod
    def run_instance(
        self,
        image_id: str,
        instance_type: str,
        key_name: str,
        role_arn: str,
        user_data: str,
    ) -> ProviderResponse:
        """Ask the provider to create exactly one instance.

        Args:
            image_id (str): The machine image to create the instance from.
            instance_type (str): The machine profile to use.
            key_name (str): The key pair to attach to the instance.
            role_arn (str): The identifier of the IAM role the instance assumes.
            user_data (str): The base64-encoded script to run on first boot.

        Returns:
            The provider's reply, with the created instance as its payload.
        """
        pass

    @abc.abstractmethod
    def describe_instance_status(self, instance_id: str) -> ProviderResponse:
        """Ask the provider for the current state of an instance.

        Returns:
            The provider's reply, with the instance's state name if it reported one.
        """
        pass

    @abc.abstractmethod
    def start_instance(self, instance_id: str) -> ProviderResponse:
        pass

    @abc.abstractmethod
    def stop_instance(self, instance_id: str) -> ProviderResponse:
        pass

    @abc.abstractmethod
    def terminate_instance(self, instance_id: str) -> ProviderResponse:
        pass
