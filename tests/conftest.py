import datetime
from typing import List, Optional

import pytest

from ephemeral_verifier.instances.compute_client import (
    ComputeClient,
    InstancePayload,
    ProviderResponse,
)
from ephemeral_verifier.util.credentials import ProviderCredentials

LAUNCH_TIME = datetime.datetime(2023, 3, 1, 12, 30, tzinfo=datetime.timezone.utc)

ENVIRON = {
    "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
    "AWS_SECRET_ACCESS_KEY": "secret",
    "AWS_ROLE_ARN": "arn:aws:iam::123456789012:instance-profile/verifier",
    "AWS_AMI_ID": "ami-0123456789abcdef0",
    "AWS_KEY_NAME": "verifier-key",
}


class FakeComputeClient(ComputeClient):
    """In-memory compute provider.

    Every call is recorded in `calls`. Setting `status_code` makes every call fail,
    and `states` lists the state names successive status polls report (the last one
    is repeated once the list is exhausted).
    """

    def __init__(self, status_code=200, states: Optional[List[str]] = None):
        self.status_code = status_code
        self.states = list(states or ["running"])
        self.payload = InstancePayload(
            instance_id="i-0abc",
            image_id=ENVIRON["AWS_AMI_ID"],
            instance_type="t2.micro",
            key_name=ENVIRON["AWS_KEY_NAME"],
            launch_time=LAUNCH_TIME,
        )
        self.calls = []

    def _reply(self, **kwargs):
        if self.status_code != 200:
            return ProviderResponse(self.status_code, error="simulated failure")
        return ProviderResponse(200, **kwargs)

    def run_instance(self, image_id, instance_type, key_name, role_arn, user_data):
        self.calls.append(("run_instance", {
            "image_id": image_id,
            "instance_type": instance_type,
            "key_name": key_name,
            "role_arn": role_arn,
            "user_data": user_data,
        }))
        return self._reply(instance=self.payload)

    def describe_instance_status(self, instance_id):
        self.calls.append(("describe_instance_status", instance_id))
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        return self._reply(state_name=state, raw={"state": state})

    def start_instance(self, instance_id):
        self.calls.append(("start_instance", instance_id))
        return self._reply()

    def stop_instance(self, instance_id):
        self.calls.append(("stop_instance", instance_id))
        return self._reply()

    def terminate_instance(self, instance_id):
        self.calls.append(("terminate_instance", instance_id))
        response = self._reply()
        if response.ok:
            self.states = ["terminated"]
        return response


@pytest.fixture
def environ():
    return dict(ENVIRON)


@pytest.fixture
def credentials():
    return ProviderCredentials(
        access_key_id=ENVIRON["AWS_ACCESS_KEY_ID"],
        secret_access_key=ENVIRON["AWS_SECRET_ACCESS_KEY"],
        region="us-east-1",
        role_arn=ENVIRON["AWS_ROLE_ARN"],
        ami_id=ENVIRON["AWS_AMI_ID"],
        key_name=ENVIRON["AWS_KEY_NAME"],
    )


@pytest.fixture
def client():
    return FakeComputeClient()


@pytest.fixture
def make_client():
    return FakeComputeClient
