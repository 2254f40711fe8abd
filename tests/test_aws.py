import datetime
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from ephemeral_verifier.instances import instances_provider, lifecycle
from ephemeral_verifier.instances.provisioner import provision
from ephemeral_verifier.instances.providers import aws
from ephemeral_verifier.util.errors import (
    ProvisioningError,
    QueryError,
    TransitionError,
    UnknownProviderError,
)


LAUNCH_TIME = datetime.datetime(2023, 3, 1, 12, 30, tzinfo=datetime.timezone.utc)


def metadata(status_code=200):
    return {"ResponseMetadata": {"HTTPStatusCode": status_code}}


def client_error(operation, status_code=400, message="The instance is not stopped."):
    return ClientError(
        {
            "Error": {"Code": "IncorrectInstanceState", "Message": message},
            **metadata(status_code),
        },
        operation,
    )


@pytest.fixture
def ec2():
    return MagicMock()


@pytest.fixture
def aws_client(credentials, ec2):
    return aws.AWSComputeClient(credentials, ec2=ec2)


class TestCreateClient:
    def test_builds_boto3_client(self, credentials, monkeypatch):
        boto3_client = MagicMock()
        monkeypatch.setattr(aws.boto3, "client", boto3_client)

        client = instances_provider.create_client(credentials)

        assert isinstance(client, aws.AWSComputeClient)
        boto3_client.assert_called_once_with(
            "ec2",
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            region_name="us-east-1",
            endpoint_url=None,
        )
        assert client.ec2 is boto3_client.return_value

    def test_endpoint_url(self, credentials, monkeypatch):
        boto3_client = MagicMock()
        monkeypatch.setattr(aws.boto3, "client", boto3_client)

        config = {
            "instances": {
                "provider": "aws",
                "args": {"endpoint_url": "http://localhost:4566"},
            },
        }
        instances_provider.create_client(credentials, config)

        assert boto3_client.call_args.kwargs["endpoint_url"] == "http://localhost:4566"

    def test_unknown_provider(self, credentials):
        with pytest.raises(UnknownProviderError):
            instances_provider.create_client(
                credentials, {"instances": {"provider": "openstack"}}
            )


class TestRunInstance:
    def test_success(self, aws_client, ec2, credentials):
        ec2.run_instances.return_value = {
            "Instances": [{
                "InstanceId": "i-0123",
                "ImageId": credentials.ami_id,
                "InstanceType": "t2.micro",
                "KeyName": credentials.key_name,
                "LaunchTime": LAUNCH_TIME,
                "State": {"Name": "pending"},
            }],
            **metadata(),
        }

        instance = provision(aws_client, credentials, ["echo hi"])

        assert instance.instance_id == "i-0123"
        assert instance.launch_time == LAUNCH_TIME.isoformat()

        kwargs = ec2.run_instances.call_args.kwargs
        assert kwargs["MinCount"] == kwargs["MaxCount"] == 1
        assert kwargs["IamInstanceProfile"] == {"Arn": credentials.role_arn}
        assert kwargs["ImageId"] == credentials.ami_id
        assert kwargs["KeyName"] == credentials.key_name
        assert kwargs["InstanceType"] == "t2.micro"
        assert kwargs["UserData"] == "ZWNobyBoaQ=="

    def test_no_instances(self, aws_client, ec2, credentials):
        ec2.run_instances.return_value = {"Instances": [], **metadata()}
        with pytest.raises(ProvisioningError):
            provision(aws_client, credentials, ["echo hi"])

    def test_missing_field(self, aws_client, ec2, credentials):
        ec2.run_instances.return_value = {
            "Instances": [{"InstanceId": "i-0123", "ImageId": credentials.ami_id}],
            **metadata(),
        }
        with pytest.raises(ProvisioningError):
            provision(aws_client, credentials, ["echo hi"])

    def test_non_success_status(self, aws_client, ec2, credentials):
        ec2.run_instances.return_value = {"Instances": [], **metadata(202)}
        with pytest.raises(ProvisioningError):
            provision(aws_client, credentials, ["echo hi"])

    def test_client_error(self, aws_client, ec2, credentials):
        ec2.run_instances.side_effect = client_error(
            "RunInstances", 403, "You are not authorized to perform this operation."
        )
        with pytest.raises(ProvisioningError) as exc_info:
            provision(aws_client, credentials, ["echo hi"])
        assert "not authorized" in str(exc_info.value)


class TestDescribeInstanceStatus:
    def test_running(self, aws_client, ec2):
        ec2.describe_instance_status.return_value = {
            "InstanceStatuses": [{
                "InstanceId": "i-0123",
                "InstanceState": {"Code": 16, "Name": "running"},
            }],
            **metadata(),
        }

        assert lifecycle.poll_status(aws_client, "i-0123") is True
        ec2.describe_instance_status.assert_called_once_with(
            InstanceIds=["i-0123"], IncludeAllInstances=True
        )

    def test_stopped(self, aws_client, ec2):
        ec2.describe_instance_status.return_value = {
            "InstanceStatuses": [{"InstanceState": {"Code": 80, "Name": "stopped"}}],
            **metadata(),
        }
        assert lifecycle.poll_status(aws_client, "i-0123") is False

    def test_no_status(self, aws_client, ec2):
        ec2.describe_instance_status.return_value = {
            "InstanceStatuses": [],
            **metadata(),
        }
        assert lifecycle.poll_status(aws_client, "i-0123") is False

    def test_client_error(self, aws_client, ec2):
        ec2.describe_instance_status.side_effect = client_error(
            "DescribeInstanceStatus", 400, "The instance ID 'i-0123' does not exist"
        )
        with pytest.raises(QueryError):
            lifecycle.poll_status(aws_client, "i-0123")


class TestTransitions:
    @pytest.mark.parametrize(
        "action,operation",
        [
            ("start", "start_instances"),
            ("stop", "stop_instances"),
            ("terminate", "terminate_instances"),
        ],
    )
    def test_success(self, aws_client, ec2, action, operation):
        getattr(ec2, operation).return_value = metadata()

        getattr(lifecycle, action)(aws_client, "i-0123")

        getattr(ec2, operation).assert_called_once_with(
            InstanceIds=["i-0123"], DryRun=False
        )

    @pytest.mark.parametrize(
        "action,operation",
        [
            ("start", "start_instances"),
            ("stop", "stop_instances"),
            ("terminate", "terminate_instances"),
        ],
    )
    def test_client_error(self, aws_client, ec2, action, operation):
        getattr(ec2, operation).side_effect = client_error(operation)

        with pytest.raises(TransitionError) as exc_info:
            getattr(lifecycle, action)(aws_client, "i-0123")
        assert "not stopped" in str(exc_info.value)


def test_get_status_code_without_metadata():
    assert aws.get_status_code({}) == 0


class TestErrorsWithoutReply:
    def test_unreachable_endpoint(self, aws_client, ec2, credentials):
        ec2.run_instances.side_effect = EndpointConnectionError(
            endpoint_url="https://ec2.us-east-1.amazonaws.com/"
        )
        with pytest.raises(ProvisioningError) as exc_info:
            provision(aws_client, credentials, ["echo hi"])
        assert "status code 0" in str(exc_info.value)
        assert "ec2.us-east-1.amazonaws.com" in str(exc_info.value)

    def test_no_credentials(self, aws_client, ec2):
        ec2.describe_instance_status.side_effect = NoCredentialsError()
        with pytest.raises(QueryError):
            lifecycle.poll_status(aws_client, "i-0123")

    def test_transition(self, aws_client, ec2):
        ec2.terminate_instances.side_effect = EndpointConnectionError(
            endpoint_url="https://ec2.us-east-1.amazonaws.com/"
        )
        with pytest.raises(TransitionError):
            lifecycle.terminate(aws_client, "i-0123")
