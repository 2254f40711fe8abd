import argparse
import json
import logging
import time

from ephemeral_verifier.instances import instances_provider, lifecycle, provisioner
from ephemeral_verifier.instances.compute_client import InstanceDescriptor
from ephemeral_verifier.scripts import startup
from ephemeral_verifier.util import config as config_util
from ephemeral_verifier.util import credentials as credentials_util
from ephemeral_verifier.util import errors

logger = logging.getLogger(__name__)


def build_commands(args, config):
    """Generate the startup script requested on the command line.

    Args:
        args (Namespace): The parsed command-line arguments.
        config (dict): The parsed configuration.

    Returns:
        list: The commands to run on the instance's first boot.
    """
    if args.smoke_test:
        return startup.build_connectivity_test_script(args.target)

    options = startup.ScriptOptions.from_config(
        config_util.get_section(config, "scripts")
    )

    return startup.build_verification_script(
        args.r1cs, args.zkey, args.ptau, args.transcript, options
    )


def wait_until_running(client, instance_id, config, sleep=None, clock=None):
    """Poll the provider until the instance runs.

    Args:
        client (ComputeClient): The client to talk to the compute provider with.
        instance_id (str): The identifier of the instance to wait for.
        config (dict): The parsed configuration, which can override the delay between
            two polls and the time after which to give up.
        sleep (callable): The function to wait with. Defaults to time.sleep.
        clock (callable): The function giving the current time, in seconds. Defaults
            to time.monotonic.

    Raises:
        WaitTimeoutError: The instance still wasn't running after the configured
            timeout.
        QueryError: The provider couldn't report the status of the instance.
    """
    sleep = sleep or time.sleep
    clock = clock or time.monotonic

    general = config_util.get_section(config, "general")
    interval = general.get("poll_interval", config_util.DEFAULT_POLL_INTERVAL)
    timeout = general.get("wait_timeout", config_util.DEFAULT_WAIT_TIMEOUT)

    logger.info("Waiting for instance %s to run...", instance_id)

    before = clock()

    while not lifecycle.poll_status(client, instance_id):
        if clock() > before + timeout:
            raise errors.WaitTimeoutError(
                "Instance %s still isn't running after %s seconds."
                % (instance_id, timeout)
            )

        sleep(interval)

    logger.info("Instance %s is running", instance_id)


def create(config, argv=None) -> InstanceDescriptor:
    """Create an instance that runs either a verification or a smoke test on first
    boot, print its description, and optionally wait for it to run.

    Args:
        config (dict): The parsed configuration.
        argv (list): The command-line arguments for this mode. Defaults to sys.argv.

    Returns:
        The created instance as an InstanceDescriptor object.
    """
    args = parse_args(argv)

    commands = build_commands(args, config)

    credentials = credentials_util.resolve()
    client = instances_provider.create_client(credentials, config)

    instance_type = config_util.get_section(config, "instances").get(
        "instance_type", provisioner.DEFAULT_INSTANCE_TYPE
    )

    instance = provisioner.provision(client, credentials, commands, instance_type)

    print(json.dumps(instance.as_dict(), indent=4))

    if args.wait:
        wait_until_running(client, instance.instance_id, config)

    return instance


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="ephemeral_verifier create",
        description="Create an instance that verifies a zkey on boot and uploads the"
                    " transcript.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Increases the verbosity."
    )
    parser.add_argument("--r1cs", help="Locator (bucket/key) of the circuit's R1CS file.")
    parser.add_argument("--zkey", help="Locator (bucket/key) of the zkey to verify.")
    parser.add_argument("--ptau", help="Locator (bucket/key) of the powers of tau file.")
    parser.add_argument(
        "--transcript",
        help="Locator (bucket/key) to upload the verification transcript to.",
    )
    parser.add_argument(
        "--smoke-test",
        action="store_true",
        help="Only check that the instance can write to S3, without verifying anything."
             " Ignores the artifact locators.",
    )
    parser.add_argument(
        "--target",
        default=startup.DEFAULT_CONNECTIVITY_TEST_TARGET,
        help="Locator (bucket/key) the smoke test writes to. Defaults to %(default)s.",
    )
    parser.add_argument(
        "-w", "--wait",
        action="store_true",
        help="Wait for the instance to run before exiting.",
    )

    args = parser.parse_args(argv)

    if not args.smoke_test:
        missing = [
            "--%s" % name
            for name in ("r1cs", "zkey", "ptau", "transcript")
            if not getattr(args, name)
        ]
        if missing:
            parser.error("missing artifact locators: %s" % ", ".join(missing))

    if args.verbose:
        logging.getLogger("ephemeral_verifier").setLevel(logging.DEBUG)

    return args
