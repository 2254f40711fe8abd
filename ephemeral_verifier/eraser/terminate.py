import argparse
import logging

from ephemeral_verifier.instances import instances_provider, lifecycle
from ephemeral_verifier.util import credentials as credentials_util
from ephemeral_verifier.util import errors

logger = logging.getLogger(__name__)


def terminate(config, argv=None):
    """Destroy instances once their verification is done.

    Every instance is processed even if terminating one of them fails; the first error
    is raised once all of them have been processed.

    Args:
        config (dict): The parsed configuration.
        argv (list): The command-line arguments for this mode. Defaults to sys.argv.
    """
    args = parse_args(argv)

    credentials = credentials_util.resolve()
    client = instances_provider.create_client(credentials, config)

    first_error = None
    for instance_id in args.instance_ids:
        try:
            lifecycle.terminate(client, instance_id)
            print("Requested termination of instance %s." % instance_id)
        except errors.TransitionError as e:
            logger.error("Could not terminate instance %s: %s", instance_id, e)
            if first_error is None:
                first_error = e

    if first_error is not None:
        raise first_error


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="ephemeral_verifier terminate",
        description="Destroy instances. This can't be undone.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Increases the verbosity."
    )
    parser.add_argument(
        "instance_ids",
        nargs="+",
        metavar="INSTANCE_ID",
        help="Identifier of an instance to terminate.",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger("ephemeral_verifier").setLevel(logging.DEBUG)

    return args
