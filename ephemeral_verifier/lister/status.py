import argparse
import logging
from typing import List, Optional, Tuple

from tabulate import tabulate

from ephemeral_verifier.instances import instances_provider, lifecycle
from ephemeral_verifier.util import credentials as credentials_util
from ephemeral_verifier.util import errors

logger = logging.getLogger(__name__)


def get_statuses(
    client, instance_ids: List[str]
) -> Tuple[List[Tuple[str, Optional[bool]]], Optional[errors.QueryError]]:
    """Poll the provider once for each of the provided instances.

    Every instance is checked even if checking one of them fails.

    Args:
        client (ComputeClient): The client to talk to the compute provider with.
        instance_ids (list): The identifiers of the instances to check.

    Returns:
        list: (instance ID, whether the instance is running) tuples, in the same order
        as instance_ids. The second member is None if the check failed.
        QueryError: The first error raised while checking, or None.
    """
    statuses = []
    first_error = None
    for instance_id in instance_ids:
        logger.debug("Checking instance %s...", instance_id)
        try:
            running = lifecycle.poll_status(client, instance_id)
        except errors.QueryError as e:
            logger.error("Could not check instance %s: %s", instance_id, e)
            if first_error is None:
                first_error = e
            running = None

        statuses.append((instance_id, running))

    return statuses, first_error


def format_running(running: Optional[bool]) -> str:
    if running is None:
        return "unknown"
    return "yes" if running else "no"


def get_and_print_statuses(config, argv=None):
    """Check whether each of the instances given on the command line is running and
    print the result as a table.

    If an instance couldn't be checked, it's listed as "unknown" and the first error is
    raised once the table has been printed.

    Args:
        config (dict): The parsed configuration.
        argv (list): The command-line arguments for this mode. Defaults to sys.argv.
    """
    args = parse_args(argv)

    credentials = credentials_util.resolve()
    client = instances_provider.create_client(credentials, config)

    statuses, first_error = get_statuses(client, args.instance_ids)

    print(tabulate(
        [[instance_id, format_running(running)] for instance_id, running in statuses],
        headers=["Instance ID", "Running"],
        tablefmt="psql",
    ))

    if first_error is not None:
        raise first_error

    return statuses


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="ephemeral_verifier status",
        description="Check whether instances are running.",
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
        help="Identifier of an instance to check.",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger("ephemeral_verifier").setLevel(logging.DEBUG)

    return args
