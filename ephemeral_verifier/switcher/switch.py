import argparse
import logging

from ephemeral_verifier.instances import instances_provider, lifecycle
from ephemeral_verifier.util import credentials as credentials_util

logger = logging.getLogger(__name__)

# Transitions this mode can request, mapped to the function requesting them.
ACTIONS = {
    "start": lifecycle.start,
    "stop": lifecycle.stop,
}


def switch(action, config, argv=None):
    """Start or stop an existing instance.

    The request is sent once and the provider handles the transition asynchronously;
    use the status mode to know when it's done.

    Args:
        action (str): Either "start" or "stop".
        config (dict): The parsed configuration.
        argv (list): The command-line arguments for this mode. Defaults to sys.argv.
    """
    args = parse_args(action, argv)

    credentials = credentials_util.resolve()
    client = instances_provider.create_client(credentials, config)

    ACTIONS[action](client, args.instance_id)

    print("Requested %s of instance %s." % (action, args.instance_id))


def parse_args(action, argv=None):
    parser = argparse.ArgumentParser(
        prog="ephemeral_verifier %s" % action,
        description="%s an existing instance." % action.capitalize(),
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Increases the verbosity."
    )
    parser.add_argument("instance_id", help="Identifier of the instance to %s." % action)

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger("ephemeral_verifier").setLevel(logging.DEBUG)

    return args
