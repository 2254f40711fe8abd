import logging
import sys

from ephemeral_verifier.creator.create import create
from ephemeral_verifier.eraser.terminate import terminate
from ephemeral_verifier.lister.status import get_and_print_statuses
from ephemeral_verifier.switcher.switch import switch
from ephemeral_verifier.util import errors
from ephemeral_verifier.util.config import load_config

MODES = ("create", "status", "start", "stop", "terminate")


def configure_logging():
    rootLogger = logging.getLogger("ephemeral_verifier")
    if rootLogger.handlers:
        return

    formatter = logging.Formatter(
        fmt="{asctime} | {name} - {levelname} - {message}",
        style="{",
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    rootLogger.addHandler(handler)
    rootLogger.setLevel(logging.INFO)


def run(mode, argv, config):
    """Run the given mode with its own command-line arguments."""
    if mode == "create":
        create(config, argv)
    elif mode == "status":
        get_and_print_statuses(config, argv)
    elif mode in ("start", "stop"):
        switch(mode, config, argv)
    elif mode == "terminate":
        terminate(config, argv)
    else:
        raise ValueError("Unknown mode %s" % mode)


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        sys.stderr.write("Usage: ephemeral_verifier [mode] [args]\n")
        return 1

    mode = argv[0]
    if mode not in MODES:
        sys.stderr.write(
            "Unknown mode %s. Available modes: %s\n" % (mode, ", ".join(MODES))
        )
        return 1

    configure_logging()

    try:
        config = load_config()
        run(mode, argv[1:], config)
    except SystemExit as e:
        # argparse exits with 2 on usage errors, and with 0 after printing help.
        return 1 if e.code else 0
    except errors.ConfigurationError as e:
        sys.stderr.write("Configuration error: %s\n" % e)
        return 2
    except errors.EphemeralVerifierError as e:
        sys.stderr.write("%s Aborting.\n" % e)
        return 3

    return 0


if __name__ == '__main__':
    sys.exit(main())
