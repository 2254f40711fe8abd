import base64
from typing import List, NamedTuple

SHEBANG = "#!/usr/bin/env bash"

# Where the instance stores the artifacts it downloads and the transcript it produces.
LOCAL_R1CS_PATH = "/tmp/circuit.r1cs"
LOCAL_ZKEY_PATH = "/tmp/zkey.zkey"
LOCAL_PTAU_PATH = "/tmp/ptau.ptau"
LOCAL_TRANSCRIPT_PATH = "/tmp/verify.txt"

# cloud-init may run user data without HOME set, and nvm installs under it.
HOME_DIR = "/root"

DEFAULT_CONNECTIVITY_TEST_TARGET = "p0tion-test-bucket/test.txt"
LOCAL_CONNECTIVITY_TEST_PATH = "/tmp/test.txt"


class ScriptOptions(NamedTuple):
    node_version: str = "16"
    nvm_version: str = "v0.39.3"
    verifier_package: str = "snarkjs"
    # Binary installed by verifier_package.
    verifier_command: str = "snarkjs"

    @classmethod
    def from_config(cls, scripts_config) -> "ScriptOptions":
        """Build the options from the "scripts" section of the configuration, using
        the defaults for any missing key."""
        defaults = cls()
        return cls(*(
            str(scripts_config.get(name, default))
            for name, default in defaults._asdict().items()
        ))


def s3_url(locator: str) -> str:
    return "s3://%s" % locator


def bootstrap_commands() -> List[str]:
    """Commands refreshing the package index and installing the AWS CLI, which every
    script needs to exchange files with S3."""
    return [
        SHEBANG,
        "sudo apt update",
        "sudo apt install awscli -y",
    ]


def build_verification_script(
    r1cs: str,
    zkey: str,
    ptau: str,
    transcript: str,
    options: ScriptOptions = None,
) -> List[str]:
    """Generate the commands an instance runs on first boot to verify a zkey.

    The instance downloads the three input artifacts, runs the verifier against them
    and uploads its output. Locators aren't checked here: if one of them is wrong, the
    corresponding command fails on the instance.

    Args:
        r1cs (str): Locator of the circuit's R1CS file, in the form "bucket/key".
        zkey (str): Locator of the zkey file to verify.
        ptau (str): Locator of the powers of tau file.
        transcript (str): Locator to upload the verification transcript to.
        options (ScriptOptions): The toolchain versions to install. Defaults to
            ScriptOptions().

    Returns:
        list: The commands, in the order they must be run.
    """
    if options is None:
        options = ScriptOptions()

    commands = bootstrap_commands()
    # nvm is a shell function the installer only loads from .bashrc, which a
    # non-interactive shell never reads.
    commands += [
        "export HOME=%s" % HOME_DIR,
        "curl -o- https://raw.githubusercontent.com/nvm-sh/nvm/%s/install.sh | bash"
        % options.nvm_version,
        'export NVM_DIR="$HOME/.nvm"',
        '. "$NVM_DIR/nvm.sh"',
        "nvm install %s" % options.node_version,
        "nvm use %s" % options.node_version,
        "npm install -g %s" % options.verifier_package,
    ]

    commands.append("aws s3 cp %s %s" % (s3_url(r1cs), LOCAL_R1CS_PATH))
    commands.append("aws s3 cp %s %s" % (s3_url(zkey), LOCAL_ZKEY_PATH))
    commands.append("aws s3 cp %s %s" % (s3_url(ptau), LOCAL_PTAU_PATH))

    commands.append(
        "%s zkey verify %s %s %s > %s"
        % (
            options.verifier_command,
            LOCAL_R1CS_PATH,
            LOCAL_PTAU_PATH,
            LOCAL_ZKEY_PATH,
            LOCAL_TRANSCRIPT_PATH,
        )
    )
    commands.append("aws s3 cp %s %s" % (LOCAL_TRANSCRIPT_PATH, s3_url(transcript)))

    return commands


def build_connectivity_test_script(
    target: str = DEFAULT_CONNECTIVITY_TEST_TARGET,
) -> List[str]:
    """Generate the commands of a smoke test checking that an instance can boot and
    write to S3, without running any verification.

    Args:
        target (str): Locator of the object to write, in the form "bucket/key".
    """
    commands = bootstrap_commands()
    commands += [
        "touch %s" % LOCAL_CONNECTIVITY_TEST_PATH,
        "echo 'hello world' > %s" % LOCAL_CONNECTIVITY_TEST_PATH,
        "aws s3 cp %s %s" % (LOCAL_CONNECTIVITY_TEST_PATH, s3_url(target)),
    ]

    return commands


def encode_user_data(commands: List[str]) -> str:
    """Serialise a list of commands into the base64 payload EC2 expects as user data."""
    return base64.b64encode("\n".join(commands).encode("utf-8")).decode("ascii")
