import os
import setuptools


def read_file(path_segments):
    """Read a file from the package. Takes a list of strings to join to
    make the path"""
    file_path = os.path.join(
        os.path.abspath(os.path.dirname(__file__)), *path_segments
    )
    with open(file_path) as f:
        return f.read()


def exec_file(path_segments):
    """Execute a single python file to get the variables defined in it"""
    result = {}
    code = read_file(path_segments)
    exec(code, result)
    return result


version = exec_file(("ephemeral_verifier", "__init__.py"))["__version__"]
long_description = read_file(("README.md",))

setuptools.setup(
    name='ephemeral-verifier',
    version=version,
    description="Run zkey verifications on short-lived EC2 instances",
    install_requires=[
        "boto3>=1.26",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "tabulate>=0.9",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=("tests",)),
    entry_points={
        "console_scripts": [
            "ephemeral-verifier=ephemeral_verifier.__main__:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3 :: Only",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
)
