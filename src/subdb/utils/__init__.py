import re
from importlib import metadata
from pathlib import Path

root_dir = Path(__file__).resolve().parents[3]

DISTRIBUTION_NAME = "subdb-client"


def get_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        pass

    # Running from a source checkout
    with open(root_dir / "pyproject.toml") as file:
        pyproject_toml = file.read()

    match = re.search(r'version = "(.+)"', pyproject_toml)
    if match:
        version = match.group(1)
    else:
        raise ValueError("Could not find version in pyproject.toml")
    return version
