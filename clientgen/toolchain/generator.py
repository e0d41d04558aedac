"""TypeScript client generation via openapi-generator.

The generator parameters are fixed: every client is produced with the
``typescript-fetch`` generator and the same additional-properties, so all
published clients share one shape. Only the npm name and version vary per run.

generate_client() removes any stale output directory, runs the generator,
then installs dependencies and builds the package inside the output
directory (``npm install`` → ``npm run build``) so a broken client fails here
rather than at publish time.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Union

from clientgen.config import Config, PublishInputs
from clientgen.constants import GENERATOR_ADDITIONAL_PROPERTIES, GENERATOR_NAME
from clientgen.toolchain.runner import run_tool
from clientgen.utils.logger import get_logger

logger = get_logger(__name__)


def additional_properties(inputs: PublishInputs) -> str:
    """Render the comma-separated ``--additional-properties`` value."""
    props = list(GENERATOR_ADDITIONAL_PROPERTIES)
    props.append(("npmName", inputs.package_name))
    props.append(("npmVersion", inputs.package_version))
    return ",".join(f"{key}={value}" for key, value in props)


def build_generator_command(
    spec_path: Union[str, Path],
    output_dir: Union[str, Path],
    inputs: PublishInputs,
    executable: str,
) -> list[str]:
    """Return the openapi-generator argv for one run."""
    return [
        executable,
        "generate",
        "-i",
        str(spec_path),
        "-g",
        GENERATOR_NAME,
        "-o",
        str(output_dir),
        f"--additional-properties={additional_properties(inputs)}",
    ]


def generate_client(spec_path: Union[str, Path], inputs: PublishInputs, config: Config) -> Path:
    """Generate and build the client package. Returns the output directory.

    Raises:
        DownstreamFailure: generator, ``npm install`` or ``npm run build`` failed.
    """
    output_dir = Path(config.output_dir)
    if output_dir.exists():
        logger.info("Removing stale output directory", path=str(output_dir))
        shutil.rmtree(output_dir)

    run_tool(
        "generate",
        build_generator_command(spec_path, output_dir, inputs, config.generator.executable),
    )

    npm = config.npm.executable
    run_tool("install", [npm, "install"], cwd=output_dir)
    run_tool("build", [npm, "run", "build"], cwd=output_dir)

    logger.info(
        "Client generated",
        package=inputs.package_name,
        version=inputs.package_version,
        path=str(output_dir),
    )
    return output_dir
