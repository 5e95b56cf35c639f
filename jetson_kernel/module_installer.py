from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .cli import ArgParser, report_usage_error
from .errors import JetsonKernelError, UsageError
from .logging_utils import DEFAULT_LOGS_DIR, configure_logging, default_log_path

logger = logging.getLogger(__name__)

RUN_TYPE = "module_installer"

_MODULE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

# %-style placeholders; the script body itself never uses a percent sign.
_TEMPLATE = """\
#!/bin/bash

# Define the module file name and expected location
module_file="%(module_name)s.ko"
install_dir="/lib/modules/$(uname -r)/kernel/%(install_path)s/"

# Check if the module file exists in the current directory
if [ ! -f "$module_file" ]; then
    echo "Error: $module_file not found in the current directory."
    exit 1
fi

# Extract vermagic from the module
module_vermagic=$(modinfo -F vermagic "$module_file")
if [ -z "$module_vermagic" ]; then
    echo "Error: Could not extract vermagic from $module_file."
    exit 1
fi

# Get the running kernel version
running_kernel=$(uname -r)
module_kernel=$(echo "$module_vermagic" | awk '{print $1}') # Extract version part

# Compare and handle mismatch
if [ "$module_kernel" != "$running_kernel" ]; then
    echo "Error: Module kernel version ($module_kernel) does not match running kernel ($running_kernel)."
    echo "Aborting installation to prevent potential system instability."
    exit 1
fi

# Inform the user in detail
echo "This script will perform the following actions:"
echo "1. Copy $module_file to $install_dir using 'sudo cp'"
echo "2. Update module dependencies with 'sudo depmod -a'"
echo "3. Load the module '%(module_name)s' with 'sudo modprobe %(module_name)s'"
echo "These steps require root privileges, so you may be prompted for your password."

# Ask for confirmation
read -p "Do you want to proceed? (y/n): " confirm
if [ "$confirm" != "y" ]; then
    echo "Aborting."
    exit 1
fi

# Copy the .ko file to the installation directory
sudo cp "$module_file" "$install_dir"
if [ $? -ne 0 ]; then
    echo "Error: Failed to copy $module_file to $install_dir."
    exit 1
fi

# Update module dependencies
sudo depmod -a
if [ $? -ne 0 ]; then
    echo "Error: Failed to run depmod."
    exit 1
fi

# Load the module
sudo modprobe "%(module_name)s"
if [ $? -ne 0 ]; then
    echo "Error: Failed to load module %(module_name)s."
    exit 1
fi

echo "Success: Module %(module_name)s installed and loaded."
"""


def script_name(module_name: str) -> str:
    return f"install_module_{module_name}.sh"


def render_install_script(module_name: str, install_path: str) -> str:
    """Return the text of a bash script that installs ``<module_name>.ko``.

    The generated script refuses to install a module whose vermagic does
    not match the running kernel, asks for confirmation, then copies the
    module under ``/lib/modules/$(uname -r)/kernel/<install_path>/`` and
    runs ``depmod -a`` and ``modprobe``.
    """

    if not _MODULE_NAME_RE.match(module_name):
        raise UsageError(f"Invalid module name: {module_name!r}")
    path = install_path.strip("/")
    if not path or any(c in path for c in "\"'$`\\\n"):
        raise UsageError(f"Invalid install path: {install_path!r}")
    return _TEMPLATE % {"module_name": module_name, "install_path": path}


def write_install_script(module_name: str, install_path: str, out_dir: Path = Path(".")) -> Path:
    out = out_dir / script_name(module_name)
    out.write_text(render_install_script(module_name, install_path), encoding="utf-8")
    out.chmod(0o755)
    logger.info("Generated %s successfully.", out)
    return out


def main(argv: Optional[list[str]] = None) -> int:
    p = ArgParser(
        prog="module-installer",
        description="Generate an install script for an out-of-tree kernel module.",
        epilog="Example: module-installer ch341 drivers/usb/serial",
    )
    p.add_argument("module_name")
    p.add_argument("install_path")
    p.add_argument("-o", "--output-dir", default=".", help="Where to write the generated script")
    p.add_argument("--logs-dir", default=DEFAULT_LOGS_DIR, help="Directory for the run log")

    try:
        args = p.parse_args(argv)
    except UsageError as e:
        return report_usage_error(p, e)

    configure_logging(default_log_path(RUN_TYPE, args.logs_dir))

    try:
        write_install_script(args.module_name, args.install_path, Path(args.output_dir))
    except (JetsonKernelError, OSError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
