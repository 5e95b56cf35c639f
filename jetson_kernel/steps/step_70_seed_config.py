from __future__ import annotations

import logging

from ..context import AcquireContext
from ..errors import ConfigError
from ..lib.kconfig import read_running_config, set_config_str
from ..lib.release import local_version_suffix, running_kernel_release

logger = logging.getLogger(__name__)


class SeedConfigStep:
    step_id = "70_seed_config"

    def run(self, ctx: AcquireContext) -> None:
        s = ctx.settings
        tree = s.kernel_tree
        config = tree / ".config"

        logger.info("Copying current kernel config...")
        try:
            text = read_running_config(s.proc_config)
        except (OSError, EOFError) as e:
            raise ConfigError(f"Cannot read running kernel config {s.proc_config}: {e}") from e
        ctx.ops.write_text(config, text)
        ctx.ops.copy_file(config, tree / ".config.orig")

        if s.set_localversion:
            suffix = local_version_suffix(running_kernel_release())
            logger.info("Setting LOCALVERSION=%r", suffix)
            ctx.ops.write_text(config, set_config_str(text, "LOCALVERSION", suffix))

        logger.info("Kernel source setup complete!")
