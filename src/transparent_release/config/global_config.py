# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The run-wide settings taken from the command line, shared by every action."""

import logging
from dataclasses import dataclass

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class GlobalConfig:
    """Settings of the current command-line run."""

    #: Where the transparent_release package is installed.
    package_path: str = ""

    #: The directory receiving debug.log and the generated claims.
    output_path: str = ""

    #: The level of the stream log handler.
    debug_level: int = logging.DEBUG

    def load(self, package_path: str, output_path: str, debug_level: int) -> None:
        """Record the settings of this run.

        Parameters
        ----------
        package_path : str
            The installation directory of the package.
        output_path : str
            The output directory given on the command line.
        debug_level : int
            The level of the stream log handler.
        """
        self.package_path = package_path
        self.output_path = output_path
        self.debug_level = debug_level
        logger.debug("Writing the outputs of this run to %s.", output_path)


global_config = GlobalConfig()
