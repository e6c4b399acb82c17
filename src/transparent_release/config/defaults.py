# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The ``defaults.ini`` configuration layer: the packaged values, optionally overridden by a user file."""

import configparser
import logging
import os
import pathlib
import shutil

logger: logging.Logger = logging.getLogger(__name__)


class ConfigParser(configparser.ConfigParser):
    """A ``ConfigParser`` that can also read multi-valued options."""

    def get_list(
        self,
        section: str,
        item: str,
        delimiter: str | None = "\n",
        fallback: list[str] | None = None,
        duplicated_ok: bool = False,
    ) -> list[str]:
        """Read a multi-valued option as a list of strings.

        By default every line of the value is one entry, since entries such as crash markers contain spaces.
        Surrounding whitespace is stripped and empty entries are discarded. If ``delimiter`` is None, the
        value is split on any whitespace character instead. Repeated entries are dropped unless
        ``duplicated_ok`` is set, and the order of the first occurrences is kept.

        Parameters
        ----------
        section : str
            The section holding the option.
        item : str
            The name of the option.
        delimiter : str | None
            The separator between entries.
        fallback : list[str] | None
            Returned when the section or the option is missing.
        duplicated_ok : bool
            Keep repeated entries.

        Returns
        -------
        list[str]
            The entries, or the fallback (an empty list when None) if the option is missing.

        Examples
        --------
        With the packaged values:

        .. code-block::

            [fuzzbinder]
            crash_markers =
                ERROR: AddressSanitizer
                ERROR: libFuzzer

        >>> defaults.get_list("fuzzbinder", "crash_markers")
        ['ERROR: AddressSanitizer', 'ERROR: libFuzzer']
        """
        try:
            value = self.get(section, item)
        except (configparser.NoOptionError, configparser.NoSectionError) as error:
            logger.debug("Using the fallback of %s.%s: %s", section, item, error)
            return fallback or []

        entries = [entry.strip() for entry in value.split(sep=delimiter)]
        entries = [entry for entry in entries if entry]
        return entries if duplicated_ok else list(dict.fromkeys(entries))


#: The packaged configuration, read before any user configuration.
DEFAULTS_INI_PATH = os.path.join(pathlib.Path(__file__).parent.absolute(), "defaults.ini")

defaults = ConfigParser(interpolation=None)


def load_defaults(user_config_path: str) -> bool:
    """Populate the global ``defaults`` object.

    The packaged ``defaults.ini`` is read first. A user configuration file, when ``user_config_path`` points to
    one, is read on top of it so that its values take precedence section by section.

    Parameters
    ----------
    user_config_path : str
        The path to a user ``.ini`` file. Ignored when empty or when it is not a file.

    Returns
    -------
    bool
        False if one of the files is not a valid ``.ini`` file.
    """
    config_files = [DEFAULTS_INI_PATH]
    if user_config_path and os.path.isfile(user_config_path):
        config_files.append(user_config_path)

    try:
        read_files = defaults.read(config_files, encoding="utf8")
    except (configparser.Error, ValueError) as error:
        logger.error("Cannot load the configuration from %s: %s", ", ".join(config_files), error)
        return False

    logger.debug("Loaded the configuration from %s.", ", ".join(read_files))
    return True


def create_defaults(output_path: str, cwd_path: str) -> bool:
    """Write a copy of the packaged ``defaults.ini`` to ``output_path`` as a starting point for users.

    The file is copied rather than written back by ``ConfigParser``, which would drop its comments.

    Parameters
    ----------
    output_path : str
        The directory receiving ``defaults.ini``.
    cwd_path : str
        The directory that the logged path is made relative to.

    Returns
    -------
    bool
        False if the packaged file is invalid or the copy fails.
    """
    try:
        ConfigParser(interpolation=None).read(DEFAULTS_INI_PATH, encoding="utf8")
    except (configparser.Error, ValueError) as error:
        logger.error("The packaged defaults.ini is invalid: %s", error)
        return False

    dest_path = os.path.join(output_path, "defaults.ini")
    try:
        shutil.copy2(DEFAULTS_INI_PATH, dest_path)
    except (shutil.Error, OSError) as error:
        logger.error("Failed to create %s: %s.", os.path.relpath(dest_path, cwd_path), error)
        return False

    logger.info("Dumped the default values in %s.", os.path.relpath(dest_path, cwd_path))
    return True
