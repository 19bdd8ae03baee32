"""
main.py
-------
Main entry point for the module dispatcher.
Features:
  - Imports every module in the ``modules`` package so they self-register.
  - Closes the registration phase before anything is dispatched.
  - Runs the module named by the first argument, forwarding the rest.
  - Prints usage and the colored module list when no module is named.
"""

import os
import sys
import importlib
import logging
import pkgutil
from colorama import init, Fore, Style

from registry import RegistryError, get_registry

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "log_level": "WARNING",
    "log_format": "%(asctime)s - %(levelname)s - %(message)s",
    "package": "modules",
}

LOG_LEVEL_ENV = "MODREG_LOG_LEVEL"
HELP_FLAGS = ("--help", "-h", "-?")


def load_config(environ=None):
    """
    Return DEFAULT_CONFIG merged with environment overrides.
    """
    environ = os.environ if environ is None else environ
    config = dict(DEFAULT_CONFIG)
    level = environ.get(LOG_LEVEL_ENV)
    if level:
        level = level.strip().upper()
        if isinstance(logging.getLevelName(level), int):
            config["log_level"] = level
        else:
            logger.warning("Ignoring invalid %s=%r", LOG_LEVEL_ENV, level)
    return config


def configure_logging(config):
    logging.basicConfig(
        stream=sys.stderr,
        level=config["log_level"],
        format=config["log_format"],
    )


def _say(color, text):
    print(color + text + Style.RESET_ALL, file=sys.stderr)


# -----------------------
# Module Discovery
# -----------------------
def import_all_modules(package_name=DEFAULT_CONFIG["package"]):
    """
    Recursively import every module of the given package.
    Modules go through importlib.import_module, so a module body (and its
    registration) runs only once per process however often this is called.
    A subpackage whose __init__ fails is reported and not descended into.
    """
    package = importlib.import_module(package_name)
    imported = []
    _import_package(package, imported)
    return imported


def _import_package(package, imported):
    for info in pkgutil.iter_modules(package.__path__, prefix=package.__name__ + "."):
        try:
            module = importlib.import_module(info.name)
        except RegistryError:
            raise
        except Exception as e:
            logger.exception("Failed to import %s", info.name)
            _say(Fore.RED, f"Error importing {info.name}: {e}")
            continue
        imported.append(info.name)
        if info.ispkg:
            _import_package(module, imported)


def load_modules(package_name=DEFAULT_CONFIG["package"]):
    """
    Run module discovery, then seal the process-wide registry so nothing
    registers once dispatching starts.
    """
    import_all_modules(package_name)
    registry = get_registry()
    registry.seal()
    return registry


# -----------------------
# Dispatcher
# -----------------------
def print_usage(registry, prog):
    _say(Fore.CYAN + Style.BRIGHT, f"Usage: {prog} <module> [args...]")
    _say(Fore.BLUE + Style.BRIGHT, "Available modules:")
    listing = registry.list()
    if not listing:
        _say(Fore.YELLOW, "  (no modules registered)")
    for name, description in listing:
        _say(Fore.GREEN, f"  - {name}: {description}")


def run(argv, registry=None, prog="modreg"):
    """
    Dispatch on ``argv`` (without the program name) and return the exit
    status: the module's own result, 0 for the usage listing, 1 for an
    unknown module name.
    """
    registry = registry if registry is not None else get_registry()
    if not argv or argv[0] in HELP_FLAGS:
        print_usage(registry, prog)
        return 0

    name, params = argv[0], list(argv[1:])
    entry = registry.lookup(name)
    if entry is None:
        logger.info("Unknown module requested: %s", name)
        _say(Fore.RED, f"Unknown module: {name}")
        _say(Fore.CYAN, f"Usage: {prog} <module> [args...]  (try '{prog} --help')")
        return 1

    logger.debug("Dispatching '%s' with %d parameter(s)", name, len(params))
    status = entry.factory().run(params)
    logger.debug("Module '%s' returned %r", name, status)
    return status


# -----------------------
# Entry Point
# -----------------------
def main():
    config = load_config()
    configure_logging(config)
    init(autoreset=True)

    registry = load_modules(package_name=config["package"])
    sys.exit(run(sys.argv[1:], registry, prog=os.path.basename(sys.argv[0])))


if __name__ == "__main__":
    main()
