"""
my_module.py
------------
Placeholder module showing how a module registers itself. It does nothing
and always succeeds.
"""

import logging

from registry import Module, register_module

logger = logging.getLogger(__name__)


@register_module("mymod", "My self-registering module", category=("Samples",))
class MyModule(Module):
    def run(self, params):
        logger.debug("mymod called with %r", params)
        return 0
