"""
Dispatchable modules. Every submodule of this package is imported at startup
and registers itself with ``registry.register_module``.
"""
