"""Infrastructure layer — file I/O, schema registry, providers, manager.

This layer builds on the domain layer and third-party libs
(readerwriterlock, pluggy, ruamel.yaml).
It must never import from services, commands, or output.
"""
