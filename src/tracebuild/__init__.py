"""
tracebuild instruments builds in CI systems (GitHub Actions, Travis CI, ...).

Every build step is a separate process invocation; ids passed on the command
line link them into a single OpenTelemetry trace.

Modules:
- tracebuild.id / tracebuild.timestamp / tracebuild.status: command line value codecs
- tracebuild.context: parent context derivation
- tracebuild.process: child process supervision
- tracebuild.opentelemetry: trace/metric pipeline installation
- tracebuild.cli: command line entry point
"""

from tracebuild.__version__ import __version__

__all__ = ["__version__"]
