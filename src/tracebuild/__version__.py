# -*- coding: utf-8 -*-

__title__ = "tracebuild"
__description__ = "Command line utility to instrument builds and send traces to OpenTelemetry supported tracing systems"
__url__ = "https://github.com/frigus02/tracebuild"
__version__ = "0.3.0"
__author__ = "Jan Kühle"
__author_email__ = "jkuehle90@gmail.com"
__license__ = "MIT"
