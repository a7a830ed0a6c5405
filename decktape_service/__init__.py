"""
Decktape Service - HTML to PDF conversion over HTTP.

Stages the submitted HTML in a private working directory, runs the Decktape
slide-capture tool against it under Node/Chromium and returns the produced PDF.
"""

__version__ = "0.1.0"
