"""Command line clients for CUPS print servers, speaking IPP over HTTP."""
