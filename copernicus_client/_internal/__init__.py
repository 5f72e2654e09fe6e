"""Internal modules for the Copernicus client.

WARNING: These modules back `CopernicusClient` and are not intended for
direct use in application code.

Modules:
    runtime - Python discovery, copernicusmarine install and import
    hints - Hints for errors raised by copernicusmarine
    redaction - Secret redaction for debug logging
"""
