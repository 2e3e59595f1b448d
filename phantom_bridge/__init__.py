"""phantom-bridge: drive a headless PhantomJS engine from Python.

The host supervises an engine subprocess, injects a small HTTP dispatcher
into it, and exposes engine-side objects as remote handles.
"""

__app_name__ = "phantom-bridge"
__version__ = "0.1.0"
