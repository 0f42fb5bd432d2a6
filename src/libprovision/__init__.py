"""libprovision - prebuilt native library provisioning."""

__version__ = "0.1.0"
