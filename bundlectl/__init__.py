"""bundlectl — inspect, control and update bundles in a module registry."""

__version__ = "0.1.0"
