"""zoombridge - demo server bridging a client app to Zoom's OAuth, REST, webhook and Meeting SDK APIs."""
__version__ = "0.1.0"
