"""Type-dispatched media storage and processing."""
