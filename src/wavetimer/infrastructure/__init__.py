"""Infrastructure: event loop, cross-process channel, devices, settings store."""
