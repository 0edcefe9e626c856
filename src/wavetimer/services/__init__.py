"""Service layer: alarm trigger, background controller, process handle, UI session."""
