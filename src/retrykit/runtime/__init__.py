"""Runtime layer: cancellation, retry driver and observability."""
