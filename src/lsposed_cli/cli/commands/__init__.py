"""Command handlers. Each takes ``(ctx, args)`` and returns an exit status."""
