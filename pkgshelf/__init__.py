"""Repository subscriptions, name resolution and package indices."""
