"""Policy and quote document assembly."""
