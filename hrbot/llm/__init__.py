"""Model backend access and prompt assembly."""
